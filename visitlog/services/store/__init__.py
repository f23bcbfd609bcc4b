"""Visit log persistence."""
from .service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, LogStore

__all__ = ["LogStore", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE"]
