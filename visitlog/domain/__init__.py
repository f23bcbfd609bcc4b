from .logs.models import VisitLog

__all__ = [
    "VisitLog",
]
