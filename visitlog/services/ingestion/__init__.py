from .service import VisitEvent, VisitLogService, VisitResult

__all__ = ["VisitEvent", "VisitLogService", "VisitResult"]
