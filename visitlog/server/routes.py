"""Central route registration."""
from litestar.types import ControllerRouterHandler

from visitlog.api.v1.admin_controller import AdminController
from visitlog.api.v1.visit_log_controller import VisitLogController
from visitlog.api.v1.stats import stats

def get_route_handlers() -> list[ControllerRouterHandler]:
    """Get all route handlers for the application."""
    return [
        VisitLogController,
        AdminController,
        stats,
    ]
