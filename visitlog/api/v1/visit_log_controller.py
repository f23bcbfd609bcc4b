"""Public visit logging endpoints."""
from __future__ import annotations

import logging
from typing import Any

from litestar import Controller, Request, Response, get, post
from litestar.di import Provide
from litestar.exceptions import SerializationException
from litestar.serialization import decode_json
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED, HTTP_503_SERVICE_UNAVAILABLE

from visitlog.services.ingestion import VisitEvent, VisitLogService
from visitlog.services.privacy import ConsentGate
from visitlog.api.dependencies import provide_consent_gate

logger = logging.getLogger(__name__)


def _peer_address(request: Request) -> str | None:
    return request.client.host if request.client else None


async def _reported_path(request: Request) -> Any:
    """Return the ``path`` field of the beacon body, or None.

    The body comes from an untrusted snippet. Empty, malformed or non-object
    bodies yield None so the visit is still recorded under the default path.
    """
    body = await request.body()
    if not body:
        return None
    try:
        payload = decode_json(body)
    except SerializationException:
        logger.debug("Ignoring malformed visit body (%d bytes)", len(body))
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("path")


class VisitLogController(Controller):
    """Visit logging endpoints

    Records page views and consent. No authentication; rate limiting happens
    in front of the service.
    """
    path = "/api"
    tags = ["Visits"]

    dependencies = {
        "consent_gate": Provide(provide_consent_gate, sync_to_thread=False),
    }

    @post("/log")
    async def log_visit(
        self,
        request: Request,
        visit_service: VisitLogService,
    ) -> Response[dict[str, Any]]:
        """Record a page view for the calling client.

        Expects ``{"path": "/some/page"}``. Anything else is recorded under ``/``.
        """
        result = await visit_service.record_visit(
            VisitEvent(
                path=await _reported_path(request),
                headers=request.headers,
                peer_address=_peer_address(request),
                cookies=request.cookies,
            )
        )
        if not result.success or result.record is None:
            return Response({"success": False}, status_code=HTTP_503_SERVICE_UNAVAILABLE)
        return Response({"success": True, "id": result.record.id}, status_code=HTTP_201_CREATED)

    @post("/consent", status_code=HTTP_200_OK)
    async def record_consent(self, consent_gate: ConsentGate) -> Response[dict[str, bool]]:
        """Set the cookie that allows storing the caller's unmasked address."""
        return Response({"success": True}, cookies=[consent_gate.record_consent()])

    @get("/my-ip")
    async def my_ip(self, request: Request, visit_service: VisitLogService) -> dict[str, str]:
        """Return the masked address the service sees for the caller."""
        return {"ip_masked": visit_service.describe_address(request.headers, _peer_address(request))}
