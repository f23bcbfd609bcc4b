"""Visit ingestion service - turns reported page views into stored logs.

This service orchestrates, per event:
- client address resolution
- masking and pseudonymization
- the consent check for keeping the raw address
- best-effort geo enrichment
- persistence through the LogStore

Each step commits its own effect. A failed geo lookup still produces a
record; a failed write is reported back to the caller and dropped.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from advanced_alchemy.exceptions import AdvancedAlchemyError
from sqlalchemy.exc import SQLAlchemyError

from visitlog.domain.logs.records import LogRecord, NewVisit
from visitlog.services.privacy.address import mask_address, resolve_client_address

if TYPE_CHECKING:
    from visitlog.services.geo.enricher import GeoEnricher
    from visitlog.services.privacy.consent import ConsentGate
    from visitlog.services.privacy.pseudonym import Pseudonymizer
    from visitlog.services.store.service import LogStore


logger = logging.getLogger(__name__)

DEFAULT_PATH = "/"
MAX_PATH_LENGTH = 2048
MAX_USER_AGENT_LENGTH = 512


@dataclass
class VisitEvent:
    """A page view as reported by the HTTP layer."""

    path: Any  # untrusted, coerced by normalize_path
    headers: Mapping[str, str] = field(default_factory=dict)
    peer_address: str | None = None
    cookies: Mapping[str, str] = field(default_factory=dict)


@dataclass
class VisitResult:
    """Acknowledgment for a single event."""

    success: bool
    record: LogRecord | None = None


def normalize_path(path: Any) -> str:
    if not isinstance(path, str) or not path.strip():
        return DEFAULT_PATH
    return path.strip()[:MAX_PATH_LENGTH]


def _user_agent(headers: Mapping[str, str]) -> str | None:
    user_agent = headers.get("user-agent") or headers.get("User-Agent")
    if not user_agent:
        return None
    return user_agent[:MAX_USER_AGENT_LENGTH]


class VisitLogService:
    """Runs the visit logging pipeline.

    Example:
        service = VisitLogService(
            store=store,
            pseudonymizer=pseudonymizer,
            consent_gate=consent_gate,
            geo_enricher=geo_enricher,
        )
        result = await service.record_visit(VisitEvent(path="/", peer_address="203.0.113.9"))
    """

    def __init__(
        self,
        store: "LogStore",
        pseudonymizer: "Pseudonymizer",
        consent_gate: "ConsentGate",
        geo_enricher: "GeoEnricher",
        *,
        forwarded_header: str = "x-forwarded-for",
    ) -> None:
        """Initialize the visit log service.

        Args:
            store: Persistence for finished records.
            pseudonymizer: Keyed hash for addresses.
            consent_gate: Decides whether the raw address is kept.
            geo_enricher: Time-bounded location lookup.
            forwarded_header: Proxy header consulted before the peer address.
        """
        self.store: LogStore = store
        self.pseudonymizer: Pseudonymizer = pseudonymizer
        self.consent_gate: ConsentGate = consent_gate
        self.geo_enricher: GeoEnricher = geo_enricher
        self.forwarded_header: str = forwarded_header

        # Statistics
        self.total_recorded: int = 0
        self.total_failed: int = 0
        self.total_consented: int = 0

    def resolve_address(self, headers: Mapping[str, str], peer_address: str | None) -> str:
        return resolve_client_address(headers, peer_address, self.forwarded_header)

    def describe_address(self, headers: Mapping[str, str], peer_address: str | None) -> str:
        """Return the masked address of a client without storing anything."""
        return mask_address(self.resolve_address(headers, peer_address))

    async def record_visit(self, event: VisitEvent) -> VisitResult:
        """Process one page view end to end.

        Never raises for storage problems; they are logged and reported as
        ``VisitResult(success=False)``.
        """
        address = self.resolve_address(event.headers, event.peer_address)
        consented = self.consent_gate.has_consented(event.cookies)

        visit = NewVisit(
            masked_address=mask_address(address),
            pseudonym=self.pseudonymizer.pseudonymize(address),
            raw_address=address if consented else None,
            consented=consented,
            geo=await self.geo_enricher.lookup(address),
            request_path=normalize_path(event.path),
            user_agent=_user_agent(event.headers),
        )

        try:
            record: LogRecord = await self.store.append(visit)
        except (SQLAlchemyError, AdvancedAlchemyError, OSError) as e:
            self.total_failed += 1
            logger.exception("Failed to store visit log for %s: %s", visit.masked_address, e)
            return VisitResult(success=False)

        self.total_recorded += 1
        if consented:
            self.total_consented += 1
        logger.debug("Stored visit log %d (%s %s)", record.id, record.masked_address, record.request_path)
        return VisitResult(success=True, record=record)
