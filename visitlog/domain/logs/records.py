"""Immutable views of visit log rows handed out by the store."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from visitlog.domain.logs.models import VisitLog
from visitlog.services.geo.schemas import GeoData


@dataclass(frozen=True)
class NewVisit:
    """Everything the pipeline knows about a visit before it is stored."""

    masked_address: str
    pseudonym: str
    request_path: str
    raw_address: str | None = None
    consented: bool = False
    geo: GeoData | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class LogRecord:
    """A stored visit log entry."""

    id: int
    timestamp: datetime
    masked_address: str
    pseudonym: str
    raw_address: str | None
    consented: bool
    geo: GeoData | None
    request_path: str
    user_agent: str | None

    @classmethod
    def from_model(cls, model: VisitLog) -> "LogRecord":
        geo = GeoData(country=model.geo_country, region=model.geo_region, city=model.geo_city)
        return cls(
            id=model.id,
            timestamp=model.timestamp,
            masked_address=model.masked_address,
            pseudonym=model.pseudonym,
            raw_address=model.raw_address,
            consented=model.consented,
            geo=None if geo.is_empty else geo,
            request_path=model.request_path,
            user_agent=model.user_agent,
        )
