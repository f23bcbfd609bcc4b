"""Schemas for geolocation results - pure data, no ORM dependencies."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoData:
    """Coarse location of a client address."""

    country: str | None = None
    region: str | None = None
    city: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.country is None and self.region is None and self.city is None
