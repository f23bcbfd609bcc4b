"""Geolocation providers backed by MaxMind GeoIP2.

Providers only translate an address into ``GeoData``. They are allowed to be
slow and to raise; time bounds and error suppression live in ``GeoEnricher``.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from geoip2.database import Reader
from geoip2.models import City
from geoip2.webservice import AsyncClient

from .constants import ALLOWED_GEOIP_LOCALES, GEOIP_LOCALES_DEFAULT
from .schemas import GeoData

logger = logging.getLogger(__name__)


class GeoProvider(Protocol):
    """Anything that can look up an address."""

    async def lookup(self, address: str) -> GeoData | None: ...

    async def close(self) -> None: ...


def _checked_locales(locales: list[str] | None) -> list[str]:
    if any(loc not in ALLOWED_GEOIP_LOCALES for loc in locales or []):
        logger.warning(
            "Unmatched GeoIp2 locale found. Allowed are '%s', defaulting to 'en'",
            ALLOWED_GEOIP_LOCALES,
        )
        return GEOIP_LOCALES_DEFAULT
    return locales or GEOIP_LOCALES_DEFAULT


def city_to_geo_data(city: City) -> GeoData | None:
    """Reduce a GeoIP2 City response to country, region and city names."""
    data = GeoData(
        country=city.country.name,
        region=city.subdivisions.most_specific.name,
        city=city.city.name,
    )
    return None if data.is_empty else data


class WebServiceGeoProvider:
    """Look up addresses with the MaxMind GeoIP2/GeoLite web service."""

    def __init__(
        self,
        account_id: int,
        license_key: str,
        *,
        host: str = "geolite.info",
        locales: list[str] | None = None,
        timeout: float = 2.5,
    ) -> None:
        self.client = AsyncClient(
            account_id,
            license_key,
            host=host,
            locales=_checked_locales(locales),
            timeout=timeout,
        )

    async def lookup(self, address: str) -> GeoData | None:
        return city_to_geo_data(await self.client.city(address))

    async def close(self) -> None:
        await self.client.close()


class DatabaseGeoProvider:
    """Look up addresses in a local GeoIP2/GeoLite2 City database.

    Reads are blocking mmdb lookups, so they run in a worker thread.
    """

    def __init__(self, db_path: Path | str, locales: list[str] | None = None) -> None:
        self.db_path = db_path
        self.reader = Reader(str(db_path), locales=_checked_locales(locales))

    async def lookup(self, address: str) -> GeoData | None:
        return city_to_geo_data(await asyncio.to_thread(self.reader.city, address))

    async def close(self) -> None:
        self.reader.close()
