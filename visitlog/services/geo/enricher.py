"""Best-effort, time-bounded geo enrichment.

``GeoEnricher.lookup`` never raises and never waits longer than its timeout.
Every failure (timeout, provider error, unusable address) is reported as
``None`` so the caller can write its record without location data.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from IPy import IP

from visitlog.services.privacy.address import UNKNOWN_ADDRESS

from .constants import UNROUTABLE_IP_TYPES
from .providers import DatabaseGeoProvider, GeoProvider, WebServiceGeoProvider
from .schemas import GeoData

if TYPE_CHECKING:
    from visitlog.config.settings import GeoIPSettings

logger = logging.getLogger(__name__)


def is_locatable(address: str) -> bool:
    """Return True if ``address`` is a valid IP that a provider could place."""
    if not address or address == UNKNOWN_ADDRESS:
        return False
    try:
        ip_type: str = IP(address).iptype()
    except ValueError:
        logger.debug("Not an IP address, skipping geo lookup: %r", address)
        return False
    if ip_type in UNROUTABLE_IP_TYPES:
        logger.debug("IP type %s (%s) has no location", ip_type, address)
        return False
    return True


class GeoEnricher:
    """Wrap a ``GeoProvider`` with a timeout and error suppression.

    Example:
        enricher = GeoEnricher(provider, timeout=2.5)
        geo = await enricher.lookup("81.2.69.160")  # GeoData or None
    """

    def __init__(self, provider: GeoProvider | None, *, timeout: float = 2.5) -> None:
        """Initialize the enricher.

        Args:
            provider: Lookup backend. ``None`` disables enrichment.
            timeout: Seconds a single lookup may take before it is abandoned.
        """
        self.provider: GeoProvider | None = provider
        self.timeout: float = timeout

        # Statistics
        self.lookups: int = 0
        self.hits: int = 0
        self.misses: int = 0
        self.timeouts: int = 0
        self.errors: int = 0

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    async def lookup(self, address: str) -> GeoData | None:
        """Return coarse location data for ``address`` or None."""
        if self.provider is None or not is_locatable(address):
            return None

        self.lookups += 1
        try:
            # wait_for cancels the provider call when the timeout fires.
            geo: GeoData | None = await asyncio.wait_for(
                self.provider.lookup(address), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.timeouts += 1
            logger.debug("Geo lookup for %s timed out after %.1fs", address, self.timeout)
            return None
        except Exception as e:
            self.errors += 1
            logger.debug("Geo lookup failed for %s: %s", address, e)
            return None

        if geo is None:
            self.misses += 1
        else:
            self.hits += 1
        return geo

    async def close(self) -> None:
        """Release the provider's client or database handle."""
        if self.provider is None:
            return
        try:
            await self.provider.close()
        except Exception:
            logger.exception("Failed to close geo provider")


def create_geo_enricher(settings: "GeoIPSettings") -> GeoEnricher:
    """Build an enricher for the configured provider.

    Misconfiguration disables enrichment with a warning instead of failing
    startup, since location data is optional.
    """
    provider: GeoProvider | None = None

    if settings.provider == "webservice":
        if settings.account_id is None or settings.license_key is None:
            logger.warning(
                "GeoIP web service selected but GEOIP_ACCOUNT_ID / GEOIP_LICENSE_KEY are not set; "
                "geo enrichment disabled."
            )
        else:
            provider = WebServiceGeoProvider(
                settings.account_id,
                settings.license_key.get_secret_value(),
                host=settings.host,
                locales=settings.locales,
                timeout=settings.timeout_seconds,
            )
    elif settings.provider == "database":
        try:
            provider = DatabaseGeoProvider(settings.db_path, settings.locales)
        except Exception:
            logger.exception("Failed to open GeoIP2 database at %s; geo enrichment disabled.", settings.db_path)
    else:
        logger.info("Geo enrichment disabled via settings")

    if provider is not None:
        logger.info(
            "Geo enrichment via %s provider (timeout=%.1fs)",
            settings.provider,
            settings.timeout_seconds,
        )
    return GeoEnricher(provider, timeout=settings.timeout_seconds)
