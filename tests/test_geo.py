"""Tests for geo enrichment."""
import asyncio
import logging
import time

import pytest
from pydantic import SecretStr

from visitlog.config.settings import GeoIPSettings
from visitlog.services.geo import GeoData, GeoEnricher, create_geo_enricher, is_locatable
from visitlog.services.geo.providers import WebServiceGeoProvider, city_to_geo_data

PUBLIC_IP = "81.2.69.160"


class StaticProvider:
    def __init__(self, geo: GeoData | None) -> None:
        self.geo = geo
        self.calls: list[str] = []
        self.closed = False

    async def lookup(self, address: str) -> GeoData | None:
        self.calls.append(address)
        return self.geo

    async def close(self) -> None:
        self.closed = True


class SlowProvider(StaticProvider):
    def __init__(self, delay: float) -> None:
        super().__init__(GeoData(country="Nowhere", region=None, city=None))
        self.delay = delay

    async def lookup(self, address: str) -> GeoData | None:
        self.calls.append(address)
        await asyncio.sleep(self.delay)
        return self.geo


class FailingProvider(StaticProvider):
    def __init__(self, exc: Exception) -> None:
        super().__init__(None)
        self.exc = exc

    async def lookup(self, address: str) -> GeoData | None:
        self.calls.append(address)
        raise self.exc


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        (PUBLIC_IP, True),
        ("8.8.8.8", True),
        ("10.0.0.1", False),
        ("192.168.1.20", False),
        ("127.0.0.1", False),
        ("unknown", False),
        ("", False),
        ("not-an-ip", False),
        ("999.1.1.1", False),
    ],
)
def test_is_locatable(address: str, expected: bool) -> None:
    assert is_locatable(address) is expected


@pytest.mark.asyncio
async def test_lookup_returns_provider_data() -> None:
    geo = GeoData(country="United Kingdom", region="England", city="London")
    provider = StaticProvider(geo)
    enricher = GeoEnricher(provider, timeout=1.0)

    assert await enricher.lookup(PUBLIC_IP) == geo
    assert provider.calls == [PUBLIC_IP]
    assert enricher.lookups == 1
    assert enricher.hits == 1


@pytest.mark.asyncio
async def test_lookup_miss_is_counted() -> None:
    enricher = GeoEnricher(StaticProvider(None), timeout=1.0)
    assert await enricher.lookup(PUBLIC_IP) is None
    assert enricher.misses == 1


@pytest.mark.asyncio
async def test_unknown_address_skips_provider() -> None:
    provider = StaticProvider(GeoData(country="X", region=None, city=None))
    enricher = GeoEnricher(provider)

    assert await enricher.lookup("unknown") is None
    assert await enricher.lookup("10.1.2.3") is None
    assert provider.calls == []
    assert enricher.lookups == 0


@pytest.mark.asyncio
async def test_disabled_enricher_returns_none() -> None:
    enricher = GeoEnricher(None)
    assert enricher.enabled is False
    assert await enricher.lookup(PUBLIC_IP) is None


@pytest.mark.asyncio
async def test_slow_lookup_is_abandoned_after_timeout() -> None:
    enricher = GeoEnricher(SlowProvider(delay=5.0), timeout=0.2)

    started = time.monotonic()
    result = await enricher.lookup(PUBLIC_IP)
    elapsed = time.monotonic() - started

    assert result is None
    assert elapsed < 1.5
    assert enricher.timeouts == 1


@pytest.mark.asyncio
async def test_provider_error_is_absorbed(caplog: pytest.LogCaptureFixture) -> None:
    enricher = GeoEnricher(FailingProvider(RuntimeError("boom")), timeout=1.0)

    with caplog.at_level(logging.DEBUG, logger="visitlog.services.geo.enricher"):
        assert await enricher.lookup(PUBLIC_IP) is None

    assert enricher.errors == 1
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_close_releases_provider() -> None:
    provider = StaticProvider(None)
    await GeoEnricher(provider).close()
    assert provider.closed is True


def test_city_to_geo_data_handles_partial_records() -> None:
    class Named:
        def __init__(self, name):
            self.name = name

    class Subdivisions:
        most_specific = Named(None)

    class FakeCity:
        country = Named("Sweden")
        subdivisions = Subdivisions()
        city = Named(None)

    geo = city_to_geo_data(FakeCity())
    assert geo == GeoData(country="Sweden", region=None, city=None)

    FakeCity.country = Named(None)
    assert city_to_geo_data(FakeCity()) is None


def test_create_enricher_disabled() -> None:
    enricher = create_geo_enricher(GeoIPSettings(provider="disabled"))
    assert enricher.enabled is False


def test_create_enricher_webservice_without_credentials_disables(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        enricher = create_geo_enricher(GeoIPSettings(provider="webservice", account_id=None, license_key=None))
    assert enricher.enabled is False
    assert "GEOIP_ACCOUNT_ID" in caplog.text


@pytest.mark.asyncio
async def test_create_enricher_webservice_with_credentials() -> None:
    settings = GeoIPSettings(
        provider="webservice",
        account_id=42,
        license_key=SecretStr("license"),
        timeout_seconds=1.5,
    )
    enricher = create_geo_enricher(settings)
    try:
        assert isinstance(enricher.provider, WebServiceGeoProvider)
        assert enricher.timeout == 1.5
    finally:
        await enricher.close()
