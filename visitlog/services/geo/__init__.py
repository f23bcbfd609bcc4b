"""Geolocation module - providers and the time-bounded enricher."""
from .enricher import GeoEnricher, create_geo_enricher, is_locatable
from .providers import DatabaseGeoProvider, GeoProvider, WebServiceGeoProvider
from .schemas import GeoData

__all__ = [
    "GeoEnricher",
    "create_geo_enricher",
    "is_locatable",
    "DatabaseGeoProvider",
    "GeoProvider",
    "WebServiceGeoProvider",
    "GeoData",
]
