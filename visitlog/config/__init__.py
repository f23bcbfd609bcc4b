"""Configuration module for the VisitLog API."""

from visitlog.config.settings import (
    AdminSettings,
    APISettings,
    DatabaseSettings,
    GeoIPSettings,
    PrivacySettings,
    RetentionSettings,
    SchedulerSettings,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "AdminSettings",
    "APISettings",
    "DatabaseSettings",
    "GeoIPSettings",
    "PrivacySettings",
    "RetentionSettings",
    "SchedulerSettings",
]
