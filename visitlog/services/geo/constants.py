"""Constants shared by the geolocation providers."""

# Locales MaxMind ships names for.
ALLOWED_GEOIP_LOCALES = ["de", "en", "es", "fr", "ja", "pt-BR", "ru", "zh-CN"]
GEOIP_LOCALES_DEFAULT = ["en"]

# IPy address types that never resolve to a location.
UNROUTABLE_IP_TYPES = frozenset(
    {
        "PRIVATE",
        "LOOPBACK",
        "LINKLOCAL",
        "UNSPECIFIED",
        "RESERVED",
        "CARRIER_GRADE_NAT",
        "ULA",
        "MULTICAST",
        "IPV4MAP",
    }
)
