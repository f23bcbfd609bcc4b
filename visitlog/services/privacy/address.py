"""Client address extraction and display masking.

Both functions are pure and total: they never raise and always return a
string, falling back to ``UNKNOWN_ADDRESS`` when nothing usable is found.
"""
from __future__ import annotations

import re
from collections.abc import Mapping

UNKNOWN_ADDRESS = "unknown"
IPV4_MAPPED_PREFIX = "::ffff:"
IPV6_MASK_SUFFIX = ":xxxx:xxxx"
IPV6_KEPT_GROUPS = 3

_IPV4_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")


def strip_ipv4_mapped_prefix(address: str) -> str:
    """Turn ``::ffff:1.2.3.4`` into ``1.2.3.4``. Other values pass through."""
    if address.lower().startswith(IPV4_MAPPED_PREFIX):
        return address[len(IPV4_MAPPED_PREFIX):]
    return address


def resolve_client_address(
    headers: Mapping[str, str],
    peer_address: str | None,
    forwarded_header: str = "x-forwarded-for",
) -> str:
    """Return the client address for a request.

    The first entry of the forwarding header wins (it is the client as seen by
    the first proxy hop), then the transport peer address, then ``"unknown"``.

    Args:
        headers: Request headers. Lookups are case-insensitive.
        peer_address: Address of the socket peer, if the transport knows it.
        forwarded_header: Name of the proxy chain header.
    """
    candidate = ""
    forwarded = _get_header(headers, forwarded_header)
    if forwarded:
        candidate = forwarded.split(",", 1)[0].strip()
    if not candidate and peer_address:
        candidate = peer_address.strip()
    if not candidate:
        return UNKNOWN_ADDRESS
    return strip_ipv4_mapped_prefix(candidate) or UNKNOWN_ADDRESS


def mask_address(address: str | None) -> str:
    """Return the display form of an address.

    - ``a.b.c.d`` becomes ``a.b.x.x``
    - IPv6 keeps its first three non-empty groups followed by ``:xxxx:xxxx``;
      a kept group holding an embedded IPv4 address (``64:ff9b::1.2.3.4``)
      is masked like IPv4
    - anything with fewer than three groups becomes ``"masked"``
    - empty input becomes ``"unknown"``
    """
    if not address or address == UNKNOWN_ADDRESS:
        return UNKNOWN_ADDRESS

    if _IPV4_RE.match(address):
        return _mask_ipv4(address)

    groups = [group for group in address.split(":") if group]
    if len(groups) >= IPV6_KEPT_GROUPS:
        kept = [_mask_ipv4(group) if _IPV4_RE.match(group) else group for group in groups[:IPV6_KEPT_GROUPS]]
        return ":".join(kept) + IPV6_MASK_SUFFIX

    return "masked"


def _mask_ipv4(address: str) -> str:
    a, b, _, _ = address.split(".")
    return f"{a}.{b}.x.x"


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, header_value in headers.items():
            if key.lower() == lowered:
                value = header_value
                break
    return value
