"""Cookie-backed consent for storing unmasked addresses.

The consent cookie lives on the client and can be set by anyone, so it is a
policy toggle only. It decides whether ``raw_address`` is kept, nothing else.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta

from litestar.datastructures import Cookie

logger = logging.getLogger(__name__)

CONSENT_VALUE = "true"


class ConsentGate:
    """Read and issue the raw-address consent cookie."""

    def __init__(self, cookie_name: str = "consent", max_age_days: int = 365) -> None:
        self.cookie_name = cookie_name
        self.max_age = int(timedelta(days=max_age_days).total_seconds())

    def record_consent(self) -> Cookie:
        """Return the cookie that marks the client as consenting.

        Readable from client script (not httpOnly) and sent on same-site
        navigation only.
        """
        return Cookie(
            key=self.cookie_name,
            value=CONSENT_VALUE,
            max_age=self.max_age,
            path="/",
            httponly=False,
            samesite="lax",
        )

    def has_consented(self, cookies: Mapping[str, str] | None) -> bool:
        """Return True only when the consent cookie holds the exact consent value."""
        if not cookies:
            return False
        value = cookies.get(self.cookie_name)
        if not isinstance(value, str):
            return False
        if value != CONSENT_VALUE:
            logger.debug("Ignoring unexpected %s cookie value", self.cookie_name)
            return False
        return True
