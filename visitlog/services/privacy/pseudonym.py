"""Keyed, one-way pseudonyms for client addresses."""
from __future__ import annotations

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

# Used only when no key is configured. Pseudonyms produced with it can be
# recomputed by anyone who has read this file.
DEFAULT_SECRET_KEY = "visitlog-insecure-default-key"


class Pseudonymizer:
    """Derive stable pseudonyms with HMAC-SHA256.

    The same address under the same key always yields the same 64 character
    hex digest, so visits can be correlated without storing the address.

    Example:
        pseudonymizer = Pseudonymizer(secret_key="s3cret")
        token = pseudonymizer.pseudonymize("203.0.113.7")
    """

    digest_size = hashlib.sha256().digest_size * 2

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the pseudonymizer.

        Args:
            secret_key: Process-wide HMAC key. When empty, a placeholder key is
                used and a warning is logged.
        """
        self.uses_default_key: bool = not secret_key
        if self.uses_default_key:
            logger.warning(
                "No pseudonymization key configured (PRIVACY_SECRET_KEY); "
                "falling back to the built-in default key. Pseudonyms are not secret."
            )
        self._key: bytes = (secret_key or DEFAULT_SECRET_KEY).encode("utf-8")

    def pseudonymize(self, address: str) -> str:
        """Return the hex HMAC-SHA256 of ``address``."""
        return hmac.new(self._key, address.encode("utf-8"), hashlib.sha256).hexdigest()
