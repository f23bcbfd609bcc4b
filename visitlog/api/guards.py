"""Route guards."""
from __future__ import annotations

import base64
import binascii
import secrets

from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers.base import BaseRouteHandler

BASIC_AUTH_CHALLENGE = {"WWW-Authenticate": 'Basic realm="visitlog admin", charset="UTF-8"'}


def _parse_basic_credentials(header: str | None) -> tuple[str, str] | None:
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def basic_auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Require the configured admin credentials via HTTP basic auth."""
    admin = connection.app.state.settings.admin
    credentials = _parse_basic_credentials(connection.headers.get("authorization"))
    if credentials is None:
        raise NotAuthorizedException(detail="No credentials provided", headers=BASIC_AUTH_CHALLENGE)

    user, password = credentials
    user_ok = secrets.compare_digest(user.encode("utf-8"), admin.user.encode("utf-8"))
    password_ok = secrets.compare_digest(
        password.encode("utf-8"), admin.password.get_secret_value().encode("utf-8")
    )
    if not (user_ok and password_ok):
        raise NotAuthorizedException(detail="Credentials rejected", headers=BASIC_AUTH_CHALLENGE)
