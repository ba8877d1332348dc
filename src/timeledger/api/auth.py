"""
Access Gate.

One policy object decides, for every inbound request, whether it may proceed.
Credentials are HTTP Basic, compared against the configured username/password
pair. There are no sessions, tokens or expiry.

Requests pass without credentials when:
- the gate is disabled (`AUTH_ENABLED=false`),
- the path is on the public allow-list (health and API docs),
- the method is `OPTIONS` (CORS preflight never carries credentials).
"""

from __future__ import annotations

import base64
import binascii
import secrets

from timeledger.core.errors import AuthError
from timeledger.core.settings import Settings

DEFAULT_PUBLIC_PATHS: frozenset[str] = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})
REALM = "timeledger"
CHALLENGE = f'Basic realm="{REALM}", charset="UTF-8"'


def parse_basic(authorization: str | None) -> tuple[str, str]:
    """Return `(username, password)` from a `Basic` header or raise `AuthError`."""
    if not authorization:
        raise AuthError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "basic" or not token.strip():
        raise AuthError("Authentication required")
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise AuthError("Malformed credentials") from exc
    username, sep, password = decoded.partition(":")
    if not sep:
        raise AuthError("Malformed credentials")
    return username, password


class AccessGate:
    """Shared-secret gate consulted by the HTTP middleware for every route."""

    def __init__(self, settings: Settings, public_paths: frozenset[str] = DEFAULT_PUBLIC_PATHS) -> None:
        self.enabled = settings.auth_enabled
        self.public_paths = public_paths
        self._username = settings.auth_username or ""
        self._password = settings.auth_password or ""

    def is_public(self, path: str) -> bool:
        return path.rstrip("/") in self.public_paths or path in self.public_paths

    def check(self, authorization: str | None) -> None:
        """Raise `AuthError` unless `authorization` carries the configured pair."""
        username, password = parse_basic(authorization)
        user_ok = secrets.compare_digest(username.encode(), self._username.encode())
        pass_ok = secrets.compare_digest(password.encode(), self._password.encode())
        if not (user_ok and pass_ok):
            raise AuthError("Invalid credentials")

    def authorize(self, method: str, path: str, authorization: str | None) -> None:
        if not self.enabled or method.upper() == "OPTIONS" or self.is_public(path):
            return
        self.check(authorization)


__all__ = ["AccessGate", "CHALLENGE", "DEFAULT_PUBLIC_PATHS", "parse_basic"]
