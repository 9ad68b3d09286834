"""Credential helpers for binding the realtime channel to the signed-in user."""

from __future__ import annotations

import logging
from typing import Mapping

import httpx
from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class SessionCredentialStore:
    """Read the bearer token issued at login from the session cookie jar."""

    def __init__(
        self, cookies: httpx.Cookies | Mapping[str, str], cookie_name: str = "token"
    ) -> None:
        self._cookies = cookies
        self.cookie_name = cookie_name

    def get_token(self) -> str | None:
        """Return the stored token, or ``None`` for anonymous visitors."""

        token = self._cookies.get(self.cookie_name)
        if not token:
            return None
        token = str(token).strip()
        return token or None


def recipient_id_from_token(token: str | None) -> str | None:
    """Return the ``id`` claim of ``token`` without verifying its signature.

    The broker verifies the token during the handshake; the client only needs
    the identifier to address its own mailbox room.
    """

    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        logger.warning("Could not read claims from session token: %s", exc)
        return None

    user_id = claims.get("id") or claims.get("_id") or claims.get("sub")
    if user_id in (None, ""):
        return None
    return str(user_id)


__all__ = ["SessionCredentialStore", "recipient_id_from_token"]
