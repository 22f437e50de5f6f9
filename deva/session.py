"""Encrypted cookie sessions.

The session is a small JSON document sealed with AES-256-GCM and stored in
the ``deva-session`` cookie. The key is derived from ``SESSION_SECRET``.
A cookie that fails to decrypt or parse reads as an empty session.

Sessions are injected into route handlers with :func:`get_session`; the
handler calls :meth:`Session.save` or :meth:`Session.destroy` on the
response it returns.
"""

import base64
import binascii
import hashlib
import json
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import Depends, Request, Response
from pydantic import ValidationError

from deva.errors import AuthenticationError
from deva.schemas import CamelModel

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "deva-session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 1 week
DEVELOPMENT_SECRET = "this-is-a-development-only-secret-32-chars-long"
_NONCE_SIZE = 12
_AAD = SESSION_COOKIE_NAME.encode("utf-8")


class SessionData(CamelModel):
    access_token: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    is_logged_in: bool = False


def _session_key(secret: Optional[str] = None) -> bytes:
    secret = secret or os.getenv("SESSION_SECRET") or DEVELOPMENT_SECRET
    return hashlib.sha256(secret.encode("utf-8")).digest()


def encode_session(data: SessionData, secret: Optional[str] = None) -> str:
    """Seal ``data`` into a URL-safe cookie value."""
    nonce = os.urandom(_NONCE_SIZE)
    plaintext = data.model_dump_json().encode("utf-8")
    ciphertext = AESGCM(_session_key(secret)).encrypt(nonce, plaintext, _AAD)
    return base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")


def decode_session(value: Optional[str], secret: Optional[str] = None) -> SessionData:
    """Open a cookie value; anything unreadable becomes an empty session."""
    if not value:
        return SessionData()
    try:
        blob = base64.urlsafe_b64decode(value.encode("ascii"))
        nonce, ciphertext = blob[:_NONCE_SIZE], blob[_NONCE_SIZE:]
        plaintext = AESGCM(_session_key(secret)).decrypt(nonce, ciphertext, _AAD)
        return SessionData.model_validate(json.loads(plaintext))
    except (binascii.Error, UnicodeEncodeError, ValueError, InvalidTag, ValidationError) as e:
        logger.warning(f"Discarding unreadable session cookie: {type(e).__name__}")
        return SessionData()


def _secure_cookies() -> bool:
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


class Session:
    """Per-request view of the session cookie."""

    def __init__(self, data: Optional[SessionData] = None):
        self.data = data or SessionData()
        self.destroyed = False

    @property
    def is_authenticated(self) -> bool:
        return self.data.is_logged_in and bool(self.data.access_token)

    def login(
        self, access_token: str, user_id: Optional[str] = None, user_email: Optional[str] = None
    ) -> None:
        if self.destroyed:
            raise RuntimeError("Cannot reuse a destroyed session")
        self.data = SessionData(
            access_token=access_token, user_id=user_id, user_email=user_email, is_logged_in=True
        )

    def destroy(self) -> None:
        self.data = SessionData()
        self.destroyed = True

    def save(self, response: Response) -> None:
        """Write the session onto ``response``; a destroyed session clears the cookie."""
        if self.destroyed:
            response.delete_cookie(SESSION_COOKIE_NAME, path="/")
            return
        response.set_cookie(
            SESSION_COOKIE_NAME,
            encode_session(self.data),
            max_age=SESSION_MAX_AGE,
            path="/",
            httponly=True,
            samesite="lax",
            secure=_secure_cookies(),
        )


async def get_session(request: Request) -> Session:
    return Session(decode_session(request.cookies.get(SESSION_COOKIE_NAME)))


async def require_session(session: Session = Depends(get_session)) -> Session:
    """Dependency for routes that need a connected Linear account."""
    if not session.is_authenticated:
        raise AuthenticationError("Not authenticated with Linear")
    return session
