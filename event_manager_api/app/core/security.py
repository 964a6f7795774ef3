"""
Bearer token authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed
the user's email as the ``sub`` claim and an expiration timestamp
(``exp``).  The secret key from the application settings signs and
verifies every token.

Login is out of scope for this service: tokens are issued out of band
(see ``create_token.py``) and the ``get_current_user`` dependency only
resolves them to the acting user.  The resulting actor dictionary is
passed explicitly into every service call.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_connection


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "user@example.com"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, str]]:
    """Verify and decode a JWT token.

    Returns the payload dictionary when the signature matches and the
    token has not expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        expected_sig = _sign(signing_input, settings.secret_key)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are ValueError subclasses
        return None
    if not isinstance(data, dict) or data.get("exp") is None:
        return None
    if int(data["exp"]) < int(time.time()):
        return None
    return data


security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_actor(token: str) -> Dict[str, str]:
    payload = decode_access_token(token)
    if not payload:
        raise _unauthenticated("Invalid or expired token")
    conn = get_connection()
    try:
        user_row = conn.execute(
            "SELECT id, email, name FROM users WHERE email = ?",
            (payload.get("sub"),),
        ).fetchone()
    finally:
        conn.close()
    if not user_row:
        raise _unauthenticated("User no longer exists")
    return {
        "sub": payload["sub"],
        "user_id": user_row["id"],
        "email": user_row["email"],
        "name": user_row["name"],
    }


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, str]:
    """Dependency that resolves the bearer token to the acting user.

    Raises HTTP 401 when the header is missing, the token is invalid or
    expired, or its subject no longer matches a user row.
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")
    return _resolve_actor(credentials.credentials)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Optional[Dict[str, str]]:
    """Like ``get_current_user`` but returns ``None`` for anonymous requests.

    A token that is present but invalid still yields 401.
    """
    if credentials is None:
        return None
    return _resolve_actor(credentials.credentials)
