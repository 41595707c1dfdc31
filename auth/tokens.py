"""
Bearer token creation and verification.

Tokens are base64-encoded JSON payloads signed with HMAC-SHA256.
Secret key is loaded from ``config.auth_token_secret`` (env var:
``AUTH_TOKEN_SECRET``).  The payload carries the user id and the
security level granted to the bearer.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import b64decode, b64encode
from dataclasses import dataclass
from typing import Optional

from config.settings import config
from core.errors import ValidationFailed
from endpoints.base import SecurityLevel


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    level: SecurityLevel
    expires_at: int


def _sign(raw: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


def create_token(
    user_id: str,
    level: SecurityLevel = SecurityLevel.REGISTERED,
    *,
    secret: Optional[str] = None,
    expiry_seconds: Optional[int] = None,
) -> str:
    """Create a signed token containing ``user_id``, level and expiry."""
    payload = {
        "user_id": user_id,
        "level": int(level),
        "exp": int(time.time()) + (expiry_seconds or config.auth_token_expiry_seconds),
    }
    raw = json.dumps(payload).encode()
    return b64encode(raw).decode() + "." + _sign(raw, secret or config.auth_token_secret)


def verify_token(token: str, *, secret: Optional[str] = None) -> TokenClaims:
    """
    Verify ``token`` and return its claims.

    Raises ``ValidationFailed(401)`` on malformed, forged or expired tokens.
    """
    try:
        encoded, signature = token.split(".", 1)
        raw = b64decode(encoded, validate=True)
        expected = _sign(raw, secret or config.auth_token_secret)
        if not hmac.compare_digest(signature, expected):
            raise ValueError("bad signature")
        payload = json.loads(raw)
        if payload.get("exp", 0) < time.time():
            raise ValueError("token expired")
        return TokenClaims(
            user_id=str(payload["user_id"]),
            level=SecurityLevel(payload.get("level", SecurityLevel.REGISTERED)),
            expires_at=int(payload["exp"]),
        )
    except (ValueError, KeyError, binascii.Error) as exc:
        raise ValidationFailed(f"Invalid or expired token: {exc}", status_code=401) from exc
