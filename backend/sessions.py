"""Signed session tokens issued after GitHub OAuth login."""

import time
from typing import Any

import jwt

from utils.errors import AuthenticationError

SESSION_TTL_SECONDS = 7 * 24 * 3600
ALGORITHM = "HS256"


def issue_session_token(user: dict[str, Any], role: str, secret: str, ttl_seconds: int = SESSION_TTL_SECONDS) -> str:
    """Sign a session JWT carrying the GitHub identity and role at login time."""
    now = int(time.time())
    payload = {
        "sub": str(user["id"]),
        "login": user["login"],
        "id": user["id"],
        "avatar_url": user.get("avatar_url"),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": role,
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: str) -> dict[str, Any]:
    """Verify signature and expiry.

    Raises:
        AuthenticationError: Expired or invalid token
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired, please log in again")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid session token: {e}")

    if "login" not in claims:
        raise AuthenticationError("Invalid session token: missing login")
    return claims
