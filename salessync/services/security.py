from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from salessync.core import config

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(ValueError):
    """Raised when a token cannot be decoded or has the wrong type."""


def normalize_bearer_token(raw: str | None) -> str | None:
    """Clean a token taken from an Authorization header.

    Clients sometimes send the token wrapped in quotes or with the
    ``Bearer`` prefix repeated; both are stripped here.
    """
    if raw is None:
        return None
    token = raw.strip().strip('"').strip("'").strip()
    while token.lower().startswith("bearer "):
        token = token[7:].strip().strip('"').strip("'").strip()
    return token or None


def _encode(payload: Dict[str, Any], expires_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **payload,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def create_access_token(user, expires_minutes: Optional[int] = None) -> str:
    # "sub" must be a string for python-jose
    return _encode(
        {
            "sub": str(user.id),
            "company_id": user.company_id,
            "role": user.role,
            "type": ACCESS_TOKEN_TYPE,
        },
        expires_minutes or config.JWT_EXPIRE_MINUTES,
    )


def create_refresh_token(user, expires_minutes: Optional[int] = None) -> tuple[str, str]:
    """Return ``(token, token_id)``; the id is what the token store keeps."""
    token_id = uuid.uuid4().hex
    token = _encode(
        {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE, "jti": token_id},
        expires_minutes or config.JWT_REFRESH_EXPIRE_MINUTES,
    )
    return token, token_id


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as exc:
        raise TokenError("Invalid or expired token") from exc

    if payload.get("type") != expected_type:
        raise TokenError("Invalid token type")
    return payload


def extract_user_id(payload: Dict[str, Any]) -> Optional[int]:
    raw = payload.get("sub")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None
