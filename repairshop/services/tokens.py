from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from jose import JWTError, jwt

from repairshop.core.clock import utcnow
from repairshop.core.config import Settings


def _require_secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is required")
    return settings.jwt_secret


def create_access_token(settings: Settings, *, user_id: int, role: str) -> str:
    """
    "sub" must be a string for python-jose; "user_id" is kept alongside it so
    older clients that read the numeric id keep working.
    """
    now = utcnow()
    exp = now + timedelta(minutes=settings.jwt_expire_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _require_secret(settings), algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    """
    Returns the JWT payload. Bad signature, expiry and malformed input all
    raise ValueError.
    """
    secret = _require_secret(settings)
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise ValueError("Invalid or expired token") from e


def extract_user_id(payload: Dict[str, Any]) -> int | None:
    raw = payload.get("sub", None)
    if raw is None:
        raw = payload.get("user_id", None)

    if isinstance(raw, int):
        return raw

    if isinstance(raw, str):
        raw = raw.strip()
        if raw.isdigit():
            return int(raw)

    return None
