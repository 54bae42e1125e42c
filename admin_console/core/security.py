"""Hashage des mots de passe et jetons JWT de la console."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from admin_console.core.config import settings

ALGORITHM = "HS256"
SECRET_KEY = settings.SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = 30
REFRESH_TOKEN_EXPIRE_DAYS = 7

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class TokenError(ValueError):
    """Jeton absent, expiré, mal signé ou du mauvais type."""


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_as_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_as_bytes(password), _as_bytes(hashed))
    except ValueError:
        # hash stocké illisible
        return False


def _create_token(subject: str, token_type: str, expires_delta: timedelta, extra: Optional[dict[str, Any]]) -> str:
    payload: dict[str, Any] = dict(extra or {})
    payload.update(
        {
            "sub": subject,
            "type": token_type,
            "exp": datetime.now(timezone.utc) + expires_delta,
        }
    )
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(subject: str, extra: Optional[dict[str, Any]] = None) -> str:
    return _create_token(subject, ACCESS_TOKEN, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES), extra)


def create_refresh_token(subject: str, extra: Optional[dict[str, Any]] = None) -> str:
    return _create_token(subject, REFRESH_TOKEN, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS), extra)


def decode_token(token: str, *, expected_type: Optional[str] = None) -> dict[str, Any]:
    """Décode ``token`` et vérifie son type ; lève :class:`TokenError`."""

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise TokenError("Jeton invalide") from exc
    if expected_type is not None and payload.get("type") != expected_type:
        raise TokenError("Type de jeton invalide")
    if not payload.get("sub"):
        raise TokenError("Charge utile du jeton invalide")
    return payload
