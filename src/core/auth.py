from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from enum import Enum

import jwt
from src.core.config import get_settings


class TokenError(Exception):
    """Raised when a token cannot be decoded or validated."""


class AccessLevel(str, Enum):
    USER = "user"
    TRAINER = "trainer"
    ADMIN = "admin"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {level.value for level in cls}


def create_access_token(
    subject: str,
    *,
    access_levels: Sequence[str],
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Generate a signed JWT access token."""
    settings = get_settings()

    invalid = [level for level in access_levels if level not in settings.allowed_access_levels]
    if invalid:
        raise TokenError(f"Unsupported access level(s): {', '.join(invalid)}")

    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    payload = {
        "sub": subject,
        "access_levels": list(access_levels),
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.app_name,
    }

    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT access token."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "access_levels", "exp"]},
        )
    except jwt.PyJWTError as exc:  # pragma: no cover - third-party raises numerous subclasses
        raise TokenError("Invalid token") from exc

    _ensure_access_levels(payload.get("access_levels", []))
    return payload


def _ensure_access_levels(levels: Iterable[str]) -> None:
    for level in levels:
        if not AccessLevel.contains(level):
            raise TokenError(f"Unsupported access level: {level}")
