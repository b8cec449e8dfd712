from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable, Sequence

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from src.core.auth import AccessLevel, TokenError, create_access_token, decode_access_token
from src.core.config import get_settings
from src.domain import User
from src.infrastructure.db.session import get_session

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> User:
    """Resolve the authenticated user from a bearer token."""
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError as exc:
        raise _unauthorized(str(exc)) from exc

    user_id = payload.get("sub")
    levels: Iterable[str] = payload.get("access_levels", [])

    if not user_id:
        raise _unauthorized("Token missing subject")

    if not levels:
        raise _forbidden("Token missing access levels")

    return User(user_id=user_id, email=payload.get("email", ""), access_levels=list(levels))


def require_access(required_levels: Sequence[str]) -> Callable[[User], User]:
    """Dependency factory enforcing that the caller holds one of the required access levels."""
    settings = get_settings()
    allowed = set(settings.allowed_access_levels)

    invalid = [level for level in required_levels if level not in allowed]
    if invalid:
        raise ValueError(f"Unsupported access level(s) requested: {', '.join(invalid)}")

    required = set(required_levels)

    def dependency(user: User = Depends(get_current_user)) -> User:  # noqa: B008
        if not required.intersection(user.access_levels):
            raise _forbidden("Insufficient access level")
        return user

    return dependency


def issue_smoke_token(user_id: str, *, level: AccessLevel, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, access_levels=[level.value], email=email)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
