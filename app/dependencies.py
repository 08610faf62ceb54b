from fastapi import Depends, Query, Request
from fastapi.security import APIKeyHeader

from app.config import settings
from app.errors import AuthError
from app.services import Services

TOKEN_PREFIX = "token "

# auto_error=False: anonymous access is decided per route below.
_authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses ``offset`` / ``limit`` query
    parameters.

    Attributes
    ----------
    offset:
        Number of rows to skip (minimum 0).
    limit:
        Page size, clamped to ``settings.MAX_PAGE_SIZE`` regardless of the
        value supplied by the caller.
    """

    def __init__(
        self,
        offset: int = Query(0, ge=0, description="Number of items to skip."),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description="Number of items returned (capped at MAX_PAGE_SIZE).",
        ),
    ) -> None:
        self.offset = offset
        self.limit = min(limit, settings.MAX_PAGE_SIZE)


def get_services(request: Request) -> Services:
    """Service objects built once at startup and stored on the app."""
    return request.app.state.services


def _extract_token(header: str | None) -> str | None:
    if header and header.lower().startswith(TOKEN_PREFIX):
        return header[len(TOKEN_PREFIX):].strip()
    return None


async def get_current_user_id(
    authorization: str | None = Depends(_authorization_header),
    services: Services = Depends(get_services),
) -> int:
    """Caller id from ``Authorization: Token <jwt>``; 401 when absent or invalid."""
    token = _extract_token(authorization)
    if token is None:
        raise AuthError("token not found")
    subject = services.tokens.verify(token)
    try:
        return int(subject)
    except ValueError:
        raise AuthError("invalid token")


async def get_optional_user_id(
    authorization: str | None = Depends(_authorization_header),
    services: Services = Depends(get_services),
) -> int | None:
    """Like ``get_current_user_id`` but an absent or bad token means anonymous."""
    try:
        return await get_current_user_id(authorization, services)
    except AuthError:
        return None
