"""
Acting-user resolution for API and page requests
"""
from typing import Optional

from fastapi import Header, Request

from ubiquitous.core.config import get_settings
from ubiquitous.core.exceptions import UnauthorizedError


def _clean(user_id: Optional[str]) -> Optional[str]:
    if user_id is None:
        return None
    user_id = user_id.strip()
    return user_id or None


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
) -> str:
    """
    Resolve the user performing the request

    The X-User-Id header wins, then the ``user_id`` cookie set by the web pages,
    then the configured default user.
    """
    user_id = _clean(x_user_id) or _clean(request.cookies.get("user_id"))
    if user_id:
        return user_id
    return get_settings().default_user_id


async def require_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
) -> str:
    """Like get_current_user_id, but rejects anonymous writes when configured to"""
    user_id = _clean(x_user_id) or _clean(request.cookies.get("user_id"))
    if user_id:
        return user_id
    settings = get_settings()
    if settings.require_user_header:
        raise UnauthorizedError("X-User-Id header is required")
    return settings.default_user_id
