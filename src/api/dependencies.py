"""FastAPI Dependencies.

The caller identity comes from the ``X-User-Id`` and ``X-User-Role``
headers set by the upstream session layer; the marketplace managers do
their own ownership and role checks.
"""

from typing import Optional

from fastapi import Header, Request

from src.api_errors import AuthenticationError
from src.marketplace import Actor, MarketplaceServices, UserRole


def get_services(request: Request) -> MarketplaceServices:
    """Return the services bound to the application."""
    return request.app.state.services


async def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    """Build the caller identity or raise AuthenticationError."""
    if not x_user_id or not x_user_role:
        raise AuthenticationError("X-User-Id and X-User-Role headers are required")
    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise AuthenticationError(f"Unknown role: {x_user_role}")
    return Actor(user_id=x_user_id.strip(), role=role)
