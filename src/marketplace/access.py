"""Role and ownership checks shared by the marketplace managers."""

from src.api_errors import AuthorizationError
from src.marketplace.config import UserRole
from src.marketplace.models import Actor


def require_role(actor: Actor, *roles: UserRole) -> None:
    """Raise AuthorizationError unless the actor holds one of ``roles``."""
    if actor.role not in roles:
        allowed = " or ".join(r.value for r in roles)
        raise AuthorizationError(f"This action requires the {allowed} role")


def require_owner(actor: Actor, owner_user_id: str, allow_admin: bool = True) -> None:
    """Raise AuthorizationError unless the actor owns the resource."""
    if allow_admin and actor.is_admin:
        return
    if actor.user_id != owner_user_id:
        raise AuthorizationError("You do not own this resource")
