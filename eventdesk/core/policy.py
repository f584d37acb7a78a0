"""
Role-based authorization.

Every permission decision goes through :func:`authorize`, which takes the
action, the acting user and, for ownership checks, the id of the user who
owns the resource.
"""
import enum
from typing import Optional
from eventdesk.core.errors import Forbidden
from eventdesk.db.models.user import RoleEnum


class Action(str, enum.Enum):
    create_event = "create_event"
    update_event = "update_event"
    delete_event = "delete_event"
    view_registrations = "view_registrations"
    manage_registration = "manage_registration"
    manage_users = "manage_users"
    access_registration = "access_registration"
    update_profile = "update_profile"


MANAGER_ACTIONS = {
    Action.create_event,
    Action.update_event,
    Action.delete_event,
    Action.view_registrations,
    Action.manage_registration,
    Action.manage_users,
}

OWNER_ACTIONS = {
    Action.access_registration,
    Action.update_profile,
}

DENIAL_MESSAGES = {
    Action.create_event: "Only managers can create events",
    Action.update_event: "Access denied. Manager role required.",
    Action.delete_event: "Access denied. Manager role required.",
    Action.view_registrations: "Access denied. Manager role required.",
    Action.manage_registration: "Access denied. Manager role required.",
    Action.manage_users: "Access denied. Manager role required.",
    Action.access_registration: "Access denied",
    Action.update_profile: "Access denied",
}


def _role(user) -> Optional[RoleEnum]:
    role = getattr(user, "role", None)
    if role is None:
        return None
    return RoleEnum(role)


def has_role(user, required_role: RoleEnum) -> bool:
    """REGULAR is satisfied by any authenticated user; MANAGER needs an exact match."""
    role = _role(user)
    if role is None:
        return False
    if RoleEnum(required_role) == RoleEnum.REGULAR:
        return True
    return role == RoleEnum.MANAGER


def can_access_own_resource(user, resource_owner_id) -> bool:
    if user is None:
        return False
    if _role(user) == RoleEnum.MANAGER:
        return True
    return resource_owner_id is not None and str(user.id) == str(resource_owner_id)


def is_allowed(action: Action, actor, resource_owner_id=None) -> bool:
    if actor is None:
        return False
    if action in MANAGER_ACTIONS:
        return has_role(actor, RoleEnum.MANAGER)
    if action in OWNER_ACTIONS:
        return can_access_own_resource(actor, resource_owner_id)
    return False


def authorize(action: Action, actor, resource_owner_id=None) -> None:
    """Raise ``Forbidden`` unless ``actor`` may perform ``action``."""
    if not is_allowed(action, actor, resource_owner_id):
        raise Forbidden(DENIAL_MESSAGES.get(action, "Forbidden"))
