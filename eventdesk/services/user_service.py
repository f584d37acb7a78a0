from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.errors import BadRequest, Conflict, NotFound
from eventdesk.core.logging import logger
from eventdesk.core.policy import Action, authorize
from eventdesk.core.security import hash_password
from eventdesk.db import repositories as repo
from eventdesk.db.models.user import RoleEnum, User
from eventdesk.db.session import transaction
from eventdesk.schemas import ProfileUpdate, UserCreate, UserUpdate
from eventdesk.services.auth_service import is_valid_email

VALID_ROLES = {r.value for r in RoleEnum}


def _require_names_and_email(first_name, last_name, email) -> str:
    if not first_name or not last_name or not email:
        raise BadRequest("First name, last name, and email are required")
    if not is_valid_email(email):
        raise BadRequest("Invalid email format")
    return email.strip().lower()


def _parse_role(role: Optional[str]) -> RoleEnum:
    if role not in VALID_ROLES:
        raise BadRequest("Invalid role. Must be MANAGER or REGULAR")
    return RoleEnum(role)


class UserService:
    """Manager-side user directory plus self-service profile edits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_or_404(self, user_id) -> User:
        user = await repo.get_user(self.session, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def _ensure_email_free(self, email: str, owner_id=None) -> None:
        existing = await repo.get_user_by_email(self.session, email)
        if existing and existing.id != owner_id:
            raise Conflict("A user with this email already exists")

    async def list_users(self, actor: User) -> List[User]:
        authorize(Action.manage_users, actor)
        return await repo.list_users(self.session)

    async def create_user(self, payload: UserCreate, actor: User) -> User:
        authorize(Action.manage_users, actor)
        if not all([payload.first_name, payload.last_name, payload.email, payload.password, payload.role]):
            raise BadRequest("All fields are required")
        email = _require_names_and_email(payload.first_name, payload.last_name, payload.email)
        role = _parse_role(payload.role)
        await self._ensure_email_free(email)

        async with transaction(self.session):
            user = await repo.create_user(
                self.session,
                email=email,
                role=role,
                first_name=payload.first_name,
                last_name=payload.last_name,
                hashed_password=hash_password(payload.password),
            )

        logger.info(f"User {user.id} ({role.value}) created by {actor.id}")
        return user

    async def update_user(self, user_id, payload: UserUpdate, actor: User) -> User:
        authorize(Action.manage_users, actor)
        email = _require_names_and_email(payload.first_name, payload.last_name, payload.email)
        role = _parse_role(payload.role) if payload.role is not None else None
        user = await self._get_or_404(user_id)
        await self._ensure_email_free(email, owner_id=user.id)

        async with transaction(self.session):
            user.first_name = payload.first_name
            user.last_name = payload.last_name
            user.email = email
            if role is not None:
                user.role = role
            if payload.is_active is not None:
                user.is_active = payload.is_active

        logger.info(f"User {user.id} updated by {actor.id}")
        return user

    async def delete_user(self, user_id, actor: User) -> None:
        """
        Delete a user account.

        Raises:
            NotFound: If the user does not exist
            Conflict: If the user is the last MANAGER (inactive managers count too)
        """
        authorize(Action.manage_users, actor)
        user = await self._get_or_404(user_id)

        if user.role == RoleEnum.MANAGER and await repo.count_managers(self.session) <= 1:
            logger.warning(f"Refused to delete last manager {user.id}")
            raise Conflict("Cannot delete the last manager account")

        async with transaction(self.session):
            await repo.delete_user(self.session, user)

        logger.info(f"User {user_id} deleted by {actor.id}")

    async def update_profile(self, payload: ProfileUpdate, actor: User) -> User:
        if payload.user_id is None:
            raise BadRequest("User ID is required")
        authorize(Action.update_profile, actor, payload.user_id)
        email = _require_names_and_email(payload.first_name, payload.last_name, payload.email)
        user = await self._get_or_404(payload.user_id)
        await self._ensure_email_free(email, owner_id=user.id)

        async with transaction(self.session):
            user.first_name = payload.first_name
            user.last_name = payload.last_name
            user.email = email

        logger.info(f"Profile of user {user.id} updated")
        return user
