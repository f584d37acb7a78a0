from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.auth import get_current_user
from eventdesk.db.models.user import User
from eventdesk.db.session import get_session
from eventdesk.schemas import MessageOut, ProfileUpdate, UserCreate, UserEnvelope, UserListOut, UserUpdate
from eventdesk.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)


@router.get("", response_model=UserListOut)
async def list_users(
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return {"users": await user_service.list_users(user)}


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    created = await user_service.create_user(payload, user)
    return {"message": "User created successfully", "user": created}


# Declared before /{user_id} so "profile" is not parsed as an id
@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    updated = await user_service.update_profile(payload, user)
    return {"message": "Profile updated successfully", "user": updated}


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    updated = await user_service.update_user(user_id, payload, user)
    return {"message": "User updated successfully", "user": updated}


@router.delete("/{user_id}", response_model=MessageOut)
async def delete_user(
    user_id: UUID,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    await user_service.delete_user(user_id, user)
    return {"message": "User deleted successfully"}
