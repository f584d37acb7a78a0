"""Registration routes, nested under an event."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.auth import get_current_user, get_optional_user
from eventdesk.cache.event_cache import EventListCache, get_event_cache
from eventdesk.db.models.user import User
from eventdesk.db.session import get_session
from eventdesk.schemas import (
    RegistrationCreate,
    RegistrationEnvelope,
    RegistrationListOut,
    RegistrationLookupOut,
    RegistrationStatusUpdate,
    RegistrationUpdate,
    UnregisterRequest,
)
from eventdesk.services.registration_service import RegistrationService

router = APIRouter(prefix="/events", tags=["registrations"])


def get_registration_service(
    session: AsyncSession = Depends(get_session),
    cache: EventListCache = Depends(get_event_cache),
) -> RegistrationService:
    return RegistrationService(session, cache)


@router.post("/{event_id}/register", response_model=RegistrationEnvelope, status_code=status.HTTP_201_CREATED)
async def register(
    event_id: UUID,
    payload: RegistrationCreate,
    user: Optional[User] = Depends(get_optional_user),
    service: RegistrationService = Depends(get_registration_service)
):
    """
    Register for an event, with or without an account.

    Logged-in users are deduplicated per event; anonymous registrations are not.
    """
    registration = await service.register(event_id, payload, user)
    return {"message": "Successfully registered for event", "registration": registration}


@router.delete("/{event_id}/unregister", response_model=RegistrationEnvelope)
async def unregister(
    event_id: UUID,
    payload: Optional[UnregisterRequest] = Body(None),
    user: User = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service)
):
    """Cancel a registration. ``userId`` defaults to the caller."""
    user_id = payload.user_id if payload and payload.user_id else user.id
    registration = await service.unregister(event_id, user_id, user)
    return {"message": "Successfully unregistered from event", "registration": registration}


@router.get("/{event_id}/registration/{user_id}", response_model=RegistrationLookupOut)
async def get_registration(
    event_id: UUID,
    user_id: UUID,
    user: User = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service)
):
    return await service.get_registration(event_id, user_id, user)


@router.put("/{event_id}/registration/{user_id}", response_model=RegistrationEnvelope)
async def update_registration(
    event_id: UUID,
    user_id: UUID,
    payload: RegistrationUpdate,
    user: User = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service)
):
    registration = await service.update_registration(event_id, user_id, payload, user)
    return {"message": "Registration updated successfully", "registration": registration}


@router.patch("/{event_id}/manage/{registration_id}", response_model=RegistrationEnvelope)
async def set_registration_status(
    event_id: UUID,
    registration_id: UUID,
    payload: RegistrationStatusUpdate,
    user: User = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service)
):
    """Manager override of a registration's status; capacity is not checked."""
    registration = await service.set_registration_status(event_id, registration_id, payload.status, user)
    return {"message": f"Registration status updated to {registration['status']}", "registration": registration}


@router.get("/{event_id}/registrations", response_model=RegistrationListOut)
async def list_registrations(
    event_id: UUID,
    user: User = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service)
):
    return {"registrations": await service.list_registrations(event_id, user)}
