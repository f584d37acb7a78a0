from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.auth import get_current_user, get_optional_user
from eventdesk.cache.event_cache import EventListCache, get_event_cache
from eventdesk.core.policy import has_role
from eventdesk.db.models.user import RoleEnum, User
from eventdesk.db.session import get_session
from eventdesk.schemas import EventCreate, EventEnvelope, EventListOut, EventUpdate, MessageOut
from eventdesk.services.event_service import EventService

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(
    session: AsyncSession = Depends(get_session),
    cache: EventListCache = Depends(get_event_cache),
) -> EventService:
    return EventService(session, cache)


@router.get("", response_model=EventListOut)
async def list_events(
    viewer: Optional[User] = Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    List events ordered by start date.

    With a bearer token each event says whether the caller is registered.
    Inactive events are only listed for managers.
    """
    include_inactive = viewer is not None and has_role(viewer, RoleEnum.MANAGER)
    events = await event_service.list_events(viewer, include_inactive=include_inactive)
    return {"events": events}


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    ev = await event_service.create_event(payload, user)
    return {"message": "Event created successfully", "event": ev}


@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event(
    event_id: UUID,
    event_service: EventService = Depends(get_event_service)
):
    return {"event": await event_service.get_event(event_id)}


@router.put("/{event_id}", response_model=EventEnvelope)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    ev = await event_service.update_event(event_id, payload, user)
    return {"message": "Event updated successfully", "event": ev}


@router.delete("/{event_id}", response_model=MessageOut)
async def delete_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    await event_service.delete_event(event_id, user)
    return {"message": "Event deleted successfully"}
