import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.cache.event_cache import EventListCache, NullCache
from eventdesk.core.errors import BadRequest, NotFound
from eventdesk.core.logging import logger
from eventdesk.core.policy import Action, authorize
from eventdesk.db import repositories as repo
from eventdesk.db.models.event import ControlTypeEnum, Event
from eventdesk.db.models.user import User
from eventdesk.db.session import transaction
from eventdesk.schemas import CustomFieldIn, EventCreate
from eventdesk.services.event_status import get_event_status

CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
CONTROL_TYPES = {c.value for c in ControlTypeEnum}


def parse_event_date(value: Optional[str], name: str) -> Optional[date]:
    """Accept "YYYY-MM-DD" or a full ISO timestamp and keep the calendar date."""
    if value is None or value == "":
        return None
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequest(f"Invalid {name}")


def validate_clock(value: Optional[str], name: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not CLOCK_PATTERN.match(value):
        raise BadRequest(f"Invalid {name}, expected HH:MM")
    return value


def normalize_control_type(field: CustomFieldIn) -> str:
    if field.control_type in CONTROL_TYPES:
        return field.control_type
    logger.warning(
        f"Invalid controlType '{field.control_type}' for field '{field.label}', defaulting to 'text'"
    )
    return ControlTypeEnum.text.value


def serialize_event(event: Event, registration_count: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    creator = None
    if event.creator is not None:
        creator = {
            "id": event.creator.id,
            "first_name": event.creator.first_name,
            "last_name": event.creator.last_name,
            "email": event.creator.email,
        }
    return {
        "id": event.id,
        "label": event.label,
        "title": event.label,
        "description": event.description,
        "short_description": event.short_description,
        "avatar_url": event.avatar_url,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "start_time": event.start_time,
        "end_time": event.end_time,
        "location": event.location,
        "max_capacity": event.max_capacity,
        "is_active": event.is_active,
        "event_status": get_event_status(event, now),
        "created_at": event.created_at,
        "updated_at": event.updated_at,
        "created_by": creator,
        "custom_fields": [
            {
                "id": field.id,
                "label": field.label,
                "control_type": field.control_type,
                "is_required": field.is_required,
                "options": field.options,
                "order": field.order,
            }
            for field in sorted(event.custom_fields, key=lambda f: f.order)
        ],
        "registration_count": registration_count,
        "is_user_registered": False,
        "user_registration_status": None,
    }


class EventService:
    """
    Event registry: manager-side CRUD plus the public listing.

    The service owns the event-list cache and invalidates it on every write.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[EventListCache] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.cache = cache or NullCache()
        self.clock = clock

    def _event_columns(self, payload: EventCreate) -> Dict[str, Any]:
        if not payload.label or not payload.start_date:
            raise BadRequest("Label and start date are required")

        start_date = parse_event_date(payload.start_date, "start date")
        end_date = parse_event_date(payload.end_date, "end date")
        if end_date is not None and end_date < start_date:
            raise BadRequest("End date cannot be before start date")
        if end_date is None:
            end_date = start_date

        if payload.max_capacity is not None and payload.max_capacity < 0:
            raise BadRequest("Max capacity cannot be negative")

        return {
            "label": payload.label,
            "description": payload.description,
            "short_description": payload.short_description,
            "avatar_url": payload.avatar_url,
            "start_date": start_date,
            "end_date": end_date,
            "start_time": validate_clock(payload.start_time, "start time"),
            "end_time": validate_clock(payload.end_time, "end time"),
            "location": payload.location,
            "max_capacity": payload.max_capacity,
        }

    async def create_event(self, payload: EventCreate, actor: User) -> Dict[str, Any]:
        authorize(Action.create_event, actor)
        data = self._event_columns(payload)
        if payload.is_active is not None:
            data["is_active"] = payload.is_active

        fields = [
            {
                "label": field.label,
                "control_type": normalize_control_type(field),
                "is_required": bool(field.is_required),
                "options": field.options,
                "order": field.order if field.order is not None else index,
            }
            for index, field in enumerate(payload.custom_fields or [])
            if field.label
        ]

        async with transaction(self.session):
            event = await repo.create_event(self.session, data, fields, actor.id)

        await self.cache.invalidate()
        logger.info(f"Event {event.id} '{event.label}' created by {actor.id} with {len(fields)} custom fields")
        return await self.get_event(event.id)

    async def update_event(self, event_id, payload: EventCreate, actor: User) -> Dict[str, Any]:
        authorize(Action.update_event, actor)
        data = self._event_columns(payload)

        event = await repo.get_event(self.session, event_id)
        if not event:
            raise NotFound("Event not found")

        incoming = None
        if payload.custom_fields is not None:
            existing_options = {str(f.id): f.options for f in event.custom_fields}
            incoming = []
            for field in payload.custom_fields:
                if not field.label:
                    continue
                options = field.options
                if options is None and field.id in existing_options:
                    options = existing_options[field.id]
                incoming.append({
                    "id": field.id,
                    "label": field.label,
                    "control_type": normalize_control_type(field),
                    "is_required": bool(field.is_required),
                    "options": options,
                    "order": len(incoming),
                })

        async with transaction(self.session):
            for key, value in data.items():
                setattr(event, key, value)
            if payload.is_active is not None:
                event.is_active = payload.is_active
            if incoming is not None:
                await repo.reconcile_custom_fields(self.session, event, incoming)

        await self.cache.invalidate()
        logger.info(f"Event {event_id} updated by {actor.id}")
        return await self.get_event(event_id)

    async def delete_event(self, event_id, actor: User) -> None:
        authorize(Action.delete_event, actor)
        event = await repo.get_event(self.session, event_id)
        if not event:
            raise NotFound("Event not found")

        async with transaction(self.session):
            await repo.delete_event(self.session, event)

        await self.cache.invalidate()
        logger.info(f"Event {event_id} deleted by {actor.id}")

    async def get_event(self, event_id) -> Dict[str, Any]:
        event = await repo.get_event(self.session, event_id)
        if not event:
            raise NotFound("Event not found")
        count = await repo.count_active_registrations(self.session, event.id)
        return serialize_event(event, count, self.clock())

    async def _base_listing(self) -> List[Dict[str, Any]]:
        cached = await self.cache.get()
        if cached is not None:
            return cached

        events = await repo.list_events(self.session)
        counts = await repo.active_registration_counts(self.session)
        listing = jsonable_encoder([serialize_event(ev, counts.get(ev.id, 0)) for ev in events])
        await self.cache.set(listing)
        logger.debug(f"Loaded {len(listing)} events from the database")
        return listing

    async def list_events(
        self, viewer: Optional[User] = None, include_inactive: bool = True
    ) -> List[Dict[str, Any]]:
        """
        List every event with its active registration count.

        When ``viewer`` is given each event also says whether that user holds
        an active registration and with which status. The temporal status is
        computed per call so a cached listing never reports a stale one.
        """
        listing = await self._base_listing()
        if not include_inactive:
            listing = [e for e in listing if e["is_active"]]

        mine = {}
        if viewer is not None:
            held = await repo.active_registrations_for_user(self.session, viewer.id)
            mine = {str(event_id): status for event_id, status in held.items()}

        now = self.clock()
        annotated = []
        for e in listing:
            status = mine.get(str(e["id"]))
            annotated.append({
                **e,
                "event_status": get_event_status(e, now),
                "is_user_registered": status is not None,
                "user_registration_status": status.value if status is not None else None,
            })
        return annotated
