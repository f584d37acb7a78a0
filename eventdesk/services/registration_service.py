"""
Registration ledger.

Each (event, user) pair moves NONE -> CONFIRMED <-> CANCELLED. Cancelling
never deletes the row; registering again after a cancellation reactivates
the same row. Anonymous registrations are always new rows.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.cache.event_cache import EventListCache, NullCache
from eventdesk.core.clock import utcnow
from eventdesk.core.errors import (
    AlreadyRegistered,
    BadRequest,
    EventFull,
    EventInactive,
    EventPast,
    NotFound,
    ValidationFailed,
)
from eventdesk.core.logging import logger
from eventdesk.core.policy import Action, authorize
from eventdesk.db import repositories as repo
from eventdesk.db.models.event import Event, EventCustomField
from eventdesk.db.models.registration import (
    EventFieldResponse,
    EventRegistration,
    RegistrationStatusEnum,
)
from eventdesk.db.models.user import User
from eventdesk.db.session import transaction
from eventdesk.schemas import RegistrationCreate, RegistrationUpdate
from eventdesk.services.event_status import is_event_past
from eventdesk.services.field_values import FieldValue, display_value, validate_responses


def serialize_response(
    response: EventFieldResponse,
    field: Optional[EventCustomField],
    include_field: bool = False,
) -> Dict[str, Any]:
    control_type = field.control_type if field is not None else None
    options = field.options if field is not None else None
    data = {
        "custom_field_id": response.field_id,
        "value": FieldValue.stored(response.value, response.value_kind).decode(),
        "raw_value": response.value,
        "display_value": display_value(response.value, control_type, options, response.value_kind),
        "custom_field": None,
    }
    if include_field and field is not None:
        data["custom_field"] = {"label": field.label, "control_type": field.control_type}
    return data


def serialize_registration(
    registration: EventRegistration,
    responses: Iterable[EventFieldResponse],
    fields: Mapping[UUID, EventCustomField],
    include_field: bool = False,
) -> Dict[str, Any]:
    return {
        "id": registration.id,
        "event_id": registration.event_id,
        "user_id": registration.user_id,
        "first_name": registration.first_name,
        "last_name": registration.last_name,
        "email": registration.email,
        "phone": registration.phone,
        "status": registration.status.value,
        "registered_at": registration.registered_at,
        "custom_field_responses": [
            serialize_response(r, fields.get(r.field_id), include_field) for r in responses
        ],
    }


def parse_status(status: Optional[str]) -> RegistrationStatusEnum:
    try:
        return RegistrationStatusEnum(status)
    except ValueError:
        raise BadRequest("Invalid status. Must be CONFIRMED or CANCELLED")


class RegistrationService:
    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[EventListCache] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.cache = cache or NullCache()
        # Local wall-clock time, compared against event dates
        self.clock = clock

    async def _get_event(self, event_id) -> Event:
        event = await repo.get_event(self.session, event_id)
        if not event:
            raise NotFound("Event not found")
        return event

    def _capture_responses(self, event: Event, submitted: Optional[Mapping[str, Any]]) -> Dict[UUID, FieldValue]:
        """
        Check submitted answers against the event's fields and encode them.

        Raises:
            BadRequest: If an answer targets a field the event does not have
            ValidationFailed: If a required field is left empty
        """
        fields = {str(f.id): f for f in event.custom_fields}
        normalized: Dict[str, Any] = {}
        for key, value in (submitted or {}).items():
            try:
                field_key = str(UUID(str(key)))
            except ValueError:
                field_key = None
            if field_key not in fields:
                raise BadRequest(f"Unknown custom field: {key}")
            normalized[field_key] = value

        errors = validate_responses(event.custom_fields, normalized)
        if errors:
            raise ValidationFailed(errors)

        return {
            fields[key].id: FieldValue.capture(value)
            for key, value in normalized.items()
            if value is not None
        }

    async def _serialize(self, registration: EventRegistration, event: Event, include_field: bool = False):
        responses = await repo.get_field_responses(self.session, [registration.id])
        fields = {f.id: f for f in event.custom_fields}
        return serialize_registration(registration, responses, fields, include_field)

    async def register(
        self, event_id, payload: RegistrationCreate, user: Optional[User] = None
    ) -> Dict[str, Any]:
        """
        Register an attendee for an event.

        Authenticated users get at most one active registration per event; a
        cancelled one is reactivated in place. Anonymous callers always get
        a new row.

        Raises:
            BadRequest: If attendee details are missing or answers are invalid
            NotFound: If the event does not exist
            EventInactive: If the event is not active
            EventPast: If the event has ended
            EventFull: If the event reached its capacity
            AlreadyRegistered: If the user already holds an active registration
        """
        if not payload.first_name or not payload.last_name or not payload.email:
            raise BadRequest("First name, last name, and email are required")

        event = await self._get_event(event_id)
        if not event.is_active:
            raise EventInactive()
        if is_event_past(event, self.clock()):
            raise EventPast("Cannot register for past events")

        # Read-then-write without locking: concurrent requests can both pass.
        if event.max_capacity:
            count = await repo.count_active_registrations(self.session, event.id)
            if count >= event.max_capacity:
                logger.warning(f"Registration rejected, event {event.id} is full ({count}/{event.max_capacity})")
                raise EventFull()

        existing = None
        if user is not None:
            existing = await repo.get_latest_registration(self.session, event.id, user.id)
            if existing is not None and existing.status != RegistrationStatusEnum.CANCELLED:
                raise AlreadyRegistered()

        values = self._capture_responses(event, payload.custom_field_responses)

        async with transaction(self.session):
            if existing is not None:
                registration = existing
                registration.first_name = payload.first_name
                registration.last_name = payload.last_name
                registration.email = payload.email
                registration.phone = payload.phone
                registration.status = RegistrationStatusEnum.CONFIRMED
                registration.registered_at = utcnow()
                await repo.replace_field_responses(self.session, registration.id, values)
                action = "reactivated"
            else:
                registration = await repo.create_registration(
                    self.session,
                    event_id=event.id,
                    user_id=user.id if user is not None else None,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    email=payload.email,
                    phone=payload.phone,
                )
                if values:
                    await repo.replace_field_responses(self.session, registration.id, values)
                action = "created"

        await self.cache.invalidate()
        logger.info(f"Registration {registration.id} {action} for event {event.id}")
        return await self._serialize(registration, event)

    async def unregister(self, event_id, user_id, actor: User) -> Dict[str, Any]:
        authorize(Action.access_registration, actor, user_id)
        event = await self._get_event(event_id)
        if is_event_past(event, self.clock()):
            raise EventPast("Cannot unregister from past events")

        registration = await repo.get_active_registration(self.session, event.id, user_id)
        if registration is None:
            raise NotFound("Registration not found")

        async with transaction(self.session):
            registration.status = RegistrationStatusEnum.CANCELLED

        await self.cache.invalidate()
        logger.info(f"Registration {registration.id} cancelled for event {event.id}")
        return await self._serialize(registration, event)

    async def get_registration(self, event_id, user_id, actor: User) -> Dict[str, Any]:
        authorize(Action.access_registration, actor, user_id)
        event = await self._get_event(event_id)
        registration = await repo.get_active_registration(self.session, event.id, user_id)
        if registration is None:
            return {"is_registered": False, "registration": None}
        return {"is_registered": True, "registration": await self._serialize(registration, event)}

    async def update_registration(
        self, event_id, user_id, patch: RegistrationUpdate, actor: User
    ) -> Dict[str, Any]:
        """
        Edit an active registration before the event ends.

        Omitted attendee fields keep their value; an explicit ``phone: null``
        clears the phone. Submitted answers replace all stored answers.
        """
        authorize(Action.access_registration, actor, user_id)
        event = await self._get_event(event_id)
        if is_event_past(event, self.clock()):
            raise EventPast("Cannot update registration for past events")

        registration = await repo.get_active_registration(self.session, event.id, user_id)
        if registration is None:
            raise NotFound("Registration not found")

        values = None
        if patch.custom_field_responses is not None:
            values = self._capture_responses(event, patch.custom_field_responses)

        async with transaction(self.session):
            registration.first_name = patch.first_name or registration.first_name
            registration.last_name = patch.last_name or registration.last_name
            registration.email = patch.email or registration.email
            if "phone" in patch.model_fields_set:
                registration.phone = patch.phone
            if values is not None:
                await repo.replace_field_responses(self.session, registration.id, values)

        logger.info(f"Registration {registration.id} updated for event {event.id}")
        return await self._serialize(registration, event)

    async def set_registration_status(
        self, event_id, registration_id, status: Optional[str], actor: User
    ) -> Dict[str, Any]:
        """Manager override; capacity is not re-checked."""
        authorize(Action.manage_registration, actor)
        new_status = parse_status(status)
        event = await self._get_event(event_id)

        registration = await repo.get_registration(self.session, registration_id)
        if registration is None or registration.event_id != event.id:
            raise NotFound("Registration not found")

        async with transaction(self.session):
            registration.status = new_status

        await self.cache.invalidate()
        logger.info(f"Registration {registration.id} set to {new_status.value} by {actor.id}")
        return await self._serialize(registration, event)

    async def list_registrations(self, event_id, actor: User) -> List[Dict[str, Any]]:
        authorize(Action.view_registrations, actor)
        event = await self._get_event(event_id)
        registrations = await repo.list_registrations_for_event(self.session, event.id)
        responses = await repo.get_field_responses(self.session, [r.id for r in registrations])

        by_registration: Dict[UUID, List[EventFieldResponse]] = {}
        for response in responses:
            by_registration.setdefault(response.registration_id, []).append(response)
        fields = {f.id: f for f in event.custom_fields}

        return [
            serialize_registration(r, by_registration.get(r.id, []), fields, include_field=True)
            for r in registrations
        ]
