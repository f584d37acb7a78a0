"""
Repository layer for database operations.

Async functions over users, events, custom fields, registrations, field
responses and verification codes. Repositories add, flush and delete but
never commit: services decide the transaction boundary (see
``eventdesk.db.session.transaction``).
"""
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.db.models.user import User, RoleEnum
from eventdesk.db.models.event import Event, EventCustomField
from eventdesk.db.models.registration import (
    EventRegistration,
    EventFieldResponse,
    RegistrationStatusEnum,
)
from eventdesk.db.models.verification_code import VerificationCode
from eventdesk.services.field_values import FieldValue


# Users

async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    """
    Retrieve user by ID.

    Args:
        db: Database session
        user_id: User's UUID

    Returns:
        User object if found, None otherwise
    """
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """
    Retrieve user by email address (case-insensitive).

    Args:
        db: Database session
        email: User's email address

    Returns:
        User object if found, None otherwise
    """
    q = select(User).where(func.lower(User.email) == email.strip().lower())
    res = await db.execute(q)
    return res.scalars().first()


async def list_users(db: AsyncSession) -> List[User]:
    q = select(User).order_by(User.created_at.desc())
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_user(
    db: AsyncSession,
    email: str,
    role: RoleEnum = RoleEnum.REGULAR,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    hashed_password: Optional[str] = None,
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        role=role,
        first_name=first_name,
        last_name=last_name,
        hashed_password=hashed_password,
        is_active=is_active,
    )
    db.add(user)
    await db.flush()
    return user


async def count_managers(db: AsyncSession, active_only: bool = False) -> int:
    """
    Count MANAGER accounts.

    The last-manager deletion guard counts every manager, active or not.
    """
    q = select(func.count(User.id)).where(User.role == RoleEnum.MANAGER)
    if active_only:
        q = q.where(User.is_active.is_(True))
    res = await db.execute(q)
    return res.scalar() or 0


async def count_users(db: AsyncSession, role: Optional[RoleEnum] = None) -> int:
    q = select(func.count(User.id))
    if role is not None:
        q = q.where(User.role == role)
    res = await db.execute(q)
    return res.scalar() or 0


async def delete_user(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.flush()


# Events

async def get_event(db: AsyncSession, event_id) -> Optional[Event]:
    """
    Retrieve an event with its creator and ordered custom fields.

    Rows already in the session are refreshed so reconciled fields show up.
    """
    q = (
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def list_events(db: AsyncSession) -> List[Event]:
    q = (
        select(Event)
        .order_by(Event.start_date.asc(), Event.created_at.asc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_event(db: AsyncSession, data: Mapping, fields: Iterable[Mapping], creator_id) -> Event:
    """
    Create an event together with its custom fields.

    Args:
        db: Database session
        data: Event column values
        fields: Custom field column values, already ordered
        creator_id: UUID of the manager creating the event

    Returns:
        Created Event object
    """
    ev = Event(**data, created_by=creator_id)
    ev.custom_fields = [EventCustomField(**field) for field in fields]
    db.add(ev)
    await db.flush()
    return ev


async def reconcile_custom_fields(db: AsyncSession, event: Event, incoming: List[Mapping]) -> None:
    """
    Make the event's custom fields match ``incoming``.

    Entries whose ``id`` matches an existing field update it in place, the
    rest are created, and existing fields missing from ``incoming`` are
    deleted together with their responses.
    """
    existing: Dict[str, EventCustomField] = {str(f.id): f for f in event.custom_fields}
    keep: List[EventCustomField] = []

    for field in incoming:
        values = {k: v for k, v in field.items() if k != "id"}
        current = existing.pop(str(field.get("id")), None) if field.get("id") else None
        if current is not None:
            for key, value in values.items():
                setattr(current, key, value)
            keep.append(current)
        else:
            keep.append(EventCustomField(**values))

    # delete-orphan removes whatever is no longer in the collection
    event.custom_fields = keep
    await db.flush()


async def delete_event(db: AsyncSession, event: Event) -> None:
    """Hard delete; custom fields, registrations and responses cascade."""
    await db.delete(event)
    await db.flush()


async def count_active_registrations(db: AsyncSession, event_id) -> int:
    """Count registrations that are not cancelled."""
    q = select(func.count(EventRegistration.id)).where(
        EventRegistration.event_id == event_id,
        EventRegistration.status != RegistrationStatusEnum.CANCELLED,
    )
    res = await db.execute(q)
    return res.scalar() or 0


async def active_registration_counts(db: AsyncSession) -> Dict[UUID, int]:
    q = (
        select(EventRegistration.event_id, func.count(EventRegistration.id))
        .where(EventRegistration.status != RegistrationStatusEnum.CANCELLED)
        .group_by(EventRegistration.event_id)
    )
    res = await db.execute(q)
    return {event_id: count for event_id, count in res.all()}


async def active_registrations_for_user(db: AsyncSession, user_id) -> Dict[UUID, RegistrationStatusEnum]:
    """Map event id to status for every active registration of a user."""
    q = select(EventRegistration.event_id, EventRegistration.status).where(
        EventRegistration.user_id == user_id,
        EventRegistration.status != RegistrationStatusEnum.CANCELLED,
    )
    res = await db.execute(q)
    return {event_id: status for event_id, status in res.all()}


# Registrations

async def get_registration(db: AsyncSession, registration_id) -> Optional[EventRegistration]:
    q = select(EventRegistration).where(EventRegistration.id == registration_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_latest_registration(db: AsyncSession, event_id, user_id) -> Optional[EventRegistration]:
    """Most recent registration row for (event, user), whatever its status."""
    q = (
        select(EventRegistration)
        .where(EventRegistration.event_id == event_id, EventRegistration.user_id == user_id)
        .order_by(EventRegistration.registered_at.desc())
        .limit(1)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def get_active_registration(db: AsyncSession, event_id, user_id) -> Optional[EventRegistration]:
    q = select(EventRegistration).where(
        EventRegistration.event_id == event_id,
        EventRegistration.user_id == user_id,
        EventRegistration.status != RegistrationStatusEnum.CANCELLED,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def create_registration(
    db: AsyncSession,
    event_id,
    user_id,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str] = None,
) -> EventRegistration:
    r = EventRegistration(
        event_id=event_id,
        user_id=user_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        status=RegistrationStatusEnum.CONFIRMED,
    )
    db.add(r)
    await db.flush()
    return r


async def list_registrations_for_event(db: AsyncSession, event_id) -> List[EventRegistration]:
    q = (
        select(EventRegistration)
        .where(EventRegistration.event_id == event_id)
        .order_by(EventRegistration.registered_at.desc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def replace_field_responses(
    db: AsyncSession, registration_id, values: Mapping[UUID, FieldValue]
) -> List[EventFieldResponse]:
    """Delete every stored answer of a registration and write ``values`` instead."""
    await db.execute(
        delete(EventFieldResponse).where(EventFieldResponse.registration_id == registration_id)
    )
    rows = [
        EventFieldResponse(
            registration_id=registration_id,
            field_id=field_id,
            value=value.raw,
            value_kind=value.kind.value,
        )
        for field_id, value in values.items()
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def get_field_responses(db: AsyncSession, registration_ids: Iterable) -> List[EventFieldResponse]:
    ids = list(registration_ids)
    if not ids:
        return []
    q = select(EventFieldResponse).where(EventFieldResponse.registration_id.in_(ids))
    res = await db.execute(q)
    return list(res.scalars().all())


# Verification codes

async def replace_verification_code(
    db: AsyncSession, email: str, code: str, expires_at: datetime
) -> VerificationCode:
    """Store ``code`` as the only outstanding code for ``email``."""
    await db.execute(delete(VerificationCode).where(VerificationCode.email == email))
    vc = VerificationCode(email=email, code=code, expires_at=expires_at, used=False)
    db.add(vc)
    await db.flush()
    return vc


async def find_unused_verification_code(db: AsyncSession, email: str, code: str) -> Optional[VerificationCode]:
    q = (
        select(VerificationCode)
        .where(
            VerificationCode.email == email,
            VerificationCode.code == code,
            VerificationCode.used.is_(False),
        )
        .order_by(VerificationCode.created_at.desc())
    )
    res = await db.execute(q)
    return res.scalars().first()
