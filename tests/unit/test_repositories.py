"""
Unit tests for repository functions.
Tests users, events with custom fields, registrations, answers and verification codes.
"""
import pytest
from datetime import timedelta
from uuid import uuid4

from eventdesk.core.clock import utcnow
from eventdesk.db.models import RoleEnum, RegistrationStatusEnum
from eventdesk.db.repositories import (
    active_registration_counts,
    active_registrations_for_user,
    count_active_registrations,
    count_managers,
    count_users,
    create_event,
    create_registration,
    create_user,
    delete_event,
    find_unused_verification_code,
    get_active_registration,
    get_event,
    get_field_responses,
    get_latest_registration,
    get_registration,
    get_user,
    get_user_by_email,
    list_events,
    list_registrations_for_event,
    reconcile_custom_fields,
    replace_field_responses,
    replace_verification_code,
)
from eventdesk.services.field_values import FieldValue
from eventdesk.db.models import EventRegistration


async def register_attendee(db_session, event, user) -> EventRegistration:
    return await create_registration(
        db_session, event.id, user.id, user.first_name, user.last_name, user.email
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestUserRepository:
    """Test user repository functions."""

    async def test_create_user(self, db_session):
        """Test create user."""
        user = await create_user(db_session, email="new@example.com", first_name="New", last_name="User")
        await db_session.commit()

        assert user.id is not None
        assert user.role == RoleEnum.REGULAR
        assert user.is_active is True
        assert user.hashed_password is None

    async def test_get_user_by_email_is_case_insensitive(self, db_session, regular_user):
        """Test get user by email is case insensitive."""
        user = await get_user_by_email(db_session, "  ALICE@Example.com ")

        assert user is not None
        assert user.id == regular_user.id

    async def test_get_user_by_email_not_found(self, db_session):
        """Test get user by email not found."""
        assert await get_user_by_email(db_session, "nobody@example.com") is None

    async def test_get_user_by_id_not_found(self, db_session):
        """Test get user by id not found."""
        assert await get_user(db_session, uuid4()) is None

    async def test_count_managers_includes_inactive(self, db_session, manager):
        """Test count managers includes inactive."""
        await create_user(db_session, email="old@example.com", role=RoleEnum.MANAGER, is_active=False)
        await db_session.commit()

        assert await count_managers(db_session) == 2
        assert await count_managers(db_session, active_only=True) == 1

    async def test_count_users_by_role(self, db_session, manager, regular_user, other_user):
        """Test count users by role."""
        assert await count_users(db_session) == 3
        assert await count_users(db_session, RoleEnum.MANAGER) == 1
        assert await count_users(db_session, RoleEnum.REGULAR) == 2


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventRepository:
    """Test event repository functions."""

    async def test_create_event_with_fields(self, db_session, manager, future_date):
        """Test create event with fields."""
        event = await create_event(
            db_session,
            {"label": "Hack Night", "start_date": future_date},
            [
                {"label": "Laptop OS", "control_type": "text", "order": 1},
                {"label": "T-shirt size", "control_type": "multiselect", "options": ["S", "M"], "order": 0},
            ],
            manager.id,
        )
        await db_session.commit()

        loaded = await get_event(db_session, event.id)
        assert loaded.created_by == manager.id
        assert loaded.creator.email == manager.email
        assert [f.label for f in sorted(loaded.custom_fields, key=lambda f: f.order)] == ["T-shirt size", "Laptop OS"]

    async def test_get_event_not_found(self, db_session):
        """Test get event not found."""
        assert await get_event(db_session, uuid4()) is None

    async def test_list_events_by_start_date(self, db_session, manager, future_date):
        """Test list events by start date."""
        await create_event(db_session, {"label": "Later", "start_date": future_date + timedelta(days=3)}, [], manager.id)
        await create_event(db_session, {"label": "Sooner", "start_date": future_date}, [], manager.id)
        await db_session.commit()

        events = await list_events(db_session)
        assert [e.label for e in events] == ["Sooner", "Later"]

    async def test_reconcile_custom_fields(self, db_session, test_event, field_ids):
        """Test reconcile custom fields."""
        incoming = [
            {"id": field_ids["Dietary needs"], "label": "Allergies", "control_type": "textarea",
             "is_required": True, "options": None, "order": 0},
            {"id": "client-generated-1", "label": "Arrival time", "control_type": "text",
             "is_required": False, "options": None, "order": 1},
        ]
        await reconcile_custom_fields(db_session, test_event, incoming)
        await db_session.commit()

        loaded = await get_event(db_session, test_event.id)
        labels = [(str(f.id), f.label) for f in loaded.custom_fields]
        assert labels[0] == (field_ids["Dietary needs"], "Allergies")
        assert labels[1][1] == "Arrival time"
        assert labels[1][0] not in field_ids.values()
        assert len(labels) == 2

    async def test_removed_field_takes_its_answers_along(self, db_session, test_event, field_ids, regular_user):
        """Test removed field takes its answers along."""
        registration = await register_attendee(db_session, test_event, regular_user)
        await replace_field_responses(db_session, registration.id, {
            test_event.custom_fields[0].id: FieldValue.capture("none"),
            test_event.custom_fields[1].id: FieldValue.capture(["Chess"]),
        })
        await db_session.commit()

        keep = test_event.custom_fields[0]
        await reconcile_custom_fields(db_session, test_event, [
            {"id": str(keep.id), "label": keep.label, "control_type": "text",
             "is_required": True, "options": None, "order": 0},
        ])
        await db_session.commit()

        responses = await get_field_responses(db_session, [registration.id])
        assert [r.field_id for r in responses] == [keep.id]

    async def test_delete_event_cascades(self, db_session, test_event, regular_user):
        """Test delete event cascades."""
        registration = await register_attendee(db_session, test_event, regular_user)
        await replace_field_responses(db_session, registration.id, {
            test_event.custom_fields[0].id: FieldValue.capture("none"),
        })
        await db_session.commit()

        await delete_event(db_session, test_event)
        await db_session.commit()

        assert await get_event(db_session, test_event.id) is None
        assert await get_registration(db_session, registration.id) is None
        assert await get_field_responses(db_session, [registration.id]) == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestRegistrationRepository:
    """Test registration repository functions."""

    async def test_counts_ignore_cancelled(self, db_session, test_event, regular_user, other_user):
        """Test counts ignore cancelled."""
        await register_attendee(db_session, test_event, regular_user)
        cancelled = await register_attendee(db_session, test_event, other_user)
        cancelled.status = RegistrationStatusEnum.CANCELLED
        await db_session.commit()

        assert await count_active_registrations(db_session, test_event.id) == 1
        assert await active_registration_counts(db_session) == {test_event.id: 1}
        assert await active_registrations_for_user(db_session, other_user.id) == {}
        assert await active_registrations_for_user(db_session, regular_user.id) == {
            test_event.id: RegistrationStatusEnum.CONFIRMED
        }

    async def test_latest_and_active_lookup(self, db_session, test_event, regular_user):
        """Test latest and active lookup."""
        older = await register_attendee(db_session, test_event, regular_user)
        older.status = RegistrationStatusEnum.CANCELLED
        older.registered_at = utcnow() - timedelta(days=2)
        newer = await register_attendee(db_session, test_event, regular_user)
        newer.status = RegistrationStatusEnum.CANCELLED
        newer.registered_at = utcnow() - timedelta(days=1)
        await db_session.commit()

        assert await get_active_registration(db_session, test_event.id, regular_user.id) is None
        latest = await get_latest_registration(db_session, test_event.id, regular_user.id)
        assert latest.id == newer.id

    async def test_anonymous_registrations(self, db_session, test_event):
        """Test anonymous registrations."""
        for _ in range(2):
            await create_registration(db_session, test_event.id, None, "Ann", "Onymous", "ann@example.com")
        await db_session.commit()

        registrations = await list_registrations_for_event(db_session, test_event.id)
        assert len(registrations) == 2
        assert all(r.user_id is None for r in registrations)

    async def test_replace_field_responses(self, db_session, test_event, regular_user):
        """Test replace field responses."""
        registration = await register_attendee(db_session, test_event, regular_user)
        diet, activities, _ = test_event.custom_fields
        await replace_field_responses(db_session, registration.id, {
            diet.id: FieldValue.capture("vegan"),
            activities.id: FieldValue.capture(["Chess", "Frisbee"]),
        })
        await db_session.commit()

        await replace_field_responses(db_session, registration.id, {diet.id: FieldValue.capture("none")})
        await db_session.commit()

        responses = await get_field_responses(db_session, [registration.id])
        assert [(r.field_id, r.value, r.value_kind) for r in responses] == [(diet.id, "none", "text")]


@pytest.mark.unit
@pytest.mark.asyncio
class TestVerificationCodeRepository:

    async def test_only_latest_code_is_kept(self, db_session):
        """Test only latest code is kept."""
        expires = utcnow() + timedelta(minutes=15)
        await replace_verification_code(db_session, "a@example.com", "111111", expires)
        await replace_verification_code(db_session, "a@example.com", "222222", expires)
        await db_session.commit()

        assert await find_unused_verification_code(db_session, "a@example.com", "111111") is None
        assert await find_unused_verification_code(db_session, "a@example.com", "222222") is not None

    async def test_used_code_is_not_found(self, db_session):
        """Test used code is not found."""
        vc = await replace_verification_code(db_session, "a@example.com", "333333", utcnow())
        vc.used = True
        await db_session.commit()

        assert await find_unused_verification_code(db_session, "a@example.com", "333333") is None
