"""Database models package."""
from eventdesk.db.models.user import User, RoleEnum
from eventdesk.db.models.event import Event, EventCustomField, ControlTypeEnum
from eventdesk.db.models.registration import EventRegistration, EventFieldResponse, RegistrationStatusEnum
from eventdesk.db.models.verification_code import VerificationCode

__all__ = [
    "User",
    "RoleEnum",
    "Event",
    "EventCustomField",
    "ControlTypeEnum",
    "EventRegistration",
    "EventFieldResponse",
    "RegistrationStatusEnum",
    "VerificationCode",
]
