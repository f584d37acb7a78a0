from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import date, datetime


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class TokenData(BaseModel):
    user_id: UUID
    email: Optional[str] = None
    role: Optional[str] = None


class MessageOut(CamelModel):
    message: str


# Auth

class LoginRequest(CamelModel):
    """Schema for user login request."""
    email: Optional[str] = None
    password: Optional[str] = None


class SendCodeRequest(CamelModel):
    email: Optional[str] = None


class VerifyCodeRequest(CamelModel):
    email: Optional[str] = None
    code: Optional[str] = None


class UserOut(CamelModel):
    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role_value(cls, value):
        return getattr(value, "value", value)


class AuthResponse(CamelModel):
    message: str
    user: UserOut
    token: str


class SendCodeResponse(CamelModel):
    message: str
    # Only populated in development
    code: Optional[str] = None


class ValidateResponse(CamelModel):
    user: UserOut
    valid: bool = True


# Users

class UserCreate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class ProfileUpdate(CamelModel):
    user_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class UserEnvelope(CamelModel):
    message: Optional[str] = None
    user: UserOut


class UserListOut(CamelModel):
    users: List[UserOut]


# Events

class CustomFieldIn(CamelModel):
    # Unknown or client-generated ids are treated as new fields
    id: Optional[str] = None
    label: Optional[str] = None
    control_type: Optional[str] = None
    is_required: bool = False
    options: Optional[List[str]] = None
    order: Optional[int] = None


class CustomFieldOut(CamelModel):
    id: UUID
    label: str
    control_type: str
    is_required: bool
    options: Optional[List[str]] = None
    order: int


class EventCreate(CamelModel):
    label: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    avatar_url: Optional[str] = None
    # Dates are ISO strings ("2025-06-01" or a full timestamp), times "HH:MM"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    max_capacity: Optional[int] = None
    is_active: Optional[bool] = None
    custom_fields: Optional[List[CustomFieldIn]] = None


class EventUpdate(EventCreate):
    pass


class CreatorOut(CamelModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str


class EventOut(CamelModel):
    id: UUID
    label: str
    title: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    avatar_url: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    max_capacity: Optional[int] = None
    is_active: bool
    event_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[CreatorOut] = None
    custom_fields: List[CustomFieldOut] = []
    registration_count: int = 0
    is_user_registered: bool = False
    user_registration_status: Optional[str] = None


class EventEnvelope(CamelModel):
    message: Optional[str] = None
    event: EventOut


class EventListOut(CamelModel):
    events: List[EventOut]


# Registrations

class RegistrationCreate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    custom_field_responses: Optional[Dict[str, Any]] = None


class RegistrationUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    custom_field_responses: Optional[Dict[str, Any]] = None


class UnregisterRequest(CamelModel):
    user_id: Optional[UUID] = None


class RegistrationStatusUpdate(CamelModel):
    status: Optional[str] = None


class FieldSummary(CamelModel):
    label: str
    control_type: str


class FieldResponseOut(CamelModel):
    custom_field_id: UUID
    value: Any = None
    raw_value: str
    display_value: str
    custom_field: Optional[FieldSummary] = None


class RegistrationOut(CamelModel):
    id: UUID
    event_id: UUID
    user_id: Optional[UUID] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    status: str
    registered_at: datetime
    custom_field_responses: List[FieldResponseOut] = []


class RegistrationEnvelope(CamelModel):
    message: str
    registration: RegistrationOut


class RegistrationLookupOut(CamelModel):
    is_registered: bool
    registration: Optional[RegistrationOut] = None


class RegistrationListOut(CamelModel):
    registrations: List[RegistrationOut]


class HealthOut(CamelModel):
    status: str
    stats: Dict[str, int]
    timestamp: datetime
