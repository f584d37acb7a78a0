from sqlalchemy import Column, DateTime, ForeignKey, Enum, Index, String, Text, UniqueConstraint, Uuid
import uuid
from eventdesk.core.clock import utcnow
from eventdesk.db.session import Base
import enum


class RegistrationStatusEnum(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    # Null for anonymous registrations
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    status = Column(Enum(RegistrationStatusEnum), default=RegistrationStatusEnum.CONFIRMED, nullable=False)
    registered_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_registration_event', 'event_id'),
        Index('idx_registration_user', 'user_id'),
        Index('idx_registration_event_user', 'event_id', 'user_id'),
    )


class EventFieldResponse(Base):
    __tablename__ = "event_field_responses"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    registration_id = Column(
        Uuid(as_uuid=True), ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False
    )
    field_id = Column(Uuid(as_uuid=True), ForeignKey("event_custom_fields.id", ondelete="CASCADE"), nullable=False)
    value = Column(Text, nullable=False)
    # text / string_list / bool; null on rows written before kinds were recorded
    value_kind = Column(String(20), nullable=True)

    __table_args__ = (
        UniqueConstraint('registration_id', 'field_id', name='uq_registration_field_response'),
        Index('idx_response_registration', 'registration_id'),
    )
