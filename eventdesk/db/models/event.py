from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid,
)
import uuid
from sqlalchemy.orm import relationship
from eventdesk.core.clock import utcnow
from eventdesk.db.session import Base
import enum


class ControlTypeEnum(str, enum.Enum):
    """Input control used to render a custom registration field."""
    text = "text"
    textarea = "textarea"
    toggle = "toggle"
    multiselect = "multiselect"


class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    label = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    end_time = Column(String(5), nullable=True)
    location = Column(String(255), nullable=True)
    max_capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", lazy="selectin")
    custom_fields = relationship(
        "EventCustomField",
        order_by="EventCustomField.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index('idx_event_start_date', 'start_date'),
        Index('idx_event_creator', 'created_by'),
    )


class EventCustomField(Base):
    __tablename__ = "event_custom_fields"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(255), nullable=False)
    control_type = Column(String(20), default=ControlTypeEnum.text.value, nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    options = Column(JSON, nullable=True)  # ordered list of labels
    order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('idx_custom_field_event', 'event_id'),
    )
