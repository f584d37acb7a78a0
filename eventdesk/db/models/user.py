from sqlalchemy import Boolean, Column, String, DateTime, Enum, Uuid
import uuid
from eventdesk.core.clock import utcnow
from eventdesk.db.session import Base
import enum


class RoleEnum(str, enum.Enum):
    MANAGER = "MANAGER"
    REGULAR = "REGULAR"


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    # Users created through the verification-code flow have no password
    hashed_password = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(Enum(RoleEnum), default=RoleEnum.REGULAR, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
