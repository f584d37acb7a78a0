from sqlalchemy import Boolean, Column, DateTime, Index, String, Uuid
import uuid
from eventdesk.core.clock import utcnow
from eventdesk.db.session import Base


class VerificationCode(Base):
    __tablename__ = "verification_codes"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_verification_code_email', 'email'),
    )
