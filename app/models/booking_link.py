"""
Booking link model.

A booking link is a single-use token that lets a candidate pick their own
interview or trial slot. Only the SHA-256 hash of the token is stored.

ACTIVE -> USED      (booking submitted)
ACTIVE -> EXPIRED   (expires_at passed)
ACTIVE -> REVOKED   (candidate archived or deleted)
ACTIVE -> CANCELLED (recruiter withdrew the invitation)
"""

import enum
import uuid
from sqlalchemy import Column, Integer, String, DateTime, Enum
from app.core.database import Base
from app.core.timeutils import utcnow
from app.models.interview import InterviewType


class BookingLinkStatus(str, enum.Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"
    CANCELLED = "cancelled"


class BookingLink(Base):
    __tablename__ = "booking_links"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    candidate_id = Column(String(36), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)

    type = Column(Enum(InterviewType, name="interview_type"), default=InterviewType.INTERVIEW, nullable=False)
    status = Column(Enum(BookingLinkStatus, name="booking_link_status"), default=BookingLinkStatus.ACTIVE, nullable=False, index=True)

    candidate_name = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    branch_name = Column(String, nullable=True)

    expires_at = Column(DateTime, nullable=False)
    max_uses = Column(Integer, default=1, nullable=False)
    use_count = Column(Integer, default=0, nullable=False)
    used_at = Column(DateTime, nullable=True)
    interview_id = Column(String(36), nullable=True)
    revoked_at = Column(DateTime, nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<BookingLink(id={self.id}, candidate_id={self.candidate_id}, status={self.status})>"
