"""
Candidate database model.

A candidate moves through the recruitment pipeline:

NEW -> SCREENING -> INTERVIEW_SCHEDULED -> INTERVIEW_COMPLETE
    -> TRIAL_SCHEDULED -> TRIAL_COMPLETE -> APPROVED | REJECTED

WITHDRAWN is forced by a no-show. ARCHIVED is a soft delete that remembers
the status it replaced in `previous_status`.

Email and phone are the dedup keys for returning applicants; they are
normalised on assignment so lookups compare like with like.
"""

import enum
import re
import uuid
from typing import Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Text
from sqlalchemy.orm import validates
from app.core.database import Base
from app.core.timeutils import utcnow


class CandidateStatus(str, enum.Enum):
    NEW = "new"
    SCREENING = "screening"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETE = "interview_complete"
    TRIAL_SCHEDULED = "trial_scheduled"
    TRIAL_COMPLETE = "trial_complete"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    ARCHIVED = "archived"


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    return email.strip().lower()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Digits only, so '+44 7700 900123' and '447700900123' match."""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    return digits or None


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    phone_normalized = Column(String, nullable=True, index=True)

    # Display context, copied onto interviews and booking links
    job_title = Column(String, nullable=True)
    branch_name = Column(String, nullable=True)

    status = Column(Enum(CandidateStatus, name="candidate_status"), default=CandidateStatus.NEW, nullable=False, index=True)

    # Archive metadata
    archived = Column(Boolean, default=False, nullable=False, index=True)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(String(36), nullable=True)
    archived_reason = Column(Text, nullable=True)
    previous_status = Column(Enum(CandidateStatus, name="candidate_status"), nullable=True)
    restored_at = Column(DateTime, nullable=True)
    restored_by = Column(String(36), nullable=True)

    # Repeat applications
    application_count = Column(Integer, default=1, nullable=False)
    is_returning_candidate = Column(Boolean, default=False, nullable=False)
    last_application_at = Column(DateTime, nullable=True)
    reactivated_at = Column(DateTime, nullable=True)
    reactivated_by = Column(String(36), nullable=True)

    cv_url = Column(String, nullable=True)
    cv_file_name = Column(String, nullable=True)
    cv_uploaded_at = Column(DateTime, nullable=True)

    # Outcome details
    withdrawal_reason = Column(Text, nullable=True)
    withdrawn_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value)

    @validates("phone")
    def _normalize_phone(self, key, value):
        self.phone_normalized = normalize_phone(value)
        return value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Candidate(id={self.id}, email='{self.email}', status={self.status})>"
