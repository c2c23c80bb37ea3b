"""
Interview database model.

One row per scheduled occurrence. `type` discriminates a short interview
from a trial shift; both share the same lifecycle:

SCHEDULED -> COMPLETED | CANCELLED | NO_SHOW
SCHEDULED -> LAPSED (sweep, start long past and never resolved)
SCHEDULED -> SCHEDULED (reschedule, bumps rescheduled_count)

`candidate_id` is a reference, not ownership: there is no foreign key and
the candidate_name / job_title / branch_name columns are a display cache
copied at booking time. Reactivation overrides refresh it immediately and
a nightly sweep reconciles any other drift.

`feedback` holds at most one payload. Only a payload carrying
`submitted_at` counts as submitted feedback; anything else is a draft.
"""

import enum
import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Text, JSON
from app.core.database import Base
from app.core.timeutils import utcnow


class InterviewType(str, enum.Enum):
    INTERVIEW = "interview"
    TRIAL = "trial"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    LAPSED = "lapsed"


class Recommendation(str, enum.Enum):
    HIRE = "hire"
    MAYBE = "maybe"
    DO_NOT_HIRE = "do_not_hire"


class BookingSource(str, enum.Enum):
    RECRUITER = "recruiter"
    SELF_SERVICE = "self_service"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    candidate_id = Column(String(36), nullable=False, index=True)

    # Display cache
    candidate_name = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    branch_name = Column(String, nullable=True)

    type = Column(Enum(InterviewType, name="interview_type"), default=InterviewType.INTERVIEW, nullable=False)
    status = Column(Enum(InterviewStatus, name="interview_status"), default=InterviewStatus.SCHEDULED, nullable=False, index=True)

    scheduled_date = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=30)  # minutes

    rescheduled_from = Column(DateTime, nullable=True)
    rescheduled_count = Column(Integer, default=0, nullable=False)

    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(String(36), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    lapsed_at = Column(DateTime, nullable=True)
    no_show_at = Column(DateTime, nullable=True)

    feedback = Column(JSON(none_as_null=True), nullable=True)

    # Feedback reminder sweep
    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)

    booked_via = Column(Enum(BookingSource, name="booking_source"), default=BookingSource.RECRUITER, nullable=False)
    booking_link_id = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def end_date(self) -> datetime:
        return self.scheduled_date + timedelta(minutes=self.duration)

    @property
    def has_feedback(self) -> bool:
        return bool(self.feedback and self.feedback.get("submitted_at"))

    @property
    def recommendation(self) -> Optional[Recommendation]:
        if not self.has_feedback:
            return None
        value = self.feedback.get("recommendation")
        return Recommendation(value) if value else None

    def __repr__(self):
        return f"<Interview(id={self.id}, candidate_id={self.candidate_id}, type={self.type}, status={self.status})>"
