"""
Append-only audit trail. Rows are written once and never updated or deleted.
"""

import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum, Text, JSON
from app.core.database import Base
from app.core.timeutils import utcnow


class ActivityAction(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    CV_UPLOADED = "cv_uploaded"
    CV_PARSED = "cv_parsed"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    FEEDBACK_SUBMITTED = "feedback_submitted"
    MESSAGE_SENT = "message_sent"
    BOOKING_LINK_CREATED = "booking_link_created"
    BOOKING_LINK_USED = "booking_link_used"


class ActivityLog(Base):
    __tablename__ = "activity_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type = Column(String(32), nullable=False, index=True)
    entity_id = Column(String(36), nullable=False, index=True)
    action = Column(Enum(ActivityAction, name="activity_action"), nullable=False)
    description = Column(Text, nullable=False)

    user_id = Column(String(36), nullable=True)
    user_name = Column(String, nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
