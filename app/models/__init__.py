"""
Database models package.
"""

from app.models.user import User, UserRole
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import Interview, InterviewStatus, InterviewType, Recommendation, BookingSource
from app.models.booking_link import BookingLink, BookingLinkStatus
from app.models.activity_log import ActivityLog, ActivityAction

__all__ = [
    "User", "UserRole",
    "Candidate", "CandidateStatus",
    "Interview", "InterviewStatus", "InterviewType", "Recommendation", "BookingSource",
    "BookingLink", "BookingLinkStatus",
    "ActivityLog", "ActivityAction",
]

# Registers the candidate deletion backstop
from app.models import events  # noqa: E402,F401
