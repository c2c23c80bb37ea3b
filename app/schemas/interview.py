"""
Pydantic schemas for interview lifecycle requests/responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from app.models.interview import BookingSource, InterviewStatus, InterviewType, Recommendation


class RescheduleRequest(BaseModel):
    scheduled_date: datetime = Field(..., description="New start time; naive values are read as UTC")


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class FeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    recommendation: Recommendation
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    comments: Optional[str] = None


class FeedbackResponse(BaseModel):
    # Drafts carry no rating, recommendation or submitted_at yet
    rating: Optional[int] = None
    recommendation: Optional[Recommendation] = None
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    comments: Optional[str] = None
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None


class InterviewResponse(BaseModel):
    id: str
    candidate_id: str
    candidate_name: Optional[str] = None
    job_title: Optional[str] = None
    branch_name: Optional[str] = None
    type: InterviewType
    status: InterviewStatus
    scheduled_date: datetime
    duration: int
    rescheduled_from: Optional[datetime] = None
    rescheduled_count: int
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    feedback: Optional[FeedbackResponse] = None
    booked_via: BookingSource
    created_at: datetime

    class Config:
        from_attributes = True
