"""
Pydantic schemas for the decision queue.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from app.models.candidate import CandidateStatus
from app.models.interview import InterviewType, Recommendation


class DecisionCandidateResponse(BaseModel):
    candidate_id: str
    candidate_name: str
    job_title: Optional[str] = None
    branch_name: Optional[str] = None
    candidate_status: CandidateStatus
    decision_state: str = Field(..., description="pending, hired or rejected")
    interview_id: str
    interview_type: InterviewType
    scheduled_date: datetime
    recommendation: Recommendation
    rating: Optional[int] = None
    comments: Optional[str] = None

    class Config:
        from_attributes = True


class RejectDecisionRequest(BaseModel):
    send_email: bool = False
    message: Optional[str] = Field(None, max_length=2000)
