"""
Pydantic schemas for candidate archive and reapplication endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr
from app.models.candidate import CandidateStatus


class CandidateResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    job_title: Optional[str] = None
    branch_name: Optional[str] = None
    status: CandidateStatus
    archived: bool
    archived_at: Optional[datetime] = None
    archived_reason: Optional[str] = None
    previous_status: Optional[CandidateStatus] = None
    application_count: int
    is_returning_candidate: bool
    withdrawal_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    cv_url: Optional[str] = None
    cv_file_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ArchiveRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class RejectCandidateRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)
    send_email: bool = False


class ReturningCheckRequest(BaseModel):
    email: EmailStr
    phone: Optional[str] = None


class ReturningCandidate(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    archived: bool
    previous_application_date: Optional[datetime] = None
    previous_status: Optional[CandidateStatus] = None
    application_count: int


class ReturningCheckResponse(BaseModel):
    is_returning: bool
    candidate: Optional[ReturningCandidate] = None


class CandidateOverrides(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    branch_name: Optional[str] = None


class ReactivateRequest(BaseModel):
    cv_url: Optional[str] = None
    cv_file_name: Optional[str] = None
    overrides: CandidateOverrides = Field(default_factory=CandidateOverrides)


class HardDeleteResponse(BaseModel):
    candidate_id: str
    interviews_deleted: int
    booking_links_deleted: int
