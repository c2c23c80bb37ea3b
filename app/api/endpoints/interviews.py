import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_clock, get_current_user
from app.models.user import User
from app.schemas.interview import CancelRequest, FeedbackRequest, InterviewResponse, RescheduleRequest
from app.services.interview_lifecycle import InterviewLifecycleService

router = APIRouter(prefix="/interviews", tags=["Interviews"])
logger = logging.getLogger(__name__)


def get_lifecycle(db: Session = Depends(get_db), clock=Depends(get_clock)) -> InterviewLifecycleService:
    return InterviewLifecycleService(db, clock=clock)


@router.post("/{interview_id}/reschedule", response_model=InterviewResponse)
def reschedule_interview(
    interview_id: str,
    request: RescheduleRequest,
    user: User = Depends(get_current_user),
    lifecycle: InterviewLifecycleService = Depends(get_lifecycle),
):
    """Move a scheduled (or lapsed) interview to a new future time."""
    return lifecycle.reschedule(interview_id, request.scheduled_date, user)


@router.post("/{interview_id}/cancel", response_model=InterviewResponse)
def cancel_interview(
    interview_id: str,
    request: CancelRequest,
    user: User = Depends(get_current_user),
    lifecycle: InterviewLifecycleService = Depends(get_lifecycle),
):
    """Cancel an interview. The candidate keeps their status and can be rebooked."""
    return lifecycle.cancel(interview_id, user, reason=request.reason)


@router.post("/{interview_id}/complete", response_model=InterviewResponse)
def complete_interview(
    interview_id: str,
    user: User = Depends(get_current_user),
    lifecycle: InterviewLifecycleService = Depends(get_lifecycle),
):
    return lifecycle.complete(interview_id, user)


@router.post("/{interview_id}/no-show", response_model=InterviewResponse)
def mark_no_show(
    interview_id: str,
    user: User = Depends(get_current_user),
    lifecycle: InterviewLifecycleService = Depends(get_lifecycle),
):
    """Mark the candidate as a no-show; the candidate is withdrawn."""
    return lifecycle.mark_no_show(interview_id, user)


@router.post("/{interview_id}/feedback", response_model=InterviewResponse)
def submit_feedback(
    interview_id: str,
    request: FeedbackRequest,
    user: User = Depends(get_current_user),
    lifecycle: InterviewLifecycleService = Depends(get_lifecycle),
):
    """
    Submit interviewer feedback.

    Closes the interview as completed and advances the candidate. A second
    submission replaces the first.
    """
    return lifecycle.submit_feedback(interview_id, request.model_dump(mode="json"), user)
