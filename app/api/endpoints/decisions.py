"""
Ready-for-decision queue and the actions taken from it.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_clock, get_current_user, get_notifier
from app.core.permissions import Capability, require_capability
from app.models.user import User
from app.schemas.candidate import CandidateResponse
from app.schemas.decision import DecisionCandidateResponse, RejectDecisionRequest
from app.services.candidate_pipeline import CandidatePipelineService
from app.services.decision_aggregator import load_decision_queue

router = APIRouter(prefix="/decisions", tags=["Decisions"])
logger = logging.getLogger(__name__)


def get_pipeline(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    notifier=Depends(get_notifier),
) -> CandidatePipelineService:
    return CandidatePipelineService(db, clock=clock, notifier=notifier)


@router.get("", response_model=List[DecisionCandidateResponse])
def list_decisions(
    include_decided: bool = Query(False, description="Also list approved and rejected candidates"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Candidates awaiting a hiring decision, one row per candidate based on
    their most recent hire/maybe interview.
    """
    require_capability(user, Capability.VIEW)
    return load_decision_queue(db, include_decided=include_decided)


@router.post("/{candidate_id}/approve", response_model=CandidateResponse)
def approve_candidate(
    candidate_id: str,
    user: User = Depends(get_current_user),
    pipeline: CandidatePipelineService = Depends(get_pipeline),
):
    return pipeline.approve(candidate_id, user)


@router.post("/{candidate_id}/reject", response_model=CandidateResponse)
def reject_candidate(
    candidate_id: str,
    request: RejectDecisionRequest,
    user: User = Depends(get_current_user),
    pipeline: CandidatePipelineService = Depends(get_pipeline),
):
    """Reject from the queue; the rejection email is best-effort."""
    return pipeline.reject(candidate_id, user, send_email=request.send_email, message=request.message)


@router.post("/{candidate_id}/schedule-trial", response_model=CandidateResponse)
def schedule_trial(
    candidate_id: str,
    user: User = Depends(get_current_user),
    pipeline: CandidatePipelineService = Depends(get_pipeline),
):
    """Move an interviewed candidate on to a trial shift."""
    return pipeline.schedule_trial(candidate_id, user)
