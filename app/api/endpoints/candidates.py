"""
Candidate archive, restore, reapplication and deletion endpoints.
"""

import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_clock, get_current_user, get_notifier
from app.core.permissions import Capability, require_capability
from app.models.user import User
from app.schemas.candidate import (
    ArchiveRequest,
    CandidateResponse,
    HardDeleteResponse,
    ReactivateRequest,
    RejectCandidateRequest,
    ReturningCheckRequest,
    ReturningCheckResponse,
)
from app.services.archive_manager import ArchiveManager
from app.services.candidate_pipeline import CandidatePipelineService

router = APIRouter(prefix="/candidates", tags=["Candidates"])
logger = logging.getLogger(__name__)


def get_archive_manager(db: Session = Depends(get_db), clock=Depends(get_clock)) -> ArchiveManager:
    return ArchiveManager(db, clock=clock)


@router.post("/check-returning", response_model=ReturningCheckResponse)
def check_returning(
    request: ReturningCheckRequest,
    user: User = Depends(get_current_user),
    manager: ArchiveManager = Depends(get_archive_manager),
):
    """
    Look for an existing candidate with the same email (then phone).

    Read-only; use /reactivate to reopen the match.
    """
    require_capability(user, Capability.VIEW)
    result = manager.check_returning(request.email, request.phone)
    return ReturningCheckResponse(is_returning=result.is_returning, candidate=result.candidate)


@router.post("/{candidate_id}/archive", response_model=CandidateResponse)
def archive_candidate(
    candidate_id: str,
    request: ArchiveRequest,
    user: User = Depends(get_current_user),
    manager: ArchiveManager = Depends(get_archive_manager),
):
    """
    Archive a candidate: open interviews are cancelled and active booking
    links revoked. Safe to repeat.
    """
    return manager.archive(candidate_id, user, reason=request.reason)


@router.post("/{candidate_id}/restore", response_model=CandidateResponse)
def restore_candidate(
    candidate_id: str,
    user: User = Depends(get_current_user),
    manager: ArchiveManager = Depends(get_archive_manager),
):
    return manager.restore(candidate_id, user)


@router.post("/{candidate_id}/reactivate", response_model=CandidateResponse)
def reactivate_candidate(
    candidate_id: str,
    request: ReactivateRequest,
    user: User = Depends(get_current_user),
    manager: ArchiveManager = Depends(get_archive_manager),
):
    """Reopen a returning applicant as a new application."""
    return manager.reactivate(
        candidate_id,
        user,
        cv_url=request.cv_url,
        cv_file_name=request.cv_file_name,
        overrides=request.overrides.model_dump(exclude_none=True),
    )


@router.post("/{candidate_id}/reject", response_model=CandidateResponse)
def reject_candidate(
    candidate_id: str,
    request: RejectCandidateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    notifier=Depends(get_notifier),
):
    """Reject a candidate outside the decision queue (e.g. do_not_hire)."""
    pipeline = CandidatePipelineService(db, clock=clock, notifier=notifier)
    return pipeline.reject_candidate(candidate_id, user, reason=request.reason, send_email=request.send_email)


@router.delete("/{candidate_id}", response_model=HardDeleteResponse)
def delete_candidate(
    candidate_id: str,
    confirm: bool = Query(False, description="Must be true"),
    user: User = Depends(get_current_user),
    manager: ArchiveManager = Depends(get_archive_manager),
):
    """
    Permanently delete an archived candidate with all interviews and
    booking links. Super admins only.
    """
    return manager.hard_delete(candidate_id, user, confirm=confirm)
