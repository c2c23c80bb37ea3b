"""
CRUD operations for Interview model.

Bulk helpers used by cascades stage their changes without committing, so a
caller can group several of them into one batch.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models.candidate import Candidate
from app.models.interview import Interview, InterviewStatus, InterviewType, BookingSource

# Statuses an archive cascade or recruiter cancel can still act on
OPEN_STATUSES = (InterviewStatus.SCHEDULED, InterviewStatus.LAPSED)


def create(
    db: Session,
    *,
    candidate_id: str,
    scheduled_date: datetime,
    duration: int,
    type: InterviewType = InterviewType.INTERVIEW,
    candidate_name: Optional[str] = None,
    job_title: Optional[str] = None,
    branch_name: Optional[str] = None,
    booked_via: BookingSource = BookingSource.RECRUITER,
    booking_link_id: Optional[str] = None,
    commit: bool = True,
) -> Interview:
    """
    Create a scheduled interview.

    Args:
        db: Database session
        candidate_id: Referenced candidate (no foreign key)
        scheduled_date: Start time, naive UTC
        duration: Length in minutes
        commit: When False the row is only flushed so the caller can batch it

    Returns:
        Created Interview instance
    """
    interview = Interview(
        candidate_id=candidate_id,
        scheduled_date=scheduled_date,
        duration=duration,
        type=type,
        status=InterviewStatus.SCHEDULED,
        candidate_name=candidate_name,
        job_title=job_title,
        branch_name=branch_name,
        booked_via=booked_via,
        booking_link_id=booking_link_id,
    )
    db.add(interview)
    if commit:
        db.commit()
        db.refresh(interview)
    else:
        db.flush()
    return interview


def get_by_id(db: Session, interview_id: str) -> Optional[Interview]:
    return db.query(Interview).filter(Interview.id == interview_id).first()


def get_for_candidate(db: Session, candidate_id: str) -> List[Interview]:
    return (
        db.query(Interview)
        .filter(Interview.candidate_id == candidate_id)
        .order_by(Interview.scheduled_date.asc())
        .all()
    )


def count_for_candidate(db: Session, candidate_id: str) -> int:
    return db.query(Interview).filter(Interview.candidate_id == candidate_id).count()


def get_booked_between(db: Session, start: datetime, end: datetime, type: Optional[InterviewType] = None) -> List[Interview]:
    """
    Scheduled interviews starting inside [start, end).

    Used as the existing-bookings input of the slot generator.
    """
    query = db.query(Interview).filter(
        Interview.status == InterviewStatus.SCHEDULED,
        Interview.scheduled_date >= start,
        Interview.scheduled_date < end,
    )
    if type is not None:
        query = query.filter(Interview.type == type)
    return query.order_by(Interview.scheduled_date.asc()).all()


def get_completed_with_feedback(db: Session) -> List[Interview]:
    """
    Completed interviews carrying a feedback payload.

    Drafts (no submitted_at) are still returned; callers check has_feedback.
    """
    return (
        db.query(Interview)
        .filter(Interview.status == InterviewStatus.COMPLETED, Interview.feedback.isnot(None))
        .all()
    )


def get_due_for_lapse(db: Session, cutoff: datetime) -> List[Interview]:
    """Scheduled interviews that started before the cutoff."""
    return (
        db.query(Interview)
        .filter(Interview.status == InterviewStatus.SCHEDULED, Interview.scheduled_date < cutoff)
        .all()
    )


def get_due_for_reminder(db: Session, cutoff: datetime) -> List[Interview]:
    """
    Interviews that started at or before the cutoff, have no reminder yet
    and are in a status where feedback is still expected.
    """
    rows = (
        db.query(Interview)
        .filter(
            Interview.status.in_([InterviewStatus.SCHEDULED, InterviewStatus.COMPLETED, InterviewStatus.LAPSED]),
            Interview.reminder_sent.is_(False),
            Interview.scheduled_date <= cutoff,
        )
        .all()
    )
    return [row for row in rows if not row.has_feedback]


def cancel_open_for_candidate(
    db: Session,
    candidate_id: str,
    *,
    cancelled_by: Optional[str],
    reason: str,
    now: datetime,
) -> int:
    """
    Stage cancellation of every open interview of a candidate.

    Already-cancelled rows are not selected, so repeating this is a no-op.

    Returns:
        Number of interviews cancelled
    """
    return (
        db.query(Interview)
        .filter(Interview.candidate_id == candidate_id, Interview.status.in_(OPEN_STATUSES))
        .update(
            {
                Interview.status: InterviewStatus.CANCELLED,
                Interview.cancelled_at: now,
                Interview.cancelled_by: cancelled_by,
                Interview.cancellation_reason: reason,
                Interview.updated_at: now,
            },
            synchronize_session=False,
        )
    )


def delete_for_candidate(db: Session, candidate_id: str) -> int:
    """Stage deletion of all interviews of a candidate."""
    return (
        db.query(Interview)
        .filter(Interview.candidate_id == candidate_id)
        .delete(synchronize_session=False)
    )


def delete_orphans(db: Session) -> int:
    """Stage deletion of interviews whose candidate no longer exists."""
    return (
        db.query(Interview)
        .filter(~Interview.candidate_id.in_(select(Candidate.id)))
        .delete(synchronize_session=False)
    )


def refresh_display_cache(db: Session, candidate: Candidate) -> int:
    """Stage a refresh of the display cache on every interview of a candidate."""
    return (
        db.query(Interview)
        .filter(Interview.candidate_id == candidate.id)
        .update(
            {
                Interview.candidate_name: candidate.full_name,
                Interview.job_title: candidate.job_title,
                Interview.branch_name: candidate.branch_name,
            },
            synchronize_session=False,
        )
    )


def get_with_stale_display_cache(db: Session) -> List[Tuple[Interview, Candidate]]:
    """Interviews whose cached display fields no longer match their candidate."""
    rows = db.query(Interview, Candidate).join(Candidate, Candidate.id == Interview.candidate_id).all()
    return [
        (interview, candidate) for interview, candidate in rows
        if (interview.candidate_name, interview.job_title, interview.branch_name)
        != (candidate.full_name, candidate.job_title, candidate.branch_name)
    ]
