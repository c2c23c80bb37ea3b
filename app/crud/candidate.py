"""
CRUD operations for Candidate model.
"""

from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from app.models.candidate import Candidate, CandidateStatus, normalize_email, normalize_phone


def create(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str] = None,
    job_title: Optional[str] = None,
    branch_name: Optional[str] = None,
    status: CandidateStatus = CandidateStatus.NEW,
) -> Candidate:
    """
    Create a new candidate.

    Args:
        db: Database session
        first_name, last_name: Candidate name
        email: Contact email (normalised on assignment)
        phone: Optional phone number
        job_title, branch_name: Display context for interviews
        status: Initial pipeline status

    Returns:
        Created Candidate instance with id
    """
    candidate = Candidate(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        job_title=job_title,
        branch_name=branch_name,
        status=status,
    )
    db.add(candidate)
    db.commit()
    db.refresh(candidate)
    return candidate


def get_by_id(db: Session, candidate_id: str, for_update: bool = False) -> Optional[Candidate]:
    """
    Retrieve a candidate by id.

    With for_update=True the row is locked until the transaction ends
    (SELECT ... FOR UPDATE on backends that support it).
    """
    query = db.query(Candidate).filter(Candidate.id == candidate_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def exists(db: Session, candidate_id: str) -> bool:
    return db.query(Candidate.id).filter(Candidate.id == candidate_id).first() is not None


def find_by_email(db: Session, email: str) -> Optional[Candidate]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return (
        db.query(Candidate)
        .filter(Candidate.email == normalized)
        .order_by(Candidate.created_at.asc())
        .first()
    )


def find_by_phone(db: Session, phone: Optional[str]) -> Optional[Candidate]:
    normalized = normalize_phone(phone)
    if not normalized:
        return None
    return (
        db.query(Candidate)
        .filter(Candidate.phone_normalized == normalized)
        .order_by(Candidate.created_at.asc())
        .first()
    )


def get_by_statuses(db: Session, statuses: Sequence[CandidateStatus], include_archived: bool = False) -> List[Candidate]:
    """Candidates currently in any of the given statuses."""
    query = db.query(Candidate).filter(Candidate.status.in_(list(statuses)))
    if not include_archived:
        query = query.filter(Candidate.archived.is_(False))
    return query.all()


def delete(db: Session, candidate: Candidate) -> None:
    """Stage the candidate for deletion. The caller commits."""
    db.delete(candidate)
