"""
CRUD operations for BookingLink model.

Raw tokens are only ever returned from create(); the table stores their
SHA-256 hex digest.
"""

import hashlib
import secrets
from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models.booking_link import BookingLink, BookingLinkStatus
from app.models.candidate import Candidate
from app.models.interview import InterviewType


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create(
    db: Session,
    *,
    candidate: Candidate,
    expires_at: datetime,
    type: InterviewType = InterviewType.INTERVIEW,
    max_uses: int = 1,
    created_by: Optional[str] = None,
) -> Tuple[BookingLink, str]:
    """
    Issue a new booking link for a candidate.

    Args:
        db: Database session
        candidate: Candidate the link books for
        expires_at: Naive UTC expiry
        type: Whether the link books an interview or a trial
        max_uses: Number of bookings the token allows
        created_by: Issuing user id

    Returns:
        Tuple of (BookingLink, raw token)
    """
    token = secrets.token_urlsafe(32)
    link = BookingLink(
        candidate_id=candidate.id,
        token_hash=hash_token(token),
        type=type,
        status=BookingLinkStatus.ACTIVE,
        candidate_name=candidate.full_name,
        job_title=candidate.job_title,
        branch_name=candidate.branch_name,
        expires_at=expires_at,
        max_uses=max_uses,
        created_by=created_by,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link, token


def get_by_id(db: Session, link_id: str) -> Optional[BookingLink]:
    return db.query(BookingLink).filter(BookingLink.id == link_id).first()


def get_by_token(db: Session, token: str) -> Optional[BookingLink]:
    return db.query(BookingLink).filter(BookingLink.token_hash == hash_token(token)).first()


def count_for_candidate(db: Session, candidate_id: str) -> int:
    return db.query(BookingLink).filter(BookingLink.candidate_id == candidate_id).count()


def revoke_active_for_candidate(db: Session, candidate_id: str, now: datetime) -> int:
    """
    Stage revocation of every active link of a candidate.

    Returns:
        Number of links revoked
    """
    return (
        db.query(BookingLink)
        .filter(BookingLink.candidate_id == candidate_id, BookingLink.status == BookingLinkStatus.ACTIVE)
        .update(
            {
                BookingLink.status: BookingLinkStatus.REVOKED,
                BookingLink.revoked_at: now,
                BookingLink.updated_at: now,
            },
            synchronize_session=False,
        )
    )


def delete_for_candidate(db: Session, candidate_id: str) -> int:
    """Stage deletion of all links of a candidate."""
    return (
        db.query(BookingLink)
        .filter(BookingLink.candidate_id == candidate_id)
        .delete(synchronize_session=False)
    )


def refresh_display_cache(db: Session, candidate: Candidate) -> int:
    """Stage a refresh of the display fields on the active links of a candidate."""
    return (
        db.query(BookingLink)
        .filter(BookingLink.candidate_id == candidate.id, BookingLink.status == BookingLinkStatus.ACTIVE)
        .update(
            {
                BookingLink.candidate_name: candidate.full_name,
                BookingLink.job_title: candidate.job_title,
                BookingLink.branch_name: candidate.branch_name,
            },
            synchronize_session=False,
        )
    )


def expire_overdue(db: Session, now: datetime) -> int:
    """
    Flip active links past their expiry to EXPIRED and commit.

    Returns:
        Number of links expired
    """
    count = (
        db.query(BookingLink)
        .filter(BookingLink.status == BookingLinkStatus.ACTIVE, BookingLink.expires_at < now)
        .update(
            {BookingLink.status: BookingLinkStatus.EXPIRED, BookingLink.updated_at: now},
            synchronize_session=False,
        )
    )
    db.commit()
    return count


def delete_orphans(db: Session) -> int:
    """Stage deletion of links whose candidate no longer exists."""
    return (
        db.query(BookingLink)
        .filter(~BookingLink.candidate_id.in_(select(Candidate.id)))
        .delete(synchronize_session=False)
    )
