"""
Archive, restore, reactivation and permanent deletion of candidates.

Archive is a soft delete. It runs as three steps:

1. cascade batch: cancel open interviews, revoke active booking links (one commit)
2. primary write: flag the candidate archived (one commit)
3. audit entry

If step 2 fails the candidate is left live with its appointments cancelled.
Running archive again completes it: the cascade only selects rows still
open, so nothing is cancelled twice.

Permanent deletion is only allowed on archived candidates and removes the
candidate, its interviews and its booking links in a single transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, PreconditionError, ValidationError
from app.core.permissions import Capability, CapabilityChecker, has_capability, require_capability
from app.core.timeutils import utcnow
from app.crud import activity_log as activity_crud
from app.crud import booking_link as booking_link_crud
from app.crud import candidate as candidate_crud
from app.crud import interview as interview_crud
from app.models.activity_log import ActivityAction
from app.models.candidate import Candidate, CandidateStatus
from app.models.user import User
from app.services.state_machine import CandidateEvent, Effect, candidate_machine

logger = logging.getLogger(__name__)

ARCHIVE_CANCELLATION_REASON = "Candidate archived"

# Fields a reapplication may overwrite
REACTIVATION_FIELDS = ("first_name", "last_name", "email", "phone", "job_title", "branch_name")
# Overrides to these are copied onto interviews and active links
DISPLAY_FIELDS = ("first_name", "last_name", "job_title", "branch_name")


@dataclass(frozen=True)
class ReturningApplicant:
    is_returning: bool
    candidate: Optional[Dict[str, Any]] = None


class ArchiveManager:
    """
    Candidate existence and visibility, independent of pipeline status.

    Args:
        db: Database session
        checker: Capability predicate
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        db: Session,
        checker: CapabilityChecker = has_capability,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.checker = checker
        self.clock = clock

    def _get(self, candidate_id: str, for_update: bool = False) -> Candidate:
        candidate = candidate_crud.get_by_id(self.db, candidate_id, for_update=for_update)
        if candidate is None:
            raise NotFoundError(f"Candidate {candidate_id} not found")
        return candidate

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def archive(self, candidate_id: str, user: User, reason: Optional[str] = None) -> Candidate:
        """
        Soft-delete a candidate and cancel everything still pending for them.

        Raises:
            PermissionDeniedError: User cannot archive candidates
            NotFoundError: Unknown candidate
        """
        require_capability(user, Capability.ARCHIVE_CANDIDATES, self.checker)
        candidate = self._get(candidate_id)
        transition = candidate_machine.resolve(candidate.status, CandidateEvent.ARCHIVE)
        was_archived = candidate.archived
        now = self.clock()

        interviews_cancelled = interview_crud.cancel_open_for_candidate(
            self.db, candidate.id, cancelled_by=user.id, reason=ARCHIVE_CANCELLATION_REASON, now=now,
        )
        links_revoked = booking_link_crud.revoke_active_for_candidate(self.db, candidate.id, now)
        self._commit()

        if transition.has(Effect.SNAPSHOT_STATUS):
            candidate.previous_status = candidate.status
        candidate.status = transition.target
        candidate.archived = True
        candidate.archived_at = candidate.archived_at or now
        candidate.archived_by = candidate.archived_by or user.id
        if reason:
            candidate.archived_reason = reason
        self._commit()

        logger.info(
            f"Candidate {candidate.id} archived: interviewsCancelled={interviews_cancelled} "
            f"bookingLinksRevoked={links_revoked}"
        )
        if was_archived and not interviews_cancelled and not links_revoked:
            return candidate

        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.STATUS_CHANGED,
            description="Candidate archived" + (f": {reason}" if reason else ""),
            user=user,
            details={
                "previous_status": candidate.previous_status.value if candidate.previous_status else None,
                "interviews_cancelled": interviews_cancelled,
                "booking_links_revoked": links_revoked,
            },
        )
        return candidate

    def restore(self, candidate_id: str, user: User) -> Candidate:
        """
        Bring an archived candidate back at the status they were archived from.

        Cancelled interviews and revoked links stay as they are.

        Raises:
            PreconditionError: Candidate is not archived
        """
        require_capability(user, Capability.ARCHIVE_CANDIDATES, self.checker)
        candidate = self._get(candidate_id)
        if not candidate.archived:
            raise PreconditionError("Candidate is not archived")
        transition = candidate_machine.resolve(candidate.status, CandidateEvent.RESTORE)

        status = transition.target
        if transition.has(Effect.RESTORE_SNAPSHOT):
            status = candidate.previous_status
            if status in (None, CandidateStatus.ARCHIVED):
                status = CandidateStatus.NEW

        candidate.status = status
        candidate.archived = False
        candidate.archived_at = None
        candidate.archived_by = None
        candidate.archived_reason = None
        candidate.previous_status = None
        candidate.restored_at = self.clock()
        candidate.restored_by = user.id
        self._commit()

        logger.info(f"Candidate {candidate.id} restored to {status.value}")
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.STATUS_CHANGED,
            description=f"Candidate restored to {status.value.replace('_', ' ')}",
            user=user,
        )
        return candidate

    def check_returning(self, email: str, phone: Optional[str] = None) -> ReturningApplicant:
        """
        Look up an existing candidate for a new application. Read-only.

        Email is matched first, then phone; both are compared normalised.

        Raises:
            ValidationError: Email missing
        """
        if not email or not email.strip():
            raise ValidationError("Email is required to check for a returning applicant")

        match = candidate_crud.find_by_email(self.db, email) or candidate_crud.find_by_phone(self.db, phone)
        if match is None:
            return ReturningApplicant(is_returning=False)

        previous_status = match.previous_status if match.archived else match.status
        return ReturningApplicant(
            is_returning=True,
            candidate={
                "id": match.id,
                "first_name": match.first_name,
                "last_name": match.last_name,
                "email": match.email,
                "phone": match.phone,
                "archived": match.archived,
                "previous_application_date": match.last_application_at or match.created_at,
                "previous_status": previous_status.value if previous_status else None,
                "application_count": match.application_count or 1,
            },
        )

    def reactivate(
        self,
        candidate_id: str,
        user: User,
        cv_url: Optional[str] = None,
        cv_file_name: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Candidate:
        """
        Reopen an existing candidate for a new application.

        The row is locked while application_count is incremented. A repeat
        call within REACTIVATION_DEBOUNCE_SECONDS on a candidate that is
        already live returns it unchanged.

        Raises:
            ValidationError: Override names a field that cannot be changed
        """
        require_capability(user, Capability.REACTIVATE_CANDIDATES, self.checker)
        overrides = overrides or {}
        unknown = set(overrides) - set(REACTIVATION_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot override fields: {', '.join(sorted(unknown))}")

        candidate = self._get(candidate_id, for_update=True)
        now = self.clock()
        window = timedelta(seconds=settings.REACTIVATION_DEBOUNCE_SECONDS)
        if not candidate.archived and candidate.reactivated_at and now - candidate.reactivated_at < window:
            # Release the row lock
            self.db.rollback()
            logger.info(f"Candidate {candidate.id} reactivated {candidate.reactivated_at.isoformat()}; ignoring repeat")
            return candidate

        transition = candidate_machine.resolve(candidate.status, CandidateEvent.REACTIVATE)

        for field, value in overrides.items():
            setattr(candidate, field, value)

        candidate.status = transition.target
        candidate.archived = False
        candidate.archived_at = None
        candidate.archived_by = None
        candidate.archived_reason = None
        candidate.previous_status = None
        candidate.is_returning_candidate = True
        candidate.application_count = (candidate.application_count or 1) + 1
        candidate.last_application_at = now
        candidate.reactivated_at = now
        candidate.reactivated_by = user.id
        if cv_url:
            candidate.cv_url = cv_url
            candidate.cv_file_name = cv_file_name or "CV"
            candidate.cv_uploaded_at = now
        if set(overrides) & set(DISPLAY_FIELDS):
            interview_crud.refresh_display_cache(self.db, candidate)
            booking_link_crud.refresh_display_cache(self.db, candidate)
        self._commit()

        logger.info(f"Candidate {candidate.id} reactivated, application #{candidate.application_count}")
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.UPDATED,
            description=f"Returning candidate reactivated (application #{candidate.application_count})",
            user=user,
            details={"application_count": candidate.application_count, "overridden": sorted(overrides)},
        )
        if cv_url:
            activity_crud.create(
                self.db,
                entity_type="candidate",
                entity_id=candidate.id,
                action=ActivityAction.CV_UPLOADED,
                description=f"CV uploaded: {candidate.cv_file_name}",
                user=user,
            )
        return candidate

    def hard_delete(self, candidate_id: str, user: User, confirm: bool = False) -> Dict[str, Any]:
        """
        Permanently delete an archived candidate with its interviews and links.

        Returns:
            dict with the candidate id and the number of interviews and
            booking links removed

        Raises:
            PermissionDeniedError: Only super admins may delete
            ValidationError: confirm was not set
            PreconditionError: Candidate is not archived (nothing is written)
        """
        require_capability(user, Capability.DELETE_CANDIDATES, self.checker)
        if not confirm:
            raise ValidationError("Permanent deletion must be confirmed")

        candidate = self._get(candidate_id)
        if not candidate.archived:
            raise PreconditionError("Candidate must be archived before permanent deletion")

        name = candidate.full_name
        try:
            interviews_deleted = interview_crud.delete_for_candidate(self.db, candidate.id)
            links_deleted = booking_link_crud.delete_for_candidate(self.db, candidate.id)
            candidate_crud.delete(self.db, candidate)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.warning(
            f"Candidate {candidate_id} permanently deleted by {user.id}: "
            f"interviewsDeleted={interviews_deleted} bookingLinksDeleted={links_deleted}"
        )
        result = {
            "candidate_id": candidate_id,
            "interviews_deleted": interviews_deleted,
            "booking_links_deleted": links_deleted,
        }
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate_id,
            action=ActivityAction.DELETED,
            description=f"Candidate {name} permanently deleted",
            user=user,
            details=result,
        )
        return result


def cleanup_orphaned_records(db: Session) -> Dict[str, int]:
    """
    Delete interviews and booking links whose candidate no longer exists.

    Covers candidate rows removed without going through the ORM.
    """
    interviews = interview_crud.delete_orphans(db)
    links = booking_link_crud.delete_orphans(db)
    db.commit()
    if interviews or links:
        logger.warning(f"Orphan sweep removed {interviews} interviews and {links} booking links")
    return {"interviews_deleted": interviews, "booking_links_deleted": links}
