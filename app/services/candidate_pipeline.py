"""
Candidate pipeline actions: hiring decisions, manual rejection and the
forward moves driven by bookings.

Decision actions only apply to candidates in the decision queue. The
rejection email is best-effort: a messaging failure is logged and the
status change stands.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ExternalServiceError, NotFoundError, PreconditionError
from app.core.permissions import Capability, CapabilityChecker, has_capability, require_capability
from app.core.timeutils import utcnow
from app.crud import activity_log as activity_crud
from app.crud import candidate as candidate_crud
from app.models.activity_log import ActivityAction
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import InterviewType
from app.models.user import User
from app.services.decision_aggregator import decision_entry_for
from app.services.messaging import Notifier, notify_candidate
from app.services.state_machine import CandidateEvent, Effect, candidate_machine

logger = logging.getLogger(__name__)


def _status_label(status: CandidateStatus) -> str:
    return status.value.replace("_", " ")


def advance_on_booking(candidate: Candidate, interview_type: InterviewType) -> bool:
    """
    Move a candidate forward when an interview or trial is booked.

    Forward-only: a candidate already past the booked stage is left alone.
    The caller commits.

    Returns:
        bool: True if the status changed
    """
    if candidate.archived:
        return False
    event = CandidateEvent.TRIAL_BOOKED if interview_type == InterviewType.TRIAL else CandidateEvent.INTERVIEW_BOOKED
    transition = candidate_machine.advance(candidate.status, event)
    if transition is None or transition.target == candidate.status:
        return False
    logger.info(f"Candidate {candidate.id} advanced {candidate.status.value} -> {transition.target.value}")
    candidate.status = transition.target
    return True


class CandidatePipelineService:
    """
    Decision and rejection actions on a candidate.

    Args:
        db: Database session
        checker: Capability predicate
        clock: Returns the current naive UTC time
        notifier: Outbound messaging collaborator
    """

    def __init__(
        self,
        db: Session,
        checker: CapabilityChecker = has_capability,
        clock: Callable[[], datetime] = utcnow,
        notifier: Notifier = notify_candidate,
    ):
        self.db = db
        self.checker = checker
        self.clock = clock
        self.notifier = notifier

    def _get(self, candidate_id: str) -> Candidate:
        candidate = candidate_crud.get_by_id(self.db, candidate_id)
        if candidate is None:
            raise NotFoundError(f"Candidate {candidate_id} not found")
        return candidate

    def approve(self, candidate_id: str, user: User) -> Candidate:
        return self._decide(candidate_id, CandidateEvent.APPROVE, user)

    def reject(self, candidate_id: str, user: User, send_email: bool = False, message: Optional[str] = None) -> Candidate:
        return self._decide(candidate_id, CandidateEvent.REJECT, user, send_email=send_email, message=message)

    def schedule_trial(self, candidate_id: str, user: User) -> Candidate:
        return self._decide(candidate_id, CandidateEvent.SCHEDULE_TRIAL, user)

    def _decide(
        self,
        candidate_id: str,
        event: CandidateEvent,
        user: User,
        send_email: bool = False,
        message: Optional[str] = None,
    ) -> Candidate:
        """
        Apply a decision-queue action.

        Raises:
            NotFoundError: Unknown candidate
            ConflictError: Candidate is not interview_complete or trial_complete
            PreconditionError: No hire/maybe outcome awaiting a decision, or a
                trial requested after a trial
        """
        require_capability(user, Capability.MAKE_DECISIONS, self.checker)
        candidate = self._get(candidate_id)
        transition = candidate_machine.resolve(candidate.status, event)

        entry = decision_entry_for(self.db, candidate)
        if entry is None:
            raise PreconditionError("Candidate has no hire or maybe recommendation awaiting a decision")
        if event == CandidateEvent.SCHEDULE_TRIAL and entry.interview_type != InterviewType.INTERVIEW:
            raise PreconditionError("A trial can only follow an interview, not another trial")

        previous = candidate.status
        now = self.clock()
        candidate.status = transition.target
        if transition.target == CandidateStatus.APPROVED:
            candidate.approved_at = now
        elif transition.target == CandidateStatus.REJECTED:
            candidate.rejected_at = now
            candidate.rejection_reason = message
        self.db.commit()

        logger.info(f"Candidate {candidate.id} decision: {previous.value} -> {candidate.status.value} by {user.id}")
        if transition.has(Effect.LOG_ACTIVITY):
            activity_crud.create(
                self.db,
                entity_type="candidate",
                entity_id=candidate.id,
                action=ActivityAction.STATUS_CHANGED,
                description=f"Status changed to {_status_label(candidate.status)} from Ready for Decision",
                user=user,
                details={"previous_status": previous.value, "interview_id": entry.interview_id},
            )

        if send_email and transition.has(Effect.SEND_REJECTION):
            self._send_rejection(candidate, user, message)
        return candidate

    def reject_candidate(
        self,
        candidate_id: str,
        user: User,
        reason: Optional[str] = None,
        send_email: bool = False,
    ) -> Candidate:
        """
        Reject a live candidate outside the decision queue.

        This is the path for do_not_hire outcomes and for candidates rejected
        before any interview.

        Raises:
            ConflictError: Candidate is archived, withdrawn, approved or already rejected
        """
        require_capability(user, Capability.MAKE_DECISIONS, self.checker)
        candidate = self._get(candidate_id)
        transition = candidate_machine.resolve(candidate.status, CandidateEvent.MANUAL_REJECT)

        previous = candidate.status
        candidate.status = transition.target
        candidate.rejected_at = self.clock()
        candidate.rejection_reason = reason
        self.db.commit()

        logger.info(f"Candidate {candidate.id} rejected manually from {previous.value}")
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.STATUS_CHANGED,
            description=f"Rejected from {_status_label(previous)}" + (f": {reason}" if reason else ""),
            user=user,
            details={"previous_status": previous.value},
        )

        if send_email:
            self._send_rejection(candidate, user, reason)
        return candidate

    def _send_rejection(self, candidate: Candidate, user: User, message: Optional[str]) -> None:
        try:
            self.notifier(candidate.id, "rejection", {"message": message or ""})
        except ExternalServiceError as e:
            logger.error(f"Rejection email for candidate {candidate.id} not sent: {e.detail}")
            return

        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.MESSAGE_SENT,
            description="Rejection email sent",
            user=user,
            details={"template_type": "rejection"},
        )
