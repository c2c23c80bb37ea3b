"""
Interview lifecycle: reschedule, cancel, complete, no-show and feedback.

Every recruiter action resolves its transition through interview_machine, so
an action that is not legal from the current status raises ConflictError
before anything is written.

Write ordering for actions that touch the candidate as well:
the interview and candidate rows are committed in one transaction, and the
activity entry is appended afterwards. If the audit write fails the state
change stands; repeating the action is safe because repeated no-shows and
cancels are no-ops in the transition table.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, PreconditionError, ValidationError
from app.core.permissions import Capability, CapabilityChecker, has_capability, require_capability
from app.core.timeutils import to_naive_utc, utcnow
from app.crud import activity_log as activity_crud
from app.crud import candidate as candidate_crud
from app.crud import interview as interview_crud
from app.models.activity_log import ActivityAction
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import Interview, InterviewStatus, InterviewType, Recommendation
from app.models.user import User
from app.services.state_machine import (
    CandidateEvent,
    Effect,
    InterviewEvent,
    candidate_machine,
    interview_machine,
)

logger = logging.getLogger(__name__)

FEEDBACK_TEXT_FIELDS = ("strengths", "weaknesses", "comments")


def _completion_event(interview_type: InterviewType) -> CandidateEvent:
    if interview_type == InterviewType.TRIAL:
        return CandidateEvent.TRIAL_COMPLETED
    return CandidateEvent.INTERVIEW_COMPLETED


class InterviewLifecycleService:
    """
    Recruiter-driven transitions of a single interview or trial.

    Args:
        db: Database session
        checker: Capability predicate, defaults to role-based has_capability
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

    def _get(self, interview_id: str) -> Interview:
        interview = interview_crud.get_by_id(self.db, interview_id)
        if interview is None:
            raise NotFoundError(f"Interview {interview_id} not found")
        return interview

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _log(self, interview: Interview, action: ActivityAction, description: str, user: Optional[User], **details) -> None:
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=interview.candidate_id,
            action=action,
            description=description,
            user=user,
            details={"interview_id": interview.id, **details},
        )

    def reschedule(self, interview_id: str, new_date: Optional[datetime], user: User) -> Interview:
        """
        Move an open interview to a new start time.

        Raises:
            ValidationError: Missing or non-future date
            ConflictError: Interview is not scheduled or lapsed
        """
        require_capability(user, Capability.MANAGE_INTERVIEWS, self.checker)
        interview = self._get(interview_id)
        transition = interview_machine.resolve(interview.status, InterviewEvent.RESCHEDULE)

        if new_date is None:
            raise ValidationError("A new date and time is required to reschedule")
        new_date = to_naive_utc(new_date)
        now = self.clock()
        if new_date <= now:
            raise ValidationError("Interviews can only be rescheduled to a future date and time")

        previous = interview.scheduled_date
        if transition.has(Effect.RECORD_RESCHEDULE):
            interview.rescheduled_from = previous
            interview.rescheduled_count = (interview.rescheduled_count or 0) + 1
        interview.scheduled_date = new_date
        interview.status = transition.target
        interview.lapsed_at = None
        interview.reminder_sent = False
        interview.reminder_sent_at = None
        self._commit()

        logger.info(
            f"Interview {interview.id} rescheduled from {previous.isoformat()} to {new_date.isoformat()} "
            f"(count={interview.rescheduled_count})"
        )
        self._log(
            interview,
            ActivityAction.UPDATED,
            f"{interview.type.value.title()} rescheduled to {new_date.strftime('%d %b %Y %H:%M')}",
            user,
            rescheduled_from=previous.isoformat(),
        )
        return interview

    def cancel(self, interview_id: str, user: User, reason: Optional[str] = None) -> Interview:
        """
        Cancel an open interview. The candidate's status is left alone so
        they can be rebooked. Cancelling twice is a no-op.

        Raises:
            ConflictError: Interview already completed or marked no-show
        """
        require_capability(user, Capability.MANAGE_INTERVIEWS, self.checker)
        interview = self._get(interview_id)
        transition = interview_machine.resolve(interview.status, InterviewEvent.CANCEL)

        if not transition.has(Effect.RECORD_CANCELLATION):
            logger.info(f"Interview {interview.id} already cancelled, nothing to do")
            return interview

        now = self.clock()
        interview.status = transition.target
        interview.cancelled_at = now
        interview.cancelled_by = user.id
        interview.cancellation_reason = reason
        self._commit()

        logger.info(f"Interview {interview.id} cancelled by {user.id}")
        self._log(
            interview,
            ActivityAction.STATUS_CHANGED,
            f"{interview.type.value.title()} cancelled" + (f": {reason}" if reason else ""),
            user,
        )
        return interview

    def complete(self, interview_id: str, user: User) -> Interview:
        """
        Mark an open interview as held. Feedback is submitted separately.

        Raises:
            ConflictError: Interview is not scheduled or lapsed
        """
        require_capability(user, Capability.MANAGE_INTERVIEWS, self.checker)
        interview = self._get(interview_id)
        transition = interview_machine.resolve(interview.status, InterviewEvent.COMPLETE)

        interview.status = transition.target
        if transition.has(Effect.RECORD_COMPLETION):
            interview.completed_at = self.clock()
        self._commit()

        logger.info(f"Interview {interview.id} marked completed")
        self._log(interview, ActivityAction.STATUS_CHANGED, f"{interview.type.value.title()} marked completed", user)
        return interview

    def mark_no_show(self, interview_id: str, user: User) -> Interview:
        """
        Record that the candidate did not attend and withdraw them.

        The interview and candidate changes are committed together; if the
        candidate cannot be loaded nothing is written. Repeating the call
        leaves the same end state and adds no activity entry. An archived
        candidate stays archived with withdrawn as the status to restore to.

        Raises:
            NotFoundError: Interview or its candidate is missing
            ConflictError: Interview already completed or cancelled
        """
        require_capability(user, Capability.MANAGE_INTERVIEWS, self.checker)
        interview = self._get(interview_id)
        transition = interview_machine.resolve(interview.status, InterviewEvent.NO_SHOW)

        candidate = candidate_crud.get_by_id(self.db, interview.candidate_id)
        if candidate is None:
            raise NotFoundError(f"Candidate {interview.candidate_id} for interview {interview.id} not found")

        now = self.clock()
        if interview.status != transition.target:
            interview.status = transition.target
            interview.no_show_at = now

        if transition.has(Effect.WITHDRAW_CANDIDATE):
            self._withdraw(candidate, interview, now)
        self._commit()

        logger.info(f"Interview {interview.id} marked no-show; candidate {candidate.id} status={candidate.status.value}")
        if transition.has(Effect.LOG_ACTIVITY):
            self._log(
                interview,
                ActivityAction.STATUS_CHANGED,
                f"Withdrawn: No show to {interview.type.value}",
                user,
                new_status=CandidateStatus.WITHDRAWN.value,
            )
        return interview

    def _withdraw(self, candidate: Candidate, interview: Interview, now: datetime) -> None:
        if candidate.archived:
            # Withdrawn underneath the archive; restore lands on withdrawn
            if candidate.previous_status != CandidateStatus.WITHDRAWN:
                logger.info(f"Archived candidate {candidate.id} withdrawn for restore after no-show")
                candidate.previous_status = CandidateStatus.WITHDRAWN
                candidate.withdrawal_reason = f"No show to {interview.type.value}"
                candidate.withdrawn_at = now
            return
        candidate_transition = candidate_machine.advance(candidate.status, CandidateEvent.NO_SHOW)
        if candidate_transition is None:
            logger.warning(f"Candidate {candidate.id} is {candidate.status.value}; no-show leaves status unchanged")
            return
        if candidate.status != candidate_transition.target:
            candidate.status = candidate_transition.target
            candidate.withdrawal_reason = f"No show to {interview.type.value}"
            candidate.withdrawn_at = now

    def submit_feedback(self, interview_id: str, feedback: Dict, user: User) -> Interview:
        """
        Attach feedback to an interview and close it.

        Accepted on completed, lapsed and no-show interviews, and on scheduled
        ones whose start time has passed. The interview is forced to
        completed and the candidate is moved forward to interview_complete
        or trial_complete when they are not already past that stage.
        Resubmission replaces the previous payload.

        Args:
            interview_id: Target interview
            feedback: {"rating": 1..5, "recommendation": hire|maybe|do_not_hire,
                       "strengths"?, "weaknesses"?, "comments"?}
            user: Submitting interviewer

        Raises:
            ValidationError: Rating or recommendation out of range
            PreconditionError: Scheduled interview has not started yet
            ConflictError: Interview was cancelled
        """
        require_capability(user, Capability.SUBMIT_FEEDBACK, self.checker)
        payload = self._validate_feedback(feedback)
        interview = self._get(interview_id)
        transition = interview_machine.resolve(interview.status, InterviewEvent.SUBMIT_FEEDBACK)

        now = self.clock()
        if interview.status == InterviewStatus.SCHEDULED and interview.scheduled_date > now:
            raise PreconditionError("Feedback cannot be submitted before the interview has taken place")

        if interview.has_feedback:
            logger.info(f"Interview {interview.id} feedback overwritten by {user.id}")

        payload.update({
            "submitted_at": now.isoformat(),
            "submitted_by": user.id,
            "submitted_by_name": user.display_name,
        })
        interview.feedback = payload
        interview.status = transition.target
        interview.completed_at = interview.completed_at or now

        if transition.has(Effect.ADVANCE_CANDIDATE):
            self._advance_candidate(interview)
        self._commit()

        logger.info(
            f"Feedback submitted for interview {interview.id}: "
            f"rating={payload['rating']} recommendation={payload['recommendation']}"
        )
        if transition.has(Effect.LOG_ACTIVITY):
            self._log(
                interview,
                ActivityAction.FEEDBACK_SUBMITTED,
                f"{interview.type.value.title()} feedback: {payload['recommendation'].replace('_', ' ')} ({payload['rating']}/5)",
                user,
            )
        return interview

    def _advance_candidate(self, interview: Interview) -> None:
        candidate = candidate_crud.get_by_id(self.db, interview.candidate_id)
        if candidate is None:
            logger.warning(f"Feedback on interview {interview.id} references missing candidate {interview.candidate_id}")
            return
        if candidate.archived:
            return
        transition = candidate_machine.advance(candidate.status, _completion_event(interview.type))
        if transition is not None:
            logger.info(f"Candidate {candidate.id} advanced {candidate.status.value} -> {transition.target.value}")
            candidate.status = transition.target

    @staticmethod
    def _validate_feedback(feedback: Dict) -> Dict:
        if not isinstance(feedback, dict):
            raise ValidationError("Feedback must be an object")

        rating = feedback.get("rating")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be a whole number from 1 to 5")

        try:
            recommendation = Recommendation(feedback.get("recommendation"))
        except ValueError:
            raise ValidationError("Recommendation must be one of: hire, maybe, do_not_hire")

        payload = {"rating": rating, "recommendation": recommendation.value}
        for field in FEEDBACK_TEXT_FIELDS:
            if feedback.get(field):
                payload[field] = str(feedback[field])
        return payload


def mark_lapsed_interviews(
    db: Session,
    now: Optional[datetime] = None,
    lapse_after_hours: Optional[int] = None,
) -> int:
    """
    Flag scheduled interviews whose start is long past as lapsed.

    Only scheduled rows are selected, so running the sweep again is a no-op.

    Returns:
        Number of interviews marked lapsed
    """
    now = now or utcnow()
    hours = settings.LAPSE_AFTER_HOURS if lapse_after_hours is None else lapse_after_hours
    cutoff = now - timedelta(hours=hours)

    count = 0
    for interview in interview_crud.get_due_for_lapse(db, cutoff):
        transition = interview_machine.advance(interview.status, InterviewEvent.LAPSE)
        if transition is None:
            continue
        interview.status = transition.target
        interview.lapsed_at = now
        count += 1

    db.commit()
    if count:
        logger.info(f"Marked {count} interviews as lapsed (started before {cutoff.isoformat()})")
    return count


def claim_feedback_reminders(
    db: Session,
    now: Optional[datetime] = None,
    grace_hours: Optional[int] = None,
) -> List[str]:
    """
    Select interviews that need a feedback reminder and flag them.

    The reminder_sent flag is committed before the ids are returned, so a
    sweep that runs again (or crashes after queueing) never re-fires for
    the same interview.

    Returns:
        Ids of interviews whose reminder should be sent now
    """
    now = now or utcnow()
    hours = settings.FEEDBACK_REMINDER_GRACE_HOURS if grace_hours is None else grace_hours
    cutoff = now - timedelta(hours=hours)

    due = interview_crud.get_due_for_reminder(db, cutoff)
    for interview in due:
        interview.reminder_sent = True
        interview.reminder_sent_at = now
    db.commit()

    if due:
        logger.info(f"Claimed {len(due)} interviews for feedback reminders")
    return [interview.id for interview in due]


def reconcile_display_cache(db: Session) -> int:
    """
    Copy the current candidate name, job title and branch back onto
    interviews whose display cache has drifted.

    Returns:
        Number of interviews updated
    """
    stale = interview_crud.get_with_stale_display_cache(db)
    for interview, candidate in stale:
        interview.candidate_name = candidate.full_name
        interview.job_title = candidate.job_title
        interview.branch_name = candidate.branch_name
    db.commit()

    if stale:
        logger.info(f"Refreshed display cache on {len(stale)} interviews")
    return len(stale)
