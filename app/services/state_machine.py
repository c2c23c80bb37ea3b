"""
Explicit transition tables for interviews and candidates.

Each machine maps (state, event) to a Transition: the target state and the
side effects the caller must perform. A pair missing from the table is not
a legal transition.

Interview transitions are always requested by a caller, so an illegal pair
raises ConflictError. Candidate transitions are mostly driven by interview
outcomes; `advance` returns None for a pair that is not in the table so a
driven update simply does not happen (e.g. feedback never moves an approved
candidate back to interview_complete).
"""

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from app.core.exceptions import ConflictError
from app.models.candidate import CandidateStatus
from app.models.interview import InterviewStatus


class InterviewEvent(str, enum.Enum):
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"
    SUBMIT_FEEDBACK = "submit_feedback"
    LAPSE = "lapse"


class CandidateEvent(str, enum.Enum):
    INTERVIEW_BOOKED = "interview_booked"
    TRIAL_BOOKED = "trial_booked"
    INTERVIEW_COMPLETED = "interview_completed"
    TRIAL_COMPLETED = "trial_completed"
    NO_SHOW = "no_show"
    APPROVE = "approve"
    REJECT = "reject"
    SCHEDULE_TRIAL = "schedule_trial"
    MANUAL_REJECT = "manual_reject"
    ARCHIVE = "archive"
    RESTORE = "restore"
    REACTIVATE = "reactivate"


class Effect(str, enum.Enum):
    RECORD_RESCHEDULE = "record_reschedule"
    RECORD_CANCELLATION = "record_cancellation"
    RECORD_COMPLETION = "record_completion"
    WITHDRAW_CANDIDATE = "withdraw_candidate"
    LOG_ACTIVITY = "log_activity"
    STORE_FEEDBACK = "store_feedback"
    ADVANCE_CANDIDATE = "advance_candidate"
    SNAPSHOT_STATUS = "snapshot_status"
    RESTORE_SNAPSHOT = "restore_snapshot"
    SEND_REJECTION = "send_rejection"


@dataclass(frozen=True)
class Transition:
    # None means the target is computed from the entity (restore to snapshot)
    target: Optional[enum.Enum]
    effects: FrozenSet[Effect] = frozenset()

    def has(self, effect: Effect) -> bool:
        return effect in self.effects


class StateMachine:
    def __init__(self, name: str, table: Dict[Tuple[enum.Enum, enum.Enum], Transition]):
        self.name = name
        self._table = dict(table)

    def can(self, state, event) -> bool:
        return (state, event) in self._table

    def resolve(self, state, event) -> Transition:
        """
        Look up a transition requested by a caller.

        Raises:
            ConflictError: The pair is not in the table
        """
        transition = self._table.get((state, event))
        if transition is None:
            raise ConflictError(
                f"Cannot {_label(event)} {self.name} in status '{_label(state)}'"
            )
        return transition

    def advance(self, state, event) -> Optional[Transition]:
        """Look up a driven transition; None when it does not apply."""
        return self._table.get((state, event))

    def states_accepting(self, event) -> FrozenSet:
        return frozenset(state for state, ev in self._table if ev == event)


def _label(value) -> str:
    return getattr(value, "value", str(value)).replace("_", " ")


def _fan_in(states: Iterable, event, transition: Transition) -> Dict:
    return {(state, event): transition for state in states}


def _effects(*effects: Effect) -> FrozenSet[Effect]:
    return frozenset(effects)


S = InterviewStatus
IE = InterviewEvent
_OPEN = (S.SCHEDULED, S.LAPSED)

INTERVIEW_TRANSITIONS: Dict = {
    **_fan_in(_OPEN, IE.RESCHEDULE, Transition(S.SCHEDULED, _effects(Effect.RECORD_RESCHEDULE))),
    **_fan_in(_OPEN, IE.CANCEL, Transition(S.CANCELLED, _effects(Effect.RECORD_CANCELLATION))),
    # Repeating a cancel is a no-op
    (S.CANCELLED, IE.CANCEL): Transition(S.CANCELLED),
    **_fan_in(_OPEN, IE.COMPLETE, Transition(S.COMPLETED, _effects(Effect.RECORD_COMPLETION))),
    **_fan_in(_OPEN, IE.NO_SHOW, Transition(
        S.NO_SHOW, _effects(Effect.WITHDRAW_CANDIDATE, Effect.LOG_ACTIVITY)
    )),
    # Repeating a no-show only repairs the candidate side, it never logs twice
    (S.NO_SHOW, IE.NO_SHOW): Transition(S.NO_SHOW, _effects(Effect.WITHDRAW_CANDIDATE)),
    **_fan_in((S.SCHEDULED, S.LAPSED, S.COMPLETED, S.NO_SHOW), IE.SUBMIT_FEEDBACK, Transition(
        S.COMPLETED, _effects(Effect.STORE_FEEDBACK, Effect.ADVANCE_CANDIDATE, Effect.LOG_ACTIVITY)
    )),
    (S.SCHEDULED, IE.LAPSE): Transition(S.LAPSED),
}

interview_machine = StateMachine("interview", INTERVIEW_TRANSITIONS)


C = CandidateStatus
CE = CandidateEvent
_ALL = tuple(CandidateStatus)
_LIVE = tuple(s for s in CandidateStatus if s != C.ARCHIVED)
_DECIDABLE = (C.INTERVIEW_COMPLETE, C.TRIAL_COMPLETE)
_LOG = _effects(Effect.LOG_ACTIVITY)

CANDIDATE_TRANSITIONS: Dict = {
    # Forward-only moves driven by bookings and feedback
    **_fan_in((C.NEW, C.SCREENING), CE.INTERVIEW_BOOKED, Transition(C.INTERVIEW_SCHEDULED)),
    **_fan_in(
        (C.NEW, C.SCREENING, C.INTERVIEW_SCHEDULED, C.INTERVIEW_COMPLETE),
        CE.TRIAL_BOOKED, Transition(C.TRIAL_SCHEDULED),
    ),
    **_fan_in(
        (C.NEW, C.SCREENING, C.INTERVIEW_SCHEDULED),
        CE.INTERVIEW_COMPLETED, Transition(C.INTERVIEW_COMPLETE),
    ),
    **_fan_in(
        (C.NEW, C.SCREENING, C.INTERVIEW_SCHEDULED, C.INTERVIEW_COMPLETE, C.TRIAL_SCHEDULED),
        CE.TRIAL_COMPLETED, Transition(C.TRIAL_COMPLETE),
    ),
    # A no-show withdraws a live candidate whatever stage they reached
    **_fan_in(_LIVE, CE.NO_SHOW, Transition(C.WITHDRAWN)),
    # Decision queue actions
    **_fan_in(_DECIDABLE, CE.APPROVE, Transition(C.APPROVED, _LOG)),
    **_fan_in(_DECIDABLE, CE.REJECT, Transition(C.REJECTED, _effects(Effect.LOG_ACTIVITY, Effect.SEND_REJECTION))),
    **_fan_in(_DECIDABLE, CE.SCHEDULE_TRIAL, Transition(C.TRIAL_SCHEDULED, _LOG)),
    # Manual rejection outside the queue (do_not_hire path)
    **_fan_in(
        (C.NEW, C.SCREENING, C.INTERVIEW_SCHEDULED, C.INTERVIEW_COMPLETE, C.TRIAL_SCHEDULED, C.TRIAL_COMPLETE),
        CE.MANUAL_REJECT, Transition(C.REJECTED, _LOG),
    ),
    **_fan_in(_LIVE, CE.ARCHIVE, Transition(C.ARCHIVED, _effects(Effect.SNAPSHOT_STATUS, Effect.LOG_ACTIVITY))),
    # Re-running archive completes a partially applied cascade
    (C.ARCHIVED, CE.ARCHIVE): Transition(C.ARCHIVED, _LOG),
    (C.ARCHIVED, CE.RESTORE): Transition(None, _effects(Effect.RESTORE_SNAPSHOT, Effect.LOG_ACTIVITY)),
    **_fan_in(_ALL, CE.REACTIVATE, Transition(C.NEW, _LOG)),
}

candidate_machine = StateMachine("candidate", CANDIDATE_TRANSITIONS)
