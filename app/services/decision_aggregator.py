"""
"Ready for decision" queue.

For every candidate, the most recent decision-eligible interview (completed,
feedback submitted, recommendation hire or maybe) is the one that counts.
A later occurrence always wins, even when an earlier one was more positive.

Candidates that are withdrawn or booked onto a new interview/trial do not
appear; they resurface once that appointment concludes. do_not_hire
outcomes never enter the queue and go through manual rejection instead.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.crud import candidate as candidate_crud
from app.crud import interview as interview_crud
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import Interview, InterviewStatus, InterviewType, Recommendation

DECISION_RECOMMENDATIONS = (Recommendation.HIRE, Recommendation.MAYBE)

PENDING_STATUSES = (CandidateStatus.INTERVIEW_COMPLETE, CandidateStatus.TRIAL_COMPLETE)
DECIDED_STATUSES = (CandidateStatus.APPROVED, CandidateStatus.REJECTED)

_DECISION_STATE = {
    CandidateStatus.INTERVIEW_COMPLETE: "pending",
    CandidateStatus.TRIAL_COMPLETE: "pending",
    CandidateStatus.APPROVED: "hired",
    CandidateStatus.REJECTED: "rejected",
}
_STATE_RANK = {"pending": 0, "hired": 1, "rejected": 2}
_RECOMMENDATION_RANK = {Recommendation.HIRE: 0, Recommendation.MAYBE: 1}


@dataclass(frozen=True)
class DecisionCandidate:
    candidate_id: str
    candidate_name: str
    job_title: Optional[str]
    branch_name: Optional[str]
    candidate_status: CandidateStatus
    decision_state: str
    interview_id: str
    interview_type: InterviewType
    scheduled_date: datetime
    recommendation: Recommendation
    rating: Optional[int]
    comments: Optional[str]


def is_decision_eligible(interview: Interview) -> bool:
    return (
        interview.status == InterviewStatus.COMPLETED
        and interview.has_feedback
        and interview.recommendation in DECISION_RECOMMENDATIONS
    )


def latest_eligible_by_candidate(interviews: Iterable[Interview]) -> Dict[str, Interview]:
    """Reduce interviews to the latest decision-eligible one per candidate."""
    latest: Dict[str, Interview] = {}
    for interview in interviews:
        if not is_decision_eligible(interview):
            continue
        current = latest.get(interview.candidate_id)
        if current is None or interview.scheduled_date > current.scheduled_date:
            latest[interview.candidate_id] = interview
    return latest


def aggregate(
    interviews: Iterable[Interview],
    candidates: Iterable[Candidate],
    include_decided: bool = False,
) -> List[DecisionCandidate]:
    """
    Build the decision queue from interviews and candidates.

    Args:
        interviews: Any interviews; ineligible ones are ignored
        candidates: Candidates to consider; statuses outside the queue are ignored
        include_decided: Also list approved and rejected candidates

    Returns:
        One DecisionCandidate per candidate, pending first, then hire before
        maybe, then most recent first
    """
    statuses = PENDING_STATUSES + (DECIDED_STATUSES if include_decided else ())
    latest = latest_eligible_by_candidate(interviews)

    queue = []
    for candidate in candidates:
        if candidate.archived or candidate.status not in statuses:
            continue
        interview = latest.get(candidate.id)
        if interview is None:
            continue
        queue.append(DecisionCandidate(
            candidate_id=candidate.id,
            candidate_name=candidate.full_name,
            job_title=candidate.job_title,
            branch_name=candidate.branch_name,
            candidate_status=candidate.status,
            decision_state=_DECISION_STATE[candidate.status],
            interview_id=interview.id,
            interview_type=interview.type,
            scheduled_date=interview.scheduled_date,
            recommendation=interview.recommendation,
            rating=interview.feedback.get("rating"),
            comments=interview.feedback.get("comments"),
        ))

    # Stable sorts, least significant key first
    queue.sort(key=lambda d: d.scheduled_date, reverse=True)
    queue.sort(key=lambda d: (_STATE_RANK[d.decision_state], _RECOMMENDATION_RANK[d.recommendation]))
    return queue


def load_decision_queue(db: Session, include_decided: bool = False) -> List[DecisionCandidate]:
    statuses = PENDING_STATUSES + (DECIDED_STATUSES if include_decided else ())
    candidates = candidate_crud.get_by_statuses(db, statuses)
    interviews = interview_crud.get_completed_with_feedback(db)
    return aggregate(interviews, candidates, include_decided=include_decided)


def decision_entry_for(db: Session, candidate: Candidate) -> Optional[DecisionCandidate]:
    """The queue entry for one candidate, or None if they are not awaiting a decision."""
    interviews = interview_crud.get_for_candidate(db, candidate.id)
    entries = aggregate(interviews, [candidate], include_decided=False)
    return entries[0] if entries else None
