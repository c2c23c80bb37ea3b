"""
Unit tests for the ready-for-decision queue.
"""

from datetime import datetime

from app.models.candidate import CandidateStatus
from app.models.interview import InterviewStatus, InterviewType, Recommendation
from app.services.decision_aggregator import aggregate, decision_entry_for, load_decision_queue

from conftest import submitted_feedback


def _completed(make_interview, candidate, when, recommendation="hire", type=InterviewType.INTERVIEW, **kwargs):
    return make_interview(
        candidate,
        type=type,
        status=InterviewStatus.COMPLETED,
        scheduled_date=when,
        feedback=kwargs.pop("feedback", submitted_feedback(recommendation)),
        **kwargs,
    )


class TestRecency:
    def test_latest_outcome_wins_over_more_positive_one(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.TRIAL_COMPLETE)
        _completed(make_interview, candidate, datetime(2024, 1, 1, 10), "hire")
        trial = _completed(make_interview, candidate, datetime(2024, 2, 1, 10), "maybe", type=InterviewType.TRIAL)

        queue = load_decision_queue(db_session)

        assert len(queue) == 1
        assert queue[0].interview_id == trial.id
        assert queue[0].recommendation == Recommendation.MAYBE
        assert queue[0].interview_type == InterviewType.TRIAL

    def test_drafts_are_ignored(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        submitted = _completed(make_interview, candidate, datetime(2024, 1, 1, 10), "maybe")
        _completed(
            make_interview, candidate, datetime(2024, 2, 1, 10),
            feedback={"rating": 5, "recommendation": "hire"},
        )

        queue = load_decision_queue(db_session)

        assert [entry.interview_id for entry in queue] == [submitted.id]

    def test_do_not_hire_is_skipped_in_favour_of_older_eligible(self, db_session, make_candidate, make_interview):
        """An ineligible later outcome does not hide an earlier eligible one"""
        candidate = make_candidate(status=CandidateStatus.TRIAL_COMPLETE)
        eligible = _completed(make_interview, candidate, datetime(2024, 1, 1, 10), "hire")
        _completed(make_interview, candidate, datetime(2024, 2, 1, 10), "do_not_hire", type=InterviewType.TRIAL)

        queue = load_decision_queue(db_session)

        assert [entry.interview_id for entry in queue] == [eligible.id]


class TestExclusions:
    def test_only_do_not_hire_is_excluded(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        _completed(make_interview, candidate, datetime(2024, 1, 1, 10), "do_not_hire")

        assert load_decision_queue(db_session) == []

    def test_rebooked_and_withdrawn_candidates_are_excluded(self, db_session, make_candidate, make_interview):
        for status in (CandidateStatus.TRIAL_SCHEDULED, CandidateStatus.WITHDRAWN, CandidateStatus.INTERVIEW_SCHEDULED):
            _completed(make_interview, make_candidate(status=status), datetime(2024, 1, 1, 10))

        assert load_decision_queue(db_session) == []

    def test_archived_candidates_are_excluded(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE, archived=True)
        _completed(make_interview, candidate, datetime(2024, 1, 1, 10))

        assert load_decision_queue(db_session, include_decided=True) == []

    def test_uncompleted_interviews_are_ignored(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        make_interview(
            candidate,
            status=InterviewStatus.NO_SHOW,
            scheduled_date=datetime(2024, 1, 1, 10),
            feedback=submitted_feedback("hire"),
        )

        assert load_decision_queue(db_session) == []

    def test_decided_candidates_only_when_requested(self, db_session, make_candidate, make_interview):
        hired = make_candidate(status=CandidateStatus.APPROVED)
        rejected = make_candidate(status=CandidateStatus.REJECTED)
        _completed(make_interview, hired, datetime(2024, 1, 1, 10))
        _completed(make_interview, rejected, datetime(2024, 1, 2, 10))

        assert load_decision_queue(db_session) == []
        states = {entry.candidate_id: entry.decision_state for entry in load_decision_queue(db_session, include_decided=True)}
        assert states == {hired.id: "hired", rejected.id: "rejected"}


class TestOrdering:
    def test_pending_then_hire_then_recent(self, db_session, make_candidate, make_interview):
        old_hire = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        new_hire = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        maybe = make_candidate(status=CandidateStatus.TRIAL_COMPLETE)
        approved = make_candidate(status=CandidateStatus.APPROVED)
        _completed(make_interview, old_hire, datetime(2024, 1, 1, 10), "hire")
        _completed(make_interview, new_hire, datetime(2024, 1, 5, 10), "hire")
        _completed(make_interview, maybe, datetime(2024, 1, 9, 10), "maybe")
        _completed(make_interview, approved, datetime(2024, 1, 10, 10), "hire")

        queue = load_decision_queue(db_session, include_decided=True)

        assert [entry.candidate_id for entry in queue] == [new_hire.id, old_hire.id, maybe.id, approved.id]

    def test_entry_carries_feedback_summary(self, db_session, make_candidate, make_interview):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        feedback = dict(submitted_feedback("maybe", rating=3), comments="Quiet but keen")
        _completed(make_interview, candidate, datetime(2024, 1, 1, 10), feedback=feedback)

        entry = decision_entry_for(db_session, candidate)

        assert entry.rating == 3
        assert entry.comments == "Quiet but keen"
        assert entry.candidate_name == candidate.full_name
        assert entry.decision_state == "pending"


def test_aggregate_ignores_interviews_of_unlisted_candidates(db_session, make_candidate, make_interview):
    listed = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
    other = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
    interviews = [
        _completed(make_interview, listed, datetime(2024, 1, 1, 10)),
        _completed(make_interview, other, datetime(2024, 1, 2, 10)),
    ]

    queue = aggregate(interviews, [listed])

    assert [entry.candidate_id for entry in queue] == [listed.id]
