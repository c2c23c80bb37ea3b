"""
Unit tests for decision-queue actions and manual rejection.
"""

from datetime import timedelta

import pytest

from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, PreconditionError
from app.crud import activity_log as activity_crud
from app.models.activity_log import ActivityAction
from app.models.candidate import CandidateStatus
from app.models.interview import InterviewStatus, InterviewType
from app.services.candidate_pipeline import CandidatePipelineService, advance_on_booking

from conftest import submitted_feedback


@pytest.fixture
def pipeline(db_session, clock, notifier):
    return CandidatePipelineService(db_session, clock=clock, notifier=notifier)


@pytest.fixture
def ready_candidate(make_candidate, make_interview, now):
    """Candidate at interview_complete with a submitted hire recommendation."""
    def _make(recommendation="hire", type=InterviewType.INTERVIEW, status=CandidateStatus.INTERVIEW_COMPLETE):
        candidate = make_candidate(status=status)
        make_interview(
            candidate,
            type=type,
            status=InterviewStatus.COMPLETED,
            scheduled_date=now - timedelta(days=1),
            feedback=submitted_feedback(recommendation),
        )
        return candidate
    return _make


def _actions(db_session, candidate):
    return [e.action for e in activity_crud.get_for_entity(db_session, "candidate", candidate.id)]


class TestApprove:
    def test_approve_moves_candidate_and_logs(self, pipeline, db_session, ready_candidate, recruiter, now):
        candidate = ready_candidate()

        result = pipeline.approve(candidate.id, recruiter)

        assert result.status == CandidateStatus.APPROVED
        assert result.approved_at == now
        entries = activity_crud.get_for_entity(db_session, "candidate", candidate.id)
        assert len(entries) == 1
        assert entries[0].description == "Status changed to approved from Ready for Decision"

    def test_approve_after_trial(self, pipeline, ready_candidate, recruiter):
        candidate = ready_candidate("maybe", type=InterviewType.TRIAL, status=CandidateStatus.TRIAL_COMPLETE)

        assert pipeline.approve(candidate.id, recruiter).status == CandidateStatus.APPROVED

    def test_approve_without_eligible_feedback_fails(self, pipeline, make_candidate, recruiter):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)

        with pytest.raises(PreconditionError):
            pipeline.approve(candidate.id, recruiter)

    def test_do_not_hire_is_not_decidable(self, pipeline, ready_candidate, recruiter):
        candidate = ready_candidate("do_not_hire")

        with pytest.raises(PreconditionError):
            pipeline.approve(candidate.id, recruiter)

    def test_approve_from_wrong_status_conflicts(self, pipeline, ready_candidate, recruiter):
        candidate = ready_candidate(status=CandidateStatus.INTERVIEW_SCHEDULED)

        with pytest.raises(ConflictError):
            pipeline.approve(candidate.id, recruiter)

    def test_viewer_cannot_approve(self, pipeline, ready_candidate, viewer):
        candidate = ready_candidate()

        with pytest.raises(PermissionDeniedError):
            pipeline.approve(candidate.id, viewer)

    def test_unknown_candidate(self, pipeline, recruiter):
        with pytest.raises(NotFoundError):
            pipeline.approve("missing", recruiter)


class TestReject:
    def test_reject_sends_email_and_logs(self, pipeline, db_session, ready_candidate, recruiter, notifier, now):
        candidate = ready_candidate("maybe")

        result = pipeline.reject(candidate.id, recruiter, send_email=True, message="We went with someone else")

        assert result.status == CandidateStatus.REJECTED
        assert result.rejected_at == now
        assert result.rejection_reason == "We went with someone else"
        assert notifier.calls == [(candidate.id, "rejection", {"message": "We went with someone else"})]
        assert _actions(db_session, candidate) == [ActivityAction.STATUS_CHANGED, ActivityAction.MESSAGE_SENT]

    def test_reject_without_email(self, pipeline, db_session, ready_candidate, recruiter, notifier):
        candidate = ready_candidate()

        pipeline.reject(candidate.id, recruiter, send_email=False)

        assert notifier.calls == []
        assert _actions(db_session, candidate) == [ActivityAction.STATUS_CHANGED]

    def test_reject_sends_no_email_by_default(self, pipeline, db_session, ready_candidate, recruiter, notifier):
        candidate = ready_candidate()

        result = pipeline.reject(candidate.id, recruiter)

        assert result.status == CandidateStatus.REJECTED
        assert notifier.calls == []
        assert _actions(db_session, candidate) == [ActivityAction.STATUS_CHANGED]

    def test_email_failure_does_not_undo_rejection(self, pipeline, db_session, ready_candidate, recruiter, notifier):
        notifier.fail = True
        candidate = ready_candidate()

        result = pipeline.reject(candidate.id, recruiter, send_email=True)

        db_session.refresh(candidate)
        assert result.status == CandidateStatus.REJECTED
        assert candidate.status == CandidateStatus.REJECTED
        assert _actions(db_session, candidate) == [ActivityAction.STATUS_CHANGED]


class TestScheduleTrial:
    def test_schedule_trial_after_interview(self, pipeline, ready_candidate, recruiter):
        candidate = ready_candidate()

        assert pipeline.schedule_trial(candidate.id, recruiter).status == CandidateStatus.TRIAL_SCHEDULED

    def test_schedule_trial_after_trial_is_refused(self, pipeline, ready_candidate, recruiter):
        candidate = ready_candidate(type=InterviewType.TRIAL, status=CandidateStatus.TRIAL_COMPLETE)

        with pytest.raises(PreconditionError):
            pipeline.schedule_trial(candidate.id, recruiter)

    def test_latest_outcome_decides_trial_eligibility(self, pipeline, make_candidate, make_interview, recruiter, now):
        """An interview feedback newer than the trial makes a further trial possible"""
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)
        make_interview(
            candidate, type=InterviewType.TRIAL, status=InterviewStatus.COMPLETED,
            scheduled_date=now - timedelta(days=10), feedback=submitted_feedback("hire"),
        )
        make_interview(
            candidate, status=InterviewStatus.COMPLETED,
            scheduled_date=now - timedelta(days=1), feedback=submitted_feedback("maybe"),
        )

        assert pipeline.schedule_trial(candidate.id, recruiter).status == CandidateStatus.TRIAL_SCHEDULED


class TestManualReject:
    @pytest.mark.parametrize("status", [
        CandidateStatus.NEW,
        CandidateStatus.SCREENING,
        CandidateStatus.INTERVIEW_SCHEDULED,
        CandidateStatus.TRIAL_COMPLETE,
    ])
    def test_reject_live_candidate(self, pipeline, make_candidate, recruiter, notifier, status):
        candidate = make_candidate(status=status)

        result = pipeline.reject_candidate(candidate.id, recruiter, reason="Not eligible to work")

        assert result.status == CandidateStatus.REJECTED
        assert result.rejection_reason == "Not eligible to work"
        assert notifier.calls == []

    def test_reject_do_not_hire_outcome(self, pipeline, ready_candidate, recruiter, notifier):
        candidate = ready_candidate("do_not_hire")

        pipeline.reject_candidate(candidate.id, recruiter, send_email=True)

        assert notifier.calls[0][1] == "rejection"

    @pytest.mark.parametrize("status", [
        CandidateStatus.APPROVED,
        CandidateStatus.REJECTED,
        CandidateStatus.WITHDRAWN,
        CandidateStatus.ARCHIVED,
    ])
    def test_terminal_statuses_conflict(self, pipeline, make_candidate, recruiter, status):
        candidate = make_candidate(status=status, archived=status == CandidateStatus.ARCHIVED)

        with pytest.raises(ConflictError):
            pipeline.reject_candidate(candidate.id, recruiter)


class TestAdvanceOnBooking:
    def test_interview_booking_moves_new_candidate(self, make_candidate):
        candidate = make_candidate()

        assert advance_on_booking(candidate, InterviewType.INTERVIEW) is True
        assert candidate.status == CandidateStatus.INTERVIEW_SCHEDULED

    def test_trial_booking_moves_interviewed_candidate(self, make_candidate):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_COMPLETE)

        assert advance_on_booking(candidate, InterviewType.TRIAL) is True
        assert candidate.status == CandidateStatus.TRIAL_SCHEDULED

    def test_booking_never_moves_backwards(self, make_candidate):
        candidate = make_candidate(status=CandidateStatus.TRIAL_COMPLETE)

        assert advance_on_booking(candidate, InterviewType.INTERVIEW) is False
        assert candidate.status == CandidateStatus.TRIAL_COMPLETE

    def test_archived_candidate_is_left_alone(self, make_candidate):
        candidate = make_candidate(status=CandidateStatus.ARCHIVED, archived=True)

        assert advance_on_booking(candidate, InterviewType.INTERVIEW) is False
