"""
Unit tests for archive, restore, returning applicants and deletion.

Tests:
- Archive cascade over interviews and booking links
- Restore to the archived-from status
- Returning applicant lookup and reactivation
- Hard delete guard, the ORM deletion backstop and the orphan sweep
"""

from datetime import timedelta

import pytest

from app.core.exceptions import NotFoundError, PermissionDeniedError, PreconditionError, ValidationError
from app.crud import activity_log as activity_crud
from app.models.activity_log import ActivityAction, ActivityLog
from app.models.booking_link import BookingLink, BookingLinkStatus
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import Interview, InterviewStatus
from app.services.archive_manager import ArchiveManager, cleanup_orphaned_records


@pytest.fixture
def manager(db_session, clock):
    return ArchiveManager(db_session, clock=clock)


@pytest.fixture
def archived_candidate(manager, make_candidate, recruiter):
    candidate = make_candidate(status=CandidateStatus.INTERVIEW_SCHEDULED)
    return manager.archive(candidate.id, recruiter, reason="Position filled")


class TestArchive:
    def test_archive_cascades_to_interviews_and_links(
        self, manager, db_session, make_candidate, make_interview, make_booking_link, recruiter, now,
    ):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_SCHEDULED)
        first = make_interview(candidate)
        second = make_interview(candidate, scheduled_date=now + timedelta(days=4))
        link, _ = make_booking_link(candidate)

        result = manager.archive(candidate.id, recruiter, reason="Position filled")

        assert result.archived is True
        assert result.status == CandidateStatus.ARCHIVED
        assert result.previous_status == CandidateStatus.INTERVIEW_SCHEDULED
        assert result.archived_by == recruiter.id
        assert result.archived_at == now
        for interview in (first, second):
            db_session.refresh(interview)
            assert interview.status == InterviewStatus.CANCELLED
            assert interview.cancellation_reason == "Candidate archived"
        db_session.refresh(link)
        assert link.status == BookingLinkStatus.REVOKED

        entries = activity_crud.get_for_entity(db_session, "candidate", candidate.id)
        assert len(entries) == 1
        assert entries[0].details["interviews_cancelled"] == 2
        assert entries[0].details["booking_links_revoked"] == 1

    def test_archive_cancels_lapsed_but_not_completed(self, manager, db_session, make_candidate, make_interview, recruiter, now):
        candidate = make_candidate()
        lapsed = make_interview(candidate, status=InterviewStatus.LAPSED, scheduled_date=now - timedelta(days=3))
        done = make_interview(candidate, status=InterviewStatus.COMPLETED, scheduled_date=now - timedelta(days=5))

        manager.archive(candidate.id, recruiter)

        db_session.refresh(lapsed)
        db_session.refresh(done)
        assert lapsed.status == InterviewStatus.CANCELLED
        assert done.status == InterviewStatus.COMPLETED

    def test_archive_leaves_used_links(self, manager, db_session, make_candidate, make_booking_link, recruiter):
        candidate = make_candidate()
        link, _ = make_booking_link(candidate)
        link.status = BookingLinkStatus.USED
        db_session.commit()

        manager.archive(candidate.id, recruiter)

        db_session.refresh(link)
        assert link.status == BookingLinkStatus.USED

    def test_archive_again_is_quiet(self, manager, db_session, archived_candidate, recruiter):
        result = manager.archive(archived_candidate.id, recruiter)

        assert result.previous_status == CandidateStatus.INTERVIEW_SCHEDULED
        assert result.archived_reason == "Position filled"
        assert len(activity_crud.get_for_entity(db_session, "candidate", archived_candidate.id)) == 1

    def test_archive_again_finishes_partial_cascade(self, manager, db_session, archived_candidate, make_interview, recruiter):
        """An interview left open by an interrupted archive is cancelled on retry"""
        straggler = make_interview(archived_candidate)

        manager.archive(archived_candidate.id, recruiter)

        db_session.refresh(straggler)
        assert straggler.status == InterviewStatus.CANCELLED
        assert len(activity_crud.get_for_entity(db_session, "candidate", archived_candidate.id)) == 2

    def test_viewer_cannot_archive(self, manager, make_candidate, viewer):
        with pytest.raises(PermissionDeniedError):
            manager.archive(make_candidate().id, viewer)

    def test_unknown_candidate(self, manager, recruiter):
        with pytest.raises(NotFoundError):
            manager.archive("missing", recruiter)


class TestRestore:
    def test_restore_returns_to_previous_status(self, manager, archived_candidate, recruiter, now):
        result = manager.restore(archived_candidate.id, recruiter)

        assert result.status == CandidateStatus.INTERVIEW_SCHEDULED
        assert result.archived is False
        assert result.archived_at is None
        assert result.previous_status is None
        assert result.restored_at == now
        assert result.restored_by == recruiter.id

    def test_restore_without_snapshot_falls_back_to_new(self, manager, make_candidate, recruiter):
        candidate = make_candidate(status=CandidateStatus.ARCHIVED, archived=True)

        assert manager.restore(candidate.id, recruiter).status == CandidateStatus.NEW

    def test_restore_does_not_reopen_cancelled_interviews(
        self, manager, db_session, make_candidate, make_interview, recruiter,
    ):
        candidate = make_candidate(status=CandidateStatus.INTERVIEW_SCHEDULED)
        interview = make_interview(candidate)
        manager.archive(candidate.id, recruiter)

        manager.restore(candidate.id, recruiter)

        db_session.refresh(interview)
        assert interview.status == InterviewStatus.CANCELLED

    def test_restore_live_candidate_fails(self, manager, make_candidate, recruiter):
        with pytest.raises(PreconditionError, match="not archived"):
            manager.restore(make_candidate().id, recruiter)


class TestReturningApplicant:
    def test_match_by_email_is_case_insensitive(self, manager, make_candidate):
        candidate = make_candidate(email="sam.jones@example.com", application_count=2)

        result = manager.check_returning("  Sam.Jones@Example.com ")

        assert result.is_returning is True
        assert result.candidate["id"] == candidate.id
        assert result.candidate["application_count"] == 2
        assert result.candidate["previous_status"] == "new"

    def test_match_by_phone_when_email_differs(self, manager, make_candidate):
        candidate = make_candidate(phone="+44 7700 900123")

        result = manager.check_returning("someone.else@example.com", phone="447700900123")

        assert result.candidate["id"] == candidate.id

    def test_archived_match_reports_status_before_archive(self, manager, archived_candidate):
        result = manager.check_returning(archived_candidate.email)

        assert result.candidate["archived"] is True
        assert result.candidate["previous_status"] == "interview_scheduled"

    def test_no_match(self, manager, make_candidate):
        make_candidate()

        assert manager.check_returning("new.person@example.com").is_returning is False

    def test_email_required(self, manager):
        with pytest.raises(ValidationError):
            manager.check_returning("   ")

    def test_lookup_writes_nothing(self, manager, db_session, make_candidate):
        candidate = make_candidate()
        before = candidate.updated_at

        manager.check_returning(candidate.email)

        db_session.refresh(candidate)
        assert candidate.updated_at == before
        assert db_session.query(ActivityLog).count() == 0


class TestReactivate:
    def test_reactivate_archived_candidate(self, manager, db_session, archived_candidate, recruiter, now):
        archived_candidate.application_count = 2
        db_session.commit()

        result = manager.reactivate(
            archived_candidate.id,
            recruiter,
            cv_url="https://files.example.com/cv.pdf",
            cv_file_name="cv.pdf",
            overrides={"phone": "07700 900999", "job_title": "Supervisor"},
        )

        assert result.status == CandidateStatus.NEW
        assert result.archived is False
        assert result.application_count == 3
        assert result.is_returning_candidate is True
        assert result.last_application_at == now
        assert result.job_title == "Supervisor"
        assert result.phone_normalized == "07700900999"
        assert result.cv_file_name == "cv.pdf"
        actions = [e.action for e in activity_crud.get_for_entity(db_session, "candidate", archived_candidate.id)]
        assert actions[-2:] == [ActivityAction.UPDATED, ActivityAction.CV_UPLOADED]

    def test_repeat_within_debounce_window_is_ignored(self, manager, make_candidate, recruiter):
        candidate = make_candidate(status=CandidateStatus.REJECTED)

        manager.reactivate(candidate.id, recruiter)
        result = manager.reactivate(candidate.id, recruiter)

        assert result.application_count == 2

    def test_repeat_after_debounce_window_counts(self, db_session, make_candidate, recruiter, now):
        candidate = make_candidate(status=CandidateStatus.REJECTED)
        ArchiveManager(db_session, clock=lambda: now).reactivate(candidate.id, recruiter)

        later = now + timedelta(minutes=5)
        result = ArchiveManager(db_session, clock=lambda: later).reactivate(candidate.id, recruiter)

        assert result.application_count == 3

    def test_overrides_refresh_display_cache(self, manager, db_session, make_candidate, make_interview, make_booking_link, recruiter):
        candidate = make_candidate(status=CandidateStatus.REJECTED)
        interview = make_interview(candidate, status=InterviewStatus.COMPLETED)
        link, _ = make_booking_link(candidate)

        manager.reactivate(candidate.id, recruiter, overrides={"last_name": "Morgan", "branch_name": "Camden"})

        db_session.refresh(interview)
        db_session.refresh(link)
        assert interview.candidate_name == "Alex Morgan"
        assert interview.branch_name == "Camden"
        assert link.candidate_name == "Alex Morgan"

    def test_unknown_override_is_rejected(self, manager, make_candidate, recruiter):
        candidate = make_candidate()

        with pytest.raises(ValidationError):
            manager.reactivate(candidate.id, recruiter, overrides={"status": "approved"})


class TestHardDelete:
    def test_live_candidate_cannot_be_deleted(self, manager, db_session, make_candidate, make_interview, super_admin):
        candidate = make_candidate()
        make_interview(candidate)

        with pytest.raises(PreconditionError, match="must be archived"):
            manager.hard_delete(candidate.id, super_admin, confirm=True)

        assert db_session.query(Candidate).count() == 1
        assert db_session.query(Interview).count() == 1
        assert db_session.query(ActivityLog).count() == 0

    def test_confirmation_required(self, manager, archived_candidate, super_admin):
        with pytest.raises(ValidationError):
            manager.hard_delete(archived_candidate.id, super_admin)

    def test_recruiter_cannot_delete(self, manager, archived_candidate, recruiter):
        with pytest.raises(PermissionDeniedError):
            manager.hard_delete(archived_candidate.id, recruiter, confirm=True)

    def test_delete_removes_candidate_and_children(
        self, manager, db_session, make_candidate, make_interview, make_booking_link, recruiter, super_admin,
    ):
        candidate = make_candidate()
        make_interview(candidate)
        make_interview(candidate, status=InterviewStatus.COMPLETED)
        make_booking_link(candidate)
        manager.archive(candidate.id, recruiter)

        result = manager.hard_delete(candidate.id, super_admin, confirm=True)

        assert result == {"candidate_id": candidate.id, "interviews_deleted": 2, "booking_links_deleted": 1}
        assert db_session.query(Candidate).count() == 0
        assert db_session.query(Interview).count() == 0
        assert db_session.query(BookingLink).count() == 0
        deleted = [e for e in activity_crud.get_for_entity(db_session, "candidate", candidate.id)
                   if e.action == ActivityAction.DELETED]
        assert len(deleted) == 1


class TestDeletionBackstop:
    def test_orm_delete_removes_children(self, db_session, make_candidate, make_interview, make_booking_link):
        candidate = make_candidate()
        candidate_id = candidate.id
        make_interview(candidate)
        make_booking_link(candidate)

        db_session.delete(candidate)
        db_session.commit()

        assert db_session.query(Interview).count() == 0
        assert db_session.query(BookingLink).count() == 0
        entry = db_session.query(ActivityLog).filter(ActivityLog.entity_id == candidate_id).one()
        assert entry.action == ActivityAction.DELETED
        assert entry.details["cascade_deletion"] is True
        assert entry.details["interviews_deleted"] == 1

    def test_orm_delete_without_children_logs_nothing(self, db_session, make_candidate):
        candidate = make_candidate()

        db_session.delete(candidate)
        db_session.commit()

        assert db_session.query(ActivityLog).count() == 0


class TestOrphanSweep:
    def test_bulk_deleted_candidate_children_are_swept(self, db_session, make_candidate, make_interview, make_booking_link):
        orphaned = make_candidate()
        kept = make_candidate()
        make_interview(orphaned)
        make_booking_link(orphaned)
        survivor = make_interview(kept)
        db_session.query(Candidate).filter(Candidate.id == orphaned.id).delete(synchronize_session=False)
        db_session.commit()

        result = cleanup_orphaned_records(db_session)

        assert result == {"interviews_deleted": 1, "booking_links_deleted": 1}
        assert [i.id for i in db_session.query(Interview).all()] == [survivor.id]

    def test_sweep_with_nothing_to_do(self, db_session, make_candidate, make_interview):
        make_interview(make_candidate())

        assert cleanup_orphaned_records(db_session) == {"interviews_deleted": 0, "booking_links_deleted": 0}
