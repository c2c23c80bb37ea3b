"""
Celery tasks for outbound email.

Candidate emails are addressed by candidate id; the task resolves the
current email address and name at send time.
"""

import logging
from typing import Optional
from celery import shared_task
from app.core.database import SessionLocal
from app.core.config import settings
from app.crud import candidate as candidate_crud
from app.crud import interview as interview_crud
from app.services.email_service import email_service

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name="send_candidate_email_task",
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True
)
def send_candidate_email_task(self, candidate_id: str, template_type: str, custom_data: Optional[dict] = None):
    """
    Send a templated email to a candidate.

    Args:
        candidate_id: Recipient candidate
        template_type: Template key (rejection, booking_confirmation, ...)
        custom_data: Extra placeholder values, override candidate fields

    Raises:
        ConnectionError: SES refused the message; retried with backoff
    """
    db = SessionLocal()
    try:
        candidate = candidate_crud.get_by_id(db, candidate_id)
        if candidate is None:
            logger.warning(f"Skipping '{template_type}' email: candidate {candidate_id} no longer exists")
            return {"status": "skipped", "candidate_id": candidate_id}

        context = {
            "first_name": candidate.first_name,
            "last_name": candidate.last_name,
            "candidate_name": candidate.full_name,
            "job_title": candidate.job_title or "the role",
            "branch_name": candidate.branch_name,
        }
        context.update(custom_data or {})

        logger.info(f"Sending '{template_type}' email to candidate {candidate_id} (attempt {self.request.retries + 1})")
        if not email_service.send_templated_email(candidate.email, template_type, context):
            raise ConnectionError(f"SES did not accept '{template_type}' email for candidate {candidate_id}")

        return {"status": "success", "candidate_id": candidate_id, "template_type": template_type}
    finally:
        db.close()


@shared_task(
    bind=True,
    name="send_feedback_reminder_task",
    max_retries=3,
    autoretry_for=(ConnectionError,),
    retry_backoff=True,
)
def send_feedback_reminder_task(self, interview_id: str):
    """Remind the recruitment team that an interview still has no feedback."""
    db = SessionLocal()
    try:
        interview = interview_crud.get_by_id(db, interview_id)
        if interview is None:
            return {"status": "skipped", "interview_id": interview_id}

        context = {
            "candidate_name": interview.candidate_name,
            "job_title": interview.job_title,
            "interview_type": interview.type.value,
            "scheduled_for": interview.scheduled_date.strftime("%d %b %Y %H:%M UTC"),
        }
        if not email_service.send_templated_email(settings.RECRUITMENT_TEAM_EMAIL, "feedback_reminder", context):
            raise ConnectionError(f"SES did not accept feedback reminder for interview {interview_id}")

        return {"status": "success", "interview_id": interview_id}
    finally:
        db.close()
