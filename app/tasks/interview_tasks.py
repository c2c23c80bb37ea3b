"""
Periodic interview sweeps.
"""

import logging
from app.core.celery_app import celery_app
from app.core.celery_utils import queue_task_safely
from app.core.database import SessionLocal
from app.services.interview_lifecycle import (
    claim_feedback_reminders,
    mark_lapsed_interviews,
    reconcile_display_cache,
)
from app.tasks.email_tasks import send_feedback_reminder_task

logger = logging.getLogger(__name__)


@celery_app.task(name="mark_lapsed_interviews_task")
def mark_lapsed_interviews_task():
    """Flag scheduled interviews whose start is long past as lapsed."""
    db = SessionLocal()
    try:
        count = mark_lapsed_interviews(db)
        return {"status": "success", "lapsed": count}
    except Exception as e:
        db.rollback()
        logger.error(f"Lapse sweep failed: {str(e)}")
        raise
    finally:
        db.close()


@celery_app.task(name="send_feedback_reminders_task")
def send_feedback_reminders_task():
    """
    Queue a reminder for each interview still waiting for feedback.

    Interviews are flagged before their reminder is queued, so a reminder
    that fails to queue is not retried by the next sweep.
    """
    db = SessionLocal()
    try:
        interview_ids = claim_feedback_reminders(db)
    except Exception as e:
        db.rollback()
        logger.error(f"Feedback reminder sweep failed: {str(e)}")
        raise
    finally:
        db.close()

    queued = sum(1 for interview_id in interview_ids if queue_task_safely(send_feedback_reminder_task, interview_id))
    if queued < len(interview_ids):
        logger.error(f"Only {queued} of {len(interview_ids)} feedback reminders were queued")
    return {"status": "success", "claimed": len(interview_ids), "queued": queued}


@celery_app.task(name="reconcile_display_cache_task")
def reconcile_display_cache_task():
    db = SessionLocal()
    try:
        count = reconcile_display_cache(db)
        return {"status": "success", "refreshed": count}
    except Exception as e:
        db.rollback()
        logger.error(f"Display cache reconciliation failed: {str(e)}")
        raise
    finally:
        db.close()
