"""
Celery application configuration.

Redis is both broker and result backend. Beat drives the periodic sweeps:
lapsed interviews and feedback reminders four times a day, expired booking
links hourly, orphaned records and the interview display cache nightly.
"""

from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

celery_app = Celery(
    "recruitment_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.email_tasks", "app.tasks.interview_tasks", "app.tasks.booking_tasks"],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=240,

    # Result backend
    result_expires=3600,

    # Worker behavior
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,

    beat_schedule={
        "mark-lapsed-interviews": {
            "task": "mark_lapsed_interviews_task",
            "schedule": crontab(minute=0, hour="0,6,12,18"),
        },
        "send-feedback-reminders": {
            "task": "send_feedback_reminders_task",
            "schedule": crontab(minute=5, hour="0,6,12,18"),
        },
        "expire-booking-links": {
            "task": "expire_booking_links_task",
            "schedule": crontab(minute=15),
        },
        "cleanup-orphaned-records": {
            "task": "cleanup_orphaned_records_task",
            "schedule": crontab(minute=30, hour=2),
        },
        "reconcile-display-cache": {
            "task": "reconcile_display_cache_task",
            "schedule": crontab(minute=0, hour=3),
        },
    },
)
