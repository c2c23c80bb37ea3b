"""
Celery tasks package.

Tasks are organized by domain:
- email_tasks: candidate emails and feedback reminders via SES
- interview_tasks: lapse and feedback-reminder sweeps
- booking_tasks: booking link expiry and orphan cleanup

Modules are registered through `include` in app/core/celery_app.py rather
than imported here, since services import email_tasks directly.
"""
