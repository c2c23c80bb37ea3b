"""
Outbound messaging collaborator.

Lifecycle services receive a notifier callable
`(candidate_id, template_type, custom_data) -> None` and treat any
ExternalServiceError it raises as best-effort: logged, never rolled back.
"""

import logging
from typing import Callable, Optional

from app.core.celery_utils import queue_task_safely
from app.core.exceptions import ExternalServiceError
from app.tasks.email_tasks import send_candidate_email_task

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, Optional[dict]], None]


def notify_candidate(candidate_id: str, template_type: str, custom_data: Optional[dict] = None) -> None:
    """
    Queue a templated candidate email.

    Raises:
        ExternalServiceError: The task could not be handed to the broker
    """
    queued = queue_task_safely(
        send_candidate_email_task,
        candidate_id=candidate_id,
        template_type=template_type,
        custom_data=custom_data or {},
    )
    if not queued:
        raise ExternalServiceError(f"Could not queue '{template_type}' email for candidate {candidate_id}")
