"""
Reliable task queueing from request handlers.

Tasks are published on a fresh kombu connection from a small thread pool,
so a stale broker connection or uvicorn's event loop never blocks a
lifecycle action.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Tuple
from celery import Task
from kombu import Connection

from app.core.config import settings

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="celery_queue")

QUEUE_TIMEOUT_SECONDS = 5


def _queue_task_sync(task: Task, args: tuple, kwargs: dict) -> Tuple[bool, str, str]:
    """
    Publish a task on a dedicated broker connection.

    Returns:
        Tuple[bool, str, str]: (success, task_id, error_message)
    """
    try:
        with Connection(settings.REDIS_URL) as conn:
            result = task.apply_async(
                args=args,
                kwargs=kwargs,
                connection=conn,
                retry=True,
                retry_policy={
                    'max_retries': 3,
                    'interval_start': 0,
                    'interval_step': 0.2,
                    'interval_max': 0.2,
                }
            )
            return (True, result.id, "")
    except Exception as e:
        return (False, "", str(e))


def queue_task_safely(task: Task, *args, **kwargs) -> bool:
    """
    Queue a Celery task without letting broker trouble escape.

    Args:
        task: The Celery task to queue
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        bool: True if the broker accepted the task, False otherwise

    Example:
        queue_task_safely(
            send_candidate_email_task,
            candidate_id=candidate.id,
            template_type="rejection",
        )
    """
    future = _executor.submit(_queue_task_sync, task, args, kwargs)
    try:
        success, task_id, error = future.result(timeout=QUEUE_TIMEOUT_SECONDS)
    except FutureTimeout:
        success, task_id, error = False, "", f"broker did not answer within {QUEUE_TIMEOUT_SECONDS}s"

    if success:
        logger.info(f"Task {task.name} queued successfully: {task_id}")
        return True

    logger.error(f"Failed to queue task {task.name}: {error}")
    return False
