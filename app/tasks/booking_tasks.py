"""
Periodic booking link and consistency sweeps.
"""

import logging
from app.core.celery_app import celery_app
from app.core.database import SessionLocal
from app.services.archive_manager import cleanup_orphaned_records
from app.services.booking import expire_booking_links

logger = logging.getLogger(__name__)


@celery_app.task(name="expire_booking_links_task")
def expire_booking_links_task():
    db = SessionLocal()
    try:
        count = expire_booking_links(db)
        return {"status": "success", "expired": count}
    except Exception as e:
        db.rollback()
        logger.error(f"Booking link expiry sweep failed: {str(e)}")
        raise
    finally:
        db.close()


@celery_app.task(name="cleanup_orphaned_records_task")
def cleanup_orphaned_records_task():
    """Remove interviews and booking links left behind by out-of-band candidate deletes."""
    db = SessionLocal()
    try:
        result = cleanup_orphaned_records(db)
        return {"status": "success", **result}
    except Exception as e:
        db.rollback()
        logger.error(f"Orphan sweep failed: {str(e)}")
        raise
    finally:
        db.close()
