"""
Activity log access. Append and read only.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from app.models.activity_log import ActivityAction, ActivityLog
from app.models.user import User


def create(
    db: Session,
    *,
    entity_type: str,
    entity_id: str,
    action: ActivityAction,
    description: str,
    user: Optional[User] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """
    Append an audit entry and commit it.

    Args:
        db: Database session
        entity_type: "candidate", "interview" or "booking_link"
        entity_id: Id of the affected entity
        action: Closed action enum
        description: Human readable summary
        user: Acting user, None for system sweeps
        details: Optional structured payload (counts, ids)

    Returns:
        The persisted entry
    """
    entry = ActivityLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        description=description,
        user_id=user.id if user else None,
        user_name=user.display_name if user else "System",
        details=details,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_for_entity(db: Session, entity_type: str, entity_id: str) -> List[ActivityLog]:
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
        .order_by(ActivityLog.created_at.asc())
        .all()
    )
