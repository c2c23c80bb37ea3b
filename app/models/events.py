"""
Deletion backstop for candidates.

When a Candidate row is deleted through the ORM by any path other than the
managed hard delete, its interviews and booking links would be left behind.
This listener removes them on the same connection and, if it removed
anything, records a cascade entry in the activity log.

Deletes that bypass the ORM entirely are covered by the orphan sweep in
app/tasks/booking_tasks.py.
"""

import logging
from sqlalchemy import event
from app.models.activity_log import ActivityAction, ActivityLog
from app.models.booking_link import BookingLink
from app.models.candidate import Candidate
from app.models.interview import Interview

logger = logging.getLogger(__name__)


@event.listens_for(Candidate, "after_delete")
def cascade_candidate_children(mapper, connection, target):
    interviews = connection.execute(
        Interview.__table__.delete().where(Interview.__table__.c.candidate_id == target.id)
    ).rowcount
    links = connection.execute(
        BookingLink.__table__.delete().where(BookingLink.__table__.c.candidate_id == target.id)
    ).rowcount

    if not interviews and not links:
        return

    connection.execute(
        ActivityLog.__table__.insert().values(
            entity_type="candidate",
            entity_id=target.id,
            action=ActivityAction.DELETED,
            description=f"Cascade deletion: removed {interviews} interviews and {links} booking links",
            details={"cascade_deletion": True, "interviews_deleted": interviews, "booking_links_deleted": links},
        )
    )
    logger.warning(
        f"Candidate {target.id} deleted outside hard delete: "
        f"cascade removed {interviews} interviews, {links} booking links"
    )
