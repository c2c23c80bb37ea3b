"""
Self-service booking through a booking link.

A submission must present an active, unexpired link with uses left and pick
a slot that is still available. It then creates the interview, consumes the
link and moves the candidate to the matching *_scheduled status, all in one
commit.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional

import pytz
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError, ExternalServiceError, NotFoundError, PreconditionError, ValidationError
from app.core.timeutils import to_naive_utc, utcnow
from app.crud import activity_log as activity_crud
from app.crud import booking_link as booking_link_crud
from app.crud import candidate as candidate_crud
from app.crud import interview as interview_crud
from app.models.activity_log import ActivityAction
from app.models.booking_link import BookingLink, BookingLinkStatus
from app.models.interview import BookingSource, Interview, InterviewType
from app.services.candidate_pipeline import advance_on_booking
from app.services.messaging import Notifier, notify_candidate
from app.services.slot_generator import TimeSlot, generate_slots

logger = logging.getLogger(__name__)


def slot_settings(interview_type: InterviewType) -> Dict:
    """Configured schedule, duration, buffer and notice for an interview type."""
    if interview_type == InterviewType.TRIAL:
        return {
            "weekly_schedule": settings.TRIAL_SCHEDULE,
            "slot_duration_minutes": settings.TRIAL_SLOT_DURATION,
            "buffer_minutes": settings.TRIAL_BUFFER_MINUTES,
            "min_notice_hours": settings.TRIAL_MIN_NOTICE_HOURS,
        }
    return {
        "weekly_schedule": settings.INTERVIEW_SCHEDULE,
        "slot_duration_minutes": settings.INTERVIEW_SLOT_DURATION,
        "buffer_minutes": settings.INTERVIEW_BUFFER_MINUTES,
        "min_notice_hours": settings.INTERVIEW_MIN_NOTICE_HOURS,
    }


def _local_day_bounds(day: date) -> tuple:
    tz = pytz.timezone(settings.BOOKING_TIMEZONE)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return to_naive_utc(start), to_naive_utc(end)


def available_slots(db: Session, day: date, interview_type: InterviewType, now: datetime) -> List[TimeSlot]:
    """
    Slot grid for a day, checked against every interview already booked that day.
    """
    day_start, day_end = _local_day_bounds(day)
    # Widen by the longest slot so bookings spilling over midnight still block
    window = timedelta(minutes=settings.TRIAL_SLOT_DURATION)
    booked = interview_crud.get_booked_between(db, day_start - window, day_end)
    return generate_slots(
        day,
        existing_bookings=[(b.scheduled_date, b.end_date) for b in booked],
        now=now,
        timezone=settings.BOOKING_TIMEZONE,
        **slot_settings(interview_type),
    )


def expire_booking_links(db: Session, now: Optional[datetime] = None) -> int:
    """Flip every active link past its expiry to expired."""
    count = booking_link_crud.expire_overdue(db, now or utcnow())
    if count:
        logger.info(f"Expired {count} booking links")
    return count


class BookingService:
    """
    Args:
        db: Database session
        clock: Returns the current naive UTC time
        notifier: Sends the booking confirmation, best-effort
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        notifier: Notifier = notify_candidate,
    ):
        self.db = db
        self.clock = clock
        self.notifier = notifier

    def validate_token(self, token: str) -> BookingLink:
        """
        Resolve a raw token to a usable booking link.

        An expired link found here is flipped to expired before rejecting it.

        Raises:
            NotFoundError: Unknown, inactive or expired link
            PreconditionError: Link has no uses left
        """
        link = booking_link_crud.get_by_token(self.db, token) if token else None
        if link is None or link.status != BookingLinkStatus.ACTIVE:
            raise NotFoundError("Invalid or expired booking link")

        if link.expires_at < self.clock():
            link.status = BookingLinkStatus.EXPIRED
            self.db.commit()
            logger.info(f"Booking link {link.id} expired on use")
            raise NotFoundError("Booking link has expired")

        if link.use_count >= link.max_uses:
            raise PreconditionError("Booking link has already been used")
        return link

    def submit(self, token: str, day: date, time_of_day: str) -> Interview:
        """
        Book the slot starting at `time_of_day` (local "HH:MM") on `day`.

        Raises:
            NotFoundError: Bad link or candidate gone
            PreconditionError: Link used up or candidate archived
            ValidationError: Malformed time
            ConflictError: Slot not offered or no longer available
        """
        link = self.validate_token(token)
        candidate = candidate_crud.get_by_id(self.db, link.candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate for this booking link no longer exists")
        if candidate.archived:
            raise PreconditionError("Candidate is archived")

        now = self.clock()
        slots = available_slots(self.db, day, link.type, now)
        slot = next((s for s in slots if s.time == time_of_day), None)
        if slot is None:
            if not _is_hhmm(time_of_day):
                raise ValidationError(f"Invalid time of day: {time_of_day!r}")
            raise ConflictError(f"{time_of_day} on {day.isoformat()} is not a bookable slot")
        if not slot.available:
            raise ConflictError(f"{time_of_day} on {day.isoformat()} is no longer available")

        try:
            interview = interview_crud.create(
                self.db,
                candidate_id=candidate.id,
                scheduled_date=slot.start,
                duration=slot_settings(link.type)["slot_duration_minutes"],
                type=link.type,
                candidate_name=link.candidate_name or candidate.full_name,
                job_title=link.job_title or candidate.job_title,
                branch_name=link.branch_name or candidate.branch_name,
                booked_via=BookingSource.SELF_SERVICE,
                booking_link_id=link.id,
                commit=False,
            )
            link.use_count = (link.use_count or 0) + 1
            link.used_at = now
            link.interview_id = interview.id
            if link.use_count >= link.max_uses:
                link.status = BookingLinkStatus.USED
            advance_on_booking(candidate, link.type)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(interview)
        logger.info(f"Booking link {link.id} used: {link.type.value} {interview.id} at {slot.start.isoformat()}")
        activity_crud.create(
            self.db,
            entity_type="candidate",
            entity_id=candidate.id,
            action=ActivityAction.BOOKING_LINK_USED,
            description=f"{link.type.value.title()} booked for {day.strftime('%d %b %Y')} at {time_of_day}",
            details={"interview_id": interview.id, "booking_link_id": link.id},
        )

        try:
            self.notifier(candidate.id, "booking_confirmation", {
                "interview_type": link.type.value,
                "scheduled_for": f"{day.strftime('%A %d %B %Y')} at {time_of_day}",
            })
        except ExternalServiceError as e:
            logger.error(f"Booking confirmation for candidate {candidate.id} not sent: {e.detail}")
        return interview


def _is_hhmm(value: str) -> bool:
    try:
        datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        return False
    return True
