"""
Self-service booking submission. Authorised by the booking link token.
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_clock, get_notifier
from app.schemas.booking import BookingSubmitRequest
from app.schemas.interview import InterviewResponse
from app.services.booking import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])
logger = logging.getLogger(__name__)


@router.post("", status_code=201, response_model=InterviewResponse)
def submit_booking(
    request: BookingSubmitRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    notifier=Depends(get_notifier),
):
    """
    Book a slot through a booking link.

    Errors:
    - 404: unknown, inactive or expired link
    - 409: slot not offered or already taken
    - 412: link already used or candidate archived
    """
    service = BookingService(db, clock=clock, notifier=notifier)
    return service.submit(request.token, request.date, request.time)
