"""
Slot grid for recruiters and the self-service booking page.
"""

from dataclasses import asdict
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_clock
from app.models.interview import InterviewType
from app.schemas.availability import SlotGridResponse
from app.services.booking import available_slots

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.get("/slots", response_model=SlotGridResponse)
def get_slots(
    date: date = Query(..., description="Local calendar date"),
    type: InterviewType = Query(InterviewType.INTERVIEW),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """
    Slots for one day using the configured schedule for the interview type.

    Unavailable slots are included with available=false so the grid keeps
    its shape.
    """
    slots = available_slots(db, date, type, clock())
    return SlotGridResponse(
        date=date,
        type=type,
        timezone=settings.BOOKING_TIMEZONE,
        slots=[asdict(slot) for slot in slots],
    )
