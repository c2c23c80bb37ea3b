"""
Pydantic schemas for the slot grid.
"""

from datetime import date, datetime
from typing import List
from pydantic import BaseModel, Field
from app.models.interview import InterviewType


class TimeSlotResponse(BaseModel):
    time: str = Field(..., description="Local start time, HH:MM")
    start: datetime = Field(..., description="Slot start, UTC")
    end: datetime = Field(..., description="Slot end, UTC")
    available: bool

    class Config:
        from_attributes = True


class SlotGridResponse(BaseModel):
    date: date
    type: InterviewType
    timezone: str
    slots: List[TimeSlotResponse]
