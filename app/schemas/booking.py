"""
Pydantic schemas for self-service booking.
"""

from datetime import date
from pydantic import BaseModel, Field


class BookingSubmitRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Raw booking link token")
    date: date
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Local start time, HH:MM")
