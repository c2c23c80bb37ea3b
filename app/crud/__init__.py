"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer keeps query construction out of the services and endpoints.
"""

from app.crud import activity_log, booking_link, candidate, interview

__all__ = ["activity_log", "booking_link", "candidate", "interview"]
