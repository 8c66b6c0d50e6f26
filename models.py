from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # Database-level protection against double booking
        UniqueConstraint("date", "time", name="unique_booking_slot"),
        # Deleted ids are never handed out again on SQLite
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    guests: int
    name: str
    contact: str
    email: str
