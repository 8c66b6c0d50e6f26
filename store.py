"""Persistence for bookings.

``BookingStore`` is the capability set the admission service relies on;
``SQLBookingStore`` implements it on an async SQLAlchemy session. Mutating
calls commit immediately and roll back on any database error before
re-raising it.
"""

from typing import Any, List, Mapping, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from models import Booking


class BookingStore(Protocol):
    async def find_all(self) -> List[Booking]:
        ...

    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        ...

    async def find_by_slot(self, date: str, time: str) -> Optional[Booking]:
        ...

    async def insert(self, booking: Booking) -> Booking:
        ...

    async def update_by_id(self, booking_id: int, values: Mapping[str, Any]) -> Optional[Booking]:
        ...

    async def delete_by_id(self, booking_id: int) -> Optional[Booking]:
        ...


class SQLBookingStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[Booking]:
        result = await self.session.execute(select(Booking).order_by(Booking.id))
        return list(result.scalars().all())

    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def find_by_slot(self, date: str, time: str) -> Optional[Booking]:
        statement = select(Booking).where(Booking.date == date, Booking.time == time)
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def insert(self, booking: Booking) -> Booking:
        try:
            self.session.add(booking)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self.session.refresh(booking)
        return booking

    async def update_by_id(self, booking_id: int, values: Mapping[str, Any]) -> Optional[Booking]:
        booking = await self.session.get(Booking, booking_id)
        if booking is None:
            return None

        for field, value in values.items():
            setattr(booking, field, value)

        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self.session.refresh(booking)
        return booking

    async def delete_by_id(self, booking_id: int) -> Optional[Booking]:
        booking = await self.session.get(Booking, booking_id)
        if booking is None:
            return None

        try:
            await self.session.delete(booking)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return booking
