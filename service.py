"""Booking admission: validation, temporal checks and slot conflicts.

The service never builds HTTP responses. Every operation returns plain
schema objects or raises one of the ``errors.BookingError`` kinds.
"""

import logging
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, List, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import Conflict, InvalidInput, NotFound, ServiceUnavailable, Violation
from models import Booking
from schemas import BookingDetail, BookingPayload, BookingRead, validate_payload
from store import BookingStore

logger = logging.getLogger(__name__)

MAX_BOOKING_ID = 2**63 - 1
_ID_PATTERN = re.compile(r"[0-9]+")

SLOT_TAKEN = "This slot is already booked."
DUPLICATE_SLOT = "Duplicate booking detected. The date and time slot is already taken."
NOT_IN_FUTURE = "Booking date and time must be in the future."
BAD_INSTANT = "Booking date and time must form a valid date and time."
NOT_FOUND = "Booking not found."
BAD_ID = "Invalid booking ID."
UNAVAILABLE = "Server error. Please try again later."


def parse_booking_id(raw: Union[str, int, None]) -> Optional[int]:
    """Return the integer id, or None when ``raw`` cannot name a stored booking."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _ID_PATTERN.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        return None
    if not 0 < value <= MAX_BOOKING_ID:
        return None
    return value


def slot_instant(date: str, time: str) -> datetime:
    """Combine a booking's date and time into one naive local instant."""
    try:
        instant = datetime.fromisoformat(f"{date}T{time}")
    except ValueError:
        raise InvalidInput(BAD_INSTANT, [Violation("date", BAD_INSTANT)]) from None
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate database failures raised inside the block into booking errors."""
    try:
        yield
    except IntegrityError as exc:
        # Two requests passed the slot pre-check; the unique constraint decided
        logger.info("%s rejected by slot constraint: %s", operation, exc.orig)
        raise Conflict(DUPLICATE_SLOT) from exc
    except SQLAlchemyError as exc:
        logger.exception("%s failed: store unavailable", operation)
        raise ServiceUnavailable(UNAVAILABLE) from exc


class BookingService:
    def __init__(self, store: BookingStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    async def list_bookings(self) -> List[BookingRead]:
        with store_errors("list bookings"):
            bookings = await self.store.find_all()
        return [BookingRead.model_validate(booking) for booking in bookings]

    async def get_booking(self, booking_id: Union[str, int, None]) -> BookingDetail:
        parsed_id = parse_booking_id(booking_id)
        if parsed_id is None:
            if booking_id is None or str(booking_id).strip() == "":
                raise InvalidInput("Booking ID is required.", [Violation("id", "Booking ID is required.")])
            raise InvalidInput(BAD_ID, [Violation("id", BAD_ID)])

        with store_errors("get booking"):
            booking = await self.store.find_by_id(parsed_id)
        if booking is None:
            raise NotFound(NOT_FOUND)
        return BookingDetail.model_validate(booking)

    async def create_booking(self, payload: Any) -> BookingRead:
        booking_in, violations = validate_payload(payload)
        if violations:
            first = violations[0]
            raise InvalidInput(f"{first.field}: {first.message}", violations)

        self._ensure_future(booking_in)

        with store_errors("create booking"):
            if await self.store.find_by_slot(booking_in.date, booking_in.time) is not None:
                logger.info("Slot %s %s already booked", booking_in.date, booking_in.time)
                raise Conflict(SLOT_TAKEN)
            booking = await self.store.insert(Booking(**booking_in.model_dump()))

        logger.info("Booking %s created for %s %s", booking.id, booking.date, booking.time)
        return BookingRead.model_validate(booking)

    async def update_booking(self, booking_id: Union[str, int, None], payload: Any) -> BookingRead:
        parsed_id = parse_booking_id(booking_id)
        if parsed_id is None:
            raise NotFound(NOT_FOUND)

        with store_errors("update booking"):
            existing = await self.store.find_by_id(parsed_id)
        if existing is None:
            raise NotFound(NOT_FOUND)

        # Replace-document semantics: the whole schema is required on update
        booking_in, violations = validate_payload(payload)
        if violations:
            summary = "; ".join(f"{v.field}: {v.message}" for v in violations)
            raise InvalidInput(summary, violations)

        self._ensure_future(booking_in)

        with store_errors("update booking"):
            holder = await self.store.find_by_slot(booking_in.date, booking_in.time)
            if holder is not None and holder.id != parsed_id:
                logger.info(
                    "Slot %s %s held by booking %s, refusing update of %s",
                    booking_in.date, booking_in.time, holder.id, parsed_id,
                )
                raise Conflict(SLOT_TAKEN)
            booking = await self.store.update_by_id(parsed_id, booking_in.model_dump())

        if booking is None:
            # Deleted between lookup and write
            raise NotFound(NOT_FOUND)

        logger.info("Booking %s updated to %s %s", booking.id, booking.date, booking.time)
        return BookingRead.model_validate(booking)

    async def delete_booking(self, booking_id: Union[str, int, None]) -> None:
        parsed_id = parse_booking_id(booking_id)
        if parsed_id is None:
            raise NotFound(NOT_FOUND)

        with store_errors("delete booking"):
            deleted = await self.store.delete_by_id(parsed_id)
        if deleted is None:
            raise NotFound(NOT_FOUND)

        logger.info("Booking %s deleted", parsed_id)

    def _ensure_future(self, booking_in: BookingPayload) -> None:
        instant = slot_instant(booking_in.date, booking_in.time)
        if instant <= self.clock():
            logger.info("Rejected booking for past slot %s %s", booking_in.date, booking_in.time)
            raise InvalidInput(NOT_IN_FUTURE, [Violation("date", NOT_IN_FUTURE)])
