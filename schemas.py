"""Request and response schemas for the bookings API."""

import re
from typing import Any, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from errors import Violation

CONTACT_PATTERN = re.compile(r"^[0-9]{10}$")
CONTACT_MESSAGE = "Contact must be a valid 10-digit phone number."
EMAIL_MESSAGE = "Email must be a valid email address."


class BookingPayload(BaseModel):
    """Body accepted by create and update. Every field is required."""

    model_config = ConfigDict(extra="forbid")

    date: str = Field(min_length=1, description="Calendar date, e.g. 2999-01-01")
    time: str = Field(min_length=1, description="Time of day, e.g. 19:00")
    guests: int = Field(ge=1)
    name: str = Field(min_length=3, max_length=100)
    contact: str
    email: str

    @field_validator("contact")
    @classmethod
    def contact_is_ten_digits(cls, value: str) -> str:
        if not CONTACT_PATTERN.fullmatch(value):
            raise PydanticCustomError("contact_format", CONTACT_MESSAGE)
        return value

    @field_validator("guests", mode="before")
    @classmethod
    def guests_is_not_boolean(cls, value: Any) -> Any:
        # JSON true/false would otherwise coerce to 1/0
        if isinstance(value, bool):
            raise PydanticCustomError("int_type", "Input should be a valid integer")
        return value

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, value: str) -> str:
        # Syntax check only; the address is stored exactly as given
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email_format", EMAIL_MESSAGE) from None
        return value


class BookingDetail(BaseModel):
    """Booking as returned by a lookup by id (no id in the projection)."""

    model_config = ConfigDict(from_attributes=True)

    date: str
    time: str
    guests: int
    name: str
    contact: str
    email: str


class BookingRead(BookingDetail):
    id: int


class ViolationOut(BaseModel):
    field: str
    message: str


class ApiResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Any = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    errors: Optional[List[ViolationOut]] = None


def violations_from(exc: ValidationError) -> List[Violation]:
    """Flatten a pydantic ValidationError into ordered (field, message) pairs."""
    violations = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        violations.append(Violation(field=field, message=error["msg"]))
    return violations


def validate_payload(payload: Any) -> tuple[Optional[BookingPayload], List[Violation]]:
    """Validate eagerly; returns the parsed payload or every violation found."""
    try:
        return BookingPayload.model_validate(payload), []
    except ValidationError as exc:
        return None, violations_from(exc)
