"""
Pydantic schemas for bookings.

A booking carries its event either embedded (a summary) or as a bare id.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field

from eventspark.schemas.common import WIRE_CONFIG, IdStr, LenientDecimal, id_field
from eventspark.schemas.event import EventSummary


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    INACTIVE = "inactive"

    @property
    def can_cancel(self) -> bool:
        # cancelled is terminal and inactive is only reached server-side
        return self in (BookingStatus.CONFIRMED, BookingStatus.PENDING)


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"


def _lower_or(default: str):
    def normalize(value: Any) -> Any:
        if value is None or value == "":
            return default
        return value.lower() if isinstance(value, str) else value
    return normalize


def _to_event_ref(value: Any) -> Any:
    if isinstance(value, int):
        return str(value)
    if value == "":
        return None
    return value


class Booking(BaseModel):
    id: IdStr = id_field()
    event: Annotated[Union[EventSummary, str, None], BeforeValidator(_to_event_ref)] = Field(
        None, validation_alias=AliasChoices("eventId", "event"), serialization_alias="eventId"
    )
    seat_number: Optional[str] = Field(None, alias="seatNumber")
    ticket_price: LenientDecimal = Field(None, alias="ticketPrice")
    status: Annotated[BookingStatus, BeforeValidator(_lower_or("confirmed"))] = BookingStatus.CONFIRMED
    payment_status: Annotated[PaymentStatus, BeforeValidator(_lower_or("pending"))] = Field(
        PaymentStatus.PENDING, alias="paymentStatus"
    )
    booking_date: Optional[datetime] = Field(None, alias="bookingDate")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = WIRE_CONFIG

    @property
    def event_id(self) -> Optional[str]:
        """Resolved event id, or None when the reference is unusable."""
        if isinstance(self.event, EventSummary):
            return self.event.id
        return self.event

    @property
    def event_summary(self) -> Optional[EventSummary]:
        if isinstance(self.event, EventSummary):
            return self.event
        if self.event:
            return EventSummary(id=self.event)
        return None
