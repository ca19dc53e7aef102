"""
Pydantic schemas for events as returned by the ticketing API.
"""

from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field

from eventspark.schemas.common import WIRE_CONFIG, IdStr, LenientDecimal, LenientInt, Text, id_field


class EventStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    CANCELLED = "cancelled"


# Values other deployments use for a moderator refusal
_DENIED_STATUSES = {"rejected", "denied"}


def _to_status(value: Any) -> EventStatus:
    """Case-insensitive status; anything unrecognised is held as pending."""
    if isinstance(value, EventStatus):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in _DENIED_STATUSES:
        return EventStatus.CANCELLED
    try:
        return EventStatus(text)
    except ValueError:
        return EventStatus.PENDING


def _to_ref(value: Any) -> Any:
    # A bare id is a reference we could not expand
    if isinstance(value, (str, int)):
        return {"_id": value}
    return value


def _to_date_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _to_attendees(value: Any) -> Union[list, int, None]:
    if isinstance(value, list):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PersonRef(BaseModel):
    id: IdStr = id_field()
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = WIRE_CONFIG


PersonRefField = Annotated[Optional[PersonRef], BeforeValidator(_to_ref)]


class EventSummary(BaseModel):
    """The event fields a booking embeds."""

    id: IdStr = id_field()
    name: Text = ""
    description: Text = ""
    category: Text = ""
    venue: Text = ""
    date: Annotated[Optional[str], BeforeValidator(_to_date_text)] = None
    time: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")

    model_config = WIRE_CONFIG


class Event(EventSummary):
    ticket_price: LenientDecimal = Field(None, alias="ticketPrice")
    total_seats: LenientInt = Field(
        None, validation_alias=AliasChoices("totalSeats", "capacity"), serialization_alias="totalSeats"
    )
    sold_tickets: LenientInt = Field(None, alias="soldTickets")
    revenue: LenientDecimal = None
    status: Annotated[EventStatus, BeforeValidator(_to_status)] = EventStatus.PENDING
    organizer: PersonRefField = None
    created_by: PersonRefField = Field(None, alias="createdBy")
    attendees: Annotated[Union[list, int, None], BeforeValidator(_to_attendees)] = None

    @property
    def owner(self) -> Optional[PersonRef]:
        """Organizer reference, falling back to the legacy ``createdBy``."""
        return self.organizer or self.created_by

    @property
    def attendee_count(self) -> int:
        if isinstance(self.attendees, list):
            return len(self.attendees)
        return self.attendees or 0

    @property
    def oversold(self) -> bool:
        if self.total_seats is None or self.sold_tickets is None:
            return False
        return self.sold_tickets > self.total_seats
