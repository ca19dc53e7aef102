"""
Search and filter helpers over events and bookings.

Every function here is pure. It returns a new list and never mutates its input.
"""

from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence, TypeVar, Union

from eventspark.core.dates import calendar_day, in_month as _in_month, same_day
from eventspark.schemas.booking import Booking
from eventspark.schemas.event import Event, EventStatus

T = TypeVar("T")
FieldGetter = Callable[[T], Optional[str]]
DateBound = Union[date, datetime, None]

ALL_CATEGORIES = "All"


def _owner_attr(attr: str) -> FieldGetter:
    def get(event: Event) -> Optional[str]:
        ref = event.organizer
        return getattr(ref, attr) if ref else None
    return get


def _created_by_attr(attr: str) -> FieldGetter:
    def get(event: Event) -> Optional[str]:
        ref = event.created_by
        return getattr(ref, attr) if ref else None
    return get


def _booking_event_attr(attr: str) -> FieldGetter:
    def get(booking: Booking) -> Optional[str]:
        summary = booking.event_summary
        return getattr(summary, attr) if summary else None
    return get


EVENT_FIELDS: tuple[FieldGetter, ...] = (
    lambda ev: ev.name,
    lambda ev: ev.description,
    lambda ev: ev.venue,
)

# Admin and organizer views also match on who runs the event
MANAGED_EVENT_FIELDS: tuple[FieldGetter, ...] = EVENT_FIELDS + (
    _owner_attr("name"),
    _owner_attr("email"),
    _created_by_attr("name"),
    _created_by_attr("email"),
)

BOOKING_FIELDS: tuple[FieldGetter, ...] = (
    _booking_event_attr("name"),
    _booking_event_attr("description"),
    _booking_event_attr("venue"),
    _booking_event_attr("category"),
)


def search(items: Iterable[T], query: Optional[str], fields: Sequence[FieldGetter]) -> list[T]:
    """Case-insensitive substring search across the extracted fields."""
    items = list(items)
    if not query or not query.strip():
        return items
    needle = query.lower()

    def matches(item: T) -> bool:
        for get in fields:
            value = get(item)
            if value and needle in str(value).lower():
                return True
        return False

    return [item for item in items if matches(item)]


def _event_date(item) -> Optional[str]:
    return getattr(item, "date", None)


def filter_by_date_range(
    items: Iterable[T],
    start: DateBound,
    end: DateBound,
    date_of: Callable[[T], object] = _event_date,
) -> list[T]:
    """Keep items whose calendar day lies in ``[start, end]``, inclusive.

    Either bound may be None. With both unset every item passes.
    """
    items = list(items)
    if start is None and end is None:
        return items
    low = calendar_day(start)
    high = calendar_day(end)
    kept = []
    for item in items:
        day = calendar_day(date_of(item))
        if day is None:
            continue
        if low is not None and day < low:
            continue
        if high is not None and day > high:
            continue
        kept.append(item)
    return kept


def filter_by_status(events: Iterable[Event], status: EventStatus) -> list[Event]:
    return [ev for ev in events if ev.status == status]


def filter_by_category(events: Iterable[Event], category: Optional[str]) -> list[Event]:
    events = list(events)
    if not category or category == ALL_CATEGORIES:
        return events
    return [ev for ev in events if ev.category == category]


def on_day(items: Iterable[T], day: Union[date, datetime], date_of: Callable[[T], object] = _event_date) -> list[T]:
    """Items scheduled on the given calendar day (the calendar tile lookup)."""
    return [item for item in items if same_day(date_of(item), day)]


def in_month(items: Iterable[T], year: int, month: int, date_of: Callable[[T], object] = _event_date) -> list[T]:
    return [item for item in items if _in_month(date_of(item), year, month)]


def booking_event_date(booking: Booking) -> Optional[str]:
    summary = booking.event_summary
    return summary.date if summary else None


def browse_events(
    events: Iterable[Event],
    query: Optional[str] = None,
    category: Optional[str] = None,
    date_range: tuple[DateBound, DateBound] = (None, None),
) -> list[Event]:
    """What an attendee sees in the catalogue: approved events, soonest first."""
    approved = filter_by_status(events, EventStatus.APPROVED)
    ranged = filter_by_date_range(approved, date_range[0], date_range[1])
    matched = search(filter_by_category(ranged, category), query, EVENT_FIELDS)
    return sorted(matched, key=lambda ev: (calendar_day(ev.date) is None, calendar_day(ev.date) or date.min))
