"""
Folds a flat list of bookings into per-event ticket groups.

Groups are always derived from the booking list they are given, so callers
rebuild them after any change (a cancellation included) instead of caching.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from eventspark.schemas.booking import Booking, BookingStatus, PaymentStatus
from eventspark.schemas.common import to_decimal
from eventspark.schemas.event import EventSummary


class Lifecycle(str, Enum):
    CURRENT = "current"
    PREVIOUS = "previous"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class LifecycleBuckets:
    current: list[Booking]
    previous: list[Booking]
    cancelled: list[Booking]

    def get(self, lifecycle: Lifecycle) -> list[Booking]:
        return getattr(self, lifecycle.value)


@dataclass
class BookingGroup:
    """All of one user's bookings for a single event."""

    event_id: str
    event: Optional[EventSummary]
    bookings: list[Booking] = field(default_factory=list)
    total_tickets: int = 0
    total_price: Decimal = Decimal("0")
    seats: list[str] = field(default_factory=list)

    def add(self, booking: Booking) -> None:
        self.bookings.append(booking)
        self.total_tickets += 1
        self.total_price += to_decimal(booking.ticket_price)
        if booking.seat_number:
            self.seats.append(booking.seat_number)

    @property
    def all_paid(self) -> bool:
        return all(b.payment_status == PaymentStatus.COMPLETED for b in self.bookings)

    @property
    def first_booking(self) -> Optional[Booking]:
        return self.bookings[0] if self.bookings else None


def lifecycle_of(booking: Booking) -> Lifecycle:
    if booking.status == BookingStatus.CANCELLED:
        return Lifecycle.CANCELLED
    if booking.status == BookingStatus.INACTIVE:
        return Lifecycle.PREVIOUS
    return Lifecycle.CURRENT


def partition(bookings: Iterable[Booking]) -> LifecycleBuckets:
    buckets: dict[Lifecycle, list[Booking]] = {lc: [] for lc in Lifecycle}
    for booking in bookings:
        buckets[lifecycle_of(booking)].append(booking)
    return LifecycleBuckets(
        current=buckets[Lifecycle.CURRENT],
        previous=buckets[Lifecycle.PREVIOUS],
        cancelled=buckets[Lifecycle.CANCELLED],
    )


def group(bookings: Iterable[Booking], lifecycle: Lifecycle = Lifecycle.CURRENT) -> list[BookingGroup]:
    """Group one lifecycle partition by event, in first-encounter order.

    Bookings whose event reference cannot be resolved are left out.
    """
    groups: dict[str, BookingGroup] = {}
    for booking in partition(bookings).get(lifecycle):
        event_id = booking.event_id
        if not event_id:
            continue
        if event_id not in groups:
            groups[event_id] = BookingGroup(event_id=event_id, event=booking.event_summary)
        groups[event_id].add(booking)
    return list(groups.values())


def selection_total(group: BookingGroup, booking_ids: Iterable[str]) -> Decimal:
    """Sum of ticket prices for the selected bookings of one group."""
    selected = set(booking_ids)
    return sum(
        (to_decimal(b.ticket_price) for b in group.bookings if b.id in selected),
        Decimal("0"),
    )
