"""
Dashboard KPIs.

Pure functions of their inputs. Missing or non-numeric revenue counts as zero.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from eventspark.core.dates import event_starts_at
from eventspark.schemas.common import to_decimal
from eventspark.schemas.event import Event
from eventspark.schemas.user import UserBuckets


@dataclass(frozen=True)
class EventKPIs:
    total_events: int
    total_revenue: Decimal


@dataclass(frozen=True)
class UserKPIs:
    total_users: int
    total_organizers: int


@dataclass(frozen=True)
class OrganizerKPIs:
    total_events: int
    active_events: int
    total_revenue: Decimal
    total_attendees: int


def _revenue(events: Iterable[Event]) -> Decimal:
    return sum((to_decimal(ev.revenue) for ev in events), Decimal("0"))


def is_active(event: Event, now: datetime) -> bool:
    """An event is active until its start time has passed.

    Event times are local wall-clock times, so an aware ``now`` is converted
    to local time before comparing.
    """
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    starts_at = event_starts_at(event.date, event.time)
    return starts_at is not None and starts_at > now


def compute_event_kpis(events: Sequence[Event]) -> EventKPIs:
    return EventKPIs(total_events=len(events), total_revenue=_revenue(events))


def compute_user_kpis(buckets: UserBuckets) -> UserKPIs:
    return UserKPIs(total_users=len(buckets.user), total_organizers=len(buckets.organizer))


def compute_organizer_kpis(events: Sequence[Event], now: datetime) -> OrganizerKPIs:
    return OrganizerKPIs(
        total_events=len(events),
        active_events=sum(1 for ev in events if is_active(ev, now)),
        total_revenue=_revenue(events),
        total_attendees=sum(ev.attendee_count for ev in events),
    )


def report_rows(events: Iterable[Event]) -> list[dict]:
    """Rows for the admin events report, one per event."""
    rows = []
    for ev in events:
        organizer_name = next(
            (ref.name for ref in (ev.organizer, ev.created_by) if ref and ref.name), "-"
        )
        rows.append({
            "Event Name": ev.name,
            "Date": ev.date or "",
            "Time": ev.time or "",
            "Ticket Price": ev.ticket_price,
            "Sold/Available": f"{ev.sold_tickets or 0}/{ev.total_seats or 0}",
            "Revenue": to_decimal(ev.revenue),
            "Organizer Name": organizer_name,
        })
    return rows
