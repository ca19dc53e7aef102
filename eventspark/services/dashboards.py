"""
View-models for the three dashboards.

Each dashboard owns its state slots, its refresh schedule and its
coordinators. Its lifetime is the screen's: ``start()`` on mount,
``stop()`` on teardown (or ``async with``). Everything a screen renders is
derived on demand from the slots, never cached.
"""

import asyncio
from datetime import date, datetime
from typing import Optional

from eventspark.core.config import get_settings
from eventspark.core.errors import ApiError, BusinessError
from eventspark.core.logging import get_logger
from eventspark.infrastructure.api_client import TicketingApiClient
from eventspark.schemas.booking import Booking, BookingStatus
from eventspark.schemas.event import Event, EventStatus, EventSummary
from eventspark.schemas.user import UserBuckets
from eventspark.services import filters
from eventspark.services.cancellation import BulkCancellationCoordinator
from eventspark.services.grouping import BookingGroup, Lifecycle, group, partition
from eventspark.services.interfaces import CollectingNotifier, Notifier
from eventspark.services.kpi import (
    EventKPIs,
    OrganizerKPIs,
    UserKPIs,
    compute_event_kpis,
    compute_organizer_kpis,
    compute_user_kpis,
    report_rows,
)
from eventspark.services.refresh import RefreshScheduler
from eventspark.services.roles import RoleMutationCoordinator
from eventspark.services.state import StateSlot

logger = get_logger(__name__)


class Dashboard:
    """Shared lifecycle. Subclasses register their slots and refresh jobs."""

    def __init__(
        self,
        api: TicketingApiClient,
        notifier: Optional[Notifier] = None,
        interval: Optional[float] = None,
    ) -> None:
        self.api = api
        self.notifier = notifier or CollectingNotifier()
        self._slots: list[StateSlot] = []
        self._jobs: dict = {}
        self._interval = interval or get_settings().REFRESH_INTERVAL_SECONDS
        self._scheduler: Optional[RefreshScheduler] = None

    def _track(self, slot: StateSlot, fetch) -> StateSlot:
        self._slots.append(slot)
        self._jobs[slot.name] = lambda: slot.load(fetch)
        return slot

    @property
    def scheduler(self) -> RefreshScheduler:
        if self._scheduler is None:
            self._scheduler = RefreshScheduler(self._jobs, self._interval)
        return self._scheduler

    @property
    def loading(self) -> bool:
        return not all(slot.loaded for slot in self._slots)

    async def start(self) -> None:
        await self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()

    async def refresh_now(self) -> dict[str, bool]:
        return await self.scheduler.refresh_now()

    async def _reload(self, slot: StateSlot, fetch) -> bool:
        """Reconciliation read after a mutation; failures wait for the next tick."""
        try:
            await slot.load(fetch)
        except ApiError as e:
            logger.warning("reload_failed", slot=slot.name, error=str(e))
            return False
        return True

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


class UserDashboard(Dashboard):
    """Attendee view: browse the catalogue, manage own tickets."""

    def __init__(self, api: TicketingApiClient, notifier: Optional[Notifier] = None, interval: Optional[float] = None) -> None:
        super().__init__(api, notifier, interval)
        self.events: StateSlot[list[Event]] = self._track(StateSlot("events", []), api.list_events)
        self.bookings: StateSlot[list[Booking]] = self._track(StateSlot("bookings", []), api.list_bookings)
        self.descriptions: dict[str, str] = {}
        self.cancellation = BulkCancellationCoordinator(api, self.bookings, self.notifier)

    def browse(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        date_range: tuple = (None, None),
    ) -> list[Event]:
        return filters.browse_events(self.events.value, query, category, date_range)

    def ticket_groups(self, query: Optional[str] = None, lifecycle: Lifecycle = Lifecycle.CURRENT) -> list[BookingGroup]:
        matched = filters.search(self.bookings.value, query, filters.BOOKING_FIELDS)
        return group(matched, lifecycle)

    @property
    def active_booking_count(self) -> int:
        return len(partition(self.bookings.value).current)

    def _live_bookings(self, query: Optional[str]) -> list[Booking]:
        live = [b for b in self.bookings.value if b.status != BookingStatus.CANCELLED]
        return filters.search(live, query, filters.BOOKING_FIELDS)

    def bookings_on(self, day: date, query: Optional[str] = None) -> list[Booking]:
        return filters.on_day(self._live_bookings(query), day, filters.booking_event_date)

    def tickets_in_month(self, year: int, month: int) -> list[Booking]:
        return filters.in_month(self._live_bookings(None), year, month, filters.booking_event_date)

    def events_on(self, day: date, query: Optional[str] = None, category: Optional[str] = None) -> list[Event]:
        return filters.on_day(self.browse(query, category), day)

    def events_in_month(self, year: int, month: int) -> list[Event]:
        return filters.in_month(self.browse(), year, month)

    def description_for(self, event: EventSummary) -> str:
        return event.description or self.descriptions.get(event.id or "", "")

    async def backfill_descriptions(self) -> int:
        """Fetch descriptions for booked events whose summary lacks one."""
        missing = {
            b.event_id
            for b in self.bookings.value
            if isinstance(b.event, EventSummary)
            and not b.event.description
            and b.event_id
            and b.event_id not in self.descriptions
        }
        if not missing:
            return 0

        async def fetch(event_id: str) -> None:
            try:
                event = await self.api.get_event(event_id)
            except ApiError as e:
                logger.debug("description_fetch_failed", event_id=event_id, error=str(e))
                return
            self.descriptions[event_id] = event.description

        await asyncio.gather(*(fetch(event_id) for event_id in sorted(missing)))
        return len(missing)


class OrganizerDashboard(Dashboard):
    """Organizer view: own events, sales KPIs."""

    def __init__(
        self,
        api: TicketingApiClient,
        organizer_id: str,
        notifier: Optional[Notifier] = None,
        interval: Optional[float] = None,
    ) -> None:
        super().__init__(api, notifier, interval)
        self.organizer_id = organizer_id
        self.events: StateSlot[list[Event]] = self._track(StateSlot("events", []), self._fetch_own_events)

    async def _fetch_own_events(self) -> list[Event]:
        events = await self.api.list_events()
        return [ev for ev in events if ev.owner is not None and ev.owner.id == self.organizer_id]

    def kpis(self, now: Optional[datetime] = None) -> OrganizerKPIs:
        return compute_organizer_kpis(self.events.value, now or datetime.now())

    def search(self, query: Optional[str] = None) -> list[Event]:
        return filters.search(self.events.value, query, filters.MANAGED_EVENT_FIELDS)

    def events_on(self, day: date, query: Optional[str] = None) -> list[Event]:
        return filters.on_day(self.search(query), day)

    async def sell_tickets(self, event_id: str, quantity: int = 1) -> bool:
        try:
            price = await self.api.sell_tickets(event_id, quantity)
        except BusinessError as e:
            self.notifier.error(e.message or "Failed to sell ticket")
            sold = False
        except ApiError as e:
            logger.warning("sell_tickets_failed", event_id=event_id, error=str(e))
            self.notifier.error("Failed to sell ticket")
            sold = False
        else:
            self.notifier.success(f"Ticket sold for ${price if price is not None else '-'}!")
            sold = True
        await self._reload(self.events, self._fetch_own_events)
        return sold


class AdminDashboard(Dashboard):
    """Admin view: platform KPIs, event approval, user roles."""

    def __init__(self, api: TicketingApiClient, notifier: Optional[Notifier] = None, interval: Optional[float] = None) -> None:
        super().__init__(api, notifier, interval)
        self.events: StateSlot[list[Event]] = self._track(StateSlot("events", []), api.list_events)
        self.users: StateSlot[UserBuckets] = self._track(StateSlot("users", UserBuckets()), api.list_users)
        self.roles = RoleMutationCoordinator(api, self.users, self.notifier)

    @property
    def event_kpis(self) -> EventKPIs:
        return compute_event_kpis(self.events.value)

    @property
    def user_kpis(self) -> UserKPIs:
        return compute_user_kpis(self.users.value)

    @property
    def pending_events(self) -> list[Event]:
        return filters.filter_by_status(self.events.value, EventStatus.PENDING)

    def search(self, query: Optional[str] = None) -> list[Event]:
        return filters.search(self.events.value, query, filters.MANAGED_EVENT_FIELDS)

    def events_on(self, day: date, query: Optional[str] = None) -> list[Event]:
        return filters.on_day(self.search(query), day)

    def report(self, query: Optional[str] = None) -> list[dict]:
        return report_rows(self.search(query))

    async def refresh_users(self) -> bool:
        return await self._reload(self.users, self.api.list_users)

    async def _moderate(self, event_id: str, action, done_message: str, failed_message: str) -> bool:
        try:
            await action(event_id)
        except BusinessError as e:
            self.notifier.error(e.message or failed_message)
            ok = False
        except ApiError as e:
            logger.warning("moderation_failed", event_id=event_id, error=str(e))
            self.notifier.error(failed_message)
            ok = False
        else:
            self.notifier.success(done_message)
            logger.info("event_moderated", event_id=event_id, result=done_message)
            ok = True
        await self._reload(self.events, self.api.list_events)
        return ok

    async def approve_event(self, event_id: str) -> bool:
        return await self._moderate(
            event_id,
            lambda eid: self.api.update_event_status(eid, EventStatus.APPROVED),
            "Event approved successfully.",
            "Failed to approve event",
        )

    async def deny_event(self, event_id: str) -> bool:
        return await self._moderate(
            event_id, self.api.deny_event, "Event denied successfully.", "Failed to deny event"
        )
