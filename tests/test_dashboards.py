"""
End-to-end dashboard flows against the fake server.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from eventspark.schemas import BookingStatus, EventStatus, UserRole
from eventspark.services.dashboards import AdminDashboard, OrganizerDashboard, UserDashboard
from eventspark.services.grouping import Lifecycle


def summary(groups):
    return [(g.event_id, g.total_tickets, g.total_price) for g in groups]


@pytest.mark.asyncio
async def test_user_dashboard_loads_on_start(api, notifier):
    dash = UserDashboard(api, notifier, interval=30)
    assert dash.loading

    async with dash:
        assert not dash.loading
        assert dash.scheduler.running
        assert [ev.id for ev in dash.browse()] == ["E1", "E2"]

    assert not dash.scheduler.running


@pytest.mark.asyncio
async def test_user_ticket_groups(api, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        assert summary(dash.ticket_groups()) == [("E1", 2, Decimal("40")), ("E2", 1, Decimal("35"))]
        assert summary(dash.ticket_groups(lifecycle=Lifecycle.PREVIOUS)) == [("E2", 1, Decimal("30"))]
        assert summary(dash.ticket_groups(lifecycle=Lifecycle.CANCELLED)) == [("E1", 1, Decimal("20"))]
        assert summary(dash.ticket_groups("jazz")) == [("E2", 1, Decimal("35"))]
        assert dash.active_booking_count == 3


@pytest.mark.asyncio
async def test_user_calendar(api, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        assert [b.id for b in dash.bookings_on(date(2030, 5, 10))] == ["B1", "B2"]
        assert [b.id for b in dash.bookings_on(date(2030, 5, 12), query="nothing")] == []
        assert [b.id for b in dash.tickets_in_month(2030, 5)] == ["B1", "B2", "B3", "B5"]
        assert [ev.id for ev in dash.events_on(date(2030, 5, 12))] == ["E2"]
        # Pending events are not on the attendee calendar
        assert dash.events_in_month(2030, 6) == []


@pytest.mark.asyncio
async def test_user_browse_filters(api, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        assert [ev.id for ev in dash.browse(category="Entertainment")] == ["E2"]
        assert [ev.id for ev in dash.browse(query="python")] == ["E1"]
        assert [ev.id for ev in dash.browse(date_range=(date(2030, 5, 11), None))] == ["E2"]


@pytest.mark.asyncio
async def test_description_backfill(api, server, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        jazz = dash.ticket_groups()[1]
        assert dash.description_for(jazz.event) == ""

        assert await dash.backfill_descriptions() == 1
        assert dash.description_for(jazz.event) == "Late set with the house band"
        assert await dash.backfill_descriptions() == 0
        assert server.calls_to("GET", "/api/events/E2") == 1


@pytest.mark.asyncio
async def test_user_cancels_from_dashboard(api, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        dash.cancellation.select(["B1", "B2"])
        outcome = await dash.cancellation.cancel()

        assert outcome.ok
        assert summary(dash.ticket_groups()) == [("E2", 1, Decimal("35"))]
        assert {b.id for b in dash.bookings.value if b.status == BookingStatus.CANCELLED} == {"B1", "B2", "B4"}


@pytest.mark.asyncio
async def test_background_failure_is_silent(api, server, notifier):
    async with UserDashboard(api, notifier, interval=30) as dash:
        server.broken.add("events.list")

        assert await dash.refresh_now() == {"events": False, "bookings": True}
        assert len(dash.events.value) == 3
        assert notifier.notifications == []


@pytest.mark.asyncio
async def test_organizer_sees_own_events(api, notifier):
    async with OrganizerDashboard(api, "O1", notifier, interval=30) as dash:
        assert [ev.id for ev in dash.events.value] == ["E1", "E3"]

        kpis = dash.kpis(now=datetime(2030, 1, 1))
        assert kpis.total_events == 2
        assert kpis.active_events == 2
        assert kpis.total_revenue == Decimal("60")
        assert kpis.total_attendees == 3

        assert dash.kpis(now=datetime(2030, 5, 20)).active_events == 1
        assert [ev.id for ev in dash.search("convention")] == ["E1"]
        assert [ev.id for ev in dash.events_on(date(2030, 6, 1))] == ["E3"]


@pytest.mark.asyncio
async def test_organizer_sells_ticket(api, notifier):
    async with OrganizerDashboard(api, "O1", notifier, interval=30) as dash:
        assert await dash.sell_tickets("E1")

        assert notifier.last.message == "Ticket sold for $20!"
        e1 = dash.events.value[0]
        assert e1.sold_tickets == 4
        assert e1.revenue == Decimal("80")


@pytest.mark.asyncio
async def test_organizer_sell_rejected(api, server, notifier):
    server.find_event("E1")["soldTickets"] = 100

    async with OrganizerDashboard(api, "O1", notifier, interval=30) as dash:
        assert await dash.sell_tickets("E1") is False
        assert notifier.last.level == "error"
        assert notifier.last.message == "Not enough seats available"


@pytest.mark.asyncio
async def test_admin_kpis_and_report(api, notifier):
    async with AdminDashboard(api, notifier, interval=30) as dash:
        assert dash.event_kpis.total_events == 3
        assert dash.event_kpis.total_revenue == Decimal("95")
        assert dash.user_kpis.total_users == 2
        assert dash.user_kpis.total_organizers == 1
        assert [ev.id for ev in dash.pending_events] == ["E3"]
        assert [ev.id for ev in dash.search("oscar")] == ["E2"]

        rows = dash.report()
        assert [r["Event Name"] for r in rows] == ["Python Conference", "Jazz Night", "Startup Pitch"]
        assert rows[2]["Organizer Name"] == "Olivia Organizer"
        assert rows[0]["Sold/Available"] == "3/100"


@pytest.mark.asyncio
async def test_admin_approves_and_denies(api, server, notifier):
    async with AdminDashboard(api, notifier, interval=30) as dash:
        assert await dash.approve_event("E3")
        assert notifier.last.message == "Event approved successfully."
        assert dash.pending_events == []
        assert server.find_event("E3")["status"] == "approved"

        assert await dash.deny_event("E1")
        assert notifier.last.message == "Event denied successfully."
        assert dash.events.value[0].status == EventStatus.CANCELLED


@pytest.mark.asyncio
async def test_admin_moderation_failure(api, notifier):
    async with AdminDashboard(api, notifier, interval=30) as dash:
        assert await dash.approve_event("E404") is False
        assert notifier.last.level == "error"
        assert notifier.last.message == "Event not found"


@pytest.mark.asyncio
async def test_admin_role_change_updates_kpis(api, notifier):
    async with AdminDashboard(api, notifier, interval=30) as dash:
        await dash.roles.change_role("user@example.com", UserRole.ORGANIZER)

        assert dash.user_kpis.total_users == 1
        assert dash.user_kpis.total_organizers == 2
        assert await dash.refresh_users()


@pytest.mark.asyncio
async def test_admin_refresh_survives_unexpected_statuses(api, server, notifier):
    async with AdminDashboard(api, notifier, interval=30) as dash:
        server.find_event("E1")["status"] = "APPROVED"
        server.events.append({"_id": "E9", "name": "Refused", "status": "rejected"})

        assert await dash.refresh_now() == {"events": True, "users": True}
        assert len(dash.events.value) == 4
        assert [ev.id for ev in dash.pending_events] == ["E3"]
