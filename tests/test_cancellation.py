"""
Tests for bulk ticket cancellation against the fake server.
"""

import pytest
import pytest_asyncio

from eventspark.schemas import BookingStatus
from eventspark.services.cancellation import FAILURE_MESSAGE, BulkCancellationCoordinator
from eventspark.services.grouping import group
from eventspark.services.state import StateSlot


@pytest_asyncio.fixture
async def bookings(api) -> StateSlot:
    slot = StateSlot("bookings", [])
    await slot.load(api.list_bookings)
    return slot


@pytest.fixture
def coordinator(api, bookings, notifier) -> BulkCancellationCoordinator:
    return BulkCancellationCoordinator(api, bookings, notifier)


def statuses(slot: StateSlot) -> dict:
    return {b.id: b.status for b in slot.value}


@pytest.mark.asyncio
async def test_cancel_selection(coordinator, bookings, server, notifier):
    coordinator.toggle("B1")
    coordinator.toggle("B2")

    outcome = await coordinator.cancel()

    assert outcome.ok
    assert outcome.succeeded == ("B1", "B2")
    assert outcome.reconciled
    assert statuses(bookings)["B1"] == BookingStatus.CANCELLED
    assert statuses(bookings)["B2"] == BookingStatus.CANCELLED
    assert server.find_booking("B1")["status"] == "cancelled"
    assert coordinator.selected == ()
    assert [(n.level, n.message) for n in notifier.notifications] == [
        ("success", "Successfully cancelled 2 tickets")
    ]


@pytest.mark.asyncio
async def test_single_ticket_message(coordinator, notifier):
    await coordinator.cancel(["B3"])
    assert notifier.last.message == "Successfully cancelled 1 ticket"


@pytest.mark.asyncio
async def test_requests_are_dispatched_concurrently(coordinator, server):
    server.delays["bookings.cancel"] = 0.05

    await coordinator.cancel(["B1", "B2", "B3"])

    assert server.max_in_flight == 3
    assert server.calls_to("PUT", "/api/bookings/") == 3


@pytest.mark.asyncio
async def test_partial_failure_reconciles_to_server_view(coordinator, bookings, server, notifier):
    """One rejected cancel: local state matches the server, one error toast."""
    server.reject_cancel.add("B2")
    coordinator.select(["B1", "B2"])

    outcome = await coordinator.cancel()

    assert outcome.succeeded == ("B1",)
    assert outcome.failed == ("B2",)
    assert not outcome.ok
    assert statuses(bookings)["B1"] == BookingStatus.CANCELLED
    assert statuses(bookings)["B2"] == BookingStatus.CONFIRMED
    assert coordinator.selected == ()
    assert [(n.level, n.message) for n in notifier.notifications] == [("error", FAILURE_MESSAGE)]


@pytest.mark.asyncio
async def test_always_refetches_once(coordinator, server):
    server.reject_cancel.update({"B1", "B2"})
    before = server.calls_to("GET", "/api/bookings")

    await coordinator.cancel(["B1", "B2"])

    assert server.calls_to("GET", "/api/bookings") == before + 1


@pytest.mark.asyncio
async def test_terminal_bookings_are_not_sent(coordinator, server, notifier):
    outcome = await coordinator.cancel(["B4", "B5"])

    assert outcome.requested == ()
    assert server.calls_to("PUT", "/api/bookings/") == 0
    assert notifier.notifications == []


@pytest.mark.asyncio
async def test_unknown_ids_are_left_to_the_server(coordinator, server, notifier):
    outcome = await coordinator.cancel(["B1", "nope"])

    assert outcome.failed == ("nope",)
    assert server.calls_to("PUT", "/api/bookings/nope") == 1
    assert notifier.last.message == FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_failed_refetch_rolls_back_and_keeps_selection(coordinator, bookings, server):
    server.broken.add("bookings.list")
    coordinator.select(["B1"])

    outcome = await coordinator.cancel()

    assert not outcome.reconciled
    assert statuses(bookings)["B1"] == BookingStatus.CONFIRMED
    assert coordinator.selected == ("B1",)
    assert not coordinator.cancelling


@pytest.mark.asyncio
async def test_optimistic_phase_marks_bookings_cancelled(coordinator, bookings, api):
    pending = coordinator.apply_optimistic(["B1"])
    assert statuses(bookings)["B1"] == BookingStatus.CANCELLED

    fetch_token = bookings.begin()
    assert coordinator.reconcile(pending, fetch_token, await api.list_bookings())
    # Nothing was sent, so the server still has it confirmed
    assert statuses(bookings)["B1"] == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_groups_rebuilt_after_cancel(coordinator, bookings):
    assert group(bookings.value)[0].total_tickets == 2

    await coordinator.cancel(["B1"])

    e1 = group(bookings.value)[0]
    assert e1.event_id == "E1"
    assert e1.total_tickets == 1
    assert [b.id for b in e1.bookings] == ["B2"]


@pytest.mark.asyncio
async def test_selection_helpers(coordinator, bookings):
    coordinator.toggle("B1")
    coordinator.toggle("B2")
    coordinator.toggle("B1")
    assert coordinator.selected == ("B2",)
    assert coordinator.is_selected("B2")

    e1 = group(bookings.value)[0]
    assert coordinator.selection_total(e1) == 20
    coordinator.clear()
    assert coordinator.selection_total(e1) == 0


@pytest.mark.asyncio
async def test_unexpected_refetch_error_rolls_back_then_raises(coordinator, bookings, api, notifier, monkeypatch):
    async def crash():
        raise RuntimeError("decoder crashed")

    monkeypatch.setattr(api, "list_bookings", crash)
    coordinator.select(["B1"])

    with pytest.raises(RuntimeError):
        await coordinator.cancel()

    assert statuses(bookings)["B1"] == BookingStatus.CONFIRMED
    assert coordinator.selected == ("B1",)
    assert not coordinator.cancelling
    assert [n.level for n in notifier.notifications] == ["success"]
