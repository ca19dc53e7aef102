"""
Tests for StateSlot write ordering.
"""

import asyncio

import pytest

from eventspark.services.state import StateSlot


def test_newer_token_wins():
    slot = StateSlot("events", [])
    first = slot.begin()
    second = slot.begin()

    assert slot.apply(second, ["new"])
    assert not slot.apply(first, ["old"])
    assert slot.value == ["new"]
    assert slot.applied_token == second


def test_optimistic_edit_outranks_in_flight_fetch():
    slot = StateSlot("bookings", ["confirmed"])
    tick = slot.begin()
    slot.set_optimistic(["cancelled"])

    assert not slot.apply(tick, ["confirmed"])
    assert slot.value == ["cancelled"]


def test_rollback_restores_snapshot():
    slot = StateSlot("users", "before")
    token = slot.set_optimistic("after")

    assert slot.rollback(token, "before")
    assert slot.value == "before"


def test_rollback_skipped_once_newer_data_landed():
    slot = StateSlot("users", "before")
    token = slot.set_optimistic("after")
    slot.apply(slot.begin(), "server")

    assert not slot.rollback(token, "before")
    assert slot.value == "server"


@pytest.mark.asyncio
async def test_load_marks_slot_loaded():
    slot = StateSlot("events", [])
    assert not slot.loaded

    async def fetch():
        return [1, 2]

    assert await slot.load(fetch)
    assert slot.loaded
    assert slot.value == [1, 2]


@pytest.mark.asyncio
async def test_load_failure_leaves_value_untouched():
    slot = StateSlot("events", ["kept"])

    async def fetch():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await slot.load(fetch)
    assert slot.value == ["kept"]
    assert not slot.loaded


@pytest.mark.asyncio
async def test_slow_fetch_does_not_overwrite_later_mutation():
    """A tick that started before a mutation must not land over it."""
    slot = StateSlot("bookings", ["confirmed"])
    gate = asyncio.Event()

    async def slow_fetch():
        await gate.wait()
        return ["stale"]

    tick = asyncio.create_task(slot.load(slow_fetch))
    await asyncio.sleep(0)
    slot.set_optimistic(["cancelled"])
    gate.set()

    assert await tick is False
    assert slot.value == ["cancelled"]
