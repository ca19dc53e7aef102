"""
Multi-ticket cancellation.

STRATEGY: Dispatch all, collect all, re-read once
=================================================

A user picks several tickets of one event and cancels them together. The
server cancels each booking independently, so a batch can partly succeed.

  1. Optimistic:  the selected bookings are marked cancelled in the local slot
  2. Dispatch:    one PUT /api/bookings/:id/cancel per id, all concurrently
  3. Collect:     wait for every request to settle, successes and failures alike
  4. Reconcile:   re-fetch the booking list and apply it with a fresh token.
                  Individual responses are never trusted as final state.
  5. Selection:   cleared only once the reconciliation fetch has landed

The user gets one notification for the batch. If the reconciliation fetch
itself fails, the optimistic edit is rolled back and the next refresh tick
brings the server's view. Errors that are not ApiError are re-raised after
the rollback and the notification.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, Optional

from eventspark.core.errors import ApiError
from eventspark.core.logging import get_logger
from eventspark.core.metrics import record_cancellation
from eventspark.infrastructure.api_client import TicketingApiClient
from eventspark.schemas.booking import Booking, BookingStatus
from eventspark.services.grouping import BookingGroup, selection_total
from eventspark.services.interfaces import Notifier
from eventspark.services.state import StateSlot

logger = get_logger(__name__)

FAILURE_MESSAGE = "Failed to cancel tickets. Please try again."


@dataclass(frozen=True)
class PendingCancellation:
    booking_ids: tuple[str, ...]
    token: int
    snapshot: list[Booking]


@dataclass(frozen=True)
class CancellationOutcome:
    requested: tuple[str, ...]
    succeeded: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    reconciled: bool = False

    @property
    def ok(self) -> bool:
        return bool(self.requested) and not self.failed


def _success_message(count: int) -> str:
    return f"Successfully cancelled {count} ticket{'s' if count > 1 else ''}"


class BulkCancellationCoordinator:
    def __init__(self, api: TicketingApiClient, bookings: StateSlot[list[Booking]], notifier: Notifier) -> None:
        self._api = api
        self._bookings = bookings
        self._notifier = notifier
        self._selected: list[str] = []
        self.cancelling = False

    # Selection

    @property
    def selected(self) -> tuple[str, ...]:
        return tuple(self._selected)

    def is_selected(self, booking_id: str) -> bool:
        return booking_id in self._selected

    def toggle(self, booking_id: str) -> None:
        if booking_id in self._selected:
            self._selected.remove(booking_id)
        else:
            self._selected.append(booking_id)

    def select(self, booking_ids: Iterable[str]) -> None:
        for booking_id in booking_ids:
            if booking_id not in self._selected:
                self._selected.append(booking_id)

    def clear(self) -> None:
        self._selected = []

    def selection_total(self, group: BookingGroup):
        return selection_total(group, self._selected)

    # Two-phase update

    def cancellable(self, booking_ids: Iterable[str]) -> list[str]:
        """Drop ids whose local status is already terminal.

        Ids not present locally are kept; the server decides about those.
        """
        by_id = {b.id: b for b in self._bookings.value}
        kept = []
        for booking_id in dict.fromkeys(booking_ids):
            booking = by_id.get(booking_id)
            if booking is not None and not booking.status.can_cancel:
                logger.info("cancel_skipped", booking_id=booking_id, status=booking.status.value)
                continue
            kept.append(booking_id)
        return kept

    def apply_optimistic(self, booking_ids: Iterable[str]) -> PendingCancellation:
        ids = tuple(booking_ids)
        snapshot = self._bookings.value
        wanted = set(ids)
        updated = [
            b.model_copy(update={"status": BookingStatus.CANCELLED}) if b.id in wanted else b
            for b in snapshot
        ]
        token = self._bookings.set_optimistic(updated)
        return PendingCancellation(booking_ids=ids, token=token, snapshot=snapshot)

    def reconcile(self, pending: PendingCancellation, fetch_token: int, server_bookings: Optional[list[Booking]]) -> bool:
        """Replace the optimistic edit with the server's booking list.

        ``server_bookings`` is None when the re-read failed, in which case the
        optimistic edit is rolled back. Returns True when server state was used.
        """
        if server_bookings is None:
            self._bookings.rollback(pending.token, pending.snapshot)
            return False
        self._bookings.apply(fetch_token, server_bookings)
        return True

    async def _cancel_one(self, booking_id: str) -> None:
        await self._api.cancel_booking(booking_id)

    async def cancel(self, booking_ids: Optional[Iterable[str]] = None) -> CancellationOutcome:
        """Cancel the given ids, or the current selection."""
        requested = self.cancellable(self._selected if booking_ids is None else booking_ids)
        if not requested:
            return CancellationOutcome(requested=())

        self.cancelling = True
        try:
            pending = self.apply_optimistic(requested)
            results = await asyncio.gather(
                *(self._cancel_one(booking_id) for booking_id in requested),
                return_exceptions=True,
            )

            succeeded, failed, unexpected = [], [], []
            for booking_id, result in zip(requested, results):
                if result is None:
                    succeeded.append(booking_id)
                    record_cancellation(success=True)
                    continue
                failed.append(booking_id)
                record_cancellation(success=False)
                if isinstance(result, ApiError):
                    logger.info("cancel_rejected", booking_id=booking_id, error=str(result))
                else:
                    unexpected.append(result)

            fetch_token = self._bookings.begin()
            try:
                server_bookings = await self._api.list_bookings()
            except ApiError as e:
                logger.warning("cancel_reconcile_failed", error=str(e))
                server_bookings = None
            except Exception as e:
                logger.exception("cancel_reconcile_crashed")
                unexpected.append(e)
                server_bookings = None
            reconciled = self.reconcile(pending, fetch_token, server_bookings)
            if reconciled:
                self.clear()
        finally:
            self.cancelling = False

        outcome = CancellationOutcome(
            requested=tuple(requested),
            succeeded=tuple(succeeded),
            failed=tuple(failed),
            reconciled=reconciled,
        )
        logger.info(
            "bookings_cancelled",
            requested=len(requested),
            succeeded=len(succeeded),
            failed=len(failed),
            reconciled=reconciled,
        )
        if failed:
            self._notifier.error(FAILURE_MESSAGE)
        else:
            self._notifier.success(_success_message(len(requested)))

        if unexpected:
            raise unexpected[0]
        return outcome
