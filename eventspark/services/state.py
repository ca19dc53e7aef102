"""
Local holders for server-owned collections.

CONSISTENCY STRATEGY: Monotonic fetch tokens
============================================

Problem:
  A refresh tick starts a fetch. Before it completes the user cancels a
  ticket, which applies an optimistic edit and later a reconciliation fetch.
  If the slow tick lands last it overwrites newer state with an older result.

Solution:
  Every write to a slot is tagged with a token taken *before* the data was
  requested. Tokens are issued in increasing order. A write is applied only
  when its token is newer than the last applied one.

  - Refresh ticks:        token = begin(); value = await fetch(); apply(token, value)
  - Optimistic edits:     set_optimistic(value) takes and applies a fresh token
  - Reconciliation:       a fresh token, so it outranks every earlier tick

  No locks are needed: everything runs on one event loop and the only
  suspension point is the fetch itself.
"""

from typing import Awaitable, Callable, Generic, TypeVar

from eventspark.core.logging import get_logger
from eventspark.core.metrics import record_stale_discard

logger = get_logger(__name__)

T = TypeVar("T")


class StateSlot(Generic[T]):
    """Holds one collection and accepts only writes newer than the last."""

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._value = initial
        self._issued = 0
        self._applied = 0
        self.loaded = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def applied_token(self) -> int:
        return self._applied

    def begin(self) -> int:
        """Reserve a token for a fetch that is about to be issued."""
        self._issued += 1
        return self._issued

    def apply(self, token: int, value: T) -> bool:
        if token <= self._applied:
            logger.debug("stale_result_discarded", slot=self.name, token=token, applied=self._applied)
            record_stale_discard(self.name)
            return False
        self._applied = token
        self._value = value
        self.loaded = True
        return True

    def set_optimistic(self, value: T) -> int:
        token = self.begin()
        self.apply(token, value)
        return token

    def rollback(self, token: int, snapshot: T) -> bool:
        """Undo the optimistic write made with ``token``.

        Does nothing if a newer write has landed since, because that write
        already came from the server.
        """
        if self._applied != token:
            return False
        return self.apply(self.begin(), snapshot)

    async def load(self, fetch: Callable[[], Awaitable[T]]) -> bool:
        """Fetch and apply, unless something newer was applied meanwhile.

        Errors from ``fetch`` propagate and leave the slot untouched.
        """
        token = self.begin()
        value = await fetch()
        return self.apply(token, value)
