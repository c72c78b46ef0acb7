############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# queue.py: Admission queue bounding concurrent backend dispatches
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Admission queue for the dispatch pipeline.

Each key (one per resolved backend model) has a fixed number of slots.
A key with nothing in flight and nobody waiting is dropped, so the set of
keys only holds ones in use.
Callers that find no free slot wait in a FIFO line; a released slot is
handed directly to the oldest live waiter, so a newcomer can never take a
slot ahead of someone already waiting.

All state transitions happen synchronously between awaits on the event
loop, so acquire/release need no lock: there is no window in which two
acquirers can be granted the same slot or a wakeup can be lost.
"""

import asyncio
import itertools
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Deque, Dict, Optional, Tuple, Union

from bedrockgate.app.errors import QueueTimeout
from bedrockgate.app.logging_config import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QueueTicket:
    """One admission slot held by one request."""

    key: str
    sequence: int

    # Timing
    time_submitted: datetime = field(default_factory=_now)
    time_acquired: Optional[datetime] = None
    time_released: Optional[datetime] = None

    @property
    def is_granted(self) -> bool:
        return self.time_acquired is not None

    @property
    def is_released(self) -> bool:
        return self.time_released is not None

    def get_queue_time_seconds(self) -> float:
        """Get time spent waiting for the slot."""
        end = self.time_acquired or _now()
        return (end - self.time_submitted).total_seconds()


_Waiter = Tuple[QueueTicket, "asyncio.Future[QueueTicket]"]


@dataclass
class _KeyState:
    capacity: int
    in_flight: int = 0
    waiters: Deque[_Waiter] = field(default_factory=deque)

    def live_waiters(self) -> int:
        return sum(1 for _, fut in self.waiters if not fut.done())


class AdmissionQueue:
    """
    Bounds concurrent in-flight dispatches per key.

    Provides:
    - FIFO admission per key
    - Deadline on waiting (``QueueTimeout``); a timed-out waiter never
      holds a slot
    - Cancellation of queued waiters without granting them a slot
    - Idempotent-safe release
    """

    def __init__(
        self,
        capacity: Union[int, Callable[[str], int]] = 4,
        default_timeout: Optional[float] = None,
    ):
        self._capacity_for = capacity if callable(capacity) else (lambda _key: capacity)
        self._default_timeout = default_timeout
        self._states: Dict[str, _KeyState] = {}
        self._sequence = itertools.count(1)

    def _state(self, key: str) -> _KeyState:
        state = self._states.get(key)
        if state is None:
            capacity = self._capacity_for(key)
            if capacity < 1:
                raise ValueError(f"Queue capacity for '{key}' must be at least 1")
            state = _KeyState(capacity=capacity)
            self._states[key] = state
        return state

    async def acquire(self, key: str, timeout: Optional[float] = None) -> QueueTicket:
        """
        Wait for a free slot for ``key``.

        Args:
            key: Queue partition (resolved backend model id)
            timeout: Seconds to wait; defaults to the queue's default timeout,
                ``None`` meaning wait indefinitely

        Returns:
            A granted QueueTicket; pass it to ``release`` exactly once

        Raises:
            QueueTimeout: if no slot was granted before the deadline
        """
        state = self._state(key)
        ticket = QueueTicket(key=key, sequence=next(self._sequence))

        if state.in_flight < state.capacity and not state.live_waiters():
            state.in_flight += 1
            ticket.time_acquired = _now()
            return ticket

        if timeout is None:
            timeout = self._default_timeout

        waiter: "asyncio.Future[QueueTicket]" = asyncio.get_running_loop().create_future()
        entry = (ticket, waiter)
        state.waiters.append(entry)
        logger.debug(
            "queue_wait",
            queue_key=key,
            position=state.live_waiters(),
            in_flight=state.in_flight,
        )

        try:
            if timeout is None:
                await asyncio.shield(waiter)
            else:
                await asyncio.wait_for(asyncio.shield(waiter), timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError) as exc:
            if waiter.done() and not waiter.cancelled():
                # Granted at the same moment we gave up: pass the slot on
                self.release(ticket)
            else:
                waiter.cancel()
                self._discard(state, entry)
                self._prune(key, state)

            if isinstance(exc, asyncio.CancelledError):
                logger.info("queue_wait_cancelled", queue_key=key)
                raise
            waited = ticket.get_queue_time_seconds()
            logger.warning("queue_timeout", queue_key=key, waited_s=round(waited, 3))
            raise QueueTimeout(key, waited) from None

        return ticket

    def release(self, ticket: QueueTicket) -> bool:
        """
        Return a ticket's slot to the queue.

        The slot goes straight to the oldest live waiter when there is one.
        Releasing an already released (or never granted) ticket is a no-op.

        Returns:
            True if a slot was actually released
        """
        if not ticket.is_granted or ticket.is_released:
            logger.warning(
                "queue_release_ignored",
                queue_key=ticket.key,
                sequence=ticket.sequence,
                granted=ticket.is_granted,
            )
            return False

        ticket.time_released = _now()
        state = self._states[ticket.key]

        while state.waiters:
            next_ticket, waiter = state.waiters.popleft()
            if waiter.done():
                continue
            next_ticket.time_acquired = _now()
            waiter.set_result(next_ticket)
            return True

        state.in_flight -= 1
        self._prune(ticket.key, state)
        return True

    @asynccontextmanager
    async def slot(
        self, key: str, timeout: Optional[float] = None
    ) -> AsyncIterator[QueueTicket]:
        """Hold a slot for the duration of the block; released on any exit."""
        ticket = await self.acquire(key, timeout)
        try:
            yield ticket
        finally:
            self.release(ticket)

    def _prune(self, key: str, state: _KeyState) -> None:
        if state.in_flight == 0 and not state.live_waiters() and self._states.get(key) is state:
            del self._states[key]

    @staticmethod
    def _discard(state: _KeyState, entry: _Waiter) -> None:
        try:
            state.waiters.remove(entry)
        except ValueError:
            pass

    def in_flight(self, key: str) -> int:
        """Slots currently held for ``key``."""
        state = self._states.get(key)
        return state.in_flight if state else 0

    def waiting(self, key: str) -> int:
        """Requests currently waiting for ``key``."""
        state = self._states.get(key)
        return state.live_waiters() if state else 0

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Get per-key queue statistics."""
        return {
            key: {
                "capacity": state.capacity,
                "in_flight": state.in_flight,
                "waiting": state.live_waiters(),
            }
            for key, state in self._states.items()
        }
