"""Timeout supervisor for unpaired tickets.

One asyncio task per outstanding ticket. The deadline lives on the ticket
itself (expires_at), so after a restart ``resume`` re-arms every waiting
ticket with its remaining time. Firing against a ticket that already left
the waiting state does nothing: the store only flips a waiting ticket once.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict

from arena.services.notification_service import Notifier, deliver
from arena.services.ticket_events import TicketEvents
from arena.stores.base import TicketStore

logger = logging.getLogger(__name__)


class TimeoutSupervisor:
    """Expires tickets that are still waiting when their deadline passes."""

    def __init__(
        self,
        store: TicketStore,
        notifier: Notifier,
        events: TicketEvents,
        clock: Callable[[], datetime],
    ):
        self._store = store
        self._notifier = notifier
        self._events = events
        self._clock = clock
        self._timers: Dict[str, asyncio.Task] = {}

    @property
    def armed_count(self) -> int:
        return sum(1 for task in self._timers.values() if not task.done())

    def is_armed(self, ticket_id: str) -> bool:
        task = self._timers.get(ticket_id)
        return task is not None and not task.done()

    def arm(self, ticket_id: str, delay: float):
        """Schedule a one-shot expiry check; replaces any pending timer."""
        self.disarm(ticket_id)
        task = asyncio.create_task(self._fire(ticket_id, delay), name=f"ticket-timeout-{ticket_id}")
        self._timers[ticket_id] = task
        task.add_done_callback(lambda t: self._forget(ticket_id, t))

    def disarm(self, ticket_id: str) -> bool:
        task = self._timers.pop(ticket_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def _forget(self, ticket_id: str, task: asyncio.Task):
        if self._timers.get(ticket_id) is task:
            del self._timers[ticket_id]

    async def _fire(self, ticket_id: str, delay: float):
        await asyncio.sleep(max(0.0, delay))
        try:
            await self.check(ticket_id)
        except Exception:
            logger.exception("Timeout check failed for ticket %s", ticket_id)

    async def check(self, ticket_id: str) -> bool:
        """Expire the ticket if it is still waiting, then notify its owner.

        Returns:
            True if this call expired the ticket
        """
        now = self._clock().timestamp()
        if not await self._store.expire_if_still_waiting(ticket_id, now, reason="timeout"):
            logger.debug("Timeout for ticket %s ignored, no longer waiting", ticket_id)
            return False

        ticket = await self._store.get_ticket(ticket_id)
        logger.info("Ticket %s (%s, user %s) expired without an opponent", ticket.id, ticket.match_size, ticket.user_id)
        await deliver(
            self._notifier,
            ticket.user_id,
            "expired",
            {"ticket_id": ticket.id, "match_size": ticket.match_size},
        )
        await self._events.publish(ticket, "expired")
        return True

    async def resume(self) -> int:
        """Re-arm timers for every waiting ticket in the store."""
        waiting = await self._store.list_waiting()
        now = self._clock().timestamp()
        for ticket in waiting:
            self.arm(ticket.id, ticket.expires_at - now)
        if waiting:
            logger.info("Re-armed %d ticket timeouts", len(waiting))
        return len(waiting)

    async def shutdown(self):
        """Cancel all pending timers."""
        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
