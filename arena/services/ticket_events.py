"""Ticket resolution events (the onTicketResolved hook)."""

import inspect
import logging
from typing import Awaitable, Callable, List, Union

from arena.constants import ResolutionOutcome
from arena.models.ticket import MatchTicket

logger = logging.getLogger(__name__)

ResolvedCallback = Callable[[str, ResolutionOutcome, MatchTicket], Union[None, Awaitable[None]]]


class TicketEvents:
    """Fan-out of ticket resolutions to subscribers.

    Callbacks receive (ticket_id, outcome, ticket) where outcome is one of
    paired, expired or canceled. They may be plain functions or coroutines.
    """

    def __init__(self):
        self._subscribers: List[ResolvedCallback] = []

    def subscribe(self, callback: ResolvedCallback) -> ResolvedCallback:
        self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: ResolvedCallback):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    async def publish(self, ticket: MatchTicket, outcome: ResolutionOutcome):
        """Deliver a resolution to every subscriber; failures are logged only."""
        for callback in list(self._subscribers):
            try:
                result = callback(ticket.id, outcome, ticket)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Ticket resolution subscriber failed for %s (%s)", ticket.id, outcome)
