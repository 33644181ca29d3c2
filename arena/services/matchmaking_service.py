"""Matchmaking service for Game Arena V/S matches.

This module handles the pairing logic including:
- Gating requests on the nightly matchmaking window
- Pairing a new ticket with the oldest compatible waiting ticket
- Retrying a bounded number of times when a candidate goes stale
- Handing unpaired tickets to the timeout supervisor
- Notifying both parties once paired
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from arena.config import Settings, settings as default_settings
from arena.constants import MATCH_RESULTS, MATCH_SIZES, MatchResult, MatchSize
from arena.exceptions import OutsideWindow, StaleTicket
from arena.models.ticket import MatchTicket
from arena.services.notification_service import Notifier, deliver
from arena.services.ticket_events import ResolvedCallback, TicketEvents
from arena.services.timeout_supervisor import TimeoutSupervisor
from arena.stores.base import TicketStore
from arena.utils.room_credentials import generate_room_credentials
from arena.utils.window import WindowBounds, is_window_open, window_bounds

logger = logging.getLogger(__name__)


class PairingEngine:
    """Owns the waiting -> paired / expired state machine of match tickets."""

    def __init__(
        self,
        store: TicketStore,
        notifier: Notifier,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[Settings] = None,
        events: Optional[TicketEvents] = None,
    ):
        config = config or default_settings
        self.store = store
        self.notifier = notifier
        self.clock = clock or config.now
        self.timeout_secs = config.match_timeout_secs
        self.retry_limit = config.pair_retry_limit
        self.open_hour = config.window_open_hour
        self.close_hour = config.window_close_hour
        self.events = events or TicketEvents()
        self.supervisor = TimeoutSupervisor(store, notifier, self.events, self.clock)

    async def start(self):
        """Prepare storage and re-arm timeouts of tickets left waiting."""
        await self.store.start()
        await self.supervisor.resume()

    async def stop(self):
        await self.supervisor.shutdown()
        await self.store.close()

    def on_ticket_resolved(self, callback: ResolvedCallback) -> ResolvedCallback:
        """Register callback(ticket_id, outcome, ticket) for resolutions."""
        return self.events.subscribe(callback)

    def window(self, now: Optional[datetime] = None) -> WindowBounds:
        return window_bounds(now or self.clock(), self.open_hour, self.close_hour)

    async def request_match(self, user_id: str, match_size: MatchSize) -> MatchTicket:
        """Create a ticket for the user and try to pair it right away.

        Args:
            user_id: Requesting user
            match_size: One of 1v1, 2v2, 4v4

        Returns:
            The ticket, either paired or still waiting (pairing may happen later)

        Raises:
            ValueError: If match_size is unknown
            OutsideWindow: If called outside the nightly window
            AlreadyActive: If the user already holds a waiting or paired ticket
        """
        if match_size not in MATCH_SIZES:
            raise ValueError(f"Unknown match size {match_size!r}")

        now = self.clock()
        if not is_window_open(now, self.open_hour, self.close_hour):
            raise OutsideWindow(self.window(now).opens_at)

        ticket = await self.store.create_ticket(user_id, match_size, now.timestamp(), self.timeout_secs)
        logger.info("User %s queued %s ticket %s", user_id, match_size, ticket.id)

        # a store failure while pairing must still end in expiry
        self.supervisor.arm(ticket.id, ticket.expires_at - self.clock().timestamp())
        resolved = await self._try_pair(ticket)
        if resolved is not None:
            self.supervisor.disarm(ticket.id)
            return resolved
        return ticket

    async def _try_pair(self, ticket: MatchTicket) -> Optional[MatchTicket]:
        """Pair ticket with the oldest candidate; None if it is left waiting."""
        for attempt in range(self.retry_limit + 1):
            candidate = await self.store.find_waiting_candidate(ticket.match_size, ticket.user_id)
            if candidate is None:
                return None

            room_id, room_secret = generate_room_credentials()
            try:
                mine, theirs = await self.store.pair_tickets(
                    ticket.id, candidate.id, room_id, room_secret, self.clock().timestamp()
                )
            except StaleTicket:
                current = await self.store.get_ticket(ticket.id)
                if current.status != "waiting":
                    # a concurrent arrival already took this ticket
                    return current
                logger.debug(
                    "Candidate %s for ticket %s went stale (attempt %d)", candidate.id, ticket.id, attempt + 1
                )
                continue

            await self._announce_pairing(mine, theirs)
            return mine

        logger.warning("Pairing retries exhausted for ticket %s, waiting for timeout", ticket.id)
        return None

    async def _announce_pairing(self, mine: MatchTicket, theirs: MatchTicket):
        for ticket in (mine, theirs):
            self.supervisor.disarm(ticket.id)

        logger.info(
            "Paired %s tickets %s (user %s) and %s (user %s) in room %s",
            mine.match_size, mine.id, mine.user_id, theirs.id, theirs.user_id, mine.room_id,
        )
        for me, other in ((mine, theirs), (theirs, mine)):
            await deliver(self.notifier, me.user_id, "paired", {
                "ticket_id": me.id,
                "match_size": me.match_size,
                "opponent_ref": other.id,
                "opponent_user_id": other.user_id,
                "room_id": me.room_id,
                "room_secret": me.room_secret,
            })
        for ticket in (theirs, mine):
            await self.events.publish(ticket, "paired")

    async def get_ticket_status(self, ticket_id: str) -> MatchTicket:
        return await self.store.get_ticket(ticket_id)

    async def cancel_ticket(self, ticket_id: str, user_id: str) -> bool:
        """Withdraw the user's own waiting ticket. False if it already resolved."""
        canceled = await self.store.cancel_ticket(ticket_id, user_id, self.clock().timestamp())
        if canceled:
            self.supervisor.disarm(ticket_id)
            logger.info("User %s canceled ticket %s", user_id, ticket_id)
            await self.events.publish(await self.store.get_ticket(ticket_id), "canceled")
        return canceled

    async def expire_ticket(self, ticket_id: str) -> bool:
        """Run the timeout check now instead of waiting for the deadline."""
        self.supervisor.disarm(ticket_id)
        return await self.supervisor.check(ticket_id)

    async def complete_ticket(self, ticket_id: str, result: MatchResult, tokens_earned: int = 0) -> MatchTicket:
        """Record the outcome of a paired match, releasing the user's slot."""
        if result not in MATCH_RESULTS:
            raise ValueError(f"Unknown match result {result!r}")
        ticket = await self.store.complete_ticket(ticket_id, result, tokens_earned, self.clock().timestamp())
        logger.info("Ticket %s completed: %s (+%d tokens)", ticket_id, result, tokens_earned)
        return ticket

    async def match_history(self, user_id: str) -> Tuple[List[MatchTicket], List[MatchTicket]]:
        """Split the user's tickets into (active, history), newest first."""
        tickets = await self.store.list_user_tickets(user_id)
        active = [t for t in tickets if t.is_active]
        history = [t for t in tickets if not t.is_active]
        return active, history
