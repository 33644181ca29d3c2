"""In-memory ticket store.

Every operation runs under a single asyncio lock, which makes each one a
serializable transaction within the process.
"""

import asyncio
from collections import Counter
from typing import Dict, List, Optional, Tuple

from arena.exceptions import AlreadyActive, StaleTicket, TicketNotFound
from arena.models.ticket import MatchTicket, new_ticket_id
from arena.stores.base import TicketStore


class InMemoryTicketStore(TicketStore):
    """Ticket store backed by process memory."""

    name = "memory"

    def __init__(self):
        self._tickets: Dict[str, MatchTicket] = {}
        # user_id -> id of the user's waiting/paired ticket
        self._active: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    def _get(self, ticket_id: str) -> MatchTicket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)
        return ticket

    def _release_active(self, ticket: MatchTicket):
        if self._active.get(ticket.user_id) == ticket.id:
            del self._active[ticket.user_id]

    async def create_ticket(self, user_id: str, match_size: str, now: float, timeout_secs: float) -> MatchTicket:
        async with self._lock:
            active_id = self._active.get(user_id)
            if active_id is not None:
                raise AlreadyActive(active_id)

            ticket = MatchTicket(
                id=new_ticket_id(),
                user_id=user_id,
                match_size=match_size,
                created_at=now,
                expires_at=now + timeout_secs,
            )
            self._tickets[ticket.id] = ticket
            self._active[user_id] = ticket.id
            return ticket.copy()

    async def get_ticket(self, ticket_id: str) -> MatchTicket:
        async with self._lock:
            return self._get(ticket_id).copy()

    async def find_waiting_candidate(self, match_size: str, exclude_user_id: str) -> Optional[MatchTicket]:
        async with self._lock:
            candidates = [
                t for t in self._tickets.values()
                if t.status == "waiting" and t.match_size == match_size and t.user_id != exclude_user_id
            ]
            if not candidates:
                return None
            return min(candidates, key=lambda t: (t.created_at, t.id)).copy()

    async def pair_tickets(
        self,
        ticket_a_id: str,
        ticket_b_id: str,
        room_id: str,
        room_secret: str,
        now: float,
    ) -> Tuple[MatchTicket, MatchTicket]:
        async with self._lock:
            a = self._tickets.get(ticket_a_id)
            b = self._tickets.get(ticket_b_id)
            # validate everything before touching either ticket
            for ticket_id, ticket in ((ticket_a_id, a), (ticket_b_id, b)):
                if ticket is None or ticket.status != "waiting":
                    raise StaleTicket(ticket_id)
            if ticket_a_id == ticket_b_id or a.user_id == b.user_id or a.match_size != b.match_size:
                raise StaleTicket(ticket_b_id)

            for me, other in ((a, b), (b, a)):
                me.status = "paired"
                me.opponent_ref = other.id
                me.opponent_user_id = other.user_id
                me.room_id = room_id
                me.room_secret = room_secret
                me.resolved_at = now
            return a.copy(), b.copy()

    async def expire_if_still_waiting(self, ticket_id: str, now: float, reason: str = "timeout") -> bool:
        async with self._lock:
            ticket = self._tickets.get(ticket_id)
            if ticket is None or ticket.status != "waiting":
                return False
            ticket.status = "expired"
            ticket.expired_reason = reason
            ticket.resolved_at = now
            self._release_active(ticket)
            return True

    async def cancel_ticket(self, ticket_id: str, user_id: str, now: float) -> bool:
        async with self._lock:
            ticket = self._tickets.get(ticket_id)
            if ticket is None or ticket.user_id != user_id:
                raise TicketNotFound(ticket_id)
            if ticket.status != "waiting":
                return False
            ticket.status = "expired"
            ticket.expired_reason = "canceled"
            ticket.resolved_at = now
            self._release_active(ticket)
            return True

    async def complete_ticket(self, ticket_id: str, result: str, tokens_earned: int, now: float) -> MatchTicket:
        async with self._lock:
            ticket = self._get(ticket_id)
            if ticket.status != "paired":
                raise StaleTicket(ticket_id)
            ticket.status = "completed"
            ticket.result = result
            ticket.tokens_earned = tokens_earned
            self._release_active(ticket)
            return ticket.copy()

    async def list_user_tickets(self, user_id: str) -> List[MatchTicket]:
        async with self._lock:
            tickets = [t.copy() for t in self._tickets.values() if t.user_id == user_id]
        tickets.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return tickets

    async def list_waiting(self) -> List[MatchTicket]:
        async with self._lock:
            tickets = [t.copy() for t in self._tickets.values() if t.status == "waiting"]
        tickets.sort(key=lambda t: (t.created_at, t.id))
        return tickets

    async def count_by_status(self) -> Dict[str, int]:
        async with self._lock:
            return dict(Counter(t.status for t in self._tickets.values()))
