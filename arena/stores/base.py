"""Ticket store interface.

A store owns every state transition of a ticket. Each method is a single
bounded round trip and is atomic: the conditional transitions
(pair/expire/cancel/complete) only apply when the ticket is still in the
expected state at commit time.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from arena.models.ticket import MatchTicket


class TicketStore(ABC):
    """Durable record of match tickets."""

    name = "abstract"

    async def start(self) -> None:
        """Prepare the backing storage (create tables, etc.)."""

    async def close(self) -> None:
        """Release connections."""

    @abstractmethod
    async def create_ticket(self, user_id: str, match_size: str, now: float, timeout_secs: float) -> MatchTicket:
        """Persist a new waiting ticket.

        Raises:
            AlreadyActive: If the user holds a waiting or paired ticket
        """

    @abstractmethod
    async def get_ticket(self, ticket_id: str) -> MatchTicket:
        """Load a ticket.

        Raises:
            TicketNotFound: If no such ticket exists
        """

    @abstractmethod
    async def find_waiting_candidate(self, match_size: str, exclude_user_id: str) -> Optional[MatchTicket]:
        """Oldest waiting ticket of match_size not owned by exclude_user_id.

        Ordered by created_at, ties broken by ticket id.
        """

    @abstractmethod
    async def pair_tickets(
        self,
        ticket_a_id: str,
        ticket_b_id: str,
        room_id: str,
        room_secret: str,
        now: float,
    ) -> Tuple[MatchTicket, MatchTicket]:
        """Atomically move both tickets from waiting to paired.

        Raises:
            StaleTicket: If either ticket is no longer waiting (nothing changes)
        """

    @abstractmethod
    async def expire_if_still_waiting(self, ticket_id: str, now: float, reason: str = "timeout") -> bool:
        """Move a waiting ticket to expired. Returns whether anything changed."""

    @abstractmethod
    async def cancel_ticket(self, ticket_id: str, user_id: str, now: float) -> bool:
        """Expire the user's own waiting ticket early.

        Raises:
            TicketNotFound: If the ticket does not exist or belongs to someone else
        """

    @abstractmethod
    async def complete_ticket(self, ticket_id: str, result: str, tokens_earned: int, now: float) -> MatchTicket:
        """Record the outcome of a paired match.

        Raises:
            TicketNotFound: If no such ticket exists
            StaleTicket: If the ticket is not paired
        """

    @abstractmethod
    async def list_user_tickets(self, user_id: str) -> List[MatchTicket]:
        """All tickets of a user, newest first."""

    @abstractmethod
    async def list_waiting(self) -> List[MatchTicket]:
        """All waiting tickets, oldest first."""

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        """Number of tickets per status."""
