"""Error taxonomy for the V/S pairing service."""

from datetime import datetime
from typing import Optional


class ArenaError(Exception):
    """Base class for all pairing service errors."""


class OutsideWindow(ArenaError):
    """Match requested outside the nightly matchmaking window."""

    def __init__(self, opens_at: datetime):
        self.opens_at = opens_at
        super().__init__(f"V/S matches are only available during the nightly window (next opens at {opens_at.isoformat()})")


class AlreadyActive(ArenaError):
    """The user already holds a waiting or paired ticket."""

    def __init__(self, ticket_id: Optional[str] = None):
        self.ticket_id = ticket_id
        super().__init__("You already have an active match")


class StaleTicket(ArenaError):
    """A ticket was no longer in the expected state at commit time."""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} changed state concurrently")


class TicketNotFound(ArenaError):
    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found")


class StoreError(ArenaError):
    """Persistence layer failure; nothing was committed."""
