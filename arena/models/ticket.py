"""Match ticket model for the V/S pairing service."""

import secrets
from dataclasses import asdict, dataclass, replace
from typing import Optional

from arena.constants import ACTIVE_STATUSES, PAIRED_STATUSES, ExpiredReason, MatchResult, MatchSize, TicketStatus


def new_ticket_id() -> str:
    """Opaque unique ticket identifier."""
    return secrets.token_hex(10)


@dataclass
class MatchTicket:
    """One user's standing request to be paired for a match size."""
    id: str
    user_id: str
    match_size: MatchSize
    created_at: float
    expires_at: float
    status: TicketStatus = "waiting"

    # set once paired
    opponent_ref: Optional[str] = None
    opponent_user_id: Optional[str] = None
    room_id: Optional[str] = None
    room_secret: Optional[str] = None

    resolved_at: Optional[float] = None
    expired_reason: Optional[ExpiredReason] = None

    # post-match bookkeeping
    result: Optional[MatchResult] = None
    tokens_earned: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def was_paired(self) -> bool:
        return self.status in PAIRED_STATUSES

    def copy(self) -> "MatchTicket":
        """Detached copy, so callers never mutate stored state."""
        return replace(self)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MatchTicket":
        return cls(**data)
