"""Pydantic response models for the Game Arena API."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from arena.models.notification import Notification
from arena.models.ticket import MatchTicket


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    env: str
    version: str
    store: str


class WindowResponse(BaseModel):
    """Current or next matchmaking window."""
    is_open: bool
    opens_at: str
    closes_at: str
    seconds_remaining: float
    time_remaining: str


class TicketResponse(BaseModel):
    """Public view of a match ticket."""
    id: str
    user_id: str
    match_size: str
    status: str
    created_at: float
    expires_at: float
    opponent_ref: Optional[str] = None
    opponent_user_id: Optional[str] = None
    room_id: Optional[str] = None
    room_secret: Optional[str] = None
    resolved_at: Optional[float] = None
    expired_reason: Optional[str] = None
    result: Optional[str] = None
    tokens_earned: int = 0

    @classmethod
    def from_ticket(cls, ticket: MatchTicket) -> "TicketResponse":
        return cls(**ticket.to_dict())


class MatchRequestResponse(BaseModel):
    """Response after requesting a match."""
    ticket_id: str
    status: str
    expires_at: float
    ticket: TicketResponse


class MatchCancelResponse(BaseModel):
    """Response after canceling a ticket."""
    ok: bool
    canceled: bool


class MatchHistoryResponse(BaseModel):
    """A user's active ticket(s) and past tickets."""
    active: List[TicketResponse]
    history: List[TicketResponse]


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    kind: str
    title: str
    message: str
    payload: Dict[str, object]
    read: bool
    created_at: float

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(**notification.to_dict())


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class LoginResponse(BaseModel):
    """Admin login response."""
    access_token: str
    token_type: str = "bearer"
