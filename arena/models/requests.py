"""Pydantic request models for the Game Arena API."""

from pydantic import BaseModel, Field

from arena.constants import MatchResult, MatchSize


class MatchRequestBody(BaseModel):
    """Request to queue for a V/S match."""
    user_id: str = Field(..., min_length=1, max_length=64)
    match_size: MatchSize


class MatchCancelRequest(BaseModel):
    """Request to withdraw a waiting ticket."""
    ticket_id: str
    user_id: str


class NotificationReadRequest(BaseModel):
    """Request to mark notifications as read."""
    user_id: str


class LoginRequest(BaseModel):
    """Admin login request."""
    username: str
    password: str


class CompleteTicketRequest(BaseModel):
    """Admin request recording a finished match."""
    result: MatchResult
    tokens_earned: int = Field(0, ge=0)
