"""Constants and type definitions for the Game Arena V/S service."""

from typing import Literal, get_args

# Type definitions
MatchSize = Literal["1v1", "2v2", "4v4"]
TicketStatus = Literal["waiting", "paired", "expired", "completed"]
ExpiredReason = Literal["timeout", "canceled"]
MatchResult = Literal["won", "lost", "draw"]
NotificationKind = Literal["paired", "expired"]
ResolutionOutcome = Literal["paired", "expired", "canceled"]

MATCH_SIZES: tuple[str, ...] = get_args(MatchSize)
MATCH_RESULTS: tuple[str, ...] = get_args(MatchResult)

# Statuses that count towards the one-ticket-per-user rule
ACTIVE_STATUSES: tuple[str, ...] = ("waiting", "paired")
# Statuses that carry room credentials and an opponent
PAIRED_STATUSES: tuple[str, ...] = ("paired", "completed")

# Room credentials
ROOM_ID_PREFIX = "ROOM_"
ROOM_ID_LENGTH = 8
ROOM_SECRET_LENGTH = 6

# Notification copy
PAIRED_TITLE = "Match Found!"
PAIRED_MESSAGE = "{match_size} match found! Room ID: {room_id}"
EXPIRED_TITLE = "Match Timed Out"
EXPIRED_MESSAGE = "No {match_size} opponent found in time. Try again."
