"""Notification inbox models for the V/S pairing service."""

import secrets
from dataclasses import dataclass, field
from typing import Any, Dict

from arena.constants import NotificationKind


@dataclass
class Notification:
    """A single notification delivered to a user."""
    user_id: str
    kind: NotificationKind
    title: str
    message: str
    created_at: float
    payload: Dict[str, Any] = field(default_factory=dict)
    read: bool = False
    id: str = field(default_factory=lambda: secrets.token_hex(8))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "payload": dict(self.payload),
            "read": self.read,
            "created_at": self.created_at,
        }
