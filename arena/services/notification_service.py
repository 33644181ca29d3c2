"""Notification delivery for paired and timed-out tickets.

The pairing logic only needs ``notify(user_id, kind, payload)``. The
NotificationCenter keeps a bounded per-user inbox (read/unread, like the
arena notifications page) and pushes every notification to the user's open
WebSocket connections.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from arena.constants import EXPIRED_MESSAGE, EXPIRED_TITLE, PAIRED_MESSAGE, PAIRED_TITLE
from arena.models.notification import Notification
from arena.utils.websocket_utils import ws_send

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Fire-and-forget delivery interface."""

    @abstractmethod
    async def notify(self, user_id: str, kind: str, payload: Dict[str, Any]) -> None:
        """Deliver one notification to the user."""


def render_notification(kind: str, payload: Dict[str, Any]) -> tuple[str, str]:
    """Build the (title, message) shown to the user."""
    match_size = payload.get("match_size", "V/S")
    if kind == "paired":
        return PAIRED_TITLE, PAIRED_MESSAGE.format(match_size=match_size, room_id=payload.get("room_id"))
    if kind == "expired":
        return EXPIRED_TITLE, EXPIRED_MESSAGE.format(match_size=match_size)
    return kind.title(), ""


class NotificationCenter(Notifier):
    """In-memory inbox plus WebSocket push."""

    def __init__(self, inbox_limit: int = 100):
        self.inbox_limit = inbox_limit
        self._inbox: Dict[str, List[Notification]] = defaultdict(list)
        self._sockets: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def notify(self, user_id: str, kind: str, payload: Dict[str, Any]) -> None:
        title, message = render_notification(kind, payload)
        notification = Notification(
            user_id=user_id,
            kind=kind,
            title=title,
            message=message,
            created_at=time.time(),
            payload=dict(payload),
        )
        async with self._lock:
            inbox = self._inbox[user_id]
            inbox.append(notification)
            if len(inbox) > self.inbox_limit:
                del inbox[: len(inbox) - self.inbox_limit]

        try:
            await self.push(user_id, "notification", notification=notification.to_dict())
        except Exception:
            logger.warning("Could not push %s notification to %s", kind, user_id, exc_info=True)

    async def push(self, user_id: str, kind: str, **payload: Any) -> int:
        """Send a message to every open socket of the user; returns deliveries."""
        async with self._lock:
            sockets = list(self._sockets.get(user_id, ()))
        delivered = 0
        for ws in sockets:
            if await ws_send(ws, kind, **payload):
                delivered += 1
            else:
                await self.disconnect(user_id, ws)
        return delivered

    async def connect(self, user_id: str, ws: WebSocket):
        async with self._lock:
            self._sockets[user_id].add(ws)

    async def disconnect(self, user_id: str, ws: WebSocket):
        async with self._lock:
            sockets = self._sockets.get(user_id)
            if sockets is not None:
                sockets.discard(ws)
                if not sockets:
                    del self._sockets[user_id]

    async def connected_count(self) -> int:
        async with self._lock:
            return sum(len(s) for s in self._sockets.values())

    async def list_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Notifications of a user, newest first."""
        async with self._lock:
            items = list(self._inbox.get(user_id, ()))
        if unread_only:
            items = [n for n in items if not n.read]
        return list(reversed(items))

    async def unread_count(self, user_id: str) -> int:
        async with self._lock:
            return sum(1 for n in self._inbox.get(user_id, ()) if not n.read)

    async def mark_read(self, user_id: str, notification_id: str) -> Optional[Notification]:
        """Mark one notification read; None if the user has no such notification."""
        async with self._lock:
            for notification in self._inbox.get(user_id, ()):
                if notification.id == notification_id:
                    notification.read = True
                    return notification
        return None

    async def mark_all_read(self, user_id: str) -> int:
        async with self._lock:
            changed = 0
            for notification in self._inbox.get(user_id, ()):
                if not notification.read:
                    notification.read = True
                    changed += 1
            return changed


async def deliver(notifier: Notifier, user_id: str, kind: str, payload: Dict[str, Any]):
    """Call notifier.notify, logging instead of raising on failure."""
    try:
        await notifier.notify(user_id, kind, payload)
    except Exception:
        logger.warning("Notifier failed to deliver %s to %s", kind, user_id, exc_info=True)
