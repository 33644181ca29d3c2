"""Test doubles shared by the test modules."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Tuple

from arena.config import Settings
from arena.services.notification_service import Notifier


class FakeClock:
    """Manually advanced local clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)

    def set(self, now: datetime):
        self.now = now


class RecordingNotifier(Notifier):
    """Notifier that remembers every call."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    async def notify(self, user_id: str, kind: str, payload: Dict[str, Any]) -> None:
        self.calls.append((user_id, kind, payload))

    def kinds_for(self, user_id: str) -> List[str]:
        return [kind for uid, kind, _ in self.calls if uid == user_id]


def make_settings(**overrides) -> Settings:
    values = {"match_timeout_secs": 60.0, "pair_retry_limit": 3, "database_url": ""}
    values.update(overrides)
    return Settings(**values)
