"""Shared fixtures for the V/S pairing tests."""

from datetime import datetime

import pytest

from arena.services.matchmaking_service import PairingEngine
from arena.stores.memory import InMemoryTicketStore
from arena.stores.sql import SqlTicketStore

from helpers import FakeClock, RecordingNotifier, make_settings


@pytest.fixture
def clock() -> FakeClock:
    # 21:05 local, inside the window
    return FakeClock(datetime(2024, 5, 17, 21, 5, 0))


@pytest.fixture
def store() -> InMemoryTicketStore:
    return InMemoryTicketStore()


@pytest.fixture(params=["memory", "sql"])
async def ticket_store(request, tmp_path):
    """Every store backend; sql runs on a SQLite file."""
    if request.param == "memory":
        store = InMemoryTicketStore()
    else:
        store = SqlTicketStore(f"sqlite+aiosqlite:///{tmp_path / 'arena.db'}")
    await store.start()
    yield store
    await store.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def engine(store, notifier, clock):
    engine = PairingEngine(store, notifier, clock=clock, config=make_settings())
    yield engine
    await engine.supervisor.shutdown()
