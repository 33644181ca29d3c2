import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arena.config import Settings, settings
from arena.models.ticket import MatchTicket
from arena.routers import admin, health, matchmaking, notifications, websocket
from arena.services.matchmaking_service import PairingEngine
from arena.services.notification_service import NotificationCenter
from arena.stores.base import TicketStore
from arena.stores.memory import InMemoryTicketStore
from arena.stores.sql import SqlTicketStore

logger = logging.getLogger(__name__)


def build_store(config: Settings) -> TicketStore:
    """SQL store when DATABASE_URL is set, in-memory otherwise."""
    if config.database_url:
        return SqlTicketStore(config.database_url)
    logger.warning("DATABASE_URL not set, tickets are kept in memory only")
    return InMemoryTicketStore()


def create_app(
    config: Optional[Settings] = None,
    store: Optional[TicketStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    config = config or settings
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        center = NotificationCenter(inbox_limit=config.notification_inbox_limit)
        engine = PairingEngine(store or build_store(config), center, clock=clock, config=config)

        async def push_resolution(ticket_id: str, outcome: str, ticket: MatchTicket):
            await center.push(ticket.user_id, "ticket_resolved", ticket_id=ticket_id, outcome=outcome, status=ticket.status)

        engine.on_ticket_resolved(push_resolution)
        await engine.start()
        app.state.engine = engine
        app.state.notifications = center
        logger.info("Game Arena V/S service started (store=%s, env=%s)", engine.store.name, config.app_env)
        try:
            yield
        finally:
            await engine.stop()
            logger.info("Game Arena V/S service stopped")

    # ------------------------------------------------------------------------------
    # FastAPI
    # ------------------------------------------------------------------------------
    app = FastAPI(title="Game Arena V/S Backend", version=config.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------------------
    # Include routers
    # ------------------------------------------------------------------------------
    app.include_router(health.router)
    app.include_router(matchmaking.router)
    app.include_router(notifications.router)
    app.include_router(websocket.router)
    app.include_router(admin.router)
    return app


app = create_app()
