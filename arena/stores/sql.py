"""SQL ticket store (Postgres in production, SQLite in tests).

The one-active-ticket-per-user rule is a partial unique index, so creation
cannot race. Pairing is a transaction of two conditional updates
(``UPDATE ... WHERE status = 'waiting'``); if either touches no row the
transaction rolls back and the caller sees StaleTicket.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import Index, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import Field, SQLModel, col

from arena.exceptions import AlreadyActive, ArenaError, StaleTicket, StoreError, TicketNotFound
from arena.models.ticket import MatchTicket, new_ticket_id
from arena.stores.base import TicketStore

logger = logging.getLogger(__name__)

_ACTIVE_WHERE = "status IN ('waiting', 'paired')"


class TicketRecord(SQLModel, table=True):
    __tablename__ = "vs_tickets"
    __table_args__ = (
        Index(
            "uq_vs_tickets_active_user",
            "user_id",
            unique=True,
            sqlite_where=text(_ACTIVE_WHERE),
            postgresql_where=text(_ACTIVE_WHERE),
        ),
        Index("ix_vs_tickets_queue", "status", "match_size", "created_at", "id"),
    )

    id: str = Field(primary_key=True, max_length=32)
    user_id: str = Field(index=True, max_length=64)
    match_size: str = Field(max_length=8)
    created_at: float
    expires_at: float
    status: str = Field(default="waiting", max_length=16)
    opponent_ref: Optional[str] = Field(default=None, max_length=32)
    opponent_user_id: Optional[str] = Field(default=None, max_length=64)
    room_id: Optional[str] = Field(default=None, max_length=32)
    room_secret: Optional[str] = Field(default=None, max_length=32)
    resolved_at: Optional[float] = None
    expired_reason: Optional[str] = Field(default=None, max_length=16)
    result: Optional[str] = Field(default=None, max_length=8)
    tokens_earned: int = 0


def _to_ticket(record: TicketRecord) -> MatchTicket:
    return MatchTicket.from_dict(record.model_dump())


class SqlTicketStore(TicketStore):
    """Ticket store backed by an async SQLAlchemy engine."""

    name = "sql"

    def __init__(self, database_url: str, echo: bool = False):
        self._engine = create_async_engine(database_url, echo=echo)
        self._session_maker = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

    async def start(self) -> None:
        """Create tables if missing."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except SQLAlchemyError as exc:
            logger.exception("Could not initialise ticket tables")
            raise StoreError("Could not initialise ticket tables") from exc

    async def close(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except ArenaError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Ticket store operation failed")
            raise StoreError("Ticket store operation failed") from exc

    @staticmethod
    async def _load(session: AsyncSession, ticket_id: str) -> Optional[TicketRecord]:
        return await session.get(TicketRecord, ticket_id, populate_existing=True)

    async def create_ticket(self, user_id: str, match_size: str, now: float, timeout_secs: float) -> MatchTicket:
        record = TicketRecord(
            id=new_ticket_id(),
            user_id=user_id,
            match_size=match_size,
            created_at=now,
            expires_at=now + timeout_secs,
        )
        async with self._session() as session:
            try:
                async with session.begin():
                    session.add(record)
            except IntegrityError:
                active_id = (
                    await session.execute(
                        select(TicketRecord.id).where(
                            col(TicketRecord.user_id) == user_id,
                            col(TicketRecord.status).in_(("waiting", "paired")),
                        )
                    )
                ).scalar_one_or_none()
                raise AlreadyActive(active_id) from None
            return _to_ticket(record)

    async def get_ticket(self, ticket_id: str) -> MatchTicket:
        async with self._session() as session:
            record = await self._load(session, ticket_id)
            if record is None:
                raise TicketNotFound(ticket_id)
            return _to_ticket(record)

    async def find_waiting_candidate(self, match_size: str, exclude_user_id: str) -> Optional[MatchTicket]:
        async with self._session() as session:
            record = (
                await session.execute(
                    select(TicketRecord)
                    .where(
                        col(TicketRecord.status) == "waiting",
                        col(TicketRecord.match_size) == match_size,
                        col(TicketRecord.user_id) != exclude_user_id,
                    )
                    .order_by(col(TicketRecord.created_at), col(TicketRecord.id))
                    .limit(1)
                )
            ).scalar_one_or_none()
            return _to_ticket(record) if record else None

    async def pair_tickets(
        self,
        ticket_a_id: str,
        ticket_b_id: str,
        room_id: str,
        room_secret: str,
        now: float,
    ) -> Tuple[MatchTicket, MatchTicket]:
        async with self._session() as session:
            async with session.begin():
                # lock both rows in id order so two crossing pairings cannot deadlock
                locked = (
                    await session.execute(
                        select(TicketRecord)
                        .where(col(TicketRecord.id).in_((ticket_a_id, ticket_b_id)))
                        .order_by(col(TicketRecord.id))
                        .with_for_update()
                        .execution_options(populate_existing=True)
                    )
                ).scalars().all()
                records = {record.id: record for record in locked}
                a = records.get(ticket_a_id)
                b = records.get(ticket_b_id)
                for ticket_id, record in ((ticket_a_id, a), (ticket_b_id, b)):
                    if record is None or record.status != "waiting":
                        raise StaleTicket(ticket_id)
                if ticket_a_id == ticket_b_id or a.user_id == b.user_id or a.match_size != b.match_size:
                    raise StaleTicket(ticket_b_id)

                for me, other in sorted(((a, b), (b, a)), key=lambda pair: pair[0].id):
                    result = await session.execute(
                        update(TicketRecord)
                        .where(col(TicketRecord.id) == me.id, col(TicketRecord.status) == "waiting")
                        .values(
                            status="paired",
                            opponent_ref=other.id,
                            opponent_user_id=other.user_id,
                            room_id=room_id,
                            room_secret=room_secret,
                            resolved_at=now,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        # leaving the begin() block with an error rolls back both updates
                        raise StaleTicket(me.id)

            a = await self._load(session, ticket_a_id)
            b = await self._load(session, ticket_b_id)
            return _to_ticket(a), _to_ticket(b)

    async def expire_if_still_waiting(self, ticket_id: str, now: float, reason: str = "timeout") -> bool:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketRecord)
                    .where(col(TicketRecord.id) == ticket_id, col(TicketRecord.status) == "waiting")
                    .values(status="expired", expired_reason=reason, resolved_at=now)
                    .execution_options(synchronize_session=False)
                )
            return result.rowcount == 1

    async def cancel_ticket(self, ticket_id: str, user_id: str, now: float) -> bool:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketRecord)
                    .where(
                        col(TicketRecord.id) == ticket_id,
                        col(TicketRecord.user_id) == user_id,
                        col(TicketRecord.status) == "waiting",
                    )
                    .values(status="expired", expired_reason="canceled", resolved_at=now)
                    .execution_options(synchronize_session=False)
                )
            if result.rowcount == 1:
                return True
            record = await self._load(session, ticket_id)
            if record is None or record.user_id != user_id:
                raise TicketNotFound(ticket_id)
            return False

    async def complete_ticket(self, ticket_id: str, result: str, tokens_earned: int, now: float) -> MatchTicket:
        async with self._session() as session:
            async with session.begin():
                updated = await session.execute(
                    update(TicketRecord)
                    .where(col(TicketRecord.id) == ticket_id, col(TicketRecord.status) == "paired")
                    .values(status="completed", result=result, tokens_earned=tokens_earned)
                    .execution_options(synchronize_session=False)
                )
            record = await self._load(session, ticket_id)
            if record is None:
                raise TicketNotFound(ticket_id)
            if updated.rowcount != 1:
                raise StaleTicket(ticket_id)
            return _to_ticket(record)

    async def list_user_tickets(self, user_id: str) -> List[MatchTicket]:
        async with self._session() as session:
            records = (
                await session.execute(
                    select(TicketRecord)
                    .where(col(TicketRecord.user_id) == user_id)
                    .order_by(col(TicketRecord.created_at).desc(), col(TicketRecord.id).desc())
                )
            ).scalars().all()
            return [_to_ticket(r) for r in records]

    async def list_waiting(self) -> List[MatchTicket]:
        async with self._session() as session:
            records = (
                await session.execute(
                    select(TicketRecord)
                    .where(col(TicketRecord.status) == "waiting")
                    .order_by(col(TicketRecord.created_at), col(TicketRecord.id))
                )
            ).scalars().all()
            return [_to_ticket(r) for r in records]

    async def count_by_status(self) -> Dict[str, int]:
        async with self._session() as session:
            rows = (
                await session.execute(
                    select(TicketRecord.status, func.count()).group_by(TicketRecord.status)
                )
            ).all()
            return {status: count for status, count in rows}
