"""V/S matchmaking router for Game Arena."""

from fastapi import APIRouter, Depends, HTTPException, Query

from arena.exceptions import AlreadyActive, OutsideWindow, StoreError, TicketNotFound
from arena.models.requests import MatchCancelRequest, MatchRequestBody
from arena.models.responses import (
    MatchCancelResponse,
    MatchHistoryResponse,
    MatchRequestResponse,
    TicketResponse,
    WindowResponse,
)
from arena.dependencies import get_engine
from arena.services.matchmaking_service import PairingEngine
from arena.utils.window import format_time_remaining, seconds_until_change

router = APIRouter(prefix="/vs", tags=["matchmaking"])


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(exc))


@router.get("/window", response_model=WindowResponse)
async def match_window(engine: PairingEngine = Depends(get_engine)):
    """Whether the arena is live, and when it next opens or closes."""
    now = engine.clock()
    bounds = engine.window(now)
    remaining = seconds_until_change(now, bounds=bounds)
    return WindowResponse(
        is_open=bounds.is_open,
        opens_at=bounds.opens_at.isoformat(),
        closes_at=bounds.closes_at.isoformat(),
        seconds_remaining=remaining,
        time_remaining=format_time_remaining(remaining),
    )


@router.post("/request", response_model=MatchRequestResponse)
async def match_request(body: MatchRequestBody, engine: PairingEngine = Depends(get_engine)):
    """Queue for a V/S match.

    Returns immediately; the ticket is either already paired or waiting for
    an opponent. Poll /vs/tickets/{ticket_id} or listen on /ws/events.
    """
    try:
        ticket = await engine.request_match(body.user_id, body.match_size)
    except OutsideWindow as exc:
        raise HTTPException(
            status_code=403,
            detail={"code": "outside_window", "message": str(exc), "opens_at": exc.opens_at.isoformat()},
        )
    except AlreadyActive as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "already_active", "message": str(exc), "ticket_id": exc.ticket_id},
        )
    except StoreError as exc:
        raise _store_unavailable(exc)

    return MatchRequestResponse(
        ticket_id=ticket.id,
        status=ticket.status,
        expires_at=ticket.expires_at,
        ticket=TicketResponse.from_ticket(ticket),
    )


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def ticket_status(ticket_id: str, engine: PairingEngine = Depends(get_engine)):
    """Current state of a ticket."""
    try:
        ticket = await engine.get_ticket_status(ticket_id)
    except TicketNotFound:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except StoreError as exc:
        raise _store_unavailable(exc)
    return TicketResponse.from_ticket(ticket)


@router.post("/cancel", response_model=MatchCancelResponse)
async def match_cancel(body: MatchCancelRequest, engine: PairingEngine = Depends(get_engine)):
    """Withdraw a waiting ticket. Paired or expired tickets are left as they are."""
    try:
        canceled = await engine.cancel_ticket(body.ticket_id, body.user_id)
    except TicketNotFound:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except StoreError as exc:
        raise _store_unavailable(exc)
    return MatchCancelResponse(ok=True, canceled=canceled)


@router.get("/history", response_model=MatchHistoryResponse)
async def match_history(user_id: str = Query(...), engine: PairingEngine = Depends(get_engine)):
    """The user's active ticket and past matches, newest first."""
    try:
        active, history = await engine.match_history(user_id)
    except StoreError as exc:
        raise _store_unavailable(exc)
    return MatchHistoryResponse(
        active=[TicketResponse.from_ticket(t) for t in active],
        history=[TicketResponse.from_ticket(t) for t in history],
    )
