"""Admin router for Game Arena.

Provides admin authentication, queue monitoring and post-match bookkeeping.
"""

from fastapi import APIRouter, Depends, HTTPException

from arena.dependencies import get_current_admin, get_engine, get_notification_center
from arena.exceptions import StaleTicket, StoreError, TicketNotFound
from arena.models.requests import CompleteTicketRequest, LoginRequest
from arena.models.responses import LoginResponse, TicketResponse
from arena.services.admin_service import create_admin_token, verify_admin_password
from arena.services.matchmaking_service import PairingEngine
from arena.services.notification_service import NotificationCenter

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=LoginResponse)
async def admin_login(request: LoginRequest):
    """Admin login endpoint.

    Raises:
        HTTPException: If credentials are invalid
    """
    if not verify_admin_password(request.username, request.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(access_token=create_admin_token(request.username))


@router.get("/verify")
async def verify_token(admin: dict = Depends(get_current_admin)):
    """Verify admin token is valid."""
    return {"valid": True, "username": admin.get("sub")}


@router.get("/stats")
async def get_stats(
    admin: dict = Depends(get_current_admin),
    engine: PairingEngine = Depends(get_engine),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Real-time queue statistics."""
    try:
        counts = await engine.store.count_by_status()
        waiting = await engine.store.list_waiting()
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    now = engine.clock().timestamp()
    return {
        "store": engine.store.name,
        "window_open": engine.window().is_open,
        "tickets_by_status": counts,
        "armed_timeouts": engine.supervisor.armed_count,
        "connected_sockets": await center.connected_count(),
        "waiting": [
            {
                "ticket_id": t.id,
                "user_id": t.user_id,
                "match_size": t.match_size,
                "waited_secs": max(0.0, now - t.created_at),
                "expires_in_secs": max(0.0, t.expires_at - now),
            }
            for t in waiting
        ],
    }


@router.post("/tickets/{ticket_id}/complete", response_model=TicketResponse)
async def complete_ticket(
    ticket_id: str,
    body: CompleteTicketRequest,
    admin: dict = Depends(get_current_admin),
    engine: PairingEngine = Depends(get_engine),
):
    """Record the result of a played match."""
    try:
        ticket = await engine.complete_ticket(ticket_id, body.result, body.tokens_earned)
    except TicketNotFound:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except StaleTicket:
        raise HTTPException(status_code=409, detail="Ticket is not paired")
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return TicketResponse.from_ticket(ticket)


@router.post("/tickets/{ticket_id}/expire")
async def expire_ticket(
    ticket_id: str,
    admin: dict = Depends(get_current_admin),
    engine: PairingEngine = Depends(get_engine),
):
    """Expire a waiting ticket immediately, as if its timeout fired."""
    try:
        expired = await engine.expire_ticket(ticket_id)
        ticket = await engine.get_ticket_status(ticket_id)
    except TicketNotFound:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {"ok": True, "expired": expired, "status": ticket.status}
