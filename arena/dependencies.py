"""FastAPI dependencies exposing the services built at startup."""

from typing import Optional

from fastapi import Header, HTTPException, Request

from arena.services.admin_service import verify_admin_token
from arena.services.matchmaking_service import PairingEngine
from arena.services.notification_service import NotificationCenter


def get_engine(request: Request) -> PairingEngine:
    return request.app.state.engine


def get_notification_center(request: Request) -> NotificationCenter:
    return request.app.state.notifications


def get_current_admin(authorization: Optional[str] = Header(None)) -> dict:
    """Verify admin token from Authorization header.

    Args:
        authorization: Authorization header value

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or missing
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    payload = verify_admin_token(parts[1])
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload
