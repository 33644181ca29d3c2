"""WebSocket utility functions for safe message sending."""

import json
from typing import Any, Optional

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState


async def ws_send(ws: WebSocket, kind: str, **payload: Any) -> bool:
    """
    Send a typed JSON message through a WebSocket without raising.

    Args:
        ws: The WebSocket connection
        kind: Message type identifier
        **payload: Additional message data

    Returns:
        True if send was successful, False otherwise
    """
    if not ws_alive(ws):
        return False
    try:
        await ws.send_text(json.dumps({"type": kind, **payload}))
        return True
    except (WebSocketDisconnect, RuntimeError):
        return False


def ws_alive(ws: Optional[WebSocket]) -> bool:
    """
    Check if a WebSocket connection is alive.

    Args:
        ws: The WebSocket connection to check

    Returns:
        True if connection is alive and connected
    """
    return bool(
        ws and getattr(ws, "application_state", None) == WebSocketState.CONNECTED
    )
