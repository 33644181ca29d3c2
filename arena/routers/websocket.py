"""WebSocket router pushing notifications and ticket resolutions."""

from fastapi import APIRouter, Query, WebSocket
from starlette.websockets import WebSocketDisconnect

from arena.utils.websocket_utils import ws_send

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/events")
async def ws_events(ws: WebSocket, user_id: str = Query(...)):
    """Event stream for one user.

    Pushes ``notification`` messages from the inbox and ``ticket_resolved``
    messages whenever one of the user's tickets is paired, expires or is
    canceled. Clients may send ``{"type": "ping"}`` to get a ``pong``.
    """
    center = ws.app.state.notifications
    await ws.accept()
    await center.connect(user_id, ws)
    await ws_send(ws, "hello", user_id=user_id, unread_count=await center.unread_count(user_id))
    try:
        while True:
            data = await ws.receive_json()
            if isinstance(data, dict) and data.get("type") == "ping":
                await ws_send(ws, "pong")
    except WebSocketDisconnect:
        pass
    except ValueError:
        # non-JSON frame; drop the connection
        await ws.close(code=1003)
    finally:
        await center.disconnect(user_id, ws)
