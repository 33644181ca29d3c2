"""Notification inbox router for Game Arena."""

from fastapi import APIRouter, Depends, HTTPException, Query

from arena.dependencies import get_notification_center
from arena.models.requests import NotificationReadRequest
from arena.models.responses import NotificationListResponse, NotificationResponse
from arena.services.notification_service import NotificationCenter

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str = Query(...),
    unread_only: bool = Query(False),
    center: NotificationCenter = Depends(get_notification_center),
):
    """List a user's notifications, newest first."""
    items = await center.list_notifications(user_id, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_notification(n) for n in items],
        unread_count=await center.unread_count(user_id),
    )


@router.post("/read-all")
async def mark_all_read(body: NotificationReadRequest, center: NotificationCenter = Depends(get_notification_center)):
    """Mark every notification of the user as read."""
    changed = await center.mark_all_read(body.user_id)
    return {"ok": True, "marked": changed}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    body: NotificationReadRequest,
    center: NotificationCenter = Depends(get_notification_center),
):
    """Mark a single notification as read."""
    notification = await center.mark_read(body.user_id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationResponse.from_notification(notification)
