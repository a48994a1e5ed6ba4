"""
Routes for in-app notifications of the logged-in user
"""

from fastapi import APIRouter, HTTPException, Depends

from parichay.routes.auth import get_current_user
from parichay.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    skip: int = 0,
    user: dict = Depends(get_current_user)
):
    result = await notification_service.list_notifications(user["id"], unread_only, limit, skip)
    return {"success": True, **result}


@router.put("/read-all")
async def mark_all_notifications_read(user: dict = Depends(get_current_user)):
    updated = await notification_service.mark_all_read(user["id"])
    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read")
async def mark_notification_read(notification_id: str, user: dict = Depends(get_current_user)):
    notification = await notification_service.mark_read(user["id"], notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True, "notification": notification}
