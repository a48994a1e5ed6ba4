"""
In-app notifications (one document per recipient user)
"""

import logging
from typing import List, Optional

from parichay.config import db, now_iso, new_id

logger = logging.getLogger("notifications")

NEW_LEAD = "NEW_LEAD"
SYSTEM_ALERT = "SYSTEM_ALERT"


async def create_notification(
    user_id: str,
    type: str,
    title: str,
    message: str,
    metadata: dict = None
) -> dict:
    notification = {
        "id": new_id(),
        "user_id": user_id,
        "type": type,
        "title": title,
        "message": message,
        "metadata": metadata or {},
        "is_read": False,
        "created_at": now_iso()
    }
    await db.notifications.insert_one(notification)
    notification.pop("_id", None)
    return notification


async def get_branch_admins(branch_id: str) -> List[dict]:
    """Active users assigned to the branch"""
    return await db.users.find(
        {"branch_ids": branch_id, "is_active": True},
        {"_id": 0, "password": 0}
    ).to_list(500)


async def notify_new_lead(branch_id: str, lead_info: dict, brand_name: str, branch_name: str) -> List[dict]:
    """One NEW_LEAD notification per active admin of the branch"""
    admins = await get_branch_admins(branch_id)

    created = []
    for admin in admins:
        created.append(await create_notification(
            user_id=admin["id"],
            type=NEW_LEAD,
            title=f"New Lead from {branch_name}",
            message=f"{lead_info.get('name')} submitted an inquiry via {lead_info.get('source')}",
            metadata={
                "lead_id": lead_info.get("lead_id"),
                "branch_id": branch_id,
                "brand_name": brand_name,
                "branch_name": branch_name,
                "lead_name": lead_info.get("name"),
                "lead_email": lead_info.get("email"),
                "lead_phone": lead_info.get("phone"),
                "source": lead_info.get("source"),
            }
        ))

    logger.info(f"{len(created)} NEW_LEAD notification(s) for branch {branch_id}")
    return created


async def notify_system_alert(user_id: str, title: str, message: str, metadata: dict = None) -> dict:
    return await create_notification(user_id, SYSTEM_ALERT, title, message, metadata)


async def list_notifications(user_id: str, unread_only: bool = False, limit: int = 50, skip: int = 0) -> dict:
    query = {"user_id": user_id}
    if unread_only:
        query["is_read"] = False

    notifications = await db.notifications.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(skip) \
        .limit(limit) \
        .to_list(limit)

    unread = await db.notifications.count_documents({"user_id": user_id, "is_read": False})
    return {"notifications": notifications, "unread_count": unread}


async def mark_read(user_id: str, notification_id: str) -> Optional[dict]:
    """Returns the updated notification, None when it does not belong to the user"""
    result = await db.notifications.update_one(
        {"id": notification_id, "user_id": user_id},
        {"$set": {"is_read": True, "read_at": now_iso()}}
    )
    if result.matched_count == 0:
        return None
    return await db.notifications.find_one({"id": notification_id}, {"_id": 0})


async def mark_all_read(user_id: str) -> int:
    result = await db.notifications.update_many(
        {"user_id": user_id, "is_read": False},
        {"$set": {"is_read": True, "read_at": now_iso()}}
    )
    return result.modified_count
