"""
Lead follow-up reminders

Two passes, run hourly by the scheduler (or through /api/cron/send-reminders):
1. Upcoming: metadata.next_follow_up_at within the next hour, not yet reminded
   -> FOLLOW_UP_REMINDER to every active admin of the branch
2. Overdue: metadata.next_follow_up_at in the past, lead still open, not yet flagged
   -> FOLLOW_UP_OVERDUE (50 leads per run at most)
Each lead is flagged in its metadata so a reminder is sent once per follow-up date.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from parichay.config import db
from parichay.services.notifications import create_notification, get_branch_admins

logger = logging.getLogger("reminders")

FOLLOW_UP_REMINDER = "FOLLOW_UP_REMINDER"
FOLLOW_UP_OVERDUE = "FOLLOW_UP_OVERDUE"

CLOSED_STATUSES = ["converted", "lost"]
UPCOMING_WINDOW = timedelta(hours=1)
MAX_OVERDUE_PER_RUN = 50


def _contact_line(lead: dict) -> str:
    return lead.get("phone") or lead.get("email") or "No contact"


def _format_follow_up(value: str, fmt: str) -> str:
    try:
        return datetime.fromisoformat(value).strftime(fmt)
    except (TypeError, ValueError):
        return value or ""


async def _notify_branch_admins(lead: dict, type: str, title: str, message: str) -> int:
    admins = await get_branch_admins(lead.get("branch_id"))
    for admin in admins:
        await create_notification(
            user_id=admin["id"],
            type=type,
            title=title,
            message=message,
            metadata={
                "lead_id": lead["id"],
                "branch_id": lead.get("branch_id"),
                "brand_id": lead.get("brand_id"),
                "follow_up_at": lead["metadata"].get("next_follow_up_at"),
            }
        )
    return len(admins)


async def send_follow_up_reminders(now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    now_str = now.isoformat()
    window_end = (now + UPCOMING_WINDOW).isoformat()

    reminders_sent = 0
    overdue_sent = 0

    upcoming = await db.leads.find({
        "metadata.next_follow_up_at": {"$gte": now_str, "$lte": window_end},
        "metadata.reminder_sent": {"$ne": True},
    }, {"_id": 0}).to_list(500)

    for lead in upcoming:
        follow_up = lead["metadata"]["next_follow_up_at"]
        reminders_sent += await _notify_branch_admins(
            lead,
            FOLLOW_UP_REMINDER,
            f"⏰ Follow-up Reminder: {lead['name']}",
            f"You have a scheduled follow-up with {lead['name']} ({_contact_line(lead)}) "
            f"at {_format_follow_up(follow_up, '%H:%M UTC')}"
        )
        await db.leads.update_one({"id": lead["id"]}, {"$set": {
            "metadata.reminder_sent": True,
            "metadata.reminder_sent_at": now_str,
        }})

    overdue = await db.leads.find({
        "metadata.next_follow_up_at": {"$lt": now_str},
        "status": {"$nin": CLOSED_STATUSES},
        "metadata.overdue_notified": {"$ne": True},
    }, {"_id": 0}).to_list(MAX_OVERDUE_PER_RUN)

    for lead in overdue:
        follow_up = lead["metadata"]["next_follow_up_at"]
        overdue_sent += await _notify_branch_admins(
            lead,
            FOLLOW_UP_OVERDUE,
            f"⚠️ Overdue Follow-up: {lead['name']}",
            f"Follow-up with {lead['name']} was due on {_format_follow_up(follow_up, '%d/%m/%Y')}. "
            f"Please take action."
        )
        await db.leads.update_one({"id": lead["id"]}, {"$set": {
            "metadata.overdue_notified": True,
            "metadata.overdue_notified_at": now_str,
        }})

    logger.info(
        f"Follow-up reminders: {len(upcoming)} upcoming lead(s), {len(overdue)} overdue lead(s), "
        f"{reminders_sent + overdue_sent} notification(s)"
    )
    return {"reminders_sent": reminders_sent, "overdue_notifications": overdue_sent}


async def list_upcoming_follow_ups(tenant_filter: dict, days: int = 7, now: Optional[datetime] = None) -> dict:
    """Leads with a follow-up in the next `days` days, grouped by date (YYYY-MM-DD)"""
    now = now or datetime.now(timezone.utc)
    query = {"metadata.next_follow_up_at": {
        "$gte": now.isoformat(),
        "$lte": (now + timedelta(days=days)).isoformat(),
    }}
    if tenant_filter:
        query = {"$and": [query, tenant_filter]}

    leads = await db.leads.find(query, {"_id": 0}) \
        .sort("metadata.next_follow_up_at", 1) \
        .to_list(500)

    grouped = {}
    for lead in leads:
        day = lead["metadata"]["next_follow_up_at"][:10]
        grouped.setdefault(day, []).append(lead)

    return {"reminders": leads, "grouped": grouped, "total": len(leads)}
