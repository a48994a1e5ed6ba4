"""
Routes for lead follow-up reminders
- Upcoming follow-ups of the user's tenant
- Cron trigger for external schedulers (Bearer CRON_SECRET when configured)
"""

from fastapi import APIRouter, HTTPException, Depends, Header
from typing import Optional

from parichay import config
from parichay.services.permissions import require_permission, build_tenant_filter
from parichay.services.reminders import list_upcoming_follow_ups, send_follow_up_reminders

router = APIRouter(tags=["Reminders"])


@router.get("/reminders")
async def get_upcoming_reminders(days: int = 7, user: dict = Depends(require_permission("leads.view"))):
    days = max(1, min(days, 90))
    result = await list_upcoming_follow_ups(build_tenant_filter(user), days)
    return {"success": True, **result}


@router.post("/cron/send-reminders")
async def run_reminders(authorization: Optional[str] = Header(None)):
    if config.CRON_SECRET and authorization != f"Bearer {config.CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = await send_follow_up_reminders()
    return {"success": True, **result}
