"""
Routes for Short links
- Creation / listing under /api/short-links
- Public redirect /s/{code} (mounted without the /api prefix)
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import RedirectResponse

from parichay.models import ShortLinkCreate
from parichay.config import db, new_id, now_iso, to_utc_iso, generate_short_code, APP_URL
from parichay.services.permissions import require_permission, build_tenant_filter, can_access_brand, ensure_branch_access
from parichay.services.activity_logger import log_activity
from parichay.services.analytics import track_event, SHORT_LINK_CLICK

logger = logging.getLogger("short_links")

router = APIRouter(prefix="/short-links", tags=["Short links"])
redirect_router = APIRouter(tags=["Short links"])

MAX_CODE_ATTEMPTS = 10


def short_url(code: str) -> str:
    return f"{APP_URL}/s/{code}"


@router.post("", status_code=201)
async def create_short_link(data: ShortLinkCreate, user: dict = Depends(require_permission("short_links.manage"))):
    brand_id = data.brand_id
    if data.branch_id:
        branch = await db.branches.find_one({"id": data.branch_id}, {"_id": 0})
        if not branch:
            raise HTTPException(status_code=404, detail="Branch not found")
        ensure_branch_access(user, branch)
        if brand_id and brand_id != branch.get("brand_id"):
            raise HTTPException(status_code=400, detail="Branch does not belong to this brand")
        brand_id = branch.get("brand_id")
    elif brand_id:
        if not can_access_brand(user, brand_id):
            raise HTTPException(status_code=403, detail="Forbidden")
    elif user.get("role") != "super_admin":
        # Links created outside super_admin always carry a brand
        brand_id = user.get("brand_id")

    code = None
    for _ in range(MAX_CODE_ATTEMPTS):
        candidate = generate_short_code()
        if not await db.short_links.find_one({"code": candidate}):
            code = candidate
            break

    if not code:
        logger.error("Could not find a free short link code")
        raise HTTPException(status_code=500, detail="Failed to generate a unique short code")

    link = {
        "id": new_id(),
        "code": code,
        "target_url": data.target_url,
        "brand_id": brand_id,
        "branch_id": data.branch_id,
        "expires_at": to_utc_iso(data.expires_at) if data.expires_at else None,
        "is_active": True,
        "clicks": 0,
        "created_by": user.get("id"),
        "created_at": now_iso()
    }
    await db.short_links.insert_one(link)
    link.pop("_id", None)

    await log_activity(
        user=user,
        action="create",
        entity_type="short_link",
        entity_id=link["id"],
        entity_name=code,
        details={"target_url": data.target_url}
    )

    return {"success": True, "short_link": link, "short_url": short_url(code)}


@router.get("")
async def list_short_links(user: dict = Depends(require_permission("short_links.manage"))):
    query = {"is_active": True}
    tenant = build_tenant_filter(user)
    if tenant:
        query = {"$and": [query, tenant]}

    links = await db.short_links.find(query, {"_id": 0}).sort("created_at", -1).to_list(50)
    for link in links:
        link["short_url"] = short_url(link["code"])

    return {"success": True, "short_links": links}


# ==================== PUBLIC REDIRECT ====================

@redirect_router.get("/s/{code}")
async def follow_short_link(code: str, request: Request):
    link = await db.short_links.find_one({"code": code, "is_active": True}, {"_id": 0})
    if not link:
        raise HTTPException(status_code=404, detail="Short link not found")

    if link.get("expires_at") and link["expires_at"] < now_iso():
        raise HTTPException(status_code=410, detail="Short link has expired")

    await db.short_links.update_one({"code": code}, {"$inc": {"clicks": 1}})

    await track_event(
        SHORT_LINK_CLICK,
        brand_id=link.get("brand_id"),
        branch_id=link.get("branch_id"),
        metadata={
            "code": code,
            "user_agent": request.headers.get("user-agent"),
            "referer": request.headers.get("referer"),
        }
    )

    return RedirectResponse(url=link["target_url"], status_code=307)
