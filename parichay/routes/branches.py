"""
Routes for Branches
- CRUD scoped to the user's tenant
- vCard download (public)
- Lead notification preferences
- Public microsite lookup by slugs
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Request, Response
from typing import Optional

from parichay.models import BranchCreate, BranchUpdate, NotificationPreferences, DEFAULT_NOTIFICATION_PREFERENCES
from parichay.config import db, generate_slug, new_id, now_iso, is_production
from parichay.routes.brands import unique_slug
from parichay.services.permissions import (
    require_permission,
    build_tenant_filter,
    can_access_brand,
    ensure_branch_access,
)
from parichay.services.activity_logger import log_activity
from parichay.services.analytics import track_event, VCARD_DOWNLOAD
from parichay.services.lead_router import get_notification_preferences
from parichay.services.vcard import generate_vcard, vcard_filename

logger = logging.getLogger("branches")

router = APIRouter(prefix="/branches", tags=["Branches"])
microsite_router = APIRouter(prefix="/microsites", tags=["Public"])


async def get_branch_or_404(branch_id: str, user: dict) -> dict:
    branch = await db.branches.find_one({"id": branch_id}, {"_id": 0})
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")
    ensure_branch_access(user, branch)
    return branch


# ==================== CRUD ====================

@router.get("")
async def list_branches(
    brand_id: Optional[str] = None,
    user: dict = Depends(require_permission("branches.view"))
):
    query = build_tenant_filter(user, brand_field="brand_id", branch_field="id")
    if brand_id:
        query = {"$and": [query, {"brand_id": brand_id}]} if query else {"brand_id": brand_id}

    branches = await db.branches.find(query, {"_id": 0}).sort("created_at", -1).to_list(500)
    return {"success": True, "branches": branches}


@router.post("", status_code=201)
async def create_branch(data: BranchCreate, user: dict = Depends(require_permission("branches.create"))):
    brand = await db.brands.find_one({"id": data.brand_id}, {"_id": 0})
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")
    if not can_access_brand(user, data.brand_id):
        raise HTTPException(status_code=403, detail="Forbidden")

    if data.slug:
        slug = generate_slug(data.slug)
        if await db.branches.find_one({"brand_id": data.brand_id, "slug": slug}):
            raise HTTPException(status_code=400, detail="A branch with this slug already exists in this brand")
    else:
        slug = await unique_slug(db.branches, generate_slug(data.name), {"brand_id": data.brand_id})

    microsite_config = dict(data.microsite_config or {})
    microsite_config.setdefault("notification_preferences", dict(DEFAULT_NOTIFICATION_PREFERENCES))

    branch = {
        "id": new_id(),
        "brand_id": data.brand_id,
        "name": data.name.strip(),
        "slug": slug,
        "address": data.address.model_dump(),
        "contact": data.contact.model_dump(),
        "social_media": data.social_media.model_dump() if data.social_media else None,
        "business_hours": {d: h.model_dump() for d, h in data.business_hours.items()} if data.business_hours else None,
        "microsite_config": microsite_config,
        "is_active": True,
        "created_at": now_iso(),
        "created_by": user.get("id"),
    }
    await db.branches.insert_one(branch)
    branch.pop("_id", None)

    await log_activity(
        user=user,
        action="create",
        entity_type="branch",
        entity_id=branch["id"],
        entity_name=branch["name"],
        details={"brand_id": data.brand_id}
    )

    return {"success": True, "branch": branch}


@router.get("/{branch_id}")
async def get_branch(branch_id: str, user: dict = Depends(require_permission("branches.view"))):
    branch = await get_branch_or_404(branch_id, user)
    return {"success": True, "branch": branch}


@router.put("/{branch_id}")
async def update_branch(branch_id: str, data: BranchUpdate, user: dict = Depends(require_permission("branches.edit"))):
    branch = await get_branch_or_404(branch_id, user)

    update_data = data.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "slug" in update_data:
        slug = generate_slug(update_data["slug"])
        taken = await db.branches.find_one({
            "brand_id": branch["brand_id"],
            "slug": slug,
            "id": {"$ne": branch_id}
        })
        if taken:
            raise HTTPException(status_code=400, detail="A branch with this slug already exists in this brand")
        update_data["slug"] = slug

    if "microsite_config" in update_data:
        # Routing preferences are edited through their own endpoint
        current_prefs = (branch.get("microsite_config") or {}).get("notification_preferences")
        if current_prefs is not None:
            update_data["microsite_config"].setdefault("notification_preferences", current_prefs)

    update_data["updated_at"] = now_iso()
    await db.branches.update_one({"id": branch_id}, {"$set": update_data})

    await log_activity(
        user=user,
        action="update",
        entity_type="branch",
        entity_id=branch_id,
        entity_name=branch.get("name"),
        details={"fields": [k for k in update_data if k != "updated_at"]}
    )

    updated = await db.branches.find_one({"id": branch_id}, {"_id": 0})
    return {"success": True, "branch": updated}


@router.delete("/{branch_id}")
async def delete_branch(branch_id: str, user: dict = Depends(require_permission("branches.delete"))):
    branch = await get_branch_or_404(branch_id, user)

    await db.branches.delete_one({"id": branch_id})
    await db.users.update_many({"branch_ids": branch_id}, {"$pull": {"branch_ids": branch_id}})

    await log_activity(
        user=user,
        action="delete",
        entity_type="branch",
        entity_id=branch_id,
        entity_name=branch.get("name")
    )

    return {"success": True}


# ==================== NOTIFICATION PREFERENCES ====================

@router.get("/{branch_id}/notification-preferences")
async def get_branch_notification_preferences(
    branch_id: str,
    user: dict = Depends(require_permission("branches.view"))
):
    branch = await get_branch_or_404(branch_id, user)
    return {"success": True, "preferences": get_notification_preferences(branch)}


@router.put("/{branch_id}/notification-preferences")
async def update_branch_notification_preferences(
    branch_id: str,
    request: Request,
    user: dict = Depends(require_permission("branches.edit"))
):
    branch = await get_branch_or_404(branch_id, user)

    try:
        body = await request.json()
        prefs = NotificationPreferences.model_validate(body)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail="Invalid preferences. email, whatsapp and inApp must be booleans"
        )

    preferences = {"email": prefs.email, "whatsapp": prefs.whatsapp, "in_app": prefs.in_app}

    await db.branches.update_one(
        {"id": branch_id},
        {"$set": {
            "microsite_config.notification_preferences": preferences,
            "updated_at": now_iso()
        }}
    )

    await log_activity(
        user=user,
        action="update",
        entity_type="branch",
        entity_id=branch_id,
        entity_name=branch.get("name"),
        details={"notification_preferences": preferences}
    )

    return {"success": True, "preferences": preferences}


# ==================== VCARD (PUBLIC) ====================

@router.get("/{branch_id}/vcard")
async def download_vcard(branch_id: str, request: Request):
    branch = await db.branches.find_one({"id": branch_id}, {"_id": 0})
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")

    if not branch.get("is_active", True):
        raise HTTPException(status_code=403, detail="Branch is not active")

    brand = await db.brands.find_one({"id": branch.get("brand_id")}, {"_id": 0}) or {}

    protocol = "https" if is_production() else "http"
    host = request.headers.get("host", "localhost")
    microsite_url = f"{protocol}://{host}/{brand.get('slug', '')}/{branch.get('slug', '')}"

    vcard = generate_vcard({
        "branch": branch,
        "brand": brand,
        "microsite_url": microsite_url,
    })

    await track_event(
        VCARD_DOWNLOAD,
        brand_id=branch.get("brand_id"),
        branch_id=branch_id,
        metadata={
            "user_agent": request.headers.get("user-agent"),
            "referer": request.headers.get("referer"),
        }
    )

    return Response(
        content=vcard,
        media_type="text/vcard; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{vcard_filename(branch.get("name"))}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        }
    )


# ==================== PUBLIC MICROSITE ====================

@microsite_router.get("/{brand_slug}/{branch_slug}")
async def get_microsite(brand_slug: str, branch_slug: str):
    """Everything the public microsite page renders, active tenants only"""
    brand = await db.brands.find_one({"slug": brand_slug, "is_active": True}, {"_id": 0, "created_by": 0})
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")

    branch = await db.branches.find_one(
        {"brand_id": brand["id"], "slug": branch_slug, "is_active": True},
        {"_id": 0, "created_by": 0}
    )
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")

    # Routing preferences stay private
    microsite_config = dict(branch.get("microsite_config") or {})
    microsite_config.pop("notification_preferences", None)
    branch["microsite_config"] = microsite_config

    return {"success": True, "brand": brand, "branch": branch}
