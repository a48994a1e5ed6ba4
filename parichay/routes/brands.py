"""
Routes for Brands (tenants)
- Scoped listing
- Creation with unique slug and optional first branch
- Update / delete (cascades to branches)
"""

from fastapi import APIRouter, HTTPException, Depends

from parichay.models import BrandCreate, BrandUpdate, DEFAULT_NOTIFICATION_PREFERENCES
from parichay.config import db, generate_slug, new_id, now_iso
from parichay.services.permissions import require_permission, can_access_brand
from parichay.services.activity_logger import log_activity

router = APIRouter(prefix="/brands", tags=["Brands"])


async def unique_slug(collection, base: str, scope: dict = None) -> str:
    """base, base-1, base-2, ... until no document in scope uses it"""
    base = base or "item"
    slug = base
    counter = 1
    while await collection.find_one({**(scope or {}), "slug": slug}):
        slug = f"{base}-{counter}"
        counter += 1
    return slug


async def get_brand_or_404(brand_id: str, user: dict) -> dict:
    brand = await db.brands.find_one({"id": brand_id}, {"_id": 0})
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")
    if not can_access_brand(user, brand_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    return brand


@router.get("")
async def list_brands(user: dict = Depends(require_permission("brands.view"))):
    if user.get("role") == "super_admin":
        query = {}
    elif user.get("brand_id"):
        query = {"id": user["brand_id"]}
    else:
        # branch_admin without brand: brands of its branches
        branches = await db.branches.find(
            {"id": {"$in": user.get("branch_ids") or []}},
            {"_id": 0, "brand_id": 1}
        ).to_list(500)
        query = {"id": {"$in": list({b["brand_id"] for b in branches})}}

    brands = await db.brands.find(query, {"_id": 0}).sort("created_at", -1).to_list(500)

    for brand in brands:
        brand["branch_count"] = await db.branches.count_documents({"brand_id": brand["id"]})

    return {"success": True, "brands": brands}


@router.post("", status_code=201)
async def create_brand(data: BrandCreate, user: dict = Depends(require_permission("brands.create"))):
    if user.get("role") != "super_admin" and user.get("brand_id"):
        raise HTTPException(status_code=403, detail="User already manages a brand")

    brand = {
        "id": new_id(),
        "name": data.name.strip(),
        "slug": await unique_slug(db.brands, generate_slug(data.name)),
        "tagline": data.tagline,
        "logo": data.logo,
        "custom_domain": data.custom_domain,
        "color_theme": data.color_theme.model_dump() if data.color_theme else None,
        "is_active": True,
        "created_at": now_iso(),
        "created_by": user.get("id"),
    }
    await db.brands.insert_one(brand)
    brand.pop("_id", None)

    branch = None
    if data.initial_branch:
        ib = data.initial_branch
        branch = {
            "id": new_id(),
            "brand_id": brand["id"],
            "name": ib.name.strip(),
            "slug": generate_slug(ib.name) or "main",
            "address": ib.address.model_dump(),
            "contact": {"phone": ib.phone, "whatsapp": None, "email": ib.email},
            "social_media": None,
            "business_hours": None,
            "microsite_config": {"notification_preferences": dict(DEFAULT_NOTIFICATION_PREFERENCES)},
            "is_active": True,
            "created_at": now_iso(),
        }
        await db.branches.insert_one(branch)
        branch.pop("_id", None)

    # A brand_manager creating its first brand becomes attached to it
    if user.get("role") == "brand_manager" and not user.get("brand_id"):
        await db.users.update_one({"id": user["id"]}, {"$set": {"brand_id": brand["id"]}})

    await log_activity(
        user=user,
        action="create",
        entity_type="brand",
        entity_id=brand["id"],
        entity_name=brand["name"],
        details={"initial_branch": branch["id"] if branch else None}
    )

    return {"success": True, "brand": brand, "branch": branch}


@router.get("/{brand_id}")
async def get_brand(brand_id: str, user: dict = Depends(require_permission("brands.view"))):
    brand = await get_brand_or_404(brand_id, user)
    branches = await db.branches.find({"brand_id": brand_id}, {"_id": 0}).to_list(500)
    return {"success": True, "brand": brand, "branches": branches}


@router.put("/{brand_id}")
async def update_brand(brand_id: str, data: BrandUpdate, user: dict = Depends(require_permission("brands.edit"))):
    brand = await get_brand_or_404(brand_id, user)

    update_data = data.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "name" in update_data:
        update_data["name"] = update_data["name"].strip()
    update_data["updated_at"] = now_iso()

    await db.brands.update_one({"id": brand_id}, {"$set": update_data})

    await log_activity(
        user=user,
        action="update",
        entity_type="brand",
        entity_id=brand_id,
        entity_name=brand.get("name"),
        details={"fields": [k for k in update_data if k != "updated_at"]}
    )

    updated = await db.brands.find_one({"id": brand_id}, {"_id": 0})
    return {"success": True, "brand": updated}


@router.delete("/{brand_id}")
async def delete_brand(brand_id: str, user: dict = Depends(require_permission("brands.delete"))):
    brand = await get_brand_or_404(brand_id, user)

    result = await db.branches.delete_many({"brand_id": brand_id})
    await db.brands.delete_one({"id": brand_id})

    await log_activity(
        user=user,
        action="delete",
        entity_type="brand",
        entity_id=brand_id,
        entity_name=brand.get("name"),
        details={"branches_deleted": result.deleted_count}
    )

    return {"success": True, "branches_deleted": result.deleted_count}
