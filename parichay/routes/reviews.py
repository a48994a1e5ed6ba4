"""
Routes for Reviews
- Public listing (published only) and submission
- Moderation (reviews.moderate)
"""

from fastapi import APIRouter, HTTPException, Depends, Request
from typing import Optional

from parichay.models import ReviewCreate, ReviewModerate
from parichay.config import db, new_id, now_iso
from parichay.services.permissions import require_permission, build_tenant_filter, ensure_branch_access
from parichay.services.activity_logger import log_activity
from parichay.services.analytics import track_event, REVIEW_SUBMIT

router = APIRouter(prefix="/reviews", tags=["Reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["Reviews"])

PUBLIC_FIELDS = {"_id": 0, "author_email": 0, "ip_address": 0}


# ==================== PUBLIC ====================

@router.get("")
async def list_published_reviews(
    branch_id: Optional[str] = None,
    brand_id: Optional[str] = None,
    limit: int = 20,
    offset: int = 0
):
    if not branch_id and not brand_id:
        raise HTTPException(status_code=400, detail="branch_id or brand_id is required")

    query = {"is_published": True}
    if branch_id:
        query["branch_id"] = branch_id
    if brand_id:
        query["brand_id"] = brand_id

    limit = max(1, min(limit, 100))
    offset = max(0, offset)

    total = await db.reviews.count_documents(query)
    reviews = await db.reviews.find(query, PUBLIC_FIELDS) \
        .sort("created_at", -1) \
        .skip(offset) \
        .limit(limit) \
        .to_list(limit)

    ratings = await db.reviews.find(query, {"_id": 0, "rating": 1}).to_list(10000)
    average = round(sum(r["rating"] for r in ratings) / len(ratings), 1) if ratings else 0

    return {
        "success": True,
        "reviews": reviews,
        "average_rating": average,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(reviews) < total,
        }
    }


@router.post("", status_code=201)
async def submit_review(data: ReviewCreate, request: Request):
    branch = await db.branches.find_one({"id": data.branch_id}, {"_id": 0})
    if not branch or not branch.get("is_active", True):
        raise HTTPException(status_code=404, detail="Branch not found")

    review = {
        "id": new_id(),
        "branch_id": data.branch_id,
        "brand_id": branch.get("brand_id"),
        "author_name": data.author_name.strip(),
        "author_email": data.author_email,
        "author_company": data.author_company,
        "rating": data.rating,
        "title": data.title,
        "content": data.content.strip(),
        "is_published": False,
        "helpful_count": 0,
        "ip_address": request.client.host if request.client else None,
        "created_at": now_iso()
    }
    await db.reviews.insert_one(review)

    await track_event(
        REVIEW_SUBMIT,
        brand_id=review["brand_id"],
        branch_id=review["branch_id"],
        metadata={"review_id": review["id"], "rating": review["rating"]}
    )

    return {
        "success": True,
        "review_id": review["id"],
        "message": "Thank you! Your review will be visible once approved."
    }


# ==================== MODERATION ====================

@admin_router.get("")
async def list_reviews_for_moderation(
    branch_id: Optional[str] = None,
    is_published: Optional[bool] = None,
    limit: int = 50,
    offset: int = 0,
    user: dict = Depends(require_permission("reviews.moderate"))
):
    clauses = []
    tenant = build_tenant_filter(user)
    if tenant:
        clauses.append(tenant)
    if branch_id:
        clauses.append({"branch_id": branch_id})
    if is_published is not None:
        clauses.append({"is_published": is_published})
    query = {"$and": clauses} if clauses else {}

    total = await db.reviews.count_documents(query)
    reviews = await db.reviews.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(offset) \
        .limit(limit) \
        .to_list(limit)

    return {"success": True, "reviews": reviews, "total": total}


async def get_review_or_404(review_id: str, user: dict) -> dict:
    review = await db.reviews.find_one({"id": review_id}, {"_id": 0})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    ensure_branch_access(user, {"id": review.get("branch_id"), "brand_id": review.get("brand_id")})
    return review


@admin_router.put("/{review_id}")
async def moderate_review(
    review_id: str,
    data: ReviewModerate,
    user: dict = Depends(require_permission("reviews.moderate"))
):
    review = await get_review_or_404(review_id, user)

    await db.reviews.update_one(
        {"id": review_id},
        {"$set": {
            "is_published": data.is_published,
            "moderated_by": user.get("id"),
            "moderated_at": now_iso()
        }}
    )

    await log_activity(
        user=user,
        action="moderate",
        entity_type="review",
        entity_id=review_id,
        entity_name=review.get("author_name"),
        details={"is_published": data.is_published}
    )

    updated = await db.reviews.find_one({"id": review_id}, {"_id": 0})
    return {"success": True, "review": updated}


@admin_router.delete("/{review_id}")
async def delete_review(review_id: str, user: dict = Depends(require_permission("reviews.moderate"))):
    review = await get_review_or_404(review_id, user)

    await db.reviews.delete_one({"id": review_id})

    await log_activity(
        user=user,
        action="delete",
        entity_type="review",
        entity_id=review_id,
        entity_name=review.get("author_name")
    )

    return {"success": True}
