"""
Routes for Leads
- Public intake from microsite forms
- Dashboard listing, detail, update, delete
- CSV export
"""

import re
import logging
from fastapi import APIRouter, HTTPException, Depends, Request, Response
from typing import Optional

from parichay.models import LeadSubmit, LeadUpdate, DEFAULT_LEAD_SOURCE
from parichay.config import db, new_id, now_iso, to_utc_iso, is_valid_email
from parichay.services.permissions import require_permission, build_tenant_filter, ensure_branch_access
from parichay.services.activity_logger import log_activity
from parichay.services.analytics import track_event, LEAD_SUBMIT
from parichay.services.lead_router import route_lead_to_contacts
from parichay.services.csv_export import lead_to_row, generate_csv_content, generate_csv_filename

logger = logging.getLogger("leads")

router = APIRouter(prefix="/leads", tags=["Leads"])

SUCCESS_MESSAGE = "Your inquiry has been submitted successfully. We will contact you soon."

# Fields a dashboard user may set directly on the lead document
LEAD_FIELDS = ["status", "priority", "notes", "assigned_to", "conversion_value"]
# Fields kept inside lead.metadata
LEAD_METADATA_FIELDS = ["tags"]


def _clean(value: Optional[str]) -> Optional[str]:
    """Trimmed string, None when empty"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_lead_query(
    user: dict,
    branch_id: str = None,
    brand_id: str = None,
    status: str = None,
    source: str = None,
    search: str = None,
    start_date: str = None,
    end_date: str = None
) -> dict:
    clauses = []

    tenant = build_tenant_filter(user)
    if tenant:
        clauses.append(tenant)

    if branch_id:
        clauses.append({"branch_id": branch_id})
    if brand_id:
        clauses.append({"brand_id": brand_id})
    if status and status != "all":
        clauses.append({"status": status})
    if source:
        clauses.append({"source": source})

    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        clauses.append({"$or": [
            {"name": pattern},
            {"email": pattern},
            {"phone": pattern},
        ]})

    if start_date or end_date:
        date_range = {}
        if start_date:
            date_range["$gte"] = start_date
        if end_date:
            date_range["$lte"] = end_date
        clauses.append({"created_at": date_range})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


async def get_lead_or_404(lead_id: str, user: dict) -> dict:
    lead = await db.leads.find_one({"id": lead_id}, {"_id": 0})
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    ensure_branch_access(user, {"id": lead.get("branch_id"), "brand_id": lead.get("brand_id")})
    return lead


# ==================== PUBLIC INTAKE ====================

@router.post("", status_code=201)
async def submit_lead(data: LeadSubmit, request: Request):
    """
    Public lead submission from a microsite form.

    Flow:
    1. Validate branch id / name / email
    2. Load branch + brand
    3. Store the lead (status new)
    4. Track LEAD_SUBMIT
    5. Route to branch contacts (never fails the request)
    """
    branch_id = _clean(data.branch_id)
    if not branch_id:
        raise HTTPException(status_code=400, detail="Branch ID is required")

    name = _clean(data.name)
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    email = _clean(data.email)
    if email and not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    branch = await db.branches.find_one({"id": branch_id}, {"_id": 0})
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")

    brand = await db.brands.find_one({"id": branch.get("brand_id")}, {"_id": 0}) or {}

    created_at = now_iso()
    lead = {
        "id": new_id(),
        "branch_id": branch_id,
        "brand_id": branch.get("brand_id"),
        "name": name,
        "email": email,
        "phone": _clean(data.phone),
        "message": _clean(data.message),
        "source": _clean(data.source) or DEFAULT_LEAD_SOURCE,
        "status": "new",
        "priority": None,
        "notes": None,
        "assigned_to": None,
        "conversion_value": None,
        "metadata": {
            **data.extra_fields(),
            "submitted_at": created_at,
            "user_agent": request.headers.get("user-agent"),
        },
        "created_at": created_at,
    }
    await db.leads.insert_one(lead)
    lead.pop("_id", None)

    logger.info(f"Lead received: {lead['id']} branch={branch.get('name')} source={lead['source']}")

    await track_event(
        LEAD_SUBMIT,
        brand_id=lead["brand_id"],
        branch_id=branch_id,
        metadata={"lead_id": lead["id"], "source": lead["source"]}
    )

    try:
        await route_lead_to_contacts(lead, branch, brand, data.branch_contact)
    except Exception as e:
        logger.error(f"Lead routing failed for {lead['id']}: {str(e)}")

    return {"success": True, "lead_id": lead["id"], "message": SUCCESS_MESSAGE}


# ==================== DASHBOARD ====================

@router.get("")
async def list_leads(
    branch_id: Optional[str] = None,
    brand_id: Optional[str] = None,
    status: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user: dict = Depends(require_permission("leads.view"))
):
    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    query = build_lead_query(user, branch_id, brand_id, status, source, search, start_date, end_date)

    total = await db.leads.count_documents(query)
    leads = await db.leads.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(offset) \
        .limit(limit) \
        .to_list(limit)

    # Branch names for the table
    branch_ids = list({lead["branch_id"] for lead in leads if lead.get("branch_id")})
    branches = await db.branches.find({"id": {"$in": branch_ids}}, {"_id": 0, "id": 1, "name": 1}).to_list(500)
    branch_names = {b["id"]: b["name"] for b in branches}
    for lead in leads:
        lead["branch_name"] = branch_names.get(lead.get("branch_id"), "")

    return {
        "success": True,
        "leads": leads,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(leads) < total,
        }
    }


@router.get("/export")
async def export_leads(
    branch_id: Optional[str] = None,
    brand_id: Optional[str] = None,
    status: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    user: dict = Depends(require_permission("leads.export"))
):
    query = build_lead_query(user, branch_id, brand_id, status, source, search, start_date, end_date)
    leads = await db.leads.find(query, {"_id": 0}).sort("created_at", -1).to_list(10000)

    branches = {
        b["id"]: b for b in await db.branches.find(
            {"id": {"$in": list({lead.get("branch_id") for lead in leads})}}, {"_id": 0}
        ).to_list(1000)
    }
    brands = {
        b["id"]: b for b in await db.brands.find(
            {"id": {"$in": list({lead.get("brand_id") for lead in leads})}}, {"_id": 0}
        ).to_list(1000)
    }

    rows = [
        lead_to_row(lead, branches.get(lead.get("branch_id")), brands.get(lead.get("brand_id")))
        for lead in leads
    ]

    await log_activity(
        user=user,
        action="export",
        entity_type="lead",
        details={"count": len(rows)}
    )

    return Response(
        content=generate_csv_content(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{generate_csv_filename()}"'}
    )


@router.get("/{lead_id}")
async def get_lead(lead_id: str, user: dict = Depends(require_permission("leads.view"))):
    lead = await get_lead_or_404(lead_id, user)

    branch = await db.branches.find_one({"id": lead.get("branch_id")}, {"_id": 0, "id": 1, "name": 1, "slug": 1})
    brand = await db.brands.find_one({"id": lead.get("brand_id")}, {"_id": 0, "id": 1, "name": 1, "slug": 1})

    return {"success": True, "lead": lead, "branch": branch, "brand": brand}


@router.put("/{lead_id}")
async def update_lead(lead_id: str, data: LeadUpdate, user: dict = Depends(require_permission("leads.edit"))):
    lead = await get_lead_or_404(lead_id, user)

    changes = data.model_dump(exclude_none=True, mode="json")
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    update_data = {k: v for k, v in changes.items() if k in LEAD_FIELDS}
    for key in LEAD_METADATA_FIELDS:
        if key in changes:
            update_data[f"metadata.{key}"] = changes[key]

    if data.next_follow_up_at:
        # New follow-up date: reminders fire again
        update_data["metadata.next_follow_up_at"] = to_utc_iso(data.next_follow_up_at)
        update_data["metadata.reminder_sent"] = False
        update_data["metadata.overdue_notified"] = False

    if "status" in changes and changes["status"] != lead.get("status"):
        update_data["status_changed_at"] = now_iso()

    update_data["updated_at"] = now_iso()
    await db.leads.update_one({"id": lead_id}, {"$set": update_data})

    await log_activity(
        user=user,
        action="update",
        entity_type="lead",
        entity_id=lead_id,
        entity_name=lead.get("name"),
        details=changes
    )

    updated = await db.leads.find_one({"id": lead_id}, {"_id": 0})
    return {"success": True, "lead": updated}


@router.delete("/{lead_id}")
async def delete_lead(lead_id: str, user: dict = Depends(require_permission("leads.delete"))):
    lead = await get_lead_or_404(lead_id, user)

    await db.leads.delete_one({"id": lead_id})

    await log_activity(
        user=user,
        action="delete",
        entity_type="lead",
        entity_id=lead_id,
        entity_name=lead.get("name")
    )

    return {"success": True}
