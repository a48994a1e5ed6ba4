"""
Parichay - Permission system
Granular permission keys + role presets + tenant scoping + FastAPI dependencies.
Permissions are the source of truth. Roles are presets only.
"""

import logging
from typing import Dict, Optional
from fastapi import Depends, HTTPException

logger = logging.getLogger("permissions")

# ════════════════════════════════════════════════════════════════════════
# ALL PERMISSION KEYS
# ════════════════════════════════════════════════════════════════════════

ALL_PERMISSION_KEYS = [
    "brands.view",
    "brands.create",
    "brands.edit",
    "brands.delete",

    "branches.view",
    "branches.create",
    "branches.edit",
    "branches.delete",

    "leads.view",
    "leads.edit",
    "leads.delete",
    "leads.export",

    "reviews.moderate",

    "short_links.manage",

    "uploads.create",
    "import.google",

    "activity.view",

    "users.manage",
]

# ════════════════════════════════════════════════════════════════════════
# ROLE PRESETS (defaults when creating a user with a role)
# ════════════════════════════════════════════════════════════════════════

ROLE_PRESETS: Dict[str, Dict[str, bool]] = {
    "super_admin": {k: True for k in ALL_PERMISSION_KEYS},

    "brand_manager": {
        "brands.view": True, "brands.create": True, "brands.edit": True, "brands.delete": False,
        "branches.view": True, "branches.create": True, "branches.edit": True, "branches.delete": True,
        "leads.view": True, "leads.edit": True, "leads.delete": True, "leads.export": True,
        "reviews.moderate": True,
        "short_links.manage": True,
        "uploads.create": True, "import.google": True,
        "activity.view": True,
        "users.manage": False,
    },

    "branch_admin": {
        "brands.view": True, "brands.create": False, "brands.edit": False, "brands.delete": False,
        "branches.view": True, "branches.create": False, "branches.edit": True, "branches.delete": False,
        "leads.view": True, "leads.edit": True, "leads.delete": False, "leads.export": True,
        "reviews.moderate": False,
        "short_links.manage": True,
        "uploads.create": True, "import.google": False,
        "activity.view": False,
        "users.manage": False,
    },
}

VALID_ROLES = list(ROLE_PRESETS.keys())


def get_preset_permissions(role: str) -> Dict[str, bool]:
    """Returns the default permissions for a role."""
    return dict(ROLE_PRESETS.get(role, ROLE_PRESETS["branch_admin"]))


# ════════════════════════════════════════════════════════════════════════
# PERMISSION CHECK HELPERS
# ════════════════════════════════════════════════════════════════════════

def user_has_permission(user: dict, key: str) -> bool:
    """Check if user has a specific permission."""
    if user.get("role") == "super_admin":
        return True
    perms = user.get("permissions", {})
    return perms.get(key, False) is True


def can_access_brand(user: dict, brand_id: Optional[str]) -> bool:
    if user.get("role") == "super_admin":
        return True
    return bool(brand_id) and user.get("brand_id") == brand_id


def can_access_branch(user: dict, branch: dict) -> bool:
    """
    super_admin: every branch
    brand_manager: every branch of its brand
    branch_admin: its assigned branches (or its brand when it also carries brand_id)
    """
    if user.get("role") == "super_admin":
        return True
    if branch.get("id") in (user.get("branch_ids") or []):
        return True
    return can_access_brand(user, branch.get("brand_id"))


def can_manage_user(user: dict, target: dict) -> bool:
    """Same brand, or at least one shared branch"""
    if user.get("role") == "super_admin":
        return True
    if can_access_brand(user, target.get("brand_id")):
        return True
    shared = set(user.get("branch_ids") or []) & set(target.get("branch_ids") or [])
    return bool(shared)


def build_tenant_filter(user: dict, brand_field: str = "brand_id", branch_field: str = "branch_id") -> dict:
    """
    Build a MongoDB filter for tenant isolation.
    super_admin -> no filter
    others -> own brand, or assigned branches
    """
    if user.get("role") == "super_admin":
        return {}

    clauses = []
    if user.get("brand_id"):
        clauses.append({brand_field: user["brand_id"]})
    if user.get("branch_ids"):
        clauses.append({branch_field: {"$in": user["branch_ids"]}})

    if not clauses:
        # No tenant attached: match nothing
        return {brand_field: {"$in": []}}
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def ensure_branch_access(user: dict, branch: dict):
    if not can_access_branch(user, branch):
        logger.warning(
            f"[TENANT_DENIED] user={user.get('email')} branch={branch.get('id')}"
        )
        raise HTTPException(status_code=403, detail="Forbidden")


# ════════════════════════════════════════════════════════════════════════
# FASTAPI DEPENDENCIES
# ════════════════════════════════════════════════════════════════════════

def require_permission(permission_key: str):
    """
    FastAPI dependency factory.
    Usage: user: dict = Depends(require_permission("leads.view"))
    """
    from parichay.routes.auth import get_current_user

    async def _check(user: dict = Depends(get_current_user)):
        if not user_has_permission(user, permission_key):
            logger.warning(
                f"[PERMISSION_DENIED] user={user.get('email')} "
                f"key={permission_key} role={user.get('role')}"
            )
            raise HTTPException(
                status_code=403,
                detail=f"Permission required: {permission_key}"
            )
        return user

    return _check
