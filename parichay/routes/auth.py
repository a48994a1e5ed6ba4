"""
Parichay - Auth routes
Register / Login / Logout / Session / User CRUD with granular permissions.
"""

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime, timezone, timedelta
from typing import Optional

from parichay.models import UserLogin, UserRegister, ChangePassword, UserCreate, UserUpdate
from parichay.config import (
    db, hash_password, generate_token, generate_slug, is_valid_email, new_id, now_iso, SESSION_DAYS
)
from parichay.services.activity_logger import log_activity, get_activity_logs as get_logs
from parichay.services.notifications import notify_system_alert
from parichay.services.permissions import (
    get_preset_permissions,
    ROLE_PRESETS,
    VALID_ROLES,
    ALL_PERMISSION_KEYS,
    user_has_permission,
    build_tenant_filter,
    can_access_brand,
    can_access_branch,
    can_manage_user,
)

router = APIRouter(prefix="/auth", tags=["Auth"])
security = HTTPBearer(auto_error=False)


# ==================== HELPERS ====================

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Logged-in user from the bearer token."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    session = await db.sessions.find_one({
        "token": credentials.credentials,
        "expires_at": {"$gt": now_iso()}
    })

    if not session:
        raise HTTPException(status_code=401, detail="Session expired")

    user = await db.users.find_one(
        {"id": session["user_id"]},
        {"_id": 0, "password": 0}
    )

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disabled")

    if not user.get("permissions"):
        user["permissions"] = get_preset_permissions(user.get("role", "branch_admin"))

    return user


async def get_optional_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Optional[dict]:
    """Same as get_current_user but returns None instead of raising."""
    if not credentials:
        return None
    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None


async def create_session(user_id: str) -> str:
    token = generate_token()
    expires_at = (datetime.now(timezone.utc) + timedelta(days=SESSION_DAYS)).isoformat()
    await db.sessions.insert_one({
        "token": token,
        "user_id": user_id,
        "created_at": now_iso(),
        "expires_at": expires_at
    })
    return token


def public_user(user: dict) -> dict:
    return {
        "id": user["id"],
        "email": user["email"],
        "first_name": user.get("first_name", ""),
        "last_name": user.get("last_name", ""),
        "role": user.get("role", "branch_admin"),
        "brand_id": user.get("brand_id"),
        "branch_ids": user.get("branch_ids", []),
        "permissions": user.get("permissions") or get_preset_permissions(user.get("role", "branch_admin")),
    }


# ==================== REGISTER / LOGIN / LOGOUT ====================

@router.post("/register", status_code=201)
async def register(data: UserRegister, request: Request):
    """Self-service signup. A brand_name creates the brand and makes the user its manager."""
    from parichay.routes.brands import unique_slug

    email = data.email.lower().strip()
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    if await db.users.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    user_id = new_id()
    brand_id = None
    role = "branch_admin"

    if data.brand_name and data.brand_name.strip():
        brand_id = new_id()
        role = "brand_manager"
        await db.brands.insert_one({
            "id": brand_id,
            "name": data.brand_name.strip(),
            "slug": await unique_slug(db.brands, generate_slug(data.brand_name) or "brand"),
            "tagline": None,
            "logo": None,
            "custom_domain": None,
            "color_theme": None,
            "is_active": True,
            "created_at": now_iso(),
            "created_by": user_id,
        })

    user = {
        "id": user_id,
        "email": email,
        "password": hash_password(data.password),
        "first_name": data.first_name.strip(),
        "last_name": data.last_name.strip(),
        "role": role,
        "brand_id": brand_id,
        "branch_ids": [],
        "permissions": get_preset_permissions(role),
        "is_active": True,
        "created_at": now_iso(),
    }
    await db.users.insert_one(user)

    await log_activity(
        user=user,
        action="register",
        entity_type="user",
        entity_id=user_id,
        entity_name=email,
        ip_address=request.client.host if request.client else None
    )

    token = await create_session(user_id)
    return {"token": token, "user": public_user(user)}


@router.post("/login")
async def login(data: UserLogin, request: Request):
    user = await db.users.find_one(
        {"email": data.email.lower().strip()},
        {"_id": 0}
    )

    if not user or user.get("password") != hash_password(data.password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disabled")

    token = await create_session(user["id"])

    await db.users.update_one({"id": user["id"]}, {"$set": {"last_login_at": now_iso()}})

    await log_activity(
        user=user,
        action="login",
        entity_type="user",
        entity_id=user["id"],
        ip_address=request.client.host if request.client else None
    )

    return {"token": token, "user": public_user(user)}


@router.post("/logout")
async def logout(
    user: dict = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    if credentials:
        await db.sessions.delete_one({"token": credentials.credentials})
    return {"success": True}


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    return user


@router.post("/change-password")
async def change_password(data: ChangePassword, user: dict = Depends(get_current_user)):
    if data.new_password != data.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords don't match")

    stored = await db.users.find_one({"id": user["id"]}, {"_id": 0, "password": 1})
    if not stored or stored.get("password") != hash_password(data.current_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    await db.users.update_one(
        {"id": user["id"]},
        {"$set": {"password": hash_password(data.new_password), "updated_at": now_iso()}}
    )

    await log_activity(user=user, action="change_password", entity_type="user", entity_id=user["id"])
    await notify_system_alert(
        user["id"],
        "Password changed",
        "Your account password was changed. If this wasn't you, contact your administrator."
    )
    return {"success": True, "message": "Password changed successfully"}


# ==================== USER CRUD (users.manage) ====================

async def ensure_assignable(user: dict, brand_id: Optional[str], branch_ids: Optional[list]):
    """Non super_admins only hand out their own brand and branches"""
    if user.get("role") == "super_admin":
        return
    if brand_id and not can_access_brand(user, brand_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    if branch_ids:
        branches = await db.branches.find({"id": {"$in": branch_ids}}, {"_id": 0}).to_list(len(branch_ids))
        if len(branches) != len(set(branch_ids)) or not all(can_access_branch(user, b) for b in branches):
            raise HTTPException(status_code=403, detail="Forbidden")


async def get_managed_user_or_404(user_id: str, user: dict) -> dict:
    target = await db.users.find_one({"id": user_id}, {"_id": 0})
    if not target or not can_manage_user(user, target):
        raise HTTPException(status_code=404, detail="User not found")
    return target


@router.get("/users")
async def list_users(user: dict = Depends(get_current_user)):
    if not user_has_permission(user, "users.manage"):
        raise HTTPException(status_code=403, detail="Permission required: users.manage")

    query = build_tenant_filter(user, branch_field="branch_ids")
    users = await db.users.find(query, {"_id": 0, "password": 0}).to_list(500)
    return {"users": users}


@router.post("/users", status_code=201)
async def create_user(data: UserCreate, user: dict = Depends(get_current_user)):
    if not user_has_permission(user, "users.manage"):
        raise HTTPException(status_code=403, detail="Permission required: users.manage")

    email = data.email.lower().strip()
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    if await db.users.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    if data.role == "super_admin" and user.get("role") != "super_admin":
        raise HTTPException(status_code=403, detail="Only a super_admin can create a super_admin")

    brand_id = data.brand_id
    if brand_id is None and user.get("role") != "super_admin":
        brand_id = user.get("brand_id")
    await ensure_assignable(user, brand_id, data.branch_ids)

    new_user = {
        "id": new_id(),
        "email": email,
        "password": hash_password(data.password),
        "first_name": data.first_name,
        "last_name": data.last_name,
        "role": data.role,
        "brand_id": brand_id,
        "branch_ids": data.branch_ids,
        "permissions": data.permissions if data.permissions else get_preset_permissions(data.role),
        "is_active": True,
        "created_at": now_iso(),
        "created_by": user.get("id")
    }

    await db.users.insert_one(new_user)

    await log_activity(
        user=user,
        action="create_user",
        entity_type="user",
        entity_id=new_user["id"],
        entity_name=new_user["email"],
        details={"role": data.role, "brand_id": brand_id}
    )

    new_user.pop("password", None)
    new_user.pop("_id", None)
    return {"success": True, "user": new_user}


@router.put("/users/{user_id}")
async def update_user(user_id: str, data: UserUpdate, user: dict = Depends(get_current_user)):
    if not user_has_permission(user, "users.manage"):
        raise HTTPException(status_code=403, detail="Permission required: users.manage")

    target = await get_managed_user_or_404(user_id, user)

    if target.get("role") == "super_admin" and user.get("role") != "super_admin":
        raise HTTPException(status_code=403, detail="Cannot modify a super_admin")

    await ensure_assignable(user, data.brand_id, data.branch_ids)

    update_data = data.model_dump(exclude_none=True)

    if data.role is not None:
        if data.role == "super_admin" and user.get("role") != "super_admin":
            raise HTTPException(status_code=403, detail="Cannot grant the super_admin role")
        if data.permissions is None:
            update_data["permissions"] = get_preset_permissions(data.role)

    update_data["updated_at"] = now_iso()

    await db.users.update_one({"id": user_id}, {"$set": update_data})

    await log_activity(
        user=user,
        action="update_user",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("email"),
        details={k: v for k, v in update_data.items() if k != "updated_at"}
    )

    updated = await db.users.find_one({"id": user_id}, {"_id": 0, "password": 0})
    return {"success": True, "user": updated}


@router.delete("/users/{user_id}")
async def deactivate_user(user_id: str, user: dict = Depends(get_current_user)):
    if not user_has_permission(user, "users.manage"):
        raise HTTPException(status_code=403, detail="Permission required: users.manage")

    target = await get_managed_user_or_404(user_id, user)

    if user_id == user.get("id"):
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")

    if target.get("role") == "super_admin" and user.get("role") != "super_admin":
        raise HTTPException(status_code=403, detail="Cannot deactivate a super_admin")

    await db.users.update_one(
        {"id": user_id},
        {"$set": {"is_active": False, "deactivated_at": now_iso()}}
    )
    await db.sessions.delete_many({"user_id": user_id})

    await log_activity(
        user=user,
        action="deactivate_user",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("email")
    )

    return {"success": True}


# ==================== PERMISSION INTROSPECTION ====================

@router.get("/permission-keys")
async def list_permission_keys(user: dict = Depends(get_current_user)):
    if not user_has_permission(user, "users.manage"):
        raise HTTPException(status_code=403, detail="Permission required: users.manage")
    return {
        "keys": ALL_PERMISSION_KEYS,
        "presets": ROLE_PRESETS,
        "roles": VALID_ROLES
    }


# ==================== ACTIVITY LOG ====================

@router.get("/activity-logs")
async def get_activity_logs(
    user_id: str = None,
    entity_type: str = None,
    action: str = None,
    limit: int = 100,
    skip: int = 0,
    user: dict = Depends(get_current_user)
):
    if not user_has_permission(user, "activity.view"):
        raise HTTPException(status_code=403, detail="Permission required: activity.view")
    return await get_logs(user_id, entity_type, action, limit, skip)
