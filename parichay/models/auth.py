"""
Parichay - Auth & user models
Role + permission hybrid model.
Roles are presets. Permissions are the real authority.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, List


VALID_ROLES = ["super_admin", "brand_manager", "branch_admin"]


class UserLogin(BaseModel):
    email: str
    password: str = Field(min_length=6)


class UserRegister(BaseModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    brand_name: Optional[str] = None


class ChangePassword(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str
    last_name: str = ""
    role: str = "branch_admin"
    brand_id: Optional[str] = None
    branch_ids: List[str] = []
    permissions: Optional[Dict[str, bool]] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in VALID_ROLES:
            raise ValueError(f"Invalid role: {v}. Valid: {VALID_ROLES}")
        return v


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    brand_id: Optional[str] = None
    branch_ids: Optional[List[str]] = None
    permissions: Optional[Dict[str, bool]] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v is not None and v not in VALID_ROLES:
            raise ValueError(f"Invalid role: {v}")
        return v
