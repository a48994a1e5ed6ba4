"""
Parichay - Permission & tenant scoping Tests (direct function calls)
"""

import pytest
from fastapi import HTTPException

from parichay.services.permissions import (
    ALL_PERMISSION_KEYS,
    ROLE_PRESETS,
    get_preset_permissions,
    user_has_permission,
    can_access_branch,
    build_tenant_filter,
    ensure_branch_access,
)


class TestPresets:

    def test_every_preset_covers_every_key(self):
        for role, preset in ROLE_PRESETS.items():
            assert set(preset) == set(ALL_PERMISSION_KEYS), role

    def test_unknown_role_falls_back_to_branch_admin(self):
        assert get_preset_permissions("intern") == ROLE_PRESETS["branch_admin"]

    def test_preset_is_a_copy(self):
        perms = get_preset_permissions("brand_manager")
        perms["users.manage"] = True
        assert ROLE_PRESETS["brand_manager"]["users.manage"] is False


class TestChecks:

    def test_super_admin_has_everything(self):
        assert user_has_permission({"role": "super_admin", "permissions": {}}, "users.manage")

    def test_explicit_permissions(self):
        user = {"role": "branch_admin", "permissions": {"leads.view": True, "leads.delete": False}}
        assert user_has_permission(user, "leads.view")
        assert not user_has_permission(user, "leads.delete")
        assert not user_has_permission(user, "unknown.key")

    def test_branch_access(self):
        branch = {"id": "b1", "brand_id": "brand-1"}
        assert can_access_branch({"role": "brand_manager", "brand_id": "brand-1"}, branch)
        assert can_access_branch({"role": "branch_admin", "branch_ids": ["b1"]}, branch)
        assert not can_access_branch({"role": "branch_admin", "branch_ids": ["b2"]}, branch)
        assert not can_access_branch({"role": "brand_manager", "brand_id": "brand-2"}, branch)

    def test_ensure_branch_access_raises(self):
        with pytest.raises(HTTPException) as exc_info:
            ensure_branch_access({"role": "branch_admin", "branch_ids": []}, {"id": "b1", "brand_id": "x"})
        assert exc_info.value.status_code == 403


class TestTenantFilter:

    def test_super_admin(self):
        assert build_tenant_filter({"role": "super_admin"}) == {}

    def test_brand_manager(self):
        assert build_tenant_filter({"role": "brand_manager", "brand_id": "brand-1"}) == {"brand_id": "brand-1"}

    def test_branch_admin(self):
        user = {"role": "branch_admin", "branch_ids": ["b1", "b2"]}
        assert build_tenant_filter(user) == {"branch_id": {"$in": ["b1", "b2"]}}

    def test_brand_and_branches(self):
        user = {"role": "branch_admin", "brand_id": "brand-1", "branch_ids": ["b1"]}
        assert build_tenant_filter(user) == {"$or": [
            {"brand_id": "brand-1"},
            {"branch_id": {"$in": ["b1"]}},
        ]}

    def test_no_tenant_matches_nothing(self):
        assert build_tenant_filter({"role": "branch_admin"}) == {"brand_id": {"$in": []}}
