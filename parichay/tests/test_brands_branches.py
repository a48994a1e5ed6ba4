"""
Parichay - Brands & Branches Tests

1. Brand creation with unique slugs and an initial branch
2. Scoped listing
3. Branch CRUD, slug uniqueness within a brand
4. Notification preferences
5. Public microsite lookup
"""

import pytest

from parichay.config import db

ADDRESS = {
    "street": "MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "zip_code": "411001",
    "country": "India",
}


def branch_payload(brand_id, **overrides):
    payload = {
        "brand_id": brand_id,
        "name": "MG Road",
        "address": ADDRESS,
        "contact": {"phone": "+91 20 5555 0000", "email": "mgroad@example.com"},
    }
    payload.update(overrides)
    return payload


class TestBrands:

    @pytest.mark.asyncio
    async def test_create_brand_with_initial_branch(self, client, admin_headers):
        response = await client.post("/api/brands", json={
            "name": "Green Leaf Cafe",
            "tagline": "Organic food",
            "color_theme": {"primary": "#00AA00", "secondary": "#FFFFFF", "accent": "#123456"},
            "initial_branch": {
                "name": "Main Branch",
                "email": "main@greenleaf.example",
                "phone": "+91 1",
                "address": ADDRESS,
            },
        }, headers=admin_headers)

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["brand"]["slug"] == "green-leaf-cafe"
        assert body["branch"]["slug"] == "main-branch"
        assert body["branch"]["microsite_config"]["notification_preferences"] == {
            "email": True, "whatsapp": False, "in_app": True
        }
        print(f"✅ Brand {body['brand']['slug']} created")

    @pytest.mark.asyncio
    async def test_slug_suffix(self, client, admin_headers):
        slugs = []
        for _ in range(3):
            response = await client.post("/api/brands", json={"name": "Same Name"}, headers=admin_headers)
            slugs.append(response.json()["brand"]["slug"])
        assert slugs == ["same-name", "same-name-1", "same-name-2"]

    @pytest.mark.asyncio
    async def test_invalid_color(self, client, admin_headers):
        response = await client.post("/api/brands", json={
            "name": "Bad", "color_theme": {"primary": "green", "secondary": "#FFFFFF", "accent": "#000000"}
        }, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_listing_is_scoped(self, client, make_user, make_brand):
        brand_a = await make_brand("Brand A")
        await make_brand("Brand B")

        _, headers = await make_user("brand_manager", brand_id=brand_a["id"])
        response = await client.get("/api/brands", headers=headers)
        assert [b["name"] for b in response.json()["brands"]] == ["Brand A"]

        response = await client.get(f"/api/brands/{brand_a['id']}", headers=headers)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_brand_forbidden(self, client, make_user, make_brand):
        brand_a = await make_brand("Brand A")
        brand_b = await make_brand("Brand B")
        _, headers = await make_user("brand_manager", brand_id=brand_a["id"])

        response = await client.put(f"/api/brands/{brand_b['id']}", json={"tagline": "x"}, headers=headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_brand(self, client, admin_headers, brand):
        response = await client.put(f"/api/brands/{brand['id']}", json={"tagline": "New tagline"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["brand"]["tagline"] == "New tagline"

    @pytest.mark.asyncio
    async def test_delete_brand_cascades(self, client, admin_headers, brand, branch):
        response = await client.delete(f"/api/brands/{brand['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["branches_deleted"] == 1
        assert await db.branches.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_brand_manager_cannot_delete(self, client, make_user, brand):
        _, headers = await make_user("brand_manager", brand_id=brand["id"])
        response = await client.delete(f"/api/brands/{brand['id']}", headers=headers)
        assert response.status_code == 403


class TestBranches:

    @pytest.mark.asyncio
    async def test_create_branch(self, client, admin_headers, brand):
        response = await client.post("/api/branches", json=branch_payload(
            brand["id"],
            business_hours={"monday": {"open": "09:00", "close": "18:00"}},
            social_media={"instagram": "https://instagram.com/greenleaf"},
        ), headers=admin_headers)
        assert response.status_code == 201, response.text
        branch = response.json()["branch"]
        assert branch["slug"] == "mg-road"
        assert branch["business_hours"]["monday"]["closed"] is False

    @pytest.mark.asyncio
    async def test_slug_unique_within_brand(self, client, admin_headers, make_brand):
        brand_a = await make_brand("Brand A")
        brand_b = await make_brand("Brand B")

        first = await client.post("/api/branches", json=branch_payload(brand_a["id"]), headers=admin_headers)
        second = await client.post("/api/branches", json=branch_payload(brand_a["id"]), headers=admin_headers)
        other = await client.post("/api/branches", json=branch_payload(brand_b["id"]), headers=admin_headers)

        assert first.json()["branch"]["slug"] == "mg-road"
        assert second.json()["branch"]["slug"] == "mg-road-1"
        assert other.json()["branch"]["slug"] == "mg-road"

        explicit = await client.post(
            "/api/branches", json=branch_payload(brand_a["id"], slug="mg-road"), headers=admin_headers
        )
        assert explicit.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_contact_email(self, client, admin_headers, brand):
        payload = branch_payload(brand["id"], contact={"phone": "1", "email": "nope"})
        response = await client.post("/api/branches", json=payload, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_brand(self, client, admin_headers):
        response = await client.post("/api/branches", json=branch_payload("missing"), headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_branch_admin_sees_own_branches(self, client, make_user, brand, make_branch):
        mine = await make_branch(brand, name="Mine")
        await make_branch(brand, name="Other")
        _, headers = await make_user("branch_admin", branch_ids=[mine["id"]])

        response = await client.get("/api/branches", headers=headers)
        assert [b["name"] for b in response.json()["branches"]] == ["Mine"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, admin_headers, branch):
        response = await client.put(f"/api/branches/{branch['id']}", json={"name": "Renamed"}, headers=admin_headers)
        assert response.json()["branch"]["name"] == "Renamed"

        response = await client.delete(f"/api/branches/{branch['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert await db.branches.find_one({"id": branch["id"]}) is None


class TestNotificationPreferences:

    @pytest.mark.asyncio
    async def test_get_defaults(self, client, admin_headers, make_branch, brand):
        branch = await make_branch(brand, name="No prefs", microsite_config={})
        response = await client.get(f"/api/branches/{branch['id']}/notification-preferences", headers=admin_headers)
        assert response.json()["preferences"] == {"email": True, "whatsapp": False, "in_app": True}

    @pytest.mark.asyncio
    async def test_update(self, client, admin_headers, branch):
        response = await client.put(
            f"/api/branches/{branch['id']}/notification-preferences",
            json={"email": False, "whatsapp": True, "inApp": True},
            headers=admin_headers
        )
        assert response.status_code == 200

        stored = await db.branches.find_one({"id": branch["id"]})
        assert stored["microsite_config"]["notification_preferences"] == {
            "email": False, "whatsapp": True, "in_app": True
        }
        print("✅ Preferences stored")

    @pytest.mark.asyncio
    async def test_all_booleans_required(self, client, admin_headers, branch):
        url = f"/api/branches/{branch['id']}/notification-preferences"
        response = await client.put(url, json={"email": True, "whatsapp": False}, headers=admin_headers)
        assert response.status_code == 400

        response = await client.put(url, json={"email": "yes", "whatsapp": False, "inApp": True}, headers=admin_headers)
        assert response.status_code == 400


class TestMicrosite:

    @pytest.mark.asyncio
    async def test_public_lookup(self, client, brand, branch):
        response = await client.get(f"/api/microsites/{brand['slug']}/{branch['slug']}")
        assert response.status_code == 200
        body = response.json()
        assert body["branch"]["id"] == branch["id"]
        assert "notification_preferences" not in body["branch"]["microsite_config"]

    @pytest.mark.asyncio
    async def test_unknown_slug(self, client, brand):
        response = await client.get(f"/api/microsites/{brand['slug']}/nowhere")
        assert response.status_code == 404
