"""
Shared fixtures

The API runs in-process (httpx ASGITransport) on an in-memory MongoDB
(mongomock-motor), so no server and no database are needed.
"""

import os
import tempfile

import pytest
import pytest_asyncio
import motor.motor_asyncio
from mongomock_motor import AsyncMongoMockClient

# Must happen before parichay.config is imported
motor.motor_asyncio.AsyncIOMotorClient = AsyncMongoMockClient
os.environ["DB_NAME"] = "parichay_test"
os.environ["APP_ENV"] = "test"
os.environ["APP_URL"] = "https://parichay.test"
os.environ["UPLOAD_ROOT"] = tempfile.mkdtemp(prefix="parichay-uploads-")
os.environ["SENDGRID_API_KEY"] = ""
os.environ["WHATSAPP_ACCESS_TOKEN"] = ""
os.environ["WHATSAPP_PHONE_NUMBER_ID"] = ""
os.environ["GOOGLE_PLACES_API_KEY"] = ""

import httpx  # noqa: E402

from parichay.config import db, hash_password, generate_token, new_id, now_iso  # noqa: E402
from parichay.server import app  # noqa: E402
from parichay.services.permissions import get_preset_permissions  # noqa: E402

PASSWORD = "password123"


@pytest_asyncio.fixture(autouse=True)
async def clean_db():
    """Every test starts on an empty database"""
    for name in await db.list_collection_names():
        await db[name].delete_many({})
    yield


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user():
    """Factory: insert a user + session, return (user, auth headers)"""

    async def _make_user(role="super_admin", brand_id=None, branch_ids=None, email=None, is_active=True, permissions=None):
        user = {
            "id": new_id(),
            "email": email or f"{role}-{new_id()[:8]}@example.com",
            "password": hash_password(PASSWORD),
            "first_name": "Test",
            "last_name": role,
            "role": role,
            "brand_id": brand_id,
            "branch_ids": branch_ids or [],
            "permissions": {**get_preset_permissions(role), **(permissions or {})},
            "is_active": is_active,
            "created_at": now_iso(),
        }
        await db.users.insert_one(user)
        user.pop("_id", None)

        token = generate_token()
        await db.sessions.insert_one({
            "token": token,
            "user_id": user["id"],
            "created_at": now_iso(),
            "expires_at": "9999-12-31T00:00:00+00:00",
        })
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest_asyncio.fixture
async def admin_headers(make_user):
    _, headers = await make_user("super_admin")
    return headers


@pytest.fixture
def make_brand():
    async def _make_brand(name="Chai Point", slug=None, **extra):
        brand = {
            "id": new_id(),
            "name": name,
            "slug": slug or name.lower().replace(" ", "-"),
            "tagline": "Fresh chai, every day",
            "logo": "https://cdn.example.com/logo.png",
            "custom_domain": None,
            "color_theme": None,
            "is_active": True,
            "created_at": now_iso(),
            **extra,
        }
        await db.brands.insert_one(brand)
        brand.pop("_id", None)
        return brand

    return _make_brand


@pytest.fixture
def make_branch():
    async def _make_branch(brand, name="Koramangala", slug=None, **extra):
        branch = {
            "id": new_id(),
            "brand_id": brand["id"],
            "name": name,
            "slug": slug or name.lower().replace(" ", "-"),
            "address": {
                "street": "80 Feet Road",
                "city": "Bengaluru",
                "state": "Karnataka",
                "zip_code": "560034",
                "country": "India",
            },
            "contact": {
                "phone": "+91 80 1234 5678",
                "whatsapp": "+91 98765 43210",
                "email": "koramangala@chaipoint.example",
            },
            "social_media": None,
            "business_hours": None,
            "microsite_config": {
                "notification_preferences": {"email": True, "whatsapp": False, "in_app": True}
            },
            "is_active": True,
            "created_at": now_iso(),
            **extra,
        }
        await db.branches.insert_one(branch)
        branch.pop("_id", None)
        return branch

    return _make_branch


@pytest_asyncio.fixture
async def brand(make_brand):
    return await make_brand()


@pytest_asyncio.fixture
async def branch(make_branch, brand):
    return await make_branch(brand)
