"""
Parichay - Upload Tests

1. Per-type MIME allow-list and size ceilings
2. Files written under UPLOAD_ROOT/<type>/<uuid>.<ext>
3. Authentication only enforced in production
"""

import pytest
from pathlib import Path
from fastapi import HTTPException

from parichay import config
from parichay.config import db
from parichay.services.uploads import validate_upload, file_extension, MB

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"0" * 64


@pytest.fixture(autouse=True)
def upload_root(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_ROOT", tmp_path)
    return tmp_path


class TestValidateUpload:

    def test_accepts_allowed_type(self):
        validate_upload("logo", "image/png", 1024)

    def test_unknown_type(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_upload("banner", "image/png", 10)
        assert exc_info.value.detail == "Invalid upload type: banner"

    def test_gif_only_for_gallery(self):
        validate_upload("gallery", "image/gif", 10)
        with pytest.raises(HTTPException) as exc_info:
            validate_upload("logo", "image/gif", 10)
        assert exc_info.value.detail == "Invalid file type. Allowed: image/png, image/jpeg, image/jpg, image/webp"

    def test_size_limits(self):
        validate_upload("logo", "image/png", 2 * MB)
        with pytest.raises(HTTPException) as exc_info:
            validate_upload("logo", "image/png", 2 * MB + 1)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "File too large. Maximum size: 2.0MB"

        validate_upload("video", "video/mp4", 50 * MB)
        with pytest.raises(HTTPException):
            validate_upload("document", "application/pdf", 10 * MB + 1)

    def test_extension(self):
        assert file_extension("image/png", "Logo.PNG") == "png"
        assert file_extension("image/jpeg", "photo.JPEG") == "jpeg"
        assert file_extension("image/jpeg", "README") == "jpg"
        assert file_extension("image/png", "x.html") == "png"
        assert file_extension("text/html", "x.html") == "bin"


class TestUploadEndpoint:

    @pytest.mark.asyncio
    async def test_upload_logo(self, client, upload_root):
        response = await client.post(
            "/api/upload",
            files={"file": ("logo.png", PNG_BYTES, "image/png")},
            data={"type": "logo"}
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["success"] is True
        assert body["type"] == "image/png"
        assert body["size"] == len(PNG_BYTES)
        assert body["url"] == f"/uploads/logo/{body['filename']}"
        assert body["filename"].endswith(".png")

        stored = Path(upload_root) / "logo" / body["filename"]
        assert stored.read_bytes() == PNG_BYTES

        record = await db.uploads.find_one({"filename": body["filename"]})
        assert record["original_name"] == "logo.png"
        print(f"✅ Uploaded {body['url']}")

    @pytest.mark.asyncio
    async def test_default_type_is_gallery(self, client):
        response = await client.post("/api/upload", files={"file": ("pic.gif", b"GIF89a", "image/gif")})
        assert response.status_code == 200
        assert response.json()["url"].startswith("/uploads/gallery/")

    @pytest.mark.asyncio
    async def test_extension_follows_mime_type(self, client, upload_root):
        response = await client.post(
            "/api/upload",
            files={"file": ("x.html", b"<script>alert(1)</script>", "image/png")},
            data={"type": "gallery"}
        )
        assert response.status_code == 200, response.text
        filename = response.json()["filename"]
        assert filename.endswith(".png")
        assert (Path(upload_root) / "gallery" / filename).exists()
        print(f"✅ Stored as {filename}")

    @pytest.mark.asyncio
    async def test_no_file(self, client):
        response = await client.post("/api/upload", data={"type": "logo"})
        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    @pytest.mark.asyncio
    async def test_wrong_mime(self, client):
        response = await client.post(
            "/api/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"type": "document"}
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid file type. Allowed: application/pdf")

    @pytest.mark.asyncio
    async def test_production_requires_auth(self, client, monkeypatch, admin_headers):
        monkeypatch.setattr(config, "APP_ENV", "production")

        files = {"file": ("logo.png", PNG_BYTES, "image/png")}
        response = await client.post("/api/upload", files=files, data={"type": "logo"})
        assert response.status_code == 401

        response = await client.post("/api/upload", files=files, data={"type": "logo"}, headers=admin_headers)
        assert response.status_code == 200
