"""
Route for file uploads (logos, gallery images, videos, documents)
Files are stored under UPLOAD_ROOT and served at /uploads
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from typing import Optional

from parichay.config import db, new_id, now_iso, is_production
from parichay.routes.auth import get_optional_user
from parichay.services.permissions import user_has_permission
from parichay.services.uploads import validate_upload, save_upload

logger = logging.getLogger("upload")

router = APIRouter(prefix="/upload", tags=["Upload"])


@router.post("")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    type: str = Form("gallery"),
    user: Optional[dict] = Depends(get_optional_user)
):
    """
    Upload one file
    - type: logo | gallery | video | document
    Authentication is required in production only.
    """
    if is_production():
        if not user:
            raise HTTPException(status_code=401, detail="Unauthorized")
        if not user_has_permission(user, "uploads.create"):
            raise HTTPException(status_code=403, detail="Permission required: uploads.create")

    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"

    validate_upload(type, mime_type, len(content))

    stored = save_upload(type, mime_type, file.filename, content)

    await db.uploads.insert_one({
        "id": new_id(),
        "type": type,
        "filename": stored["filename"],
        "original_name": file.filename,
        "mime_type": mime_type,
        "size": len(content),
        "url": stored["url"],
        "uploaded_by": user.get("id") if user else None,
        "created_at": now_iso()
    })

    logger.info(f"Upload stored: {stored['url']} ({len(content)} bytes)")

    return {
        "success": True,
        "url": stored["url"],
        "filename": stored["filename"],
        "size": len(content),
        "type": mime_type,
    }
