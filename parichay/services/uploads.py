"""
Upload storage: per-type MIME allow-list and size ceiling,
files written to UPLOAD_ROOT/<type>/<uuid>.<ext>
"""

import uuid
import logging
from pathlib import Path
from fastapi import HTTPException

from parichay import config

logger = logging.getLogger("uploads")

MB = 1024 * 1024

MAX_FILE_SIZES = {
    "logo": 2 * MB,
    "gallery": 5 * MB,
    "video": 50 * MB,
    "document": 10 * MB,
}

ALLOWED_TYPES = {
    "logo": ["image/png", "image/jpeg", "image/jpg", "image/webp"],
    "gallery": ["image/png", "image/jpeg", "image/jpg", "image/webp", "image/gif"],
    "video": ["video/mp4", "video/webm", "video/ogg"],
    "document": [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ],
}

UPLOAD_TYPES = list(ALLOWED_TYPES.keys())

# First entry is used when the client file name does not carry a matching suffix
MIME_EXTENSIONS = {
    "image/png": ["png"],
    "image/jpeg": ["jpg", "jpeg"],
    "image/jpg": ["jpg", "jpeg"],
    "image/webp": ["webp"],
    "image/gif": ["gif"],
    "video/mp4": ["mp4"],
    "video/webm": ["webm"],
    "video/ogg": ["ogv", "ogg"],
    "application/pdf": ["pdf"],
    "application/msword": ["doc"],
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ["docx"],
}


def validate_upload(upload_type: str, mime_type: str, size: int):
    """Raises HTTPException(400) when the file cannot be stored for this type"""
    allowed = ALLOWED_TYPES.get(upload_type)
    if not allowed:
        raise HTTPException(status_code=400, detail=f"Invalid upload type: {upload_type}")

    if mime_type not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(allowed)}"
        )

    max_size = MAX_FILE_SIZES[upload_type]
    if size > max_size:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {max_size / MB:.1f}MB"
        )


def file_extension(mime_type: str, original_name: str) -> str:
    """Extension of the stored file, always one that matches the checked MIME type"""
    known = MIME_EXTENSIONS.get(mime_type)
    if not known:
        return "bin"
    suffix = Path(original_name or "").suffix.lower().lstrip(".")
    return suffix if suffix in known else known[0]


def save_upload(upload_type: str, mime_type: str, original_name: str, content: bytes) -> dict:
    """Write the bytes and return {filename, path, url}"""
    filename = f"{uuid.uuid4()}.{file_extension(mime_type, original_name)}"
    upload_dir = Path(config.UPLOAD_ROOT) / upload_type
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_path = upload_dir / filename
    with open(file_path, "wb") as f:
        f.write(content)

    return {
        "filename": filename,
        "path": str(file_path),
        "url": f"/uploads/{upload_type}/{filename}",
    }
