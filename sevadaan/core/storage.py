# sevadaan/core/storage.py

import asyncio
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from loguru import logger
from supabase import create_client, Client

from sevadaan.core.config import Settings
from sevadaan.core.errors import AppError, BadRequestError

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}


class StorageUnavailableError(AppError):
    status_code = 503


_supabase_clients: dict = {}


def _supabase(settings: Settings) -> Client:
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.error("Supabase credentials missing in settings.")
        raise StorageUnavailableError("Storage service unavailable.")

    key = (settings.SUPABASE_URL, settings.SUPABASE_KEY)
    if key not in _supabase_clients:
        _supabase_clients[key] = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _supabase_clients[key]


def validate_upload(settings: Settings, file: UploadFile, content: bytes) -> str:
    """Returns the file extension to store under; raises BadRequestError otherwise."""
    extension = ALLOWED_CONTENT_TYPES.get((file.content_type or "").lower())
    if extension is None:
        raise BadRequestError(
            f"Unsupported file type '{file.content_type}'. Only JPEG, PNG and PDF files are allowed."
        )
    if len(content) > settings.max_upload_bytes:
        raise BadRequestError(f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB.")
    if not content:
        raise BadRequestError("Uploaded file is empty.")
    return extension


async def store_upload(settings: Settings, file: UploadFile, folder: str) -> str:
    """
    Validates and stores an uploaded document. The user's filename is
    ignored; files are stored as <folder>/<uuid><ext>. Returns the
    storage path.
    """
    content = await file.read()
    extension = validate_upload(settings, file, content)
    path = f"{folder}/{uuid.uuid4()}{extension}"

    if settings.STORAGE_PROVIDER == "supabase":
        client = _supabase(settings)
        try:
            client.storage.from_(settings.SUPABASE_BUCKET).upload(
                path=path,
                file=content,
                file_options={"content-type": file.content_type, "upsert": "true"},
            )
        except Exception as e:
            logger.error(f"Storage upload error: {e}")
            raise StorageUnavailableError("Failed to upload document to cloud storage.")
        return path

    target = Path(settings.UPLOAD_DIR) / path
    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(target.write_bytes, content)
    return path


def get_signed_url(settings: Settings, file_path: str, expiration: int = 3600) -> Optional[str]:
    """
    Temporary link for a stored document. Local storage returns a path
    under /uploads.
    """
    if not file_path:
        return None

    if settings.STORAGE_PROVIDER != "supabase":
        return f"/uploads/{file_path}"

    try:
        response = _supabase(settings).storage.from_(settings.SUPABASE_BUCKET).create_signed_url(file_path, expiration)
    except Exception as e:
        logger.warning(f"Failed to sign URL for {file_path}: {e}")
        return None

    if isinstance(response, dict):
        return response.get("signedURL") or response.get("signedUrl")
    return getattr(response, "signedURL", None) or str(response)

