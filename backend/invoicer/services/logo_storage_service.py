"""
Logo storage in a single private Supabase Storage bucket.

Bucket rules:
- Bucket name: settings.LOGO_BUCKET (default branding-assets)
- Visibility: PRIVATE, one bucket for all owners
- All operations use SUPABASE_SERVICE_ROLE_KEY
- The DB stores the object path only; clients get short-lived signed URLs

Folder structure:
  {bucket}/{owner_id}/logo.png
  {bucket}/{owner_id}/logo.jpg
"""
import logging
from typing import Optional
from uuid import UUID

from supabase import Client, create_client

from invoicer.config import settings
from invoicer.exceptions import PersistenceError, ValidationError
from invoicer.services.ownership import require_owner

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
}
MAX_LOGO_BYTES = 2 * 1024 * 1024  # 2MB
SIGNED_URL_EXPIRY_SECONDS = 600  # 10 minutes

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"


def _client() -> Optional[Client]:
    """Service-role client, or None when storage is not configured."""
    if not settings.storage_configured:
        return None
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        logger.warning("Supabase storage client: %s", e)
        return None


def path_logo(owner_id: UUID, ext: str) -> str:
    return f"{owner_id}/logo.{ext}"


def ensure_bucket(client: Client) -> None:
    """Create the private logo bucket if it does not exist. Idempotent."""
    bucket = settings.LOGO_BUCKET
    try:
        names = [b.name for b in (client.storage.list_buckets() or [])]
        if bucket not in names:
            client.storage.create_bucket(bucket, options={"public": False})
            logger.info("Created storage bucket %s (private)", bucket)
    except Exception as e:
        logger.warning("ensure_bucket %s: %s", bucket, e)


def validate_logo(content: bytes, content_type: Optional[str]) -> str:
    """
    PNG or JPEG only, non-empty, at most 2MB, and the bytes must match the
    declared type. Returns the file extension. Raises ValidationError.
    """
    ext = CONTENT_TYPE_EXTENSIONS.get((content_type or "").lower())
    if ext is None:
        raise ValidationError("Invalid file type. Allowed: image/png, image/jpeg", entity="logo")
    if not content:
        raise ValidationError("File is empty", entity="logo")
    if len(content) > MAX_LOGO_BYTES:
        raise ValidationError("File too large. Maximum size is 2MB", entity="logo")
    magic_ok = content.startswith(PNG_MAGIC) if ext == "png" else content.startswith(JPEG_MAGIC)
    if not magic_ok:
        raise ValidationError("File content does not match its type", entity="logo")
    return ext


def upload_logo(owner_id: UUID, content: bytes, content_type: Optional[str]) -> str:
    """
    Upload (upsert) the owner's logo. Returns the object path for the DB.
    Raises ValidationError for a bad file and PersistenceError when storage
    is unavailable.
    """
    require_owner(owner_id)
    ext = validate_logo(content, content_type)
    client = _client()
    if client is None:
        raise PersistenceError("Logo storage is not configured", entity="logo")
    ensure_bucket(client)
    path = path_logo(owner_id, ext)
    try:
        client.storage.from_(settings.LOGO_BUCKET).upload(
            path,
            content,
            file_options={"content-type": "image/png" if ext == "png" else "image/jpeg", "upsert": "true"},
        )
    except Exception as e:
        logger.exception("Logo upload %s failed: %s", path, e)
        raise PersistenceError("Failed to upload logo", entity="logo") from e
    logger.info("Uploaded logo for owner %s to %s", owner_id, path)
    return path


def download_logo(path: Optional[str]) -> Optional[bytes]:
    """Logo bytes for rendering, or None (logged) if unavailable."""
    if not path:
        return None
    client = _client()
    if client is None:
        logger.warning("Logo storage not configured; rendering %s without logo", path)
        return None
    try:
        data = client.storage.from_(settings.LOGO_BUCKET).download(path)
        return data if isinstance(data, bytes) else None
    except Exception as e:
        logger.warning("Logo download %s failed: %s", path, e)
        return None


def get_signed_url(path: Optional[str], expires_in: int = SIGNED_URL_EXPIRY_SECONDS) -> Optional[str]:
    """Temporary read URL for the stored logo, for the settings preview."""
    if not path:
        return None
    client = _client()
    if client is None:
        return None
    try:
        result = client.storage.from_(settings.LOGO_BUCKET).create_signed_url(path, expires_in)
        if isinstance(result, dict):
            return result.get("signedURL") or result.get("signedUrl") or result.get("signed_url")
        return getattr(result, "signed_url", None)
    except Exception as e:
        logger.warning("Signed URL for %s failed: %s", path, e)
        return None
