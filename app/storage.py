import logging
import os
import uuid

from werkzeug.utils import secure_filename

from settings import get_media_base_url, get_upload_dir

logger = logging.getLogger(__name__)

ALLOWED_PHOTO_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
MAX_PHOTO_SIZE = 5 * 1024 * 1024
MAX_PHOTOS_PER_CAMPSITE = 20


class StorageError(Exception):
    pass


def validate_photo(content_type, size):
    if content_type not in ALLOWED_PHOTO_TYPES:
        raise StorageError("Invalid file type. Use JPG, PNG, or WebP.")
    if size > MAX_PHOTO_SIZE:
        raise StorageError("File too large. Max 5MB.")


def save_photo(campsite_id, filename, content_type, content):
    validate_photo(content_type, len(content))
    stem = os.path.splitext(secure_filename(filename or "") or "photo")[0] or "photo"
    name = f"{uuid.uuid4().hex[:12]}_{stem}.{ALLOWED_PHOTO_TYPES[content_type]}"
    relative = f"campsites/{campsite_id}/{name}"
    filepath = os.path.join(get_upload_dir(), *relative.split("/"))
    os.makedirs(os.path.dirname(filepath), exist_ok=True)
    with open(filepath, "wb") as f:
        f.write(content)
    logger.info(f"Stored photo {relative} ({len(content)} bytes)")
    return f"{get_media_base_url()}/{relative}"


def delete_photo(url):
    prefix = get_media_base_url() + "/"
    if not url or not url.startswith(prefix):
        return False
    relative = url[len(prefix):]
    filepath = os.path.join(get_upload_dir(), *relative.split("/"))
    if os.path.exists(filepath):
        os.remove(filepath)
        logger.info(f"Removed photo {relative}")
        return True
    return False
