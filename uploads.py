import os
import shutil
import uuid
from typing import Optional

from fastapi import UploadFile

from config import UPLOAD_DIR
from errors import InvalidInputError

UPLOAD_URL_PREFIX = "/uploads"

# image types only; uploads are served from the API origin
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def save_upload(upload: Optional[UploadFile], upload_dir: Optional[str] = None) -> Optional[str]:
    """Store an uploaded image under a generated name and return its public path.

    Returns None when no file was sent. Non-image files raise InvalidInputError.
    """
    if upload is None or not upload.filename:
        return None

    ext = os.path.splitext(upload.filename)[1].lower()
    content_type = (upload.content_type or "").lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS or not content_type.startswith("image/"):
        raise InvalidInputError("Only image uploads are allowed (jpg, jpeg, png, gif, webp)")

    target_dir = upload_dir or UPLOAD_DIR
    os.makedirs(target_dir, exist_ok=True)

    filename = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(target_dir, filename), "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return f"{UPLOAD_URL_PREFIX}/{filename}"
