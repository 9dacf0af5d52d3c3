"""Local file storage for product images and generated invoices."""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

from fastapi import UploadFile

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpg": ".jpg",
    "image/jpeg": ".jpg",
}


def save_image(upload: Optional[UploadFile], images_dir: str) -> Optional[str]:
    """
    Store an uploaded image under images_dir with a UUID name and return that name.
    Files outside the allow-list are not stored and None is returned.
    """
    if upload is None or not upload.filename:
        return None
    ext = ALLOWED_IMAGE_TYPES.get((upload.content_type or "").lower())
    if ext is None:
        logger.info("Rejected upload %r with type %s", upload.filename, upload.content_type)
        return None
    os.makedirs(images_dir, exist_ok=True)
    name = f"{uuid.uuid4()}{ext}"
    upload.file.seek(0)
    with open(image_path(images_dir, name), "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return name


def image_path(images_dir: str, name: str) -> Path:
    return Path(images_dir) / name


def image_url(name: str) -> str:
    """Public URL of a stored image, served by the /images mount."""
    return f"/images/{name}"


def delete_file(path: Union[str, Path, None]) -> None:
    """Remove a stored file; a file that is already gone counts as deleted."""
    if not path:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        logger.info("File %s already missing", path)


def delete_image(images_dir: str, name: Optional[str]) -> None:
    if name:
        delete_file(image_path(images_dir, name))


def invoice_path(storage_root: str, order_id: uuid.UUID) -> Path:
    return Path(storage_root) / "invoices" / f"invoice-{order_id}.pdf"
