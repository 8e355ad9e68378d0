from __future__ import annotations

import io
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from wardrobe.core.enums import MediaCategory
from wardrobe.core.errors import StorageError, ValidationError


logger = logging.getLogger(__name__)

UPLOADS_ROOT = "uploads"
IDENTITY_SUBDIR = "identity"

ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}
_FORMAT_SUFFIXES = {
    "JPEG": ".jpg",
    "MPO": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
    "BMP": ".bmp",
}


def detect_image_format(content: bytes) -> str:
    """Return the Pillow format name, or raise ValidationError if `content` is not a decodable image."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ValidationError("uploaded file is not a valid image") from e
    return fmt or ""


def _pick_suffix(filename: str | None, image_format: str) -> str:
    suffix = Path(filename or "").suffix.lower()
    if suffix in ALLOWED_SUFFIXES:
        return suffix
    return _FORMAT_SUFFIXES.get(image_format, "")


class MediaStore:
    """
    Image files under `<storage_dir>/uploads`.

    Stored paths are relative and rooted at the uploads prefix, e.g. `/uploads/<hex>.jpg` or
    `/uploads/identity/<hex>.png`; they are what the database keeps and what the static route serves.
    """

    def __init__(self, storage_dir: Path, *, max_upload_bytes: int) -> None:
        self.storage_dir = storage_dir
        self.max_upload_bytes = max_upload_bytes

    @property
    def upload_dir(self) -> Path:
        return self.storage_dir / UPLOADS_ROOT

    def ensure_dirs(self) -> None:
        (self.upload_dir / IDENTITY_SUBDIR).mkdir(parents=True, exist_ok=True)

    async def store(self, file: UploadFile, *, category: MediaCategory = MediaCategory.GENERAL) -> str:
        content = await file.read()
        if not content:
            raise ValidationError("uploaded file is empty")
        if len(content) > self.max_upload_bytes:
            raise ValidationError("uploaded file is too large")
        image_format = detect_image_format(content)

        rel_dir = UPLOADS_ROOT if category == MediaCategory.GENERAL else f"{UPLOADS_ROOT}/{IDENTITY_SUBDIR}"
        name = f"{uuid.uuid4().hex}{_pick_suffix(file.filename, image_format)}"
        abs_dir = self.storage_dir / rel_dir
        try:
            abs_dir.mkdir(parents=True, exist_ok=True)
            # "xb": never overwrite an existing upload.
            with open(abs_dir / name, "xb") as fh:
                fh.write(content)
        except OSError as e:
            logger.exception("Could not write upload %s/%s", rel_dir, name)
            raise StorageError("Could not store uploaded file") from e

        rel_path = f"/{rel_dir}/{name}"
        logger.info("Stored upload %s (%d bytes)", rel_path, len(content))
        return rel_path

    def resolve(self, rel_path: str) -> Path:
        """Absolute path for a stored path; ValueError if it points outside the uploads root."""
        rel = rel_path.lstrip("/")
        if not rel.startswith(f"{UPLOADS_ROOT}/"):
            raise ValueError("Forbidden path")

        base_dir = self.upload_dir.resolve()
        abs_path = (self.storage_dir / rel).resolve()
        abs_path.relative_to(base_dir)
        return abs_path

    def exists(self, rel_path: str) -> bool:
        try:
            return self.resolve(rel_path).is_file()
        except ValueError:
            return False

    def delete(self, rel_path: str | None) -> bool:
        """Remove a stored file; returns False if there was nothing to remove."""
        if not rel_path:
            return False
        try:
            abs_path = self.resolve(rel_path)
        except ValueError:
            logger.warning("Refusing to delete file outside uploads: %s", rel_path)
            return False

        try:
            abs_path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.exception("Could not delete upload %s", rel_path)
            return False
        logger.info("Deleted upload %s", rel_path)
        return True

    @contextmanager
    def discard_on_error(self, rel_path: str | None) -> Iterator[None]:
        """
        Compensating action for a file that was stored before a later step.

        If the wrapped block raises, `rel_path` is deleted and the exception propagates unchanged.
        """
        try:
            yield
        except BaseException:
            if rel_path:
                removed = self.delete(rel_path)
                logger.warning("Discarded upload %s after failed write (removed=%s)", rel_path, removed)
            raise
