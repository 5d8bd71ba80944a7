"""
Shelter Pets Backend: File Storage Service
===========================================

What:  Validates, stores, resolves and reclaims uploaded pet images.
How:   Checks extension, size and magic bytes, then writes the file to a
       date-organized directory under STORAGE_ROOT with a UUID filename.
Who:   Called by PetService (store / cleanup) and the /uploads route (resolve).

Security Model:
    1. Extension check:   fast rejection of obviously wrong files
    2. Size check:        bounded by MAX_FILE_SIZE, empty files rejected
    3. MIME type check:   libmagic inspects the file header bytes
    4. UUID filename:     no user input ends up in a path
    5. Resolve check:     served paths must stay inside STORAGE_ROOT

Paths handed to the rest of the application are RELATIVE to STORAGE_ROOT
(e.g. "2024/01/15/<uuid>.jpg"); the public URL is "/uploads/<relative>".
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from petshelter.config import settings
from petshelter.exceptions import ValidationError, FileStorageError

logger = logging.getLogger(__name__)

# URL prefix under which STORAGE_ROOT is served
PUBLIC_PREFIX = "/uploads"

# Allowed MIME types and the extension stored for each
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif"}

_EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


class FileService:
    """
    Manages the lifecycle of pet image files.

    Directory Structure:
        uploads/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-5678.jpg
                    └── e5f6g7h8-9012.png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """
        Validate the file extension.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate file size against the configured maximum.

        The declared Content-Length is checked first, then the actual byte
        count (clients can send a wrong header).
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"Image is too large ({actual_size / (1024 * 1024):.1f}MB). "
                    f"Maximum size is {max_mb:.0f}MB."
                ),
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Validate the actual MIME type by inspecting the file header bytes.

        Returns: Detected MIME type string (e.g., "image/jpeg").
        Raises:  ValidationError if the content is not an allowed image.
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content, mime=True)
        except ImportError:
            # libmagic missing (e.g. minimal CI images): trust the extension
            logger.warning(
                "python-magic not available, falling back to extension-based type detection."
            )
            mime_type = _EXTENSION_MIME.get(
                Path(filename).suffix.lower(), "application/octet-stream"
            )
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify image type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid image (PNG, JPEG or GIF)."
                ),
                field="image",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Create a YYYY/MM/DD/<uuid><ext> path.

        Returns: Tuple of (absolute_path, relative_path_from_storage_root).
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> str:
        """
        Write validated file content to disk.

        Returns: Path relative to the storage root.
        Raises:  FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
            return relative_path

        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Validate extension, size and MIME type, then store the image.

        Returns: The stored file's path relative to the storage root.
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content, filename)
        return await self.store_file(content, ext)

    # ── Lookup & Reclamation ──────────────────────────────────────────────

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a stored file.

        Raises ValidationError if the path escapes the storage root
        (e.g. "../../etc/passwd").
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        return full_path

    def public_url(self, relative_path: Optional[str]) -> Optional[str]:
        """URL path clients use to fetch a stored image, or None."""
        if not relative_path:
            return None
        return f"{PUBLIC_PREFIX}/{relative_path}"

    async def cleanup_file(self, relative_path: Optional[str]) -> None:
        """
        Remove a stored image, best-effort.

        A missing file is not an error. Any other failure is logged and
        swallowed so the record operation that triggered it still succeeds.
        """
        if not relative_path:
            return
        try:
            path = self.resolve(relative_path)
            if path.exists():
                os.remove(path)
                logger.info("Reclaimed image: %s", relative_path)
            else:
                logger.debug("Cleanup: image already gone: %s", relative_path)
        except Exception as e:
            logger.warning("Failed to reclaim image %s: %s", relative_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
