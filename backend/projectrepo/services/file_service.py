"""
ProjectRepo Backend - File Storage Service
===========================================

What:  Validates and stores uploaded project PDFs; resolves stored references.
How:   Checks extension, size and magic-byte MIME type, then writes the file
       to a folder/date-organized directory under a UUID filename.
Who:   Called by ProjectService on submit, resubmit and final publish; by the
       files route when serving a stored reference.

Storage layout:
    storage/
    ├── project_drafts/
    │   └── 2025/03/14/<uuid>.pdf
    └── project_finals/
        └── 2025/05/02/<uuid>.pdf

The returned reference is the path relative to the storage root
(e.g. "project_drafts/2025/03/14/<uuid>.pdf"); only this string is persisted.
Filenames never contain user input.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from projectrepo.config import settings
from projectrepo.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DRAFT_FOLDER = "project_drafts"
FINAL_FOLDER = "project_finals"

ALLOWED_MIME_TYPES = {"application/pdf"}
ALLOWED_EXTENSIONS = {".pdf"}
ALLOWED_FOLDERS = {DRAFT_FOLDER, FINAL_FOLDER}


class FileService:
    """
    Upload validation and storage lifecycle.

    Lifecycle of an uploaded file:
        1. Extension check (rejects obviously wrong files)
        2. Size check (declared Content-Length, then actual bytes)
        3. MIME type check via magic bytes (catches renamed files)
        4. Written to <folder>/YYYY/MM/DD/<uuid>.pdf
        5. Relative reference returned to the caller
        6. On a later failure in the same request: cleanup_ref() removes it
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension; raises ValidationError for non-PDF names."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message="Only PDF files are accepted.",
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the declared Content-Length first, then the actual byte count.

        Raises:
            ValidationError for empty files and files over MAX_FILE_SIZE.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller file.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File is too large ({actual_size / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Determine the true type from the file header with python-magic.

        Returns:
            Detected MIME type string ("application/pdf").

        Raises:
            ValidationError if the content is not a PDF.
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content[:2048], mime=True)
        except ImportError:
            # python-magic needs the libmagic system library; without it the
            # extension check above is the only type check.
            logger.warning(
                "python-magic not available; falling back to extension-based type detection. "
                "Install libmagic for content sniffing."
            )
            mime_type = "application/pdf" if Path(filename).suffix.lower() == ".pdf" else "application/octet-stream"
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Only PDF files are accepted.",
                field="file",
                context={"detected_mime": mime_type},
            )
        return mime_type

    def _generate_storage_path(self, folder: str, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_ref) for a new <folder>/YYYY/MM/DD/<uuid><ext> file."""
        now = datetime.now(timezone.utc)
        relative_ref = f"{folder}/{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_ref, relative_ref

    async def store_file(self, content: bytes, folder: str, extension: str) -> str:
        """
        Write validated content to disk.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        if folder not in ALLOWED_FOLDERS:
            raise FileStorageError(message="Unknown storage folder.", context={"folder": folder})

        absolute_path, relative_ref = self._generate_storage_path(folder, extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_ref, len(content))
        return relative_ref

    async def upload(
        self,
        filename: str,
        content: bytes,
        folder: str,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Complete validation and storage pipeline.

        Returns:
            The storage reference to persist on the project.
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content, filename)
        return await self.store_file(content, folder, ext)

    def resolve(self, ref: str) -> Path:
        """
        Map a stored reference back to an absolute path inside the storage root.

        Raises:
            ValidationError for references escaping the root ("../").
            NotFoundError when the file does not exist.
        """
        full_path = (self.storage_root / ref).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=ref)
        return full_path

    async def cleanup_ref(self, ref: str) -> None:
        """
        Best-effort removal of a stored file after the surrounding operation failed.
        Missing files are ignored; other errors are logged.
        """
        try:
            path = (self.storage_root / ref).resolve()
            if path.is_relative_to(self.storage_root) and path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", ref)
            else:
                logger.debug("Cleanup: file already gone: %s", ref)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", ref, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
