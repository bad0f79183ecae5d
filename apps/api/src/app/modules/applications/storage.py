"""
Document Storage

Stores applicant documents on the local filesystem under UPLOAD_DIR.
Files get generated names; the original filename is kept only as
metadata on the application.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    filename: str
    original_name: str
    size: int
    mime_type: str


class DocumentStorage:
    """Store bytes, retrieve by name, delete on demand."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def path_for(self, filename: str) -> Path:
        """
        Resolve a stored filename to its path.

        Raises:
            ValueError: If the name would escape the storage directory
        """
        path = (self.base_dir / filename).resolve()
        if path.parent != self.base_dir.resolve():
            raise ValueError(f"Invalid document name: {filename}")
        return path

    @staticmethod
    def _generate_name(original_name: str) -> str:
        suffix = Path(original_name).suffix.lower() or ".pdf"
        return f"document-{int(time.time() * 1000)}-{secrets.token_hex(6)}{suffix}"

    def _write(self, filename: str, content: bytes) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(filename)
        try:
            path.write_bytes(content)
        except BaseException:
            # No partial file may outlive a failed write
            path.unlink(missing_ok=True)
            raise

    async def save(self, content: bytes, original_name: str, mime_type: str) -> StoredDocument:
        """Write a document and return its metadata."""
        filename = self._generate_name(original_name)
        await asyncio.to_thread(self._write, filename, content)
        logger.info(f"Stored document {filename} ({len(content)} bytes)")
        return StoredDocument(
            filename=filename,
            original_name=original_name,
            size=len(content),
            mime_type=mime_type,
        )

    async def exists(self, filename: str) -> bool:
        return await asyncio.to_thread(self.path_for(filename).is_file)

    async def delete(self, filename: str) -> bool:
        """
        Delete a stored document.

        Returns:
            True if a file was removed, False if it did not exist
        """
        path = self.path_for(filename)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.warning(f"Document already missing: {filename}")
            return False
        logger.info(f"Deleted document {filename}")
        return True


_storage: DocumentStorage | None = None


def get_document_storage() -> DocumentStorage:
    """FastAPI dependency returning the configured storage."""
    global _storage
    if _storage is None:
        _storage = DocumentStorage(settings.upload_dir)
    return _storage
