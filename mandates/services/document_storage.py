"""Storage for revoking-resolution documents.

Documents are validated before they are stored: only PDF, JPEG and PNG
files up to the configured size are accepted.
"""

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable
from uuid import UUID

from mandates.core.revocation.errors import DocumentRejectedError

logger = logging.getLogger(__name__)


def validate_document(
    filename: str,
    content_type: str,
    size: int,
    *,
    allowed_types: Iterable[str],
    max_size: int,
) -> None:
    """Reject documents with a disallowed type, no content or too many bytes."""
    if not filename:
        raise DocumentRejectedError("Document file name is required")
    if content_type not in set(allowed_types):
        raise DocumentRejectedError(
            f"Document type {content_type or 'unknown'} not allowed. Allowed formats: PDF, JPG, PNG"
        )
    if size <= 0:
        raise DocumentRejectedError("Document is empty")
    if size > max_size:
        raise DocumentRejectedError(
            f"Document is too large ({size} bytes). Maximum size: {max_size // (1024 * 1024)}MB"
        )


@runtime_checkable
class DocumentStorage(Protocol):
    def save(self, request_id: UUID, filename: str, content: bytes) -> str:
        ...

    def read(self, url: str) -> bytes:
        ...


class LocalDocumentStorage:
    """Keeps documents in a directory served under ``base_url``."""

    def __init__(self, base_dir: str, base_url: str):
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")

    def save(self, request_id: UUID, filename: str, content: bytes) -> str:
        """Store a document and return its public URL."""
        safe_name = Path(filename).name.replace(" ", "_")
        stored_name = f"revocation-{request_id}-{int(time.time() * 1000)}-{safe_name}"

        os.makedirs(self.base_dir, exist_ok=True)
        (self.base_dir / stored_name).write_bytes(content)

        logger.info("Stored revocation document %s (%d bytes)", stored_name, len(content))
        return f"{self.base_url}/{stored_name}"

    def read(self, url: str) -> bytes:
        """Load a previously stored document by its public URL."""
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise DocumentRejectedError(f"Document {url} is not held in document storage")

        path = self.base_dir / Path(url[len(prefix):]).name
        if not path.is_file():
            raise DocumentRejectedError(f"Document {url} is missing from document storage")
        return path.read_bytes()
