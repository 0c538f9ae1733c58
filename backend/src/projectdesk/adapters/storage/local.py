"""Filesystem attachment store."""

import asyncio
import re
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import structlog

from projectdesk.core.errors import InvalidArgumentError
from projectdesk.core.tasks.types import Attachment

logger = structlog.get_logger()

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Reduce a client-supplied filename to a safe basename."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE.sub("_", name).strip("._")
    return name or "file"


class LocalAttachmentStore:
    """Stores files under a directory and serves them from ``base_url``.

    Each file gets a unique key ``<uuid>-<safe name>`` so uploads never collide.
    """

    def __init__(self, root: Path | str, base_url: str) -> None:
        """Initialize the store.

        Args:
            root: Directory to write files into; created if missing.
            base_url: Public URL prefix the directory is served from.
        """
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    async def store(self, filename: str, content: bytes) -> Attachment:
        """Write the file and return its reference."""
        if not filename:
            raise InvalidArgumentError("Attachment filename is required")

        key = f"{uuid4().hex}-{safe_filename(filename)}"
        path = self.root / key
        await asyncio.to_thread(self._write, path, content)

        logger.info("attachment_stored", key=key, size=len(content))
        return Attachment(filename=filename, url=f"{self.base_url}/{key}", uploaded_at=datetime.now(UTC))

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
