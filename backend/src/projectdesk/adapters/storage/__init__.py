"""Attachment storage adapters."""

from projectdesk.adapters.storage.local import LocalAttachmentStore, safe_filename

__all__ = [
    "LocalAttachmentStore",
    "safe_filename",
]
