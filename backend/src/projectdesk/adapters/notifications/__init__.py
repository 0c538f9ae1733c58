"""Notification adapters."""

from projectdesk.adapters.notifications.email import EmailConfig, EmailNotifier, LoggingNotifier

__all__ = [
    "EmailConfig",
    "EmailNotifier",
    "LoggingNotifier",
]
