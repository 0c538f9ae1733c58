"""Adapters - Infrastructure implementations of core interfaces.

This package contains the concrete implementations of the Protocol
interfaces defined in projectdesk.core.interfaces.

Adapters are organized by type:
- db/: PostgreSQL (asyncpg) and in-memory repositories
- notifications/: Email delivery for invite messages
- storage/: Attachment storage for task submissions
"""
