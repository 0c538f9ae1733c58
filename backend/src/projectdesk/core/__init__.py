"""Core domain - pure business logic with no infrastructure dependencies.

This package contains:
- rbac: project role resolution
- projects: the Project aggregate and the membership manager
- invites: the invite state machine
- tasks: the task lifecycle engine
- interfaces: Protocols the adapters implement
- errors: the error taxonomy shared by every layer
"""

from .errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    InvalidStateError,
    NotFoundError,
    ProjectDeskError,
    StaleAggregateError,
    UnauthenticatedError,
    UnavailableError,
)

__all__ = [
    "ConflictError",
    "ForbiddenError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "InvalidStateError",
    "NotFoundError",
    "ProjectDeskError",
    "StaleAggregateError",
    "UnauthenticatedError",
    "UnavailableError",
]
