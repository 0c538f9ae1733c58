"""Error taxonomy for project, invite and task operations.

Domain code raises these; the API layer turns them into a structured
``{"error": kind, "message": ...}`` response with the matching status code.
"""


class ProjectDeskError(Exception):
    """Base class for all expected operation failures."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        """Initialize with a human readable message.

        Args:
            message: Description of what went wrong.
        """
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the structured outcome for this error."""
        return {"error": self.kind, "message": self.message}


class UnauthenticatedError(ProjectDeskError):
    """No caller identity, or the supplied credential is invalid."""

    kind = "unauthenticated"
    status_code = 401


class ForbiddenError(ProjectDeskError):
    """Caller is known but lacks the project role for the action."""

    kind = "forbidden"
    status_code = 403


class NotFoundError(ProjectDeskError):
    """Referenced project, task, invite or user does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(ProjectDeskError):
    """Duplicate member, duplicate pending invite, or lost concurrent write."""

    kind = "conflict"
    status_code = 409


class StaleAggregateError(ConflictError):
    """Aggregate was modified by another writer since it was loaded."""

    def __init__(self, aggregate: str, aggregate_id: object) -> None:
        """Initialize for the aggregate that failed its version check."""
        super().__init__(f"{aggregate} {aggregate_id} was modified concurrently, reload and retry")
        self.aggregate = aggregate
        self.aggregate_id = aggregate_id


class InvalidArgumentError(ProjectDeskError):
    """Missing or malformed input."""

    kind = "invalid_argument"
    status_code = 400


class InvalidStateError(ProjectDeskError):
    """Transition not permitted from the current state."""

    kind = "invalid_state"
    status_code = 409


class InvalidOperationError(ProjectDeskError):
    """Operation is never allowed on this target, e.g. removing the Owner."""

    kind = "invalid_operation"
    status_code = 400


class UnavailableError(ProjectDeskError):
    """Persistence layer could not be reached."""

    kind = "unavailable"
    status_code = 503
