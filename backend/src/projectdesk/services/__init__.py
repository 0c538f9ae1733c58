"""Application services.

Each service method loads fresh aggregates, lets the domain layer authorize
and apply one mutation, persists the result and triggers side effects.
"""

from projectdesk.services.invites import InviteService
from projectdesk.services.projects import ProjectService
from projectdesk.services.tasks import TaskService
from projectdesk.services.users import UserService

__all__ = [
    "InviteService",
    "ProjectService",
    "TaskService",
    "UserService",
]
