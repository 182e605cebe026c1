"""
backend/authz.py

Authorization gate for project and phase operations.

Single source of truth for who may do what. Every route asks
authorize(ctx, operation, project=..., fields=...) and turns a deny into
a 403 via dependencies.enforce().

Rules:
- owners may perform every operation, except that only the owner who
  created a project may delete it
- developers may list/read projects they are assigned to, update the
  `status` field (and nothing else) of such projects, and update the
  phases of such projects
- developers may never create projects, manage assignments, create
  phases or list developers

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Dict, Optional, Set

from backend.models import Project, UserRole


class Operation(str, Enum):
    """Operations the gate knows how to decide."""

    PROJECT_LIST = "project:list"
    PROJECT_READ = "project:read"
    PROJECT_CREATE = "project:create"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    PROJECT_ASSIGN = "project:assign"
    PHASE_CREATE = "phase:create"
    PHASE_UPDATE = "phase:update"
    DEVELOPER_LIST = "developer:list"


ROLE_OPERATIONS: Dict[UserRole, Set[Operation]] = {
    UserRole.owner: set(Operation),
    UserRole.developer: {
        Operation.PROJECT_LIST,
        Operation.PROJECT_READ,
        Operation.PROJECT_UPDATE,
        Operation.PHASE_UPDATE,
    },
}

# Operations a developer may only perform on projects they are assigned to
ASSIGNEE_OPERATIONS = {
    Operation.PROJECT_READ,
    Operation.PROJECT_UPDATE,
    Operation.PHASE_UPDATE,
}

# Project fields by role (model field names)
PROJECT_UPDATE_FIELDS: Dict[UserRole, Set[str]] = {
    UserRole.owner: {"name", "description", "status", "start_date", "end_date"},
    UserRole.developer: {"status"},
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def authorize(
    ctx,
    operation: Operation,
    *,
    project: Optional[Project] = None,
    fields: Optional[AbstractSet[str]] = None,
) -> Decision:
    """
    Decide whether the caller may perform an operation.

    Args:
        ctx: caller with `user_id` and `role` (AuthContext)
        operation: requested Operation
        project: target project for project-scoped operations
        fields: submitted field names for PROJECT_UPDATE

    Returns:
        Decision; falsy when denied, with a human readable reason.
    """
    role = UserRole(ctx.role)

    if operation not in ROLE_OPERATIONS.get(role, set()):
        return _deny(f"{role.value.capitalize()}s may not perform {operation.value}")

    if operation == Operation.PROJECT_DELETE:
        if project is None or project.owner_id != ctx.user_id:
            return _deny("Access denied. You can only delete your own projects.")
        return ALLOW

    if role == UserRole.developer and operation in ASSIGNEE_OPERATIONS:
        if project is None or not project.has_developer(ctx.user_id):
            return _deny("Access denied. You are not assigned to this project.")

    if operation == Operation.PROJECT_UPDATE and fields is not None:
        disallowed = set(fields) - PROJECT_UPDATE_FIELDS[role]
        if role == UserRole.developer and disallowed:
            return _deny(
                "Developers may only update project status; not allowed: "
                + ", ".join(sorted(disallowed))
            )

    return ALLOW


def can(ctx, operation: Operation, **kwargs) -> bool:
    return bool(authorize(ctx, operation, **kwargs))
