"""
backend/dependencies.py

Reusable FastAPI dependencies for authorization enforcement.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, Request

from backend.auth_context import require_auth_context, AuthContext
from backend.authz import Operation, authorize
from backend.config import IS_DEV
from backend.owners import OwnerDirectory


def enforce(ctx: AuthContext, operation: Operation, **kwargs) -> None:
    """
    Ask the authorization gate and raise 403 on deny.

    Callers must resolve not-found (404) before calling this.
    """
    decision = authorize(ctx, operation, **kwargs)
    if not decision:
        if IS_DEV:
            print(f"[AUTHZ] Denied: operation={operation.value}, user_id={ctx.user_id}, "
                  f"role={ctx.role.value}, reason={decision.reason}")
        raise HTTPException(status_code=403, detail=decision.reason)


def require_operation(operation: Operation) -> Callable:
    """
    FastAPI dependency factory for role-level operation checks.

    Only suitable for operations that do not depend on a target project
    (create project, list developers, ...). Project-scoped checks call
    enforce() after loading the project.

    Usage in routes:
        @router.post("", dependencies=[Depends(require_operation(Operation.PROJECT_CREATE))])
        def create_project(...):
            ...
    """
    def _check_operation(ctx: AuthContext = Depends(require_auth_context)) -> AuthContext:
        enforce(ctx, operation)
        return ctx

    return _check_operation


def get_owner_directory(request: Request) -> OwnerDirectory:
    """Owner allow-list installed on app.state at startup."""
    directory = getattr(request.app.state, "owner_directory", None)
    if directory is None:
        print("[AUTH] Owner directory not initialized")
        raise HTTPException(status_code=500, detail="Owner directory not configured")
    return directory
