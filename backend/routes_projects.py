"""
backend/routes_projects.py

Project and phase endpoints.

Every project-scoped route follows the same order:
1. load the project (404 if absent)
2. ask the authorization gate (403 on deny)
3. validate the payload (400)
4. write through the store inside one transaction
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Iterable, List

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from backend import phase_store, project_store
from backend.auth_context import AuthContext, require_auth_context
from backend.authz import Operation
from backend.config import IS_DEV
from backend.db import get_db_connection
from backend.dependencies import enforce, require_operation
from backend.identity_store import AnyIdentity, get_identities
from backend.models import DeveloperProfile, Phase, Project
from backend.schemas import (
    PROJECT_UPDATE_WIRE_FIELDS,
    DeveloperIdsRequest,
    PhaseCreateRequest,
    PhaseUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    check_date_order,
    describe_validation_errors,
)


router = APIRouter(
    prefix="/projects",
    tags=["projects"],
)


# ---------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------
def task_assignee_ids(phases: Iterable[Phase]) -> List[str]:
    return [task.assigned_to for phase in phases for task in phase.tasks if task.assigned_to]


def phase_payload(phase: Phase, people: Dict[str, AnyIdentity]) -> Dict[str, Any]:
    """Phase with each task assignee populated as {id, name, email}."""
    payload = phase.model_dump(mode="json", by_alias=True)
    for task in payload["tasks"]:
        assignee_id = task.get("assignedTo")
        if assignee_id:
            person = people.get(assignee_id)
            task["assignedTo"] = {
                "id": assignee_id,
                "name": person.name if person else None,
                "email": person.email if person else None,
            }
    return payload


def developer_summary(developer: DeveloperProfile) -> Dict[str, Any]:
    return {
        "id": developer.id,
        "name": developer.name,
        "email": developer.email,
        "school": developer.school,
        "grade": developer.grade,
        "hoursPerWeek": developer.hours_per_week,
    }


def project_payload(conn: sqlite3.Connection, project: Project) -> Dict[str, Any]:
    """Project with owner, assigned developers, phases and task assignees populated."""
    payload = project.model_dump(
        mode="json",
        by_alias=True,
        exclude={"owner_id", "assigned_developers", "phases"},
    )

    phases = phase_store.list_phases(conn, project.phases)
    people = get_identities(
        conn, [project.owner_id] + project.assigned_developers + task_assignee_ids(phases)
    )
    owner = people.get(project.owner_id)
    payload["owner"] = {
        "id": project.owner_id,
        "name": owner.name if owner else None,
        "username": getattr(owner, "username", None),
    }
    payload["assignedDevelopers"] = [
        developer_summary(people[dev_id])
        for dev_id in project.assigned_developers
        if isinstance(people.get(dev_id), DeveloperProfile)
    ]
    payload["phases"] = [phase_payload(p, people) for p in phases]
    return payload


def _get_project_or_404(conn: sqlite3.Connection, project_id: str) -> Project:
    project = project_store.get_project(conn, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _validate(schema, data: Dict[str, Any]):
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=describe_validation_errors(e.errors()))


# ---------------------------------------------------------
# Projects
# ---------------------------------------------------------
@router.get("")
def list_projects(ctx: AuthContext = Depends(require_auth_context)) -> List[Dict[str, Any]]:
    """Owners see every project; developers see projects they are assigned to."""
    enforce(ctx, Operation.PROJECT_LIST)
    with get_db_connection() as conn:
        if ctx.is_owner:
            projects = project_store.list_projects(conn)
        else:
            projects = project_store.list_projects_for_developer(conn, ctx.user_id)
        return [project_payload(conn, p) for p in projects]


@router.get("/{project_id}")
def get_project(project_id: str, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        enforce(ctx, Operation.PROJECT_READ, project=project)
        return project_payload(conn, project)


@router.post("", status_code=201, dependencies=[Depends(require_operation(Operation.PROJECT_CREATE))])
def create_project(req: ProjectCreateRequest, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    with get_db_connection() as conn:
        project = project_store.create_project(
            conn,
            owner_id=ctx.user_id,
            name=req.name,
            description=req.description,
            start_date=req.start_date,
            end_date=req.end_date,
            status=req.status,
        )
        print(f"[PROJECTS] Created project_id={project.id}, owner_id={ctx.user_id}")
        return project_payload(conn, project)


@router.put("/{project_id}")
def update_project(
    project_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """
    Partial update.

    Owners may change name, description, status, startDate, endDate.
    Developers may change only status, and only on assigned projects; a
    developer payload with any other key is rejected as a whole.

    Raises:
        HTTPException(400): no recognized fields, invalid values, endDate before startDate
        HTTPException(403): denied by the authorization gate
        HTTPException(404): unknown project
    """
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)

        recognized = {k: v for k, v in payload.items() if k in PROJECT_UPDATE_WIRE_FIELDS}
        unrecognized = set(payload) - set(recognized)
        fields = {PROJECT_UPDATE_WIRE_FIELDS[k] for k in recognized} | unrecognized
        enforce(ctx, Operation.PROJECT_UPDATE, project=project, fields=fields)

        if not recognized:
            raise HTTPException(status_code=400, detail="No valid updates provided")

        req = _validate(ProjectUpdateRequest, recognized)
        updates = req.model_dump(exclude_unset=True)

        try:
            check_date_order(
                updates.get("start_date", project.start_date),
                updates.get("end_date", project.end_date),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        updated = project_store.update_project(conn, project.id, updates)
        if IS_DEV:
            print(f"[PROJECTS] Updated project_id={project.id}, fields={sorted(updates)}, "
                  f"by user_id={ctx.user_id} ({ctx.role.value})")
        return project_payload(conn, updated)


@router.delete("/{project_id}")
def delete_project(project_id: str, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, str]:
    """Only the creating owner may delete; phases and developer references go with it."""
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        enforce(ctx, Operation.PROJECT_DELETE, project=project)
        counts = project_store.delete_project(conn, project)

    print(f"[PROJECTS] Deleted project_id={project_id}, phases_deleted={counts['phases_deleted']}, "
          f"developers_unlinked={counts['developers_unlinked']}")
    return {"message": "Project deleted successfully"}


def _require_developers(conn: sqlite3.Connection, developer_ids: List[str]) -> None:
    found = get_identities(conn, developer_ids)
    missing = [i for i in developer_ids if i not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Developer not found: {', '.join(missing)}")
    not_developers = [i for i, ident in found.items() if not isinstance(ident, DeveloperProfile)]
    if not_developers:
        raise HTTPException(status_code=400, detail=f"Not a developer: {', '.join(not_developers)}")


@router.post("/{project_id}/assign")
def assign_developers(
    project_id: str,
    req: DeveloperIdsRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        enforce(ctx, Operation.PROJECT_ASSIGN, project=project)
        _require_developers(conn, req.developer_ids)
        project = project_store.assign_developers(conn, project, req.developer_ids)
        print(f"[PROJECTS] Assigned {len(req.developer_ids)} developer(s) to project_id={project.id}")
        return project_payload(conn, project)


@router.post("/{project_id}/remove")
def remove_developers(
    project_id: str,
    req: DeveloperIdsRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        enforce(ctx, Operation.PROJECT_ASSIGN, project=project)
        _require_developers(conn, req.developer_ids)
        project = project_store.remove_developers(conn, project, req.developer_ids)
        print(f"[PROJECTS] Removed {len(req.developer_ids)} developer(s) from project_id={project.id}")
        return project_payload(conn, project)


# ---------------------------------------------------------
# Phases
# ---------------------------------------------------------
@router.post("/{project_id}/phases", status_code=201)
def create_phase(
    project_id: str,
    req: PhaseCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        enforce(ctx, Operation.PHASE_CREATE, project=project)
        phase = phase_store.create_phase(
            conn,
            project_id=project.id,
            name=req.name,
            start_date=req.start_date,
            end_date=req.end_date,
            task_names=req.tasks,
        )
        project_store.append_phase(conn, project.id, phase.id)
        print(f"[PHASES] Created phase_id={phase.id} in project_id={project.id} "
              f"with {len(phase.tasks)} task(s)")
        return phase_payload(phase, {})


@router.put("/{project_id}/phases/{phase_id}")
def update_phase(
    project_id: str,
    phase_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """
    Update phase status and/or replace its task list.

    Raises:
        HTTPException(400): neither status nor tasks given, or invalid values
        HTTPException(403): developer not assigned to the parent project
        HTTPException(404): unknown project, or phase not in this project
        HTTPException(409): expectedVersion given and stale
    """
    with get_db_connection() as conn:
        project = _get_project_or_404(conn, project_id)
        phase = phase_store.get_phase(conn, phase_id)
        if phase is None or phase.project_id != project.id:
            raise HTTPException(status_code=404, detail="Phase not found")

        enforce(ctx, Operation.PHASE_UPDATE, project=project)
        req = _validate(PhaseUpdateRequest, payload)

        try:
            phase = phase_store.update_phase(
                conn,
                phase,
                status=req.status,
                tasks=req.tasks,
                expected_version=req.expected_version,
            )
        except phase_store.PhaseVersionConflict as e:
            print(f"[PHASES] Version conflict on phase_id={phase_id}: expected={e.expected}, actual={e.actual}")
            raise HTTPException(
                status_code=409,
                detail=f"Phase was modified by someone else (version {e.actual}); reload and retry",
            )

        if IS_DEV:
            print(f"[PHASES] Updated phase_id={phase.id}, version={phase.version}, by user_id={ctx.user_id}")
        return phase_payload(phase, get_identities(conn, task_assignee_ids([phase])))
