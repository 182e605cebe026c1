"""
Authorization gate unit tests.

authorize() is pure, so these run without the app or a database.

Run: pytest backend/test_authz.py -v
"""

from datetime import date
from types import SimpleNamespace

import pytest

from backend.authz import Operation, authorize, can
from backend.models import Project, UserRole

OWNER = SimpleNamespace(user_id="owner-1", role=UserRole.owner)
OTHER_OWNER = SimpleNamespace(user_id="owner-2", role=UserRole.owner)
ASSIGNEE = SimpleNamespace(user_id="dev-1", role=UserRole.developer)
OUTSIDER = SimpleNamespace(user_id="dev-2", role=UserRole.developer)


@pytest.fixture
def project():
    return Project(
        id="p1",
        name="Alpha",
        description="Alpha project",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 3, 1),
        owner_id=OWNER.user_id,
        assigned_developers=[ASSIGNEE.user_id],
    )


@pytest.mark.parametrize("operation", list(Operation))
def test_owner_may_do_everything_on_own_project(operation, project):
    assert can(OWNER, operation, project=project)


@pytest.mark.parametrize("operation", [op for op in Operation if op != Operation.PROJECT_DELETE])
def test_any_owner_may_do_everything_but_delete(operation, project):
    assert can(OTHER_OWNER, operation, project=project)


def test_only_creating_owner_may_delete(project):
    decision = authorize(OTHER_OWNER, Operation.PROJECT_DELETE, project=project)
    assert not decision
    assert "your own projects" in decision.reason


@pytest.mark.parametrize("operation", [
    Operation.PROJECT_CREATE,
    Operation.PROJECT_DELETE,
    Operation.PROJECT_ASSIGN,
    Operation.PHASE_CREATE,
    Operation.DEVELOPER_LIST,
])
def test_developer_never_allowed(operation, project):
    assert not can(ASSIGNEE, operation, project=project)


@pytest.mark.parametrize("operation", [Operation.PROJECT_READ, Operation.PROJECT_UPDATE, Operation.PHASE_UPDATE])
def test_developer_scoped_to_assigned_projects(operation, project):
    assert can(ASSIGNEE, operation, project=project)
    decision = authorize(OUTSIDER, operation, project=project)
    assert not decision
    assert "not assigned" in decision.reason


def test_developer_may_list(project):
    assert can(OUTSIDER, Operation.PROJECT_LIST)


def test_developer_status_only(project):
    assert can(ASSIGNEE, Operation.PROJECT_UPDATE, project=project, fields={"status"})
    assert can(ASSIGNEE, Operation.PROJECT_UPDATE, project=project, fields=set())

    decision = authorize(ASSIGNEE, Operation.PROJECT_UPDATE, project=project, fields={"status", "name"})
    assert not decision
    assert "name" in decision.reason


def test_owner_field_set_unrestricted(project):
    fields = {"name", "description", "status", "start_date", "end_date"}
    assert can(OWNER, Operation.PROJECT_UPDATE, project=project, fields=fields)


def test_project_scoped_check_without_project_denies():
    assert not can(ASSIGNEE, Operation.PROJECT_READ)
    assert not can(OWNER, Operation.PROJECT_DELETE)


def test_role_given_as_string():
    ctx = SimpleNamespace(user_id="x", role="developer")
    assert not can(ctx, Operation.PROJECT_CREATE)
