# frontend/test_progress.py
# Unit tests for dashboard progress aggregation

from frontend.progress import (
    dashboard_totals,
    phase_status_counts,
    project_percent_complete,
    project_status_counts,
    task_counts,
    task_percent,
)


def make_phase(status="pending", done=0, total=0):
    return {
        "status": status,
        "tasks": [{"name": f"t{i}", "completed": i < done} for i in range(total)],
    }


def test_task_counts_for_design_phase():
    phase = {"tasks": [{"name": "wireframes", "completed": True}, {"name": "review", "completed": False}]}
    assert task_counts(phase) == {"completed": 1, "total": 2}
    assert task_percent(phase) == 50


def test_phase_without_tasks():
    assert task_counts({"tasks": []}) == {"completed": 0, "total": 0}
    assert task_percent({}) == 0


def test_phase_status_counts_ignores_unknown():
    phases = [make_phase("completed"), make_phase("pending"), make_phase("pending"), make_phase("archived")]
    assert phase_status_counts(phases) == {"completed": 1, "in-progress": 0, "pending": 2}


def test_project_percent_complete():
    project = {"phases": [make_phase("completed"), make_phase("in-progress"), make_phase("pending")]}
    assert project_percent_complete(project) == 33


def test_project_without_phases_is_zero_percent():
    assert project_percent_complete({"phases": []}) == 0
    assert project_percent_complete({}) == 0


def test_dashboard_totals_across_projects():
    projects = [
        {"phases": [make_phase("completed"), make_phase("in-progress")]},
        {"phases": [make_phase("pending"), make_phase("completed")]},
        {"phases": []},
    ]
    assert dashboard_totals(projects) == {"projects": 3, "completed": 2, "in-progress": 1, "pending": 1}


def test_dashboard_totals_empty():
    assert dashboard_totals([]) == {"projects": 0, "completed": 0, "in-progress": 0, "pending": 0}


def test_project_status_counts():
    projects = [{"status": "Planning"}, {"status": "On Hold"}, {"status": "Planning"}]
    counts = project_status_counts(projects)
    assert counts["Planning"] == 2
    assert counts["On Hold"] == 1
    assert counts["Completed"] == 0
