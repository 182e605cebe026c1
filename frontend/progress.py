"""
frontend/progress.py
Progress aggregation for dashboards and the project view.

Works on the JSON shapes returned by the backend (populated projects and
phases). Pure functions - no Streamlit, no network.
"""

from typing import Any, Dict, Iterable, List

PHASE_STATUSES = ("completed", "in-progress", "pending")
PROJECT_STATUSES = ("Planning", "In Progress", "Completed", "On Hold")


def task_counts(phase: Dict[str, Any]) -> Dict[str, int]:
    """{"completed": n, "total": m} for one phase."""
    tasks = phase.get("tasks") or []
    done = sum(1 for t in tasks if t.get("completed"))
    return {"completed": done, "total": len(tasks)}


def task_percent(phase: Dict[str, Any]) -> int:
    counts = task_counts(phase)
    if not counts["total"]:
        return 0
    return round(100 * counts["completed"] / counts["total"])


def phase_status_counts(phases: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Count phases per status; every known status is present, unknown ones are ignored."""
    counts = {status: 0 for status in PHASE_STATUSES}
    for phase in phases:
        status = phase.get("status")
        if status in counts:
            counts[status] += 1
    return counts


def project_percent_complete(project: Dict[str, Any]) -> int:
    """Share of completed phases, 0 when the project has no phases."""
    phases = project.get("phases") or []
    if not phases:
        return 0
    return round(100 * phase_status_counts(phases)["completed"] / len(phases))


def dashboard_totals(projects: List[Dict[str, Any]]) -> Dict[str, int]:
    """Totals shown on the developer dashboard."""
    totals = {"projects": len(projects), "completed": 0, "in-progress": 0, "pending": 0}
    for project in projects:
        for status, count in phase_status_counts(project.get("phases") or []).items():
            totals[status] += count
    return totals


def project_status_counts(projects: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Count projects per status for the owner dashboard."""
    counts = {status: 0 for status in PROJECT_STATUSES}
    for project in projects:
        status = project.get("status")
        if status in counts:
            counts[status] += 1
    return counts
