# frontend/app.py
# Project Tracker – owners plan projects, developers track phases and tasks
#
# Run from repo root (after pip install -e .): streamlit run frontend/app.py

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from frontend import api_client
from frontend.auth import (
    clear_auth,
    get_current_user,
    init_auth_state,
    is_authenticated,
    is_owner,
    require_auth,
    set_auth,
    update_current_user,
)
from frontend.config import ENABLE_DEBUG_UI, ENV, get_api_base_url
from frontend.formatting import (
    format_date_for_display,
    format_date_for_input,
    format_date_range,
    parse_date,
)
from frontend.progress import (
    PHASE_STATUSES,
    PROJECT_STATUSES,
    dashboard_totals,
    phase_status_counts,
    project_percent_complete,
    project_status_counts,
    task_counts,
    task_percent,
)

st.set_page_config(page_title="Project Tracker", page_icon="📋", layout="wide")

STATUS_ICONS = {
    "Planning": "📝",
    "In Progress": "🔄",
    "Completed": "✅",
    "On Hold": "⏸️",
    "pending": "⏳",
    "in-progress": "🔄",
    "completed": "✅",
}


def init_state() -> None:
    ss = st.session_state

    # Auth keys first so every page sees the same state
    init_auth_state()

    # Navigation default is chosen in main() from auth state
    ss.setdefault("nav_page", None)
    ss.setdefault("selected_project_id", None)
    ss.setdefault("_backend_status", "unknown")
    ss.setdefault("_flash", None)


init_state()

ss = st.session_state


# --------------------------------------------------------------------
# Navigation helpers
# --------------------------------------------------------------------

def home_page() -> str:
    return "Owner Dashboard" if is_owner() else "Developer Dashboard"


def go_to(page: str) -> None:
    """Set nav_page and rerun immediately."""
    st.session_state["nav_page"] = page
    st.rerun()


def open_project(project_id: str) -> None:
    ss["selected_project_id"] = project_id
    go_to("Project View")


def flash(message: str) -> None:
    """Success message shown once after the next rerun."""
    ss["_flash"] = message


def show_flash() -> None:
    message = ss.pop("_flash", None)
    if message:
        st.success(message)


def status_label(status: Optional[str]) -> str:
    if not status:
        return ""
    return f"{STATUS_ICONS.get(status, '')} {status}".strip()


# --------------------------------------------------------------------
# Sidebar
# --------------------------------------------------------------------

def render_sidebar() -> None:
    with st.sidebar:
        st.markdown("## 📋 Project Tracker")

        if ss.get("_backend_status") not in ("ok", "unknown"):
            st.error("⚠️ Backend unreachable")
        elif ss.get("_backend_status") == "ok":
            st.success("✅ Connected")

        user = get_current_user()
        if is_authenticated() and user:
            st.markdown("---")
            st.markdown(f"**{user.get('name', '')}**")
            st.caption(f"{user.get('role', '').capitalize()} · {user.get('email', '')}")

            if st.button("🏠 Dashboard", use_container_width=True, key="nav_dashboard"):
                go_to(home_page())
            if ss.get("selected_project_id") and st.button(
                "📁 Current Project", use_container_width=True, key="nav_project"
            ):
                go_to("Project View")
            if st.button("🚪 Logout", use_container_width=True, key="nav_logout"):
                print(f"[AUTH] Logout user_id={user.get('id')}")
                clear_auth()
                go_to("Login")

        if ENABLE_DEBUG_UI:
            st.markdown("---")
            st.caption(f"**Environment:** {ENV}")
            try:
                st.caption(f"**API:** {get_api_base_url()}")
            except (RuntimeError, ValueError) as e:
                st.error(f"⚠️ API config error: {str(e)[:60]}")
            st.caption(f"**Token:** {'present' if ss.get('auth_token') else 'none'}")


# --------------------------------------------------------------------
# Login / Register
# --------------------------------------------------------------------

def complete_login(data: Dict[str, Any]) -> None:
    token = data.get("token")
    user = data.get("user") or {}
    if not token:
        st.error("Login failed: incomplete session data.")
        return
    set_auth(token, user)
    print(f"[AUTH] Login user_id={user.get('id')} role={user.get('role')}")
    go_to(home_page())


def render_login() -> None:
    st.header("Welcome to Project Tracker")
    show_flash()

    owner_tab, developer_tab, register_tab = st.tabs(["Owner Login", "Developer Login", "Register as Developer"])

    with owner_tab:
        with st.form("owner_login_form"):
            username = st.text_input("Username", key="owner_login_username")
            password = st.text_input("Password", type="password", key="owner_login_password")
            if st.form_submit_button("Login as Owner", type="primary"):
                if not username or not password:
                    st.error("Please enter username and password.")
                else:
                    ok, data = api_client.login(password, username=username.strip())
                    if ok:
                        complete_login(data)
                    else:
                        st.error(f"Login failed: {data}")
        st.caption("Owner accounts are provisioned by an administrator.")

    with developer_tab:
        with st.form("developer_login_form"):
            email = st.text_input("Email", key="developer_login_email")
            password = st.text_input("Password", type="password", key="developer_login_password")
            if st.form_submit_button("Login as Developer", type="primary"):
                if not email or not password:
                    st.error("Please enter email and password.")
                else:
                    ok, data = api_client.login(password, email=email.strip())
                    if ok:
                        complete_login(data)
                    else:
                        st.error(f"Login failed: {data}")

    with register_tab:
        render_register_form()


def render_register_form() -> None:
    with st.form("register_form", clear_on_submit=False):
        c1, c2 = st.columns(2)
        name = c1.text_input("Full name")
        email = c2.text_input("Email")
        school = c1.text_input("School")
        grade = c2.text_input("Grade / year")
        hours = c1.number_input("Hours per week", min_value=0, max_value=168, value=10, step=1)
        skills = c2.text_input("Skills (comma separated)")
        resume = st.text_area("Resume / experience")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Register", type="primary")

    if not submitted:
        return

    required = {"name": name, "email": email, "school": school, "grade": grade, "resume": resume, "password": password}
    missing = [k for k, v in required.items() if not str(v).strip()]
    if missing:
        st.error(f"Please fill in all fields: {', '.join(missing)}")
        return

    payload = {
        "name": name.strip(),
        "email": email.strip(),
        "school": school.strip(),
        "grade": grade.strip(),
        "hoursPerWeek": hours,
        "resume": resume.strip(),
        "skills": [s.strip() for s in skills.split(",") if s.strip()],
        "password": password,
    }
    ok, data = api_client.register(payload)
    if not ok:
        st.error(f"Registration failed: {data}")
        return

    st.success("Registration successful! Logging you in...")
    ok, data = api_client.login(password, email=payload["email"])
    if ok:
        complete_login(data)
    else:
        st.info("Please log in with your new account.")


# --------------------------------------------------------------------
# Data loading
# --------------------------------------------------------------------

def load_projects() -> List[Dict[str, Any]]:
    ok, data = api_client.list_projects()
    if not ok:
        st.error(f"Could not load projects: {data}")
        return []
    return data


def load_developers() -> List[Dict[str, Any]]:
    ok, data = api_client.list_developers()
    if not ok:
        st.error(f"Could not load developers: {data}")
        return []
    return data


def projects_frame(projects: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for p in projects:
        rows.append({
            "Name": p.get("name"),
            "Status": status_label(p.get("status")),
            "Start": format_date_for_display(p.get("startDate")),
            "End": format_date_for_display(p.get("endDate")),
            "Owner": (p.get("owner") or {}).get("name") or (p.get("owner") or {}).get("username"),
            "Developers": len(p.get("assignedDevelopers") or []),
            "Phases": len(p.get("phases") or []),
            "Complete %": project_percent_complete(p),
        })
    return pd.DataFrame(rows)


# --------------------------------------------------------------------
# Owner dashboard
# --------------------------------------------------------------------

def render_owner_dashboard() -> None:
    if not require_auth():
        return
    if not is_owner():
        go_to("Developer Dashboard")

    st.header("Owner Dashboard")
    show_flash()

    projects = load_projects()
    counts = project_status_counts(projects)

    cols = st.columns(len(PROJECT_STATUSES) + 1)
    cols[0].metric("Total projects", len(projects))
    for col, status in zip(cols[1:], PROJECT_STATUSES):
        col.metric(status, counts[status])

    st.markdown("### Projects")
    if not projects:
        st.info("No projects yet. Create one below.")
    else:
        st.dataframe(projects_frame(projects), use_container_width=True, hide_index=True)
        for p in projects:
            c1, c2, c3 = st.columns([4, 2, 1])
            c1.markdown(f"**{p['name']}** · {status_label(p.get('status'))}")
            c2.caption(format_date_range(p.get("startDate"), p.get("endDate")))
            if c3.button("Open", key=f"open_{p['id']}"):
                open_project(p["id"])

    st.markdown("---")
    render_create_project_form()

    st.markdown("---")
    render_developer_directory()


def render_create_project_form() -> None:
    st.markdown("### ➕ New Project")
    with st.form("create_project_form", clear_on_submit=True):
        name = st.text_input("Project name")
        description = st.text_area("Description")
        c1, c2, c3 = st.columns(3)
        start = c1.date_input("Start date", value=date.today())
        end = c2.date_input("End date", value=date.today())
        status = c3.selectbox("Status", PROJECT_STATUSES, index=0)
        submitted = st.form_submit_button("Create Project", type="primary")

    if not submitted:
        return
    if not name.strip() or not description.strip():
        st.error("Name and description are required.")
        return
    if end < start:
        st.error("End date must not be before start date.")
        return

    ok, data = api_client.create_project({
        "name": name.strip(),
        "description": description.strip(),
        "startDate": format_date_for_input(start),
        "endDate": format_date_for_input(end),
        "status": status,
    })
    if ok:
        flash(f"Project '{data['name']}' created.")
        st.rerun()
    else:
        st.error(f"Could not create project: {data}")


def render_developer_directory() -> None:
    st.markdown("### 👩‍💻 Developers")
    developers = load_developers()
    if not developers:
        st.info("No developers have registered yet.")
        return
    df = pd.DataFrame([
        {
            "Name": d.get("name"),
            "Email": d.get("email"),
            "School": d.get("school"),
            "Grade": d.get("grade"),
            "Hours/week": d.get("hoursPerWeek"),
            "Skills": ", ".join(d.get("skills") or []),
            "Projects": ", ".join(p.get("name", "") for p in d.get("assignedProjects") or []),
        }
        for d in developers
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


# --------------------------------------------------------------------
# Developer dashboard
# --------------------------------------------------------------------

def render_developer_dashboard() -> None:
    if not require_auth():
        return
    if is_owner():
        go_to("Owner Dashboard")

    user = get_current_user() or {}
    st.header(f"Welcome, {user.get('name', 'developer')}")
    show_flash()

    projects = load_projects()

    st.markdown("### My Projects")
    if not projects:
        st.info("You haven't been assigned to any projects yet. Contact a project owner to get started.")
    for p in projects:
        with st.container(border=True):
            c1, c2, c3 = st.columns([4, 2, 1])
            c1.markdown(f"**{p['name']}**")
            c1.caption(p.get("description", ""))
            c2.markdown(status_label(p.get("status")))
            c2.caption(format_date_range(p.get("startDate"), p.get("endDate")))
            if c3.button("Open", key=f"dev_open_{p['id']}"):
                open_project(p["id"])
            st.progress(project_percent_complete(p) / 100, text=f"{project_percent_complete(p)}% of phases complete")
            owner = p.get("owner") or {}
            if owner:
                st.caption(f"Project Owner: {owner.get('name') or owner.get('username')}")

    totals = dashboard_totals(projects)
    st.markdown("### Quick Stats")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Active Projects", totals["projects"])
    c2.metric("Completed Phases", totals["completed"])
    c3.metric("In Progress", totals["in-progress"])
    c4.metric("Pending Phases", totals["pending"])

    st.markdown("---")
    render_profile_editor()


def render_profile_editor() -> None:
    st.markdown("### 🙍 My Profile")
    ok, profile = api_client.get_profile()
    if not ok:
        st.error(f"Could not load profile: {profile}")
        return

    with st.form("profile_form"):
        c1, c2 = st.columns(2)
        name = c1.text_input("Name", value=profile.get("name", ""))
        c2.text_input("Email", value=profile.get("email", ""), disabled=True)
        school = c1.text_input("School", value=profile.get("school", ""))
        grade = c2.text_input("Grade / year", value=profile.get("grade", ""))
        hours = c1.number_input(
            "Hours per week", min_value=0.0, max_value=168.0,
            value=float(profile.get("hoursPerWeek") or 0), step=1.0,
        )
        skills = c2.text_input("Skills (comma separated)", value=", ".join(profile.get("skills") or []))
        resume = st.text_area("Resume", value=profile.get("resume", ""))
        submitted = st.form_submit_button("Save Profile")

    if not submitted:
        return

    candidate = {
        "name": name.strip(),
        "school": school.strip(),
        "grade": grade.strip(),
        "hoursPerWeek": hours,
        "resume": resume.strip(),
        "skills": [s.strip() for s in skills.split(",") if s.strip()],
    }
    updates = {k: v for k, v in candidate.items() if v != profile.get(k)}
    if not updates:
        st.info("No changes to save.")
        return

    ok, data = api_client.update_profile(updates)
    if ok:
        update_current_user({"name": data.get("name")})
        flash("Profile updated.")
        st.rerun()
    else:
        st.error(f"Could not update profile: {data}")


# --------------------------------------------------------------------
# Project view
# --------------------------------------------------------------------

def render_project_view() -> None:
    if not require_auth():
        return

    project_id = ss.get("selected_project_id")
    if not project_id:
        st.info("Select a project from your dashboard.")
        return

    ok, project = api_client.get_project(project_id)
    if not ok:
        st.error(f"Could not load project: {project}")
        if st.button("Back to Dashboard"):
            ss["selected_project_id"] = None
            go_to(home_page())
        return

    user = get_current_user() or {}
    owner_view = is_owner()
    is_creator = owner_view and (project.get("owner") or {}).get("id") == user.get("id")

    st.header(project["name"])
    st.caption(f"{status_label(project.get('status'))} · "
               f"{format_date_range(project.get('startDate'), project.get('endDate'))}")
    show_flash()

    tab_names = ["Overview", "Phases", "Timeline"]
    if owner_view:
        tab_names += ["Team", "Settings"]
    tabs = st.tabs(tab_names)

    with tabs[0]:
        render_project_overview(project)
    with tabs[1]:
        render_phases(project, can_create=owner_view)
    with tabs[2]:
        render_timeline(project)
    if owner_view:
        with tabs[3]:
            render_team_management(project)
        with tabs[4]:
            render_project_settings(project, can_delete=is_creator)


def render_project_overview(project: Dict[str, Any]) -> None:
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("#### Description")
        st.write(project.get("description", ""))
        owner = project.get("owner") or {}
        st.caption(f"Project Owner: {owner.get('name') or owner.get('username') or 'unknown'}")
    with c2:
        st.markdown("#### Status")
        # Owners and assigned developers may both change project status
        current = project.get("status", PROJECT_STATUSES[0])
        index = PROJECT_STATUSES.index(current) if current in PROJECT_STATUSES else 0
        new_status = st.selectbox("Project status", PROJECT_STATUSES, index=index, key=f"status_{project['id']}")
        if new_status != current and st.button("Update Status", key=f"status_btn_{project['id']}"):
            ok, data = api_client.update_project(project["id"], {"status": new_status})
            if ok:
                flash(f"Status changed to {new_status}.")
                st.rerun()
            else:
                st.error(f"Could not update status: {data}")

    st.markdown("#### Project Progress")
    counts = phase_status_counts(project.get("phases") or [])
    cols = st.columns(len(PHASE_STATUSES))
    for col, status in zip(cols, PHASE_STATUSES):
        col.metric(status_label(status), counts[status])
    st.progress(project_percent_complete(project) / 100)

    st.markdown("#### Assigned Team")
    developers = project.get("assignedDevelopers") or []
    if not developers:
        st.caption("No developers assigned.")
    else:
        st.dataframe(
            pd.DataFrame([
                {
                    "Name": d.get("name"),
                    "Email": d.get("email"),
                    "School": d.get("school"),
                    "Grade": d.get("grade"),
                    "Hours/week": d.get("hoursPerWeek"),
                }
                for d in developers
            ]),
            use_container_width=True,
            hide_index=True,
        )


def render_phases(project: Dict[str, Any], can_create: bool) -> None:
    phases = project.get("phases") or []
    if not phases:
        st.info("No phases yet.")

    for phase in phases:
        render_phase_editor(project, phase)

    if can_create:
        st.markdown("---")
        render_create_phase_form(project)


def render_phase_editor(project: Dict[str, Any], phase: Dict[str, Any]) -> None:
    counts = task_counts(phase)
    title = (f"{status_label(phase.get('status'))} {phase['name']} · "
             f"{counts['completed']}/{counts['total']} tasks")
    with st.expander(title, expanded=False):
        st.caption(format_date_range(phase.get("startDate"), phase.get("endDate")))
        st.progress(task_percent(phase) / 100)

        with st.form(f"phase_form_{phase['id']}"):
            options = list(reversed(PHASE_STATUSES))
            current = phase.get("status", "pending")
            status = st.selectbox(
                "Phase status",
                options,
                index=options.index(current) if current in options else 0,
                key=f"phase_status_{phase['id']}",
            )
            tasks = []
            for i, task in enumerate(phase.get("tasks") or []):
                assignee = task.get("assignedTo") or {}
                label = task["name"]
                if assignee.get("name"):
                    label += f" ({assignee['name']})"
                done = st.checkbox(label, value=bool(task.get("completed")), key=f"task_{phase['id']}_{i}")
                tasks.append({"name": task["name"], "completed": done, "assignedTo": assignee.get("id")})
            new_task = st.text_input("Add task", key=f"new_task_{phase['id']}")
            submitted = st.form_submit_button("Save Phase")

        if not submitted:
            return

        if new_task.strip():
            tasks.append({"name": new_task.strip(), "completed": False})
        ok, data = api_client.update_phase(
            project["id"],
            phase["id"],
            {"status": status, "tasks": tasks, "expectedVersion": phase.get("version")},
        )
        if ok:
            flash(f"Phase '{phase['name']}' saved.")
            st.rerun()
        else:
            st.error(f"Could not save phase: {data}")


def render_create_phase_form(project: Dict[str, Any]) -> None:
    st.markdown("#### ➕ New Phase")
    default_start = parse_date(project.get("startDate")) or date.today()
    default_end = parse_date(project.get("endDate")) or default_start
    with st.form(f"create_phase_{project['id']}", clear_on_submit=True):
        name = st.text_input("Phase name")
        c1, c2 = st.columns(2)
        start = c1.date_input("Start date", value=default_start)
        end = c2.date_input("End date", value=default_end)
        tasks_text = st.text_area("Tasks (one per line)")
        submitted = st.form_submit_button("Add Phase", type="primary")

    if not submitted:
        return
    if not name.strip():
        st.error("Phase name is required.")
        return
    if end < start:
        st.error("End date must not be before start date.")
        return

    ok, data = api_client.create_phase(project["id"], {
        "name": name.strip(),
        "startDate": format_date_for_input(start),
        "endDate": format_date_for_input(end),
        "tasks": [line.strip() for line in tasks_text.splitlines() if line.strip()],
    })
    if ok:
        flash(f"Phase '{data['name']}' added.")
        st.rerun()
    else:
        st.error(f"Could not add phase: {data}")


def render_timeline(project: Dict[str, Any]) -> None:
    phases = project.get("phases") or []
    if not phases:
        st.info("Add phases to see the timeline.")
        return
    df = pd.DataFrame([
        {
            "Phase": p["name"],
            "Status": status_label(p.get("status")),
            "Start": parse_date(p.get("startDate")),
            "End": parse_date(p.get("endDate")),
            "Tasks done": f"{task_counts(p)['completed']}/{task_counts(p)['total']}",
            "Progress %": task_percent(p),
        }
        for p in phases
    ]).sort_values("Start")
    df["Days"] = (pd.to_datetime(df["End"]) - pd.to_datetime(df["Start"])).dt.days + 1
    st.dataframe(df, use_container_width=True, hide_index=True)


def render_team_management(project: Dict[str, Any]) -> None:
    assigned = {d["id"]: d for d in project.get("assignedDevelopers") or []}
    developers = load_developers()
    available = {d["id"]: d for d in developers if d["id"] not in assigned}

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("#### Assign developers")
        to_add = st.multiselect(
            "Available developers",
            options=list(available),
            format_func=lambda i: f"{available[i]['name']} ({available[i].get('email', '')})",
            key=f"assign_{project['id']}",
        )
        if st.button("Assign", disabled=not to_add, key=f"assign_btn_{project['id']}"):
            ok, data = api_client.assign_developers(project["id"], to_add)
            if ok:
                flash(f"Assigned {len(to_add)} developer(s).")
                st.rerun()
            else:
                st.error(f"Could not assign: {data}")
    with c2:
        st.markdown("#### Remove developers")
        to_remove = st.multiselect(
            "Assigned developers",
            options=list(assigned),
            format_func=lambda i: assigned[i]["name"],
            key=f"remove_{project['id']}",
        )
        if st.button("Remove", disabled=not to_remove, key=f"remove_btn_{project['id']}"):
            ok, data = api_client.remove_developers(project["id"], to_remove)
            if ok:
                flash(f"Removed {len(to_remove)} developer(s).")
                st.rerun()
            else:
                st.error(f"Could not remove: {data}")


def render_project_settings(project: Dict[str, Any], can_delete: bool) -> None:
    with st.form(f"edit_project_{project['id']}"):
        name = st.text_input("Name", value=project.get("name", ""))
        description = st.text_area("Description", value=project.get("description", ""))
        c1, c2 = st.columns(2)
        start = c1.date_input("Start date", value=parse_date(project.get("startDate")) or date.today())
        end = c2.date_input("End date", value=parse_date(project.get("endDate")) or date.today())
        submitted = st.form_submit_button("Save Changes")

    if submitted:
        candidate = {
            "name": name.strip(),
            "description": description.strip(),
            "startDate": format_date_for_input(start),
            "endDate": format_date_for_input(end),
        }
        updates = {k: v for k, v in candidate.items() if v != project.get(k)}
        if not updates:
            st.info("No changes to save.")
        else:
            ok, data = api_client.update_project(project["id"], updates)
            if ok:
                flash("Project updated.")
                st.rerun()
            else:
                st.error(f"Could not update project: {data}")

    st.markdown("---")
    st.markdown("#### 🗑️ Delete project")
    if not can_delete:
        st.caption("Only the owner who created this project can delete it.")
        return
    confirm = st.checkbox(
        "I understand this deletes every phase and unassigns all developers.",
        key=f"confirm_delete_{project['id']}",
    )
    if st.button("Delete Project", type="primary", disabled=not confirm, key=f"delete_{project['id']}"):
        ok, data = api_client.delete_project(project["id"])
        if ok:
            ss["selected_project_id"] = None
            flash(f"Project '{project['name']}' deleted.")
            go_to("Owner Dashboard")
        else:
            st.error(f"Could not delete project: {data}")


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------

PAGES = {
    "Login": render_login,
    "Owner Dashboard": render_owner_dashboard,
    "Developer Dashboard": render_developer_dashboard,
    "Project View": render_project_view,
}


def main() -> None:
    init_auth_state()

    # Logged-out users always land on Login
    if not is_authenticated():
        ss["nav_page"] = "Login"
    elif not ss.get("nav_page") or ss["nav_page"] == "Login":
        ss["nav_page"] = home_page()

    nav_page = ss["nav_page"]
    print(f"[ROUTING] page={nav_page} | token_present={bool(ss.get('auth_token'))} | "
          f"role={(get_current_user() or {}).get('role')}")

    render_sidebar()

    render = PAGES.get(nav_page)
    if render is None:
        ss["nav_page"] = "Login"
        render = render_login
    render()


if __name__ == "__main__":
    main()
