"""
Smoke Test for Access Control - owners, assignees, outsiders

Tests:
1. Owner logs in from the allow-list; two developers register and log in
2. Owner creates a project with a phase and assigns developer A
3. Developer A sees the project and can tick a task; developer B cannot see it (403)
4. Developer A cannot change anything but status (403)
5. Deleting the project removes it from developer A's profile

Run: python smoke_test_access_control.py

Requirements:
- Backend running on localhost:8000 (uvicorn backend.main:app)
- Owner allow-list containing admin/admin123 (OWNERS_FILE=owners.example.json)
"""

import sys
import uuid
from typing import Any, Dict, Optional

import requests

BASE_URL = "http://localhost:8000"


class TestResult:
    def __init__(self):
        self.passed = 0
        self.failed = 0

    def check(self, name: str, condition: bool, detail: str = ""):
        if condition:
            self.passed += 1
            print(f"✅ PASS: {name}")
        else:
            self.failed += 1
            print(f"❌ FAIL: {name}")
        if detail:
            print(f"  └─ {detail}")

    def summary(self):
        print("\n" + "=" * 60)
        print(f"SMOKE TEST SUMMARY: {self.passed} passed, {self.failed} failed")
        print("=" * 60)
        return self.failed == 0


def headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login_owner(username: str, password: str) -> Optional[Dict[str, Any]]:
    resp = requests.post(f"{BASE_URL}/auth/login",
                         json={"type": "owner", "username": username, "password": password})
    return resp.json() if resp.status_code == 200 else None


def register_and_login_developer(name: str) -> Optional[Dict[str, Any]]:
    email = f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
    password = f"{name.lower()}-pass"
    resp = requests.post(f"{BASE_URL}/auth/register", json={
        "name": name,
        "email": email,
        "school": "Smoke Test University",
        "grade": "Senior",
        "hoursPerWeek": 10,
        "resume": "Smoke test account",
        "password": password,
    })
    if resp.status_code != 201:
        print(f"  register {name} failed: {resp.status_code} {resp.text}")
        return None
    resp = requests.post(f"{BASE_URL}/auth/login",
                         json={"type": "developer", "email": email, "password": password})
    return resp.json() if resp.status_code == 200 else None


def main() -> int:
    results = TestResult()

    try:
        requests.get(f"{BASE_URL}/health", timeout=5)
    except requests.exceptions.ConnectionError:
        print(f"❌ Backend not reachable at {BASE_URL}")
        return 1

    owner = login_owner("admin", "admin123")
    dev_a = register_and_login_developer("Dana")
    dev_b = register_and_login_developer("Eve")
    results.check("Owner and developers authenticated", bool(owner and dev_a and dev_b))
    if not (owner and dev_a and dev_b):
        results.summary()
        return 1

    owner_h, a_h, b_h = headers(owner["token"]), headers(dev_a["token"]), headers(dev_b["token"])

    resp = requests.post(f"{BASE_URL}/projects", headers=owner_h, json={
        "name": f"Smoke {uuid.uuid4().hex[:6]}",
        "description": "Access control smoke test",
        "startDate": "2024-01-01",
        "endDate": "2024-03-01",
    })
    results.check("Owner creates project", resp.status_code == 201, f"HTTP {resp.status_code}")
    project_id = resp.json()["id"]

    resp = requests.post(f"{BASE_URL}/projects/{project_id}/phases", headers=owner_h, json={
        "name": "Design", "startDate": "2024-01-01", "endDate": "2024-01-31", "tasks": ["wireframes", "review"],
    })
    phase = resp.json()
    results.check("Owner adds phase", resp.status_code == 201, f"HTTP {resp.status_code}")

    resp = requests.post(f"{BASE_URL}/projects/{project_id}/assign", headers=owner_h,
                         json={"developerIds": [dev_a["user"]["id"]]})
    results.check("Owner assigns developer A", resp.status_code == 200, f"HTTP {resp.status_code}")

    resp = requests.get(f"{BASE_URL}/projects/{project_id}", headers=a_h)
    results.check("Assignee reads project", resp.status_code == 200, f"HTTP {resp.status_code}")

    resp = requests.get(f"{BASE_URL}/projects/{project_id}", headers=b_h)
    results.check("Outsider denied project", resp.status_code == 403, f"HTTP {resp.status_code}")

    resp = requests.put(f"{BASE_URL}/projects/{project_id}/phases/{phase['id']}", headers=a_h, json={
        "tasks": [{"name": "wireframes", "completed": True}, {"name": "review", "completed": False}],
    })
    done = sum(t["completed"] for t in resp.json().get("tasks", [])) if resp.status_code == 200 else -1
    results.check("Assignee completes a task", done == 1, f"HTTP {resp.status_code}, completed={done}")

    resp = requests.put(f"{BASE_URL}/projects/{project_id}", headers=a_h,
                        json={"status": "Completed", "name": "Renamed"})
    results.check("Assignee cannot rename project", resp.status_code == 403, f"HTTP {resp.status_code}")

    resp = requests.delete(f"{BASE_URL}/projects/{project_id}", headers=a_h)
    results.check("Assignee cannot delete project", resp.status_code == 403, f"HTTP {resp.status_code}")

    resp = requests.delete(f"{BASE_URL}/projects/{project_id}", headers=owner_h)
    results.check("Owner deletes project", resp.status_code == 200, f"HTTP {resp.status_code}")

    profile = requests.get(f"{BASE_URL}/developers/profile", headers=a_h).json()
    ids = [p["id"] for p in profile.get("assignedProjects", [])]
    results.check("Deleted project pulled from assignee profile", project_id not in ids)

    return 0 if results.summary() else 1


if __name__ == "__main__":
    sys.exit(main())
