"""
Project endpoint tests: role-scoped listing, read access, partial
updates, owner-only deletion.

Run: pytest backend/test_projects.py -v
"""

from backend.conftest import auth_headers


def assign(client, owner, project_id, *developer_ids):
    resp = client.post(
        f"/projects/{project_id}/assign",
        json={"developerIds": list(developer_ids)},
        headers=owner["headers"],
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestCreateProject:

    def test_owner_creates_project(self, client, owner):
        resp = client.post(
            "/projects",
            json={
                "name": "Alpha",
                "description": "First project",
                "startDate": "2024-01-01",
                "endDate": "2024-03-01",
            },
            headers=owner["headers"],
        )
        assert resp.status_code == 201
        project = resp.json()
        assert project["status"] == "Planning"
        assert project["startDate"] == "2024-01-01"
        assert project["owner"] == {"id": owner["id"], "name": "alice", "username": "alice"}
        assert project["assignedDevelopers"] == []
        assert project["phases"] == []

    def test_developer_cannot_create(self, client, make_developer):
        dev = make_developer("Dana")
        resp = client.post(
            "/projects",
            json={"name": "X", "description": "x", "startDate": "2024-01-01", "endDate": "2024-02-01"},
            headers=dev["headers"],
        )
        assert resp.status_code == 403

    def test_missing_fields(self, client, owner):
        resp = client.post("/projects", json={"name": "Alpha"}, headers=owner["headers"])
        assert resp.status_code == 400

    def test_end_before_start(self, client, owner):
        resp = client.post(
            "/projects",
            json={"name": "A", "description": "a", "startDate": "2024-03-01", "endDate": "2024-01-01"},
            headers=owner["headers"],
        )
        assert resp.status_code == 400

    def test_unknown_status(self, client, owner):
        resp = client.post(
            "/projects",
            json={"name": "A", "description": "a", "startDate": "2024-01-01",
                  "endDate": "2024-02-01", "status": "Done-ish"},
            headers=owner["headers"],
        )
        assert resp.status_code == 400


class TestListAndRead:

    def test_owners_see_every_project(self, client, owner, other_owner, make_project):
        make_project("Alpha")
        make_project("Beta", as_owner=other_owner)

        names = {p["name"] for p in client.get("/projects", headers=owner["headers"]).json()}
        assert names == {"Alpha", "Beta"}

    def test_developers_see_assigned_projects_only(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        make_project("Beta")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        projects = client.get("/projects", headers=dana["headers"]).json()
        assert [p["name"] for p in projects] == ["Alpha"]

    def test_non_assignee_read_forbidden(self, client, make_project, make_developer):
        alpha = make_project("Alpha")
        eve = make_developer("Eve")
        resp = client.get(f"/projects/{alpha['id']}", headers=eve["headers"])
        assert resp.status_code == 403

    def test_assignee_can_read(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        resp = client.get(f"/projects/{alpha['id']}", headers=dana["headers"])
        assert resp.status_code == 200
        assert resp.json()["assignedDevelopers"][0]["name"] == "Dana"

    def test_unknown_project_is_not_found_before_authorization(self, client, make_developer):
        eve = make_developer("Eve")
        assert client.get("/projects/nope", headers=eve["headers"]).status_code == 404
        assert client.put("/projects/nope", json={"name": "x"}, headers=eve["headers"]).status_code == 404
        assert client.delete("/projects/nope", headers=eve["headers"]).status_code == 404


class TestUpdateProject:

    def test_owner_updates_any_field(self, client, owner, make_project):
        alpha = make_project("Alpha")
        resp = client.put(
            f"/projects/{alpha['id']}",
            json={"name": "Alpha 2", "status": "On Hold", "endDate": "2024-04-01"},
            headers=owner["headers"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert (body["name"], body["status"], body["endDate"]) == ("Alpha 2", "On Hold", "2024-04-01")
        assert body["description"] == "Alpha project"

    def test_any_owner_may_update(self, client, other_owner, make_project):
        alpha = make_project("Alpha")
        resp = client.put(f"/projects/{alpha['id']}", json={"status": "In Progress"},
                          headers=other_owner["headers"])
        assert resp.status_code == 200

    def test_assigned_developer_updates_status(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        resp = client.put(f"/projects/{alpha['id']}", json={"status": "In Progress"}, headers=dana["headers"])
        assert resp.status_code == 200
        assert resp.json()["status"] == "In Progress"

    def test_developer_extra_field_rejects_whole_update(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        resp = client.put(
            f"/projects/{alpha['id']}",
            json={"status": "Completed", "name": "Hijacked"},
            headers=dana["headers"],
        )
        assert resp.status_code == 403

        current = client.get(f"/projects/{alpha['id']}", headers=owner["headers"]).json()
        assert current["status"] == "Planning"
        assert current["name"] == "Alpha"

    def test_developer_unknown_field_rejected(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        resp = client.put(f"/projects/{alpha['id']}", json={"status": "Completed", "priority": 1},
                          headers=dana["headers"])
        assert resp.status_code == 403

    def test_non_assignee_update_forbidden(self, client, make_project, make_developer):
        alpha = make_project("Alpha")
        eve = make_developer("Eve")
        resp = client.put(f"/projects/{alpha['id']}", json={"status": "Completed"}, headers=eve["headers"])
        assert resp.status_code == 403

    def test_empty_update_is_invalid(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])

        assert client.put(f"/projects/{alpha['id']}", json={}, headers=owner["headers"]).status_code == 400
        assert client.put(f"/projects/{alpha['id']}", json={}, headers=dana["headers"]).status_code == 400
        assert client.put(f"/projects/{alpha['id']}", json={"bogus": 1},
                          headers=owner["headers"]).status_code == 400

    def test_invalid_status_value(self, client, owner, make_project):
        alpha = make_project("Alpha")
        resp = client.put(f"/projects/{alpha['id']}", json={"status": "Finished"}, headers=owner["headers"])
        assert resp.status_code == 400

    def test_update_cannot_invert_dates(self, client, owner, make_project):
        alpha = make_project("Alpha")
        resp = client.put(f"/projects/{alpha['id']}", json={"endDate": "2023-12-31"}, headers=owner["headers"])
        assert resp.status_code == 400

    def test_null_field_is_invalid(self, client, owner, make_project):
        alpha = make_project("Alpha")
        resp = client.put(f"/projects/{alpha['id']}", json={"name": None}, headers=owner["headers"])
        assert resp.status_code == 400


class TestDeleteProject:

    def test_creating_owner_deletes(self, client, owner, make_project):
        alpha = make_project("Alpha")
        resp = client.delete(f"/projects/{alpha['id']}", headers=owner["headers"])
        assert resp.status_code == 200
        assert resp.json()["message"] == "Project deleted successfully"
        assert client.get(f"/projects/{alpha['id']}", headers=owner["headers"]).status_code == 404

    def test_other_owner_cannot_delete(self, client, other_owner, make_project):
        alpha = make_project("Alpha")
        resp = client.delete(f"/projects/{alpha['id']}", headers=other_owner["headers"])
        assert resp.status_code == 403

    def test_developer_cannot_delete(self, client, owner, make_project, make_developer):
        alpha = make_project("Alpha")
        dana = make_developer("Dana")
        assign(client, owner, alpha["id"], dana["id"])
        assert client.delete(f"/projects/{alpha['id']}", headers=dana["headers"]).status_code == 403

    def test_requires_token(self, client, make_project):
        alpha = make_project("Alpha")
        assert client.delete(f"/projects/{alpha['id']}", headers=auth_headers("")).status_code == 401
