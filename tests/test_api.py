"""
Endpoint tests for the assignment API
"""
from unittest.mock import patch

from fastapi.testclient import TestClient

import main
from conftest import auth_header


class TestBasicRoutes:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["message"]

    def test_storage_status(self, client, store):
        store.save("teachers", [{"id": "1"}])
        data = client.get("/test").json()
        assert data["collections"] == {"teachers": 1}

    def test_unknown_route_uses_message_body(self, client):
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert "message" in response.json()


class TestBootstrap:

    def test_seeds_default_teacher_and_samples(self, store):
        main.init_data_dir(store)
        teachers = store.load("teachers")
        assert [t["email"] for t in teachers] == ["priya.sharma@ecb.ac.in"]
        assert main.verify_password("password123", teachers[0]["password"])
        assert [a["id"] for a in store.load("assignments")] == ["1", "2"]
        assert all(a["teacherId"] == "1" for a in store.load("assignments"))

    def test_seeding_is_idempotent(self, store):
        main.init_data_dir(store)
        store.save("assignments", [])
        main.init_data_dir(store)
        assert store.load("assignments") == []
        assert len(store.load("teachers")) == 1

    def test_existing_assignments_are_not_reseeded(self, store):
        store.save("assignments", [{"id": "9", "teacherId": "t9"}])
        main.init_data_dir(store)
        assert store.load("assignments") == [{"id": "9", "teacherId": "t9"}]
        assert len(store.load("teachers")) == 1

    def test_lifespan_seeds_and_default_login_works(self, store, monkeypatch):
        monkeypatch.setattr(main, "db", store)
        with TestClient(main.app) as client:
            response = client.post(
                "/api/auth/login",
                json={"email": "priya.sharma@ecb.ac.in", "password": "password123"},
            )
            assert response.status_code == 200
            listing = client.get("/api/assignments", headers=auth_header(response.json()["token"])).json()
        assert listing["stats"] == {"totalAssignments": 2, "pending": 1, "submitted": 0, "graded": 1}


class TestAssignmentEndpoints:

    def test_crud_flow(self, client, register):
        token, teacher = register()
        headers = auth_header(token)

        created = client.post("/assignments", json={"title": "T1", "subject": "Maths"}, headers=headers)
        assert created.status_code == 201
        assignment = created.json()
        assert assignment["teacherId"] == teacher["id"]

        fetched = client.get(f"/assignments/{assignment['id']}", headers=headers)
        assert fetched.status_code == 200
        assert fetched.json() == assignment

        updated = client.put(f"/assignments/{assignment['id']}", json={"status": "submitted"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json() == {**assignment, "status": "submitted"}

        listing = client.get("/assignments", headers=headers).json()
        assert listing["assignments"] == [updated.json()]
        assert listing["stats"]["submitted"] == 1

        deleted = client.delete(f"/assignments/{assignment['id']}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Deleted successfully"}
        assert client.get(f"/assignments/{assignment['id']}", headers=headers).status_code == 404

    def test_mark_graded_scenario(self, client, register):
        token, teacher = register(email="a@x.com", password="pw")
        login = client.post("/auth/login", json={"email": "a@x.com", "password": "pw"})
        headers = auth_header(login.json()["token"])

        created = client.post(
            "/assignments", json={"title": "T1", "totalStudents": 10, "status": "pending"}, headers=headers
        ).json()
        assert created["submittedCount"] == 0
        assert created["gradedCount"] == 0
        assert created["status"] == "pending"
        assert created["teacherId"] == teacher["id"]

        client.put(f"/assignments/{created['id']}", json={"submittedCount": 10}, headers=headers)
        graded = client.post(f"/assignments/{created['id']}/mark-graded", headers=headers)
        assert graded.status_code == 200
        assert graded.json()["gradedCount"] == 10
        assert graded.json()["status"] == "graded"

        again = client.post(f"/assignments/{created['id']}/mark-graded", headers=headers)
        assert again.status_code == 200
        assert again.json() == graded.json()

    def test_other_teacher_gets_404(self, client, register):
        token_a, _ = register(email="a@x.com")
        token_b, _ = register(email="b@x.com")
        created = client.post("/assignments", json={"title": "Mine"}, headers=auth_header(token_a)).json()
        path = f"/assignments/{created['id']}"
        other = auth_header(token_b)

        assert client.get(path, headers=other).status_code == 404
        assert client.get(path, headers=other).json() == {"message": "Not found"}
        assert client.put(path, json={"title": "x"}, headers=other).status_code == 404
        assert client.post(f"{path}/mark-graded", headers=other).status_code == 404
        assert client.delete(path, headers=other).status_code == 200
        assert client.get("/assignments", headers=other).json()["assignments"] == []

        still_there = client.get(path, headers=auth_header(token_a))
        assert still_there.status_code == 200
        assert still_there.json()["title"] == "Mine"

    def test_delete_missing_reports_success(self, client, register):
        token, _ = register()
        response = client.delete("/assignments/does-not-exist", headers=auth_header(token))
        assert response.status_code == 200

    def test_update_missing_is_404(self, client, register):
        token, _ = register()
        response = client.put("/assignments/does-not-exist", json={"title": "x"}, headers=auth_header(token))
        assert response.status_code == 404

    def test_remind(self, client, register):
        token, _ = register()
        response = client.post("/assignments/anything/remind", headers=auth_header(token))
        assert response.status_code == 200
        assert response.json() == {"message": "Reminder triggered"}

    def test_unknown_fields_are_stored(self, client, register):
        token, _ = register()
        created = client.post("/assignments", json={"title": "T", "room": "B12"}, headers=auth_header(token))
        assert created.json()["room"] == "B12"

    def test_values_stored_as_sent(self, client, register, store):
        token, _ = register()
        headers = auth_header(token)
        created = client.post(
            "/assignments", json={"title": 5, "totalStudents": "10", "status": "lost"}, headers=headers
        )
        assert created.status_code == 201
        stored = store.load("assignments")[0]
        assert (stored["title"], stored["totalStudents"], stored["status"]) == (5, "10", "lost")

        updated = client.put(f"/assignments/{stored['id']}", json={"totalStudents": 10.5}, headers=headers)
        assert updated.status_code == 200
        assert store.load("assignments")[0]["totalStudents"] == 10.5

    def test_non_object_body_rejected(self, client, register, store):
        token, _ = register()
        response = client.post("/assignments", json=["not", "an", "object"], headers=auth_header(token))
        assert response.status_code == 400
        assert store.load("assignments") == []

    def test_requires_token(self, client):
        assert client.post("/assignments", json={"title": "x"}).status_code == 401
        assert client.post("/assignments/1/remind").status_code == 401
        assert client.delete("/assignments/1").status_code == 401

    def test_api_prefix(self, client, register):
        token, _ = register()
        response = client.post("/api/assignments", json={"title": "T"}, headers=auth_header(token))
        assert response.status_code == 201
        assert client.get("/assignments", headers=auth_header(token)).json()["stats"]["totalAssignments"] == 1

    def test_storage_failure_is_500(self, client, register):
        token, _ = register()
        with patch.object(main.db, "save", side_effect=OSError("disk full")):
            response = client.post("/assignments", json={"title": "T"}, headers=auth_header(token))
        assert response.status_code == 500
        assert response.json() == {"message": "Server error"}
