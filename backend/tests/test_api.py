"""
ProjectRepo Backend - HTTP API Tests
=====================================

What:  End-to-end requests through the FastAPI app: middleware, auth
       dependencies, routing, exception handlers and response envelopes.
How:   httpx AsyncClient over ASGITransport (see `test_client` in conftest.py).
"""

import re

import pytest

from conftest import DEFAULT_PASSWORD
from projectrepo.models.enums import ProjectStatus

TITLE = "Solar Microgrids for Rural Clinics"
ABSTRACT = "Design and evaluation of a solar microgrid for off-grid clinics."


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["mailer"] == "recording"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"


class TestAuthApi:

    @pytest.mark.asyncio
    async def test_login_and_me(self, test_client, users):
        response = await test_client.post(
            "/api/auth/login", json={"matricule": "CE/2020/010", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["matricule"] == "CE/2020/010"
        assert me.json()["role"] == "STUDENT"

    @pytest.mark.asyncio
    async def test_bad_credentials(self, test_client, users):
        response = await test_client.post(
            "/api/auth/login", json={"matricule": "CE/2020/010", "password": "wrong-password"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.json()["message"] == "Invalid credentials"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_malformed_body_is_400(self, test_client):
        response = await test_client.post("/api/auth/login", json={"matricule": "CE/2020/010"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "password"

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client):
        response = await test_client.get("/api/projects/mine")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_navigation(self, test_client, users, auth_headers):
        response = await test_client.get("/api/navigation", headers=auth_headers(users.supervisor))
        assert response.status_code == 200
        assert "/review" in [link["route"] for link in response.json()]

    @pytest.mark.asyncio
    async def test_registration_flow(self, test_client, classlist_entry, mailer):
        start = await test_client.post(
            "/api/auth/register/start",
            json={"name": "Chidi Okafor", "matricule": "CE/2020/001", "password": "hunter22"},
        )
        assert start.status_code == 202
        assert mailer.sent[-1].to == "chidi@uni.edu"
        code = re.search(r"<strong>(\d+)</strong>", mailer.sent[-1].html).group(1)

        verify = await test_client.post(
            "/api/auth/register/verify", json={"matricule": "CE/2020/001", "otp": code}
        )
        assert verify.status_code == 201
        assert verify.json()["role"] == "STUDENT"

        login = await test_client.post(
            "/api/auth/login", json={"matricule": "CE/2020/001", "password": "hunter22"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_registration_not_on_classlist(self, test_client, classlist_entry):
        response = await test_client.post(
            "/api/auth/register/start",
            json={"name": "Mallory", "matricule": "CE/2020/666", "password": "hunter22"},
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Matricule not found or not authorized."


class TestProjectsApi:

    async def _submit(self, client, headers, supervisor_id, pdf_bytes):
        return await client.post(
            "/api/projects",
            data={"title": TITLE, "abstract": ABSTRACT, "supervisor_id": str(supervisor_id)},
            files={"file": ("draft.pdf", pdf_bytes, "application/pdf")},
            headers=headers,
        )

    @pytest.mark.asyncio
    async def test_submit_and_review(self, test_client, users, auth_headers, pdf_bytes):
        student = auth_headers(users.student)
        supervisor = auth_headers(users.supervisor)

        submitted = await self._submit(test_client, student, users.supervisor.id, pdf_bytes)
        assert submitted.status_code == 201
        assert submitted.json()["status"] == "PENDING_REVIEW"
        project_id = submitted.json()["project_id"]

        queue = await test_client.get("/api/projects/review-queue", headers=supervisor)
        assert [p["id"] for p in queue.json()] == [project_id]
        assert queue.json()[0]["allowed_actions"] == ["APPROVE", "REJECT"]

        count = await test_client.get("/api/projects/pending-review-count", headers=supervisor)
        assert count.json() == {"count": 1}

        rejected = await test_client.post(
            f"/api/projects/{project_id}/reject", json={"comments": "Fix citations"}, headers=supervisor
        )
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "REJECTED"

        comments = await test_client.get(f"/api/projects/{project_id}/comments", headers=student)
        assert [c["content"] for c in comments.json()] == ["Fix citations"]

    @pytest.mark.asyncio
    async def test_submit_validation_errors(self, test_client, users, auth_headers, pdf_bytes):
        student = auth_headers(users.student)

        bad_uuid = await self._submit(test_client, student, "not-a-uuid", pdf_bytes)
        assert bad_uuid.status_code == 400
        assert bad_uuid.json()["message"] == "Invalid supervisor_id."

        no_file = await test_client.post(
            "/api/projects",
            data={"title": TITLE, "abstract": ABSTRACT, "supervisor_id": str(users.supervisor.id)},
            headers=student,
        )
        assert no_file.status_code == 400
        assert no_file.json()["details"] == {"field": "file"}

    @pytest.mark.asyncio
    async def test_wrong_role_is_401(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor)
        response = await test_client.post(f"/api/projects/{project.id}/approve", headers=auth_headers(users.student))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_transition_is_403(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor, status=ProjectStatus.REJECTED)

        response = await test_client.post(
            f"/api/projects/{project.id}/approve", headers=auth_headers(users.supervisor)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_blank_rejection_is_400(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor)
        response = await test_client.post(
            f"/api/projects/{project.id}/reject", json={"comments": "  "}, headers=auth_headers(users.supervisor)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Rejection comments are required."

    @pytest.mark.asyncio
    async def test_unpublished_detail_is_404_for_others(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor)
        response = await test_client.get(f"/api/projects/{project.id}", headers=auth_headers(users.other_student))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_download_redirects_and_counts(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor, status=ProjectStatus.PUBLISHED)
        reader = auth_headers(users.other_student)

        download = await test_client.get(f"/api/projects/{project.id}/download", headers=reader)
        assert download.status_code == 307
        assert download.headers["location"] == "/api/files/project_finals/2025/01/01/final.pdf"

        detail = await test_client.get(f"/api/projects/{project.id}", headers=reader)
        assert detail.status_code == 200
        assert detail.json()["download_count"] == 1
        assert detail.json()["view_count"] == 1

    @pytest.mark.asyncio
    async def test_repository_search(self, test_client, users, auth_headers, make_project):
        await make_project(users.student, users.supervisor, status=ProjectStatus.PUBLISHED, title=TITLE)
        await make_project(users.other_student, users.supervisor, title="Unpublished Solar Draft")

        response = await test_client.get(
            "/api/projects/repository", params={"q": "solar"}, headers=auth_headers(users.other_student)
        )

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"
        assert [p["title"] for p in response.json()["projects"]] == [TITLE]

    @pytest.mark.asyncio
    async def test_supervisors_list(self, test_client, users, auth_headers):
        response = await test_client.get("/api/supervisors", headers=auth_headers(users.student))
        assert [s["name"] for s in response.json()] == ["Dr. Alan Turing", "Dr. Grace Hopper"]


class TestFilesApi:

    @pytest.mark.asyncio
    async def test_serves_stored_pdf(self, test_client, file_service, pdf_bytes):
        ref = await file_service.store_file(pdf_bytes, "project_finals", ".pdf")

        response = await test_client.get(f"/api/files/{ref}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == pdf_bytes

    @pytest.mark.asyncio
    async def test_missing_file_is_404(self, test_client):
        response = await test_client.get("/api/files/project_finals/2025/01/01/missing.pdf")
        assert response.status_code == 404


class TestNotificationsApi:

    @pytest.mark.asyncio
    async def test_inbox_and_mark_read(self, test_client, users, auth_headers, make_project):
        project = await make_project(users.student, users.supervisor)
        student = auth_headers(users.student)

        await test_client.post(
            f"/api/projects/{project.id}/approve", json={"comment": "Well done"}, headers=auth_headers(users.supervisor)
        )

        inbox = await test_client.get("/api/notifications", headers=student)
        assert len(inbox.json()) == 1
        assert inbox.json()[0]["link"] == "/my-projects"

        unread = await test_client.get("/api/notifications/unread-count", headers=student)
        assert unread.json() == {"count": 1}

        marked = await test_client.post("/api/notifications/mark-read", headers=student)
        assert marked.status_code == 204

        unread = await test_client.get("/api/notifications/unread-count", headers=student)
        assert unread.json() == {"count": 0}


class TestAdminApi:

    @pytest.mark.asyncio
    async def test_non_admin_is_401(self, test_client, users, auth_headers):
        response = await test_client.get("/api/admin/users", headers=auth_headers(users.supervisor))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_user_management(self, test_client, users, auth_headers):
        admin = auth_headers(users.admin)

        listed = await test_client.get("/api/admin/users", headers=admin)
        assert listed.status_code == 200
        assert len(listed.json()) == 5

        payload = {"name": "Dr. New Staff", "matricule": "STAFF/009", "role": "SUPERVISOR", "password": "welcome1"}
        created = await test_client.post("/api/admin/users", json=payload, headers=admin)
        assert created.status_code == 201
        assert created.json()["role"] == "SUPERVISOR"

        duplicate = await test_client.post("/api/admin/users", json=payload, headers=admin)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "conflict"

        deleted = await test_client.delete(f"/api/admin/users/{created.json()['id']}", headers=admin)
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_invalid_role_is_400(self, test_client, users, auth_headers):
        response = await test_client.post(
            "/api/admin/users",
            json={"name": "Someone", "matricule": "X/77", "role": "JANITOR", "password": "welcome1"},
            headers=auth_headers(users.admin),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_classlist_management(self, test_client, users, auth_headers):
        admin = auth_headers(users.admin)
        created = await test_client.post(
            "/api/admin/classlist",
            json={"matricule": "CE/2021/050", "student_name": "Ngozi Eze", "student_email": "ngozi@uni.edu"},
            headers=admin,
        )
        assert created.status_code == 201

        listed = await test_client.get("/api/admin/classlist", headers=admin)
        assert [e["matricule"] for e in listed.json()] == ["CE/2021/050"]
