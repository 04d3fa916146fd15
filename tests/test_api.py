"""
API tests: authentication, role gates, resume upload, jobs, candidates and matching.

Run with: pytest tests/ -v
"""
from datetime import timedelta

from conftest import RESUME_REPLY, match_reply, register
from zhide.core.auth import decode_token
from zhide.services.ai_client import AIClientError
from zhide.services.resume_service import PLACEHOLDER_NAME


# ──────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "OK"


def test_health_ready(client):
    r = client.get("/health/ready")
    assert r.status_code == 200
    body = r.json()
    assert body["storage"] == "connected"
    assert body["ai"] == "not configured"


# ──────────────────────────────────────────────
# Authentication
# ──────────────────────────────────────────────

class TestAuth:
    def test_register_returns_token_and_user(self, client):
        r = client.post("/auth/register", json={
            "email": "hr@example.com", "password": "secret123", "role": "employer", "name": "HR"
        })
        assert r.status_code == 201
        body = r.json()
        assert body["token"]
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "employer"
        assert body["user"]["email"] == "hr@example.com"

    def test_duplicate_email_rejected(self, client):
        register(client, "employer", email="dup@example.com")
        r = client.post("/auth/register", json={
            "email": "dup@example.com", "password": "secret123", "role": "candidate"
        })
        assert r.status_code == 400
        assert r.json()["detail"] == "User already exists"

    def test_concurrent_duplicate_registration_is_400(self, client, storage, monkeypatch):
        register(client, "employer", email="race@example.com")
        # Second request passed the lookup before the first one was saved
        monkeypatch.setattr(storage, "get_user_by_email", lambda email: None)
        r = client.post("/auth/register", json={
            "email": "race@example.com", "password": "secret123", "role": "candidate"
        })
        assert r.status_code == 400
        assert r.json()["detail"] == "User already exists"

    def test_guest_role_cannot_register(self, client):
        r = client.post("/auth/register", json={
            "email": "g@example.com", "password": "secret123", "role": "guest"
        })
        assert r.status_code == 400

    def test_short_password_is_400(self, client):
        r = client.post("/auth/register", json={
            "email": "a@example.com", "password": "123", "role": "candidate"
        })
        assert r.status_code == 400
        assert r.json()["detail"] == "Validation failed"

    def test_login(self, client):
        register(client, "candidate", email="me@example.com", password="hunter22")
        r = client.post("/auth/login", json={"email": "me@example.com", "password": "hunter22"})
        assert r.status_code == 200
        assert r.json()["user"]["role"] == "candidate"

    def test_login_wrong_password(self, client):
        register(client, "candidate", email="me@example.com", password="hunter22")
        r = client.post("/auth/login", json={"email": "me@example.com", "password": "wrong-one"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Invalid credentials"

    def test_me(self, client, employer_headers):
        r = client.get("/auth/me", headers=employer_headers)
        assert r.status_code == 200
        assert r.json()["role"] == "employer"

    def test_guest_me(self, client, guest_headers):
        r = client.get("/auth/me", headers=guest_headers)
        assert r.status_code == 200
        assert r.json()["role"] == "guest"
        assert r.json()["id"] is None

    def test_missing_token(self, client):
        r = client.get("/auth/me")
        assert r.status_code == 401
        assert r.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401

    def test_logout_invalidates_token(self, client, employer_headers):
        r = client.post("/auth/logout", headers=employer_headers)
        assert r.status_code == 200
        assert client.get("/auth/me", headers=employer_headers).status_code == 401

    def test_session_older_than_a_day_expires(self, client, storage, settings, employer_headers):
        token = employer_headers["Authorization"].split(" ", 1)[1]
        session_id = decode_token(token, settings)["sid"]
        session = storage.get_session(session_id)
        session.created_at = session.created_at - timedelta(hours=25)
        storage.set_session(session)

        r = client.get("/auth/me", headers=employer_headers)
        assert r.status_code == 401
        assert r.json()["detail"] == "Session expired"
        assert storage.get_session(session_id) is None


# ──────────────────────────────────────────────
# Jobs
# ──────────────────────────────────────────────

NEW_JOB = {
    "title": "数据平台负责人",
    "company": "智联数科",
    "location": "上海",
    "salary_range": "100万 - 140万",
    "requirements": ["Spark", "数据治理"],
    "tags": ["独家"],
    "description": "搭建公司级数据平台。",
}


class TestJobs:
    def test_guest_can_browse(self, client, guest_headers):
        r = client.get("/api/jobs", headers=guest_headers)
        assert r.status_code == 200
        assert [j["id"] for j in r.json()] == ["j5", "j4", "j1", "j2", "j3"]

    def test_browse_requires_session(self, client):
        assert client.get("/api/jobs").status_code == 401

    def test_get_job(self, client, guest_headers):
        r = client.get("/api/jobs/j2", headers=guest_headers)
        assert r.status_code == 200
        assert r.json()["source"] == "crawled"
        assert client.get("/api/jobs/nope", headers=guest_headers).status_code == 404

    def test_employer_creates_job(self, client, employer_headers):
        r = client.post("/api/jobs", json=NEW_JOB, headers=employer_headers)
        assert r.status_code == 201
        job = r.json()
        assert job["active"] is True
        assert job["recruiter_id"]

        listed = client.get("/api/jobs", headers=employer_headers).json()
        assert listed[0]["id"] == job["id"]

    def test_candidate_cannot_create_job(self, client, candidate_headers):
        r = client.post("/api/jobs", json=NEW_JOB, headers=candidate_headers)
        assert r.status_code == 403

    def test_deactivated_job_hidden(self, client, employer_headers):
        job_id = client.post("/api/jobs", json=NEW_JOB, headers=employer_headers).json()["id"]
        r = client.put(f"/api/jobs/{job_id}", json={"active": False}, headers=employer_headers)
        assert r.status_code == 200
        assert r.json()["active"] is False

        listed = client.get("/api/jobs", headers=employer_headers).json()
        assert job_id not in [j["id"] for j in listed]

    def test_update_can_clear_original_url(self, client, employer_headers):
        job_id = client.post("/api/jobs", json=dict(NEW_JOB, original_url="https://example.com/jobs/1"),
                             headers=employer_headers).json()["id"]
        r = client.put(f"/api/jobs/{job_id}", json={"original_url": None, "title": None},
                       headers=employer_headers)
        assert r.status_code == 200
        assert r.json()["original_url"] is None
        assert r.json()["title"] == NEW_JOB["title"]

    def test_other_employer_cannot_edit_or_delete(self, client, employer_headers):
        job_id = client.post("/api/jobs", json=NEW_JOB, headers=employer_headers).json()["id"]
        other = register(client, "employer", email="other@example.com")

        assert client.put(f"/api/jobs/{job_id}", json={"title": "改名"}, headers=other).status_code == 404
        assert client.delete(f"/api/jobs/{job_id}", headers=other).status_code == 404
        assert client.delete(f"/api/jobs/{job_id}", headers=employer_headers).status_code == 200
        assert client.get(f"/api/jobs/{job_id}", headers=employer_headers).status_code == 404


# ──────────────────────────────────────────────
# Resume upload & profile
# ──────────────────────────────────────────────

class TestResumeUpload:
    def test_guest_forbidden(self, client, guest_headers, fake_ai):
        r = client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=guest_headers)
        assert r.status_code == 403
        assert fake_ai.calls == []

    def test_empty_resume_is_400(self, client, candidate_headers):
        r = client.post("/api/resume/upload", json={"resume_text": "  "}, headers=candidate_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Resume text required"

    def test_candidate_upload_creates_own_profile(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY)
        r = client.post("/api/resume/upload", json={"resume_text": "李娜的简历"}, headers=candidate_headers)
        assert r.status_code == 200
        profile = r.json()
        assert profile["name"] == "李娜"
        assert profile["status"] == "unemployed"
        assert profile["user_id"]

        me = client.get("/api/profile/me", headers=candidate_headers).json()
        assert me["id"] == profile["id"]

    def test_candidate_reupload_updates_in_place(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY, dict(RESUME_REPLY, title="产品总监", experience_years=8))
        first = client.post("/api/resume/upload", json={"resume_text": "v1"}, headers=candidate_headers).json()
        second = client.post("/api/resume/upload", json={"resume_text": "v2"}, headers=candidate_headers).json()

        assert second["id"] == first["id"]
        assert second["title"] == "产品总监"
        assert second["experience_years"] == 8

    def test_employer_upload_adds_to_pool(self, client, employer_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY)
        r = client.post("/api/resume/upload", json={"resume_text": "李娜的简历"}, headers=employer_headers)
        assert r.status_code == 200
        pool = client.get("/api/candidates", headers=employer_headers).json()
        assert len(pool) == 4
        assert pool[0]["id"] == r.json()["id"]

    def test_ai_failure_saves_placeholder(self, client, employer_headers, fake_ai):
        fake_ai.queue(AIClientError("timed out"))
        r = client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=employer_headers)
        assert r.status_code == 200
        profile = r.json()
        assert profile["name"] == PLACEHOLDER_NAME
        assert profile["experience_years"] == 0
        assert profile["skills"] == []

    def test_partial_reply_keeps_parsed_fields(self, client, employer_headers, fake_ai):
        fake_ai.queue(dict(RESUME_REPLY, education=None, summary=None))
        r = client.post("/api/resume/upload", json={"resume_text": "李娜的简历"}, headers=employer_headers)
        assert r.status_code == 200
        profile = r.json()
        assert profile["name"] == "李娜"
        assert profile["skills"] == ["产品规划", "数据分析", "Python"]
        assert profile["target_salary"] == "80万"
        assert profile["education"] == "学历不详"
        assert profile["summary"] == "AI自动解析简历"

    def test_failed_reupload_keeps_existing_profile(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY, "not json")
        first = client.post("/api/resume/upload", json={"resume_text": "v1"}, headers=candidate_headers).json()
        second = client.post("/api/resume/upload", json={"resume_text": "v2"}, headers=candidate_headers).json()
        assert second["id"] == first["id"]
        assert second["name"] == "李娜"

    def test_upload_file(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY)
        r = client.post(
            "/api/resume/upload-file",
            files={"file": ("resume.txt", "姓名：李娜\n技能：Python".encode("utf-8"), "text/plain")},
            headers=candidate_headers,
        )
        assert r.status_code == 200
        assert r.json()["name"] == "李娜"
        assert "技能：Python" in fake_ai.calls[0][1]

    def test_upload_file_unsupported_type(self, client, candidate_headers, fake_ai):
        r = client.post(
            "/api/resume/upload-file",
            files={"file": ("resume.png", b"\x89PNG", "image/png")},
            headers=candidate_headers,
        )
        assert r.status_code == 400
        assert fake_ai.calls == []

    def test_profile_me_without_profile(self, client, candidate_headers, guest_headers):
        assert client.get("/api/profile/me", headers=candidate_headers).json() is None
        assert client.get("/api/profile/me", headers=guest_headers).json() is None

    def test_update_own_profile(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY)
        client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=candidate_headers)

        r = client.put("/api/profile/me", json={"status": "interviewing", "target_salary": "90万"},
                       headers=candidate_headers)
        assert r.status_code == 200
        assert r.json()["status"] == "interviewing"
        assert r.json()["target_salary"] == "90万"
        assert r.json()["name"] == "李娜"

    def test_update_profile_clears_contact_fields(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY)
        client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=candidate_headers)

        r = client.put("/api/profile/me", json={"email": None, "name": None}, headers=candidate_headers)
        assert r.status_code == 200
        assert r.json()["email"] is None
        assert r.json()["name"] == "李娜"

    def test_update_profile_before_upload_is_404(self, client, candidate_headers):
        r = client.put("/api/profile/me", json={"title": "x"}, headers=candidate_headers)
        assert r.status_code == 404


# ──────────────────────────────────────────────
# Candidates (employer talent pool)
# ──────────────────────────────────────────────

class TestCandidates:
    def test_list_requires_employer(self, client, candidate_headers, guest_headers):
        assert client.get("/api/candidates", headers=candidate_headers).status_code == 403
        assert client.get("/api/candidates", headers=guest_headers).status_code == 403

    def test_list_and_get(self, client, employer_headers):
        pool = client.get("/api/candidates", headers=employer_headers).json()
        assert {c["id"] for c in pool} == {"c1", "c2", "c3"}
        r = client.get("/api/candidates/c3", headers=employer_headers)
        assert r.json()["name"] == "Lucy Liu"

    def test_update_status(self, client, employer_headers):
        r = client.put("/api/candidates/c1", json={"status": "interviewing"}, headers=employer_headers)
        assert r.status_code == 200
        assert r.json()["status"] == "interviewing"
        assert r.json()["title"] == "市场总监"

    def test_delete_removes_candidate_and_matches(self, client, storage, employer_headers, fake_ai):
        fake_ai.queue(match_reply(("j1", 90)))
        client.post("/api/match/run", json={"candidate_id": "c1"}, headers=employer_headers)
        assert storage.get_matches("c1")

        assert client.delete("/api/candidates/c1", headers=employer_headers).status_code == 200
        assert storage.get_matches("c1") == []
        assert client.get("/api/candidates/c1", headers=employer_headers).status_code == 404
        assert client.delete("/api/candidates/c1", headers=employer_headers).status_code == 404


# ──────────────────────────────────────────────
# Matching
# ──────────────────────────────────────────────

class TestMatchRun:
    def test_employer_runs_match(self, client, employer_headers, fake_ai):
        fake_ai.queue(match_reply(("j4", 55), ("j2", 86, "机器学习背景契合", ["机器学习"])))
        r = client.post("/api/match/run", json={"candidate_id": "c2"}, headers=employer_headers)
        assert r.status_code == 200
        matches = r.json()
        assert [m["job_id"] for m in matches] == ["j2", "j4"]
        assert matches[0]["job"]["title"] == "大模型算法科学家"
        assert matches[0]["overlapping_keywords"] == ["机器学习"]

    def test_cached_until_forced(self, client, employer_headers, fake_ai):
        fake_ai.queue(match_reply(("j2", 86)), match_reply(("j5", 70)))
        client.post("/api/match/run", json={"candidate_id": "c2"}, headers=employer_headers)
        cached = client.post("/api/match/run", json={"candidate_id": "c2"}, headers=employer_headers).json()
        assert [m["job_id"] for m in cached] == ["j2"]
        assert len(fake_ai.calls) == 1

        forced = client.post("/api/match/run", json={"candidate_id": "c2", "force_refresh": True},
                             headers=employer_headers).json()
        assert [m["job_id"] for m in forced] == ["j5"]
        assert len(fake_ai.calls) == 2

    def test_ai_failure_returns_empty_list(self, client, employer_headers, fake_ai):
        fake_ai.queue(AIClientError("connection reset"))
        r = client.post("/api/match/run", json={"candidate_id": "c3"}, headers=employer_headers)
        assert r.status_code == 200
        assert r.json() == []

    def test_employer_needs_candidate_id(self, client, employer_headers):
        r = client.post("/api/match/run", json={}, headers=employer_headers)
        assert r.status_code == 400

    def test_unknown_candidate_is_404(self, client, employer_headers):
        r = client.post("/api/match/run", json={"candidate_id": "nobody"}, headers=employer_headers)
        assert r.status_code == 404

    def test_candidate_matches_own_profile(self, client, candidate_headers, fake_ai):
        assert client.post("/api/match/run", json={}, headers=candidate_headers).status_code == 404

        fake_ai.queue(RESUME_REPLY, match_reply(("j1", 64)))
        client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=candidate_headers)
        # candidate_id in the body is ignored for candidate callers
        r = client.post("/api/match/run", json={"candidate_id": "c2"}, headers=candidate_headers)
        assert r.status_code == 200
        assert [m["job_id"] for m in r.json()] == ["j1"]
        assert "李娜" in fake_ai.calls[1][1]

    def test_candidate_without_body(self, client, candidate_headers, fake_ai):
        fake_ai.queue(RESUME_REPLY, match_reply(("j1", 64)))
        client.post("/api/resume/upload", json={"resume_text": "简历"}, headers=candidate_headers)

        r = client.post("/api/match/run", headers=candidate_headers)
        assert r.status_code == 200
        assert [m["job_id"] for m in r.json()] == ["j1"]

    def test_employer_without_body_needs_candidate_id(self, client, employer_headers):
        r = client.post("/api/match/run", headers=employer_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "candidate_id required"

    def test_guest_cannot_match(self, client, guest_headers):
        r = client.post("/api/match/run", json={"candidate_id": "c2"}, headers=guest_headers)
        assert r.status_code == 403
