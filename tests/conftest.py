"""
Shared fixtures: in-memory storage, a scripted AI client, and an app wired to both.

No MongoDB or AI API key is needed to run the suite.
"""
import json
from typing import Any, List, Optional

import pytest
from fastapi.testclient import TestClient

from zhide.core.config import Settings
from zhide.main import create_app
from zhide.services.ai_client import AIClientError
from zhide.services.ai_gateway import AIGateway
from zhide.services.seed_service import seed_demo_data
from zhide.services.storage_service import InMemoryStorage


class FakeAIClient:
    """
    Stands in for AIClient: returns scripted replies in order and records every call.
    A reply may be a dict/list (sent as JSON), a raw string, or an exception to raise.
    """

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies = list(replies or [])
        self.calls = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    def complete(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        self.calls.append((system_prompt, user_content))
        if not self.replies:
            raise AIClientError("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return reply
        return json.dumps(reply, ensure_ascii=False)


def match_reply(*items) -> dict:
    """Build a match reply from (job_id, score) or (job_id, score, reason, keywords) tuples."""
    matches = []
    for item in items:
        job_id, score = item[0], item[1]
        reason = item[2] if len(item) > 2 else f"{job_id} 匹配"
        keywords = item[3] if len(item) > 3 else []
        matches.append({
            "job_id": job_id,
            "score": score,
            "reason": reason,
            "overlapping_keywords": keywords,
        })
    return {"matches": matches}


RESUME_REPLY = {
    "name": "李娜",
    "title": "高级产品经理",
    "experience_years": 7,
    "education": "北京大学, 计算机学士",
    "skills": ["产品规划", "数据分析", "Python"],
    "current_salary": "60万",
    "target_salary": "80万",
    "summary": "七年互联网产品经验，主导过多款千万级用户产品。",
    "email": "lina@example.com",
    "phone": None,
}


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        ai_api_key="",
        jwt_secret_key="test-secret",
        seed_demo_data=False,
        log_level="WARNING",
    )


@pytest.fixture
def storage():
    store = InMemoryStorage()
    seed_demo_data(store)
    return store


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def gateway(fake_ai):
    return AIGateway(fake_ai, top_n=5, job_description_max_chars=300)


@pytest.fixture
def app(settings, storage, gateway):
    return create_app(settings=settings, storage=storage, gateway=gateway)


@pytest.fixture
def client(app):
    return TestClient(app)


def register(client: TestClient, role: str, email: Optional[str] = None, password: str = "secret123") -> dict:
    """Register an account and return its Authorization header."""
    email = email or f"{role}@example.com"
    r = client.post("/auth/register", json={
        "email": email, "password": password, "role": role, "name": f"test {role}"
    })
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def employer_headers(client):
    return register(client, "employer")


@pytest.fixture
def candidate_headers(client):
    return register(client, "candidate")


@pytest.fixture
def guest_headers(client):
    r = client.post("/auth/guest")
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}
