from types import SimpleNamespace

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from recruitflow.db import get_parse_log_collection
from recruitflow.main import app, get_ai_client
from conftest import AI_DATA, SAMPLE_RESUME


class FakeParseLogs:
    """In-memory stand-in for the parse_logs collection."""

    def __init__(self):
        self.docs = {}

    async def insert_one(self, doc):
        oid = ObjectId()
        self.docs[oid] = dict(doc, _id=oid)
        return SimpleNamespace(inserted_id=oid)

    async def find_one(self, query):
        doc = self.docs.get(query["_id"])
        return dict(doc) if doc else None


class BrokenParseLogs(FakeParseLogs):
    async def insert_one(self, doc):
        raise ServerSelectionTimeoutError("no servers")


@pytest.fixture
def api(ai_endpoint):
    state = SimpleNamespace(
        handler=lambda request: httpx.Response(503),
        parse_logs=FakeParseLogs(),
    )

    async def override_ai_client():
        transport = httpx.MockTransport(lambda request: state.handler(request))
        async with httpx.AsyncClient(transport=transport) as client:
            yield client

    app.dependency_overrides[get_ai_client] = override_ai_client
    app.dependency_overrides[get_parse_log_collection] = lambda: state.parse_logs
    with TestClient(app) as client:
        state.client = client
        yield state
    app.dependency_overrides.clear()


def test_health(api):
    assert api.client.get("/health").json() == {"ok": True}


def test_parse_resume_falls_back_and_is_logged(api):
    resp = api.client.post("/parse-resume", json={"text": SAMPLE_RESUME})

    assert resp.status_code == 200
    body = resp.json()
    outcome = body["outcome"]
    assert outcome["source"] == "fallback"
    assert outcome["usedFallback"] is True
    assert "HTTP 503" in outcome["aiError"]
    assert outcome["data"]["firstName"] == "John"
    assert outcome["data"]["lastName"] == "Smith"
    assert outcome["data"]["confidence"] == 0.85

    log = api.client.get(f"/parse-log/{body['id']}")
    assert log.status_code == 200
    stored = log.json()
    assert stored["_id"] == body["id"]
    assert stored["source"] == "fallback"
    assert stored["text_chars"] == len(SAMPLE_RESUME)
    assert stored["parsed"]["email"] == "john.smith@email.com"


def test_parse_resume_uses_ai_when_available(api):
    api.handler = lambda request: httpx.Response(200, json={"success": True, "data": AI_DATA})

    resp = api.client.post("/parse-resume", json={"text": SAMPLE_RESUME, "model": "moonshot"})

    outcome = resp.json()["outcome"]
    assert outcome["source"] == "ai"
    assert outcome["usedFallback"] is False
    assert outcome["model"] == "moonshot"
    assert outcome["data"]["firstName"] == "Sarah"
    assert outcome["data"]["confidence"] == 0.94


def test_parse_resume_rejects_short_text(api):
    resp = api.client.post("/parse-resume", json={"text": "Jane Doe"})

    assert resp.status_code == 400
    assert "too short" in resp.json()["detail"]
    assert api.parse_logs.docs == {}


def test_parse_survives_log_storage_failure(api):
    api.parse_logs = BrokenParseLogs()

    resp = api.client.post("/parse-resume", json={"text": SAMPLE_RESUME})

    assert resp.status_code == 200
    assert resp.json()["id"] is None


def test_upload_text_resume(api):
    files = {"file": ("resume.txt", SAMPLE_RESUME.encode("utf-8"), "text/plain")}

    resp = api.client.post("/upload-resume", files=files)

    assert resp.status_code == 200
    assert resp.json()["outcome"]["data"]["email"] == "john.smith@email.com"
    stored = next(iter(api.parse_logs.docs.values()))
    assert stored["filename"] == "resume.txt"


def test_upload_rejects_unsupported_type(api):
    files = {"file": ("photo.png", b"\x89PNG", "image/png")}

    resp = api.client.post("/upload-resume", files=files)

    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["detail"]


def test_upload_rejects_empty_document(api):
    files = {"file": ("resume.txt", b"   ", "text/plain")}

    assert api.client.post("/upload-resume", files=files).status_code == 400


def test_extract_endpoint_runs_rules_only(api):
    api.handler = lambda request: pytest.fail("AI service must not be called")

    resp = api.client.post("/extract", json={"text": SAMPLE_RESUME})

    assert resp.status_code == 200
    assert resp.json()["firstName"] == "John"
    assert resp.json()["skills"][:2] == ["JavaScript", "React"]


def test_extract_endpoint_rejects_short_text(api):
    assert api.client.post("/extract", json={"text": "hi"}).status_code == 400


def test_parse_log_lookup_errors(api):
    assert api.client.get("/parse-log/not-an-id").status_code == 400
    assert api.client.get(f"/parse-log/{ObjectId()}").status_code == 404
