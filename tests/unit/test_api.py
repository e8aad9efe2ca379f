"""HTTP API tests against the FastAPI app with in-memory service doubles."""

import dataclasses
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from src.agent.graph import build_graph
from src.agent.loop import AgentLoop
from src.agent.router import UNSUPPORTED_MESSAGE
from src.api.app import create_app
from src.api.routes import auth, chat, files, health, upload, webhook
from src.auth.identity import IdentityProvider
from src.auth.tokens import issue_state, issue_token, verify_token
from src.errors import DomainNotAllowedError
from src.ingestion.pipeline import IngestionResult
from src.services import Services
from src.tools import build_registry

USER = {"id": "google-oauth2|42", "email": "ada@example.com", "name": "Ada", "emailVerified": True}

CHUNKS = [
    {
        "file_id": "f-1",
        "file_name": "report.pdf",
        "uploaded_at": "2024-01-01T00:00:00+00:00",
        "page_count": 3,
        "chunk_index": 0,
        "content": "first part",
    },
    {
        "file_id": "f-1",
        "file_name": "report.pdf",
        "uploaded_at": "2024-01-01T00:00:00+00:00",
        "page_count": 3,
        "chunk_index": 1,
        "content": "second part",
    },
    {
        "file_id": "f-2",
        "file_name": "notes.pdf",
        "uploaded_at": "2024-02-01T00:00:00+00:00",
        "page_count": 1,
        "chunk_index": 0,
        "content": "notes",
    },
]


def make_services(cfg, model):
    vector_search = MagicMock()
    vector_search.search = AsyncMock(return_value=[])
    vector_search.store_message = AsyncMock(return_value={"id": "rec-1"})
    weather = MagicMock()
    weather.get_current_weather = AsyncMock(return_value={"temperature": 21, "description": "clear sky"})
    search = MagicMock()
    registry = build_registry(vector_search, weather, search)
    agent = AgentLoop(model, registry, recursion_limit=cfg.recursion_limit)

    redis = MagicMock()
    redis.list_document_chunks = AsyncMock(return_value=CHUNKS)
    redis.get_document_chunks = AsyncMock(
        side_effect=lambda file_id, user_id: [c for c in CHUNKS if c["file_id"] == file_id]
    )
    redis.delete_document = AsyncMock(side_effect=lambda file_id, user_id: 2 if file_id == "f-1" else 0)

    pipeline = MagicMock()
    pipeline.ingest = AsyncMock(
        side_effect=lambda data, meta: IngestionResult(file_id=meta.file_id, page_count=2, chunk_count=4)
    )
    conversations = AsyncMock()
    conversations.load.return_value = []

    return Services(
        settings=cfg,
        redis=redis,
        embedder=MagicMock(),
        vector_search=vector_search,
        weather=weather,
        search=search,
        registry=registry,
        chat_model=model,
        agent=agent,
        graph=build_graph(agent, universal_fallback=cfg.universal_fallback),
        pipeline=pipeline,
        conversations=conversations,
        identity=IdentityProvider(cfg),
    )


@pytest.fixture
def services(test_settings, scripted_model):
    return make_services(test_settings, scripted_model([]))


@pytest.fixture
def client(services, test_settings):
    return TestClient(create_app(services=services, cfg=test_settings))


@pytest.fixture
def auth_headers(test_settings):
    return {"Authorization": f"Bearer {issue_token(USER, test_settings)}"}


# -- health and errors ------------------------------------------------------

def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "healthy"
    assert body["environment"] == "test"
    assert body["uptime"] >= 0


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not found", "message": "Route /api/nope not found"}


# -- chat -------------------------------------------------------------------

def test_chat_unsupported_query(client, services, auth_headers):
    resp = client.post("/api/chat", json={"message": "Hello"}, headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["message"] == UNSUPPORTED_MESSAGE
    assert data["metadata"]["conversationId"]
    assert data["metadata"]["fileId"] is None
    assert data["user"] == {"id": USER["id"]}
    assert "toolsUsed" not in data

    conversation_id = data["metadata"]["conversationId"]
    again = client.post(
        "/api/chat", json={"message": "Hello", "conversationId": conversation_id}, headers=auth_headers
    )
    assert again.json()["data"]["metadata"]["conversationId"] == conversation_id
    assert again.json()["data"]["message"] == UNSUPPORTED_MESSAGE
    services.conversations.load.assert_awaited_with(USER["id"], conversation_id)


def test_chat_weather_reports_tools(test_settings, auth_headers, scripted_model, make_ai, make_tool_call):
    model = scripted_model(
        [make_ai("", make_tool_call("weatherLookup", city="Lisbon")), make_ai("Clear skies, 21 degrees.")]
    )
    services = make_services(test_settings, model)
    client = TestClient(create_app(services=services, cfg=test_settings))
    resp = client.post("/api/chat", json={"message": "What's the weather in Lisbon?"}, headers=auth_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["message"] == "Clear skies, 21 degrees."
    assert data["toolsUsed"] == ["weatherLookup"]
    services.weather.get_current_weather.assert_awaited_once_with("Lisbon")
    services.conversations.append.assert_awaited_once()
    owner, conversation_id = services.conversations.append.await_args.args[:2]
    assert (owner, conversation_id) == (USER["id"], data["metadata"]["conversationId"])


@pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}, {"message": 42}])
def test_chat_rejects_bad_message(client, auth_headers, payload):
    resp = client.post("/api/chat", json=payload, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["message"] == "Message is required and must be a non-empty string"


def test_chat_rejects_bad_file_id(client, auth_headers):
    resp = client.post("/api/chat", json={"message": "Summarize", "fileId": "nope"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "fileId must be a valid UUID"


def test_chat_requires_auth(client):
    resp = client.post("/api/chat", json={"message": "Hello"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Authentication required"


def test_chat_rejects_invalid_token(client):
    resp = client.post("/api/chat", json={"message": "Hello"}, headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 401


def test_chat_anonymous_when_auth_optional(test_settings, scripted_model):
    cfg = dataclasses.replace(test_settings, auth_required=False)
    client = TestClient(create_app(services=make_services(cfg, scripted_model([])), cfg=cfg))
    resp = client.post("/api/chat", json={"message": "Hello"})
    assert resp.status_code == 200
    assert resp.json()["data"]["user"] == {"id": "anonymous"}


def test_chat_upstream_failure(client, services, auth_headers):
    services.conversations.load.side_effect = ConnectionError("redis down")
    resp = client.post("/api/chat", json={"message": "Hello"}, headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to generate response"


# -- upload -----------------------------------------------------------------

def test_upload_pdf(client, services, auth_headers, make_pdf):
    pdf = make_pdf(["Hello world"])
    resp = client.post(
        "/api/upload", files={"file": ("report.pdf", pdf, "application/pdf")}, headers=auth_headers
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["fileName"] == "report.pdf"
    assert data["chunks"] == 4
    assert data["pages"] == 2

    data_arg, meta = services.pipeline.ingest.await_args.args
    assert data_arg == pdf
    assert meta.file_id == data["fileId"]
    assert meta.user_id == USER["id"]


def test_upload_missing_file(client, auth_headers):
    resp = client.post("/api/upload", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "No file uploaded"


def test_upload_rejects_non_pdf(client, services, auth_headers):
    resp = client.post(
        "/api/upload", files={"file": ("notes.txt", b"plain", "text/plain")}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Only PDF files are allowed"
    services.pipeline.ingest.assert_not_awaited()


def test_upload_rejects_oversized_file(test_settings, auth_headers, scripted_model):
    cfg = dataclasses.replace(test_settings, max_file_size=1024 * 1024)
    services = make_services(cfg, scripted_model([]))
    client = TestClient(create_app(services=services, cfg=cfg))
    resp = client.post(
        "/api/upload",
        files={"file": ("big.pdf", b"%PDF" + b"0" * (1024 * 1024), "application/pdf")},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "File size cannot exceed 1MB"
    services.pipeline.ingest.assert_not_awaited()


# -- files ------------------------------------------------------------------

def test_list_files(client, services, auth_headers):
    resp = client.get("/api/files", headers=auth_headers)
    assert resp.status_code == 200
    files = {f["fileId"]: f for f in resp.json()["data"]}
    assert files["f-1"]["chunks"] == 2
    assert files["f-1"]["pages"] == 3
    assert files["f-2"]["fileName"] == "notes.pdf"
    services.redis.list_document_chunks.assert_awaited_once_with(USER["id"])


def test_file_detail(client, auth_headers):
    resp = client.get("/api/files/f-1", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["content"] == "first part\nsecond part"
    assert data["chunks"] == 2


def test_file_detail_not_found(client, auth_headers):
    resp = client.get("/api/files/missing", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "File not found"


def test_delete_file(client, services, auth_headers):
    resp = client.delete("/api/files/f-1", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "File deleted successfully"}
    services.redis.delete_document.assert_awaited_once_with("f-1", USER["id"])

    assert client.delete("/api/files/missing", headers=auth_headers).status_code == 404


# -- auth -------------------------------------------------------------------

def test_auth_user_with_token(client, auth_headers):
    resp = client.get("/api/auth/user", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["authenticated"] is True
    assert body["user"]["email"] == "ada@example.com"


def test_auth_user_without_token(client):
    resp = client.get("/api/auth/user")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "authenticated": False, "user": None}


def test_auth_user_with_invalid_token(client):
    resp = client.get("/api/auth/user", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 401
    assert resp.json()["authenticated"] is False


def test_login_returns_provider_url(client, test_settings):
    resp = client.get("/api/auth/login", params={"returnTo": "http://localhost:3000/chat"})
    assert resp.status_code == 200
    url = urlparse(resp.json()["loginUrl"])
    params = parse_qs(url.query)
    assert url.netloc == "example.auth0.com"
    assert params["redirect_uri"] == ["http://testserver/api/auth/callback"]


def test_callback_success(client, services, test_settings):
    services.identity.complete_authentication = AsyncMock(return_value=USER)
    state = issue_state("http://localhost:3000/chat", test_settings)
    resp = client.get(
        "/api/auth/callback", params={"code": "abc", "state": state}, follow_redirects=False
    )
    assert resp.status_code == 302
    location = urlparse(resp.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == "http://localhost:3000/chat"
    params = parse_qs(location.query)
    assert params["auth"] == ["success"]
    assert verify_token(params["token"][0], test_settings).user_id == USER["id"]
    assert "auth_token" in resp.headers.get("set-cookie", "")


def test_callback_invalid_state(client):
    resp = client.get(
        "/api/auth/callback", params={"code": "abc", "state": "bogus"}, follow_redirects=False
    )
    assert resp.status_code == 302
    assert "error=invalid_state" in resp.headers["location"]


def test_callback_missing_code(client, test_settings):
    state = issue_state("http://localhost:3000", test_settings)
    resp = client.get("/api/auth/callback", params={"state": state}, follow_redirects=False)
    assert resp.headers["location"] == "http://localhost:3000/login?error=no_code"


def test_callback_blocked_domain(client, services, test_settings):
    services.identity.complete_authentication = AsyncMock(
        side_effect=DomainNotAllowedError("Access denied for domain: gmail.com. Nope.")
    )
    state = issue_state("http://localhost:3000", test_settings)
    resp = client.get(
        "/api/auth/callback", params={"code": "abc", "state": state}, follow_redirects=False
    )
    assert "error=domain_not_allowed" in resp.headers["location"]


def test_logout_requires_auth(client):
    assert client.post("/api/auth/logout").status_code == 401


def test_logout(client, auth_headers):
    resp = client.post(
        "/api/auth/logout", json={"returnTo": "http://localhost:3000/bye"}, headers=auth_headers
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Logged out successfully"
    assert parse_qs(urlparse(body["logoutUrl"]).query)["returnTo"] == ["http://localhost:3000/bye"]


def test_logout_ignores_foreign_return_to(client, auth_headers):
    resp = client.post(
        "/api/auth/logout", json={"returnTo": "https://evil.example/"}, headers=auth_headers
    )
    assert parse_qs(urlparse(resp.json()["logoutUrl"]).query)["returnTo"] == [
        "http://localhost:3000/logout"
    ]


def test_auth_status(client, auth_headers):
    anonymous = client.get("/api/auth/status").json()
    assert anonymous["authenticated"] is False
    assert anonymous["domainRestrictions"]["enabled"] is False
    assert client.get("/api/auth/status", headers=auth_headers).json()["authenticated"] is True


# -- webhook ----------------------------------------------------------------

HOOK = {"X-API-Key": "hook-key"}


def test_webhook_rejects_bad_key(client):
    resp = client.post("/api/external/webhook", json={"Source": "slack", "Data": {"text": "hi"}})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid API key"


def test_webhook_slack(client, services):
    resp = client.post(
        "/api/external/webhook",
        json={"Source": "Slack", "Data": {"text": "deploy at 5pm", "user": "U1"}},
        headers=HOOK,
    )
    assert resp.status_code == 200
    args, kwargs = services.vector_search.store_message.await_args
    assert args[0] == "deploy at 5pm"
    assert kwargs["source"] == "slack"
    assert kwargs["channel"] == "knowledge-chatbot"


def test_webhook_github_skips_failed_commits(client, services):
    services.vector_search.store_message.side_effect = [
        {"id": "a"},
        ConnectionError("redis down"),
        {"id": "c"},
    ]
    payload = {
        "Source": "github",
        "Data": {
            "data": [
                {
                    "user": "ada",
                    "commits": [
                        {"message": "fix", "repo": "api", "date": "2024-01-01"},
                        {"message": "feat", "repo": "api", "date": "2024-01-02"},
                        {"message": "docs", "repo": "web", "date": "2024-01-03"},
                    ],
                }
            ]
        },
    }
    resp = client.post("/api/external/webhook", json=payload, headers=HOOK)
    assert resp.status_code == 200
    assert resp.json()["stored"] == 2


def test_webhook_missing_data(client):
    resp = client.post("/api/external/webhook", json={"Source": "slack"}, headers=HOOK)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Data missing"


def test_webhook_unknown_source(client):
    resp = client.post(
        "/api/external/webhook", json={"Source": "trello", "Data": {"x": 1}}, headers=HOOK
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unknown webhook source"


@pytest.mark.parametrize("module", [auth, chat, files, health, upload, webhook])
def test_route_modules_are_documented(module):
    assert module.__doc__ and module.__doc__.strip()
