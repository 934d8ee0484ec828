"""API integration tests."""

from __future__ import annotations

import base64

import fitz
import pytest
from fastapi.testclient import TestClient

from conftest import FakeGenerator
from handbook_chat.app import app
from handbook_chat.chat.service import APOLOGY_MESSAGE


ADMIN_HEADERS = {"X-Admin-Token": "s3cret"}


@pytest.fixture
def client(fake_backends: FakeGenerator) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(fake_backends: FakeGenerator, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("HBCHAT_ADMIN_TOKEN", ADMIN_HEADERS["X-Admin-Token"])
    with TestClient(app) as test_client:
        yield test_client


def _sign_in(client: TestClient, email: str = "user1@example.com"):
    return client.post("/auth/session", json={"id_token": email}, follow_redirects=False)


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_allow_listed_user_reaches_chat_surface(client: TestClient) -> None:
    resp = _sign_in(client)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert "hbchat_session" in resp.cookies

    surface = client.get("/")
    assert surface.status_code == 200
    payload = surface.json()
    assert payload["email"] == "user1@example.com"
    assert payload["document"]["name"] == "handbook.txt"
    assert payload["document"]["origin"] == "asset"
    assert payload["messages"] == []


def test_allow_list_is_case_insensitive(client: TestClient) -> None:
    resp = _sign_in(client, "user2@example.com")
    assert resp.headers["location"] == "/"


def test_stranger_is_redirected_to_login(client: TestClient) -> None:
    resp = _sign_in(client, "stranger@example.com")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"
    assert resp.headers["X-Auth-Error"]

    surface = client.get("/", follow_redirects=False)
    assert surface.status_code == 303
    assert surface.headers["location"] == "/login"


def test_invalid_token_is_redirected_to_login(client: TestClient) -> None:
    resp = _sign_in(client, "bad-token")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"


def test_login_surface(client: TestClient) -> None:
    resp = client.get("/login", follow_redirects=False)
    assert resp.status_code == 200
    assert resp.json()["login_path"] == "/login"

    _sign_in(client)
    resp = client.get("/login", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"


def test_chat_without_session_is_rejected(client: TestClient) -> None:
    resp = client.post("/chat", json={"question": "What comes first?"})
    assert resp.status_code == 401
    assert resp.json()["redirect"] == "/login"


def test_chat_flow_keeps_history(client: TestClient, fake_backends: FakeGenerator) -> None:
    _sign_in(client)

    first = client.post("/chat", json={"question": "What comes first?"})
    assert first.status_code == 200
    assert first.json()["answer"] == "Ground the aircraft first."
    assert [m["role"] for m in first.json()["messages"]] == ["user", "bot"]

    fake_backends.answer = "The supervisor."
    second = client.post("/chat", json={"question": "Who gets spill reports?"})
    assert second.status_code == 200
    assert len(second.json()["messages"]) == 4

    document, prompt = fake_backends.calls[-1]
    assert document.name == "handbook.txt"
    assert "User: What comes first?" in prompt
    assert "Assistant: Ground the aircraft first." in prompt
    assert "Question: Who gets spill reports?" in prompt

    reset = client.post("/chat/reset")
    assert reset.json()["messages"] == []
    assert client.get("/chat/messages").json()["messages"] == []


def test_empty_question_is_rejected(client: TestClient, fake_backends: FakeGenerator) -> None:
    _sign_in(client)
    resp = client.post("/chat", json={"question": "   "})
    assert resp.status_code == 422
    assert fake_backends.calls == []
    assert client.get("/chat/messages").json()["messages"] == []


def test_upstream_failure_appends_apology(client: TestClient, fake_backends: FakeGenerator) -> None:
    _sign_in(client)
    fake_backends.error = RuntimeError("quota exhausted")

    resp = client.post("/chat", json={"question": "What comes first?"})
    assert resp.status_code == 502
    assert "quota" not in resp.json()["detail"]

    messages = client.get("/chat/messages").json()["messages"]
    assert messages == [
        {"role": "user", "content": "What comes first?"},
        {"role": "bot", "content": APOLOGY_MESSAGE},
    ]


def test_uploaded_document_replaces_handbook(client: TestClient, fake_backends: FakeGenerator) -> None:
    _sign_in(client)
    client.post("/chat", json={"question": "What comes first?"})

    payload = base64.b64encode(b"Visitors sign in at reception.").decode("ascii")
    resp = client.post(
        "/chat/document",
        json={"data_uri": f"data:text/plain;base64,{payload}", "name": "visitors.txt"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"name": "visitors.txt", "mime": "text/plain", "origin": "upload", "size_bytes": 30}
    assert client.get("/chat/messages").json()["messages"] == []

    client.post("/chat", json={"question": "Where do visitors sign in?"})
    document, _ = fake_backends.calls[-1]
    assert document.origin == "upload"
    assert document.content == b"Visitors sign in at reception."


def test_malformed_upload_is_rejected(client: TestClient) -> None:
    _sign_in(client)
    resp = client.post("/chat/document", json={"data_uri": "data:text/plain,nope"})
    assert resp.status_code == 422


@pytest.mark.parametrize(
    ("mime", "content"),
    [
        ("text/plain", b"\xff\xfe\xfa not utf8"),
        ("text/markdown", b"# Title\n\n\xc3\x28"),
        ("application/pdf", b"not a pdf at all"),
    ],
)
def test_unreadable_upload_never_reaches_model(
    client: TestClient, fake_backends: FakeGenerator, mime: str, content: bytes
) -> None:
    _sign_in(client)
    payload = base64.b64encode(content).decode("ascii")
    resp = client.post("/chat/document", json={"data_uri": f"data:{mime};base64,{payload}"})
    assert resp.status_code == 422

    client.post("/chat", json={"question": "What is this?"})
    document, _ = fake_backends.calls[-1]
    assert document.origin == "asset"
    assert document.name == "handbook.txt"


def test_pdf_upload_is_accepted(client: TestClient, fake_backends: FakeGenerator) -> None:
    pdf = fitz.open()
    pdf.new_page().insert_text((72, 72), "Visitors sign in at reception.")
    content = pdf.tobytes()
    pdf.close()

    _sign_in(client)
    payload = base64.b64encode(content).decode("ascii")
    resp = client.post("/chat/document", json={"data_uri": f"data:application/pdf;base64,{payload}"})
    assert resp.status_code == 200

    client.post("/chat", json={"question": "Where do visitors sign in?"})
    document, prompt = fake_backends.calls[-1]
    assert document.mime == "application/pdf"
    assert "content of a PDF document" in prompt


def test_rebuild_and_stats(admin_client: TestClient) -> None:
    rebuild = admin_client.post("/index/rebuild", headers=ADMIN_HEADERS)
    assert rebuild.status_code == 200
    result = rebuild.json()
    assert result["collection"] == "handbook_embeddings"
    assert result["chunks"] > 0
    assert result["model"] == "hashed"

    stats = admin_client.get("/index/stats", headers=ADMIN_HEADERS).json()
    assert stats["entries"] == result["chunks"]
    assert stats["dim"] == result["dim"]
    assert stats["used_for_answers"] is False

    again = admin_client.post("/index/rebuild", headers=ADMIN_HEADERS).json()
    assert admin_client.get("/index/stats", headers=ADMIN_HEADERS).json()["entries"] == again["chunks"]


def test_rebuild_missing_path_is_not_found(admin_client: TestClient) -> None:
    resp = admin_client.post("/index/rebuild", json={"path": "/nonexistent/handbook.txt"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


def test_index_routes_closed_without_configured_token(client: TestClient, tmp_path) -> None:
    secret = tmp_path / "secret.txt"
    secret.write_text("Nobody should index this.", encoding="utf-8")

    assert client.post("/index/rebuild", json={"path": str(secret)}).status_code == 403
    assert client.post("/index/rebuild", headers={"X-Admin-Token": ""}).status_code == 403
    assert client.get("/index/stats").status_code == 403

    _sign_in(client)
    assert client.post("/index/rebuild").status_code == 403


def test_admin_token_guards_index_routes(admin_client: TestClient) -> None:
    assert admin_client.post("/index/rebuild").status_code == 403
    assert admin_client.post("/index/rebuild", headers={"X-Admin-Token": "wrong"}).status_code == 403
    assert admin_client.get("/index/stats").status_code == 403
    assert admin_client.post("/index/rebuild", headers=ADMIN_HEADERS).status_code == 200


def test_metrics_endpoint(client: TestClient) -> None:
    _sign_in(client)
    client.post("/chat", json={"question": "What comes first?"})
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "hbchat_chat_requests_total" in resp.text


def test_logout_ends_session(client: TestClient) -> None:
    _sign_in(client)
    resp = client.post("/auth/logout", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"

    client.cookies.clear()
    surface = client.get("/", follow_redirects=False)
    assert surface.status_code == 303
