"""Tests for the FastAPI routes."""

from __future__ import annotations

import json
from typing import Any, Dict

import pytest
from fake_retool import FakeRetool, FakeWorkspace, agent, make_settings
from fastapi.testclient import TestClient

from retool2api.app import create_app

AUTH = {"Authorization": "Bearer sk-test"}


@pytest.fixture()
def backend() -> FakeRetool:
    return FakeRetool(
        {
            "a.retool.com": FakeWorkspace(
                agents=[agent("ag-a", "claude-sonnet-4-20250514", "Sonnet"), agent("ag-g", "gpt-4o-mini-2024")],
                reply="Hello world",
            ),
            "b.retool.com": FakeWorkspace(agents=[agent("ag-b", "claude-sonnet-4-20250601")], reply="from b"),
        }
    )


@pytest.fixture()
def client(backend: FakeRetool):
    app = create_app(make_settings(*backend.workspaces), session_factory=backend.session_factory)
    with TestClient(app) as test_client:
        yield test_client


def _chat(client: TestClient, **overrides: Any):
    payload: Dict[str, Any] = {
        "model": "claude-sonnet-4",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }
    payload.update(overrides)
    return client.post("/v1/chat/completions", headers=AUTH, json=payload)


def test_models_endpoint_lists_families(client) -> None:
    response = client.get("/models")
    assert response.status_code == 200
    data = response.json()
    assert data["object"] == "list"
    assert [m["id"] for m in data["data"]] == ["claude-sonnet-4", "gpt-4o-mini"]
    first = data["data"][0]
    assert first["object"] == "model"
    assert first["owned_by"] == "anthropic"
    assert first["name"] == "Sonnet (claude-sonnet-4-20250514)"
    assert data["data"][1]["owned_by"] == "openai"


def test_v1_models_requires_auth(client) -> None:
    assert client.get("/v1/models").status_code == 401
    assert client.get("/v1/models", headers={"Authorization": "Bearer nope"}).status_code == 403
    assert client.get("/v1/models", headers=AUTH).status_code == 200


def test_chat_completion_non_stream(client, backend) -> None:
    response = _chat(client)

    assert response.status_code == 200
    body = response.json()
    assert body["object"] == "chat.completion"
    assert body["model"] == "claude-sonnet-4"
    assert body["choices"][0]["message"] == {"role": "assistant", "content": "Hello world"}
    assert body["choices"][0]["finish_reason"] == "stop"
    assert body["usage"]["total_tokens"] == 0
    sent = [payload for _, operation, payload in backend.calls if operation == "message_send"]
    assert sent[0]["text"] == "Human: hi"


def test_chat_completion_stream(client) -> None:
    with client.stream("POST", "/v1/chat/completions", headers=AUTH, json={
        "model": "claude-sonnet-4",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": True,
    }) as response:
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        body = "".join(response.iter_text())

    frames = [frame[len("data: "):] for frame in body.split("\n\n") if frame]
    assert frames[-1] == "[DONE]"
    deltas = [json.loads(frame)["choices"][0]["delta"] for frame in frames[:-1]]
    assert deltas[0] == {"role": "assistant"}
    assert [d["content"] for d in deltas[1:-1]] == ["Hello", " worl", "d"]


def test_chat_completion_fails_over(client, backend) -> None:
    backend.workspaces["a.retool.com"].failures = {"thread_create": 500}

    response = _chat(client)

    assert response.status_code == 200
    assert response.json()["choices"][0]["message"]["content"] == "from b"


def test_chat_completion_exhaustion_reports_attempts(client, backend) -> None:
    backend.workspaces["a.retool.com"].failures = {"thread_create": 401}
    backend.workspaces["b.retool.com"].failures = {"message_send": 500}

    response = _chat(client)

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["message"] == "All Retool accounts failed"
    assert error["type"] == "upstream_error"
    assert error["attempts"] == 2
    assert [(d["account"], d["operation"], d["statusCode"]) for d in error["details"]] == [
        ("a.retool.com", "thread_create", 401),
        ("b.retool.com", "message_send", 500),
    ]
    assert all("timestamp" in d and d["message"] for d in error["details"])

    # a.retool.com is now disabled, b.retool.com is retried alone
    retry = _chat(client)
    assert retry.json()["error"]["attempts"] == 1


def test_chat_completion_stream_exhaustion_is_generic(client, backend) -> None:
    for workspace in backend.workspaces.values():
        workspace.failures = {"message_get": 500}

    response = _chat(client, stream=True)

    assert response.status_code == 200
    frames = [frame[len("data: "):] for frame in response.text.split("\n\n") if frame]
    assert json.loads(frames[0]) == {"error": {"message": "all retool attempts failed", "code": 503}}
    assert frames[1:] == ["[DONE]"]


def test_chat_completion_unknown_model(client, backend) -> None:
    response = _chat(client, model="non-existent-model")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()
    assert all(operation == "agent_query" for _, operation, _ in backend.calls)


def test_chat_completion_missing_messages(client) -> None:
    assert _chat(client, messages=[]).status_code == 400


def test_chat_completion_malformed_body(client) -> None:
    response = client.post("/v1/chat/completions", headers=AUTH, json={"messages": "hi"})
    assert response.status_code == 422


def test_chat_completion_requires_auth(client) -> None:
    response = client.post("/v1/chat/completions", json={"model": "claude-sonnet-4", "messages": []})
    assert response.status_code == 401


def test_debug_toggle(client) -> None:
    assert client.get("/debug", headers=AUTH).json() == {"debug_mode": False}
    assert client.get("/debug?enable=true", headers=AUTH).json() == {"debug_mode": True}
    assert client.get("/debug?enable=false", headers=AUTH).json() == {"debug_mode": False}
    assert client.get("/debug?enable=true").status_code == 401
