"""
Unit tests for the HTTP API.

The app is built around an orchestrator whose gateway is a protocol mock,
so every route runs end-to-end through sessions, controller and tracker.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from agentflow.api.dependencies import to_http_exception
from agentflow.api.server import create_app
from agentflow.application.factory import OrchestratorFactory
from agentflow.config.settings import AgentflowSettings
from agentflow.core.domain.exceptions import (
    ExecutionInProgressError,
    NotFoundError,
    TransportError,
    ValidationError,
)

ELICITATION = {
    "type": "elicitation_request",
    "message": "Who are the target users?",
    "options": ["Consumers", "Enterprises"],
}


@pytest.fixture
def orchestrator(tmp_path, mock_gateway):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "prd-tmpl.yaml").write_text("metadata:\n  title: PRD\n", encoding="utf-8")
    settings = AgentflowSettings(
        agents_dir=None, templates_dir=str(templates), docs_dir=str(tmp_path / "docs")
    )
    return OrchestratorFactory(settings).create_orchestrator(gateway=mock_gateway)


@pytest.fixture
def client(orchestrator):
    with TestClient(create_app(orchestrator=orchestrator)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["agents"] == 9


def test_list_agents(client):
    response = client.get("/api/v1/agents")

    assert response.status_code == 200
    agents = {a["id"]: a for a in response.json()["agents"]}
    create_prd = next(c for c in agents["pm"]["commands"] if c["id"] == "create-prd")
    assert create_prd["requires_template"] is True


def test_command_metadata(client):
    templates = client.get("/api/v1/commands/metadata", params={"type": "templates"}).json()
    files = client.get("/api/v1/commands/metadata", params={"type": "files"}).json()
    commands = client.get("/api/v1/commands/metadata").json()

    assert templates["templates"][0]["id"] == "prd-tmpl"
    assert templates["templates"][0]["name"] == "PRD"
    assert files == {"files": []}
    assert "dev" in commands["commands"]


def test_missing_template_is_bad_request(client, mock_gateway):
    response = client.post(
        "/api/v1/workflows/wf-1/commands", json={"agent": "pm", "command": "create-prd"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "template" in response.json()["detail"]
    mock_gateway.execute_command.assert_not_awaited()


def test_elicitation_round_trip(client, mock_gateway, make_envelope):
    mock_gateway.execute_command.side_effect = [
        make_envelope(ELICITATION, conversation_id="conv_1"),
        make_envelope(
            {"type": "document_created", "artifact": {"path": "docs/prd.md"}},
            conversation_id="conv_1",
        ),
    ]

    started = client.post(
        "/api/v1/workflows/wf-1/commands",
        json={
            "agent": "pm",
            "command": "create-prd",
            "template": "prd-tmpl",
            "declared_agents": ["pm", "architect"],
        },
    )
    assert started.status_code == 200
    body = started.json()
    assert body["status"] == "waiting_for_input"
    assert [o["text"] for o in body["result"]["options"]] == ["Consumers", "Enterprises"]

    conversation = client.get("/api/v1/workflows/wf-1/conversation").json()
    assert conversation["prompt"]["agent"] == "pm"
    assert conversation["conversation_id"] == "conv_1"

    agents = client.get("/api/v1/workflows/wf-1/agents").json()["agents"]
    assert [(a["id"], a["order"], a["is_active"]) for a in agents] == [
        ("pm", 1, True),
        ("architect", 2, False),
    ]

    answered = client.post("/api/v1/workflows/wf-1/respond", json={"response": "Enterprises"})
    assert answered.status_code == 200
    assert answered.json()["status"] == "completed"
    assert answered.json()["result"]["artifacts"] == [{"path": "docs/prd.md"}]

    conversation = client.get("/api/v1/workflows/wf-1/conversation").json()
    assert conversation["prompt"] is None
    assert conversation["completed"] is True
    assert [m["role"] for m in conversation["messages"]] == ["assistant", "user", "assistant"]

    executions = client.get("/api/v1/workflows/wf-1/executions").json()
    assert executions["active_agents"] == []
    assert executions["records"][0]["status"] == "completed"
    assert len(executions["history"]) == 2
    assert executions["history"][0]["command_id"] == "continue-conversation"


def test_respond_without_prompt_is_bad_request(client):
    client.post("/api/v1/workflows/wf-1/commands", json={"agent": "dev", "command": "run-tests"})

    response = client.post("/api/v1/workflows/wf-1/respond", json={"response": "yes"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_unknown_workflow_is_not_found(client):
    assert client.post("/api/v1/workflows/nope/respond", json={"response": "x"}).status_code == 404
    assert client.get("/api/v1/workflows/nope/conversation").status_code == 404
    assert client.get("/api/v1/workflows/nope/agents").status_code == 404
    assert client.delete("/api/v1/workflows/nope").status_code == 404


def test_gateway_failure_reported_in_body(client, mock_gateway):
    mock_gateway.execute_command.side_effect = TransportError("HTTP 503: down", status_code=503)

    response = client.post(
        "/api/v1/workflows/wf-1/commands", json={"agent": "dev", "command": "run-tests"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "error"
    assert response.json()["error"] == "HTTP 503: down"


def test_observed_agents_follow_declared(client):
    client.post("/api/v1/workflows/wf-1/commands", json={"agent": "qa", "command": "help"})

    agents = client.get(
        "/api/v1/workflows/wf-1/agents", params={"declared": "pm,architect,dev"}
    ).json()["agents"]

    assert [a["id"] for a in agents] == ["pm", "architect", "dev", "qa"]
    assert agents[-1]["order"] is None
    assert agents[-1]["workflow_status"] == "additional"


def test_handoff_lifecycle(client):
    client.post("/api/v1/workflows/wf-1/commands", json={"agent": "pm", "command": "help"})

    created = client.post(
        "/api/v1/workflows/wf-1/handoffs",
        json={"from_agent": "pm", "to_agent": "architect", "payload": {"document": "docs/prd.md"}},
    )
    assert created.status_code == status.HTTP_201_CREATED
    handoff = created.json()
    assert handoff["status"] == "pending"

    agents = client.get("/api/v1/workflows/wf-1/agents", params={"declared": "pm,architect"}).json()
    assert {a["id"]: a["eligible"] for a in agents["agents"]} == {"pm": True, "architect": False}

    blocked = client.post(
        "/api/v1/workflows/wf-1/commands", json={"agent": "architect", "command": "help"}
    )
    assert blocked.status_code == status.HTTP_400_BAD_REQUEST
    assert "pending handoff" in blocked.json()["detail"]

    completed = client.post(f"/api/v1/handoffs/{handoff['id']}/complete")
    assert completed.status_code == 200
    assert completed.json()["completed_at"] is not None

    unblocked = client.post(
        "/api/v1/workflows/wf-1/commands", json={"agent": "architect", "command": "help"}
    )
    assert unblocked.json()["status"] == "completed"

    again = client.post(f"/api/v1/handoffs/{handoff['id']}/complete")
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_invalid_handoff_is_bad_request(client):
    response = client.post(
        "/api/v1/workflows/wf-1/handoffs", json={"from_agent": "", "to_agent": "architect"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_reset_and_delete_workflow(client, mock_gateway, make_envelope, orchestrator):
    mock_gateway.execute_command.return_value = make_envelope(ELICITATION)
    client.post(
        "/api/v1/workflows/wf-1/commands",
        json={"agent": "pm", "command": "create-prd", "template": "prd-tmpl"},
    )

    assert client.post("/api/v1/workflows/wf-1/conversation/reset").status_code == 204
    assert client.get("/api/v1/workflows/wf-1/conversation").json()["prompt"] is None

    assert client.delete("/api/v1/workflows/wf-1").status_code == 204
    assert client.get("/api/v1/workflows/wf-1/conversation").status_code == 404
    assert orchestrator.tracker.records_for("wf-1") == {}


@pytest.mark.parametrize(
    "error, expected",
    [
        (ValidationError("bad"), 400),
        (NotFoundError("missing"), 404),
        (ExecutionInProgressError("busy"), 409),
        (TransportError("down"), 502),
    ],
)
def test_error_translation(error, expected):
    assert to_http_exception(error).status_code == expected
