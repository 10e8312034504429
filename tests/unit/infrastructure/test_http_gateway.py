"""
Unit tests for HttpCommandGateway.

Requests are served by httpx.MockTransport, so the full request/response
path (payload encoding, status handling, envelope decoding) runs without
a backend.
"""

import json

import httpx
import pytest

from agentflow.core.domain.exceptions import AgentExecutionError, ProtocolError, TransportError
from agentflow.core.domain.results import CommandRequest, DocumentCreated, ElicitationRequest
from agentflow.infrastructure.gateway.http_gateway import HttpCommandGateway

BASE_URL = "http://backend.test"


def make_gateway(handler) -> HttpCommandGateway:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpCommandGateway(BASE_URL, client=client)


@pytest.fixture
def request_():
    return CommandRequest(
        agent="pm",
        command="create-prd",
        context={"userPrompt": "@pm *create-prd", "template": "prd-tmpl"},
        workflow_id="wf-1",
        conversation_id="conv_1",
    )


@pytest.mark.asyncio
async def test_execute_posts_payload_and_decodes_elicitation(request_):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "conversationId": "conv_1",
                "result": {
                    "type": "elicitation_request",
                    "message": "Who are the users?",
                    "options": ["Consumers", "Enterprises"],
                },
            },
        )

    gateway = make_gateway(handler)
    response = await gateway.execute_command(request_)

    assert captured["method"] == "POST"
    assert captured["path"] == "/api/bmad/commands/execute"
    assert captured["body"]["workflowId"] == "wf-1"
    assert captured["body"]["conversationId"] == "conv_1"
    assert captured["body"]["context"]["template"] == "prd-tmpl"
    assert isinstance(response.result, ElicitationRequest)
    assert response.conversation_id == "conv_1"
    await gateway.close()


@pytest.mark.asyncio
async def test_execute_decodes_document_created(request_):
    def handler(request):
        return httpx.Response(
            200,
            json={
                "success": True,
                "workflowId": "wf-7",
                "result": {"type": "document_created", "documentPath": "docs/prd.md"},
            },
        )

    response = await make_gateway(handler).execute_command(request_)

    assert isinstance(response.result, DocumentCreated)
    assert response.result.artifact == {"path": "docs/prd.md"}
    assert response.workflow_id == "wf-7"


@pytest.mark.asyncio
async def test_http_error_status_is_transport_error(request_):
    def handler(request):
        return httpx.Response(503, json={"error": "Agent backend overloaded"})

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(handler).execute_command(request_)

    assert exc_info.value.status_code == 503
    assert "Agent backend overloaded" in str(exc_info.value)


@pytest.mark.asyncio
async def test_http_error_without_json_body(request_):
    def handler(request):
        return httpx.Response(500, text="<html>oops</html>")

    with pytest.raises(TransportError, match="HTTP 500"):
        await make_gateway(handler).execute_command(request_)


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error(request_):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="Could not reach"):
        await make_gateway(handler).execute_command(request_)


@pytest.mark.asyncio
async def test_read_timeout_is_transport_error(request_):
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(TransportError, match="timed out"):
        await make_gateway(handler).execute_command(request_)


@pytest.mark.asyncio
async def test_non_json_body_is_protocol_error(request_):
    def handler(request):
        return httpx.Response(200, text="OK")

    with pytest.raises(ProtocolError):
        await make_gateway(handler).execute_command(request_)


@pytest.mark.asyncio
async def test_failure_envelope_is_agent_execution_error(request_):
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Unknown command"})

    with pytest.raises(AgentExecutionError, match="Unknown command"):
        await make_gateway(handler).execute_command(request_)


@pytest.mark.asyncio
async def test_list_templates_and_files():
    def handler(request):
        kind = request.url.params["type"]
        assert request.url.path == "/api/bmad/commands/metadata"
        if kind == "templates":
            return httpx.Response(200, json={"templates": [{"id": "prd-tmpl"}]})
        return httpx.Response(200, json={"files": [{"name": "prd.md"}, "junk"]})

    gateway = make_gateway(handler)

    assert await gateway.list_templates() == [{"id": "prd-tmpl"}]
    assert await gateway.list_files() == [{"name": "prd.md"}]


@pytest.mark.asyncio
async def test_metadata_failures_degrade_to_empty_list():
    def handler(request):
        if request.url.params["type"] == "templates":
            return httpx.Response(500, json={"error": "boom"})
        return httpx.Response(200, json={"unexpected": True})

    gateway = make_gateway(handler)

    assert await gateway.list_templates() == []
    assert await gateway.list_files() == []


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    client = httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(lambda r: httpx.Response(200))
    )
    gateway = HttpCommandGateway(BASE_URL, client=client)

    await gateway.close()

    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_context_manager_closes_owned_client():
    async with HttpCommandGateway(BASE_URL, timeout_seconds=5.0) as gateway:
        client = gateway._client
        assert not client.is_closed

    assert client.is_closed
