"""Shared fixtures: domain registries, tracker and a protocol-mocked gateway."""

from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from agentflow.application.execution_tracker import ExecutionTracker
from agentflow.core.domain.agent_catalog import AgentCatalog
from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.domain.results import GatewayResponse, decode_envelope


def envelope(
    result: Optional[dict[str, Any]] = None,
    conversation_id: Optional[str] = "conv_test",
    workflow_id: Optional[str] = None,
) -> GatewayResponse:
    """Decode a success envelope the way the HTTP gateway does."""
    body: dict[str, Any] = {"success": True, "result": result}
    if conversation_id:
        body["conversationId"] = conversation_id
    if workflow_id:
        body["workflowId"] = workflow_id
    return decode_envelope(body)


@pytest.fixture
def catalog():
    return AgentCatalog.default()


@pytest.fixture
def registry():
    return CommandRegistry()


@pytest.fixture
def tracker():
    return ExecutionTracker()


@pytest.fixture
def mock_gateway():
    """Mock CommandGatewayProtocol."""
    mock = AsyncMock()
    mock.execute_command.return_value = envelope({"message": "Done"})
    mock.list_templates.return_value = [{"id": "prd-tmpl", "name": "PRD"}]
    mock.list_files.return_value = [{"name": "prd.md", "path": "docs/prd.md"}]
    return mock


@pytest.fixture
def make_envelope():
    """Factory for decoded success envelopes."""
    return envelope
