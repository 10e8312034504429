"""Unit tests for the agentflow CLI."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from agentflow import __version__
from agentflow.api.cli.main import app
from agentflow.application.factory import OrchestratorFactory
from agentflow.config.settings import AgentflowSettings
from agentflow.core.domain.exceptions import TransportError

runner = CliRunner()

ELICITATION = {
    "type": "elicitation_request",
    "message": "Who are the target users?",
    "options": ["Consumers", "Enterprises"],
}


@pytest.fixture
def config_dir(tmp_path):
    """Empty profile directory: every command runs on default settings."""
    return str(tmp_path)


@pytest.fixture
def orchestrator(mock_gateway):
    settings = AgentflowSettings(agents_dir=None)
    return OrchestratorFactory(settings).create_orchestrator(gateway=mock_gateway)


@pytest.fixture
def run_cli(config_dir, orchestrator):
    def invoke(*args, input=None):
        with patch(
            "agentflow.api.cli.commands.run.build_orchestrator", return_value=orchestrator
        ):
            return runner.invoke(app, ["--config-dir", config_dir, *args], input=input)

    return invoke


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_agents_list(config_dir):
    result = runner.invoke(app, ["--config-dir", config_dir, "agents", "list"])

    assert result.exit_code == 0
    assert "architect" in result.stdout
    assert "Product Manager" in result.stdout


def test_commands_list(config_dir):
    result = runner.invoke(app, ["--config-dir", config_dir, "commands", "list", "pm"])

    assert result.exit_code == 0
    assert "*create-prd" in result.stdout
    assert "--template" in result.stdout


def test_commands_list_unknown_agent(config_dir):
    result = runner.invoke(app, ["--config-dir", config_dir, "commands", "list", "astronaut"])

    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_run_simple_command(run_cli, mock_gateway):
    result = run_cli("run", "dev", "run-tests")

    assert result.exit_code == 0
    assert "Done" in result.stdout
    mock_gateway.close.assert_awaited_once()


def test_run_missing_template_fails(run_cli, mock_gateway):
    result = run_cli("run", "pm", "create-prd")

    assert result.exit_code == 1
    assert "requires a template" in result.stdout
    mock_gateway.execute_command.assert_not_awaited()


def test_run_interactive_elicitation(run_cli, mock_gateway, make_envelope):
    mock_gateway.execute_command.side_effect = [
        make_envelope(ELICITATION),
        make_envelope({"type": "document_created", "artifact": {"path": "docs/prd.md"}}),
    ]

    result = run_cli("run", "pm", "create-prd", "--template", "prd-tmpl", input="Enterprises\n")

    assert result.exit_code == 0
    assert "Who are the target users?" in result.stdout
    assert "2. Enterprises" in result.stdout
    assert "Document created: docs/prd.md" in result.stdout
    continuation = mock_gateway.execute_command.call_args_list[1].args[0]
    assert continuation.context["userResponse"] == "Enterprises"


def test_run_abandon_conversation(run_cli, mock_gateway, make_envelope):
    mock_gateway.execute_command.return_value = make_envelope(ELICITATION)

    result = run_cli("run", "pm", "create-prd", "-t", "prd-tmpl", input="exit\n")

    assert result.exit_code == 0
    assert "Conversation abandoned" in result.stdout
    assert mock_gateway.execute_command.await_count == 1


def test_run_gateway_failure_exits_non_zero(run_cli, mock_gateway):
    mock_gateway.execute_command.side_effect = TransportError("HTTP 503: down", status_code=503)

    result = run_cli("run", "dev", "run-tests")

    assert result.exit_code == 1
    assert "HTTP 503: down" in result.stdout
