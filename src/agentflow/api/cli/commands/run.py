"""Run command - Execute an agent command with interactive elicitation."""

import asyncio
from typing import Optional

import typer
from rich.prompt import Prompt

from agentflow.api.cli.context import build_orchestrator
from agentflow.api.cli.output import AgentflowConsole, configure_logging
from agentflow.application.conversation import ConversationController
from agentflow.application.factory import OrchestratorFactory
from agentflow.core.domain.exceptions import OrchestrationError, ValidationError
from agentflow.core.domain.models import ExecutionOutcome, WorkflowStarted
from agentflow.core.domain.results import DocumentCreated, ElicitationRequest

ABANDON_WORDS = frozenset({"exit", "quit", ":q"})


def run_command(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent id, e.g. pm"),
    command_id: str = typer.Argument(..., help="Command id, e.g. create-prd"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help="Template id"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Source file/document"),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Free-text prompt"),
    workflow_id: Optional[str] = typer.Option(None, "--workflow", "-w", help="Workflow id"),
    debug: Optional[bool] = typer.Option(
        None, "--debug", help="Enable debug output (overrides global --debug)"
    ),
):
    """Execute an agent command.

    When the agent asks for input, the CLI prompts for it until the agent
    finishes. Type "exit" to abandon the conversation.

    Examples:
        # Create a PRD from a template
        agentflow run pm create-prd --template prd-tmpl

        # Shard an existing PRD
        agentflow run pm shard-prd --file docs/prd.md
    """
    global_opts = ctx.obj or {}
    debug = debug if debug is not None else global_opts.get("debug", False)
    configure_logging(debug)

    af_console = AgentflowConsole(debug=debug)
    orchestrator = build_orchestrator(ctx)

    def on_document_created(result: DocumentCreated) -> None:
        path = result.artifact.get("path") or result.artifact.get("name") or "document"
        af_console.print_success(f"Document created: {path}")

    def on_workflow_start(event: WorkflowStarted) -> None:
        af_console.print_info(f"Workflow started: {event.workflow_id}")

    controller = OrchestratorFactory(orchestrator.settings).create_controller(
        orchestrator,
        workflow_id=workflow_id,
        on_document_created=on_document_created,
        on_workflow_start=on_workflow_start,
    )

    parameters = {"template": template, "file": file, "context": context}

    async def _main() -> Optional[ExecutionOutcome]:
        try:
            return await _run_conversation(
                controller, af_console, agent_id, command_id, parameters
            )
        finally:
            await orchestrator.close()

    try:
        outcome = asyncio.run(_main())
    except OrchestrationError as e:
        af_console.print_error(str(e))
        raise typer.Exit(1)

    if outcome is None:
        af_console.print_info("Conversation abandoned")
        raise typer.Exit(0)
    if not outcome.succeeded:
        af_console.print_error(f"Command failed: {outcome.error}")
        raise typer.Exit(1)

    af_console.print_debug(f"Conversation: {outcome.conversation_id}")


async def _run_conversation(
    controller: ConversationController,
    af_console: AgentflowConsole,
    agent_id: str,
    command_id: str,
    parameters: dict,
) -> Optional[ExecutionOutcome]:
    agent = controller.catalog.get(agent_id)
    af_console.print_banner(agent, command_id.lstrip("*"))

    outcome = await controller.execute(agent_id, command_id, parameters)
    _show(af_console, controller, outcome)

    while outcome.awaiting_input:
        answer = Prompt.ask("[bold]Your response[/bold]", console=af_console.console)
        if answer.strip().lower() in ABANDON_WORDS:
            controller.start_new_conversation()
            return None
        try:
            outcome = await controller.continue_conversation(answer)
        except ValidationError as e:
            af_console.print_error(str(e))
            continue
        _show(af_console, controller, outcome)

    return outcome


def _show(
    af_console: AgentflowConsole, controller: ConversationController, outcome: ExecutionOutcome
) -> None:
    if outcome.result is None:
        return
    agent = controller.conversation.agent
    options = outcome.result.options if isinstance(outcome.result, ElicitationRequest) else ()
    af_console.print_agent_message(agent, outcome.result.message, options)
