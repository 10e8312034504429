"""
Application Layer - Conversation Controller

Orchestrates command execution against the agent backend for one user
dialogue:

1. Validate agent, command and required parameters (no network on failure)
2. Submit the command through the gateway under a bounded timeout
3. Route the typed result:
   - ElicitationRequest: open the prompt, wait for the user
   - DocumentCreated: record the artifact, notify, finish
   - AgentResponse: record the output, finish
4. Record status transitions in the ExecutionTracker and every invocation
   in a bounded execution history

Failures (transport, protocol, agent errors) never leave the conversation
waiting or the agent active: the record goes to ``error``, the prompt is
cleared and the caller gets an error outcome.
"""

import asyncio
import time
import uuid
from collections import deque
from typing import Any, Callable, Optional

import structlog

from agentflow.application.execution_tracker import ExecutionTracker
from agentflow.application.handoff_manager import HandoffManager
from agentflow.core.domain.agent_catalog import AgentCatalog
from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.domain.exceptions import (
    AgentExecutionError,
    ExecutionInProgressError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from agentflow.core.domain.models import (
    AgentDefinition,
    CommandDefinition,
    CommandResources,
    ConversationMessage,
    ConversationState,
    ElicitationPrompt,
    ExecutionHistoryEntry,
    ExecutionOutcome,
    ExecutionStatus,
    MessageRole,
    WorkflowStarted,
    utc_now,
)
from agentflow.core.domain.results import (
    CONTINUE_CONVERSATION_COMMAND,
    AgentResponse,
    CommandRequest,
    CommandResult,
    DocumentCreated,
    ElicitationRequest,
    GatewayResponse,
)
from agentflow.core.interfaces.gateway import CommandGatewayProtocol

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_HISTORY_SIZE = 10

# Records of controllers that are not bound to a workflow yet are tracked
# under this workflow id.
STANDALONE_WORKFLOW_ID = "standalone"

_RECOVERABLE_ERRORS = (TransportError, ProtocolError, AgentExecutionError)


def generate_conversation_id() -> str:
    return f"conv_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ConversationController:
    """
    Drives one dialogue between a user and the agents of a workflow.

    The controller runs at most one gateway call at a time; callers check
    ``is_executing`` before submitting, and a concurrent submission is
    rejected with ExecutionInProgressError.

    Example:
        >>> controller = ConversationController(gateway, catalog, registry, tracker)
        >>> outcome = await controller.execute("pm", "create-prd", {"template": "prd-tmpl"})
        >>> if outcome.awaiting_input:
        ...     outcome = await controller.continue_conversation("Enterprises")
    """

    def __init__(
        self,
        gateway: CommandGatewayProtocol,
        catalog: AgentCatalog,
        registry: CommandRegistry,
        tracker: ExecutionTracker,
        workflow_id: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        history_size: int = DEFAULT_HISTORY_SIZE,
        on_document_created: Optional[Callable[[DocumentCreated], None]] = None,
        on_workflow_start: Optional[Callable[[WorkflowStarted], None]] = None,
        handoffs: Optional[HandoffManager] = None,
    ):
        """
        Initialize the controller with its collaborators.

        Args:
            gateway: Command gateway to the agent backend
            catalog: Agent catalog used for validation
            registry: Command registry used for requirement checks
            tracker: Shared execution tracker
            workflow_id: Workflow this controller works in, if already known
            timeout_seconds: Upper bound of a single gateway call
            history_size: Number of invocations kept in the execution history
            on_document_created: Called once per document_created result
            on_workflow_start: Called when the backend starts a new workflow
            handoffs: Handoff manager; agents waiting on a pending handoff
                are rejected
        """
        self.gateway = gateway
        self.catalog = catalog
        self.registry = registry
        self.tracker = tracker
        self.workflow_id = workflow_id
        self.timeout_seconds = timeout_seconds
        self.on_document_created = on_document_created
        self.on_workflow_start = on_workflow_start
        self.handoffs = handoffs

        self.conversation_id: str | None = None
        self.conversation: ConversationState | None = None
        self.elicitation_prompt: ElicitationPrompt | None = None
        self.is_executing = False
        self._history: deque[ExecutionHistoryEntry] = deque(maxlen=history_size)

        self.logger = logger.bind(component="conversation_controller")

    @property
    def execution_history(self) -> list[ExecutionHistoryEntry]:
        """Invocations, newest first."""
        return list(self._history)

    @property
    def tracking_workflow_id(self) -> str:
        return self.workflow_id or STANDALONE_WORKFLOW_ID

    async def execute(
        self,
        agent_id: str,
        command_id: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> ExecutionOutcome:
        """
        Execute a command of an agent.

        Args:
            agent_id: Agent from the catalog
            command_id: One of the agent's commands
            parameters: template, file, context (free-text prompt) and any
                extra parameters forwarded to the agent

        Returns:
            ExecutionOutcome: waiting_for_input, completed or error

        Raises:
            ValidationError: Unknown agent/command or missing required parameter
            ExecutionInProgressError: A call is already outstanding
        """
        self._ensure_idle()
        parameters = dict(parameters or {})
        agent, command = self._validate(agent_id, command_id, parameters)
        self._discard_prompt()

        if self.conversation_id is None:
            self.conversation_id = generate_conversation_id()

        request = CommandRequest(
            agent=agent.id,
            command=command.id,
            context=self._build_context(agent, command, parameters),
            workflow_id=self.workflow_id,
            conversation_id=self.conversation_id,
        )
        return await self._submit(request, agent, command, user_response=None)

    async def continue_conversation(self, user_response: str) -> ExecutionOutcome:
        """
        Answer the open elicitation prompt.

        Raises:
            ValidationError: No prompt is open, or the response is blank
            ExecutionInProgressError: A call is already outstanding
        """
        self._ensure_idle()
        prompt = self.elicitation_prompt
        if prompt is None:
            raise ValidationError("No elicitation prompt is awaiting a response")

        response_text = (user_response or "").strip()
        if not response_text:
            raise ValidationError("Response must not be empty")

        request = CommandRequest(
            agent=prompt.agent.id,
            command=CONTINUE_CONVERSATION_COMMAND,
            context={
                "userResponse": response_text,
                "conversationId": prompt.conversation_id,
            },
            workflow_id=self.workflow_id,
            conversation_id=prompt.conversation_id,
        )
        return await self._submit(request, prompt.agent, prompt.command, user_response=response_text)

    def start_new_conversation(self) -> None:
        """
        Drop the prompt, the conversation and its id. History is kept.

        An agent left waiting on the dropped prompt goes back to ``pending``.
        """
        self._discard_prompt()
        self.conversation = None
        self.conversation_id = None
        self.logger.debug("conversation.reset", workflow_id=self.workflow_id)

    async def fetch_command_resources(self) -> CommandResources:
        """Templates and documents available as command parameters.

        A failing metadata query yields an empty list.
        """
        templates, files = await asyncio.gather(
            self.gateway.list_templates(), self.gateway.list_files(), return_exceptions=True
        )
        return CommandResources(
            templates=self._resource_list("templates", templates),
            files=self._resource_list("files", files),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self.is_executing:
            raise ExecutionInProgressError(
                f"Conversation '{self.conversation_id}' already has a command outstanding"
            )

    def _validate(
        self, agent_id: str, command_id: str, parameters: dict[str, Any]
    ) -> tuple[AgentDefinition, CommandDefinition]:
        agent = self.catalog.find(agent_id)
        if agent is None:
            raise ValidationError(f"Agent '{agent_id}' not found")

        command = self.registry.get(command_id)
        if not agent.supports(command.id):
            raise ValidationError(
                f"Command '{command.id}' not available for agent '{agent.id}'"
            )

        self.registry.validate_parameters(command, parameters)

        if (
            self.handoffs is not None
            and self.workflow_id is not None
            and not self.handoffs.is_eligible(agent.id, self.workflow_id)
        ):
            raise ValidationError(
                f"Agent '{agent.id}' is waiting on a pending handoff in workflow "
                f"'{self.workflow_id}'"
            )
        return agent, command

    def _discard_prompt(self) -> None:
        prompt = self.elicitation_prompt
        if prompt is None:
            return

        self.elicitation_prompt = None
        record = self.tracker.get_record(self.tracking_workflow_id, prompt.agent.id)
        if record is not None and record.status == ExecutionStatus.WAITING_FOR_INPUT:
            self.tracker.set_status(
                self.tracking_workflow_id, prompt.agent.id, ExecutionStatus.PENDING
            )
        self.logger.info(
            "conversation.prompt.discarded",
            agent=prompt.agent.id,
            workflow_id=self.tracking_workflow_id,
            conversation_id=prompt.conversation_id,
        )

    def _resource_list(self, kind: str, result: Any) -> list[dict[str, Any]]:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            self.logger.warning(
                "command.resources.failed",
                kind=kind,
                error=str(result),
                error_type=type(result).__name__,
            )
            return []
        return result

    @staticmethod
    def _build_context(
        agent: AgentDefinition, command: CommandDefinition, parameters: dict[str, Any]
    ) -> dict[str, Any]:
        context = {
            key: value
            for key, value in parameters.items()
            if key != "context" and value is not None
        }
        context["userPrompt"] = (
            parameters.get("userPrompt")
            or parameters.get("context")
            or f"@{agent.id} *{command.id}"
        )
        return context

    async def _submit(
        self,
        request: CommandRequest,
        agent: AgentDefinition,
        command: CommandDefinition,
        user_response: str | None,
    ) -> ExecutionOutcome:
        self.is_executing = True
        try:
            return await self._run(request, agent, command, user_response)
        finally:
            self.is_executing = False

    async def _run(
        self,
        request: CommandRequest,
        agent: AgentDefinition,
        command: CommandDefinition,
        user_response: str | None,
    ) -> ExecutionOutcome:
        workflow_id = self.tracking_workflow_id
        started = time.monotonic()
        self.tracker.set_status(workflow_id, agent.id, ExecutionStatus.ACTIVE)

        self.logger.info(
            "command.execution.started",
            agent=agent.id,
            command=request.command,
            workflow_id=workflow_id,
            conversation_id=request.conversation_id,
        )

        try:
            response = await self._call_gateway(request)
        except _RECOVERABLE_ERRORS as e:
            return self._fail(workflow_id, agent, command, request, e, started)
        except Exception as e:
            self._fail(workflow_id, agent, command, request, e, started)
            raise

        elapsed_ms = self._elapsed_ms(started)
        conversation_id = response.conversation_id or request.conversation_id
        self.conversation_id = conversation_id

        self._history.appendleft(
            ExecutionHistoryEntry(
                id=f"exec_{uuid.uuid4().hex[:12]}",
                agent_id=agent.id,
                command_id=request.command,
                success=True,
                executed_at=utc_now(),
                elapsed_ms=elapsed_ms,
                conversation_id=conversation_id,
                result=response.result,
            )
        )

        if user_response is None:
            self.conversation = ConversationState(
                conversation_id=conversation_id, agent=agent, command=command
            )
        else:
            self._append_message(
                agent, command, conversation_id, MessageRole.USER, user_response
            )

        status = self._route_result(workflow_id, agent, command, conversation_id, response.result)

        self.logger.info(
            "command.execution.completed",
            agent=agent.id,
            command=request.command,
            workflow_id=workflow_id,
            result_type=response.result.type.value,
            status=status.value,
            duration_ms=elapsed_ms,
        )

        self._announce_workflow(response, agent, command)

        return ExecutionOutcome(
            status=status,
            conversation_id=conversation_id,
            result=response.result,
            elapsed_ms=elapsed_ms,
        )

    async def _call_gateway(self, request: CommandRequest) -> GatewayResponse:
        try:
            return await asyncio.wait_for(
                self.gateway.execute_command(request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise TransportError(
                f"Command '{request.command}' timed out after {self.timeout_seconds:g}s"
            )

    def _route_result(
        self,
        workflow_id: str,
        agent: AgentDefinition,
        command: CommandDefinition,
        conversation_id: str,
        result: CommandResult,
    ) -> ExecutionStatus:
        if isinstance(result, ElicitationRequest):
            self.elicitation_prompt = ElicitationPrompt(
                agent=agent,
                command=command,
                message=result.message,
                conversation_id=conversation_id,
                options=result.options,
            )
            self._append_message(
                agent, command, conversation_id, MessageRole.ASSISTANT,
                result.message, options=result.options,
            )
            self.tracker.set_status(workflow_id, agent.id, ExecutionStatus.WAITING_FOR_INPUT)
            return ExecutionStatus.WAITING_FOR_INPUT

        self.elicitation_prompt = None

        if isinstance(result, DocumentCreated):
            self.tracker.record_artifact(workflow_id, agent.id, result.artifact)
        elif isinstance(result, AgentResponse):
            for artifact in result.artifacts:
                self.tracker.record_artifact(workflow_id, agent.id, artifact)

        self.tracker.record_output(workflow_id, agent.id, result.message)
        self._append_message(
            agent, command, conversation_id, MessageRole.ASSISTANT, result.message
        )
        self.conversation.completed = True
        self.conversation.result = result
        self.tracker.set_status(workflow_id, agent.id, ExecutionStatus.COMPLETED)

        if isinstance(result, DocumentCreated) and self.on_document_created:
            self.on_document_created(result)

        return ExecutionStatus.COMPLETED

    def _append_message(
        self,
        agent: AgentDefinition,
        command: CommandDefinition,
        conversation_id: str,
        role: MessageRole,
        content: str,
        options: tuple = (),
    ) -> None:
        if self.conversation is None:
            self.conversation = ConversationState(
                conversation_id=conversation_id, agent=agent, command=command
            )
        self.conversation.messages.append(
            ConversationMessage(role=role, content=content, options=options)
        )

    def _announce_workflow(
        self, response: GatewayResponse, agent: AgentDefinition, command: CommandDefinition
    ) -> None:
        if not response.workflow_id or self.workflow_id is not None:
            return

        self.tracker.move_record(agent.id, STANDALONE_WORKFLOW_ID, response.workflow_id)
        self.workflow_id = response.workflow_id
        self.logger.info(
            "workflow.started", workflow_id=response.workflow_id, agent=agent.id, command=command.id
        )
        if self.on_workflow_start:
            self.on_workflow_start(
                WorkflowStarted(workflow_id=response.workflow_id, agent=agent, command=command)
            )

    def _fail(
        self,
        workflow_id: str,
        agent: AgentDefinition,
        command: CommandDefinition,
        request: CommandRequest,
        error: Exception,
        started: float,
    ) -> ExecutionOutcome:
        elapsed_ms = self._elapsed_ms(started)
        message = str(error) or type(error).__name__

        self.tracker.record_error(
            workflow_id, agent.id, message,
            command_id=command.id, error_type=type(error).__name__,
        )
        self.tracker.set_status(workflow_id, agent.id, ExecutionStatus.ERROR)
        self.elicitation_prompt = None

        self._history.appendleft(
            ExecutionHistoryEntry(
                id=f"exec_{uuid.uuid4().hex[:12]}",
                agent_id=agent.id,
                command_id=request.command,
                success=False,
                executed_at=utc_now(),
                elapsed_ms=elapsed_ms,
                conversation_id=request.conversation_id,
                error=message,
            )
        )

        self.logger.error(
            "command.execution.failed",
            agent=agent.id,
            command=request.command,
            workflow_id=workflow_id,
            error=message,
            error_type=type(error).__name__,
            duration_ms=elapsed_ms,
        )

        return ExecutionOutcome(
            status=ExecutionStatus.ERROR,
            conversation_id=request.conversation_id,
            error=message,
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
