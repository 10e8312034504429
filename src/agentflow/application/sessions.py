"""
Application Layer - Workflow Sessions

In-memory store of workflow sessions. A session bundles everything one
workflow needs across requests:

- a ConversationController bound to the workflow id
- a WorkflowAgentResolver (it remembers the active agent between calls)
- the workflow message log the resolver derives activity from
- the declared agent sequence, if the caller supplied one
- documents created during the workflow

The tracker and the handoff manager are shared by all sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

import structlog

from agentflow.application.conversation import ConversationController
from agentflow.application.execution_tracker import ExecutionTracker
from agentflow.application.handoff_manager import HandoffManager
from agentflow.core.domain.agent_catalog import AgentCatalog
from agentflow.core.domain.agent_resolver import WorkflowAgentResolver
from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.domain.exceptions import NotFoundError
from agentflow.core.domain.models import (
    ExecutionOutcome,
    ResolvedAgentView,
    WorkflowMessage,
    utc_now,
)
from agentflow.core.domain.results import DocumentCreated
from agentflow.core.interfaces.gateway import CommandGatewayProtocol

logger = structlog.get_logger()

USER_SENDER = "User"


@dataclass
class WorkflowSession:
    """
    State of one workflow across requests.

    Attributes:
        workflow_id: The workflow identifier
        controller: Conversation controller bound to the workflow
        resolver: Agent resolver of the workflow
        messages: Workflow message log in append order
        declared_agents: Declared step sequence (agent ids)
        documents: Documents created in this workflow, in creation order
        created_at: When the session was created
        last_activity: Last command or response in the session
    """

    workflow_id: str
    controller: ConversationController
    resolver: WorkflowAgentResolver
    messages: list[WorkflowMessage] = field(default_factory=list)
    declared_agents: list[str] = field(default_factory=list)
    documents: list[DocumentCreated] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    last_activity: datetime = field(default_factory=utc_now)


class WorkflowSessionManager:
    """
    Creates, looks up and removes workflow sessions.

    Example:
        >>> sessions = WorkflowSessionManager(gateway, catalog, registry, tracker)
        >>> outcome = await sessions.execute("wf-1", "pm", "create-prd", {"template": "prd-tmpl"})
        >>> sessions.resolve_agents("wf-1", declared=["pm", "architect"])
    """

    def __init__(
        self,
        gateway: CommandGatewayProtocol,
        catalog: AgentCatalog,
        registry: CommandRegistry,
        tracker: ExecutionTracker,
        handoffs: Optional[HandoffManager] = None,
        timeout_seconds: float = 60.0,
        history_size: int = 10,
    ):
        self.gateway = gateway
        self.catalog = catalog
        self.registry = registry
        self.tracker = tracker
        self.handoffs = handoffs or HandoffManager(tracker)
        self.timeout_seconds = timeout_seconds
        self.history_size = history_size
        self._sessions: dict[str, WorkflowSession] = {}
        self.logger = logger.bind(component="workflow_sessions")

    def __contains__(self, workflow_id: str) -> bool:
        return workflow_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, workflow_id: str) -> WorkflowSession:
        """
        Raises:
            NotFoundError: If the workflow has no session
        """
        session = self._sessions.get(workflow_id)
        if session is None:
            raise NotFoundError(f"Workflow '{workflow_id}' not found")
        return session

    def get_or_create(
        self, workflow_id: str, declared_agents: Optional[Sequence[str]] = None
    ) -> WorkflowSession:
        session = self._sessions.get(workflow_id)
        if session is None:
            session = self._create(workflow_id)
        if declared_agents:
            session.declared_agents = list(declared_agents)
        return session

    async def execute(
        self,
        workflow_id: str,
        agent_id: str,
        command_id: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> ExecutionOutcome:
        """Execute a command in the workflow's conversation."""
        session = self.get_or_create(workflow_id)
        parameters = dict(parameters or {})
        prompt = parameters.get("context") or f"@{agent_id} *{command_id}"

        outcome = await session.controller.execute(agent_id, command_id, parameters)
        self._log_exchange(session, prompt, outcome)
        return outcome

    async def respond(self, workflow_id: str, user_response: str) -> ExecutionOutcome:
        """Answer the open elicitation prompt of the workflow."""
        session = self.get(workflow_id)
        outcome = await session.controller.continue_conversation(user_response)
        self._log_exchange(session, user_response, outcome)
        return outcome

    def reset_conversation(self, workflow_id: str) -> None:
        self.get(workflow_id).controller.start_new_conversation()

    def resolve_agents(
        self,
        workflow_id: str,
        declared: Optional[Sequence[str]] = None,
        current_agent: Optional[str] = None,
    ) -> list[ResolvedAgentView]:
        """Ordered agent view of the workflow."""
        session = self.get(workflow_id)
        if current_agent is None:
            focused = self.tracker.focused_agent
            if focused is not None and focused.workflow_id == workflow_id:
                current_agent = focused.agent_id

        return session.resolver.resolve(
            session.messages,
            elicitation_prompt=session.controller.elicitation_prompt,
            workflow_agents=list(declared) if declared else session.declared_agents,
            current_agent=current_agent,
        )

    def remove(self, workflow_id: str) -> None:
        """
        Drop the session and every tracked state of the workflow.

        Raises:
            NotFoundError: If the workflow has no session
        """
        self.get(workflow_id)
        del self._sessions[workflow_id]
        self.tracker.reset_workflow(workflow_id)
        self.logger.info("workflow.session.removed", workflow_id=workflow_id)

    def _create(self, workflow_id: str) -> WorkflowSession:
        documents: list[DocumentCreated] = []
        controller = ConversationController(
            gateway=self.gateway,
            catalog=self.catalog,
            registry=self.registry,
            tracker=self.tracker,
            workflow_id=workflow_id,
            timeout_seconds=self.timeout_seconds,
            history_size=self.history_size,
            on_document_created=documents.append,
            handoffs=self.handoffs,
        )
        session = WorkflowSession(
            workflow_id=workflow_id,
            controller=controller,
            resolver=WorkflowAgentResolver(self.catalog),
            documents=documents,
        )
        self._sessions[workflow_id] = session
        self.logger.info("workflow.session.created", workflow_id=workflow_id)
        return session

    def _log_exchange(
        self, session: WorkflowSession, user_text: str, outcome: ExecutionOutcome
    ) -> None:
        now = utc_now()
        session.last_activity = now
        session.messages.append(
            WorkflowMessage(sender=USER_SENDER, content=user_text, timestamp=now)
        )

        message = getattr(outcome.result, "message", None)
        if message:
            agent = self._responding_agent(session)
            session.messages.append(
                WorkflowMessage(
                    sender=self.catalog.display_name(agent),
                    agent_id=agent,
                    content=message,
                    timestamp=utc_now(),
                )
            )

    @staticmethod
    def _responding_agent(session: WorkflowSession) -> str:
        conversation = session.controller.conversation
        return conversation.agent.id if conversation is not None else ""
