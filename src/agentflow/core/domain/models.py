"""
Core Domain Models

This module defines the data models of the orchestration core: agent and
command definitions, per-agent execution records, conversation state,
elicitation prompts, handoffs and the derived agent view used for display
and sequencing.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    """Timezone-aware current time used for every stamp in the domain."""
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Lifecycle of one agent within one workflow."""

    PENDING = "pending"
    ACTIVE = "active"
    WAITING_FOR_INPUT = "waiting_for_input"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.ERROR})


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class HandoffStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AgentDefinition:
    """
    Display metadata and capabilities of an agent.

    Attributes:
        id: Stable agent identifier (pm, architect, dev, ...)
        name: Persona name shown in conversations
        title: Role/title of the agent
        icon: Emoji icon
        commands: Ordered command ids the agent supports
        description: Short description of the agent's focus
        when_to_use: Guidance on when to pick this agent
    """

    id: str
    name: str
    title: str
    icon: str
    commands: tuple[str, ...] = ()
    description: str = ""
    when_to_use: str = ""

    def supports(self, command_id: str) -> bool:
        return command_id in self.commands


@dataclass(frozen=True)
class CommandDefinition:
    """
    Execution requirements of a command.

    Attributes:
        id: Command identifier (create-prd, shard-prd, ...)
        name: Human-readable command name
        description: What the command does
        category: Grouping used by command pickers
        requires_template: A template id must be supplied
        requires_source_file: A source file/document must be supplied
        interactive: The agent leads an elicitation dialogue
        templates: Template ids suggested for this command
    """

    id: str
    name: str
    description: str = ""
    category: str = "Agent Command"
    requires_template: bool = False
    requires_source_file: bool = False
    interactive: bool = False
    templates: tuple[str, ...] = ()


@dataclass(frozen=True)
class ElicitationOption:
    """One numbered choice offered by an agent."""

    number: int
    text: str


@dataclass
class ConversationMessage:
    role: MessageRole
    content: str
    options: tuple[ElicitationOption, ...] = ()
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class ConversationState:
    """
    One dialogue between the user and an agent for a command.

    Messages are kept in append order; the order is never derived from
    timestamps.
    """

    conversation_id: str
    agent: AgentDefinition
    command: CommandDefinition
    messages: list[ConversationMessage] = field(default_factory=list)
    completed: bool = False
    result: Any | None = None


@dataclass(frozen=True)
class ElicitationPrompt:
    """An open request for user input. At most one per controller."""

    agent: AgentDefinition
    command: CommandDefinition
    message: str
    conversation_id: str
    options: tuple[ElicitationOption, ...] = ()


@dataclass
class ExecutionRecord:
    """
    Execution state of one agent within one workflow.

    Attributes:
        workflow_id: Workflow the record belongs to
        agent_id: Agent the record belongs to
        status: Current lifecycle status
        started_at: When the agent last became active from a non-active state
        ended_at: When the agent last reached a terminal status
        last_updated: Last mutation of any field
        output: Latest textual output of the agent
        artifacts: Artifacts produced, in production order
        error: Latest error message, if the last run failed
        last_heartbeat: Last liveness signal of the agent
    """

    workflow_id: str
    agent_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None
    last_updated: datetime = field(default_factory=utc_now)
    output: str | None = None
    artifacts: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None
    last_heartbeat: datetime | None = None


@dataclass(frozen=True)
class ActiveAgent:
    workflow_id: str
    agent_id: str


@dataclass
class Handoff:
    """A transfer of responsibility between two agents of a workflow."""

    id: str
    from_agent: str
    to_agent: str
    workflow_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    status: HandoffStatus = HandoffStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None


@dataclass
class FailedExecution:
    workflow_id: str
    agent_id: str
    command_id: str
    error: str
    error_type: str
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class ExecutionHistoryEntry:
    """
    One invocation of the conversation controller, kept for troubleshooting.

    Exactly one of ``result`` or ``error`` is set, depending on ``success``.
    """

    id: str
    agent_id: str
    command_id: str
    success: bool
    executed_at: datetime
    elapsed_ms: int
    conversation_id: str | None = None
    result: Any | None = None
    error: str | None = None


@dataclass
class ExecutionOutcome:
    """What the caller gets back from execute/continue_conversation."""

    status: ExecutionStatus
    conversation_id: str | None
    result: Any | None = None
    error: str | None = None
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status != ExecutionStatus.ERROR

    @property
    def awaiting_input(self) -> bool:
        return self.status == ExecutionStatus.WAITING_FOR_INPUT


@dataclass(frozen=True)
class WorkflowStarted:
    """Payload of the workflow-start callback."""

    workflow_id: str
    agent: AgentDefinition
    command: CommandDefinition


@dataclass(frozen=True)
class WorkflowMessage:
    """
    A message of a live workflow log, as seen by the agent resolver.

    Attributes:
        sender: Display name of the sender ("Winston", "User", "System")
        agent_id: Explicit agent id of the sender, when known
        timestamp: When the message was sent
    """

    sender: str | None = None
    agent_id: str | None = None
    content: str = ""
    timestamp: datetime | None = None


@dataclass(frozen=True)
class WorkflowStep:
    """A declared workflow agent with its workflow-reported status."""

    agent_id: str
    name: str | None = None
    status: str | None = None


@dataclass
class ResolvedAgentView:
    """Derived per-agent view of a running workflow."""

    id: str
    name: str
    role: str
    icon: str
    is_active: bool = False
    is_current: bool = False
    is_recent: bool = False
    workflow_status: str = ExecutionStatus.PENDING.value
    last_activity: datetime | None = None
    order: float = math.inf
    is_choice_point: bool = False

    @property
    def is_declared(self) -> bool:
        return not math.isinf(self.order)


@dataclass
class CommandResources:
    """Values available to fill command parameters."""

    templates: list[dict[str, Any]] = field(default_factory=list)
    files: list[dict[str, Any]] = field(default_factory=list)
