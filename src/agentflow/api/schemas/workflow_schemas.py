"""
Workflow API Schemas
====================

Pydantic models of the HTTP API, plus the converters from domain objects.
Domain dataclasses never leave the process directly: everything crossing
the wire goes through these models.
"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from agentflow.core.domain.models import (
    AgentDefinition,
    CommandDefinition,
    ConversationMessage,
    ElicitationOption,
    ElicitationPrompt,
    ExecutionHistoryEntry,
    ExecutionOutcome,
    ExecutionRecord,
    Handoff,
    ResolvedAgentView,
)
from agentflow.core.domain.results import (
    AgentResponse,
    CommandResult,
    DocumentCreated,
    ElicitationRequest,
)


# ---------------------------------------------------------------------------
# Agents and commands
# ---------------------------------------------------------------------------


class CommandSchema(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = "Agent Command"
    requires_template: bool = False
    requires_source_file: bool = False
    interactive: bool = False
    templates: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, command: CommandDefinition) -> "CommandSchema":
        return cls(
            id=command.id,
            name=command.name,
            description=command.description,
            category=command.category,
            requires_template=command.requires_template,
            requires_source_file=command.requires_source_file,
            interactive=command.interactive,
            templates=list(command.templates),
        )


class AgentSchema(BaseModel):
    id: str
    name: str
    title: str
    icon: str
    description: str = ""
    when_to_use: str = ""
    commands: list[CommandSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(
        cls, agent: AgentDefinition, commands: list[CommandDefinition]
    ) -> "AgentSchema":
        return cls(
            id=agent.id,
            name=agent.name,
            title=agent.title,
            icon=agent.icon,
            description=agent.description,
            when_to_use=agent.when_to_use,
            commands=[CommandSchema.from_domain(c) for c in commands],
        )


class AgentListResponse(BaseModel):
    agents: list[AgentSchema]


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


class ExecuteCommandRequest(BaseModel):
    """Request to execute an agent command in a workflow."""

    agent: str
    command: str
    template: Optional[str] = None
    file: Optional[str] = None
    context: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    declared_agents: Optional[list[str]] = None
    """Declared step sequence of the workflow, e.g. ["pm", "architect", "dev"]."""

    def to_parameters(self) -> dict[str, Any]:
        parameters = dict(self.parameters)
        for key in ("template", "file", "context"):
            value = getattr(self, key)
            if value is not None:
                parameters[key] = value
        return parameters


class RespondRequest(BaseModel):
    """Answer to an open elicitation prompt."""

    response: str


class OptionSchema(BaseModel):
    number: int
    text: str

    @classmethod
    def from_domain(cls, option: ElicitationOption) -> "OptionSchema":
        return cls(number=option.number, text=option.text)


class CommandResultSchema(BaseModel):
    type: str
    message: str
    options: list[OptionSchema] = Field(default_factory=list)
    artifacts: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: CommandResult) -> "CommandResultSchema":
        options: list[OptionSchema] = []
        artifacts: list[dict[str, Any]] = []
        if isinstance(result, ElicitationRequest):
            options = [OptionSchema.from_domain(o) for o in result.options]
        elif isinstance(result, DocumentCreated):
            artifacts = [result.artifact] if result.artifact else []
        elif isinstance(result, AgentResponse):
            artifacts = list(result.artifacts)
        return cls(
            type=result.type.value,
            message=result.message,
            options=options,
            artifacts=artifacts,
        )


class ExecutionResponse(BaseModel):
    """Outcome of a command execution or a conversation continuation."""

    workflow_id: str
    status: str
    conversation_id: Optional[str] = None
    elapsed_ms: int = 0
    result: Optional[CommandResultSchema] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, workflow_id: str, outcome: ExecutionOutcome) -> "ExecutionResponse":
        return cls(
            workflow_id=workflow_id,
            status=outcome.status.value,
            conversation_id=outcome.conversation_id,
            elapsed_ms=outcome.elapsed_ms,
            result=CommandResultSchema.from_domain(outcome.result) if outcome.result else None,
            error=outcome.error,
        )


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class MessageSchema(BaseModel):
    role: str
    content: str
    options: list[OptionSchema] = Field(default_factory=list)
    timestamp: datetime

    @classmethod
    def from_domain(cls, message: ConversationMessage) -> "MessageSchema":
        return cls(
            role=message.role.value,
            content=message.content,
            options=[OptionSchema.from_domain(o) for o in message.options],
            timestamp=message.timestamp,
        )


class PromptSchema(BaseModel):
    agent: str
    command: str
    message: str
    conversation_id: str
    options: list[OptionSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, prompt: ElicitationPrompt) -> "PromptSchema":
        return cls(
            agent=prompt.agent.id,
            command=prompt.command.id,
            message=prompt.message,
            conversation_id=prompt.conversation_id,
            options=[OptionSchema.from_domain(o) for o in prompt.options],
        )


class ConversationResponse(BaseModel):
    workflow_id: str
    conversation_id: Optional[str] = None
    agent: Optional[str] = None
    command: Optional[str] = None
    completed: bool = False
    is_executing: bool = False
    messages: list[MessageSchema] = Field(default_factory=list)
    prompt: Optional[PromptSchema] = None


# ---------------------------------------------------------------------------
# Agents of a workflow, executions
# ---------------------------------------------------------------------------


class ResolvedAgentSchema(BaseModel):
    id: str
    name: str
    role: str
    icon: str
    is_active: bool
    is_current: bool
    is_recent: bool
    is_choice_point: bool
    workflow_status: str
    last_activity: Optional[datetime] = None
    order: Optional[int] = None
    """Position in the declared sequence; null for agents outside it."""
    eligible: bool = True

    @classmethod
    def from_domain(cls, view: ResolvedAgentView, eligible: bool = True) -> "ResolvedAgentSchema":
        return cls(
            id=view.id,
            name=view.name,
            role=view.role,
            icon=view.icon,
            is_active=view.is_active,
            is_current=view.is_current,
            is_recent=view.is_recent,
            is_choice_point=view.is_choice_point,
            workflow_status=view.workflow_status,
            last_activity=view.last_activity,
            order=None if math.isinf(view.order) else int(view.order),
            eligible=eligible,
        )


class WorkflowAgentsResponse(BaseModel):
    workflow_id: str
    agents: list[ResolvedAgentSchema]


class ExecutionRecordSchema(BaseModel):
    agent_id: str
    status: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    last_updated: datetime
    output: Optional[str] = None
    artifacts: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_domain(cls, record: ExecutionRecord) -> "ExecutionRecordSchema":
        return cls(
            agent_id=record.agent_id,
            status=record.status.value,
            started_at=record.started_at,
            ended_at=record.ended_at,
            last_updated=record.last_updated,
            output=record.output,
            artifacts=record.artifacts,
            error=record.error,
        )


class HistoryEntrySchema(BaseModel):
    id: str
    agent_id: str
    command_id: str
    success: bool
    executed_at: datetime
    elapsed_ms: int
    conversation_id: Optional[str] = None
    result: Optional[CommandResultSchema] = None
    error: Optional[str] = None

    @classmethod
    def from_domain(cls, entry: ExecutionHistoryEntry) -> "HistoryEntrySchema":
        return cls(
            id=entry.id,
            agent_id=entry.agent_id,
            command_id=entry.command_id,
            success=entry.success,
            executed_at=entry.executed_at,
            elapsed_ms=entry.elapsed_ms,
            conversation_id=entry.conversation_id,
            result=CommandResultSchema.from_domain(entry.result) if entry.result else None,
            error=entry.error,
        )


class ExecutionsResponse(BaseModel):
    workflow_id: str
    active_agents: list[str]
    records: list[ExecutionRecordSchema]
    history: list[HistoryEntrySchema]


# ---------------------------------------------------------------------------
# Handoffs
# ---------------------------------------------------------------------------


class HandoffCreateRequest(BaseModel):
    from_agent: str
    to_agent: str
    payload: dict[str, Any] = Field(default_factory=dict)


class HandoffSchema(BaseModel):
    id: str
    from_agent: str
    to_agent: str
    workflow_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    status: str
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, handoff: Handoff) -> "HandoffSchema":
        return cls(
            id=handoff.id,
            from_agent=handoff.from_agent,
            to_agent=handoff.to_agent,
            workflow_id=handoff.workflow_id,
            payload=handoff.payload,
            status=handoff.status.value,
            created_at=handoff.created_at,
            completed_at=handoff.completed_at,
        )
