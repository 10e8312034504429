"""
Workflow Agent Resolver

Derives the ordered list of agents relevant to a running workflow by
merging the workflow's declared step sequence with the agents observed in
its message log.

The merge is a deterministic two-pass merge:
1. Declared agents first, in declared order (order 1..N)
2. Agents seen only in messages, in first-seen order (order = +inf)

so the declared order is never disturbed by live activity.
"""

import math
from datetime import datetime
from typing import Iterable, Sequence

import structlog

from agentflow.core.domain.agent_catalog import (
    UNKNOWN_AGENT_ID,
    AgentCatalog,
    normalize_agent_id,
)
from agentflow.core.domain.models import (
    ElicitationPrompt,
    ExecutionStatus,
    ResolvedAgentView,
    WorkflowMessage,
    WorkflowStep,
    utc_now,
)

logger = structlog.get_logger()

RESERVED_SENDERS = frozenset({"user", "system", "bmad-system"})
VARIOUS_AGENT_ID = "various"
CHOICE_POINT_ICON = "🔄"
CHOICE_POINT_ROLE = "Dynamic Selection"
ADDITIONAL_STATUS = "additional"


def is_choice_point(agent_id: str) -> bool:
    """A step naming several candidate agents, or ``various``."""
    return "/" in agent_id or agent_id == VARIOUS_AGENT_ID


class WorkflowAgentResolver:
    """
    Resolves the agent view of one workflow.

    The resolver remembers the active agent between calls: an open
    elicitation prompt always takes it over, otherwise the externally
    supplied current agent only fills it while nothing is active.
    """

    def __init__(self, catalog: AgentCatalog):
        self.catalog = catalog
        self.active_agent_id: str | None = None
        self.logger = logger.bind(component="agent_resolver")

    def select_agent(self, agent_id: str | None) -> None:
        """Explicitly focus an agent (or clear the focus with None)."""
        self.active_agent_id = self.catalog.resolve_id(agent_id) if agent_id else None

    def resolve(
        self,
        messages: Iterable[WorkflowMessage],
        elicitation_prompt: ElicitationPrompt | None = None,
        workflow_agents: Sequence[str | WorkflowStep] = (),
        current_agent: str | None = None,
    ) -> list[ResolvedAgentView]:
        """
        Produce the ordered agent view.

        Args:
            messages: Workflow message log in append order
            elicitation_prompt: Open prompt, if an agent is waiting for input
            workflow_agents: Declared step sequence (ids or WorkflowStep)
            current_agent: Agent the workflow reports as current

        Returns:
            Declared agents in declared order followed by observed-only agents
        """
        activity = self._activity_map(messages)

        if elicitation_prompt is not None:
            prompt_agent = self.catalog.resolve_id(elicitation_prompt.agent.id)
            if prompt_agent != UNKNOWN_AGENT_ID:
                activity[prompt_agent] = utc_now()
                self.active_agent_id = prompt_agent

        current_id = self.catalog.resolve_id(current_agent) if current_agent else None
        if current_id == UNKNOWN_AGENT_ID:
            current_id = None
        if self.active_agent_id is None and current_id is not None:
            self.active_agent_id = current_id

        declared = self._declared_views(workflow_agents, activity, current_id)
        declared_ids = {view.id for view in declared}

        additional = [
            self._build_view(
                agent_id,
                is_current=False,
                is_recent=False,
                workflow_status=ADDITIONAL_STATUS,
                last_activity=last_seen,
                order=math.inf,
            )
            for agent_id, last_seen in activity.items()
            if agent_id not in declared_ids
        ]

        self.logger.debug(
            "agents.resolved",
            declared=len(declared),
            additional=len(additional),
            active_agent=self.active_agent_id,
        )
        return declared + additional

    def _activity_map(self, messages: Iterable[WorkflowMessage]) -> dict[str, datetime]:
        activity: dict[str, datetime] = {}
        for message in messages:
            reference = message.agent_id or message.sender
            if not reference:
                continue
            agent_id = self.catalog.resolve_id(reference)
            if agent_id in RESERVED_SENDERS or agent_id == UNKNOWN_AGENT_ID:
                continue
            timestamp = message.timestamp or utc_now()
            previous = activity.get(agent_id)
            if previous is None or timestamp > previous:
                activity[agent_id] = timestamp
        return activity

    def _declared_views(
        self,
        workflow_agents: Sequence[str | WorkflowStep],
        activity: dict[str, datetime],
        current_id: str | None,
    ) -> list[ResolvedAgentView]:
        views: list[ResolvedAgentView] = []
        seen: set[str] = set()
        for step in workflow_agents:
            if isinstance(step, WorkflowStep):
                reference, name, status = step.agent_id, step.name, step.status
            else:
                reference, name, status = step, None, None

            agent_id = self.catalog.resolve_id(reference)
            if agent_id == UNKNOWN_AGENT_ID or agent_id in seen:
                continue
            seen.add(agent_id)

            views.append(
                self._build_view(
                    agent_id,
                    name=name,
                    is_current=agent_id == current_id,
                    is_recent=agent_id == current_id and agent_id != self.active_agent_id,
                    workflow_status=status or ExecutionStatus.PENDING.value,
                    last_activity=activity.get(agent_id),
                    order=len(views) + 1,
                )
            )
        return views

    def _build_view(
        self,
        agent_id: str,
        *,
        is_current: bool,
        is_recent: bool,
        workflow_status: str,
        last_activity: datetime | None,
        order: float,
        name: str | None = None,
    ) -> ResolvedAgentView:
        choice_point = is_choice_point(agent_id)
        if choice_point:
            candidates = [part.strip() for part in agent_id.split("/") if part.strip()]
            display_name = " or ".join(candidates) if "/" in agent_id else agent_id
            role = CHOICE_POINT_ROLE
            icon = CHOICE_POINT_ICON
        else:
            display_name = self.catalog.display_name(agent_id)
            role = self.catalog.role(agent_id)
            icon = self.catalog.icon(agent_id)

        return ResolvedAgentView(
            id=agent_id,
            name=name or display_name,
            role=role,
            icon=icon,
            is_active=agent_id == self.active_agent_id,
            is_current=is_current,
            is_recent=is_recent,
            workflow_status=workflow_status,
            last_activity=last_activity,
            order=order,
            is_choice_point=choice_point,
        )
