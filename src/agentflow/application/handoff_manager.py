"""
Application Layer - Handoff Manager

Records transfers of responsibility between agents as discrete
transactions. Handoffs are stored in the ExecutionTracker; this service
owns id generation, eligibility rules and error reporting.
"""

import uuid
from typing import Any

import structlog

from agentflow.application.execution_tracker import ExecutionTracker
from agentflow.core.domain.agent_catalog import UNKNOWN_AGENT_ID, normalize_agent_id
from agentflow.core.domain.exceptions import NotFoundError, ValidationError
from agentflow.core.domain.models import Handoff

logger = structlog.get_logger()


class HandoffManager:
    """Initiates and completes agent handoffs of a workflow."""

    def __init__(self, tracker: ExecutionTracker):
        self.tracker = tracker
        self.logger = logger.bind(component="handoff_manager")

    def initiate(
        self,
        from_agent: str,
        to_agent: str,
        workflow_id: str,
        payload: dict[str, Any] | None = None,
    ) -> Handoff:
        """
        Queue a pending handoff.

        Args:
            from_agent: Agent handing over
            to_agent: Agent receiving the work
            workflow_id: Workflow the handoff belongs to
            payload: Data passed along (documents, notes, ...)

        Returns:
            The pending handoff with its generated id

        Raises:
            ValidationError: If an agent id or the workflow id is empty
        """
        from_id = normalize_agent_id(from_agent)
        to_id = normalize_agent_id(to_agent)
        if not workflow_id or UNKNOWN_AGENT_ID in (from_id, to_id):
            raise ValidationError("Handoff requires from_agent, to_agent and workflow_id")

        handoff = Handoff(
            id=f"{workflow_id}_{from_id}_{to_id}_{uuid.uuid4().hex[:8]}",
            from_agent=from_id,
            to_agent=to_id,
            workflow_id=workflow_id,
            payload=dict(payload or {}),
        )
        self.tracker.add_pending_handoff(handoff)

        self.logger.info(
            "handoff.initiated",
            handoff_id=handoff.id,
            workflow_id=workflow_id,
            from_agent=from_id,
            to_agent=to_id,
        )
        return handoff

    def complete(self, handoff_id: str) -> Handoff:
        """
        Complete a pending handoff.

        Raises:
            NotFoundError: If no pending handoff has this id
        """
        handoff = self.tracker.complete_handoff(handoff_id)
        if handoff is None:
            self.logger.warning("handoff.not_found", handoff_id=handoff_id)
            raise NotFoundError(f"Handoff '{handoff_id}' not found")

        self.logger.info(
            "handoff.completed",
            handoff_id=handoff_id,
            workflow_id=handoff.workflow_id,
            to_agent=handoff.to_agent,
        )
        return handoff

    def is_eligible(self, agent_id: str, workflow_id: str) -> bool:
        """An agent waiting on a pending handoff cannot start yet."""
        agent_id = normalize_agent_id(agent_id)
        return not any(
            h.to_agent == agent_id for h in self.tracker.pending_handoffs(workflow_id)
        )

    def pending(self, workflow_id: str | None = None) -> list[Handoff]:
        return self.tracker.pending_handoffs(workflow_id)

    def completed(self, workflow_id: str) -> list[Handoff]:
        return self.tracker.completed_handoffs(workflow_id)
