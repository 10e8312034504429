"""
Application Layer - Execution Tracker

Single source of truth for agent execution state. Records are keyed by
(workflow_id, agent_id) and only change through the methods below; every
read returns a copy, so consumers re-query after a mutation instead of
holding live references.

The tracker also stores agent handoffs (pending queue + completed list per
workflow) so a workflow reset clears everything scoped to that workflow in
one step.
"""

import copy
import threading
from collections import deque
from typing import Any

import structlog

from agentflow.core.domain.models import (
    ActiveAgent,
    ExecutionRecord,
    ExecutionStatus,
    FailedExecution,
    Handoff,
    HandoffStatus,
    TERMINAL_STATUSES,
    utc_now,
)

logger = structlog.get_logger()

MAX_FAILED_EXECUTIONS = 50


class ExecutionTracker:
    """
    Thread-safe store of execution records and handoffs.

    Invariant: an (workflow, agent) pair is listed in ``active_agents`` if and
    only if its record status is ``active``; every status change updates both
    under the same lock.
    """

    def __init__(self, max_failed_executions: int = MAX_FAILED_EXECUTIONS):
        self._lock = threading.RLock()
        self._records: dict[tuple[str, str], ExecutionRecord] = {}
        self._active: list[ActiveAgent] = []
        self._pending_handoffs: list[Handoff] = []
        self._completed_handoffs: dict[str, list[Handoff]] = {}
        self._failed: deque[FailedExecution] = deque(maxlen=max_failed_executions)
        self._focused: ActiveAgent | None = None
        self.logger = logger.bind(component="execution_tracker")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_status(
        self, workflow_id: str, agent_id: str, status: ExecutionStatus
    ) -> ExecutionRecord:
        """
        Transition an agent to ``status``, creating its record if needed.

        Entering ``active`` from another status stamps ``started_at`` and
        clears ``ended_at``/``error``; entering a terminal status stamps
        ``ended_at``.

        Returns:
            Snapshot of the updated record
        """
        status = ExecutionStatus(status)
        with self._lock:
            record = self._get_or_create(workflow_id, agent_id)
            previous = record.status
            now = utc_now()

            if status == ExecutionStatus.ACTIVE and previous != ExecutionStatus.ACTIVE:
                if previous != ExecutionStatus.WAITING_FOR_INPUT or record.started_at is None:
                    record.started_at = now
                record.ended_at = None
                record.error = None
            elif status in TERMINAL_STATUSES:
                record.ended_at = now

            record.status = status
            record.last_updated = now
            self._sync_active(workflow_id, agent_id, status)

            self.logger.debug(
                "execution.status.changed",
                workflow_id=workflow_id,
                agent_id=agent_id,
                previous=previous.value,
                status=status.value,
            )
            return copy.deepcopy(record)

    def record_output(self, workflow_id: str, agent_id: str, output: str) -> None:
        with self._lock:
            record = self._get_or_create(workflow_id, agent_id)
            record.output = output
            record.last_updated = utc_now()

    def record_artifact(
        self, workflow_id: str, agent_id: str, artifact: dict[str, Any]
    ) -> None:
        with self._lock:
            record = self._get_or_create(workflow_id, agent_id)
            stamped = {"recorded_at": utc_now().isoformat(), **artifact}
            record.artifacts.append(stamped)
            record.last_updated = utc_now()
            self.logger.info(
                "execution.artifact.recorded",
                workflow_id=workflow_id,
                agent_id=agent_id,
                artifact_keys=sorted(artifact.keys()),
            )

    def record_error(
        self,
        workflow_id: str,
        agent_id: str,
        error: str,
        command_id: str = "",
        error_type: str = "OrchestrationError",
    ) -> None:
        """Store the error on the record and in the bounded failure list."""
        with self._lock:
            record = self._get_or_create(workflow_id, agent_id)
            record.error = error
            record.last_updated = utc_now()
            self._failed.append(
                FailedExecution(
                    workflow_id=workflow_id,
                    agent_id=agent_id,
                    command_id=command_id,
                    error=error,
                    error_type=error_type,
                )
            )

    def record_heartbeat(self, workflow_id: str, agent_id: str) -> None:
        with self._lock:
            record = self._get_or_create(workflow_id, agent_id)
            record.last_heartbeat = utc_now()

    def focus_agent(self, workflow_id: str, agent_id: str) -> None:
        with self._lock:
            self._focused = ActiveAgent(workflow_id=workflow_id, agent_id=agent_id)

    def clear_focus(self) -> None:
        with self._lock:
            self._focused = None

    def move_record(self, agent_id: str, from_workflow: str, to_workflow: str) -> None:
        """
        Re-key an agent's record from one workflow to another.

        The moved record replaces any record at the target key; artifacts
        already stored there are kept ahead of the moved ones. The active
        entry and the focus follow the record.
        """
        with self._lock:
            record = self._records.pop((from_workflow, agent_id), None)
            if record is None:
                return

            existing = self._records.get((to_workflow, agent_id))
            if existing is not None:
                record.artifacts = existing.artifacts + record.artifacts
            record.workflow_id = to_workflow
            self._records[(to_workflow, agent_id)] = record

            source = ActiveAgent(workflow_id=from_workflow, agent_id=agent_id)
            if source in self._active:
                self._active.remove(source)
            self._sync_active(to_workflow, agent_id, record.status)
            if self._focused == source:
                self._focused = ActiveAgent(workflow_id=to_workflow, agent_id=agent_id)

            self.logger.debug(
                "execution.record.moved",
                agent_id=agent_id,
                from_workflow=from_workflow,
                to_workflow=to_workflow,
            )

    def reset_workflow(self, workflow_id: str) -> None:
        """
        Clear everything scoped to ``workflow_id``: records, outputs and
        artifacts, active entries, pending and completed handoffs, and the
        focused agent when it belongs to the workflow.
        """
        with self._lock:
            removed = [key for key in self._records if key[0] == workflow_id]
            for key in removed:
                del self._records[key]
            self._active = [a for a in self._active if a.workflow_id != workflow_id]
            self._pending_handoffs = [
                h for h in self._pending_handoffs if h.workflow_id != workflow_id
            ]
            self._completed_handoffs.pop(workflow_id, None)
            if self._focused is not None and self._focused.workflow_id == workflow_id:
                self._focused = None

            self.logger.info(
                "workflow.reset", workflow_id=workflow_id, records_removed=len(removed)
            )

    def reset_all(self) -> None:
        with self._lock:
            self._records.clear()
            self._active.clear()
            self._pending_handoffs.clear()
            self._completed_handoffs.clear()
            self._failed.clear()
            self._focused = None

    # ------------------------------------------------------------------
    # Handoff storage
    # ------------------------------------------------------------------

    def add_pending_handoff(self, handoff: Handoff) -> None:
        with self._lock:
            self._pending_handoffs.append(copy.deepcopy(handoff))

    def complete_handoff(self, handoff_id: str) -> Handoff | None:
        """
        Move a pending handoff to its workflow's completed list.

        Returns:
            Snapshot of the completed handoff, or None if no pending handoff
            has this id
        """
        with self._lock:
            for index, handoff in enumerate(self._pending_handoffs):
                if handoff.id == handoff_id:
                    del self._pending_handoffs[index]
                    handoff.status = HandoffStatus.COMPLETED
                    handoff.completed_at = utc_now()
                    self._completed_handoffs.setdefault(handoff.workflow_id, []).append(handoff)
                    return copy.deepcopy(handoff)
            return None

    def pending_handoffs(self, workflow_id: str | None = None) -> list[Handoff]:
        with self._lock:
            return [
                copy.deepcopy(h)
                for h in self._pending_handoffs
                if workflow_id is None or h.workflow_id == workflow_id
            ]

    def completed_handoffs(self, workflow_id: str) -> list[Handoff]:
        with self._lock:
            return copy.deepcopy(self._completed_handoffs.get(workflow_id, []))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_record(self, workflow_id: str, agent_id: str) -> ExecutionRecord | None:
        with self._lock:
            record = self._records.get((workflow_id, agent_id))
            return copy.deepcopy(record) if record else None

    def records_for(self, workflow_id: str) -> dict[str, ExecutionRecord]:
        """All records of a workflow keyed by agent id."""
        with self._lock:
            return {
                agent_id: copy.deepcopy(record)
                for (wf_id, agent_id), record in self._records.items()
                if wf_id == workflow_id
            }

    @property
    def active_agents(self) -> list[ActiveAgent]:
        with self._lock:
            return list(self._active)

    @property
    def focused_agent(self) -> ActiveAgent | None:
        with self._lock:
            return self._focused

    @property
    def failed_executions(self) -> list[FailedExecution]:
        with self._lock:
            return copy.deepcopy(list(self._failed))

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _get_or_create(self, workflow_id: str, agent_id: str) -> ExecutionRecord:
        key = (workflow_id, agent_id)
        record = self._records.get(key)
        if record is None:
            record = ExecutionRecord(workflow_id=workflow_id, agent_id=agent_id)
            self._records[key] = record
        return record

    def _sync_active(self, workflow_id: str, agent_id: str, status: ExecutionStatus) -> None:
        entry = ActiveAgent(workflow_id=workflow_id, agent_id=agent_id)
        if status == ExecutionStatus.ACTIVE:
            if entry not in self._active:
                self._active.append(entry)
        elif entry in self._active:
            self._active.remove(entry)
