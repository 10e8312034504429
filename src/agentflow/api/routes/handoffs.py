"""
Handoff API Routes

Endpoints:
- POST /api/v1/handoffs/{handoff_id}/complete - Complete a pending handoff
"""

from fastapi import APIRouter, Depends

from agentflow.api.dependencies import get_orchestrator, to_http_exception
from agentflow.api.schemas.workflow_schemas import HandoffSchema
from agentflow.application.factory import Orchestrator
from agentflow.core.domain.exceptions import OrchestrationError

router = APIRouter()


@router.post(
    "/handoffs/{handoff_id}/complete",
    response_model=HandoffSchema,
    summary="Complete handoff",
)
def complete_handoff(
    handoff_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> HandoffSchema:
    try:
        handoff = orchestrator.handoffs.complete(handoff_id)
    except OrchestrationError as e:
        raise to_http_exception(e)
    return HandoffSchema.from_domain(handoff)
