"""
Workflow API Routes
===================

HTTP endpoints driving the conversation of a workflow.

Endpoints:
- POST   /api/v1/workflows/{workflow_id}/commands - Execute an agent command
- POST   /api/v1/workflows/{workflow_id}/respond - Answer the open prompt
- POST   /api/v1/workflows/{workflow_id}/conversation/reset - Start a new conversation
- GET    /api/v1/workflows/{workflow_id}/conversation - Conversation state
- GET    /api/v1/workflows/{workflow_id}/agents - Resolved agent view
- GET    /api/v1/workflows/{workflow_id}/executions - Records and history
- POST   /api/v1/workflows/{workflow_id}/handoffs - Initiate a handoff
- DELETE /api/v1/workflows/{workflow_id} - Drop the workflow and its state
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from agentflow.api.dependencies import get_orchestrator, to_http_exception
from agentflow.api.schemas.workflow_schemas import (
    ConversationResponse,
    ExecuteCommandRequest,
    ExecutionRecordSchema,
    ExecutionResponse,
    ExecutionsResponse,
    HandoffCreateRequest,
    HandoffSchema,
    HistoryEntrySchema,
    MessageSchema,
    PromptSchema,
    RespondRequest,
    ResolvedAgentSchema,
    WorkflowAgentsResponse,
)
from agentflow.application.factory import Orchestrator
from agentflow.core.domain.exceptions import OrchestrationError

router = APIRouter()


@router.post(
    "/workflows/{workflow_id}/commands",
    response_model=ExecutionResponse,
    summary="Execute agent command",
)
async def execute_command(
    workflow_id: str,
    request: ExecuteCommandRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> ExecutionResponse:
    """
    Execute a command of an agent in the workflow's conversation.

    Agent failures are reported in the body (status "error"), not as HTTP
    errors; only rejected input maps to 4xx.

    Raises:
        HTTPException 400: Unknown agent/command or missing template/file
        HTTPException 409: A command is already running in this workflow
    """
    sessions = orchestrator.sessions
    try:
        if request.declared_agents:
            sessions.get_or_create(workflow_id, request.declared_agents)
        outcome = await sessions.execute(
            workflow_id, request.agent, request.command, request.to_parameters()
        )
    except OrchestrationError as e:
        raise to_http_exception(e)
    return ExecutionResponse.from_outcome(workflow_id, outcome)


@router.post(
    "/workflows/{workflow_id}/respond",
    response_model=ExecutionResponse,
    summary="Answer elicitation prompt",
)
async def respond(
    workflow_id: str,
    request: RespondRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> ExecutionResponse:
    try:
        outcome = await orchestrator.sessions.respond(workflow_id, request.response)
    except OrchestrationError as e:
        raise to_http_exception(e)
    return ExecutionResponse.from_outcome(workflow_id, outcome)


@router.post(
    "/workflows/{workflow_id}/conversation/reset",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Start a new conversation",
)
def reset_conversation(
    workflow_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> Response:
    try:
        orchestrator.sessions.reset_conversation(workflow_id)
    except OrchestrationError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/workflows/{workflow_id}/conversation",
    response_model=ConversationResponse,
    summary="Get conversation state",
)
def get_conversation(
    workflow_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> ConversationResponse:
    try:
        controller = orchestrator.sessions.get(workflow_id).controller
    except OrchestrationError as e:
        raise to_http_exception(e)

    conversation = controller.conversation
    prompt = controller.elicitation_prompt
    return ConversationResponse(
        workflow_id=workflow_id,
        conversation_id=controller.conversation_id,
        agent=conversation.agent.id if conversation else None,
        command=conversation.command.id if conversation else None,
        completed=conversation.completed if conversation else False,
        is_executing=controller.is_executing,
        messages=[MessageSchema.from_domain(m) for m in conversation.messages] if conversation else [],
        prompt=PromptSchema.from_domain(prompt) if prompt else None,
    )


@router.get(
    "/workflows/{workflow_id}/agents",
    response_model=WorkflowAgentsResponse,
    summary="Resolve workflow agents",
    description="Declared agents in declared order, then agents seen only in messages",
)
def get_workflow_agents(
    workflow_id: str,
    declared: Optional[str] = Query(
        default=None, description="Comma-separated declared agent ids, e.g. pm,architect"
    ),
    current: Optional[str] = Query(default=None, description="Agent the workflow reports as current"),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> WorkflowAgentsResponse:
    declared_ids = [d.strip() for d in declared.split(",") if d.strip()] if declared else None
    try:
        views = orchestrator.sessions.resolve_agents(
            workflow_id, declared=declared_ids, current_agent=current
        )
    except OrchestrationError as e:
        raise to_http_exception(e)

    handoffs = orchestrator.handoffs
    return WorkflowAgentsResponse(
        workflow_id=workflow_id,
        agents=[
            ResolvedAgentSchema.from_domain(v, eligible=handoffs.is_eligible(v.id, workflow_id))
            for v in views
        ],
    )


@router.get(
    "/workflows/{workflow_id}/executions",
    response_model=ExecutionsResponse,
    summary="Execution records and history",
)
def get_executions(
    workflow_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> ExecutionsResponse:
    try:
        controller = orchestrator.sessions.get(workflow_id).controller
    except OrchestrationError as e:
        raise to_http_exception(e)

    tracker = orchestrator.tracker
    return ExecutionsResponse(
        workflow_id=workflow_id,
        active_agents=[a.agent_id for a in tracker.active_agents if a.workflow_id == workflow_id],
        records=[
            ExecutionRecordSchema.from_domain(r) for r in tracker.records_for(workflow_id).values()
        ],
        history=[HistoryEntrySchema.from_domain(e) for e in controller.execution_history],
    )


@router.post(
    "/workflows/{workflow_id}/handoffs",
    response_model=HandoffSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Initiate handoff",
)
def initiate_handoff(
    workflow_id: str,
    request: HandoffCreateRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> HandoffSchema:
    try:
        handoff = orchestrator.handoffs.initiate(
            request.from_agent, request.to_agent, workflow_id, request.payload
        )
    except OrchestrationError as e:
        raise to_http_exception(e)
    return HandoffSchema.from_domain(handoff)


@router.delete(
    "/workflows/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete workflow",
)
def delete_workflow(
    workflow_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> Response:
    """
    Drop the workflow session and reset everything tracked for it.

    Raises:
        HTTPException 404: If the workflow has no session
        HTTPException 409: If a command is still running
    """
    sessions = orchestrator.sessions
    if workflow_id not in sessions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workflow '{workflow_id}' not found",
        )
    if sessions.get(workflow_id).controller.is_executing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Workflow '{workflow_id}' has a command running",
        )
    sessions.remove(workflow_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
