"""
Agent Catalog API Routes
========================

Endpoints:
- GET /api/v1/agents - List agents with their commands
- GET /api/v1/commands/metadata?type=templates|files - Command parameter values
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from agentflow.api.dependencies import get_orchestrator
from agentflow.api.schemas.workflow_schemas import AgentListResponse, AgentSchema, CommandSchema
from agentflow.application.factory import Orchestrator

router = APIRouter()


@router.get(
    "/agents",
    response_model=AgentListResponse,
    summary="List all agents",
)
def list_agents(orchestrator: Orchestrator = Depends(get_orchestrator)) -> AgentListResponse:
    registry = orchestrator.registry
    return AgentListResponse(
        agents=[
            AgentSchema.from_domain(agent, registry.commands_for(agent.commands))
            for agent in orchestrator.catalog.list_agents()
        ]
    )


@router.get(
    "/commands/metadata",
    summary="Command metadata",
    description=(
        "Templates (type=templates), documents (type=files) or, without a "
        "type, the commands of every agent"
    ),
)
def command_metadata(
    type: Optional[str] = Query(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    if type == "templates":
        return {"templates": orchestrator.resources.list_templates()}
    if type == "files":
        return {"files": orchestrator.resources.list_files()}

    registry = orchestrator.registry
    return {
        "commands": {
            agent.id: [
                CommandSchema.from_domain(c).model_dump()
                for c in registry.commands_for(agent.commands)
            ]
            for agent in orchestrator.catalog.list_agents()
        }
    }
