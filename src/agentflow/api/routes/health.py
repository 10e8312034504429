from fastapi import APIRouter, Depends

from agentflow import __version__
from agentflow.api.dependencies import get_orchestrator
from agentflow.application.factory import Orchestrator

router = APIRouter()


@router.get("/health")
def health(orchestrator: Orchestrator = Depends(get_orchestrator)) -> dict:
    return {
        "status": "healthy",
        "version": __version__,
        "agents": len(orchestrator.catalog),
        "workflows": len(orchestrator.sessions),
    }
