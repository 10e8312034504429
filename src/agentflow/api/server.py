from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentflow import __version__
from agentflow.api.routes import agents, handoffs, health, workflows
from agentflow.application.factory import Orchestrator, OrchestratorFactory
from agentflow.config.settings import AgentflowSettings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI startup/shutdown events."""
    orchestrator: Orchestrator = app.state.orchestrator
    await logger.ainfo(
        "fastapi.startup",
        message="agentflow API starting...",
        agents=len(orchestrator.catalog),
        gateway_url=orchestrator.settings.gateway_base_url,
    )
    yield
    await logger.ainfo("fastapi.shutdown", message="agentflow API shutting down...")
    await orchestrator.close()


def create_app(
    settings: Optional[AgentflowSettings] = None,
    orchestrator: Optional[Orchestrator] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings used to build the orchestrator
        orchestrator: Prebuilt orchestrator (tests inject one with a mock gateway)
    """
    if orchestrator is None:
        orchestrator = OrchestratorFactory(settings).create_orchestrator()

    app = FastAPI(
        title="agentflow API",
        description="Multi-agent workflow orchestration: commands, elicitation and handoffs",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(agents.router, prefix="/api/v1", tags=["agents"])
    app.include_router(workflows.router, prefix="/api/v1", tags=["workflows"])
    app.include_router(handoffs.router, prefix="/api/v1", tags=["handoffs"])
    app.include_router(health.router, tags=["health"])

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8070)
