"""Settings and service wiring shared by CLI commands."""

import typer

from agentflow.application.factory import Orchestrator, OrchestratorFactory
from agentflow.config.settings import AgentflowSettings


def load_settings(ctx: typer.Context) -> AgentflowSettings:
    """Settings of the profile selected with the global --profile option."""
    global_opts = ctx.obj or {}
    overrides = {}
    if global_opts.get("gateway_url"):
        overrides["gateway_base_url"] = global_opts["gateway_url"]
    return AgentflowSettings.load_profile(
        global_opts.get("profile", "dev"),
        config_dir=global_opts.get("config_dir", "configs"),
        **overrides,
    )


def build_orchestrator(ctx: typer.Context) -> Orchestrator:
    return OrchestratorFactory(load_settings(ctx)).create_orchestrator()
