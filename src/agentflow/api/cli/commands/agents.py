"""Agents command - List the agent team."""

import typer
from rich.console import Console
from rich.table import Table

from agentflow.api.cli.context import load_settings
from agentflow.application.factory import OrchestratorFactory

app = typer.Typer(help="Agent catalog")
console = Console()


@app.command("list")
def list_agents(ctx: typer.Context):
    """List available agents."""
    factory = OrchestratorFactory(load_settings(ctx))
    catalog = factory.create_catalog(factory.create_registry())

    table = Table(title="Available Agents")
    table.add_column("", style="white")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Title", style="white")
    table.add_column("Commands", style="dim")

    for agent in catalog.list_agents():
        table.add_row(agent.icon, agent.id, agent.name, agent.title, str(len(agent.commands)))

    console.print(table)
