"""Commands command - Inspect the commands of an agent."""

import typer
from rich.console import Console
from rich.table import Table

from agentflow.api.cli.context import load_settings
from agentflow.application.factory import OrchestratorFactory

app = typer.Typer(help="Agent commands")
console = Console()


@app.command("list")
def list_commands(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent id, e.g. pm"),
):
    """List the commands of an agent, grouped by category."""
    factory = OrchestratorFactory(load_settings(ctx))
    registry = factory.create_registry()
    catalog = factory.create_catalog(registry)

    agent = catalog.find(agent_id)
    if agent is None:
        console.print(f"[red]Agent '{agent_id}' not found[/red]")
        raise typer.Exit(1)

    console.print(f"\n{agent.icon} [bold cyan]{agent.name}[/bold cyan] - {agent.title}\n")

    for category, commands in registry.group_by_category(agent.commands).items():
        table = Table(title=category, title_justify="left")
        table.add_column("Command", style="cyan")
        table.add_column("Description", style="white")
        table.add_column("Requires", style="yellow")

        for command in commands:
            requires = []
            if command.requires_template:
                requires.append("--template")
            if command.requires_source_file:
                requires.append("--file")
            table.add_row(f"*{command.id}", command.description, " ".join(requires))

        console.print(table)
