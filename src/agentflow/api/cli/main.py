"""agentflow CLI entry point."""

from typing import Optional

import typer
from rich.console import Console

from agentflow.api.cli.commands import agents, commands, run

app = typer.Typer(
    name="agentflow",
    help="agentflow - Multi-agent workflow orchestration",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register command groups
app.add_typer(agents.app, name="agents", help="Agent catalog")
app.add_typer(commands.app, name="commands", help="Agent commands")
app.command("run")(run.run_command)


@app.callback()
def main(
    ctx: typer.Context,
    profile: str = typer.Option("dev", "--profile", "-p", help="Configuration profile"),
    config_dir: str = typer.Option("configs", "--config-dir", help="Directory of profile YAML files"),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Agent backend base URL"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
):
    """agentflow CLI."""
    # Store global options in context for subcommands
    ctx.obj = {
        "profile": profile,
        "config_dir": config_dir,
        "gateway_url": gateway_url,
        "debug": debug,
    }


@app.command()
def version():
    """Show agentflow version."""
    from agentflow import __version__

    console.print(f"[bold blue]agentflow[/bold blue] version [cyan]{__version__}[/cyan]")


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8070, "--port", help="Port"),
):
    """Serve the HTTP API."""
    import uvicorn

    from agentflow.api.cli.context import load_settings
    from agentflow.api.server import create_app

    uvicorn.run(create_app(settings=load_settings(ctx)), host=host, port=port)


if __name__ == "__main__":
    app()
