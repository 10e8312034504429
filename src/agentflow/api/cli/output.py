"""Rich console output for the agentflow CLI."""

import logging
from typing import Optional

import structlog
from rich.console import Console
from rich.panel import Panel

from agentflow.core.domain.models import AgentDefinition, ElicitationOption


def configure_logging(debug: bool) -> None:
    """Debug shows every structlog event; otherwise only warnings and errors."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


class AgentflowConsole:
    """Formatted output of agent conversations."""

    def __init__(self, debug: bool = False, console: Optional[Console] = None):
        self.console = console or Console()
        self.debug = debug

    def print_banner(self, agent: AgentDefinition, command_id: str) -> None:
        self.console.print(
            f"{agent.icon} [bold cyan]{agent.name}[/bold cyan] "
            f"[dim]({agent.title})[/dim]  [magenta]*{command_id}[/magenta]"
        )

    def print_agent_message(
        self,
        agent: AgentDefinition,
        message: str,
        options: tuple[ElicitationOption, ...] = (),
    ) -> None:
        body = message
        if options:
            body += "\n\n" + "\n".join(f"{o.number}. {o.text}" for o in options)
        self.console.print(
            Panel(body, title=f"{agent.icon} {agent.name}", border_style="cyan", expand=False)
        )

    def print_success(self, message: str) -> None:
        self.console.print(f"[bold green]✓[/bold green] {message}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[bold red]✗[/bold red] {message}")

    def print_info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def print_debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim]{message}[/dim]")
