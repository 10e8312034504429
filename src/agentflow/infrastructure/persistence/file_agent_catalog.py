"""
File-Based Agent Catalog
========================

Builds an AgentCatalog from agent definition files.

An agent definition is a Markdown file (``{agents_dir}/*.md``) whose first
fenced ```yaml block describes the agent:

    agent:
      id: pm
      name: John
      title: Product Manager
      icon: 📋
      whenToUse: Use for PRDs, product strategy ...
    commands:
      - help: Show numbered list of commands
      - create-prd: Create a PRD from a template
      - exit

``commands`` may be a list of strings, a list of single-key mappings
(command -> description) or a plain mapping. Files without a usable block
are skipped with a warning; they never abort loading.
"""

import re
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from agentflow.core.domain.agent_catalog import (
    DEFAULT_AGENT_ICON,
    AgentCatalog,
    normalize_agent_id,
)
from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.domain.models import AgentDefinition, CommandDefinition

logger = structlog.get_logger()

_YAML_BLOCK = re.compile(r"```ya?ml\s*\n(.*?)\n```", re.DOTALL)


def _parse_commands(raw: Any) -> list[tuple[str, str]]:
    """Normalize the ``commands`` member into (command_id, description) pairs."""
    if isinstance(raw, dict):
        items = list(raw.items())
    elif isinstance(raw, list):
        items = []
        for entry in raw:
            if isinstance(entry, str):
                items.append((entry, ""))
            elif isinstance(entry, dict) and entry:
                items.append(next(iter(entry.items())))
    else:
        return []

    commands = []
    for name, description in items:
        command_id = str(name).strip().lstrip("*")
        if command_id:
            commands.append((command_id, description if isinstance(description, str) else ""))
    return commands


class FileAgentCatalogLoader:
    """
    Loads agent definitions from a directory of Markdown files.

    Example:
        >>> loader = FileAgentCatalogLoader("configs/agents")
        >>> catalog = loader.load_catalog()
        >>> catalog.get("pm").name
        'John'
    """

    def __init__(self, agents_dir: str | Path, registry: Optional[CommandRegistry] = None):
        """
        Initialize the loader.

        Args:
            agents_dir: Directory containing ``*.md`` agent definitions
            registry: Command registry to register file-declared commands in.
                Commands already registered keep their requirements.
        """
        self.agents_dir = Path(agents_dir)
        self.registry = registry
        self.logger = logger.bind(component="file_agent_catalog")

    def load_agents(self) -> list[AgentDefinition]:
        """Load all valid agent definitions, sorted by file name."""
        if not self.agents_dir.is_dir():
            self.logger.warning("agents.dir.missing", path=str(self.agents_dir))
            return []

        agents = []
        for path in sorted(self.agents_dir.glob("*.md")):
            agent = self._load_agent_file(path)
            if agent is not None:
                agents.append(agent)

        self.logger.info("agents.loaded", count=len(agents), path=str(self.agents_dir))
        return agents

    def load_catalog(self) -> AgentCatalog:
        return AgentCatalog(self.load_agents())

    def _load_agent_file(self, path: Path) -> Optional[AgentDefinition]:
        try:
            content = path.read_text(encoding="utf-8")
            match = _YAML_BLOCK.search(content)
            if match is None:
                self.logger.warning("agent.yaml.missing", path=str(path))
                return None

            data = yaml.safe_load(match.group(1))
            if not isinstance(data, dict) or not isinstance(data.get("agent"), dict):
                self.logger.warning("agent.yaml.invalid", path=str(path))
                return None

            return self._build_agent(data, path)

        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            self.logger.warning("agent.yaml.corrupt", path=str(path), error=str(e))
            return None

    def _build_agent(self, data: dict[str, Any], path: Path) -> AgentDefinition:
        meta = data["agent"]
        agent_id = normalize_agent_id(str(meta.get("id") or path.stem))
        commands = _parse_commands(data.get("commands"))

        if self.registry is not None:
            for command_id, description in commands:
                if not self.registry.is_registered(command_id):
                    self.registry.register(
                        CommandDefinition(
                            id=command_id,
                            name=self.registry.get(command_id).name,
                            description=description,
                        )
                    )

        persona = data.get("persona") if isinstance(data.get("persona"), dict) else {}
        when_to_use = str(meta.get("whenToUse") or "")

        return AgentDefinition(
            id=agent_id,
            name=str(meta.get("name") or agent_id),
            title=str(meta.get("title") or persona.get("role") or "Agent"),
            icon=str(meta.get("icon") or DEFAULT_AGENT_ICON),
            commands=tuple(command_id for command_id, _ in commands),
            description=when_to_use or str(persona.get("identity") or ""),
            when_to_use=when_to_use,
        )
