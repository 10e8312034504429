"""
Command Registry

Maps command ids to their execution requirements. Commands that are not
registered still resolve: they get a generated definition without any
requirements, so agents loaded from definition files can expose commands
the registry has never heard of.
"""

from typing import Any, Iterable, Mapping

from agentflow.core.domain.exceptions import ValidationError
from agentflow.core.domain.models import CommandDefinition

DEFAULT_COMMANDS: tuple[CommandDefinition, ...] = (
    CommandDefinition(
        id="create-prd",
        name="Create PRD",
        description="Create a Product Requirements Document using templates",
        category="Document Creation",
        requires_template=True,
        interactive=True,
        templates=("prd-tmpl",),
    ),
    CommandDefinition(
        id="create-brownfield-prd",
        name="Create Brownfield PRD",
        description="Create PRD for existing project enhancements",
        category="Document Creation",
        requires_template=True,
        interactive=True,
        templates=("brownfield-prd-tmpl",),
    ),
    CommandDefinition(
        id="create-architecture",
        name="Create Architecture",
        description="Design the system architecture document",
        category="Document Creation",
        requires_template=True,
        interactive=True,
        templates=("architecture-tmpl",),
    ),
    CommandDefinition(
        id="shard-prd",
        name="Shard PRD",
        description="Break down PRD into manageable pieces for development",
        category="Document Management",
        requires_source_file=True,
    ),
    CommandDefinition(
        id="develop-story",
        name="Develop Story",
        description="Implement a user story with full development workflow",
        category="Development",
        requires_source_file=True,
    ),
    CommandDefinition(
        id="run-tests",
        name="Run Tests",
        description="Execute linting and tests for the project",
        category="Testing",
    ),
    CommandDefinition(
        id="draft",
        name="Draft Story",
        description="Create next story from sharded documents",
        category="Story Management",
        requires_template=True,
        interactive=True,
        templates=("story-tmpl",),
    ),
    CommandDefinition(
        id="review-story",
        name="Review Story",
        description="Perform senior developer code review with refactoring",
        category="Quality Assurance",
        requires_source_file=True,
    ),
    CommandDefinition(
        id="help",
        name="Help",
        description="Show available commands for this agent",
        category="System",
    ),
    CommandDefinition(
        id="exit",
        name="Exit Agent",
        description="Exit the current agent mode",
        category="System",
    ),
)


def _title_from_id(command_id: str) -> str:
    return " ".join(part.capitalize() for part in command_id.split("-") if part)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class CommandRegistry:
    """Registry of command definitions with requirement checks."""

    def __init__(self, commands: Iterable[CommandDefinition] = DEFAULT_COMMANDS):
        self._commands: dict[str, CommandDefinition] = {cmd.id: cmd for cmd in commands}

    def register(self, command: CommandDefinition) -> None:
        self._commands[command.id] = command

    def is_registered(self, command_id: str) -> bool:
        return command_id.lstrip("*") in self._commands

    def get(self, command_id: str) -> CommandDefinition:
        """
        Get the definition of a command.

        Leading "*" (chat command syntax) is ignored. Unregistered commands
        resolve to a generic definition with no requirements.
        """
        command_id = command_id.lstrip("*")
        command = self._commands.get(command_id)
        if command is not None:
            return command
        return CommandDefinition(
            id=command_id,
            name=_title_from_id(command_id),
            description=f"Execute {command_id} command",
        )

    def commands_for(self, command_ids: Iterable[str]) -> list[CommandDefinition]:
        return [self.get(command_id) for command_id in command_ids]

    def group_by_category(self, command_ids: Iterable[str]) -> dict[str, list[CommandDefinition]]:
        groups: dict[str, list[CommandDefinition]] = {}
        for command in self.commands_for(command_ids):
            groups.setdefault(command.category or "Other", []).append(command)
        return groups

    def validate_parameters(
        self, command: CommandDefinition, parameters: Mapping[str, Any]
    ) -> None:
        """
        Check that the parameters satisfy the command's requirements.

        Raises:
            ValidationError: If a required template or source file is missing
        """
        if command.requires_template and _is_blank(parameters.get("template")):
            raise ValidationError(f"Command '{command.id}' requires a template")
        if command.requires_source_file and _is_blank(parameters.get("file")):
            raise ValidationError(f"Command '{command.id}' requires a source file")
