"""Unit tests for CommandRegistry."""

import pytest

from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.domain.exceptions import ValidationError
from agentflow.core.domain.models import CommandDefinition


def test_registered_command_requirements(registry):
    command = registry.get("create-prd")

    assert command.requires_template
    assert command.interactive
    assert "prd-tmpl" in command.templates


def test_star_prefix_is_ignored(registry):
    assert registry.get("*shard-prd").id == "shard-prd"
    assert registry.is_registered("*shard-prd")


def test_unregistered_command_gets_generic_definition(registry):
    command = registry.get("market-research")

    assert command.name == "Market Research"
    assert not command.requires_template
    assert not command.requires_source_file
    assert not registry.is_registered("market-research")


def test_register_overrides_definition():
    registry = CommandRegistry(commands=())
    registry.register(CommandDefinition(id="brainstorm", name="Brainstorm", interactive=True))

    assert registry.get("brainstorm").interactive


def test_group_by_category(registry):
    groups = registry.group_by_category(["create-prd", "shard-prd", "help", "exit"])

    assert [c.id for c in groups["Document Creation"]] == ["create-prd"]
    assert [c.id for c in groups["System"]] == ["help", "exit"]


class TestValidateParameters:
    def test_missing_template_rejected(self, registry):
        with pytest.raises(ValidationError, match="requires a template"):
            registry.validate_parameters(registry.get("create-prd"), {})

    def test_blank_template_rejected(self, registry):
        with pytest.raises(ValidationError):
            registry.validate_parameters(registry.get("create-prd"), {"template": "   "})

    def test_missing_source_file_rejected(self, registry):
        with pytest.raises(ValidationError, match="requires a source file"):
            registry.validate_parameters(registry.get("shard-prd"), {"file": None})

    def test_satisfied_requirements_pass(self, registry):
        registry.validate_parameters(registry.get("create-prd"), {"template": "prd-tmpl"})
        registry.validate_parameters(registry.get("shard-prd"), {"file": "docs/prd.md"})
        registry.validate_parameters(registry.get("help"), {})
