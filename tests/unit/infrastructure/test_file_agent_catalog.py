"""
Unit tests for FileAgentCatalogLoader.

Tests verify:
- All three command notations (strings, single-key mappings, mapping)
- Corrupt or incomplete files are skipped, not fatal
- File-declared commands are registered without overriding known ones
"""

import pytest

from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.infrastructure.persistence.file_agent_catalog import FileAgentCatalogLoader

PM_FILE = """# pm

Some prose before the definition.

```yaml
agent:
  name: John
  id: pm
  title: Product Manager
  icon: 📋
  whenToUse: Use for PRDs
commands:
  - help: Show commands
  - "*create-prd": Create a PRD
  - exit
```

```yaml
ignored: second block
```
"""

QA_FILE = """```yaml
agent:
  name: Maria
  id: qa
  title: QA Specialist
commands:
  review-story: Review a completed story
  exit: Exit
```
"""


@pytest.fixture
def agents_dir(tmp_path):
    (tmp_path / "pm.md").write_text(PM_FILE, encoding="utf-8")
    (tmp_path / "qa.md").write_text(QA_FILE, encoding="utf-8")
    return tmp_path


def test_load_agents_parses_definitions(agents_dir):
    agents = FileAgentCatalogLoader(agents_dir).load_agents()

    pm, qa = agents
    assert pm.id == "pm"
    assert pm.name == "John"
    assert pm.commands == ("help", "create-prd", "exit")
    assert pm.when_to_use == "Use for PRDs"
    assert pm.description == "Use for PRDs"
    assert qa.commands == ("review-story", "exit")
    assert qa.icon == "🤖"


def test_corrupt_and_incomplete_files_are_skipped(agents_dir):
    (agents_dir / "broken.md").write_text("```yaml\nagent: [unclosed\n```\n", encoding="utf-8")
    (agents_dir / "no-block.md").write_text("# Just prose\n", encoding="utf-8")
    (agents_dir / "no-agent.md").write_text("```yaml\ncommands: [help]\n```\n", encoding="utf-8")
    (agents_dir / "notes.txt").write_text("not an agent", encoding="utf-8")

    catalog = FileAgentCatalogLoader(agents_dir).load_catalog()

    assert sorted(a.id for a in catalog.list_agents()) == ["pm", "qa"]


def test_missing_directory_yields_no_agents(tmp_path):
    assert FileAgentCatalogLoader(tmp_path / "missing").load_agents() == []


def test_agent_id_defaults_to_file_name(tmp_path):
    (tmp_path / "Data Wizard.md").write_text(
        "```yaml\nagent:\n  name: Dana\ncommands: []\n```\n", encoding="utf-8"
    )

    (agent,) = FileAgentCatalogLoader(tmp_path).load_agents()

    assert agent.id == "data-wizard"
    assert agent.title == "Agent"


def test_commands_registered_without_overriding_known_ones(agents_dir):
    registry = CommandRegistry()

    FileAgentCatalogLoader(agents_dir, registry).load_agents()

    assert registry.is_registered("review-story")
    create_prd = registry.get("create-prd")
    assert create_prd.requires_template
    assert create_prd.description != "Create a PRD"


def test_unregistered_file_command_gets_description(tmp_path):
    (tmp_path / "sm.md").write_text(
        "```yaml\nagent:\n  id: sm\ncommands:\n  - plan-sprint: Plan the next sprint\n```\n",
        encoding="utf-8",
    )
    registry = CommandRegistry()

    FileAgentCatalogLoader(tmp_path, registry).load_agents()

    command = registry.get("plan-sprint")
    assert registry.is_registered("plan-sprint")
    assert command.description == "Plan the next sprint"
    assert command.name == "Plan Sprint"
