"""
Agent Catalog

Registry mapping agent ids to their display metadata and supported
commands. The catalog is read-only once built; it is populated either from
the built-in team below or from agent definition files
(see infrastructure.persistence.file_agent_catalog).
"""

import re
from typing import Iterable

from agentflow.core.domain.exceptions import NotFoundError
from agentflow.core.domain.models import AgentDefinition

UNKNOWN_AGENT_ID = "unknown"
DEFAULT_AGENT_ICON = "🤖"
DEFAULT_AGENT_ROLE = "Agent"

DEFAULT_AGENTS: tuple[AgentDefinition, ...] = (
    AgentDefinition(
        id="analyst",
        name="David",
        title="Business Analyst",
        icon="🧠",
        commands=("help", "market-research", "analyze-competitors", "gather-requirements", "business-case", "exit"),
        description="Market research, requirements gathering, competitive analysis",
    ),
    AgentDefinition(
        id="pm",
        name="John",
        title="Product Manager",
        icon="📋",
        commands=("help", "create-prd", "create-brownfield-prd", "create-epic", "create-story", "doc-out", "shard-prd", "exit"),
        description="Creates PRDs, product strategy, feature prioritization",
    ),
    AgentDefinition(
        id="ux-expert",
        name="Alex",
        title="UX Designer",
        icon="🎨",
        commands=("help", "create-front-end-spec", "create-mockups", "user-research", "design-review", "exit"),
        description="UI/UX design, user research, prototypes, interface design",
    ),
    AgentDefinition(
        id="architect",
        name="Sarah",
        title="Solution Architect",
        icon="🏗️",
        commands=("help", "create-architecture", "create-full-stack-architecture", "review-tech-stack", "shard-architecture", "exit"),
        description="System design, technical architecture, scalability planning",
    ),
    AgentDefinition(
        id="po",
        name="Lisa",
        title="Product Owner",
        icon="✅",
        commands=("help", "validate-story", "prioritize-backlog", "shard-doc", "acceptance-test", "exit"),
        description="Backlog management, story validation, acceptance criteria",
    ),
    AgentDefinition(
        id="sm",
        name="Bob",
        title="Scrum Master",
        icon="🏃",
        commands=("help", "draft", "story-checklist", "plan-sprint", "exit"),
        description="Story creation, epic management, agile process guidance",
    ),
    AgentDefinition(
        id="dev",
        name="James",
        title="Full Stack Developer",
        icon="💻",
        commands=("help", "develop-story", "run-tests", "explain", "exit"),
        description="Code implementation, debugging, refactoring, development best practices",
    ),
    AgentDefinition(
        id="qa",
        name="Maria",
        title="QA Specialist",
        icon="🔍",
        commands=("help", "review-story", "create-test-plan", "validate-implementation", "exit"),
        description="Test planning, quality assurance, bug validation",
    ),
    AgentDefinition(
        id="orchestrator",
        name="Orchestrator",
        title="Workflow Orchestrator",
        icon="🎭",
        commands=("help", "status", "exit"),
        description="Coordinates the team and routes work between agents",
    ),
)


def normalize_agent_id(value: str | None) -> str:
    """
    Normalize an agent reference to its id form.

    Lower-cases and replaces whitespace runs with dashes, so that display
    names like "UX Expert" and ids like "ux-expert" meet. A leading "@"
    (chat mention syntax) is dropped. Empty input yields "unknown".
    """
    if not value:
        return UNKNOWN_AGENT_ID
    normalized = re.sub(r"\s*/\s*", "/", value.strip().lower())
    normalized = re.sub(r"\s+", "-", normalized).lstrip("@")
    return normalized or UNKNOWN_AGENT_ID


class AgentCatalog:
    """
    Read-only registry of agent definitions.

    Lookups accept any spelling that normalizes to the agent id.

    Example:
        >>> catalog = AgentCatalog.default()
        >>> catalog.get("pm").title
        'Product Manager'
    """

    def __init__(self, agents: Iterable[AgentDefinition]):
        self._agents: dict[str, AgentDefinition] = {}
        for agent in agents:
            self._agents[normalize_agent_id(agent.id)] = agent

    @classmethod
    def default(cls) -> "AgentCatalog":
        return cls(DEFAULT_AGENTS)

    def __contains__(self, agent_id: str) -> bool:
        return normalize_agent_id(agent_id) in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def get(self, agent_id: str) -> AgentDefinition:
        """
        Get an agent definition.

        Raises:
            NotFoundError: If the agent is not in the catalog
        """
        agent = self._agents.get(normalize_agent_id(agent_id))
        if agent is None:
            raise NotFoundError(f"Agent '{agent_id}' not found")
        return agent

    def find(self, agent_id: str) -> AgentDefinition | None:
        return self._agents.get(normalize_agent_id(agent_id))

    def list_agents(self) -> list[AgentDefinition]:
        return list(self._agents.values())

    def resolve_id(self, reference: str | None) -> str:
        """
        Map an agent reference (id, persona name or title) to an agent id.

        References that match no catalog entry are returned normalized, so
        agents outside the catalog keep a stable id.
        """
        normalized = normalize_agent_id(reference)
        if normalized in self._agents:
            return normalized
        for agent_id, agent in self._agents.items():
            if normalized in (normalize_agent_id(agent.name), normalize_agent_id(agent.title)):
                return agent_id
        return normalized

    def display_name(self, agent_id: str) -> str:
        agent = self.find(agent_id)
        return agent.name if agent else agent_id

    def role(self, agent_id: str) -> str:
        agent = self.find(agent_id)
        return agent.title if agent else DEFAULT_AGENT_ROLE

    def icon(self, agent_id: str) -> str:
        agent = self.find(agent_id)
        return agent.icon if agent else DEFAULT_AGENT_ICON
