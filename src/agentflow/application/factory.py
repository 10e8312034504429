"""
Application Layer - Orchestrator Factory

Wires the orchestration core to its infrastructure adapters from settings:

- Agent catalog: agent definition files when ``agents_dir`` is set and
  holds any, the built-in team otherwise
- Command gateway: HttpCommandGateway against ``gateway_base_url``
- Shared ExecutionTracker and HandoffManager
- WorkflowSessionManager for the HTTP API, ConversationController for the CLI
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from agentflow.application.conversation import ConversationController
from agentflow.application.execution_tracker import ExecutionTracker
from agentflow.application.handoff_manager import HandoffManager
from agentflow.application.sessions import WorkflowSessionManager
from agentflow.config.settings import AgentflowSettings
from agentflow.core.domain.agent_catalog import AgentCatalog
from agentflow.core.domain.command_registry import CommandRegistry
from agentflow.core.interfaces.gateway import CommandGatewayProtocol
from agentflow.infrastructure.gateway.http_gateway import HttpCommandGateway
from agentflow.infrastructure.persistence.file_agent_catalog import FileAgentCatalogLoader
from agentflow.infrastructure.resources.file_resource_index import FileResourceIndex


@dataclass
class Orchestrator:
    """Fully wired set of services shared by one process."""

    settings: AgentflowSettings
    catalog: AgentCatalog
    registry: CommandRegistry
    gateway: CommandGatewayProtocol
    tracker: ExecutionTracker
    handoffs: HandoffManager
    sessions: WorkflowSessionManager
    resources: FileResourceIndex

    async def close(self) -> None:
        await self.gateway.close()


class OrchestratorFactory:
    """
    Factory for creating orchestrator services with dependency injection.

    Example:
        >>> factory = OrchestratorFactory(AgentflowSettings.load_profile("dev"))
        >>> orchestrator = factory.create_orchestrator()
        >>> controller = factory.create_controller(orchestrator)
    """

    def __init__(self, settings: Optional[AgentflowSettings] = None):
        self.settings = settings or AgentflowSettings()
        self.logger = structlog.get_logger().bind(component="orchestrator_factory")

    def create_registry(self) -> CommandRegistry:
        return CommandRegistry()

    def create_catalog(self, registry: CommandRegistry) -> AgentCatalog:
        if self.settings.agents_dir:
            agents = FileAgentCatalogLoader(self.settings.agents_dir, registry).load_agents()
            if agents:
                return AgentCatalog(agents)
            self.logger.warning(
                "catalog.fallback_to_default", agents_dir=self.settings.agents_dir
            )
        return AgentCatalog.default()

    def create_gateway(self) -> CommandGatewayProtocol:
        return HttpCommandGateway(
            base_url=self.settings.gateway_base_url,
            execute_path=self.settings.gateway_execute_path,
            metadata_path=self.settings.gateway_metadata_path,
            timeout_seconds=self.settings.command_timeout_seconds,
        )

    def create_orchestrator(
        self, gateway: Optional[CommandGatewayProtocol] = None
    ) -> Orchestrator:
        """
        Create the shared services.

        Args:
            gateway: Gateway override (tests inject mocks here)
        """
        registry = self.create_registry()
        catalog = self.create_catalog(registry)
        gateway = gateway or self.create_gateway()
        tracker = ExecutionTracker()
        handoffs = HandoffManager(tracker)
        sessions = WorkflowSessionManager(
            gateway=gateway,
            catalog=catalog,
            registry=registry,
            tracker=tracker,
            handoffs=handoffs,
            timeout_seconds=self.settings.command_timeout_seconds,
            history_size=self.settings.history_size,
        )

        self.logger.info(
            "orchestrator.created",
            agents=len(catalog),
            gateway_url=self.settings.gateway_base_url,
        )

        return Orchestrator(
            settings=self.settings,
            catalog=catalog,
            registry=registry,
            gateway=gateway,
            tracker=tracker,
            handoffs=handoffs,
            sessions=sessions,
            resources=FileResourceIndex(self.settings.templates_dir, self.settings.docs_dir),
        )

    def create_controller(
        self, orchestrator: Orchestrator, workflow_id: Optional[str] = None, **callbacks
    ) -> ConversationController:
        """Standalone controller (CLI use), sharing the orchestrator's tracker."""
        return ConversationController(
            gateway=orchestrator.gateway,
            catalog=orchestrator.catalog,
            registry=orchestrator.registry,
            tracker=orchestrator.tracker,
            workflow_id=workflow_id,
            timeout_seconds=self.settings.command_timeout_seconds,
            history_size=self.settings.history_size,
            handoffs=orchestrator.handoffs,
            **callbacks,
        )
