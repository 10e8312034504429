"""
Command Gateway Protocol

The gateway is the network boundary in front of the agent backend. It
executes one command and returns the decoded envelope; it also answers the
read-only metadata queries used to fill command parameter pickers.

Implementations must raise TransportError for network/timeout/HTTP-status
failures, ProtocolError for undecodable bodies and AgentExecutionError for
failure envelopes. Metadata queries never raise: failures yield [].
"""

from typing import Any, Protocol

from agentflow.core.domain.results import CommandRequest, GatewayResponse


class CommandGatewayProtocol(Protocol):
    """Protocol for command execution against the agent backend."""

    async def execute_command(self, request: CommandRequest) -> GatewayResponse:
        """
        Execute a command (or a conversation continuation).

        Args:
            request: Command submission

        Returns:
            Decoded success envelope

        Raises:
            TransportError: Network failure, timeout or non-success status
            ProtocolError: Response body cannot be decoded
            AgentExecutionError: Backend reported a failed execution
        """
        ...

    async def list_templates(self) -> list[dict[str, Any]]:
        """Available document templates, or [] when unavailable."""
        ...

    async def list_files(self) -> list[dict[str, Any]]:
        """Available files/documents, or [] when unavailable."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
