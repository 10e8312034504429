"""
Domain Exceptions

Error taxonomy for the orchestration core. Every error raised by the
catalog, the gateway, the tracker or the conversation controller derives
from OrchestrationError so entrypoints (CLI/API) can catch one base type.

- ValidationError: bad input detected locally, before any network call
- TransportError: network failure, timeout or non-success HTTP status
- ProtocolError: gateway response is not decodable into a known result
- AgentExecutionError: gateway answered, but the agent reported a failure
- NotFoundError: operation on an unknown id (agent, handoff, ...)
- ExecutionInProgressError: a conversation already has a call outstanding
"""


class OrchestrationError(Exception):
    """Base class for all orchestration errors."""


class ValidationError(OrchestrationError):
    """Input rejected before reaching the command gateway."""


class TransportError(OrchestrationError):
    """Network, timeout or HTTP-status failure talking to the gateway."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(OrchestrationError):
    """Gateway response body could not be decoded."""


class AgentExecutionError(OrchestrationError):
    """The agent backend reported that the command failed."""


class NotFoundError(OrchestrationError):
    """Referenced entity does not exist."""


class ExecutionInProgressError(OrchestrationError):
    """A command is already outstanding for this conversation."""
