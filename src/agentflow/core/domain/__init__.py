"""Domain models, results, exceptions and the agent/command registries."""

from .exceptions import (
    AgentExecutionError,
    ExecutionInProgressError,
    NotFoundError,
    OrchestrationError,
    ProtocolError,
    TransportError,
    ValidationError,
)

__all__ = [
    "OrchestrationError",
    "ValidationError",
    "TransportError",
    "ProtocolError",
    "AgentExecutionError",
    "NotFoundError",
    "ExecutionInProgressError",
]
