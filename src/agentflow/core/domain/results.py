"""
Command Results

The gateway answers a command with one of three result shapes. They are
decoded once, at the gateway boundary, into a closed set of types so the
conversation controller switches on the type instead of probing fields:

- AgentResponse: standard terminal answer (type absent or "agent_response")
- ElicitationRequest: the agent needs user input before it can finish
- DocumentCreated: the agent produced a document artifact (terminal)

Envelopes reporting a failure are turned into AgentExecutionError, bodies
that do not fit the protocol into ProtocolError.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from agentflow.core.domain.exceptions import AgentExecutionError, ProtocolError
from agentflow.core.domain.models import ElicitationOption

CONTINUE_CONVERSATION_COMMAND = "continue-conversation"

DEFAULT_RESPONSE_MESSAGE = "Command executed successfully"
DEFAULT_DOCUMENT_MESSAGE = "Document created successfully"


class ResultType(str, Enum):
    """Discriminator values of ``result.type``."""

    AGENT_RESPONSE = "agent_response"
    ELICITATION_REQUEST = "elicitation_request"
    DOCUMENT_CREATED = "document_created"


# Result types the backend uses to report a failed agent run inside a
# successful envelope.
_FAILURE_TYPES = frozenset({"error", "execution_error"})


@dataclass(frozen=True)
class AgentResponse:
    message: str
    artifacts: tuple[dict[str, Any], ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    type = ResultType.AGENT_RESPONSE


@dataclass(frozen=True)
class ElicitationRequest:
    message: str
    options: tuple[ElicitationOption, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    type = ResultType.ELICITATION_REQUEST


@dataclass(frozen=True)
class DocumentCreated:
    message: str
    artifact: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    type = ResultType.DOCUMENT_CREATED


CommandResult = Union[AgentResponse, ElicitationRequest, DocumentCreated]


@dataclass(frozen=True)
class CommandRequest:
    """
    A command submission to the gateway.

    Attributes:
        agent: Agent id executing the command
        command: Command id (or ``continue-conversation``)
        context: userPrompt/userResponse, template, file and extra parameters
        workflow_id: Workflow the execution belongs to, if any
        conversation_id: Dialogue the call belongs to
    """

    agent: str
    command: str
    context: dict[str, Any]
    workflow_id: str | None
    conversation_id: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "agent": self.agent,
            "command": self.command,
            "context": self.context,
            "workflowId": self.workflow_id,
            "conversationId": self.conversation_id,
        }


@dataclass(frozen=True)
class GatewayResponse:
    """Decoded success envelope."""

    result: CommandResult
    conversation_id: str | None = None
    workflow_id: str | None = None


def parse_options(raw_options: Any) -> tuple[ElicitationOption, ...]:
    """
    Normalize elicitation options into numbered choices.

    Options arrive either as plain strings (numbered 1..N in order) or as
    mappings with ``number`` and ``text``/``label``.
    """
    if raw_options is None:
        return ()
    if not isinstance(raw_options, list):
        raise ProtocolError(f"options must be a list, got {type(raw_options).__name__}")

    options = []
    for index, item in enumerate(raw_options, start=1):
        if isinstance(item, str):
            options.append(ElicitationOption(number=index, text=item))
        elif isinstance(item, dict):
            text = item.get("text") or item.get("label") or item.get("value")
            if not isinstance(text, str):
                raise ProtocolError(f"option {index} has no text")
            number = item.get("number", index)
            try:
                number = int(number)
            except (TypeError, ValueError):
                raise ProtocolError(f"option {index} has an invalid number: {number!r}")
            options.append(ElicitationOption(number=number, text=text))
        else:
            raise ProtocolError(f"option {index} has unsupported type {type(item).__name__}")
    return tuple(options)


def _extract_artifact(result: dict[str, Any]) -> dict[str, Any]:
    artifact = result.get("artifact")
    if isinstance(artifact, dict):
        return dict(artifact)

    artifacts = result.get("artifacts")
    if isinstance(artifacts, list) and artifacts and isinstance(artifacts[0], dict):
        return dict(artifacts[0])

    derived = {}
    if result.get("documentPath"):
        derived["path"] = result["documentPath"]
    if result.get("documentType"):
        derived["type"] = result["documentType"]
    return derived


def decode_result(result: Any) -> CommandResult:
    """Decode the ``result`` member of a success envelope."""
    if result is None:
        return AgentResponse(message=DEFAULT_RESPONSE_MESSAGE)
    if not isinstance(result, dict):
        raise ProtocolError(f"result must be an object, got {type(result).__name__}")

    result_type = result.get("type")
    message = result.get("message")
    if message is not None and not isinstance(message, str):
        raise ProtocolError("result.message must be a string")

    if result_type in _FAILURE_TYPES:
        detail = result.get("details") or result.get("error") or message
        raise AgentExecutionError(str(detail or "Agent execution failed"))

    if result_type is None or result_type == ResultType.AGENT_RESPONSE.value:
        artifacts = result.get("artifacts") or []
        return AgentResponse(
            message=message or DEFAULT_RESPONSE_MESSAGE,
            artifacts=tuple(a for a in artifacts if isinstance(a, dict)),
            raw=result,
        )

    if result_type == ResultType.ELICITATION_REQUEST.value:
        if not message:
            raise ProtocolError("elicitation_request without a message")
        return ElicitationRequest(
            message=message,
            options=parse_options(result.get("options")),
            raw=result,
        )

    if result_type == ResultType.DOCUMENT_CREATED.value:
        return DocumentCreated(
            message=message or DEFAULT_DOCUMENT_MESSAGE,
            artifact=_extract_artifact(result),
            raw=result,
        )

    raise ProtocolError(f"Unknown result type: {result_type!r}")


def decode_envelope(body: Any) -> GatewayResponse:
    """
    Decode a command execution response body.

    Args:
        body: Parsed JSON body returned by the gateway

    Returns:
        GatewayResponse wrapping the typed result

    Raises:
        ProtocolError: If the body does not follow the envelope format
        AgentExecutionError: If the envelope reports a failed execution
    """
    if not isinstance(body, dict):
        raise ProtocolError(f"Response body must be an object, got {type(body).__name__}")
    if "success" not in body:
        raise ProtocolError("Response body lacks the 'success' flag")

    if not body["success"]:
        error = body.get("error") or body.get("message") or "Command execution failed"
        raise AgentExecutionError(str(error))

    return GatewayResponse(
        result=decode_result(body.get("result")),
        conversation_id=body.get("conversationId"),
        workflow_id=body.get("workflowId"),
    )
