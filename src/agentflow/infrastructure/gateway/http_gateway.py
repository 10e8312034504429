"""
HTTP Command Gateway

Implements CommandGatewayProtocol on top of httpx.AsyncClient:

- POST {base_url}{execute_path} with the command payload (JSON)
- GET {base_url}{metadata_path}?type=templates|files for parameter pickers

Failures are mapped onto the domain error taxonomy here, so nothing above
this adapter ever sees an httpx exception.
"""

from typing import Any, Optional

import httpx
import structlog

from agentflow.core.domain.exceptions import ProtocolError, TransportError
from agentflow.core.domain.results import CommandRequest, GatewayResponse, decode_envelope

logger = structlog.get_logger()

DEFAULT_EXECUTE_PATH = "/api/bmad/commands/execute"
DEFAULT_METADATA_PATH = "/api/bmad/commands/metadata"


class HttpCommandGateway:
    """
    Command gateway talking JSON over HTTP.

    Example:
        >>> gateway = HttpCommandGateway("http://localhost:3000")
        >>> response = await gateway.execute_command(request)
        >>> await gateway.close()
    """

    def __init__(
        self,
        base_url: str,
        execute_path: str = DEFAULT_EXECUTE_PATH,
        metadata_path: str = DEFAULT_METADATA_PATH,
        timeout_seconds: float = 60.0,
        headers: Optional[dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: Base URL of the agent backend
            execute_path: Path of the command execution endpoint
            metadata_path: Path of the template/file metadata endpoint
            timeout_seconds: HTTP timeout of a single request
            headers: Extra headers (e.g. Authorization) sent with every request
            client: Preconfigured client (tests inject one with a MockTransport)
        """
        self.execute_path = execute_path
        self.metadata_path = metadata_path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
        )
        self.logger = logger.bind(component="http_gateway", base_url=base_url)

    async def execute_command(self, request: CommandRequest) -> GatewayResponse:
        """
        Submit a command and decode the response envelope.

        Raises:
            TransportError: Network failure, timeout or HTTP status >= 400
            ProtocolError: Body is not JSON or not a valid envelope
            AgentExecutionError: Envelope reports a failed execution
        """
        self.logger.debug(
            "gateway.request",
            agent=request.agent,
            command=request.command,
            conversation_id=request.conversation_id,
        )

        try:
            response = await self._client.post(self.execute_path, json=request.to_payload())
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to agent backend timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Could not reach agent backend: {e}") from e

        if response.status_code >= 400:
            raise TransportError(
                self._error_message(response), status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProtocolError(f"Agent backend returned a non-JSON body: {e}") from e

        return decode_envelope(body)

    async def list_templates(self) -> list[dict[str, Any]]:
        return await self._fetch_metadata("templates")

    async def list_files(self) -> list[dict[str, Any]]:
        return await self._fetch_metadata("files")

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCommandGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _fetch_metadata(self, kind: str) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(self.metadata_path, params={"type": kind})
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("gateway.metadata.unavailable", kind=kind, error=str(e))
            return []

        items = body.get(kind) if isinstance(body, dict) else None
        if not isinstance(items, list):
            self.logger.warning("gateway.metadata.malformed", kind=kind)
            return []
        return [item for item in items if isinstance(item, dict)]

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("error") or body.get("message") or body.get("detail")
            if detail:
                return f"HTTP {response.status_code}: {detail}"
        return f"HTTP {response.status_code}: {response.reason_phrase or 'request failed'}"
