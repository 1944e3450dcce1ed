"""
Jito block engine adapter for bundle submission.

Submits bundles through the block engine's JSON-RPC bundles endpoint.
"""

import itertools
from typing import Any, List, Optional, Sequence

import httpx
import structlog

from bundle_sender.config import SenderConfig, get_config
from bundle_sender.node.interface import RelayInterface, BundleSubmitError

logger = structlog.get_logger(__name__)

BUNDLES_PATH = "/api/v1/bundles"


class BlockEngineAdapter(RelayInterface):
    """
    Jito block engine adapter.

    Implements the RelayInterface using the block engine JSON-RPC API.
    Authentication is not negotiated here: a pre-issued token is attached
    to every request when configured.
    """

    def __init__(
        self,
        config: Optional[SenderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the block engine adapter.

        Args:
            config: Sender configuration. Uses global config if not provided.
            transport: Custom httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.base_url = self.config.block_engine_url.rstrip("/")
        self.auth_token = self.config.block_engine_auth_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    @property
    def headers(self) -> dict:
        """Get request headers with the auth token."""
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["x-jito-auth"] = self.auth_token
        return headers

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )
        logger.info("block_engine_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("block_engine_disconnected")

    async def _rpc(self, method: str, params: list) -> Any:
        """Make a JSON-RPC call to the bundles endpoint."""
        if not self._client:
            await self.connect()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(BUNDLES_PATH, json=payload)
        except httpx.RequestError as e:
            logger.error("block_engine_request_error", method=method, error=str(e))
            raise BundleSubmitError(f"Block engine request failed: {e}", error_code="unreachable")

        if response.status_code != 200:
            logger.error(
                "block_engine_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise BundleSubmitError(
                f"Block engine error {response.status_code}: {response.text}",
                error_code=str(response.status_code),
            )

        try:
            data = response.json()
        except ValueError:
            raise BundleSubmitError(f"Block engine returned invalid JSON for {method}")

        if data.get("error"):
            error = data["error"]
            raise BundleSubmitError(
                f"Block engine rejected {method}: {error.get('message', error)}",
                error_code=str(error.get("code")) if error.get("code") is not None else None,
            )

        return data.get("result")

    async def send_bundle(self, transactions: Sequence[str]) -> str:
        """Submit a bundle without waiting for it to land."""
        result = await self._rpc(
            "sendBundle",
            [list(transactions), {"encoding": "base64"}],
        )
        if not result:
            raise BundleSubmitError("Block engine returned no bundle id")

        logger.info("bundle_sent", bundle_id=result, transactions=len(transactions))
        return result

    async def get_bundle_statuses(self, bundle_ids: List[str]) -> List[Optional[dict]]:
        """
        Look up landed bundles by ID.

        Only bundles that reached the ledger are reported; others come back as None.
        """
        result = await self._rpc("getBundleStatuses", [bundle_ids])
        return list(result.get("value", [])) if result else []
