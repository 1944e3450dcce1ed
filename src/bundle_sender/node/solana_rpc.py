"""
Solana JSON-RPC adapter for ledger access.

Provides balance, blockhash and signature status queries over HTTP.
"""

import itertools
from typing import Any, List, Optional, Sequence

import httpx
import structlog

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from bundle_sender.config import SenderConfig, get_config
from bundle_sender.node.interface import (
    LedgerInterface,
    RecencyCheckpoint,
    SignatureStatusInfo,
    NodeConnectionError,
)

logger = structlog.get_logger(__name__)


class SolanaRpcAdapter(LedgerInterface):
    """
    Solana RPC adapter.

    Implements the LedgerInterface using the Solana JSON-RPC API.
    """

    def __init__(
        self,
        config: Optional[SenderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the RPC adapter.

        Args:
            config: Sender configuration. Uses global config if not provided.
            transport: Custom httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.url = self.config.cluster_url
        self.commitment = self.config.commitment
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            timeout=self.config.request_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )

        # getHealth answers an error object when the node is behind
        try:
            await self._rpc("getHealth")
            logger.info("rpc_connected", url=self.url)
        except NodeConnectionError:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("rpc_disconnected")

    async def _rpc(self, method: str, params: Optional[list] = None) -> Any:
        """Make a JSON-RPC call and return its result."""
        if not self._client:
            await self.connect()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.RequestError as e:
            logger.error("rpc_request_error", method=method, error=str(e))
            raise NodeConnectionError(f"RPC request failed: {e}")

        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise NodeConnectionError(f"RPC error {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError:
            raise NodeConnectionError(f"RPC returned invalid JSON for {method}")

        if not isinstance(data, dict):
            raise NodeConnectionError(f"RPC {method} returned malformed result")

        if data.get("error"):
            error = data["error"]
            logger.error("rpc_error_response", method=method, error=error)
            message = error.get("message", error) if isinstance(error, dict) else error
            raise NodeConnectionError(f"RPC {method} failed: {message}")

        return data.get("result")

    def _malformed(self, method: str, error: Exception) -> NodeConnectionError:
        logger.error("rpc_malformed_result", method=method, error=str(error))
        return NodeConnectionError(f"RPC {method} returned malformed result")

    async def get_balance(self, pubkey: Pubkey) -> int:
        """Get the lamport balance of an account."""
        result = await self._rpc(
            "getBalance",
            [str(pubkey), {"commitment": self.commitment}],
        )
        try:
            return int(result["value"])
        except (TypeError, KeyError, ValueError, AttributeError) as e:
            raise self._malformed("getBalance", e)

    async def get_latest_checkpoint(self) -> RecencyCheckpoint:
        """Get the latest blockhash."""
        result = await self._rpc(
            "getLatestBlockhash",
            [{"commitment": self.commitment}],
        )

        try:
            value = result["value"]
            checkpoint = RecencyCheckpoint(
                blockhash=Hash.from_string(value["blockhash"]),
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (TypeError, KeyError, ValueError, AttributeError) as e:
            raise self._malformed("getLatestBlockhash", e)

        logger.debug(
            "checkpoint_fetched",
            blockhash=str(checkpoint.blockhash),
            last_valid_block_height=checkpoint.last_valid_block_height,
        )
        return checkpoint

    async def get_signature_statuses(
        self,
        signatures: Sequence[Signature],
    ) -> List[Optional[SignatureStatusInfo]]:
        """Get signature statuses."""
        result = await self._rpc(
            "getSignatureStatuses",
            [[str(s) for s in signatures], {"searchTransactionHistory": False}],
        )

        statuses = []
        try:
            for item in result["value"]:
                if item is None:
                    statuses.append(None)
                    continue
                statuses.append(SignatureStatusInfo(
                    slot=int(item.get("slot") or 0),
                    confirmations=item.get("confirmations"),
                    err=item.get("err"),
                    confirmation_status=item.get("confirmationStatus"),
                ))
        except (TypeError, KeyError, ValueError, AttributeError) as e:
            raise self._malformed("getSignatureStatuses", e)
        return statuses
