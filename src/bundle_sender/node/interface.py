"""
Abstract interfaces for ledger and relay access.

Defines the contract the submission core relies on. Adapters implement these
against a Solana RPC node and a Jito block engine; tests implement them in memory.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature


@dataclass(frozen=True)
class RecencyCheckpoint:
    """A recent blockhash and the last block height at which it is valid."""
    blockhash: Hash
    last_valid_block_height: int


@dataclass
class SignatureStatusInfo:
    """Ledger-reported status of a single transaction signature."""
    slot: int
    confirmations: Optional[int]        # None once rooted
    err: Optional[Any]                  # Execution error, None on success
    confirmation_status: Optional[str]  # "processed", "confirmed" or "finalized"


class LedgerInterface(ABC):
    """
    Abstract interface for ledger access.

    All methods are network calls and may raise NodeConnectionError.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node."""
        pass

    @abstractmethod
    async def get_balance(self, pubkey: Pubkey) -> int:
        """
        Get the lamport balance of an account.

        Args:
            pubkey: Account public key

        Returns:
            Balance in lamports
        """
        pass

    @abstractmethod
    async def get_latest_checkpoint(self) -> RecencyCheckpoint:
        """
        Get a fresh recency checkpoint.

        Returns:
            Latest blockhash with its last valid block height
        """
        pass

    @abstractmethod
    async def get_signature_statuses(
        self,
        signatures: Sequence[Signature],
    ) -> List[Optional[SignatureStatusInfo]]:
        """
        Get statuses for a list of signatures.

        Args:
            signatures: Transaction signatures to look up

        Returns:
            One entry per signature, None where the ledger has no record
        """
        pass


class RelayInterface(ABC):
    """
    Abstract interface for a bundle relay.

    The relay client is expected to be already authenticated.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the relay."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the relay."""
        pass

    @abstractmethod
    async def send_bundle(self, transactions: Sequence[str]) -> str:
        """
        Submit base64-encoded signed transactions as one atomic bundle.

        Returns once the relay acknowledges receipt; does not wait for
        the bundle to land.

        Args:
            transactions: Base64-encoded serialized transactions, in order

        Returns:
            Bundle ID assigned by the relay

        Raises:
            BundleSubmitError: If the relay rejects the bundle or is unreachable
        """
        pass


class NodeConnectionError(Exception):
    """Raised when a ledger node request fails."""
    pass


class BundleSubmitError(Exception):
    """Raised when bundle submission to the relay fails."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
