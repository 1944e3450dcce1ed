"""
Bundle model.

Represents the two signed transactions sent to the relay as one atomic unit.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from bundle_sender.node.interface import RecencyCheckpoint


@dataclass(frozen=True)
class SignedTransaction:
    """
    A transaction signed against a specific recency checkpoint.

    Immutable once signed; a new checkpoint requires a new SignedTransaction.

    Attributes:
        transaction: The signed solders transaction
        instructions: Instructions in the order they were compiled
        fee_payer: Account paying the network fee
        checkpoint: Checkpoint the transaction was signed against
    """

    transaction: Transaction
    instructions: List[Instruction]
    fee_payer: Pubkey
    checkpoint: RecencyCheckpoint

    @property
    def signature(self) -> Signature:
        """Fee payer signature, which identifies the transaction on the ledger."""
        return self.transaction.signatures[0]

    @property
    def signatures(self) -> List[Signature]:
        """All signatures on the transaction."""
        return list(self.transaction.signatures)

    def serialize(self) -> bytes:
        """Wire-format bytes of the signed transaction."""
        return bytes(self.transaction)

    def to_base64(self) -> str:
        """Base64 wire encoding, as accepted by the relay."""
        return base64.b64encode(self.serialize()).decode("ascii")


@dataclass
class Bundle:
    """
    The primary transaction plus the tip transfer.

    Both transactions share one checkpoint so that they expire together.
    A bundle is built fresh for every submission attempt and never resent.

    Attributes:
        primary: Transaction carrying the caller's instructions
        tip: Tip transfer to the relay's tip account
        bundle_id: ID assigned by the relay on acceptance
        created_at: When the bundle was assembled
    """

    primary: SignedTransaction
    tip: SignedTransaction
    bundle_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        """Validate after initialization."""
        if self.primary.checkpoint != self.tip.checkpoint:
            raise ValueError("Bundle transactions must share one recency checkpoint")

    @property
    def checkpoint(self) -> RecencyCheckpoint:
        """Checkpoint shared by both transactions."""
        return self.primary.checkpoint

    @property
    def signature(self) -> Signature:
        """Signature of the primary transaction."""
        return self.primary.signature

    @property
    def transactions(self) -> List[SignedTransaction]:
        """Transactions in submission order."""
        return [self.primary, self.tip]

    def encoded_transactions(self) -> List[str]:
        """Base64-encoded transactions in submission order."""
        return [tx.to_base64() for tx in self.transactions]

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and display."""
        return {
            "bundle_id": self.bundle_id,
            "signature": str(self.signature),
            "tip_signature": str(self.tip.signature),
            "blockhash": str(self.checkpoint.blockhash),
            "last_valid_block_height": self.checkpoint.last_valid_block_height,
            "created_at": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"Bundle(signature={str(self.signature)[:8]}..., bundle_id={self.bundle_id})"
