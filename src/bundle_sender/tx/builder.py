"""
Transaction Assembler - constructs the bundle transactions.

Builds the primary transaction from caller instructions and the tip transfer,
both against the same recency checkpoint.
"""

from typing import List, Optional, Sequence

import structlog

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from bundle_sender.config import SenderConfig, get_config
from bundle_sender.core.bundle import Bundle, SignedTransaction
from bundle_sender.node.interface import RecencyCheckpoint
from bundle_sender.tx.signer import BundleSigner

logger = structlog.get_logger(__name__)


class TransactionBuildError(Exception):
    """Raised when transaction construction fails."""
    pass


class TransactionAssembler:
    """
    Builds and signs bundle transactions.

    Instructions are embedded verbatim; their contents are never inspected,
    so malformed instructions only surface when the ledger rejects them.
    """

    def __init__(
        self,
        signer: BundleSigner,
        tip_account: Pubkey,
        tip_lamports: int,
        config: Optional[SenderConfig] = None,
    ):
        """
        Initialize the assembler.

        Args:
            signer: Holder of the transaction and tip keys
            tip_account: Destination of the tip transfer
            tip_lamports: Fixed tip amount
            config: Sender configuration (compute budget settings)
        """
        self.signer = signer
        self.tip_account = tip_account
        self.tip_lamports = tip_lamports
        self.config = config or get_config()

    def _compute_budget_instructions(self) -> List[Instruction]:
        """Compute budget instructions for the configured fee settings."""
        instructions = []
        if self.config.compute_unit_limit is not None:
            instructions.append(set_compute_unit_limit(self.config.compute_unit_limit))
        if self.config.priority_fee > 0:
            instructions.append(set_compute_unit_price(self.config.priority_fee))
        return instructions

    def build_primary(
        self,
        instructions: Sequence[Instruction],
        checkpoint: RecencyCheckpoint,
    ) -> SignedTransaction:
        """
        Build the primary transaction, signed by the transaction key.

        Args:
            instructions: Non-empty ordered list of instructions
            checkpoint: Freshly fetched recency checkpoint

        Returns:
            Signed primary transaction

        Raises:
            TransactionBuildError: If there are no instructions or no key
        """
        if not self.signer.is_loaded:
            raise TransactionBuildError("Signer keys not loaded")

        if not instructions:
            raise TransactionBuildError("Cannot build transaction without instructions")

        payer = self.signer.tx_pubkey
        all_instructions = self._compute_budget_instructions() + list(instructions)

        message = Message.new_with_blockhash(all_instructions, payer, checkpoint.blockhash)
        tx = self.signer.sign_primary(message, checkpoint.blockhash)

        return SignedTransaction(
            transaction=tx,
            instructions=all_instructions,
            fee_payer=payer,
            checkpoint=checkpoint,
        )

    def build_tip(self, checkpoint: RecencyCheckpoint) -> SignedTransaction:
        """
        Build the tip transfer, signed by the tip key.

        Args:
            checkpoint: The checkpoint used for the primary transaction

        Returns:
            Signed tip transaction
        """
        if not self.signer.is_loaded:
            raise TransactionBuildError("Signer keys not loaded")

        payer = self.signer.tip_pubkey
        tip_ix = transfer(
            TransferParams(
                from_pubkey=payer,
                to_pubkey=self.tip_account,
                lamports=self.tip_lamports,
            )
        )

        message = Message.new_with_blockhash([tip_ix], payer, checkpoint.blockhash)
        tx = self.signer.sign_tip(message, checkpoint.blockhash)

        return SignedTransaction(
            transaction=tx,
            instructions=[tip_ix],
            fee_payer=payer,
            checkpoint=checkpoint,
        )

    def build_bundle(
        self,
        instructions: Sequence[Instruction],
        checkpoint: RecencyCheckpoint,
    ) -> Bundle:
        """
        Build a complete bundle against one checkpoint.

        Args:
            instructions: Caller instructions for the primary transaction
            checkpoint: Freshly fetched recency checkpoint

        Returns:
            Bundle of the primary and tip transactions
        """
        primary = self.build_primary(instructions, checkpoint)
        tip = self.build_tip(checkpoint)
        bundle = Bundle(primary=primary, tip=tip)

        logger.debug(
            "bundle_assembled",
            signature=str(bundle.signature),
            blockhash=str(checkpoint.blockhash),
            instruction_count=len(primary.instructions),
            tip_lamports=self.tip_lamports,
        )

        return bundle
