"""
Retry Coordinator - the send-and-confirm orchestrator.

Coordinates balance checks, checkpoint fetches, bundle assembly, relay
submission and confirmation polling under a bounded attempt budget.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import structlog

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.signature import Signature

from bundle_sender.config import SenderConfig, get_config
from bundle_sender.core.poller import ConfirmationPoller, SubmissionCancelledError, notify
from bundle_sender.core.status import (
    AttemptOutcome,
    AttemptRecord,
    ConfirmationStatus,
    SubmissionResult,
)
from bundle_sender.core.submitter import BundleSubmitter
from bundle_sender.node.block_engine import BlockEngineAdapter
from bundle_sender.node.interface import (
    BundleSubmitError,
    LedgerInterface,
    NodeConnectionError,
    RecencyCheckpoint,
    RelayInterface,
)
from bundle_sender.node.solana_rpc import SolanaRpcAdapter
from bundle_sender.tx.builder import TransactionAssembler, TransactionBuildError
from bundle_sender.tx.signer import BundleSigner

logger = structlog.get_logger(__name__)


class InsufficientBalanceError(Exception):
    """Raised when the fee payer has no balance. Never retried."""

    def __init__(self, balance: int):
        super().__init__("Insufficient SOL balance")
        self.balance = balance


class RetriesExhaustedError(Exception):
    """Raised when every submission attempt failed."""

    def __init__(self, attempts: List[AttemptRecord]):
        super().__init__("Max retries")
        self.attempts = attempts


@dataclass
class SubmissionSession:
    """
    Everything one submission flow needs, passed explicitly.

    A session owns its clients; concurrent submissions should each use
    their own session.
    """

    config: SenderConfig
    signer: BundleSigner
    ledger: LedgerInterface
    relay: RelayInterface
    tip_account: Pubkey
    tip_lamports: int

    @classmethod
    def from_config(cls, config: Optional[SenderConfig] = None) -> "SubmissionSession":
        """
        Build a session with RPC and block engine adapters from configuration.

        Raises:
            ValueError: If keys or the tip account are not configured
        """
        config = config or get_config()

        if not config.tip_account:
            raise ValueError("No tip account configured")

        signer = BundleSigner(config)
        signer.load_from_config()

        return cls(
            config=config,
            signer=signer,
            ledger=SolanaRpcAdapter(config),
            relay=BlockEngineAdapter(config),
            tip_account=Pubkey.from_string(config.tip_account),
            tip_lamports=config.tip_lamports,
        )

    async def connect(self) -> None:
        """Connect both clients."""
        await self.ledger.connect()
        await self.relay.connect()

    async def close(self) -> None:
        """Disconnect both clients."""
        await self.relay.disconnect()
        await self.ledger.disconnect()

    async def __aenter__(self) -> "SubmissionSession":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


class RetryCoordinator:
    """
    Sends a bundle and confirms it, retrying with fresh bundles.

    Each attempt fetches a new checkpoint and re-signs the same instructions,
    so no two attempts submit identical bytes. There is no backoff between
    attempts; each submission is followed by its own bounded poll loop.

    Usage:
        ```python
        async with SubmissionSession.from_config(config) as session:
            coordinator = RetryCoordinator(session)
            result = await coordinator.send_and_confirm(instructions)
        ```
    """

    def __init__(
        self,
        session: SubmissionSession,
        gateway_retries: Optional[int] = None,
        confirm_retries: Optional[int] = None,
        confirm_delay_seconds: Optional[float] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            session: Submission session (signer, clients, tip settings)
            gateway_retries: Maximum submission attempts (config default if None)
            confirm_retries: Polls per attempt (config default if None)
            confirm_delay_seconds: Delay before each poll (config default if None)
        """
        config = session.config
        self.session = session
        self.gateway_retries = gateway_retries if gateway_retries is not None else config.gateway_retries
        self.confirm_retries = confirm_retries if confirm_retries is not None else config.confirm_retries
        self.confirm_delay_seconds = (
            confirm_delay_seconds if confirm_delay_seconds is not None
            else config.confirm_delay_seconds
        )

        if self.gateway_retries < 1:
            raise ValueError("gateway_retries must be at least 1")

        self.assembler = TransactionAssembler(
            signer=session.signer,
            tip_account=session.tip_account,
            tip_lamports=session.tip_lamports,
            config=config,
        )
        self.submitter = BundleSubmitter(session.relay)
        self.poller = ConfirmationPoller(
            ledger=session.ledger,
            confirm_retries=self.confirm_retries,
            delay_seconds=self.confirm_delay_seconds,
            alert_threshold=config.transport_error_alert_threshold,
        )

        self._on_attempt_started: Optional[Callable[[int], None]] = None
        self._on_submitted: Optional[Callable[[int, str, str], None]] = None
        self._on_attempt: Optional[Callable[[AttemptRecord], None]] = None

    def on_attempt_started(self, callback: Callable[[int], None]) -> None:
        """Register callback for attempt start events."""
        self._on_attempt_started = callback

    def on_submitted(self, callback: Callable[[int, str, str], None]) -> None:
        """Register callback for relay acceptance (attempt, signature, bundle id)."""
        self._on_submitted = callback

    def on_poll(self, callback: Callable[[Signature, int, ConfirmationStatus], None]) -> None:
        """Register callback for every confirmation poll."""
        self.poller.on_poll(callback)

    def on_attempt(self, callback: Callable[[AttemptRecord], None]) -> None:
        """Register callback for finished attempts."""
        self._on_attempt = callback

    def _record(self, attempts: List[AttemptRecord], record: AttemptRecord) -> AttemptRecord:
        attempts.append(record)
        logger.info(
            "attempt_finished",
            attempt=record.attempt,
            outcome=record.outcome.value,
            signature=record.signature,
            error=record.error,
        )
        notify(self._on_attempt, record)
        return record

    async def _fetch_checkpoint(
        self,
        previous: Optional[RecencyCheckpoint],
    ) -> RecencyCheckpoint:
        """Fetch a checkpoint that differs from the previous attempt's."""
        ledger = self.session.ledger
        checkpoint = await ledger.get_latest_checkpoint()

        refetches = 0
        while previous is not None and checkpoint.blockhash == previous.blockhash:
            if refetches >= self.confirm_retries:
                raise NodeConnectionError("Ledger keeps returning the previous blockhash")
            refetches += 1
            logger.debug("stale_checkpoint", blockhash=str(checkpoint.blockhash), refetch=refetches)
            await asyncio.sleep(self.confirm_delay_seconds)
            checkpoint = await ledger.get_latest_checkpoint()

        return checkpoint

    async def send_and_confirm(
        self,
        instructions: Sequence[Instruction],
        skip_confirm: Optional[bool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionResult:
        """
        Submit instructions through the relay and wait for them to land.

        Args:
            instructions: Non-empty ordered list of instructions
            skip_confirm: Treat relay acceptance as success (config default if None)
            cancel_event: Optional event checked before every attempt and poll

        Returns:
            SubmissionResult; `confirmed` is False only when polling was skipped

        Raises:
            TransactionBuildError: If there are no instructions
            InsufficientBalanceError: If the fee payer balance is zero
            RetriesExhaustedError: If no attempt succeeded
            SubmissionCancelledError: If cancel_event was set
        """
        if not instructions:
            raise TransactionBuildError("Cannot build transaction without instructions")

        if skip_confirm is None:
            skip_confirm = self.session.config.skip_confirm

        ledger = self.session.ledger
        payer = self.session.signer.tx_pubkey
        attempts: List[AttemptRecord] = []
        previous_checkpoint: Optional[RecencyCheckpoint] = None

        for attempt in range(self.gateway_retries):
            if cancel_event is not None and cancel_event.is_set():
                raise SubmissionCancelledError("Submission cancelled")

            logger.info("submission_attempt", attempt=attempt, max_attempts=self.gateway_retries)
            notify(self._on_attempt_started, attempt)

            # Balance and checkpoint
            try:
                balance = await ledger.get_balance(payer)
                if balance <= 0:
                    logger.error("insufficient_balance", payer=str(payer), balance=balance)
                    raise InsufficientBalanceError(balance)

                checkpoint = await self._fetch_checkpoint(previous_checkpoint)
            except NodeConnectionError as e:
                self._record(attempts, AttemptRecord(
                    attempt=attempt,
                    outcome=AttemptOutcome.CHECKPOINT_FAILED,
                    error=str(e),
                ))
                continue

            previous_checkpoint = checkpoint

            bundle = self.assembler.build_bundle(instructions, checkpoint)
            signature = str(bundle.signature)
            logger.info("bundle_signed", attempt=attempt, signature=signature)

            # Submit
            try:
                bundle_id = await self.submitter.submit(bundle)
            except BundleSubmitError as e:
                self._record(attempts, AttemptRecord(
                    attempt=attempt,
                    outcome=AttemptOutcome.SUBMIT_FAILED,
                    signature=signature,
                    error=str(e),
                ))
                continue

            notify(self._on_submitted, attempt, signature, bundle_id)

            if skip_confirm:
                self._record(attempts, AttemptRecord(
                    attempt=attempt,
                    outcome=AttemptOutcome.UNCONFIRMED,
                    signature=signature,
                    bundle_id=bundle_id,
                ))
                return SubmissionResult(
                    signature=signature,
                    confirmed=False,
                    status=ConfirmationStatus.UNKNOWN,
                    bundle_id=bundle_id,
                    attempts=attempts,
                )

            # Confirm
            poll = await self.poller.poll(bundle.signature, cancel_event)

            if poll.landed:
                self._record(attempts, AttemptRecord(
                    attempt=attempt,
                    outcome=AttemptOutcome.LANDED,
                    signature=signature,
                    bundle_id=bundle_id,
                    status=poll.status,
                    polls=poll.polls,
                ))
                return SubmissionResult(
                    signature=signature,
                    confirmed=True,
                    status=poll.status,
                    bundle_id=bundle_id,
                    attempts=attempts,
                    transaction_error=poll.transaction_error,
                )

            self._record(attempts, AttemptRecord(
                attempt=attempt,
                outcome=AttemptOutcome.NOT_LANDED,
                signature=signature,
                bundle_id=bundle_id,
                status=poll.status,
                polls=poll.polls,
                error="ledger unreachable" if poll.ledger_unreachable else None,
            ))

        logger.error("retries_exhausted", attempts=len(attempts))
        raise RetriesExhaustedError(attempts)
