"""
Confirmation Poller - watches a signature until it lands or the budget runs out.

Each poll waits a fixed delay (cooperative sleep) and then queries the
ledger once. Processed does not count as success, and a failed query
uses up its poll without ending the loop.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog

from solders.signature import Signature

from bundle_sender.core.status import ConfirmationStatus, PollOutcome, PollResult
from bundle_sender.node.interface import LedgerInterface, NodeConnectionError

logger = structlog.get_logger(__name__)


class SubmissionCancelledError(Exception):
    """Raised when a submission is cancelled between steps."""
    pass


def notify(callback: Optional[Callable[..., None]], *args: Any) -> None:
    """Run a progress callback; a failing callback is logged and ignored."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("callback_failed", callback=getattr(callback, "__name__", repr(callback)))


class ConfirmationPoller:
    """
    Polls signature status with a bounded retry count.

    Usage:
        ```python
        poller = ConfirmationPoller(ledger, confirm_retries=4, delay_seconds=2.0)
        result = await poller.poll(signature)
        if result.landed:
            ...
        ```
    """

    def __init__(
        self,
        ledger: LedgerInterface,
        confirm_retries: int,
        delay_seconds: float,
        alert_threshold: int = 3,
    ):
        """
        Initialize the poller.

        Args:
            ledger: Ledger client used for status queries
            confirm_retries: Number of polls before giving up
            delay_seconds: Delay before each poll
            alert_threshold: Consecutive query failures that mark the ledger unreachable
        """
        if confirm_retries < 1:
            raise ValueError("confirm_retries must be at least 1")

        self.ledger = ledger
        self.confirm_retries = confirm_retries
        self.delay_seconds = delay_seconds
        self.alert_threshold = alert_threshold

        self._on_poll: Optional[Callable[[Signature, int, ConfirmationStatus], None]] = None

    def on_poll(self, callback: Callable[[Signature, int, ConfirmationStatus], None]) -> None:
        """Register callback run after every poll with the current status."""
        self._on_poll = callback

    async def poll(
        self,
        signature: Signature,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PollResult:
        """
        Poll until the signature is confirmed or finalized.

        Args:
            signature: Signature of the primary transaction
            cancel_event: Optional event checked before every poll

        Returns:
            PollResult with LANDED or NOT_LANDED outcome

        Raises:
            SubmissionCancelledError: If cancel_event is set
        """
        status = ConfirmationStatus.UNKNOWN
        transport_errors = 0
        consecutive_errors = 0
        ledger_unreachable = False
        polls = 0

        for _ in range(self.confirm_retries):
            if cancel_event is not None and cancel_event.is_set():
                raise SubmissionCancelledError("Submission cancelled while polling")

            await asyncio.sleep(self.delay_seconds)
            polls += 1

            try:
                statuses = await self.ledger.get_signature_statuses([signature])
            except NodeConnectionError as e:
                transport_errors += 1
                consecutive_errors += 1
                logger.warning(
                    "status_query_failed",
                    signature=str(signature),
                    poll=polls,
                    error=str(e),
                )
                if consecutive_errors == self.alert_threshold:
                    ledger_unreachable = True
                    logger.error(
                        "ledger_unreachable",
                        signature=str(signature),
                        consecutive_errors=consecutive_errors,
                    )
                notify(self._on_poll, signature, polls, status)
                continue

            consecutive_errors = 0
            info = statuses[0] if statuses else None

            if info is None:
                logger.info("confirmation_poll", signature=str(signature), poll=polls, status="no_status")
                notify(self._on_poll, signature, polls, status)
                continue

            status = status.advance(ConfirmationStatus.from_rpc(info.confirmation_status))
            logger.info("confirmation_poll", signature=str(signature), poll=polls, status=status.value)
            notify(self._on_poll, signature, polls, status)

            if status.is_landed:
                if info.err is not None:
                    logger.warning("transaction_landed_with_error", signature=str(signature), error=info.err)
                else:
                    logger.info("transaction_landed", signature=str(signature), status=status.value)

                return PollResult(
                    outcome=PollOutcome.LANDED,
                    status=status,
                    polls=polls,
                    transport_errors=transport_errors,
                    ledger_unreachable=ledger_unreachable,
                    transaction_error=info.err,
                )

        logger.warning(
            "transaction_not_landed",
            signature=str(signature),
            polls=polls,
            status=status.value,
            transport_errors=transport_errors,
        )
        return PollResult(
            outcome=PollOutcome.NOT_LANDED,
            status=status,
            polls=polls,
            transport_errors=transport_errors,
            ledger_unreachable=ledger_unreachable,
        )
