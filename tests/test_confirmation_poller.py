"""
Test suite for confirmation polling.

Tests the status state machine, the poll budget, and the handling of
ledger query failures.
"""

import asyncio
import json

import httpx
import pytest
from solders.signature import Signature

from bundle_sender.config import SenderConfig
from bundle_sender.core.poller import ConfirmationPoller, SubmissionCancelledError
from bundle_sender.core.status import ConfirmationStatus, PollOutcome
from bundle_sender.node.interface import NodeConnectionError
from bundle_sender.node.solana_rpc import SolanaRpcAdapter

from conftest import FakeLedger


SIGNATURE = Signature.default()


def make_poller(ledger: FakeLedger, retries: int = 4, alert_threshold: int = 3) -> ConfirmationPoller:
    return ConfirmationPoller(
        ledger=ledger,
        confirm_retries=retries,
        delay_seconds=0,
        alert_threshold=alert_threshold,
    )


# ============================================================================
# Test Confirmation Status
# ============================================================================

class TestConfirmationStatus:
    """Tests for the status ordering."""

    def test_landed_statuses(self):
        assert ConfirmationStatus.CONFIRMED.is_landed
        assert ConfirmationStatus.FINALIZED.is_landed
        assert not ConfirmationStatus.PROCESSED.is_landed
        assert not ConfirmationStatus.UNKNOWN.is_landed

    def test_advance_never_regresses(self):
        """Test that a lower observed status is ignored."""
        status = ConfirmationStatus.CONFIRMED

        assert status.advance(ConfirmationStatus.PROCESSED) == ConfirmationStatus.CONFIRMED
        assert status.advance(ConfirmationStatus.UNKNOWN) == ConfirmationStatus.CONFIRMED
        assert status.advance(ConfirmationStatus.FINALIZED) == ConfirmationStatus.FINALIZED

    def test_from_rpc(self):
        assert ConfirmationStatus.from_rpc(None) == ConfirmationStatus.UNKNOWN
        assert ConfirmationStatus.from_rpc("processed") == ConfirmationStatus.PROCESSED
        assert ConfirmationStatus.from_rpc("Finalized") == ConfirmationStatus.FINALIZED
        assert ConfirmationStatus.from_rpc("bogus") == ConfirmationStatus.UNKNOWN


# ============================================================================
# Test Confirmation Poller
# ============================================================================

class TestConfirmationPoller:
    """Tests for the poll loop."""

    @pytest.mark.asyncio
    async def test_finalized_on_first_poll(self):
        """Test success on the first Finalized report."""
        ledger = FakeLedger()
        ledger.status_script = ["finalized"]

        result = await make_poller(ledger).poll(SIGNATURE)

        assert result.outcome == PollOutcome.LANDED
        assert result.landed is True
        assert result.status == ConfirmationStatus.FINALIZED
        assert result.polls == 1
        assert ledger.status_calls == 1
        assert ledger.queried_signatures == [SIGNATURE]

    @pytest.mark.asyncio
    async def test_confirmed_stops_early(self):
        """Test that Confirmed ends polling regardless of remaining budget."""
        ledger = FakeLedger()
        ledger.status_script = [None, "processed", "confirmed", "finalized"]

        result = await make_poller(ledger, retries=10).poll(SIGNATURE)

        assert result.landed is True
        assert result.status == ConfirmationStatus.CONFIRMED
        assert result.polls == 3
        assert ledger.status_calls == 3

    @pytest.mark.asyncio
    async def test_no_status_exhausts_budget(self):
        """Test exactly C polls and a not-landed outcome when nothing is seen."""
        ledger = FakeLedger()

        result = await make_poller(ledger, retries=4).poll(SIGNATURE)

        assert result.outcome == PollOutcome.NOT_LANDED
        assert result.status == ConfirmationStatus.UNKNOWN
        assert result.polls == 4
        assert ledger.status_calls == 4

    @pytest.mark.asyncio
    async def test_processed_is_not_success(self):
        """Test that Processed keeps polling without resetting the budget."""
        ledger = FakeLedger()
        ledger.status_script = ["processed"] * 4

        result = await make_poller(ledger, retries=4).poll(SIGNATURE)

        assert result.outcome == PollOutcome.NOT_LANDED
        assert result.status == ConfirmationStatus.PROCESSED
        assert ledger.status_calls == 4

    @pytest.mark.asyncio
    async def test_status_does_not_regress(self):
        """Test that a later lower report does not lower the result."""
        ledger = FakeLedger()
        ledger.status_script = ["processed", None, None]

        result = await make_poller(ledger, retries=3).poll(SIGNATURE)

        assert result.status == ConfirmationStatus.PROCESSED

    @pytest.mark.asyncio
    async def test_transport_error_consumes_poll(self):
        """Test that a failed query is absorbed and counted."""
        ledger = FakeLedger()
        ledger.status_script = [NodeConnectionError("timeout"), "confirmed"]

        result = await make_poller(ledger).poll(SIGNATURE)

        assert result.landed is True
        assert result.polls == 2
        assert result.transport_errors == 1
        assert result.ledger_unreachable is False

    @pytest.mark.asyncio
    async def test_transport_errors_never_abort(self):
        """Test that only failures still run the full budget."""
        ledger = FakeLedger()
        ledger.status_script = [NodeConnectionError("down")] * 4

        result = await make_poller(ledger, retries=4).poll(SIGNATURE)

        assert result.outcome == PollOutcome.NOT_LANDED
        assert result.polls == 4
        assert result.transport_errors == 4

    @pytest.mark.asyncio
    async def test_ledger_unreachable_after_consecutive_errors(self):
        """Test that consecutive failures are flagged separately."""
        ledger = FakeLedger()
        ledger.status_script = [NodeConnectionError("down")] * 3 + [None]

        result = await make_poller(ledger, retries=4, alert_threshold=3).poll(SIGNATURE)

        assert result.outcome == PollOutcome.NOT_LANDED
        assert result.ledger_unreachable is True

    @pytest.mark.asyncio
    async def test_malformed_rpc_result_consumes_poll(self):
        """Test that a null RPC result is treated like any failed query."""
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": None})

        config = SenderConfig(rpc_url="http://rpc.test")
        ledger = SolanaRpcAdapter(config, transport=httpx.MockTransport(handler))
        poller = ConfirmationPoller(ledger, confirm_retries=3, delay_seconds=0)

        result = await poller.poll(SIGNATURE)
        await ledger.disconnect()

        assert result.outcome == PollOutcome.NOT_LANDED
        assert result.polls == 3
        assert result.transport_errors == 3
        assert result.ledger_unreachable is True

    @pytest.mark.asyncio
    async def test_interleaved_errors_not_unreachable(self):
        """Test that a successful query resets the consecutive count."""
        ledger = FakeLedger()
        ledger.status_script = [
            NodeConnectionError("down"),
            NodeConnectionError("down"),
            None,
            NodeConnectionError("down"),
        ]

        result = await make_poller(ledger, retries=4, alert_threshold=3).poll(SIGNATURE)

        assert result.transport_errors == 3
        assert result.ledger_unreachable is False

    @pytest.mark.asyncio
    async def test_landed_with_execution_error(self):
        """Test that a failed-but-landed transaction is still terminal."""
        ledger = FakeLedger()
        ledger.status_script = ["confirmed"]
        ledger.status_errors = [{"InstructionError": [0, "Custom"]}]

        result = await make_poller(ledger).poll(SIGNATURE)

        assert result.landed is True
        assert result.transaction_error == {"InstructionError": [0, "Custom"]}

    @pytest.mark.asyncio
    async def test_cancellation(self):
        """Test that a set cancel event stops polling before the next query."""
        ledger = FakeLedger()
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(SubmissionCancelledError):
            await make_poller(ledger).poll(SIGNATURE, cancel_event=cancel)

        assert ledger.status_calls == 0

    @pytest.mark.asyncio
    async def test_delay_is_cooperative(self):
        """Test that other tasks run while the poller waits."""
        ledger = FakeLedger()
        poller = ConfirmationPoller(ledger, confirm_retries=2, delay_seconds=0.01)
        ticks = []

        async def ticker():
            for _ in range(3):
                ticks.append(1)
                await asyncio.sleep(0)

        await asyncio.gather(poller.poll(SIGNATURE), ticker())

        assert len(ticks) == 3
        assert ledger.status_calls == 2

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            ConfirmationPoller(FakeLedger(), confirm_retries=0, delay_seconds=0)
