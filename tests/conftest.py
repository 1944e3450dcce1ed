"""
Pytest configuration and shared fixtures for the test suite.
"""

import hashlib
from typing import List, Optional, Sequence, Union

import pytest
from solders.hash import Hash
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer

from bundle_sender.config import SenderConfig, NetworkType
from bundle_sender.core.coordinator import SubmissionSession
from bundle_sender.node.interface import (
    LedgerInterface,
    RelayInterface,
    RecencyCheckpoint,
    SignatureStatusInfo,
)


TIP_ACCOUNT = Pubkey.new_unique()


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> SenderConfig:
    """Create a test configuration with no poll delay."""
    return SenderConfig(
        network=NetworkType.LOCALNET,
        block_engine_url="http://block-engine.test",
        tip_account=str(TIP_ACCOUNT),
        tip_lamports=1_000_000,
        gateway_retries=4,
        confirm_retries=4,
        confirm_delay_seconds=0,
        transport_error_alert_threshold=3,
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def make_checkpoint(index: int) -> RecencyCheckpoint:
    """Generate a deterministic, distinct checkpoint."""
    digest = hashlib.sha256(f"checkpoint-{index}".encode()).digest()
    return RecencyCheckpoint(blockhash=Hash(digest), last_valid_block_height=1_000 + index)


# Scripted status: None (no record), a status string, or an exception to raise
StatusStep = Union[None, str, Exception]


# ============================================================================
# Fake Ledger and Relay
# ============================================================================

class FakeLedger(LedgerInterface):
    """In-memory ledger for testing."""

    def __init__(self, balance: int = 5_000_000_000):
        self.balance = balance
        self.status_script: List[StatusStep] = []
        self.status_errors: List[str] = []
        self.checkpoint_errors: List[Exception] = []
        self.repeat_checkpoint = False
        self.balance_calls = 0
        self.checkpoint_calls = 0
        self.status_calls = 0
        self.queried_signatures: List[Signature] = []
        self.issued_checkpoints: List[RecencyCheckpoint] = []
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def get_balance(self, pubkey: Pubkey) -> int:
        self.balance_calls += 1
        return self.balance

    async def get_latest_checkpoint(self) -> RecencyCheckpoint:
        self.checkpoint_calls += 1
        if self.checkpoint_errors:
            raise self.checkpoint_errors.pop(0)
        if self.repeat_checkpoint and self.issued_checkpoints:
            checkpoint = self.issued_checkpoints[-1]
        else:
            checkpoint = make_checkpoint(self.checkpoint_calls)
        self.issued_checkpoints.append(checkpoint)
        return checkpoint

    async def get_signature_statuses(
        self,
        signatures: Sequence[Signature],
    ) -> List[Optional[SignatureStatusInfo]]:
        self.status_calls += 1
        self.queried_signatures.extend(signatures)

        step = self.status_script.pop(0) if self.status_script else None
        if isinstance(step, Exception):
            raise step
        if step is None:
            return [None for _ in signatures]

        err = self.status_errors.pop(0) if self.status_errors else None
        return [
            SignatureStatusInfo(slot=42, confirmations=None, err=err, confirmation_status=step)
            for _ in signatures
        ]


class FakeRelay(RelayInterface):
    """In-memory relay for testing."""

    def __init__(self):
        self.responses: List[Union[str, Exception]] = []
        self.submitted: List[List[str]] = []
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def send_bundle(self, transactions: Sequence[str]) -> str:
        self.submitted.append(list(transactions))
        response = self.responses.pop(0) if self.responses else f"bundle-{len(self.submitted)}"
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_ledger() -> FakeLedger:
    """Create a fake ledger with a positive balance."""
    return FakeLedger()


@pytest.fixture
def fake_relay() -> FakeRelay:
    """Create a fake relay that accepts every bundle."""
    return FakeRelay()


# ============================================================================
# Signer and Session
# ============================================================================

@pytest.fixture
def test_signer(test_config):
    """Create a test signer with random keys."""
    from bundle_sender.tx.signer import generate_test_signer
    return generate_test_signer(test_config)


@pytest.fixture
def session(test_config, test_signer, fake_ledger, fake_relay) -> SubmissionSession:
    """Create a session wired to the fakes."""
    return SubmissionSession(
        config=test_config,
        signer=test_signer,
        ledger=fake_ledger,
        relay=fake_relay,
        tip_account=TIP_ACCOUNT,
        tip_lamports=test_config.tip_lamports,
    )


@pytest.fixture
def sample_instruction(test_signer) -> Instruction:
    """A transfer from the transaction signer, as a stand-in caller instruction."""
    return transfer(
        TransferParams(
            from_pubkey=test_signer.tx_pubkey,
            to_pubkey=Pubkey.new_unique(),
            lamports=5_000,
        )
    )
