"""
Status and result models.

Tracks confirmation status of a signature, the outcome of each submission
attempt, and the final result reported to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional


class ConfirmationStatus(str, Enum):
    """Ledger commitment level reached by a signature."""
    UNKNOWN = "unknown"           # No record yet
    PROCESSED = "processed"       # Seen but not committed
    CONFIRMED = "confirmed"       # Voted on by a supermajority
    FINALIZED = "finalized"       # Rooted

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_landed(self) -> bool:
        """Check if this status counts as terminal success."""
        return self in (ConfirmationStatus.CONFIRMED, ConfirmationStatus.FINALIZED)

    def advance(self, observed: "ConfirmationStatus") -> "ConfirmationStatus":
        """Return the later of two statuses; statuses never regress."""
        return observed if observed.rank > self.rank else self

    @classmethod
    def from_rpc(cls, value: Optional[str]) -> "ConfirmationStatus":
        """Map an RPC confirmationStatus string, None meaning no status."""
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


_STATUS_RANK = {
    ConfirmationStatus.UNKNOWN: 0,
    ConfirmationStatus.PROCESSED: 1,
    ConfirmationStatus.CONFIRMED: 2,
    ConfirmationStatus.FINALIZED: 3,
}


class AttemptOutcome(str, Enum):
    """Outcome of a single outer submission attempt."""
    CHECKPOINT_FAILED = "checkpoint_failed"   # Balance or blockhash query failed
    SUBMIT_FAILED = "submit_failed"           # Relay rejected or unreachable
    NOT_LANDED = "not_landed"                 # Poll budget exhausted
    LANDED = "landed"                         # Confirmed or finalized
    UNCONFIRMED = "unconfirmed"               # Accepted by relay, polling skipped


class PollOutcome(str, Enum):
    """Outcome of a confirmation poll loop."""
    LANDED = "landed"
    NOT_LANDED = "not_landed"


@dataclass
class PollResult:
    """
    Result of polling a signature.

    Attributes:
        outcome: Whether the signature landed within the poll budget
        status: Highest status observed
        polls: Number of status queries performed
        transport_errors: Number of polls whose query failed
        ledger_unreachable: Whether consecutive failures reached the alert threshold
        transaction_error: Execution error reported for a landed transaction
    """

    outcome: PollOutcome
    status: ConfirmationStatus
    polls: int
    transport_errors: int = 0
    ledger_unreachable: bool = False
    transaction_error: Optional[Any] = None

    @property
    def landed(self) -> bool:
        return self.outcome == PollOutcome.LANDED


@dataclass
class AttemptRecord:
    """
    Operator-facing record of one submission attempt. Not persisted.

    Attributes:
        attempt: Attempt index, starting at 0
        outcome: What happened on this attempt
        signature: Primary transaction signature, once a bundle was built
        bundle_id: Relay bundle ID, once accepted
        status: Highest confirmation status observed
        polls: Status queries performed
        error: Error message for failed attempts
    """

    attempt: int
    outcome: AttemptOutcome
    signature: Optional[str] = None
    bundle_id: Optional[str] = None
    status: ConfirmationStatus = ConfirmationStatus.UNKNOWN
    polls: int = 0
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "attempt": self.attempt,
            "outcome": self.outcome.value,
            "signature": self.signature,
            "bundle_id": self.bundle_id,
            "status": self.status.value,
            "polls": self.polls,
            "error": self.error,
            "finished_at": self.finished_at.isoformat(),
        }


@dataclass
class SubmissionResult:
    """
    Final result of a successful send-and-confirm call.

    `confirmed` is False only in skip-confirm mode, where relay acceptance
    stands in for ledger confirmation.
    """

    signature: str
    confirmed: bool
    status: ConfirmationStatus
    bundle_id: Optional[str] = None
    attempts: List[AttemptRecord] = field(default_factory=list)
    transaction_error: Optional[Any] = None

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "signature": self.signature,
            "confirmed": self.confirmed,
            "status": self.status.value,
            "bundle_id": self.bundle_id,
            "transaction_error": self.transaction_error,
            "attempts": [a.to_dict() for a in self.attempts],
        }
