"""
Core submission components.

This module contains the bundle and status models, relay submission,
confirmation polling, and the send-and-confirm orchestration.
"""

from bundle_sender.core.bundle import Bundle, SignedTransaction
from bundle_sender.core.status import (
    AttemptOutcome,
    AttemptRecord,
    ConfirmationStatus,
    PollOutcome,
    PollResult,
    SubmissionResult,
)
from bundle_sender.core.submitter import BundleSubmitter
from bundle_sender.core.poller import ConfirmationPoller, SubmissionCancelledError
from bundle_sender.core.coordinator import (
    InsufficientBalanceError,
    RetriesExhaustedError,
    RetryCoordinator,
    SubmissionSession,
)

__all__ = [
    "Bundle",
    "SignedTransaction",
    "AttemptOutcome",
    "AttemptRecord",
    "ConfirmationStatus",
    "PollOutcome",
    "PollResult",
    "SubmissionResult",
    "BundleSubmitter",
    "ConfirmationPoller",
    "SubmissionCancelledError",
    "InsufficientBalanceError",
    "RetriesExhaustedError",
    "RetryCoordinator",
    "SubmissionSession",
]
