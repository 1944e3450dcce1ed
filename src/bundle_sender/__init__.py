"""
Solana Bundle Sender

Submits a transaction to Solana through the Jito block engine as a bundle
(the transaction plus a tip transfer) and confirms that it landed, retrying
with freshly signed bundles when it does not.
"""

__version__ = "0.1.0"

from bundle_sender.core.coordinator import RetryCoordinator, SubmissionSession
from bundle_sender.core.status import ConfirmationStatus, SubmissionResult
from bundle_sender.core.bundle import Bundle

__all__ = [
    "RetryCoordinator",
    "SubmissionSession",
    "ConfirmationStatus",
    "SubmissionResult",
    "Bundle",
]
