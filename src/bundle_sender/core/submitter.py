"""
Bundle Submitter - hands a bundle to the relay.

Waits for relay acknowledgement only, never for ledger confirmation.
"""

import structlog

from bundle_sender.core.bundle import Bundle
from bundle_sender.node.interface import RelayInterface, BundleSubmitError

logger = structlog.get_logger(__name__)


class BundleSubmitter:
    """Submits bundles through a connected relay client."""

    def __init__(self, relay: RelayInterface):
        self.relay = relay

    async def submit(self, bundle: Bundle) -> str:
        """
        Submit a bundle.

        Args:
            bundle: Freshly assembled bundle

        Returns:
            Bundle ID assigned by the relay

        Raises:
            BundleSubmitError: On any relay-level failure
        """
        try:
            bundle_id = await self.relay.send_bundle(bundle.encoded_transactions())
        except BundleSubmitError:
            raise
        except Exception as e:
            raise BundleSubmitError(f"Bundle submission failed: {e}") from e

        bundle.bundle_id = bundle_id

        logger.info(
            "bundle_accepted",
            bundle_id=bundle_id,
            signature=str(bundle.signature),
        )
        return bundle_id
