"""
Node Integration Layer.

Provides abstracted access to the Solana ledger and to the bundle relay.
"""

from bundle_sender.node.interface import (
    LedgerInterface,
    RelayInterface,
    RecencyCheckpoint,
    SignatureStatusInfo,
    NodeConnectionError,
    BundleSubmitError,
)
from bundle_sender.node.solana_rpc import SolanaRpcAdapter
from bundle_sender.node.block_engine import BlockEngineAdapter

__all__ = [
    "LedgerInterface",
    "RelayInterface",
    "RecencyCheckpoint",
    "SignatureStatusInfo",
    "NodeConnectionError",
    "BundleSubmitError",
    "SolanaRpcAdapter",
    "BlockEngineAdapter",
]
