"""
Transaction module.

Handles key management and bundle transaction construction.
"""

from bundle_sender.tx.builder import TransactionAssembler, TransactionBuildError
from bundle_sender.tx.signer import BundleSigner, load_keypair

__all__ = [
    "TransactionAssembler",
    "TransactionBuildError",
    "BundleSigner",
    "load_keypair",
]
