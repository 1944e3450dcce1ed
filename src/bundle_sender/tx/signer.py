"""
Bundle Signer - holds the two signing keys of a submission session.

The transaction key pays network fees and authorizes instructions; the tip
key pays the relay tip. Keys are loaded once and never replaced.
"""

from pathlib import Path
from typing import Optional

import structlog

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from bundle_sender.config import SenderConfig, get_config

logger = structlog.get_logger(__name__)


def load_keypair(
    base58_key: Optional[str] = None,
    key_path: Optional[str] = None,
) -> Keypair:
    """
    Load a keypair from a base58 string or a JSON keypair file.

    Args:
        base58_key: Base58-encoded 64-byte secret key
        key_path: Path to a Solana CLI keypair file (JSON byte array)

    Returns:
        The loaded keypair
    """
    if base58_key:
        return Keypair.from_base58_string(base58_key.strip())

    if key_path:
        path = Path(key_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Keypair file not found: {key_path}")
        return Keypair.from_json(path.read_text().strip())

    raise ValueError("No key material provided")


class BundleSigner:
    """
    Holds the transaction-signing key and the relay-tip key.

    Supports loading keys from:
    - Base58 strings (as printed by most wallets)
    - JSON keypair files (standard Solana CLI format)
    """

    def __init__(self, config: Optional[SenderConfig] = None):
        """
        Initialize the signer.

        Args:
            config: Sender configuration
        """
        self.config = config or get_config()
        self._tx_keypair: Optional[Keypair] = None
        self._tip_keypair: Optional[Keypair] = None

    def load_keys(self, tx_keypair: Keypair, tip_keypair: Keypair) -> None:
        """
        Install both keypairs.

        Raises:
            RuntimeError: If keys are already loaded
        """
        if self.is_loaded:
            raise RuntimeError("Signer keys already loaded")

        self._tx_keypair = tx_keypair
        self._tip_keypair = tip_keypair

        logger.info(
            "signer_keys_loaded",
            tx_signer=str(tx_keypair.pubkey()),
            tip_signer=str(tip_keypair.pubkey()),
        )

    def load_from_config(self) -> None:
        """Load both keys from configuration."""
        if not (self.config.private_key or self.config.private_key_path):
            raise ValueError("No transaction signing key configured")
        if not (self.config.tip_private_key or self.config.tip_private_key_path):
            raise ValueError("No tip signing key configured")

        self.load_keys(
            load_keypair(self.config.private_key, self.config.private_key_path),
            load_keypair(self.config.tip_private_key, self.config.tip_private_key_path),
        )

    @property
    def is_loaded(self) -> bool:
        """Check if both keys are loaded."""
        return self._tx_keypair is not None and self._tip_keypair is not None

    @property
    def tx_pubkey(self) -> Optional[Pubkey]:
        """Public key of the transaction signer (fee payer)."""
        return self._tx_keypair.pubkey() if self._tx_keypair else None

    @property
    def tip_pubkey(self) -> Optional[Pubkey]:
        """Public key of the tip payer."""
        return self._tip_keypair.pubkey() if self._tip_keypair else None

    def sign_primary(self, message: Message, blockhash: Hash) -> Transaction:
        """Sign a message with the transaction key."""
        if not self._tx_keypair:
            raise RuntimeError("No signing key loaded")
        return Transaction([self._tx_keypair], message, blockhash)

    def sign_tip(self, message: Message, blockhash: Hash) -> Transaction:
        """Sign a message with the tip key."""
        if not self._tip_keypair:
            raise RuntimeError("No tip key loaded")
        return Transaction([self._tip_keypair], message, blockhash)


def generate_test_signer(config: Optional[SenderConfig] = None) -> BundleSigner:
    """
    Generate a signer with two random keys for testing.

    WARNING: Do not use in production. The keys are not persisted.

    Returns:
        BundleSigner with new random keys
    """
    signer = BundleSigner(config)
    signer.load_keys(Keypair(), Keypair())

    logger.warning("test_signer_generated", tx_signer=str(signer.tx_pubkey))

    return signer
