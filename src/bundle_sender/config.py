"""
Configuration management for the Bundle Sender.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkType(str, Enum):
    """Solana cluster types."""
    MAINNET = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"
    LOCALNET = "localnet"


class SenderConfig(BaseSettings):
    """
    Configuration settings for the Bundle Sender.

    All settings can be configured via environment variables with the BUNDLE_SENDER_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUNDLE_SENDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Ledger settings
    network: NetworkType = Field(
        default=NetworkType.MAINNET,
        description="Solana cluster to connect to"
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="Custom RPC endpoint (overrides the cluster default)"
    )
    commitment: str = Field(
        default="confirmed",
        description="Commitment level for balance and blockhash queries"
    )

    # Block engine (relay) settings
    block_engine_url: str = Field(
        default="https://mainnet.block-engine.jito.wtf",
        description="Jito block engine base URL"
    )
    block_engine_auth_token: Optional[str] = Field(
        default=None,
        description="Pre-issued block engine auth token (sent as x-jito-auth)"
    )

    # Signer settings
    private_key: Optional[str] = Field(
        default=None,
        description="Base58 private key of the transaction signer"
    )
    private_key_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON keypair file for the transaction signer"
    )
    tip_private_key: Optional[str] = Field(
        default=None,
        description="Base58 private key of the tip payer"
    )
    tip_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON keypair file for the tip payer"
    )

    # Tip settings
    tip_account: Optional[str] = Field(
        default=None,
        description="Block engine tip account public key"
    )
    tip_lamports: int = Field(
        default=1_000_000,
        ge=1,
        description="Lamports paid to the tip account per bundle"
    )

    # Compute budget settings
    priority_fee: int = Field(
        default=0,
        ge=0,
        description="Priority fee in micro-lamports per compute unit"
    )
    compute_unit_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Compute unit limit for the primary transaction"
    )

    # Retry settings
    gateway_retries: int = Field(
        default=4,
        ge=1,
        description="Maximum bundle submission attempts"
    )
    confirm_retries: int = Field(
        default=4,
        ge=1,
        description="Signature status polls per submission attempt"
    )
    confirm_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay before each signature status poll"
    )
    transport_error_alert_threshold: int = Field(
        default=3,
        ge=1,
        description="Consecutive status query failures before the ledger is reported unreachable"
    )
    skip_confirm: bool = Field(
        default=False,
        description="Treat relay acceptance as success without polling the ledger"
    )

    # HTTP settings
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for RPC and block engine requests"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def cluster_url(self) -> str:
        """Get the RPC URL based on network."""
        if self.rpc_url:
            return self.rpc_url

        network_urls = {
            NetworkType.MAINNET: "https://api.mainnet-beta.solana.com",
            NetworkType.DEVNET: "https://api.devnet.solana.com",
            NetworkType.TESTNET: "https://api.testnet.solana.com",
            NetworkType.LOCALNET: "http://127.0.0.1:8899",
        }
        return network_urls.get(self.network, "https://api.mainnet-beta.solana.com")


# Global config instance
_config: Optional[SenderConfig] = None


def get_config() -> SenderConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = SenderConfig()
    return _config


def set_config(config: SenderConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
