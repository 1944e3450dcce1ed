"""
Command-line interface for the Bundle Sender.

Provides commands for sending transfers through the bundle path and
inspecting balances and signature statuses.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import structlog

from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer

from bundle_sender import __version__
from bundle_sender.config import NetworkType, SenderConfig, set_config
from bundle_sender.core.coordinator import (
    InsufficientBalanceError,
    RetriesExhaustedError,
    RetryCoordinator,
    SubmissionSession,
)
from bundle_sender.core.status import AttemptRecord, ConfirmationStatus
from bundle_sender.node.block_engine import BlockEngineAdapter
from bundle_sender.node.interface import BundleSubmitError, NodeConnectionError
from bundle_sender.node.solana_rpc import SolanaRpcAdapter
from bundle_sender.tx.signer import load_keypair

LAMPORTS_PER_SOL = 1_000_000_000


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bundle-sender",
        description="Send Solana transactions as Jito bundles and confirm they land",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--rpc",
        help="Network address of your RPC provider",
    )
    parser.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        help="Solana cluster (default: mainnet-beta)",
    )
    parser.add_argument(
        "--block-engine-url",
        help="URL of the block engine",
    )
    parser.add_argument(
        "--auth-token",
        help="Block engine auth token",
    )
    parser.add_argument(
        "--private-key",
        help="Base58 private key of the transaction signer",
    )
    parser.add_argument(
        "--keypair",
        help="Path to a JSON keypair file for the transaction signer",
    )
    parser.add_argument(
        "--tip-private-key",
        help="Base58 private key of the tip payer",
    )
    parser.add_argument(
        "--tip-keypair",
        help="Path to a JSON keypair file for the tip payer",
    )
    parser.add_argument(
        "--tip-account",
        help="Block engine tip account public key",
    )
    parser.add_argument(
        "--tip-lamports",
        type=int,
        help="Tip amount in lamports (default: 1000000)",
    )
    parser.add_argument(
        "--priority-fee",
        type=int,
        help="Micro-lamports to pay as priority fee per compute unit (default: 0)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Balance command
    balance_parser = subparsers.add_parser("balance", help="Fetch the SOL balance of an account")
    balance_parser.add_argument(
        "address",
        nargs="?",
        help="The address of the account (default: transaction signer)",
    )

    # Transfer command
    transfer_parser = subparsers.add_parser(
        "transfer",
        help="Send a SOL transfer through the bundle path",
    )
    transfer_parser.add_argument("to", help="Recipient address")
    transfer_parser.add_argument("lamports", type=int, help="Amount in lamports")
    transfer_parser.add_argument(
        "--skip-confirm",
        action="store_true",
        default=None,
        help="Return after the block engine accepts the bundle",
    )
    transfer_parser.add_argument(
        "--gateway-retries",
        type=int,
        help="Maximum submission attempts (default: 4)",
    )
    transfer_parser.add_argument(
        "--confirm-retries",
        type=int,
        help="Status polls per attempt (default: 4)",
    )

    # Status command
    status_parser = subparsers.add_parser("status", help="Show signature statuses")
    status_parser.add_argument("signatures", nargs="+", help="Transaction signatures")

    # Bundle status command
    bundle_status_parser = subparsers.add_parser(
        "bundle-status",
        help="Show landed bundle statuses from the block engine",
    )
    bundle_status_parser.add_argument("bundle_ids", nargs="+", help="Bundle IDs")

    return parser


def build_config(args: argparse.Namespace) -> SenderConfig:
    """Create configuration from command-line overrides and the environment."""
    overrides = {
        "rpc_url": args.rpc,
        "network": NetworkType(args.network) if args.network else None,
        "block_engine_url": args.block_engine_url,
        "block_engine_auth_token": args.auth_token,
        "private_key": args.private_key,
        "private_key_path": args.keypair,
        "tip_private_key": args.tip_private_key,
        "tip_private_key_path": args.tip_keypair,
        "tip_account": args.tip_account,
        "tip_lamports": args.tip_lamports,
        "priority_fee": args.priority_fee,
        "gateway_retries": getattr(args, "gateway_retries", None),
        "confirm_retries": getattr(args, "confirm_retries", None),
        "skip_confirm": getattr(args, "skip_confirm", None),
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    return SenderConfig(**{k: v for k, v in overrides.items() if v is not None})


def print_attempt_started(attempt: int) -> None:
    """Report an attempt as it starts."""
    print(f"Attempt {attempt}: sending bundle")


def print_submitted(attempt: int, signature: str, bundle_id: str) -> None:
    """Report the signature once the block engine accepts the bundle."""
    print(f"  Submitted {signature} (bundle {bundle_id})")


def print_poll(signature: Signature, poll: int, status: ConfirmationStatus) -> None:
    """Report the status seen by one confirmation poll."""
    print(f"  Poll {poll}: {status.value}")


def print_attempt(record: AttemptRecord) -> None:
    """Report an attempt as it finishes."""
    line = f"Attempt {record.attempt}: {record.outcome.value}"
    if record.signature:
        line += f" {record.signature}"
    if record.polls:
        line += f" ({record.polls} polls, last status {record.status.value})"
    if record.error:
        line += f" - {record.error}"
    print(line)


async def show_balance(config: SenderConfig, address: Optional[str]) -> int:
    """Print the SOL balance of an address."""
    if address:
        pubkey = Pubkey.from_string(address)
    else:
        pubkey = load_keypair(config.private_key, config.private_key_path).pubkey()

    ledger = SolanaRpcAdapter(config)
    try:
        lamports = await ledger.get_balance(pubkey)
    finally:
        await ledger.disconnect()

    print(f"{pubkey}: {lamports / LAMPORTS_PER_SOL:.9f} SOL")
    return 0


async def send_transfer(
    config: SenderConfig,
    to: str,
    lamports: int,
    skip_confirm: Optional[bool] = None,
) -> int:
    """Send a transfer through the bundle path."""
    session = SubmissionSession.from_config(config)
    instruction = transfer(
        TransferParams(
            from_pubkey=session.signer.tx_pubkey,
            to_pubkey=Pubkey.from_string(to),
            lamports=lamports,
        )
    )

    async with session:
        coordinator = RetryCoordinator(session)
        coordinator.on_attempt_started(print_attempt_started)
        coordinator.on_submitted(print_submitted)
        coordinator.on_poll(print_poll)
        coordinator.on_attempt(print_attempt)

        try:
            result = await coordinator.send_and_confirm([instruction], skip_confirm=skip_confirm)
        except InsufficientBalanceError:
            print("Error: Insufficient SOL balance")
            return 1
        except RetriesExhaustedError as e:
            print(f"Error: Max retries ({len(e.attempts)} attempts)")
            return 1

    if result.confirmed:
        print(f"Transaction landed ({result.status.value}): {result.signature}")
        if result.transaction_error is not None:
            print(f"  Execution error: {result.transaction_error}")
    else:
        print(f"Bundle accepted, confirmation skipped: {result.signature}")
    return 0


async def show_statuses(config: SenderConfig, signatures: List[str]) -> int:
    """Print current signature statuses."""
    sigs = [Signature.from_string(s) for s in signatures]

    ledger = SolanaRpcAdapter(config)
    try:
        statuses = await ledger.get_signature_statuses(sigs)
    finally:
        await ledger.disconnect()

    for sig, info in zip(signatures, statuses):
        if info is None:
            print(f"{sig}: {ConfirmationStatus.UNKNOWN.value}")
            continue
        status = ConfirmationStatus.from_rpc(info.confirmation_status)
        line = f"{sig}: {status.value} (slot {info.slot})"
        if info.err is not None:
            line += f" error={info.err}"
        print(line)
    return 0


async def show_bundle_statuses(config: SenderConfig, bundle_ids: List[str]) -> int:
    """Print landed bundle statuses."""
    relay = BlockEngineAdapter(config)
    try:
        statuses = await relay.get_bundle_statuses(bundle_ids)
    finally:
        await relay.disconnect()

    found = {s["bundle_id"]: s for s in statuses if s}
    for bundle_id in bundle_ids:
        status = found.get(bundle_id)
        if status is None:
            print(f"{bundle_id}: not landed")
        else:
            print(
                f"{bundle_id}: {status.get('confirmation_status')} "
                f"(slot {status.get('slot')})"
            )
    return 0


async def run_command(args: argparse.Namespace, config: SenderConfig) -> int:
    """Dispatch a parsed command."""
    if args.command == "balance":
        return await show_balance(config, args.address)
    if args.command == "transfer":
        return await send_transfer(config, args.to, args.lamports, args.skip_confirm)
    if args.command == "status":
        return await show_statuses(config, args.signatures)
    if args.command == "bundle-status":
        return await show_bundle_statuses(config, args.bundle_ids)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = build_config(args)
    set_config(config)

    setup_logging(config.log_level, config.log_json)

    try:
        exit_code = asyncio.run(run_command(args, config))
    except (NodeConnectionError, BundleSubmitError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
