#!/usr/bin/env python3
"""
Check the balances of the signer and tip payer accounts.
"""

import asyncio
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bundle_sender.config import SenderConfig
from bundle_sender.node.solana_rpc import SolanaRpcAdapter
from bundle_sender.tx.signer import load_keypair

LAMPORTS_PER_SOL = 1_000_000_000


async def check_balance(rpc_url: str, keys_dir: str):
    """Check balances of both keypairs in a keys directory."""
    keys_path = Path(keys_dir)
    accounts = {
        "Signer": keys_path / "signer.json",
        "Tip payer": keys_path / "tip.json",
    }

    for path in accounts.values():
        if not path.exists():
            print(f"❌ Error: Keypair not found at {path}")
            print("   Run: python scripts/generate_keys.py first")
            return

    config = SenderConfig(rpc_url=rpc_url)
    ledger = SolanaRpcAdapter(config)
    await ledger.connect()

    try:
        results = {}
        for label, path in accounts.items():
            pubkey = load_keypair(key_path=str(path)).pubkey()
            lamports = await ledger.get_balance(pubkey)
            results[label] = lamports

            print(f"\n📬 {label}: {pubkey}")
            print(f"   {lamports / LAMPORTS_PER_SOL:.9f} SOL ({lamports:,} lamports)")

        if all(lamports > 0 for lamports in results.values()):
            print(f"\n✅ Both accounts are funded")
        else:
            print(f"\n❌ Fund every account with a zero balance before sending bundles")

        return results

    finally:
        await ledger.disconnect()


def main():
    parser = argparse.ArgumentParser(description="Check bundle sender balances")
    parser.add_argument(
        "--rpc", "-r",
        default="https://api.devnet.solana.com",
        help="RPC endpoint (default: devnet)"
    )
    parser.add_argument(
        "--keys-dir", "-k",
        default="./keys",
        help="Directory containing keys (default: ./keys)"
    )

    args = parser.parse_args()
    asyncio.run(check_balance(args.rpc, args.keys_dir))


if __name__ == "__main__":
    main()
