#!/usr/bin/env python3
"""
Generate the two Solana keypairs used by the bundle sender.

This script generates:
- Transaction signer keypair (signer.json)
- Tip payer keypair (tip.json)
Both are written in the Solana CLI JSON format.
"""

import argparse
import json
from pathlib import Path

from solders.keypair import Keypair


def generate_keys(output_dir: str = "./keys") -> dict:
    """
    Generate a new transaction keypair and tip keypair.

    Args:
        output_dir: Directory to save keys

    Returns:
        Dictionary with key paths and public keys
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    signer = Keypair()
    tip = Keypair()

    signer_path = output_path / "signer.json"
    signer_path.write_text(signer.to_json())

    tip_path = output_path / "tip.json"
    tip_path.write_text(tip.to_json())

    info = {
        "signer_keypair_path": str(signer_path),
        "tip_keypair_path": str(tip_path),
        "signer_pubkey": str(signer.pubkey()),
        "tip_pubkey": str(tip.pubkey()),
    }

    info_path = output_path / "key_info.json"
    with open(info_path, "w") as f:
        json.dump(info, f, indent=2)

    return info


def main():
    parser = argparse.ArgumentParser(description="Generate bundle sender keypairs")
    parser.add_argument(
        "--output-dir", "-o",
        default="./keys",
        help="Output directory for keys (default: ./keys)"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite existing keys"
    )

    args = parser.parse_args()

    output_path = Path(args.output_dir)
    signer_path = output_path / "signer.json"

    if signer_path.exists() and not args.force:
        print(f"⚠️  Keys already exist at {args.output_dir}")
        print("   Use --force to overwrite")

        info_path = output_path / "key_info.json"
        if info_path.exists():
            with open(info_path) as f:
                info = json.load(f)
            print("\n📋 Existing Key Info:")
            print(f"   Signer: {info['signer_pubkey']}")
            print(f"   Tip payer: {info['tip_pubkey']}")
        return

    print("🔑 Generating new Solana keypairs...")
    info = generate_keys(args.output_dir)

    print("\n✅ Keys generated successfully!")
    print(f"\n📁 Keys saved to: {args.output_dir}/")
    print(f"   - signer.json (KEEP SECRET!)")
    print(f"   - tip.json (KEEP SECRET!)")
    print(f"   - key_info.json")

    print("\n📬 Public keys:")
    print(f"   Signer:    {info['signer_pubkey']}")
    print(f"   Tip payer: {info['tip_pubkey']}")

    print("\n💰 Both accounts need SOL: the signer pays network fees, the tip payer pays tips.")
    print("   Configure them with:")
    print(f"   BUNDLE_SENDER_PRIVATE_KEY_PATH={info['signer_keypair_path']}")
    print(f"   BUNDLE_SENDER_TIP_PRIVATE_KEY_PATH={info['tip_keypair_path']}")


if __name__ == "__main__":
    main()
