#!/usr/bin/env python3
"""Anchor a drop's whitelist root on Ethereum.

Publishes the committed root in a 0-value self-send transaction before
the whitelist phase opens, so claimants can check that the root the
owner later sets matches the one anchored here.

Usage:
    python3 tools/anchor_whitelist.py whitelist.txt
    python3 tools/anchor_whitelist.py --root 0xabc...

Requires:
    RPC_URL and PRIVATE_KEY in a .env file at the project root.
    CHAIN_ID is optional (default: 11155111, Sepolia).
"""

import argparse
import os
import sys
from pathlib import Path

# Add src to path for nftdrop imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
from nftdrop.cli import read_address_file
from nftdrop.crypto.anchor import anchor_to_chain
from nftdrop.crypto.merkle import WhitelistTree

# ------------------------------------------------------------------ #
# Configuration                                                       #
# ------------------------------------------------------------------ #

load_dotenv(ROOT / ".env")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Anchor a whitelist root on-chain")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("addresses", nargs="?", type=Path, help="Address file")
    source.add_argument("--root", help="Precomputed hex root")
    parser.add_argument("--gas-price-gwei", default="2", help="Gas price in gwei")
    args = parser.parse_args(argv)

    rpc_url = os.getenv("RPC_URL")
    private_key = os.getenv("PRIVATE_KEY")
    if not rpc_url or not private_key:
        print("ERROR: Missing RPC_URL and/or PRIVATE_KEY in .env")
        return 1
    chain_id = int(os.getenv("CHAIN_ID", "11155111"))

    if args.root:
        root = args.root
    else:
        tree = WhitelistTree.from_addresses(read_address_file(args.addresses))
        root = tree.hex_root
        print(f"  Members:   {tree.leaf_count}")
    print(f"  Root:      {root}")
    print(f"Anchoring to chain {chain_id} ...")

    record = anchor_to_chain(
        root=root,
        rpc_url=rpc_url,
        private_key=private_key,
        chain_id=chain_id,
        gas_price_gwei=args.gas_price_gwei,
    )

    print()
    print(f"  Tx:        {record.tx_hash}")
    print(f"  Block:     {record.block_number}")
    print(f"  Anchored:  {record.timestamp_utc}")
    if record.explorer_url:
        print(f"  Explorer:  {record.explorer_url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
