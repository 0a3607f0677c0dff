#!/usr/bin/env python3
"""Build the whitelist commitment for a drop.

Reads an address file (one address per line, # comments allowed) and
writes the root plus every member's proof as JSON. Claimants need only
their own proof; the owner commits the root with `nftdrop set-root`.

Usage:
    python3 tools/build_whitelist.py whitelist.txt
    python3 tools/build_whitelist.py whitelist.txt -o whitelist.json
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path for nftdrop imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from nftdrop.cli import read_address_file
from nftdrop.crypto.merkle import WhitelistTree


def build(addresses: list[str]) -> dict:
    tree = WhitelistTree.from_addresses(addresses)
    return {
        "root": tree.hex_root,
        "members": tree.leaf_count,
        "proofs": {address: tree.proof(address) for address in tree.addresses},
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build a whitelist root and proofs")
    parser.add_argument("addresses", type=Path, help="Address file")
    parser.add_argument("-o", "--output", type=Path, help="Output JSON (default: stdout)")
    args = parser.parse_args(argv)

    document = build(read_address_file(args.addresses))
    text = json.dumps(document, indent=2)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Root {document['root']} ({document['members']} members) → {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
