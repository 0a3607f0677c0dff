"""NFT drop CLI — command-line interface for the mint authority.

Usage:
    python -m nftdrop.cli init --owner 0xOwner...
    python -m nftdrop.cli status
    python -m nftdrop.cli mint --caller 0xOwner... --amount 1 --payment 0.06000000000000001
    python -m nftdrop.cli set-phase --caller 0xOwner... --phase whitelist
    python -m nftdrop.cli set-root --caller 0xOwner... --whitelist whitelist.txt
    python -m nftdrop.cli proof --whitelist whitelist.txt --address 0xAlice...
    python -m nftdrop.cli mint --caller 0xAlice... --amount 1 --payment 0.06000000000000001 --whitelist whitelist.txt
    python -m nftdrop.cli withdraw --caller 0xOwner... --recipient 0xTreasury...
    python -m nftdrop.cli check-invariants
"""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from web3 import Web3

from nftdrop.crypto.merkle import WhitelistTree
from nftdrop.errors import DropError
from nftdrop.models.drop import Phase
from nftdrop.persistence.event_log import EventLog
from nftdrop.persistence.state_store import StateStore
from nftdrop.policy.resolver import DropPolicy
from nftdrop.service import DropService, ServiceResult


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"


def _make_service(
    config_dir: Path,
    data_dir: Path,
    owner: Optional[str] = None,
    royalty_owner: Optional[str] = None,
) -> DropService:
    """Create a DropService with durable persistence."""
    data_dir.mkdir(parents=True, exist_ok=True)
    policy = DropPolicy.from_config_dir(config_dir)
    return DropService(
        policy,
        owner=owner,
        royalty_owner=royalty_owner,
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
        state_store=StateStore(data_dir / "state.json"),
    )


def _open_service(args: argparse.Namespace) -> Optional[DropService]:
    """Load an initialised drop, or report that none exists."""
    if not (args.data / "state.json").exists():
        print(f"Failed: drop not initialised at {args.data} (run init)", file=sys.stderr)
        return None
    return _make_service(args.config, args.data)


def read_address_file(path: Path) -> list[str]:
    """One address per line. Blank lines and # comments are skipped."""
    addresses: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            addresses.append(line)
    return addresses


def _ether(value: str) -> int:
    try:
        return int(Web3.to_wei(Decimal(value), "ether"))
    except (InvalidOperation, ValueError) as exc:
        raise argparse.ArgumentTypeError(f"invalid ether amount: {value}") from exc


def _report(result: ServiceResult, label: str) -> int:
    if result.success:
        print(f"{label}: {json.dumps(result.data, sort_keys=True)}")
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_init(args: argparse.Namespace) -> int:
    state_path = args.data / "state.json"
    if state_path.exists():
        print(f"Failed: drop already initialised at {state_path}", file=sys.stderr)
        return 1
    service = _make_service(
        args.config, args.data, owner=args.owner, royalty_owner=args.royalty_owner
    )
    service.save()
    print(f"Initialised drop owned by {service.authority.owner}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_mint(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    proof = list(args.proof or [])
    if args.whitelist is not None:
        try:
            tree = WhitelistTree.from_addresses(read_address_file(args.whitelist))
            proof = tree.proof(args.caller)
        except DropError as exc:
            print(f"Failed: {exc}", file=sys.stderr)
            return 1
    result = service.mint(args.caller, args.amount, args.payment, proof)
    return _report(result, "Minted")


def cmd_set_phase(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    return _report(service.set_phase(args.caller, args.phase), "Phase")


def cmd_set_root(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    if args.whitelist is not None:
        result = service.set_whitelist(read_address_file(args.whitelist), args.caller)
    else:
        result = service.set_whitelist_root(args.caller, args.root)
    return _report(result, "Whitelist root")


def cmd_proof(args: argparse.Namespace) -> int:
    tree = WhitelistTree.from_addresses(read_address_file(args.whitelist))
    proof = tree.inclusion_proof(args.address)
    if proof is None:
        print(f"Failed: {args.address} is not whitelisted", file=sys.stderr)
        return 1
    print(json.dumps(
        {"address": proof.address, "root": proof.root, "proof": list(proof.path)},
        indent=2,
    ))
    return 0


def cmd_set_royalty_owner(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    return _report(service.set_royalty_owner(args.caller, args.address), "Royalty owner")


def cmd_transfer_ownership(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    return _report(service.transfer_ownership(args.caller, args.to), "Owner")


def cmd_withdraw(args: argparse.Namespace) -> int:
    service = _open_service(args)
    if service is None:
        return 1
    return _report(service.withdraw(args.caller, args.recipient), "Withdrawn")


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run drop policy invariant checks."""
    tools_dir = Path(__file__).resolve().parents[2] / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check(args.config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nftdrop",
        description="NFT drop — phased mint authority CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA,
        help="Path to state directory (default: data/)",
    )
    sub = parser.add_subparsers(dest="command")

    p_init = sub.add_parser("init", help="Create a new drop")
    p_init.add_argument("--owner", required=True, help="Owner / privileged minter address")
    p_init.add_argument("--royalty-owner", help="Royalty recipient (default: owner)")

    sub.add_parser("status", help="Show drop status")

    p_mint = sub.add_parser("mint", help="Mint items")
    p_mint.add_argument("--caller", required=True, help="Minting address")
    p_mint.add_argument("--amount", type=int, default=1, help="Number of items (default: 1)")
    p_mint.add_argument("--payment", type=_ether, required=True, help="Payment in ether")
    p_mint.add_argument("--proof", action="append", help="Proof node (repeatable)")
    p_mint.add_argument("--whitelist", type=Path, help="Address file to derive the proof from")

    p_phase = sub.add_parser("set-phase", help="Advance to the next phase")
    p_phase.add_argument("--caller", required=True, help="Owner address")
    p_phase.add_argument(
        "--phase", required=True,
        choices=[p.value for p in Phase] + [str(p.ordinal) for p in Phase],
        help="Target phase",
    )

    p_root = sub.add_parser("set-root", help="Commit the whitelist root")
    p_root.add_argument("--caller", required=True, help="Owner address")
    group = p_root.add_mutually_exclusive_group(required=True)
    group.add_argument("--root", help="Hex root")
    group.add_argument("--whitelist", type=Path, help="Address file to build the root from")

    p_proof = sub.add_parser("proof", help="Print the whitelist proof for an address")
    p_proof.add_argument("--whitelist", type=Path, required=True, help="Address file")
    p_proof.add_argument("--address", required=True, help="Whitelisted address")

    p_roy = sub.add_parser("set-royalty-owner", help="Change the royalty recipient")
    p_roy.add_argument("--caller", required=True, help="Owner address")
    p_roy.add_argument("--address", required=True, help="New royalty recipient")

    p_own = sub.add_parser("transfer-ownership", help="Hand over the owner role")
    p_own.add_argument("--caller", required=True, help="Owner address")
    p_own.add_argument("--to", required=True, help="New owner")

    p_wd = sub.add_parser("withdraw", help="Withdraw custody balance")
    p_wd.add_argument("--caller", required=True, help="Owner address")
    p_wd.add_argument("--recipient", required=True, help="Recipient address")

    sub.add_parser("check-invariants", help="Validate the drop policy config")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "status": cmd_status,
        "mint": cmd_mint,
        "set-phase": cmd_set_phase,
        "set-root": cmd_set_root,
        "proof": cmd_proof,
        "set-royalty-owner": cmd_set_royalty_owner,
        "transfer-ownership": cmd_transfer_ownership,
        "withdraw": cmd_withdraw,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
