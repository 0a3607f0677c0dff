#!/usr/bin/env python3
"""Drop invariant checks against the executable policy config."""

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
POLICY_FILENAME = "drop_policy.json"


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_amount(policy: dict, key: str, errors: list[str], allow_zero: bool) -> None:
    """Prices must be decimal strings; floats lose wei precision."""
    raw = policy.get(key)
    if raw is None:
        if not allow_zero:
            errors.append(f"{key} missing")
        return
    if not isinstance(raw, str):
        errors.append(f"{key} must be a decimal string, got {type(raw).__name__}")
        return
    try:
        value = Decimal(raw)
    except InvalidOperation:
        errors.append(f"{key} is not a decimal: {raw!r}")
        return
    if value < 0 or (value == 0 and not allow_zero):
        errors.append(f"{key} must be {'>= 0' if allow_zero else '> 0'}, got {raw}")


def check(config_dir: Path = CONFIG_DIR) -> int:
    policy = load_json(config_dir / POLICY_FILENAME)
    errors: list[str] = []

    for key in ("name", "symbol", "max_amount", "per_address_cap"):
        if key not in policy:
            errors.append(f"missing required key: {key}")
    if errors:
        for error in errors:
            print(f"FAIL: {error}")
        return 1

    # --- Supply invariants ---
    max_amount = policy["max_amount"]
    cap = policy["per_address_cap"]
    if not isinstance(max_amount, int) or max_amount < 1:
        errors.append(f"max_amount must be a positive integer, got {max_amount!r}")
    if not isinstance(cap, int) or cap < 1:
        errors.append(f"per_address_cap must be a positive integer, got {cap!r}")
    elif isinstance(max_amount, int) and cap > max_amount:
        errors.append(f"per_address_cap ({cap}) cannot exceed max_amount ({max_amount})")

    # --- Reserved pre-mint ids ---
    reserved = policy.get("reserved_ids", [])
    if len(set(reserved)) != len(reserved):
        errors.append(f"reserved_ids must be distinct: {reserved}")
    if isinstance(max_amount, int):
        for token_id in reserved:
            if not isinstance(token_id, int) or not 1 <= token_id <= max_amount:
                errors.append(f"reserved id {token_id!r} outside 1..{max_amount}")

    # --- Price invariants ---
    check_amount(policy, "price_ether", errors, allow_zero=False)
    check_amount(policy, "gas_allowance_ether", errors, allow_zero=True)

    if errors:
        for error in errors:
            print(f"FAIL: {error}")
        return 1
    print(f"OK: {config_dir / POLICY_FILENAME} satisfies drop invariants")
    return 0


if __name__ == "__main__":
    sys.exit(check(Path(sys.argv[1]) if len(sys.argv) > 1 else CONFIG_DIR))
