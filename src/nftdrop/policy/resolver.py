"""Drop policy — loads and validates the drop's fixed parameters.

Parameters live in ``config/drop_policy.json``. Prices are written in
ether as decimal strings (never floats) and converted to integer wei on
load:

    {
      "name": "NFTDrop",
      "symbol": "ND",
      "base_uri": "http:/capsulecrop/",
      "max_amount": 13,
      "per_address_cap": 5,
      "price_ether": "0.06",
      "gas_allowance_ether": "0.00000000000000001",
      "reserved_ids": [2]
    }

Prices are fixed for the life of the drop; there is no mid-phase price
change.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from web3 import Web3


POLICY_FILENAME = "drop_policy.json"


@dataclass(frozen=True)
class DropPolicy:
    """Validated drop parameters. All amounts in wei."""
    name: str
    symbol: str
    base_uri: str
    max_amount: int
    per_address_cap: int
    price_wei: int
    gas_allowance_wei: int
    reserved_ids: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        errors = self.validate()
        if errors:
            raise ValueError("Invalid drop policy: " + "; ".join(errors))

    @property
    def unit_price_wei(self) -> int:
        """Minimum payment per item: price plus gas allowance."""
        return self.price_wei + self.gas_allowance_wei

    def required_payment(self, amount: int) -> int:
        return self.unit_price_wei * amount

    def validate(self) -> list[str]:
        """Check drop invariants. Returns errors (empty = valid)."""
        errors: list[str] = []
        if self.max_amount < 1:
            errors.append(f"max_amount must be >= 1, got {self.max_amount}")
        if self.per_address_cap < 1:
            errors.append(f"per_address_cap must be >= 1, got {self.per_address_cap}")
        if self.per_address_cap > self.max_amount:
            errors.append(
                f"per_address_cap ({self.per_address_cap}) cannot exceed "
                f"max_amount ({self.max_amount})"
            )
        if self.price_wei <= 0:
            errors.append("price must be > 0")
        if self.gas_allowance_wei < 0:
            errors.append("gas_allowance must be >= 0")
        if len(set(self.reserved_ids)) != len(self.reserved_ids):
            errors.append(f"reserved_ids must be distinct: {list(self.reserved_ids)}")
        for token_id in self.reserved_ids:
            if not 1 <= token_id <= self.max_amount:
                errors.append(
                    f"reserved id {token_id} outside supply range 1..{self.max_amount}"
                )
        return errors

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DropPolicy:
        return cls(
            name=str(data["name"]),
            symbol=str(data["symbol"]),
            base_uri=str(data.get("base_uri", "")),
            max_amount=int(data["max_amount"]),
            per_address_cap=int(data["per_address_cap"]),
            price_wei=_ether_to_wei(data["price_ether"], "price_ether"),
            gas_allowance_wei=_ether_to_wei(
                data.get("gas_allowance_ether", "0"), "gas_allowance_ether"
            ),
            reserved_ids=tuple(int(i) for i in data.get("reserved_ids", [])),
        )

    @classmethod
    def from_file(cls, path: Path) -> DropPolicy:
        with path.open("r", encoding="utf-8") as handle:
            return cls.from_dict(json.load(handle))

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> DropPolicy:
        return cls.from_file(config_dir / POLICY_FILENAME)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "base_uri": self.base_uri,
            "max_amount": self.max_amount,
            "per_address_cap": self.per_address_cap,
            "price_wei": self.price_wei,
            "gas_allowance_wei": self.gas_allowance_wei,
            "reserved_ids": list(self.reserved_ids),
        }


def _ether_to_wei(value: Any, label: str) -> int:
    if isinstance(value, float):
        raise ValueError(f"{label} must be a decimal string, not a float")
    try:
        return int(Web3.to_wei(Decimal(str(value)), "ether"))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{label} is not a valid ether amount: {value!r}") from exc
