"""Drop models — phases, addresses, receipts.

All monetary values are integer wei. No floats in finance.

Addresses entering the engine are validated and normalised to their
EIP-55 checksum form, so that the same account spelled in different
case maps to a single ledger entry.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from web3 import Web3

from nftdrop.errors import InvalidAddress


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Phase(str, enum.Enum):
    """Minting phase. Progression is one-way and one step at a time.

    State machine:
        PRE_MINTING → WHITELIST → PUBLIC_MINTING
    """
    PRE_MINTING = "pre_minting"
    WHITELIST = "whitelist"
    PUBLIC_MINTING = "public_minting"

    @property
    def ordinal(self) -> int:
        """Numeric phase id, as used by the on-chain contract (0, 1, 2)."""
        return PHASE_ORDER.index(self)

    @classmethod
    def from_ordinal(cls, value: int) -> Phase:
        if not 0 <= value < len(PHASE_ORDER):
            raise ValueError(f"Unknown phase ordinal: {value}")
        return PHASE_ORDER[value]

    @classmethod
    def parse(cls, value: Any) -> Phase:
        """Accept a Phase, its value string, its name or its ordinal."""
        if isinstance(value, Phase):
            return value
        if isinstance(value, int):
            return cls.from_ordinal(value)
        text = str(value).strip()
        if text.isdigit():
            return cls.from_ordinal(int(text))
        try:
            return cls(text.lower())
        except ValueError:
            pass
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"Unknown phase: {value!r}") from None


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.PRE_MINTING,
    Phase.WHITELIST,
    Phase.PUBLIC_MINTING,
)


def normalize_address(address: str) -> str:
    """Return the checksum form of an address, or raise InvalidAddress."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddress(f"NFTDrop: invalid address {address!r}")
    return Web3.to_checksum_address(address)


def require_nonzero_address(address: str) -> str:
    """Normalise an address and reject the zero address."""
    checksummed = normalize_address(address)
    if checksummed == ZERO_ADDRESS:
        raise InvalidAddress()
    return checksummed


@dataclass(frozen=True)
class MintReceipt:
    """Outcome of a successful mint.

    last_id mirrors the Minted event, which reports only the final id
    of a multi-item mint; token_ids holds the full allocated range.
    """
    minter: str
    token_ids: tuple[int, ...]
    phase: Phase
    payment: int

    @property
    def last_id(self) -> int:
        return self.token_ids[-1]

    @property
    def amount(self) -> int:
        return len(self.token_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "minter": self.minter,
            "token_ids": list(self.token_ids),
            "last_id": self.last_id,
            "phase": self.phase.value,
            "payment": self.payment,
        }
