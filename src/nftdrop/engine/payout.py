"""Payout configuration — owner identity, royalty recipient, withdrawals.

The owner is the privileged minter: the one address allowed to pre-mint,
advance phases, commit the whitelist root, change the royalty recipient,
withdraw funds and hand ownership to someone else.

The royalty recipient is only recorded here. Royalty payment plumbing
lives with the item registry.
"""

from __future__ import annotations

from typing import Any, Optional

from nftdrop.collaborators import FundCustody
from nftdrop.errors import Unauthorized
from nftdrop.models.drop import normalize_address, require_nonzero_address


class PayoutConfig:
    """Owner-gated payout fields.

    Usage:
        payout = PayoutConfig(owner="0xOwner...")
        payout.set_royalty_owner("0xOwner...", "0xArtist...")
        amount = payout.withdraw("0xOwner...", "0xTreasury...", custody)
    """

    def __init__(self, owner: str, royalty_owner: Optional[str] = None) -> None:
        self._owner = require_nonzero_address(owner)
        self._royalty_owner = require_nonzero_address(royalty_owner or owner)
        self._total_withdrawn = 0

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def royalty_owner(self) -> str:
        return self._royalty_owner

    @property
    def total_withdrawn(self) -> int:
        return self._total_withdrawn

    def is_owner(self, address: str) -> bool:
        return normalize_address(address) == self._owner

    def require_owner(self, caller: str) -> str:
        """Return the normalised caller, or raise Unauthorized."""
        if not self.is_owner(caller):
            raise Unauthorized()
        return self._owner

    def set_royalty_owner(self, caller: str, address: str) -> str:
        """Change the royalty recipient. Returns the previous recipient."""
        self.require_owner(caller)
        new_owner = require_nonzero_address(address)
        previous = self._royalty_owner
        self._royalty_owner = new_owner
        return previous

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        """Hand the privileged role to another address. Returns the old owner."""
        self.require_owner(caller)
        checksummed = require_nonzero_address(new_owner)
        previous = self._owner
        self._owner = checksummed
        return previous

    def withdraw(self, caller: str, recipient: str, custody: FundCustody) -> int:
        """Transfer the whole custody balance to ``recipient``.

        The withdrawn total is committed before the outbound transfer.
        If the transfer raises, the commit is undone and the error
        propagates.
        """
        self.require_owner(caller)
        target = require_nonzero_address(recipient)
        amount = custody.balance()

        self._total_withdrawn += amount
        try:
            if amount > 0:
                custody.transfer(target, amount)
        except Exception:
            self._total_withdrawn -= amount
            raise
        return amount

    def snapshot(self) -> dict[str, Any]:
        return {
            "owner": self._owner,
            "royalty_owner": self._royalty_owner,
            "total_withdrawn": self._total_withdrawn,
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._owner = require_nonzero_address(data["owner"])
        self._royalty_owner = require_nonzero_address(data["royalty_owner"])
        self._total_withdrawn = int(data.get("total_withdrawn", 0))
