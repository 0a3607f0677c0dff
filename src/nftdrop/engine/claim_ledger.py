"""Claim ledger — per-address mint bookkeeping for the gated phases.

Two records are kept:
- whitelist claims: address → claimed. One claim per address for the
  lifetime of the drop. There is no way to clear a claim.
- public counts: address → items minted during public minting.

Every check has a non-mutating form (check_*) so the mint authority can
validate a whole request before committing any of it, and a recording
form (record_*) that re-checks and commits in one step.

Storage is in-memory. The mint authority snapshots it for rollback and
the state store persists the snapshot.
"""

from __future__ import annotations

from typing import Any, Dict

from nftdrop.errors import AlreadyClaimed, PerAddressCapExceeded


class ClaimLedger:
    """In-memory ledger of whitelist claims and public mint counts.

    Usage:
        ledger = ClaimLedger()
        ledger.record_claim(address)        # raises AlreadyClaimed second time
        ledger.record_public(address, 2, cap=5)
    """

    def __init__(self) -> None:
        self._claimed: Dict[str, bool] = {}
        self._public_counts: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Whitelist claims
    # ------------------------------------------------------------------

    def has_claimed(self, address: str) -> bool:
        return self._claimed.get(address, False)

    def check_claim(self, address: str) -> None:
        """Raise AlreadyClaimed if the address has already claimed."""
        if self.has_claimed(address):
            raise AlreadyClaimed()

    def record_claim(self, address: str) -> None:
        """Mark an address as claimed. Check-then-set, no window between."""
        self.check_claim(address)
        self._claimed[address] = True

    @property
    def claim_count(self) -> int:
        return sum(1 for claimed in self._claimed.values() if claimed)

    # ------------------------------------------------------------------
    # Public mint counts
    # ------------------------------------------------------------------

    def public_minted(self, address: str) -> int:
        return self._public_counts.get(address, 0)

    def check_public(self, address: str, amount: int, cap: int) -> None:
        """Raise PerAddressCapExceeded if amount would push address past cap."""
        already = self.public_minted(address)
        if already + amount > cap:
            raise PerAddressCapExceeded(
                f"NFTDrop: can mint {cap} NFTs "
                f"(already minted {already}, requested {amount})"
            )

    def record_public(self, address: str, amount: int, cap: int) -> int:
        """Add to an address's public count. Returns the new count."""
        self.check_public(address, amount, cap)
        self._public_counts[address] = self.public_minted(address) + amount
        return self._public_counts[address]

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "claimed": sorted(a for a, c in self._claimed.items() if c),
            "public_counts": dict(sorted(self._public_counts.items())),
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._claimed = {address: True for address in data.get("claimed", [])}
        self._public_counts = {
            address: int(count)
            for address, count in data.get("public_counts", {}).items()
        }
