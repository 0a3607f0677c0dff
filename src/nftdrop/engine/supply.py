"""Supply allocator — hands out sequential item ids under a hard cap.

Ids run from 1 to max_amount. Every id is issued at most once and the
minted count never decreases.

Reserved ids are set aside for the privileged pre-mint (the reference
drop reserves id 2). While reserved, an id is skipped by sequential
allocation; a pre-mint allocation takes reserved ids first and falls
back to sequential ids once they run out. Leaving pre-minting releases
any reserved id that was never minted back into the sequential pool,
so the full supply stays reachable.

With reserved ids (2,) the reference sequence is:
    pre-mint 1 → [2]
    whitelist claims → [1], [3], [4], [5]
    public 5 → [6..10], public 3 → [11..13]
"""

from __future__ import annotations

from typing import Any, Iterable, List

from nftdrop.errors import SupplyExceeded


class SupplyAllocator:
    """Monotonic id allocator with a hard cap.

    Usage:
        supply = SupplyAllocator(max_amount=13, reserved_ids=(2,))
        supply.allocate(1, reserved=True)   # [2]
        supply.release_reserved()
        supply.allocate(2)                  # [1, 3]
    """

    def __init__(self, max_amount: int, reserved_ids: Iterable[int] = ()) -> None:
        if max_amount < 1:
            raise ValueError("max_amount must be at least 1")
        reserved = list(reserved_ids)
        if len(set(reserved)) != len(reserved):
            raise ValueError(f"Reserved ids must be distinct: {reserved}")
        for token_id in reserved:
            if not 1 <= token_id <= max_amount:
                raise ValueError(
                    f"Reserved id {token_id} outside supply range 1..{max_amount}"
                )
        self._max_amount = max_amount
        self._pending_reserved: List[int] = reserved
        self._issued: List[int] = []
        self._issued_set: set[int] = set()
        self._cursor = 0

    @property
    def max_amount(self) -> int:
        return self._max_amount

    @property
    def minted(self) -> int:
        return len(self._issued)

    @property
    def remaining(self) -> int:
        return self._max_amount - self.minted

    @property
    def issued_ids(self) -> list[int]:
        """Ids in issue order."""
        return list(self._issued)

    @property
    def pending_reserved(self) -> list[int]:
        return list(self._pending_reserved)

    def check(self, amount: int, reserved: bool = False) -> None:
        """Raise SupplyExceeded if ``amount`` more ids cannot be issued.

        Sequential allocation cannot touch pending reserved ids, so they
        count against its capacity.
        """
        capacity = self.remaining
        if not reserved:
            capacity -= len(self._pending_reserved)
        if amount > capacity:
            raise SupplyExceeded(
                f"NFTDrop: can't be greater than maxAmount({self._max_amount}) "
                f"(minted {self.minted}, requested {amount})"
            )

    def allocate(self, amount: int, reserved: bool = False) -> list[int]:
        """Issue ``amount`` ids and return them in ascending order."""
        if amount < 1:
            raise ValueError("amount must be at least 1")
        self.check(amount, reserved)

        ids: list[int] = []
        pending = list(self._pending_reserved)
        if reserved:
            while pending and len(ids) < amount:
                ids.append(pending.pop(0))

        cursor = self._cursor
        while len(ids) < amount:
            cursor += 1
            if cursor in self._issued_set or cursor in pending:
                continue
            ids.append(cursor)

        ids.sort()
        self._pending_reserved = pending
        self._cursor = cursor
        self._issued.extend(ids)
        self._issued_set.update(ids)
        return ids

    def release_reserved(self) -> list[int]:
        """Return unminted reserved ids to the sequential pool."""
        released = self._pending_reserved
        self._pending_reserved = []
        if released:
            # Sequential allocation resumes from the lowest free id
            self._cursor = min(self._cursor, min(released) - 1)
        return released

    def snapshot(self) -> dict[str, Any]:
        return {
            "max_amount": self._max_amount,
            "issued": list(self._issued),
            "pending_reserved": list(self._pending_reserved),
            "cursor": self._cursor,
        }

    def restore(self, data: dict[str, Any]) -> None:
        if int(data["max_amount"]) != self._max_amount:
            raise ValueError(
                f"Snapshot max_amount {data['max_amount']} does not match "
                f"configured {self._max_amount}"
            )
        self._issued = [int(i) for i in data["issued"]]
        self._issued_set = set(self._issued)
        self._pending_reserved = [int(i) for i in data["pending_reserved"]]
        self._cursor = int(data["cursor"])
