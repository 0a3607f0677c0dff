"""External collaborators — the item registry, fund custody and event sink.

The mint authority never owns items, funds or the notification channel
itself. It talks to these through the Protocols below, so an on-chain
backend, a database or the in-memory implementations here can be
swapped in without touching the authorization engine.

Contract for implementers: any of these calls may run after the
authority has committed its own state. A collaborator that calls back
into the authority while a call is in flight is rejected with
ReentrantCall.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class ItemRegistry(Protocol):
    """Item-ownership registry. Called once per allocated id.

    revoke undoes an issue made by a mint that failed afterwards.
    """

    def issue(self, owner: str, token_id: int) -> None:
        ...

    def revoke(self, token_id: int) -> None:
        ...


@runtime_checkable
class FundCustody(Protocol):
    """Holds mint proceeds until the owner withdraws them."""

    def deposit(self, sender: str, amount: int) -> None:
        ...

    def transfer(self, recipient: str, amount: int) -> None:
        ...

    def balance(self) -> int:
        ...


@runtime_checkable
class EventSink(Protocol):
    """Receives notifications such as ("minted", minter, {"token_id": 13})."""

    def emit(self, topic: str, address: str, payload: Dict[str, Any]) -> None:
        ...


class InMemoryRegistry:
    """Dictionary-backed item registry.

    Name, symbol and base URI are carried for display only; nothing in
    the drop inspects them.
    """

    def __init__(self, name: str, symbol: str, base_uri: str) -> None:
        self.name = name
        self.symbol = symbol
        self.base_uri = base_uri
        self._owners: Dict[int, str] = {}

    def issue(self, owner: str, token_id: int) -> None:
        if token_id in self._owners:
            raise ValueError(f"Token {token_id} already issued")
        self._owners[token_id] = owner

    def revoke(self, token_id: int) -> None:
        if self._owners.pop(token_id, None) is None:
            raise KeyError(f"Unknown token id: {token_id}")

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise KeyError(f"Unknown token id: {token_id}")
        return owner

    def tokens_of(self, owner: str) -> list[int]:
        return sorted(t for t, o in self._owners.items() if o == owner)

    def balance_of(self, owner: str) -> int:
        return len(self.tokens_of(owner))

    def token_uri(self, token_id: int) -> str:
        self.owner_of(token_id)
        return f"{self.base_uri}{token_id}"

    @property
    def total_supply(self) -> int:
        return len(self._owners)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "base_uri": self.base_uri,
            "owners": {str(t): o for t, o in sorted(self._owners.items())},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryRegistry:
        registry = cls(data["name"], data["symbol"], data["base_uri"])
        registry._owners = {int(t): o for t, o in data.get("owners", {}).items()}
        return registry


@dataclass
class InMemoryCustody:
    """Integer-wei balance with a record of deposits and payouts."""
    held: int = 0
    deposits: List[tuple[str, int]] = field(default_factory=list)
    payouts: List[tuple[str, int]] = field(default_factory=list)

    def deposit(self, sender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Deposit amount must be non-negative")
        self.held += amount
        self.deposits.append((sender, amount))

    def transfer(self, recipient: str, amount: int) -> None:
        if amount > self.held:
            raise ValueError(
                f"Transfer of {amount} exceeds custody balance {self.held}"
            )
        self.held -= amount
        self.payouts.append((recipient, amount))

    def balance(self) -> int:
        return self.held

    def to_dict(self) -> dict[str, Any]:
        return {
            "held": self.held,
            "deposits": [list(d) for d in self.deposits],
            "payouts": [list(p) for p in self.payouts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryCustody:
        return cls(
            held=int(data.get("held", 0)),
            deposits=[(s, int(a)) for s, a in data.get("deposits", [])],
            payouts=[(r, int(a)) for r, a in data.get("payouts", [])],
        )
