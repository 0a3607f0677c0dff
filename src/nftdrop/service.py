"""Drop service — unified facade over the mint authority.

This is the primary interface for programmatic and CLI access. It wires
together:
- Drop policy (fixed parameters from config)
- Mint authority (phases, whitelist, claims, supply, payouts)
- Item registry and fund custody (in-memory collaborators)
- Persistence (event log, state store)

All operations produce typed results. Domain rejections (DropError)
become failed results carrying the error code; anything else is a bug
and propagates. State is persisted after every successful operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from nftdrop.collaborators import InMemoryCustody, InMemoryRegistry
from nftdrop.crypto.merkle import WhitelistTree
from nftdrop.engine.authority import MintAuthority
from nftdrop.errors import DropError
from nftdrop.persistence.event_log import EventLog
from nftdrop.persistence.state_store import StateStore
from nftdrop.policy.resolver import DropPolicy


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class DropService:
    """Drop facade.

    Usage:
        policy = DropPolicy.from_config_dir(config_dir)
        service = DropService(policy, owner="0xOwner...")

        service.mint("0xOwner...", 1, policy.required_payment(1))
        service.set_phase("0xOwner...", "whitelist")
        service.set_whitelist(["0xAlice...", "0xBob..."], caller="0xOwner...")

    Persistence (optional):
        service = DropService(policy, event_log=log, state_store=store)
        # State is loaded on construction and saved on each mutation.
    """

    def __init__(
        self,
        policy: DropPolicy,
        owner: Optional[str] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
        royalty_owner: Optional[str] = None,
    ) -> None:
        self._policy = policy
        self._event_log = event_log if event_log is not None else EventLog()
        self._state_store = state_store

        document = state_store.load() if state_store is not None else None
        if document is not None:
            self._registry = InMemoryRegistry.from_dict(document["registry"])
            self._custody = InMemoryCustody.from_dict(document["custody"])
            self._authority = MintAuthority.from_snapshot(
                policy,
                document["authority"],
                registry=self._registry,
                custody=self._custody,
                events=self._event_log,
            )
        else:
            if owner is None:
                raise ValueError("An owner address is required for a new drop")
            self._registry = InMemoryRegistry(policy.name, policy.symbol, policy.base_uri)
            self._custody = InMemoryCustody()
            self._authority = MintAuthority(
                policy,
                owner=owner,
                registry=self._registry,
                custody=self._custody,
                events=self._event_log,
                royalty_owner=royalty_owner,
            )

    @property
    def authority(self) -> MintAuthority:
        return self._authority

    @property
    def registry(self) -> InMemoryRegistry:
        return self._registry

    @property
    def custody(self) -> InMemoryCustody:
        return self._custody

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def mint(
        self,
        caller: str,
        amount: int,
        payment: int,
        proof: Sequence[str] = (),
    ) -> ServiceResult:
        return self._run(
            lambda: self._authority.mint(caller, amount, payment, proof).to_dict()
        )

    def set_phase(self, caller: str, target: Any) -> ServiceResult:
        return self._run(
            lambda: {"phase": self._authority.set_phase(caller, target).value}
        )

    def set_whitelist_root(self, caller: str, root: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            changed = self._authority.set_whitelist_root(caller, root)
            return {"root": self._authority.whitelist_root, "changed": changed}
        return self._run(op)

    def set_whitelist(self, addresses: Iterable[str], caller: str) -> ServiceResult:
        """Build a tree over ``addresses`` and commit its root."""
        try:
            tree = WhitelistTree.from_addresses(addresses)
        except (DropError, ValueError) as exc:
            return ServiceResult(success=False, errors=[str(exc)])
        result = self.set_whitelist_root(caller, tree.hex_root)
        if result.success:
            result.data["members"] = tree.leaf_count
        return result

    def set_royalty_owner(self, caller: str, address: str) -> ServiceResult:
        return self._run(
            lambda: {"royalty_owner": self._authority.set_royalty_owner(caller, address)}
        )

    def transfer_ownership(self, caller: str, new_owner: str) -> ServiceResult:
        return self._run(
            lambda: {"owner": self._authority.transfer_ownership(caller, new_owner)}
        )

    def withdraw(self, caller: str, recipient: str) -> ServiceResult:
        return self._run(
            lambda: {"amount": self._authority.withdraw(caller, recipient)}
        )

    def status(self) -> dict[str, Any]:
        authority = self._authority
        return {
            "name": self._registry.name,
            "symbol": self._registry.symbol,
            "phase": authority.phase.value,
            "owner": authority.owner,
            "royalty_owner": authority.royalty_owner,
            "whitelist_root": authority.whitelist_root,
            "total_minted": authority.total_minted,
            "remaining_supply": authority.remaining_supply,
            "max_amount": self._policy.max_amount,
            "unit_price_wei": self._policy.unit_price_wei,
            "custody_balance": self._custody.balance(),
            "events": self._event_log.count,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, op: Callable[[], dict[str, Any]]) -> ServiceResult:
        try:
            data = op()
        except DropError as exc:
            return ServiceResult(
                success=False, errors=[str(exc)], data={"code": exc.code}
            )
        self._persist()
        return ServiceResult(success=True, data=data)

    def save(self) -> None:
        """Persist current state, if a state store is configured."""
        self._persist()

    def _persist(self) -> None:
        if self._state_store is None:
            return
        self._state_store.save(
            authority=self._authority.snapshot(),
            registry=self._registry.to_dict(),
            custody=self._custody.to_dict(),
        )
