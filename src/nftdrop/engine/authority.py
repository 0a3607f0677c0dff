"""Mint authority — the authorization and accounting engine of the drop.

Every mint request runs the same pipeline, short-circuiting on the first
failure:

    0. amount >= 1                                   InvalidAmount
    1. payment >= (price + gas allowance) * amount   InsufficientPayment
    2. amount <= max_amount                          AmountExceedsMax
    3. phase eligibility
         PRE_MINTING     caller is the owner         NotPrivileged
         WHITELIST       root set                    RootNotSet
                         proof verifies              InvalidProof
                         caller has not claimed      AlreadyClaimed
                         amount == 1                 PerAddressCapExceeded
         PUBLIC_MINTING  count + amount <= cap       PerAddressCapExceeded
    4. remaining supply >= amount                    SupplyExceeded

Only when every check has passed is anything written: the claim or the
public count, then the id allocation. External effects follow the
commit, in order: one registry issue per id, custody deposit, and the
"minted" event carrying (caller, last id).

Calls are atomic. A single-flight guard rejects any call made while
another is in flight (a collaborator calling back in). If an external
effect raises, the effects this call already delivered are undone (the
payment refunded, issued ids revoked) and internal state is rolled back
to its pre-call snapshot before the error propagates, so an id is never
handed out twice.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from web3 import Web3

from nftdrop.collaborators import (
    EventSink,
    FundCustody,
    InMemoryCustody,
    InMemoryRegistry,
    ItemRegistry,
)
from nftdrop.crypto.merkle import HashLike, to_bytes32, verify_proof
from nftdrop.engine.claim_ledger import ClaimLedger
from nftdrop.engine.payout import PayoutConfig
from nftdrop.engine.phase_controller import PhaseController
from nftdrop.engine.supply import SupplyAllocator
from nftdrop.errors import (
    AmountExceedsMax,
    InsufficientPayment,
    InvalidAmount,
    InvalidProof,
    InvalidTransition,
    NotPrivileged,
    PerAddressCapExceeded,
    ReentrantCall,
    RootNotSet,
)
from nftdrop.models.drop import MintReceipt, Phase, normalize_address
from nftdrop.persistence.event_log import EventKind, EventLog
from nftdrop.policy.resolver import DropPolicy


WHITELIST_CLAIM_AMOUNT = 1


class MintAuthority:
    """Phased, allowance-limited minting authority.

    Usage:
        authority = MintAuthority(policy, owner="0xOwner...")
        authority.mint("0xOwner...", 1, policy.required_payment(1))
        authority.set_phase("0xOwner...", Phase.WHITELIST)
        authority.set_whitelist_root("0xOwner...", tree.hex_root)
        authority.mint("0xAlice...", 1, payment, proof=tree.proof("0xAlice..."))
    """

    def __init__(
        self,
        policy: DropPolicy,
        owner: str,
        registry: Optional[ItemRegistry] = None,
        custody: Optional[FundCustody] = None,
        events: Optional[EventSink] = None,
        royalty_owner: Optional[str] = None,
    ) -> None:
        self._policy = policy
        self._registry = registry if registry is not None else InMemoryRegistry(
            policy.name, policy.symbol, policy.base_uri
        )
        self._custody = custody if custody is not None else InMemoryCustody()
        self._events = events if events is not None else EventLog()

        self._phases = PhaseController()
        self._ledger = ClaimLedger()
        self._supply = SupplyAllocator(policy.max_amount, policy.reserved_ids)
        self._payout = PayoutConfig(owner, royalty_owner)
        self._whitelist_root: Optional[str] = None
        self._in_flight = False

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def mint(
        self,
        caller: str,
        amount: int,
        payment: int,
        proof: Sequence[HashLike] = (),
    ) -> MintReceipt:
        """Mint ``amount`` items to ``caller`` for ``payment`` wei."""
        with self._transaction():
            minter = normalize_address(caller)
            phase = self._phases.phase
            self._check_mint(minter, phase, amount, payment, proof)

            if phase == Phase.WHITELIST:
                self._ledger.record_claim(minter)
            elif phase == Phase.PUBLIC_MINTING:
                self._ledger.record_public(minter, amount, self._policy.per_address_cap)
            token_ids = self._supply.allocate(
                amount, reserved=phase == Phase.PRE_MINTING
            )

            self._deliver(minter, token_ids, payment, phase)

            return MintReceipt(
                minter=minter,
                token_ids=tuple(token_ids),
                phase=phase,
                payment=payment,
            )

    def _check_mint(
        self,
        minter: str,
        phase: Phase,
        amount: int,
        payment: int,
        proof: Sequence[HashLike],
    ) -> None:
        """Run every mint precondition without writing anything."""
        if amount < 1:
            raise InvalidAmount()

        required = self._policy.required_payment(amount)
        if payment < required:
            raise InsufficientPayment(
                f"NFTDrop: not enough price (required {required} wei, sent {payment})"
            )

        if amount > self._policy.max_amount:
            raise AmountExceedsMax(
                f"NFTDrop: can't be greater than maxAmount({self._policy.max_amount})"
            )

        if phase == Phase.PRE_MINTING:
            if not self._payout.is_owner(minter):
                raise NotPrivileged()
        elif phase == Phase.WHITELIST:
            if self._whitelist_root is None:
                raise RootNotSet()
            if not verify_proof(self._whitelist_root, minter, proof):
                raise InvalidProof()
            self._ledger.check_claim(minter)
            if amount != WHITELIST_CLAIM_AMOUNT:
                raise PerAddressCapExceeded(
                    f"NFTDrop: whitelist claim is limited to {WHITELIST_CLAIM_AMOUNT} NFT"
                )
        else:
            self._ledger.check_public(minter, amount, self._policy.per_address_cap)

        self._supply.check(amount, reserved=phase == Phase.PRE_MINTING)

    def _deliver(
        self,
        minter: str,
        token_ids: list[int],
        payment: int,
        phase: Phase,
    ) -> None:
        """Issue ids, take the payment, notify. Undo delivered effects on failure.

        Ids are issued before the payment is taken, so a registry failure
        never leaves funds in custody. If a later step raises, the payment
        is refunded and every id issued by this call is revoked, leaving
        the registry free to accept the same ids after rollback.
        """
        issued: list[int] = []
        refund = 0
        try:
            for token_id in token_ids:
                self._registry.issue(minter, token_id)
                issued.append(token_id)
            self._custody.deposit(minter, payment)
            refund = payment
            self._events.emit(
                EventKind.MINTED.value,
                minter,
                {"token_id": token_ids[-1], "amount": len(token_ids), "phase": phase.value},
            )
        except Exception:
            if refund:
                self._custody.transfer(minter, refund)
            for token_id in reversed(issued):
                self._registry.revoke(token_id)
            raise

    # ------------------------------------------------------------------
    # Administration (owner only)
    # ------------------------------------------------------------------

    def set_phase(self, caller: str, target: Any) -> Phase:
        """Advance to the next phase. Returns the new phase."""
        with self._transaction():
            owner = self._payout.require_owner(caller)
            try:
                target_phase = Phase.parse(target)
            except ValueError as exc:
                raise InvalidTransition(f"NFTDrop: unknown phase {target!r}") from exc
            previous = self._phases.execute_transition(target_phase)

            released: list[int] = []
            if previous == Phase.PRE_MINTING:
                released = self._supply.release_reserved()

            self._events.emit(
                EventKind.PHASE_CHANGED.value,
                owner,
                {
                    "from": previous.value,
                    "to": target_phase.value,
                    "released_reserved_ids": released,
                },
            )
            return target_phase

    def set_whitelist_root(
        self,
        caller: str,
        root: HashLike,
        proof: Optional[Sequence[HashLike]] = None,
    ) -> bool:
        """Commit the whitelist root.

        ``proof`` is accepted for call compatibility with the contract's
        setHashData(proof, root) and ignored. Setting the root that is
        already committed is a no-op. Returns True if the root changed.
        """
        with self._transaction():
            owner = self._payout.require_owner(caller)
            if self._phases.phase == Phase.PUBLIC_MINTING:
                raise InvalidTransition(
                    "NFTDrop: whitelist root can only be set before public minting"
                )
            raw = to_bytes32(root)
            if raw is None or raw == b"\x00" * 32:
                raise RootNotSet("NFTDrop: whitelist root must be a non-zero 32-byte digest")

            hex_root = Web3.to_hex(raw)
            if hex_root == self._whitelist_root:
                return False

            previous = self._whitelist_root
            self._whitelist_root = hex_root
            self._events.emit(
                EventKind.WHITELIST_ROOT_SET.value,
                owner,
                {"root": hex_root, "previous_root": previous},
            )
            return True

    def set_royalty_owner(self, caller: str, address: str) -> str:
        """Change the royalty recipient. Returns the new recipient."""
        with self._transaction():
            previous = self._payout.set_royalty_owner(caller, address)
            self._events.emit(
                EventKind.ROYALTY_OWNER_CHANGED.value,
                self._payout.owner,
                {"from": previous, "to": self._payout.royalty_owner},
            )
            return self._payout.royalty_owner

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        with self._transaction():
            previous = self._payout.transfer_ownership(caller, new_owner)
            self._events.emit(
                EventKind.OWNERSHIP_TRANSFERRED.value,
                previous,
                {"from": previous, "to": self._payout.owner},
            )
            return self._payout.owner

    def withdraw(self, caller: str, recipient: str) -> int:
        """Send the custody balance to ``recipient``. Returns the wei sent."""
        with self._transaction():
            amount = self._payout.withdraw(caller, recipient, self._custody)
            self._events.emit(
                EventKind.WITHDRAWN.value,
                self._payout.owner,
                {"recipient": normalize_address(recipient), "amount": amount},
            )
            return amount

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def policy(self) -> DropPolicy:
        return self._policy

    @property
    def phase(self) -> Phase:
        return self._phases.phase

    @property
    def owner(self) -> str:
        return self._payout.owner

    @property
    def royalty_owner(self) -> str:
        return self._payout.royalty_owner

    @property
    def whitelist_root(self) -> Optional[str]:
        return self._whitelist_root

    @property
    def total_minted(self) -> int:
        return self._supply.minted

    @property
    def remaining_supply(self) -> int:
        return self._supply.remaining

    @property
    def issued_ids(self) -> list[int]:
        return self._supply.issued_ids

    @property
    def registry(self) -> ItemRegistry:
        return self._registry

    @property
    def custody(self) -> FundCustody:
        return self._custody

    @property
    def events(self) -> EventSink:
        return self._events

    def has_claimed(self, address: str) -> bool:
        return self._ledger.has_claimed(normalize_address(address))

    def public_minted(self, address: str) -> int:
        return self._ledger.public_minted(normalize_address(address))

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Serializable copy of all internal state."""
        return {
            "phase": self._phases.snapshot(),
            "ledger": self._ledger.snapshot(),
            "supply": self._supply.snapshot(),
            "payout": self._payout.snapshot(),
            "whitelist_root": self._whitelist_root,
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._phases.restore(data["phase"])
        self._ledger.restore(data["ledger"])
        self._supply.restore(data["supply"])
        self._payout.restore(data["payout"])
        self._whitelist_root = data.get("whitelist_root")

    @classmethod
    def from_snapshot(
        cls,
        policy: DropPolicy,
        data: dict[str, Any],
        registry: Optional[ItemRegistry] = None,
        custody: Optional[FundCustody] = None,
        events: Optional[EventSink] = None,
    ) -> MintAuthority:
        authority = cls(
            policy,
            owner=data["payout"]["owner"],
            registry=registry,
            custody=custody,
            events=events,
        )
        authority.restore(data)
        return authority

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Single-flight guard with rollback of internal state on failure."""
        if self._in_flight:
            raise ReentrantCall()
        self._in_flight = True
        saved = self.snapshot()
        try:
            yield
        except Exception:
            self.restore(saved)
            raise
        finally:
            self._in_flight = False
