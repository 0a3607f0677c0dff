"""Drop error taxonomy — every rejected call raises one of these.

All errors are synchronous and final. A raised DropError means the
requested operation was aborted with zero state mutation; there is no
retry at this layer.

Each class carries a stable ``code`` (for callers that switch on the
reason) and a default message matching the on-chain NFTDrop revert strings.
"""

from __future__ import annotations

from typing import Optional


class DropError(Exception):
    """Base class for all drop authorization and accounting failures."""

    code = "drop_error"
    default_message = "drop operation rejected"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthorized(DropError):
    code = "unauthorized"
    default_message = "Ownable: caller is not the owner"


class NotPrivileged(Unauthorized):
    """Raised when a non-privileged caller mints during pre-minting."""
    code = "not_privileged"
    default_message = "NFTDrop: not allowed preminter"


class InvalidTransition(DropError):
    code = "invalid_transition"
    default_message = "NFTDrop: invalid phase transition"


class InsufficientPayment(DropError):
    code = "insufficient_payment"
    default_message = "NFTDrop: not enough price"


class AmountExceedsMax(DropError):
    code = "amount_exceeds_max"
    default_message = "NFTDrop: amount exceeds maxAmount"


class InvalidAmount(DropError):
    code = "invalid_amount"
    default_message = "NFTDrop: amount must be at least 1"


class SupplyExceeded(DropError):
    code = "supply_exceeded"
    default_message = "NFTDrop: supply exhausted"


class RootNotSet(DropError):
    code = "root_not_set"
    default_message = "NFTDrop: hash data should be set"


class InvalidProof(DropError):
    code = "invalid_proof"
    default_message = "NFTDrop: invalid proof"


class AlreadyClaimed(DropError):
    code = "already_claimed"
    default_message = "NFTDrop: already claimed address"


class PerAddressCapExceeded(DropError):
    code = "per_address_cap_exceeded"
    default_message = "NFTDrop: per-address mint cap exceeded"


class InvalidAddress(DropError):
    code = "invalid_address"
    default_message = "NFTDrop: invalid address"


class ReentrantCall(DropError):
    code = "reentrant_call"
    default_message = "NFTDrop: reentrant call"
