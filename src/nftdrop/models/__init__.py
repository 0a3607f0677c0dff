"""Core data models for the drop."""

from nftdrop.models.drop import (
    PHASE_ORDER,
    ZERO_ADDRESS,
    MintReceipt,
    Phase,
    normalize_address,
    require_nonzero_address,
)

__all__ = [
    "PHASE_ORDER",
    "ZERO_ADDRESS",
    "MintReceipt",
    "Phase",
    "normalize_address",
    "require_nonzero_address",
]
