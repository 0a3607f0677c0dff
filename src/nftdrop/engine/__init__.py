"""Minting engine — phase control, claims, supply and the mint authority."""

from nftdrop.engine.authority import MintAuthority
from nftdrop.engine.claim_ledger import ClaimLedger
from nftdrop.engine.payout import PayoutConfig
from nftdrop.engine.phase_controller import PhaseController
from nftdrop.engine.supply import SupplyAllocator

__all__ = [
    "ClaimLedger",
    "MintAuthority",
    "PayoutConfig",
    "PhaseController",
    "SupplyAllocator",
]
