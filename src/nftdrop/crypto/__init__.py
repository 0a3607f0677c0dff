"""Cryptographic primitives — whitelist Merkle trees and root anchoring."""

from nftdrop.crypto.merkle import WhitelistTree, leaf_hash, verify_proof

__all__ = ["WhitelistTree", "leaf_hash", "verify_proof"]
