"""Whitelist Merkle tree — sorted-pair keccak256 commitments over addresses.

Leaf:   keccak256(20 address bytes)
Parent: keccak256(min(a, b) || max(a, b))   (byte-wise ordering)

Sibling ordering is normalised rather than positional, so a proof is
just the list of sibling hashes; no left/right flags are needed. An odd
node at the end of a level is promoted unchanged to the next level.

These rules match merkletreejs with ``{sortPairs: true}`` and
OpenZeppelin's ``MerkleProof.verify``, so roots built here can be
committed on-chain and proofs produced here verify there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from web3 import Web3

from nftdrop.errors import InvalidAddress
from nftdrop.models.drop import normalize_address


HashLike = Union[bytes, str]

ZERO_ROOT = "0x" + "00" * 32


@dataclass(frozen=True)
class MerkleProof:
    """An inclusion proof for a single whitelisted address."""
    address: str
    leaf: str
    path: tuple[str, ...]
    root: str


def leaf_hash(address: str) -> bytes:
    """Hash an address into its leaf value."""
    return bytes(Web3.keccak(hexstr=normalize_address(address)))


def to_bytes32(value: HashLike) -> Optional[bytes]:
    """Decode a 32-byte hash from bytes or 0x-hex. None if malformed."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        try:
            raw = Web3.to_bytes(hexstr=value)
        except ValueError:
            return None
    else:
        return None
    return raw if len(raw) == 32 else None


def is_zero_root(root: Optional[HashLike]) -> bool:
    if root is None:
        return True
    raw = to_bytes32(root)
    return raw is None or raw == b"\x00" * 32


def verify_proof(root: HashLike, address: str, proof: Sequence[HashLike]) -> bool:
    """Check that ``address`` is a member of the set committed by ``root``.

    Pure function. An unset (zero) root, a malformed root, a malformed
    address and any malformed proof node all verify False.
    """
    expected = to_bytes32(root)
    if expected is None or expected == b"\x00" * 32:
        return False

    try:
        node = leaf_hash(address)
    except InvalidAddress:
        return False
    for sibling in proof:
        raw = to_bytes32(sibling)
        if raw is None:
            return False
        node = _hash_pair(node, raw)
    return node == expected


class WhitelistTree:
    """A sorted-pair keccak256 Merkle tree over whitelisted addresses.

    Usage:
        tree = WhitelistTree()
        tree.add_address("0xAbc...")
        tree.add_address("0xDef...")
        root = tree.compute_root()
        proof = tree.inclusion_proof("0xAbc...")
    """

    def __init__(self) -> None:
        self._addresses: list[str] = []
        self._tree: list[list[bytes]] = []
        self._computed = False

    @classmethod
    def from_addresses(cls, addresses: Iterable[str]) -> WhitelistTree:
        tree = cls()
        for address in addresses:
            tree.add_address(address)
        tree.compute_root()
        return tree

    def add_address(self, address: str) -> None:
        """Add an address. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        checksummed = normalize_address(address)
        if checksummed in self._addresses:
            raise ValueError(f"Duplicate whitelist address: {checksummed}")
        self._addresses.append(checksummed)

    @property
    def leaf_count(self) -> int:
        return len(self._addresses)

    @property
    def addresses(self) -> list[str]:
        return list(self._addresses)

    def compute_root(self) -> str:
        """Compute the hex root.

        Leaves keep insertion order. An empty tree has the zero root,
        which the mint authority treats as "unset".
        """
        self._computed = True
        if not self._addresses:
            self._tree = []
            return ZERO_ROOT

        current_level = [leaf_hash(a) for a in self._addresses]
        self._tree = [current_level]
        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(_hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])  # Promote odd node
            self._tree.append(next_level)
            current_level = next_level

        return Web3.to_hex(current_level[0])

    @property
    def hex_root(self) -> str:
        if not self._computed:
            raise RuntimeError("Must call compute_root before reading the root")
        return Web3.to_hex(self._tree[-1][0]) if self._tree else ZERO_ROOT

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        try:
            return normalize_address(address) in self._addresses
        except InvalidAddress:
            return False

    def inclusion_proof(self, address: str) -> Optional[MerkleProof]:
        """Generate an inclusion proof for an address.

        Returns None if the address is not in the tree.
        Must call compute_root first.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        checksummed = normalize_address(address)
        if checksummed not in self._addresses:
            return None

        leaf_idx = self._addresses.index(checksummed)
        idx = leaf_idx
        path: list[str] = []
        for level in self._tree[:-1]:
            if idx % 2 == 1:
                path.append(Web3.to_hex(level[idx - 1]))
            elif idx + 1 < len(level):
                path.append(Web3.to_hex(level[idx + 1]))
            # A promoted node has no sibling at this level
            idx //= 2

        return MerkleProof(
            address=checksummed,
            leaf=Web3.to_hex(self._tree[0][leaf_idx]),
            path=tuple(path),
            root=self.hex_root,
        )

    def proof(self, address: str) -> list[str]:
        """Hex proof for an address; empty if the address is not a member."""
        result = self.inclusion_proof(address)
        return list(result.path) if result is not None else []


def _hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes together in sorted order."""
    if a <= b:
        return bytes(Web3.keccak(a + b))
    return bytes(Web3.keccak(b + a))
