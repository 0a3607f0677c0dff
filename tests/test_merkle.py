"""Tests for the whitelist Merkle tree — proves membership proofs hold."""

import pytest
from web3 import Web3

from nftdrop.crypto.merkle import (
    ZERO_ROOT,
    WhitelistTree,
    is_zero_root,
    leaf_hash,
    to_bytes32,
    verify_proof,
)
from nftdrop.errors import InvalidAddress


ALICE = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
BOB = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
CARL = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
DOM = "0x15d34aaf54267db7d7c367839aaf71a00a2c6a65"
ERIC = "0x9965507d1a55bcc2695c58ba16fb37d819b0a4dc"
OUTSIDER = "0x976ea74026e726554db657fa54763abd0c3a0aa9"

MEMBERS = [ALICE, BOB, CARL, DOM]


def _addresses(n: int) -> list[str]:
    return [f"0x{i:040x}" for i in range(1, n + 1)]


def _flip_last_byte(node: str) -> str:
    raw = bytearray(Web3.to_bytes(hexstr=node))
    raw[-1] ^= 0x01
    return Web3.to_hex(bytes(raw))


class TestLeafHash:
    def test_leaf_is_keccak_of_address_bytes(self) -> None:
        expected = bytes(Web3.keccak(bytes.fromhex(ALICE[2:])))
        assert leaf_hash(ALICE) == expected

    def test_leaf_ignores_address_case(self) -> None:
        assert leaf_hash(ALICE) == leaf_hash(Web3.to_checksum_address(ALICE))

    def test_invalid_address_rejected(self) -> None:
        with pytest.raises(InvalidAddress):
            leaf_hash("0x1234")


class TestContractCompatibility:
    """Roots must match keccak256(abi.encodePacked(...)) as computed on-chain."""

    def test_hash_is_keccak256_not_sha3(self) -> None:
        empty = "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        assert Web3.to_hex(Web3.keccak(b"")) == empty

    def test_leaf_matches_packed_address(self) -> None:
        packed = Web3.solidity_keccak(["address"], [Web3.to_checksum_address(ALICE)])
        assert leaf_hash(ALICE) == bytes(packed)

    def test_root_matches_packed_construction(self) -> None:
        """Four leaves, two sorted pairs, one sorted root."""
        def node(address: str) -> bytes:
            return bytes(Web3.solidity_keccak(["address"], [Web3.to_checksum_address(address)]))

        def parent(a: bytes, b: bytes) -> bytes:
            lo, hi = sorted([a, b])
            return bytes(Web3.solidity_keccak(["bytes32", "bytes32"], [lo, hi]))

        left = parent(node(ALICE), node(BOB))
        right = parent(node(CARL), node(DOM))
        expected = Web3.to_hex(parent(left, right))
        assert WhitelistTree.from_addresses(MEMBERS).hex_root == expected


class TestTreeConstruction:
    def test_empty_tree_has_zero_root(self) -> None:
        tree = WhitelistTree()
        assert tree.compute_root() == ZERO_ROOT
        assert is_zero_root(tree.hex_root)

    def test_single_leaf_root_is_leaf(self) -> None:
        tree = WhitelistTree.from_addresses([ALICE])
        assert tree.hex_root == Web3.to_hex(leaf_hash(ALICE))

    def test_two_leaves_combine_sorted(self) -> None:
        a, b = leaf_hash(ALICE), leaf_hash(BOB)
        expected = Web3.to_hex(Web3.keccak(min(a, b) + max(a, b)))
        assert WhitelistTree.from_addresses([ALICE, BOB]).hex_root == expected
        assert WhitelistTree.from_addresses([BOB, ALICE]).hex_root == expected

    def test_odd_node_promoted(self) -> None:
        """Three leaves: the third is carried up unchanged, then paired."""
        a, b, c = leaf_hash(ALICE), leaf_hash(BOB), leaf_hash(CARL)
        ab = bytes(Web3.keccak(min(a, b) + max(a, b)))
        expected = Web3.to_hex(Web3.keccak(min(ab, c) + max(ab, c)))
        assert WhitelistTree.from_addresses([ALICE, BOB, CARL]).hex_root == expected

    def test_different_sets_different_roots(self) -> None:
        root1 = WhitelistTree.from_addresses(MEMBERS).hex_root
        root2 = WhitelistTree.from_addresses(MEMBERS[:3] + [ERIC]).hex_root
        assert root1 != root2

    def test_duplicate_address_rejected(self) -> None:
        tree = WhitelistTree()
        tree.add_address(ALICE)
        with pytest.raises(ValueError, match="Duplicate"):
            tree.add_address(Web3.to_checksum_address(ALICE))

    def test_cannot_add_after_compute(self) -> None:
        tree = WhitelistTree.from_addresses([ALICE])
        with pytest.raises(RuntimeError):
            tree.add_address(BOB)

    def test_root_requires_compute(self) -> None:
        tree = WhitelistTree()
        tree.add_address(ALICE)
        with pytest.raises(RuntimeError):
            _ = tree.hex_root

    def test_membership(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert ALICE in tree
        assert Web3.to_checksum_address(BOB) in tree
        assert OUTSIDER not in tree
        assert "not-an-address" not in tree


class TestProofs:
    @pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7, 8, 13])
    def test_every_member_verifies(self, size: int) -> None:
        members = _addresses(size)
        tree = WhitelistTree.from_addresses(members)
        for address in members:
            assert verify_proof(tree.hex_root, address, tree.proof(address))

    def test_inclusion_proof_fields(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        proof = tree.inclusion_proof(ALICE)
        assert proof is not None
        assert proof.address == Web3.to_checksum_address(ALICE)
        assert proof.leaf == Web3.to_hex(leaf_hash(ALICE))
        assert proof.root == tree.hex_root
        assert len(proof.path) == 2

    def test_non_member_has_no_proof(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert tree.inclusion_proof(OUTSIDER) is None
        assert tree.proof(OUTSIDER) == []

    def test_non_member_fails_with_member_proof(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert not verify_proof(tree.hex_root, OUTSIDER, tree.proof(ALICE))

    def test_member_fails_with_other_members_proof(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert not verify_proof(tree.hex_root, ALICE, tree.proof(CARL))

    def test_tampered_proof_fails(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        proof = tree.proof(BOB)
        for i in range(len(proof)):
            tampered = list(proof)
            tampered[i] = _flip_last_byte(tampered[i])
            assert not verify_proof(tree.hex_root, BOB, tampered)

    def test_tampered_root_fails(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert not verify_proof(_flip_last_byte(tree.hex_root), DOM, tree.proof(DOM))

    def test_zero_root_never_verifies(self) -> None:
        tree = WhitelistTree.from_addresses([ALICE])
        assert not verify_proof(ZERO_ROOT, ALICE, tree.proof(ALICE))

    def test_malformed_proof_node_fails(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert not verify_proof(tree.hex_root, ALICE, ["0x1234"])
        assert not verify_proof(tree.hex_root, ALICE, ["not hex"])

    @pytest.mark.parametrize("candidate", ["0x1234", "not-an-address", ""])
    def test_malformed_address_fails(self, candidate: str) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        assert verify_proof(tree.hex_root, candidate, tree.proof(ALICE)) is False

    def test_bytes_and_hex_inputs_agree(self) -> None:
        tree = WhitelistTree.from_addresses(MEMBERS)
        root_bytes = to_bytes32(tree.hex_root)
        proof_bytes = [to_bytes32(p) for p in tree.proof(CARL)]
        assert verify_proof(root_bytes, CARL, proof_bytes)
