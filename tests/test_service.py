"""Tests for the drop service facade — proves results, codes and persistence."""

from pathlib import Path

import pytest
from web3 import Web3

from nftdrop.crypto.merkle import WhitelistTree
from nftdrop.persistence.event_log import EventKind, EventLog
from nftdrop.persistence.state_store import StateStore
from nftdrop.policy.resolver import DropPolicy
from nftdrop.service import DropService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

OWNER = Web3.to_checksum_address("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")
ALICE = Web3.to_checksum_address("0x70997970c51812dc3a010c7d01b50e0d17dc79c8")
BOB = Web3.to_checksum_address("0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc")
ERIC = Web3.to_checksum_address("0x9965507d1a55bcc2695c58ba16fb37d819b0a4dc")


@pytest.fixture
def policy() -> DropPolicy:
    return DropPolicy.from_config_dir(CONFIG_DIR)


def _persistent(policy: DropPolicy, tmp_path: Path, owner: str | None = OWNER) -> DropService:
    return DropService(
        policy,
        owner=owner,
        event_log=EventLog(storage_path=tmp_path / "events.jsonl"),
        state_store=StateStore(tmp_path / "state.json"),
    )


class TestResults:
    def test_successful_mint(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.mint(OWNER, 1, policy.required_payment(1))
        assert result.success
        assert result.data["token_ids"] == [2]
        assert result.data["last_id"] == 2
        assert result.data["phase"] == "pre_minting"

    def test_rejection_carries_code(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.mint(ALICE, 1, policy.required_payment(1))
        assert not result.success
        assert result.data["code"] == "not_privileged"
        assert "not allowed preminter" in result.errors[0]

    def test_insufficient_payment_code(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.mint(OWNER, 2, policy.required_payment(2) - 1)
        assert result.data["code"] == "insufficient_payment"

    def test_set_phase(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        assert service.set_phase(OWNER, "whitelist").data == {"phase": "whitelist"}
        result = service.set_phase(OWNER, "pre_minting")
        assert result.data["code"] == "invalid_transition"

    @pytest.mark.parametrize("target", [3, "bogus"])
    def test_unknown_phase_is_failed_result(self, policy: DropPolicy, target: object) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.set_phase(OWNER, target)
        assert not result.success
        assert result.data["code"] == "invalid_transition"
        assert service.status()["phase"] == "pre_minting"

    def test_owner_required_for_new_drop(self, policy: DropPolicy) -> None:
        with pytest.raises(ValueError, match="owner"):
            DropService(policy)

    def test_status(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        service.mint(OWNER, 1, policy.required_payment(1))
        status = service.status()
        assert status["name"] == "NFTDrop"
        assert status["symbol"] == "ND"
        assert status["phase"] == "pre_minting"
        assert status["total_minted"] == 1
        assert status["remaining_supply"] == 12
        assert status["unit_price_wei"] == 60000000000000010
        assert status["custody_balance"] == 60000000000000010
        assert status["royalty_owner"] == OWNER
        assert status["events"] == 1


class TestWhitelist:
    def test_set_whitelist_and_claim(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        service.set_phase(OWNER, "whitelist")
        result = service.set_whitelist([ALICE, BOB], caller=OWNER)
        assert result.success
        assert result.data["members"] == 2
        assert result.data["changed"] is True

        tree = WhitelistTree.from_addresses([ALICE, BOB])
        assert result.data["root"] == tree.hex_root
        claim = service.mint(ALICE, 1, policy.required_payment(1), tree.proof(ALICE))
        assert claim.success

    def test_bad_address_in_whitelist(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.set_whitelist([ALICE, "0xbad"], caller=OWNER)
        assert not result.success
        assert service.authority.whitelist_root is None

    def test_duplicate_address_in_whitelist(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.set_whitelist([ALICE, ALICE.lower()], caller=OWNER)
        assert not result.success

    def test_non_owner_cannot_set_whitelist(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        result = service.set_whitelist([ALICE], caller=ALICE)
        assert result.data["code"] == "unauthorized"


class TestPayouts:
    def test_withdraw(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        service.mint(OWNER, 2, policy.required_payment(2))
        result = service.withdraw(OWNER, BOB)
        assert result.data["amount"] == policy.required_payment(2)
        assert service.custody.balance() == 0

    def test_withdraw_rejects_zero_address(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER)
        service.mint(OWNER, 1, policy.required_payment(1))
        result = service.withdraw(OWNER, "0x" + "00" * 20)
        assert result.data["code"] == "invalid_address"
        assert service.custody.balance() == policy.required_payment(1)

    def test_royalty_and_ownership(self, policy: DropPolicy) -> None:
        service = DropService(policy, owner=OWNER, royalty_owner=BOB)
        assert service.authority.royalty_owner == BOB
        assert service.set_royalty_owner(OWNER, ERIC).data["royalty_owner"] == ERIC
        assert service.transfer_ownership(OWNER, ALICE).data["owner"] == ALICE
        assert service.set_royalty_owner(OWNER, BOB).data["code"] == "unauthorized"


class TestPersistence:
    def test_state_survives_restart(self, policy: DropPolicy, tmp_path: Path) -> None:
        service = _persistent(policy, tmp_path)
        service.mint(OWNER, 1, policy.required_payment(1))
        service.set_phase(OWNER, "whitelist")
        service.set_whitelist([ALICE, BOB], caller=OWNER)
        tree = WhitelistTree.from_addresses([ALICE, BOB])
        service.mint(ALICE, 1, policy.required_payment(1), tree.proof(ALICE))

        resumed = _persistent(policy, tmp_path, owner=None)
        assert resumed.authority.phase.value == "whitelist"
        assert resumed.authority.total_minted == 2
        assert resumed.registry.owner_of(2) == OWNER
        assert resumed.registry.owner_of(1) == ALICE
        assert resumed.custody.balance() == policy.required_payment(2)
        assert resumed.event_log.minted() == [(OWNER, 2), (ALICE, 1)]

        again = resumed.mint(ALICE, 1, policy.required_payment(1), tree.proof(ALICE))
        assert again.data["code"] == "already_claimed"
        assert resumed.mint(BOB, 1, policy.required_payment(1), tree.proof(BOB)).data["last_id"] == 3

    def test_failed_operation_not_persisted(self, policy: DropPolicy, tmp_path: Path) -> None:
        service = _persistent(policy, tmp_path)
        service.save()
        before = (tmp_path / "state.json").read_text(encoding="utf-8")
        service.mint(ALICE, 1, policy.required_payment(1))
        assert (tmp_path / "state.json").read_text(encoding="utf-8") == before
        assert service.event_log.count == 0

    def test_event_log_records_phase_changes(self, policy: DropPolicy, tmp_path: Path) -> None:
        service = _persistent(policy, tmp_path)
        service.set_phase(OWNER, 1)
        service.set_phase(OWNER, 2)
        reloaded = EventLog(storage_path=tmp_path / "events.jsonl")
        changes = reloaded.events(EventKind.PHASE_CHANGED)
        assert [e.payload["to"] for e in changes] == ["whitelist", "public_minting"]
