"""Whitelist anchoring — publishes a committed whitelist root on Ethereum.

The whitelist root is the only thing the mint authority trusts during
the whitelist phase. Anchoring it in a transaction before the phase
opens gives claimants a public, timestamped record of the exact set the
issuer committed to, so a later silent swap of the root is detectable.

This is NOT a contract call. The root is embedded in the data field of
a 0-value self-send transaction; the chain serves only as a witness.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from nftdrop.crypto.merkle import to_bytes32


EXPLORERS = {
    1: "https://etherscan.io/tx/",
    11155111: "https://sepolia.etherscan.io/tx/",
}


@dataclass(frozen=True)
class AnchorRecord:
    """A record of a successful whitelist-root anchor."""
    root: str
    tx_hash: str
    block_number: int
    chain_id: int
    timestamp_utc: str
    explorer_url: str


def anchor_payload(root: str) -> bytes:
    """Return the transaction data for a root. Rejects malformed roots."""
    raw = to_bytes32(root)
    if raw is None:
        raise ValueError(f"Whitelist root must be a 32-byte hex digest: {root!r}")
    return raw


def anchor_to_chain(
    root: str,
    rpc_url: str,
    private_key: str,
    chain_id: int = 11155111,  # Sepolia
    gas: int = 30_000,
    gas_price_gwei: str = "2",
) -> AnchorRecord:
    """Anchor a whitelist root by embedding it in a transaction.

    Sends a 0-ETH self-send transaction with the root in the data field.
    Waits for 1 confirmation. Returns a complete AnchorRecord.

    Args:
        root: The 0x-prefixed 32-byte whitelist root.
        rpc_url: Ethereum RPC endpoint URL.
        private_key: Hex-encoded private key for signing.
        chain_id: Network chain ID (default: 11155111 = Sepolia).
        gas: Gas limit for the transaction.
        gas_price_gwei: Gas price in gwei.
    """
    from web3 import Web3, HTTPProvider
    from eth_account import Account

    data = anchor_payload(root)

    w3 = Web3(HTTPProvider(rpc_url))
    acct = Account.from_key(private_key)

    nonce = w3.eth.get_transaction_count(acct.address)
    tx = {
        "to": acct.address,  # self-send, 0 ETH
        "value": 0,
        "gas": gas,
        "gasPrice": w3.to_wei(gas_price_gwei, "gwei"),
        "nonce": nonce,
        "chainId": chain_id,
        "data": data,
    }

    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    tx_hex = Web3.to_hex(tx_hash)

    print(f"  Sent tx: {tx_hex}")
    print("  Waiting for confirmation ...")

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=300)

    explorer_url = EXPLORERS[chain_id] + tx_hex if chain_id in EXPLORERS else ""
    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    print(f"  Confirmed in block {receipt.blockNumber}")

    return AnchorRecord(
        root=Web3.to_hex(data),
        tx_hash=tx_hex,
        block_number=receipt.blockNumber,
        chain_id=chain_id,
        timestamp_utc=now,
        explorer_url=explorer_url,
    )
