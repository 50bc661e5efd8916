"""Deployment of the KipuBankV2 contract."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import backoff
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import URI
from web3 import Web3
from web3.exceptions import TimeExhausted

from .abi import ContractArtifact, load_artifact
from .errors import DeploymentError
from .state import AppState


@dataclass(frozen=True)
class DeploymentResult:
    address: str
    tx_hash: str
    deployer: str
    block_number: int
    bank_cap_usd: int
    price_feed: str


def build_deploy_transaction(
    w3: Web3,
    artifact: ContractArtifact,
    deployer: str,
    bank_cap_usd: int,
    price_feed: str,
) -> dict[str, Any]:
    """Build the unsigned constructor transaction for the bank."""
    factory = w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
    return factory.constructor(
        bank_cap_usd, Web3.to_checksum_address(price_feed)
    ).build_transaction(
        {
            "from": deployer,
            "nonce": w3.eth.get_transaction_count(deployer),
            "chainId": w3.eth.chain_id,
        }
    )


async def deploy_bank(state: AppState, w3: Web3 | None = None) -> DeploymentResult:
    """Deploy KipuBankV2 with the configured cap and price feed.

    Args:
        state: Application state containing settings and logger
        w3: Optional Web3 instance; built from the configured RPC when omitted

    Returns:
        The deployed address and transaction details

    Raises:
        DeploymentError: If no signer is configured or the deployment reverts
        FileNotFoundError: If the contract artifact is missing
    """
    s = state.settings
    log = state.logger

    if s.private_key is None:
        raise DeploymentError("private_key is required to deploy")

    artifact = load_artifact(s.artifact_path)
    if w3 is None:
        w3 = Web3(Web3.HTTPProvider(URI(s.rpc_url_resolved)))

    deployer: LocalAccount = Account.from_key(s.private_key_required)
    log.info("Deploying contracts with account: %s", deployer.address)

    price_feed = s.price_feed_address_resolved
    log.info(
        "Constructor arguments: bankCapUSD=%d priceFeed=%s", s.bank_cap_usd, price_feed
    )

    tx = await asyncio.to_thread(
        build_deploy_transaction,
        w3,
        artifact,
        deployer.address,
        s.bank_cap_usd,
        price_feed,
    )
    signed = deployer.sign_transaction(tx)
    tx_hash = await asyncio.to_thread(w3.eth.send_raw_transaction, signed.raw_transaction)
    tx_hash_hex = Web3.to_hex(tx_hash)
    log.debug("Deployment transaction sent: %s", tx_hash_hex)

    def _on_backoff(details: Any) -> None:
        log.warning(
            "Receipt for %s not available yet (attempt %d of %d)",
            tx_hash_hex,
            details["tries"],
            s.receipt_retries + 1,
        )

    @backoff.on_exception(
        backoff.constant,
        TimeExhausted,
        max_tries=s.receipt_retries + 1,
        interval=0,
        on_backoff=_on_backoff,
    )
    async def _wait_for_receipt():
        return await asyncio.to_thread(
            w3.eth.wait_for_transaction_receipt, tx_hash, timeout=s.receipt_timeout
        )

    try:
        receipt = await _wait_for_receipt()
    except TimeExhausted as e:
        raise DeploymentError(
            f"Deployment transaction {tx_hash_hex} was not mined in time"
        ) from e

    if receipt["status"] != 1 or not receipt.get("contractAddress"):
        raise DeploymentError(f"Deployment transaction {tx_hash_hex} reverted")

    address = Web3.to_checksum_address(receipt["contractAddress"])
    log.info("%s deployed to: %s", artifact.contract_name, address)

    return DeploymentResult(
        address=address,
        tx_hash=tx_hash_hex,
        deployer=deployer.address,
        block_number=int(receipt["blockNumber"]),
        bank_cap_usd=s.bank_cap_usd,
        price_feed=Web3.to_checksum_address(price_feed),
    )
