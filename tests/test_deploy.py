import json
import logging
from unittest.mock import MagicMock

import pytest
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted

from kipu_bank import deploy as deploy_module
from kipu_bank.abi import ContractArtifact
from kipu_bank.constants import SEPOLIA_FEEDS
from kipu_bank.deploy import DeploymentResult, build_deploy_transaction, deploy_bank
from kipu_bank.errors import DeploymentError
from kipu_bank.settings import BankSettings
from kipu_bank.state import AppState

DEPLOYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
BANK = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

UNSIGNED_TX = {
    "chainId": 11155111,
    "nonce": 0,
    "gas": 3_000_000,
    "maxFeePerGas": 2 * 10**9,
    "maxPriorityFeePerGas": 10**9,
    "data": "0x6080",
    "value": 0,
}


@pytest.fixture
def artifact_path(tmp_path):
    path = tmp_path / "KipuBankV2.json"
    path.write_text(
        json.dumps({"contractName": "KipuBankV2", "abi": [], "bytecode": "0x6080"})
    )
    return path


@pytest.fixture
def state(artifact_path):
    settings = BankSettings(
        private_key=DEPLOYER_KEY,
        artifact_path=artifact_path,
        receipt_retries=1,
        receipt_timeout=1,
    )
    return AppState(settings=settings, logger=logging.getLogger("test"))


@pytest.fixture
def w3():
    w3 = MagicMock()
    tx_hash = HexBytes(bytes.fromhex("ab" * 32))
    w3.eth.send_raw_transaction.return_value = tx_hash
    w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "contractAddress": BANK,
        "blockNumber": 42,
    }
    return w3


@pytest.fixture(autouse=True)
def fixed_transaction(monkeypatch):
    calls = []

    def fake_build(w3, artifact, deployer, bank_cap_usd, price_feed):
        calls.append((artifact.contract_name, deployer, bank_cap_usd, price_feed))
        return dict(UNSIGNED_TX)

    monkeypatch.setattr(deploy_module, "build_deploy_transaction", fake_build)
    return calls


@pytest.mark.asyncio
async def test_deploy_bank_reports_address(state, w3, fixed_transaction):
    result = await deploy_bank(state, w3=w3)

    assert result == DeploymentResult(
        address=BANK,
        tx_hash="0x" + "ab" * 32,
        deployer=DEPLOYER,
        block_number=42,
        bank_cap_usd=1_000_000 * 10**6,
        price_feed=Web3.to_checksum_address(SEPOLIA_FEEDS["ETH_USD"]),
    )
    assert fixed_transaction == [
        ("KipuBankV2", DEPLOYER, 1_000_000 * 10**6, SEPOLIA_FEEDS["ETH_USD"])
    ]
    w3.eth.send_raw_transaction.assert_called_once()


@pytest.mark.asyncio
async def test_deploy_bank_retries_receipt(state, w3):
    receipt = w3.eth.wait_for_transaction_receipt.return_value
    w3.eth.wait_for_transaction_receipt.side_effect = [TimeExhausted(), receipt]

    result = await deploy_bank(state, w3=w3)

    assert result.address == BANK
    assert w3.eth.wait_for_transaction_receipt.call_count == 2


@pytest.mark.asyncio
async def test_deploy_bank_gives_up_after_retries(state, w3):
    w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted()

    with pytest.raises(DeploymentError, match="not mined"):
        await deploy_bank(state, w3=w3)

    assert w3.eth.wait_for_transaction_receipt.call_count == 2


@pytest.mark.asyncio
async def test_deploy_bank_reverted(state, w3):
    w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 0,
        "contractAddress": None,
        "blockNumber": 42,
    }

    with pytest.raises(DeploymentError, match="reverted"):
        await deploy_bank(state, w3=w3)


@pytest.mark.asyncio
async def test_deploy_bank_requires_private_key(artifact_path, w3):
    settings = BankSettings(artifact_path=artifact_path)
    settings.private_key = None
    state = AppState(settings=settings, logger=logging.getLogger("test"))

    with pytest.raises(DeploymentError, match="private_key"):
        await deploy_bank(state, w3=w3)

    w3.eth.send_raw_transaction.assert_not_called()


def test_build_deploy_transaction_passes_constructor_arguments():
    w3 = MagicMock()
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.chain_id = 11155111
    factory = w3.eth.contract.return_value
    factory.constructor.return_value.build_transaction.return_value = {"nonce": 7}
    artifact = ContractArtifact(contract_name="KipuBankV2", abi=[], bytecode="0x6080")

    tx = build_deploy_transaction(
        w3, artifact, DEPLOYER, 10**12, SEPOLIA_FEEDS["ETH_USD"].lower()
    )

    assert tx == {"nonce": 7}
    w3.eth.contract.assert_called_once_with(abi=[], bytecode="0x6080")
    factory.constructor.assert_called_once_with(
        10**12, Web3.to_checksum_address(SEPOLIA_FEEDS["ETH_USD"])
    )
    factory.constructor.return_value.build_transaction.assert_called_once_with(
        {"from": DEPLOYER, "nonce": 7, "chainId": 11155111}
    )
