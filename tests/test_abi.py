import json

import pytest

from kipu_bank.abi import load_aggregator_abi, load_artifact, load_kipu_bank_abi


def test_bundled_abis_load():
    aggregator_names = {entry.get("name") for entry in load_aggregator_abi()}
    bank_names = {entry.get("name") for entry in load_kipu_bank_abi()}

    assert {"latestRoundData", "decimals"} <= aggregator_names
    assert {"deposit", "withdraw", "vaults", "bankCapUSD"} <= bank_names


def test_load_hardhat_artifact(tmp_path):
    path = tmp_path / "KipuBankV2.json"
    path.write_text(
        json.dumps({"contractName": "KipuBankV2", "abi": [], "bytecode": "0x6080"})
    )

    artifact = load_artifact(path)

    assert artifact.contract_name == "KipuBankV2"
    assert artifact.bytecode == "0x6080"


def test_load_foundry_artifact(tmp_path):
    path = tmp_path / "Bank.json"
    path.write_text(json.dumps({"abi": [], "bytecode": {"object": "6080"}}))

    artifact = load_artifact(path)

    assert artifact.contract_name == "Bank"
    assert artifact.bytecode == "0x6080"


def test_artifact_without_bytecode(tmp_path):
    path = tmp_path / "IBank.json"
    path.write_text(json.dumps({"abi": [], "bytecode": "0x"}))

    with pytest.raises(ValueError, match="no creation bytecode"):
        load_artifact(path)


def test_missing_artifact(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_artifact(tmp_path / "missing.json")
