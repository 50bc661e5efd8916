import json
import os

import pytest
from typer.testing import CliRunner

from kipu_bank import main
from kipu_bank.errors import OracleUnavailable
from kipu_bank.oracles import PriceQuote

runner = CliRunner()

DEPLOYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
BANK = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
USER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("KIPU_BANK_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(main, "setup_logging", lambda level=None: None)


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("KIPU_BANK_PRIVATE_KEY", DEPLOYER_KEY)

    result = runner.invoke(
        main.app, ["deploy", "--show-config", "--bank-cap-usd", "42"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["private_key"] == "***redacted***"
    assert data["bank_cap_usd"] == 42
    assert data["network"] == "sepolia"


def test_deploy_requires_private_key():
    result = runner.invoke(main.app, ["deploy"])

    assert result.exit_code == 2
    assert "private_key" in result.output


def test_deploy_exits_with_code_1_on_failure(monkeypatch, tmp_path):
    monkeypatch.setenv("KIPU_BANK_PRIVATE_KEY", DEPLOYER_KEY)

    result = runner.invoke(
        main.app, ["deploy", "--artifact", str(tmp_path / "missing.json")]
    )

    assert result.exit_code == 1


def test_balance_prints_vault_entry(monkeypatch):
    monkeypatch.setattr(
        "kipu_bank.client.KipuBankClient.vaults",
        lambda self, depositor, asset: 10**18,
    )

    result = runner.invoke(main.app, ["balance", USER, "--bank-address", BANK])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(10**18)


def test_balance_requires_bank_address():
    result = runner.invoke(main.app, ["balance", USER])

    assert result.exit_code == 2


def test_quote_values_eth_in_usd(monkeypatch):
    monkeypatch.setattr(
        "kipu_bank.oracles.chainlink.ChainlinkPriceOracle.read_price",
        lambda self, asset: PriceQuote(answer=2_000 * 10**8, decimals=8),
    )

    result = runner.invoke(main.app, ["quote", str(10**18)])

    assert result.exit_code == 0, result.output
    assert "$2,000.00" in result.output
    assert "2000000000 USD units" in result.output
    assert "1.000000 ETH" in result.output


def test_quote_exits_when_oracle_unavailable(monkeypatch):
    def unavailable(self, asset):
        raise OracleUnavailable(asset, "stale price")

    monkeypatch.setattr(
        "kipu_bank.oracles.chainlink.ChainlinkPriceOracle.read_price", unavailable
    )

    result = runner.invoke(main.app, ["quote", str(10**18)])

    assert result.exit_code == 1
