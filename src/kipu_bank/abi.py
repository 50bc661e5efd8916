from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

AGGREGATOR_ABI_PATH = ABIS_DIR / "AggregatorV3Interface.json"
KIPU_BANK_ABI_PATH = ABIS_DIR / "KipuBankV2.json"


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract: ABI plus creation bytecode."""

    contract_name: str
    abi: list[dict]
    bytecode: str


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


def load_artifact(path: str | Path) -> ContractArtifact:
    """Load a Hardhat/Foundry style artifact with "abi" and "bytecode".

    Foundry nests the bytecode under ``bytecode.object``; both layouts are
    accepted.

    Raises:
        FileNotFoundError: If the artifact does not exist.
        ValueError: If the artifact carries no creation bytecode.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Contract artifact not found: {p}")
    with p.open() as f:
        data = json.load(f)

    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode or bytecode == "0x":
        raise ValueError(f"Artifact {p} has no creation bytecode")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return ContractArtifact(
        contract_name=data.get("contractName", p.stem),
        abi=data["abi"],
        bytecode=bytecode,
    )


def load_aggregator_abi() -> list[dict]:
    """Load the Chainlink AggregatorV3Interface ABI."""
    return load_abi(AGGREGATOR_ABI_PATH)


def load_kipu_bank_abi() -> list[dict]:
    """Load the KipuBankV2 ABI."""
    return load_abi(KIPU_BANK_ABI_PATH)
