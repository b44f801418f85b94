from __future__ import annotations

import json
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

AAVE_POOL_ABI_PATH = ABIS_DIR / "AavePool.json"
AAVE_ORACLE_ABI_PATH = ABIS_DIR / "AaveOracle.json"
ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"
DERISK_ORACLE_ABI_PATH = ABIS_DIR / "DeRiskOracle.json"


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


def load_aave_pool_abi() -> list[dict]:
    """Load the Aave V3 Pool ABI."""
    return load_abi(AAVE_POOL_ABI_PATH)


def load_aave_oracle_abi() -> list[dict]:
    """Load the Aave price oracle ABI."""
    return load_abi(AAVE_ORACLE_ABI_PATH)


def load_erc20_abi() -> list[dict]:
    return load_abi(ERC20_ABI_PATH)


def load_derisk_oracle_abi() -> list[dict]:
    """Load the DeRiskOracle ABI."""
    return load_abi(DERISK_ORACLE_ABI_PATH)
