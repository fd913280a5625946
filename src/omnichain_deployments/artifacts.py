"""Compiled contract artifact loading for omnichain-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import CompilationError
from .types import ContractArtifact


def _extract_bytecode(data: Dict[str, Any]) -> Optional[str]:
    """
    Find the creation bytecode in the known artifact shapes.

    Supported:
    - hardhat: ``{"bytecode": "0x..."}``
    - foundry: ``{"bytecode": {"object": "0x..."}}``
    - solc standard JSON contract entry: ``{"evm": {"bytecode": {"object": "..."}}}``
    """
    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if bytecode is None and isinstance(data.get("evm"), dict):
        bytecode = data["evm"].get("bytecode", {}).get("object")
    return bytecode


def load_artifact(file_path: Union[Path, str]) -> ContractArtifact:
    """
    Load a compiled contract artifact from a JSON file.

    Args:
        file_path: Path to artifact JSON

    Returns:
        ContractArtifact with a 0x-prefixed bytecode

    Raises:
        CompilationError: If the file is missing, not JSON, or lacks ABI/bytecode
    """
    path = Path(file_path)
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise CompilationError(f"Contract artifact not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CompilationError(f"Contract artifact is not valid JSON: {path}") from e

    if not isinstance(data, dict):
        raise CompilationError(f"Unexpected artifact layout in {path}")

    abi = data.get("abi")
    if not isinstance(abi, list):
        raise CompilationError(f"Missing ABI in contract artifact: {path}")

    bytecode = _extract_bytecode(data)
    if not bytecode or bytecode in ("0x", "0x0"):
        raise CompilationError(
            f"Missing creation bytecode in contract artifact: {path} "
            "(abstract contract or interface?)"
        )

    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    contract_name = data.get("contractName") or path.stem

    return ContractArtifact(contract_name=contract_name, abi=abi, bytecode=bytecode)
