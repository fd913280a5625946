"""Target network registry for omnichain-deployments library."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests
import yaml

from .constants import (
    DEFAULT_TARGETS,
    L2_CHAIN_IDS,
    MAINNET_CHAIN_IDS,
    RPC_TIMEOUT_SECONDS,
    TESTNET_CHAIN_IDS,
)
from .exceptions import ChainAlreadyExistsError, ChainNotConfiguredError, RpcUnavailableError
from .paths import get_home_paths
from .types import TargetDescriptor

logger = logging.getLogger(__name__)


def fetch_chain_id(rpc_url: str, timeout: float = RPC_TIMEOUT_SECONDS) -> int:
    """
    Ask a JSON-RPC endpoint for its chain id.

    Args:
        rpc_url: RPC endpoint URL
        timeout: Request timeout in seconds

    Returns:
        Chain id

    Raises:
        RpcUnavailableError: On network errors, HTTP errors, RPC errors or
                             malformed responses
    """
    try:
        response = requests.post(
            rpc_url,
            json={"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": 1},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RpcUnavailableError(f"Could not connect to RPC endpoint {rpc_url}: {e}") from e

    if response.status_code != 200:
        raise RpcUnavailableError(
            f"RPC request to {rpc_url} failed with status {response.status_code}"
        )

    try:
        result = response.json()
    except ValueError as e:
        raise RpcUnavailableError(f"RPC endpoint {rpc_url} returned invalid JSON") from e

    if "error" in result:
        raise RpcUnavailableError(f"RPC error from {rpc_url}: {result['error']}")

    try:
        return int(result["result"], 16)
    except (KeyError, TypeError, ValueError) as e:
        raise RpcUnavailableError(f"Malformed eth_chainId response from {rpc_url}") from e


def validate_target_connection(target: TargetDescriptor) -> None:
    """
    Check that a target's endpoint answers and reports the expected chain id.

    Raises:
        RpcUnavailableError: If the endpoint is unreachable or reports another chain
    """
    chain_id = fetch_chain_id(target.endpoint_url)
    if chain_id != target.network_id:
        raise RpcUnavailableError(
            f"Chain ID mismatch: Expected {target.network_id}, got {chain_id}"
        )


def filter_by_group(targets: Sequence[TargetDescriptor], group: str) -> List[TargetDescriptor]:
    """
    Keep targets belonging to a chain group.

    Groups: testnet, mainnet, l2 (layer2), l1 (layer1). Unknown groups
    leave the list unfiltered.
    """
    group = group.lower()
    if group == "testnet":
        return [t for t in targets if t.network_id in TESTNET_CHAIN_IDS]
    if group == "mainnet":
        return [t for t in targets if t.network_id in MAINNET_CHAIN_IDS]
    if group in ("l2", "layer2"):
        return [t for t in targets if t.network_id in L2_CHAIN_IDS]
    if group in ("l1", "layer1"):
        return [t for t in targets if t.network_id not in L2_CHAIN_IDS]

    logger.warning("Unknown chain group: %s. Returning all chains.", group)
    return list(targets)


def select_targets(
    targets: Sequence[TargetDescriptor],
    names: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    group: Optional[str] = None,
    to: Optional[str] = None,
) -> List[TargetDescriptor]:
    """
    Narrow a target list down to what a deployment asked for.

    Args:
        targets: Configured targets
        names: Only these targets (all must be configured)
        exclude: Drop these targets
        group: Chain group name
        to: Single target name, or "all"

    Returns:
        Selected targets in registry order

    Raises:
        ChainNotConfiguredError: If a requested name is not configured
    """
    selected = list(targets)
    known = {t.name for t in selected}

    if names:
        missing = [n for n in names if n not in known]
        if missing:
            raise ChainNotConfiguredError(
                f"Chain(s) not found in configuration: {', '.join(missing)}"
            )
        selected = [t for t in selected if t.name in names]

    if exclude:
        selected = [t for t in selected if t.name not in exclude]

    if group:
        selected = filter_by_group(selected, group)

    if to and to != "all":
        match = next((t for t in selected if t.name == to), None)
        if match is None:
            raise ChainNotConfiguredError(f'Chain "{to}" not found in configuration')
        selected = [match]

    return selected


class TargetRegistry:
    """Target networks stored in a YAML file."""

    def __init__(self, registry_path: Optional[Union[Path, str]] = None):
        """
        Open a target registry, creating it with default testnets if missing.

        Args:
            registry_path: Path to chains.yaml
                           If None, uses ./.omnichain-deployments/chains.yaml
        """
        if registry_path is None:
            registry_path = get_home_paths()[1]

        self.path = Path(registry_path)
        if not self.path.exists():
            self._write({"chains": [dict(t) for t in DEFAULT_TARGETS]})

    def _read(self) -> Dict[str, Any]:
        with open(self.path) as f:
            config = yaml.safe_load(f) or {}
        config.setdefault("chains", [])
        return config

    def _write(self, config: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(config, f, sort_keys=False)

    def targets(self) -> List[TargetDescriptor]:
        """Get all configured targets in file order."""
        return [TargetDescriptor.from_dict(c) for c in self._read()["chains"]]

    def get(self, name: str) -> TargetDescriptor:
        """
        Get one target by name.

        Raises:
            ChainNotConfiguredError: If no target has that name
        """
        for target in self.targets():
            if target.name == name:
                return target
        raise ChainNotConfiguredError(f'Chain "{name}" not found in configuration')

    def add_target(self, target: TargetDescriptor, validate: bool = True) -> None:
        """
        Add a target.

        Args:
            target: Target to add
            validate: Check the endpoint's chain id before saving

        Raises:
            ChainAlreadyExistsError: If the name or network id is taken
            RpcUnavailableError: If validation fails
        """
        config = self._read()
        for existing in config["chains"]:
            if existing["name"] == target.name or int(existing["chainId"]) == target.network_id:
                raise ChainAlreadyExistsError(
                    f'Chain with name "{target.name}" or chainId {target.network_id} '
                    "already exists"
                )

        if validate:
            validate_target_connection(target)

        config["chains"].append(target.to_dict())
        self._write(config)
        logger.info("Added chain %s (%d)", target.name, target.network_id)

    def remove_target(self, name: str) -> None:
        """
        Remove a target by name.

        Raises:
            ChainNotConfiguredError: If no target has that name
        """
        config = self._read()
        remaining = [c for c in config["chains"] if c["name"] != name]
        if len(remaining) == len(config["chains"]):
            raise ChainNotConfiguredError(f'Chain "{name}" not found')
        config["chains"] = remaining
        self._write(config)
        logger.info("Removed chain %s", name)
