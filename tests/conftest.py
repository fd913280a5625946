"""Shared pytest fixtures for omnichain-deployments tests."""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import keccak

from omnichain_deployments.constants import GWEI
from omnichain_deployments.endpoints import TargetEndpoint
from omnichain_deployments.exceptions import RpcUnavailableError
from omnichain_deployments.types import FeeData, TargetDescriptor

# Hardhat / anvil account #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeEndpoint(TargetEndpoint):
    """In-memory TargetEndpoint with scriptable answers."""

    def __init__(
        self,
        network_id: int,
        balance: int = 10**18,
        gas_estimate: int = 500_000,
        fee_data: Optional[FeeData] = None,
        receipt_status: int = 1,
        mined: bool = True,
        block_number: int = 1234,
        contract_address: Optional[str] = "0x5FbDB2315678afecb367f032d93F642f64180aa3",
        estimate_error: bool = False,
        send_error: bool = False,
        delay: float = 0.0,
    ):
        self.network_id = network_id
        self.balance = balance
        self.gas_estimate = gas_estimate
        self.fee_data = fee_data or FeeData(gas_price=GWEI)
        self.receipt_status = receipt_status
        self.mined = mined
        self.block_number = block_number
        self.contract_address = contract_address
        self.estimate_error = estimate_error
        self.send_error = send_error
        self.delay = delay
        self.estimated: List[Dict[str, Any]] = []
        self.sent: List[bytes] = []
        self.receipt_timeouts: List[float] = []

    async def get_network_id(self) -> int:
        return self.network_id

    async def get_balance(self, address: str) -> int:
        return self.balance

    async def get_fee_data(self) -> FeeData:
        return self.fee_data

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        self.estimated.append(transaction)
        if self.estimate_error:
            raise RpcUnavailableError("eth_estimateGas timed out")
        return self.gas_estimate

    async def get_transaction_count(self, address: str) -> int:
        return len(self.sent)

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        if self.send_error:
            raise RpcUnavailableError("eth_sendRawTransaction: connection reset")
        self.sent.append(raw_transaction)
        if self.delay:
            await asyncio.sleep(self.delay)
        return "0x" + keccak(raw_transaction).hex()

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Optional[Dict[str, Any]]:
        self.receipt_timeouts.append(timeout)
        if not self.mined:
            return None
        return {
            "status": self.receipt_status,
            "blockNumber": self.block_number,
            "contractAddress": self.contract_address,
            "transactionHash": tx_hash,
        }


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def counter_artifact_path(fixtures_dir: Path) -> Path:
    """Return path to the sample hardhat Counter artifact."""
    return fixtures_dir / "artifacts" / "Counter.json"


@pytest.fixture
def sample_manifest_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample deployments.json fixture."""
    with open(fixtures_dir / "sample_manifest.json") as f:
        return json.load(f)


@pytest.fixture
def temp_home(tmp_path: Path) -> Path:
    """Create a temporary home directory for manifest and registry files."""
    home = tmp_path / ".omnichain-deployments"
    home.mkdir(parents=True, exist_ok=True)
    return home


@pytest.fixture
def temp_manifest(temp_home: Path, sample_manifest_json: Dict[str, Any]) -> Path:
    """Create a temporary deployments.json file with sample data."""
    manifest_path = temp_home / "deployments.json"
    with open(manifest_path, "w") as f:
        json.dump(sample_manifest_json, f, indent=2)
    return manifest_path


@pytest.fixture
def temp_registry(temp_home: Path, fixtures_dir: Path) -> Path:
    """Create a temporary chains.yaml with sample targets."""
    registry_path = temp_home / "chains.yaml"
    shutil.copy(fixtures_dir / "sample_chains.yaml", registry_path)
    return registry_path


@pytest.fixture
def targets() -> List[TargetDescriptor]:
    """Three testnet targets."""
    return [
        TargetDescriptor("Ethereum Sepolia", "http://sepolia.test", 11155111),
        TargetDescriptor("Base Sepolia", "http://base-sepolia.test", 84532),
        TargetDescriptor("Scroll Sepolia", "http://scroll-sepolia.test", 534351),
    ]


@pytest.fixture
def endpoints(targets: List[TargetDescriptor]) -> Dict[str, FakeEndpoint]:
    """One healthy FakeEndpoint per target, keyed by target name."""
    return {t.name: FakeEndpoint(t.network_id) for t in targets}


@pytest.fixture
def endpoint_factory(endpoints: Dict[str, FakeEndpoint]):
    """Endpoint factory resolving targets to the ``endpoints`` fixture."""
    return lambda target: endpoints[target.name]


@pytest.fixture(autouse=True)
def no_env_private_key(monkeypatch):
    """Keep the developer environment out of the tests."""
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    monkeypatch.delenv("OMNICHAIN_DEPLOYMENTS_HOME", raising=False)


@pytest.fixture
def private_key() -> str:
    """Deployer signing key."""
    return TEST_PRIVATE_KEY


@pytest.fixture
def deployer_address() -> str:
    """Address belonging to ``private_key``."""
    return TEST_DEPLOYER_ADDRESS


@pytest.fixture
def fake_endpoint_cls():
    """The FakeEndpoint class, for tests that script their own endpoints."""
    return FakeEndpoint
