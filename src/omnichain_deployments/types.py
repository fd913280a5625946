"""Data types and dataclasses for omnichain-deployments library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .constants import FAILED_ADDRESS


@dataclass(frozen=True)
class TargetDescriptor:
    """One network the engine can deploy to."""

    name: str  # Unique key, e.g. "Base Sepolia"
    endpoint_url: str  # JSON-RPC URL
    network_id: int  # EIP-155 chain id
    explorer_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetDescriptor":
        """Build from a chains.yaml entry (``name``, ``rpc``, ``chainId``, ``explorer``)."""
        return cls(
            name=data["name"],
            endpoint_url=data["rpc"],
            network_id=int(data["chainId"]),
            explorer_url=data.get("explorer"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "rpc": self.endpoint_url,
            "chainId": self.network_id,
        }
        if self.explorer_url:
            data["explorer"] = self.explorer_url
        return data


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract as produced by an external compiler."""

    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str  # 0x-prefixed creation bytecode


@dataclass(frozen=True)
class DeploymentRequest:
    """A single deployment invocation, consumed once and never mutated."""

    artifact_path: str
    constructor_args: Sequence[Any] = ()
    signing_key: Optional[str] = None  # Falls back to $PRIVATE_KEY
    salt: Optional[str] = None  # 32-byte hex, deterministic mode only
    use_deterministic_address: bool = False
    profile_name: Optional[str] = None

    # Overrides normally filled in from a deployment profile
    gas_limit_multiplier: Optional[float] = None  # Replaces the default 1.2 safety margin
    gas_price_multiplier: Optional[float] = None
    receipt_timeout: Optional[float] = None  # Seconds


@dataclass(frozen=True)
class FeeData:
    """Fee fields reported by a network, in wei."""

    gas_price: Optional[int] = None  # Legacy single fee field
    max_fee_per_gas: Optional[int] = None  # Dynamic fee field (post-London networks)
    max_priority_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class FeeEstimate:
    """Resolved gas limit and fee-per-gas for one transaction."""

    gas_limit: int
    gas_price: int
    fallback: bool = False  # True when defaults were substituted for network data

    @property
    def required_funds(self) -> int:
        return self.gas_limit * self.gas_price


@dataclass(frozen=True)
class PerTargetResult:
    """Outcome of one deployment attempt on one target."""

    target: str
    network_id: int
    address: str
    tx_hash: str
    block_number: int
    success: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None  # Exception kind tag, e.g. "InsufficientFunds"
    salt: Optional[str] = None
    profile_name: Optional[str] = None
    deployer_address: Optional[str] = None  # Signer that paid for the deployment

    @classmethod
    def failure(
        cls,
        target: str,
        network_id: int,
        error: str,
        error_kind: Optional[str] = None,
    ) -> "PerTargetResult":
        return cls(
            target=target,
            network_id=network_id,
            address=FAILED_ADDRESS,
            tx_hash="",
            block_number=0,
            success=False,
            error=error,
            error_kind=error_kind,
        )


@dataclass
class AggregateResult:
    """All per-target outcomes of one dispatch, in input target order."""

    total: int
    success_count: int
    failure_count: int
    results: List[PerTargetResult] = field(default_factory=list)
    address_by_target: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_results(cls, results: Sequence[PerTargetResult]) -> "AggregateResult":
        successes = [r for r in results if r.success]
        return cls(
            total=len(results),
            success_count=len(successes),
            failure_count=len(results) - len(successes),
            results=list(results),
            address_by_target={r.target: r.address for r in successes},
        )

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    def has_consistent_address(self) -> bool:
        """
        Check whether every successful target reported the same address.

        Returns:
            True if there is at least one success and all successes share
            one address (case-insensitive), False otherwise
        """
        addresses = {a.lower() for a in self.address_by_target.values()}
        return len(addresses) == 1


@dataclass(frozen=True)
class ManifestRecord:
    """A successful deployment as stored in the manifest."""

    # Required fields
    id: str  # First 16 hex chars of sha256("{target}-{address}-{tx_hash}")
    timestamp: str  # ISO-8601 UTC, e.g. "2024-05-01T12:30:45.123Z"
    contract_name: str
    contract_path: str
    target: str
    network_id: int
    address: str
    tx_hash: str
    block_number: int
    deployer_address: str

    # Optional fields
    constructor_args: Optional[List[Any]] = None
    salt: Optional[str] = None
    profile_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestRecord":
        """Build from a manifest JSON entry."""
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            contract_name=data["contractName"],
            contract_path=data.get("contractPath", ""),
            target=data["chain"],
            network_id=int(data["chainId"]),
            address=data["address"],
            tx_hash=data["txHash"],
            block_number=int(data.get("blockNumber", 0)),
            deployer_address=data.get("deployer", ""),
            constructor_args=data.get("args"),
            salt=data.get("salt"),
            profile_name=data.get("profile"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the manifest's on-disk field names."""
        data: Dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "contractName": self.contract_name,
            "contractPath": self.contract_path,
            "chain": self.target,
            "chainId": self.network_id,
            "address": self.address,
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "deployer": self.deployer_address,
        }
        if self.constructor_args is not None:
            data["args"] = list(self.constructor_args)
        if self.salt is not None:
            data["salt"] = self.salt
        if self.profile_name is not None:
            data["profile"] = self.profile_name
        return data


@dataclass(frozen=True)
class ManifestFilter:
    """Criteria for querying the manifest. ``None`` fields match anything."""

    contract_name: Optional[str] = None
    target: Optional[str] = None
    profile_name: Optional[str] = None
    network_id: Optional[int] = None

    def matches(self, record: ManifestRecord) -> bool:
        if self.contract_name is not None and record.contract_name != self.contract_name:
            return False
        if self.target is not None and record.target != self.target:
            return False
        if self.profile_name is not None and record.profile_name != self.profile_name:
            return False
        if self.network_id is not None and record.network_id != self.network_id:
            return False
        return True


@dataclass
class DeploymentSession:
    """Manifest records believed to come from one omnichain deployment."""

    timestamp: str  # Timestamp of the first record seen in the bucket
    contract_name: str
    targets: List[str] = field(default_factory=list)
    address_by_target: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeploymentProfile:
    """Named deployment settings stored in profiles.yaml."""

    name: str
    gas_multiplier: Optional[float] = None
    gas_price_multiplier: Optional[float] = None
    confirmations: Optional[int] = None
    timeout_ms: Optional[int] = None
    use_create2: Optional[bool] = None
    salt: Optional[str] = None
    exclude_chains: Optional[List[str]] = None
    only_chains: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentProfile":
        """Build from a profiles.yaml entry."""
        salt = data.get("salt")
        if isinstance(salt, int):
            # An unquoted hex salt is read back by YAML as an integer
            salt = f"0x{salt:064x}"
        return cls(
            name=data["name"],
            gas_multiplier=data.get("gasMultiplier"),
            gas_price_multiplier=data.get("gasPriceMultiplier"),
            confirmations=data.get("confirmations"),
            timeout_ms=data.get("timeout"),
            use_create2=data.get("useCreate2"),
            salt=salt,
            exclude_chains=data.get("excludeChains"),
            only_chains=data.get("onlyChains"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with profiles.yaml field names, leaving out unset fields."""
        data: Dict[str, Any] = {
            "name": self.name,
            "gasMultiplier": self.gas_multiplier,
            "gasPriceMultiplier": self.gas_price_multiplier,
            "confirmations": self.confirmations,
            "timeout": self.timeout_ms,
            "useCreate2": self.use_create2,
            "salt": self.salt,
            "excludeChains": list(self.exclude_chains) if self.exclude_chains else None,
            "onlyChains": list(self.only_chains) if self.only_chains else None,
        }
        return {k: v for k, v in data.items() if v is not None}
