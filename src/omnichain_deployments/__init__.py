"""
omnichain-deployments: deploy one contract artifact to many EVM networks and track the results
"""

from importlib.metadata import PackageNotFoundError, version

from .addresses import compute_create2_address
from .deployer import SingleTargetDeployer
from .dispatcher import ParallelDispatcher
from .endpoints import TargetEndpoint, Web3Endpoint
from .exceptions import (
    ChainAlreadyExistsError,
    ChainNotConfiguredError,
    CompilationError,
    DeploymentError,
    DeploymentFailedError,
    InsufficientFundsError,
    ManifestNotFoundError,
    MissingSigningKeyError,
    ProfileNotFoundError,
    RpcUnavailableError,
)
from .fees import estimate_fees
from .manifest import ManifestStore
from .omnichain import OmnichainDeployer, TargetSelection
from .profiles import ProfileStore
from .registry import TargetRegistry
from .types import (
    AggregateResult,
    ContractArtifact,
    DeploymentProfile,
    DeploymentRequest,
    DeploymentSession,
    FeeEstimate,
    ManifestFilter,
    ManifestRecord,
    PerTargetResult,
    TargetDescriptor,
)

try:
    __version__ = version("omnichain-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "OmnichainDeployer",
    "TargetSelection",
    "ParallelDispatcher",
    "SingleTargetDeployer",
    "TargetEndpoint",
    "Web3Endpoint",
    "ManifestStore",
    "TargetRegistry",
    "ProfileStore",
    "compute_create2_address",
    "estimate_fees",
    "AggregateResult",
    "ContractArtifact",
    "DeploymentProfile",
    "DeploymentRequest",
    "DeploymentSession",
    "FeeEstimate",
    "ManifestFilter",
    "ManifestRecord",
    "PerTargetResult",
    "TargetDescriptor",
    "DeploymentError",
    "InsufficientFundsError",
    "CompilationError",
    "ChainNotConfiguredError",
    "ChainAlreadyExistsError",
    "DeploymentFailedError",
    "RpcUnavailableError",
    "MissingSigningKeyError",
    "ManifestNotFoundError",
    "ProfileNotFoundError",
]
