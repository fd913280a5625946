"""Custom exception classes for omnichain-deployments library."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    kind = "DeploymentError"


class InsufficientFundsError(DeploymentError, ValueError):
    """Raised when the signer cannot cover gas_limit * gas_price on a target."""

    kind = "InsufficientFunds"

    def __init__(self, message: str, required: int = 0, available: int = 0):
        super().__init__(message)
        self.required = required
        self.available = available


class CompilationError(DeploymentError, ValueError):
    """Raised when a contract artifact is missing or unusable."""

    kind = "CompilationError"


class ChainNotConfiguredError(DeploymentError, LookupError):
    """Raised when a requested target is not in the registry."""

    kind = "ChainNotConfigured"


class ChainAlreadyExistsError(DeploymentError, ValueError):
    """Raised when adding a target whose name or network id is taken."""

    kind = "ChainAlreadyExists"


class DeploymentFailedError(DeploymentError, RuntimeError):
    """Raised when a deployment transaction reverts or yields no receipt."""

    kind = "DeploymentFailed"


class RpcUnavailableError(DeploymentError, ConnectionError):
    """Raised when a target's RPC endpoint cannot be reached or answers badly."""

    kind = "RpcUnavailable"


class MissingSigningKeyError(DeploymentError, ValueError):
    """Raised when no signing key is available at all."""

    kind = "MissingSigningKey"


class ManifestNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when a manifest file to import does not exist."""

    kind = "ManifestNotFound"


class ProfileNotFoundError(DeploymentError, LookupError):
    """Raised when a named deployment profile does not exist."""

    kind = "ProfileNotFound"
