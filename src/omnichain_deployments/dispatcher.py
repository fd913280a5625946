"""Parallel multi-target dispatch for omnichain-deployments library."""

import asyncio
import logging
from typing import Callable, Optional, Sequence

from .artifacts import load_artifact
from .constants import DEFAULT_CREATE2_SALT, UNKNOWN_TARGET
from .deployer import SingleTargetDeployer, resolve_signing_key
from .exceptions import ChainNotConfiguredError
from .types import AggregateResult, ContractArtifact, DeploymentRequest, PerTargetResult, TargetDescriptor

logger = logging.getLogger(__name__)

ArtifactProvider = Callable[[str], ContractArtifact]


class ParallelDispatcher:
    """Fans one deployment request out to many targets concurrently."""

    def __init__(
        self,
        deployer: Optional[SingleTargetDeployer] = None,
        artifact_provider: ArtifactProvider = load_artifact,
    ):
        self.deployer = deployer or SingleTargetDeployer()
        self.artifact_provider = artifact_provider

    async def deploy_to_targets(
        self,
        request: DeploymentRequest,
        targets: Sequence[TargetDescriptor],
        artifact: Optional[ContractArtifact] = None,
    ) -> AggregateResult:
        """
        Deploy to every target concurrently and wait for all of them.

        A failing target never cancels or blocks the others. ``results``
        follows the order of ``targets``, not completion order.

        Args:
            request: Deployment request
            targets: Networks to deploy to
            artifact: Already loaded artifact (loaded from request.artifact_path if None)

        Returns:
            AggregateResult over all targets

        Raises:
            ChainNotConfiguredError: If ``targets`` is empty
            CompilationError: If the artifact cannot be loaded
            MissingSigningKeyError: If no signing key is available
        """
        if not targets:
            raise ChainNotConfiguredError("No chains configured for deployment")

        resolve_signing_key(request)
        if artifact is None:
            artifact = self.artifact_provider(request.artifact_path)

        mode = "CREATE2" if request.use_deterministic_address else "direct"
        logger.info(
            "Deploying %s to %d target(s) in %s mode",
            artifact.contract_name,
            len(targets),
            mode,
        )
        if request.use_deterministic_address:
            logger.info("Salt: %s", request.salt or DEFAULT_CREATE2_SALT)

        settled = await asyncio.gather(
            *(self.deployer.deploy_to_target(request, artifact, t) for t in targets),
            return_exceptions=True,
        )

        results = []
        for outcome in settled:
            if isinstance(outcome, BaseException):
                # e.g. signer construction failure inside the task
                logger.error("Deployment failed: %s", outcome)
                results.append(
                    PerTargetResult.failure(
                        UNKNOWN_TARGET,
                        0,
                        str(outcome) or type(outcome).__name__,
                        getattr(outcome, "kind", type(outcome).__name__),
                    )
                )
            else:
                results.append(outcome)

        aggregate = AggregateResult.from_results(results)
        logger.info(
            "Deployment finished: %d succeeded, %d failed of %d",
            aggregate.success_count,
            aggregate.failure_count,
            aggregate.total,
        )
        return aggregate
