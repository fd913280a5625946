"""Main API for omnichain-deployments library."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .artifacts import load_artifact
from .deployer import SingleTargetDeployer, resolve_signing_key
from .dispatcher import ParallelDispatcher
from .exceptions import ChainNotConfiguredError
from .manifest import ManifestStore, record_from_result, utc_timestamp
from .paths import get_home_paths, get_profiles_path
from .profiles import ProfileStore, apply_profile
from .registry import TargetRegistry, select_targets
from .types import (
    AggregateResult,
    ContractArtifact,
    DeploymentRequest,
    DeploymentSession,
    ManifestFilter,
    ManifestRecord,
    TargetDescriptor,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetSelection:
    """Which registry targets a deployment goes to."""

    names: Optional[Sequence[str]] = None
    exclude: Optional[Sequence[str]] = None
    group: Optional[str] = None
    to: Optional[str] = None  # Single target name, or "all"


class OmnichainDeployer:
    """Deploys an artifact to registry targets and records the outcome."""

    def __init__(
        self,
        home: Optional[Union[Path, str]] = None,
        registry: Optional[TargetRegistry] = None,
        manifest: Optional[ManifestStore] = None,
        dispatcher: Optional[ParallelDispatcher] = None,
        profiles: Optional[ProfileStore] = None,
    ):
        """
        Initialize the deployer.

        Args:
            home: Directory holding deployments.json, chains.yaml and profiles.yaml
                  (defaults to ./.omnichain-deployments)
            registry: Target registry (overrides ``home``)
            manifest: Manifest store (overrides ``home``)
            dispatcher: Parallel dispatcher (defaults to web3-backed endpoints)
            profiles: Profile store (overrides ``home``)
        """
        manifest_path, registry_path = get_home_paths(home)
        self.registry = registry or TargetRegistry(registry_path)
        self.manifest = manifest or ManifestStore(manifest_path)
        self.dispatcher = dispatcher or ParallelDispatcher(SingleTargetDeployer(), load_artifact)
        self.profiles = profiles or ProfileStore(get_profiles_path(home))

    def resolve_targets(self, selection: Optional[TargetSelection] = None) -> List[TargetDescriptor]:
        """
        Resolve a selection against the registry.

        Raises:
            ChainNotConfiguredError: If a requested target is unknown
        """
        selection = selection or TargetSelection()
        return select_targets(
            self.registry.targets(),
            names=selection.names,
            exclude=selection.exclude,
            group=selection.group,
            to=selection.to,
        )

    def apply_profile(
        self, request: DeploymentRequest, selection: Optional[TargetSelection] = None
    ) -> tuple[DeploymentRequest, TargetSelection]:
        """
        Merge the settings of ``request.profile_name`` into a deployment.

        An unknown profile name is kept as a plain tag on the records.

        Returns:
            Tuple of (request, selection)
        """
        selection = selection or TargetSelection()
        if not request.profile_name:
            return request, selection

        profile = self.profiles.find(request.profile_name)
        if profile is None:
            logger.warning('Profile "%s" not found. Using default settings.', request.profile_name)
            return request, selection

        request, names, exclude = apply_profile(
            request,
            profile,
            names=list(selection.names) if selection.names else None,
            exclude=list(selection.exclude) if selection.exclude else None,
        )
        return request, replace(selection, names=names, exclude=exclude)

    async def deploy(
        self,
        request: DeploymentRequest,
        selection: Optional[TargetSelection] = None,
        save_manifest: bool = True,
    ) -> AggregateResult:
        """
        Deploy a contract to the selected targets.

        Args:
            request: Deployment request
            selection: Target selection (defaults to every configured target)
            save_manifest: Record successful deployments in the manifest

        Returns:
            AggregateResult

        Raises:
            ChainNotConfiguredError: If the selection is empty or names unknown targets
            CompilationError: If the artifact cannot be loaded
            MissingSigningKeyError: If no signing key is available
        """
        request, selection = self.apply_profile(request, selection)
        targets = self.resolve_targets(selection)
        if not targets:
            raise ChainNotConfiguredError("No chains configured for deployment")

        resolve_signing_key(request)
        artifact = self.dispatcher.artifact_provider(request.artifact_path)

        result = await self.dispatcher.deploy_to_targets(request, targets, artifact=artifact)

        if save_manifest:
            self.record(request, artifact, result)

        return result

    def record(
        self, request: DeploymentRequest, artifact: ContractArtifact, result: AggregateResult
    ) -> List[ManifestRecord]:
        """
        Append the successful results of a dispatch to the manifest.

        Returns:
            Records added
        """
        successes = [r for r in result.results if r.success]
        if not successes:
            return []

        timestamp = utc_timestamp()
        records = [
            record_from_result(
                r,
                contract_name=artifact.contract_name,
                contract_path=request.artifact_path,
                constructor_args=request.constructor_args,
                timestamp=timestamp,
            )
            for r in successes
        ]
        return self.manifest.append(records)

    def history(
        self, contract_name: Optional[str] = None, target: Optional[str] = None
    ) -> List[ManifestRecord]:
        """Get recorded deployments, optionally for one contract and/or target."""
        return self.manifest.query(ManifestFilter(contract_name=contract_name, target=target))

    def latest_deployment(
        self, contract_name: str, target: Optional[str] = None
    ) -> Optional[ManifestRecord]:
        """Get the newest recorded deployment of a contract."""
        return self.manifest.latest(contract_name, target)

    def omnichain_summary(self, limit: int = 10) -> List[DeploymentSession]:
        """Get recent deployment sessions, newest first."""
        return self.manifest.group_into_sessions(limit)
