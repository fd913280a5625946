"""Deployment profiles for omnichain-deployments library."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .constants import DEFAULT_PROFILES
from .exceptions import ProfileNotFoundError
from .paths import get_profiles_path
from .types import DeploymentProfile, DeploymentRequest

logger = logging.getLogger(__name__)


def apply_profile(
    request: DeploymentRequest,
    profile: DeploymentProfile,
    names: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
) -> Tuple[DeploymentRequest, Optional[List[str]], Optional[List[str]]]:
    """
    Fill in deployment settings from a profile.

    Settings given explicitly on the request or selection win: CREATE2 mode
    stays on once requested, an explicit salt or include list is kept, and
    exclude lists are merged.

    Args:
        request: Deployment request
        profile: Profile to apply
        names: Include list from the target selection
        exclude: Exclude list from the target selection

    Returns:
        Tuple of (request, names, exclude)
    """
    timeout = request.receipt_timeout
    if timeout is None and profile.timeout_ms:
        timeout = profile.timeout_ms / 1000

    request = replace(
        request,
        use_deterministic_address=request.use_deterministic_address or bool(profile.use_create2),
        salt=request.salt or profile.salt,
        profile_name=profile.name,
        gas_limit_multiplier=request.gas_limit_multiplier or profile.gas_multiplier,
        gas_price_multiplier=request.gas_price_multiplier or profile.gas_price_multiplier,
        receipt_timeout=timeout,
    )

    if not names and profile.only_chains:
        names = list(profile.only_chains)
    if profile.exclude_chains:
        merged = list(exclude or [])
        merged += [c for c in profile.exclude_chains if c not in merged]
        exclude = merged

    return request, names, exclude


class ProfileStore:
    """Deployment profiles stored in a YAML file."""

    def __init__(self, profile_path: Optional[Union[Path, str]] = None):
        """
        Open a profile store, creating it with dev/staging/prod profiles if missing.

        Args:
            profile_path: Path to profiles.yaml
                          If None, uses ./.omnichain-deployments/profiles.yaml
        """
        if profile_path is None:
            profile_path = get_profiles_path()

        self.path = Path(profile_path)
        if not self.path.exists():
            self._write({"profiles": [dict(p) for p in DEFAULT_PROFILES]})

    def _read(self) -> Dict[str, Any]:
        with open(self.path) as f:
            config = yaml.safe_load(f) or {}
        config.setdefault("profiles", [])
        return config

    def _write(self, config: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(config, f, sort_keys=False)

    def profiles(self) -> List[DeploymentProfile]:
        """Get all profiles in file order."""
        return [DeploymentProfile.from_dict(p) for p in self._read()["profiles"]]

    def get(self, name: str) -> DeploymentProfile:
        """
        Get one profile by name.

        Raises:
            ProfileNotFoundError: If no profile has that name
        """
        for profile in self.profiles():
            if profile.name == name:
                return profile
        raise ProfileNotFoundError(f'Profile "{name}" not found')

    def find(self, name: str) -> Optional[DeploymentProfile]:
        """Get one profile by name, or None."""
        try:
            return self.get(name)
        except ProfileNotFoundError:
            return None

    def save(self, profile: DeploymentProfile) -> None:
        """Add a profile, or replace the one with the same name."""
        config = self._read()
        entries = config["profiles"]
        for i, existing in enumerate(entries):
            if existing["name"] == profile.name:
                entries[i] = profile.to_dict()
                break
        else:
            entries.append(profile.to_dict())
        self._write(config)
        logger.info("Saved profile %s", profile.name)

    def delete(self, name: str) -> None:
        """
        Delete a profile by name.

        Raises:
            ProfileNotFoundError: If no profile has that name
        """
        config = self._read()
        remaining = [p for p in config["profiles"] if p["name"] != name]
        if len(remaining) == len(config["profiles"]):
            raise ProfileNotFoundError(f'Profile "{name}" not found')
        config["profiles"] = remaining
        self._write(config)
        logger.info("Deleted profile %s", name)
