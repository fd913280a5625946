"""Path management utilities for omnichain-deployments library."""

import os
from pathlib import Path
from typing import Optional, Union

from .constants import HOME_ENV


def get_default_home_dir() -> Path:
    """
    Get default home directory for manifest and registry files.

    Returns:
        $OMNICHAIN_DEPLOYMENTS_HOME if set, otherwise ./.omnichain-deployments
    """
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).absolute()
    return Path.cwd() / ".omnichain-deployments"


def get_home_paths(home: Optional[Union[Path, str]] = None) -> tuple[Path, Path]:
    """
    Get manifest and registry file paths.

    Args:
        home: Custom home directory (defaults to get_default_home_dir())

    Returns:
        Tuple of (manifest_path, registry_path)
    """
    if home is None:
        home = get_default_home_dir()
    else:
        home = Path(home).absolute()

    manifest_path = home / "deployments.json"
    registry_path = home / "chains.yaml"

    return (manifest_path, registry_path)


def get_profiles_path(home: Optional[Union[Path, str]] = None) -> Path:
    """Get the profiles.yaml path inside ``home`` (defaults to get_default_home_dir())."""
    manifest_path, _ = get_home_paths(home)
    return manifest_path.parent / "profiles.yaml"
