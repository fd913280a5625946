"""Deployment manifest storage for omnichain-deployments library."""

import hashlib
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .exceptions import ManifestNotFoundError
from .paths import get_home_paths
from .types import DeploymentSession, ManifestFilter, ManifestRecord, PerTargetResult

logger = logging.getLogger(__name__)

# One lock per manifest file, shared by every ManifestStore in the process
_PATH_LOCKS: Dict[Path, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _PATH_LOCKS_GUARD:
        if path not in _PATH_LOCKS:
            _PATH_LOCKS[path] = threading.RLock()
        return _PATH_LOCKS[path]


def make_record_id(target: str, address: str, tx_hash: str) -> str:
    """
    Derive the manifest id of a deployment.

    Args:
        target: Target name
        address: Deployed contract address
        tx_hash: Deployment transaction hash

    Returns:
        First 16 hex chars of sha256("{target}-{address}-{tx_hash}")
    """
    digest = hashlib.sha256(f"{target}-{address}-{tx_hash}".encode()).hexdigest()
    return digest[:16]


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format a time as ISO-8601 UTC with milliseconds, e.g. 2024-05-01T12:30:45.123Z."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(timestamp: str) -> datetime:
    """Parse a manifest timestamp (accepts a trailing ``Z``)."""
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_from_result(
    result: PerTargetResult,
    contract_name: str,
    contract_path: str,
    deployer_address: Optional[str] = None,
    constructor_args: Optional[Sequence[Any]] = None,
    timestamp: Optional[str] = None,
) -> ManifestRecord:
    """
    Build a manifest record for a successful per-target result.

    ``deployer_address`` defaults to the signer recorded on the result.

    Raises:
        ValueError: If the result is not a success
    """
    if not result.success:
        raise ValueError(f"Cannot record failed deployment on {result.target}")

    return ManifestRecord(
        id=make_record_id(result.target, result.address, result.tx_hash),
        timestamp=timestamp or utc_timestamp(),
        contract_name=contract_name,
        contract_path=contract_path,
        target=result.target,
        network_id=result.network_id,
        address=result.address,
        tx_hash=result.tx_hash,
        block_number=result.block_number,
        deployer_address=deployer_address or result.deployer_address or "",
        constructor_args=list(constructor_args) if constructor_args is not None else None,
        salt=result.salt,
        profile_name=result.profile_name,
    )


def _empty_manifest() -> Dict[str, Any]:
    return {"deployments": [], "lastUpdated": utc_timestamp()}


class ManifestStore:
    """Append-only JSON log of successful deployments."""

    def __init__(self, manifest_path: Optional[Union[Path, str]] = None):
        """
        Open a manifest store.

        Args:
            manifest_path: Path to deployments.json
                           If None, uses ./.omnichain-deployments/deployments.json
        """
        if manifest_path is None:
            manifest_path = get_home_paths()[0]

        self.path = Path(manifest_path).absolute()
        self._lock = _lock_for(self.path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return _empty_manifest()
        with open(self.path) as f:
            manifest = json.load(f)
        manifest.setdefault("deployments", [])
        return manifest

    def _write(self, manifest: Dict[str, Any]) -> None:
        manifest["lastUpdated"] = utc_timestamp()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".deployments-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(manifest, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    @contextmanager
    def _transaction(self) -> Iterator[Dict[str, Any]]:
        """Read-modify-write the manifest while holding the file's lock."""
        with self._lock:
            manifest = self._read()
            yield manifest
            self._write(manifest)

    def append(self, records: Iterable[ManifestRecord]) -> List[ManifestRecord]:
        """
        Append records, assigning each its content-derived id.

        Records whose id is already present are skipped.

        Args:
            records: Records to append

        Returns:
            The records actually added
        """
        added: List[ManifestRecord] = []
        with self._transaction() as manifest:
            existing_ids = {d["id"] for d in manifest["deployments"]}
            for record in records:
                record = replace(
                    record, id=make_record_id(record.target, record.address, record.tx_hash)
                )
                if record.id in existing_ids:
                    logger.debug("Skipping duplicate manifest record %s", record.id)
                    continue
                manifest["deployments"].append(record.to_dict())
                existing_ids.add(record.id)
                added.append(record)

        logger.info("Recorded %d deployment(s) in %s", len(added), self.path)
        return added

    def records(self) -> List[ManifestRecord]:
        """Get all records in append order."""
        with self._lock:
            manifest = self._read()
        return [ManifestRecord.from_dict(d) for d in manifest["deployments"]]

    def query(self, criteria: Optional[ManifestFilter] = None) -> List[ManifestRecord]:
        """
        Get records matching a filter, in append order.

        Args:
            criteria: Filter (None returns everything)

        Returns:
            Matching records
        """
        records = self.records()
        if criteria is None:
            return records
        return [r for r in records if criteria.matches(r)]

    def latest(self, contract_name: str, target: Optional[str] = None) -> Optional[ManifestRecord]:
        """
        Get the newest deployment of a contract, optionally on one target.

        Returns:
            Most recent ManifestRecord, or None if there is none
        """
        matches = self.query(ManifestFilter(contract_name=contract_name, target=target))
        if not matches:
            return None
        return max(matches, key=lambda r: parse_timestamp(r.timestamp))

    def group_into_sessions(self, limit: int = 10) -> List[DeploymentSession]:
        """
        Group records into omnichain deployment sessions.

        Records sharing a contract name and a timestamp truncated to the
        minute form one session.

        Args:
            limit: Maximum number of sessions to return

        Returns:
            Sessions, newest first
        """
        sessions: Dict[tuple, DeploymentSession] = {}
        for record in self.records():
            minute = (
                parse_timestamp(record.timestamp)
                .astimezone(timezone.utc)
                .replace(second=0, microsecond=0)
            )
            key = (record.contract_name, minute)
            if key not in sessions:
                sessions[key] = DeploymentSession(
                    timestamp=record.timestamp, contract_name=record.contract_name
                )
            session = sessions[key]
            if record.target not in session.targets:
                session.targets.append(record.target)
            session.address_by_target[record.target] = record.address

        result = sorted(
            sessions.values(), key=lambda s: parse_timestamp(s.timestamp), reverse=True
        )
        return result[:limit]

    def clear(self) -> None:
        """Remove every record. Callers are responsible for confirming first."""
        with self._lock:
            self._write(_empty_manifest())
        logger.warning("Cleared all deployments from %s", self.path)

    def export_to(self, file_path: Union[Path, str]) -> Path:
        """
        Write the whole manifest to another file.

        Args:
            file_path: Destination path

        Returns:
            Destination path
        """
        destination = Path(file_path)
        with self._lock:
            manifest = self._read()
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "w") as f:
            json.dump(manifest, f, indent=2)
        return destination

    def import_from(self, file_path: Union[Path, str]) -> int:
        """
        Merge records from an exported manifest.

        Records whose id is already present are skipped, so importing the
        same file twice only adds records the first time. Entries missing a
        required field are skipped with a warning.

        Args:
            file_path: Exported manifest path

        Returns:
            Number of records added

        Raises:
            ManifestNotFoundError: If the file does not exist
        """
        source = Path(file_path)
        if not source.exists():
            raise ManifestNotFoundError(f"File not found: {source}")

        with open(source) as f:
            imported = json.load(f)

        records: List[ManifestRecord] = []
        for position, entry in enumerate(imported.get("deployments", [])):
            try:
                if "id" not in entry:
                    entry = {
                        **entry,
                        "id": make_record_id(entry["chain"], entry["address"], entry["txHash"]),
                    }
                record = ManifestRecord.from_dict(entry)
                parse_timestamp(record.timestamp)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed deployment #%d in %s: %r", position, source, e)
                continue
            records.append(record)

        imported_count = 0
        with self._transaction() as manifest:
            existing_ids = {d["id"] for d in manifest["deployments"]}
            for record in records:
                if record.id in existing_ids:
                    continue
                manifest["deployments"].append(record.to_dict())
                existing_ids.add(record.id)
                imported_count += 1

        logger.info("Imported %d deployment(s) from %s", imported_count, source)
        return imported_count
