"""Integration tests for the JSON deployment manifest."""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

from omnichain_deployments.exceptions import ManifestNotFoundError
from omnichain_deployments.manifest import (
    ManifestStore,
    make_record_id,
    parse_timestamp,
    record_from_result,
    utc_timestamp,
)
from omnichain_deployments.types import ManifestFilter, ManifestRecord, PerTargetResult

DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def make_record(target="Optimism Sepolia", address="0x4444444444444444444444444444444444444444",
                tx_hash="0xddd1", timestamp="2024-06-01T10:00:00.000Z", contract_name="Counter"):
    return ManifestRecord(
        id="",
        timestamp=timestamp,
        contract_name=contract_name,
        contract_path="artifacts/Counter.json",
        target=target,
        network_id=11155420,
        address=address,
        tx_hash=tx_hash,
        block_number=100,
        deployer_address=DEPLOYER,
    )


class TestRecordHelpers:
    """Test id and timestamp helpers."""

    def test_record_id_is_sha256_prefix(self):
        """Test the id derivation."""
        record_id = make_record_id("Base Sepolia", "0xabc", "0x123")

        assert len(record_id) == 16
        assert record_id == make_record_id("Base Sepolia", "0xabc", "0x123")
        assert record_id != make_record_id("Base Sepolia", "0xabc", "0x124")

    def test_utc_timestamp_format(self):
        """Test millisecond ISO-8601 with a Z suffix."""
        now = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert utc_timestamp(now) == "2024-05-01T12:30:45.123Z"

    def test_parse_timestamp_roundtrip(self):
        """Test that formatted timestamps parse back to aware datetimes."""
        parsed = parse_timestamp("2024-05-01T12:30:45.123Z")

        assert parsed.tzinfo is not None
        assert parsed.year == 2024 and parsed.minute == 30

    def test_record_from_result(self):
        """Test converting a successful result into a record."""
        result = PerTargetResult(
            target="Base Sepolia",
            network_id=84532,
            address="0x1111111111111111111111111111111111111111",
            tx_hash="0xabc",
            block_number=42,
            success=True,
            salt="0x01",
            profile_name="staging",
        )

        record = record_from_result(
            result, "Counter", "Counter.json", DEPLOYER, constructor_args=(7,),
            timestamp="2024-05-01T12:30:45.123Z",
        )

        assert record.id == make_record_id("Base Sepolia", result.address, "0xabc")
        assert record.constructor_args == [7]
        assert record.salt == "0x01"
        assert record.profile_name == "staging"

    def test_record_from_failed_result(self):
        """Test that failed results are never recorded."""
        failed = PerTargetResult.failure("Base Sepolia", 84532, "boom")

        with pytest.raises(ValueError):
            record_from_result(failed, "Counter", "Counter.json", DEPLOYER)


class TestManifestStoreRead:
    """Test reading and querying."""

    def test_missing_file_is_empty(self, tmp_path: Path):
        """Test that a fresh store has no records and creates nothing."""
        store = ManifestStore(tmp_path / "deployments.json")

        assert store.records() == []
        assert not (tmp_path / "deployments.json").exists()

    def test_records_in_append_order(self, temp_manifest: Path):
        """Test loading the sample manifest."""
        records = ManifestStore(temp_manifest).records()

        assert [r.tx_hash for r in records] == ["0xaaa1", "0xaaa2", "0xaaa3", "0xbbb1", "0xccc1"]
        assert records[0].profile_name == "staging"
        assert records[3].salt is None

    def test_query_by_contract(self, temp_manifest: Path):
        """Test filtering by contract name."""
        records = ManifestStore(temp_manifest).query(ManifestFilter(contract_name="Counter"))

        assert len(records) == 4

    def test_query_by_target_and_profile(self, temp_manifest: Path):
        """Test combining criteria."""
        store = ManifestStore(temp_manifest)

        records = store.query(ManifestFilter(target="Ethereum Sepolia", profile_name="prod"))

        assert [r.address for r in records] == ["0x3333333333333333333333333333333333333333"]

    def test_query_by_network_id(self, temp_manifest: Path):
        """Test filtering by network id."""
        records = ManifestStore(temp_manifest).query(ManifestFilter(network_id=534351))

        assert [r.target for r in records] == ["Scroll Sepolia"]

    def test_latest(self, temp_manifest: Path):
        """Test that latest picks the newest timestamp."""
        store = ManifestStore(temp_manifest)

        assert store.latest("Counter").tx_hash == "0xccc1"
        assert store.latest("Counter", "Base Sepolia").tx_hash == "0xaaa2"
        assert store.latest("Nothing") is None


class TestManifestStoreWrite:
    """Test appending, clearing and the on-disk format."""

    def test_append_assigns_ids(self, tmp_path: Path):
        """Test that appended records get content-derived ids."""
        store = ManifestStore(tmp_path / "deployments.json")

        added = store.append([make_record()])

        expected_id = make_record_id(
            "Optimism Sepolia", "0x4444444444444444444444444444444444444444", "0xddd1"
        )
        assert [r.id for r in added] == [expected_id]
        assert store.records()[0].id == expected_id

    def test_append_writes_on_disk_field_names(self, tmp_path: Path):
        """Test the persisted JSON layout."""
        path = tmp_path / "deployments.json"
        ManifestStore(path).append([make_record()])

        with open(path) as f:
            saved = json.load(f)

        assert "lastUpdated" in saved
        entry = saved["deployments"][0]
        assert entry["chain"] == "Optimism Sepolia"
        assert entry["chainId"] == 11155420
        assert entry["txHash"] == "0xddd1"
        assert entry["deployer"] == DEPLOYER
        assert "salt" not in entry
        assert "profile" not in entry

    def test_append_keeps_existing_records(self, temp_manifest: Path):
        """Test that appending never rewrites earlier entries."""
        store = ManifestStore(temp_manifest)

        store.append([make_record()])

        records = store.records()
        assert len(records) == 6
        assert records[0].id == "a1b2c3d4e5f60718"

    def test_append_skips_duplicates(self, tmp_path: Path):
        """Test that the same deployment is only recorded once."""
        store = ManifestStore(tmp_path / "deployments.json")

        store.append([make_record()])
        added = store.append([make_record()])

        assert added == []
        assert len(store.records()) == 1

    def test_clear(self, temp_manifest: Path):
        """Test removing every record."""
        store = ManifestStore(temp_manifest)

        store.clear()

        assert store.records() == []

    def test_no_temp_files_left_behind(self, tmp_path: Path):
        """Test that atomic writes clean up after themselves."""
        ManifestStore(tmp_path / "deployments.json").append([make_record()])

        assert [p.name for p in tmp_path.iterdir()] == ["deployments.json"]

    def test_concurrent_appends_lose_nothing(self, tmp_path: Path):
        """Test that parallel writers sharing a file do not clobber each other."""
        path = tmp_path / "deployments.json"

        def writer(n):
            ManifestStore(path).append([make_record(tx_hash=f"0x{n:04x}")])

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ManifestStore(path).records()) == 20


class TestSessions:
    """Test grouping records into omnichain sessions."""

    def test_groups_by_contract_and_minute(self, temp_manifest: Path):
        """Test the sample manifest's three sessions, newest first."""
        sessions = ManifestStore(temp_manifest).group_into_sessions()

        assert [(s.contract_name, len(s.targets)) for s in sessions] == [
            ("Counter", 1),
            ("Token", 1),
            ("Counter", 3),
        ]
        oldest = sessions[-1]
        assert oldest.targets == ["Ethereum Sepolia", "Base Sepolia", "Scroll Sepolia"]
        assert set(oldest.address_by_target.values()) == {
            "0x1111111111111111111111111111111111111111"
        }

    def test_limit(self, temp_manifest: Path):
        """Test that only the newest sessions are returned."""
        sessions = ManifestStore(temp_manifest).group_into_sessions(limit=1)

        assert [s.timestamp for s in sessions] == ["2024-05-03T09:00:00.000Z"]

    def test_target_listed_once_per_session(self, tmp_path: Path):
        """Test that redeploying within the minute does not duplicate targets."""
        store = ManifestStore(tmp_path / "deployments.json")
        store.append(
            [
                make_record(tx_hash="0x01", timestamp="2024-06-01T10:00:01.000Z"),
                make_record(tx_hash="0x02", timestamp="2024-06-01T10:00:30.000Z"),
            ]
        )

        (session,) = store.group_into_sessions()

        assert session.targets == ["Optimism Sepolia"]

    def test_offset_timestamps_share_a_session(self, tmp_path: Path):
        """Test that the same UTC minute groups together whatever the written offset."""
        store = ManifestStore(tmp_path / "deployments.json")
        store.append(
            [
                make_record(target="Base Sepolia", tx_hash="0x01",
                            timestamp="2024-06-01T12:00:10.000+02:00"),
                make_record(target="Scroll Sepolia", tx_hash="0x02",
                            timestamp="2024-06-01T10:00:40.000Z"),
            ]
        )

        (session,) = store.group_into_sessions()

        assert session.targets == ["Base Sepolia", "Scroll Sepolia"]


class TestExportImport:
    """Test moving manifests between homes."""

    def test_export_then_import_into_empty_store(self, temp_manifest: Path, tmp_path: Path):
        """Test that an export can be imported elsewhere."""
        exported = ManifestStore(temp_manifest).export_to(tmp_path / "backup" / "export.json")
        target = ManifestStore(tmp_path / "other" / "deployments.json")

        assert target.import_from(exported) == 5
        assert [r.id for r in target.records()] == [
            r.id for r in ManifestStore(temp_manifest).records()
        ]

    def test_import_is_idempotent(self, temp_manifest: Path, tmp_path: Path):
        """Test that importing the same file twice adds nothing the second time."""
        exported = ManifestStore(temp_manifest).export_to(tmp_path / "export.json")
        target = ManifestStore(tmp_path / "other.json")

        target.import_from(exported)

        assert target.import_from(exported) == 0
        assert len(target.records()) == 5

    def test_import_into_same_store(self, temp_manifest: Path, tmp_path: Path):
        """Test that re-importing a store's own export changes nothing."""
        store = ManifestStore(temp_manifest)
        exported = store.export_to(tmp_path / "export.json")

        assert store.import_from(exported) == 0

    def test_import_entries_without_ids(self, tmp_path: Path):
        """Test that entries from older exports get an id on import."""
        source = tmp_path / "legacy.json"
        with open(source, "w") as f:
            json.dump(
                {
                    "deployments": [
                        {
                            "timestamp": "2024-01-01T00:00:00.000Z",
                            "contractName": "Counter",
                            "contractPath": "Counter.json",
                            "chain": "Base Sepolia",
                            "chainId": 84532,
                            "address": "0xabc",
                            "txHash": "0x123",
                            "blockNumber": 1,
                            "deployer": DEPLOYER,
                        }
                    ]
                },
                f,
            )
        store = ManifestStore(tmp_path / "deployments.json")

        assert store.import_from(source) == 1
        assert store.records()[0].id == make_record_id("Base Sepolia", "0xabc", "0x123")

    def test_import_missing_file(self, tmp_path: Path):
        """Test that a missing import file raises ManifestNotFoundError."""
        store = ManifestStore(tmp_path / "deployments.json")

        with pytest.raises(ManifestNotFoundError, match="File not found"):
            store.import_from(tmp_path / "nope.json")

    def test_import_skips_malformed_entries(self, tmp_path: Path):
        """Test that entries missing required fields are not written to the manifest."""
        source = tmp_path / "partial.json"
        valid = make_record(target="Base Sepolia", tx_hash="0x03").to_dict()
        del valid["id"]
        with open(source, "w") as f:
            json.dump(
                {
                    "deployments": [
                        {"chain": "A", "address": "0x1", "txHash": "0x2"},
                        {**valid, "timestamp": "not a timestamp"},
                        "garbage",
                        valid,
                    ]
                },
                f,
            )
        store = ManifestStore(tmp_path / "deployments.json")

        assert store.import_from(source) == 1
        (record,) = store.query()
        assert record.target == "Base Sepolia"
        assert record.tx_hash == "0x03"
        assert len(store.group_into_sessions()) == 1

        with open(store.path) as f:
            written = json.load(f)["deployments"]
        assert written == [record.to_dict()]
