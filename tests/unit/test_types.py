"""Unit tests for data types."""

from omnichain_deployments.types import (
    AggregateResult,
    FeeEstimate,
    ManifestRecord,
    PerTargetResult,
    TargetDescriptor,
)


def success(target, address="0x1111111111111111111111111111111111111111"):
    return PerTargetResult(
        target=target,
        network_id=1,
        address=address,
        tx_hash="0xabc",
        block_number=1,
        success=True,
    )


class TestPerTargetResult:
    """Test failure results."""

    def test_failure_placeholders(self):
        result = PerTargetResult.failure("Base Sepolia", 84532, "boom", "RpcUnavailable")

        assert result.success is False
        assert result.address == "0x0"
        assert result.tx_hash == ""
        assert result.block_number == 0
        assert result.error_kind == "RpcUnavailable"


class TestAggregateResult:
    """Test aggregation over per-target results."""

    def test_counts(self):
        aggregate = AggregateResult.from_results(
            [success("A"), PerTargetResult.failure("B", 2, "boom"), success("C")]
        )

        assert aggregate.total == 3
        assert aggregate.success_count == 2
        assert aggregate.failure_count == 1
        assert list(aggregate.address_by_target) == ["A", "C"]
        assert not aggregate.all_succeeded

    def test_empty(self):
        aggregate = AggregateResult.from_results([])

        assert aggregate.total == 0
        assert aggregate.all_succeeded
        assert not aggregate.has_consistent_address()

    def test_consistent_address_ignores_case(self):
        aggregate = AggregateResult.from_results(
            [success("A", "0xabcdef0000000000000000000000000000000000"),
             success("B", "0xABCDEF0000000000000000000000000000000000")]
        )

        assert aggregate.has_consistent_address()

    def test_inconsistent_address(self):
        aggregate = AggregateResult.from_results(
            [success("A"), success("B", "0x2222222222222222222222222222222222222222")]
        )

        assert not aggregate.has_consistent_address()


class TestSerialization:
    """Test on-disk field names."""

    def test_target_descriptor_roundtrip(self):
        data = {"name": "Base", "rpc": "https://base.example.com", "chainId": 8453}

        target = TargetDescriptor.from_dict(data)

        assert target.network_id == 8453
        assert target.to_dict() == data

    def test_manifest_record_optional_fields(self):
        data = {
            "id": "0123456789abcdef",
            "timestamp": "2024-05-01T12:30:45.123Z",
            "contractName": "Counter",
            "contractPath": "Counter.json",
            "chain": "Base",
            "chainId": 8453,
            "address": "0x1111111111111111111111111111111111111111",
            "txHash": "0xabc",
            "blockNumber": 10,
            "deployer": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            "salt": "0x01",
        }

        record = ManifestRecord.from_dict(data)

        assert record.constructor_args is None
        assert record.profile_name is None
        assert record.to_dict() == data

    def test_required_funds(self):
        assert FeeEstimate(gas_limit=700_000, gas_price=10**9).required_funds == 7 * 10**14
