import pytest
from pydantic import ValidationError

from rollup_tui.core.models import (
    HealthStatus,
    Metric,
    NetworkConfig,
    NetworkState,
    Snapshot,
    SnapshotEntry,
    health_for,
)


def test_network_config_accepts_name_and_http_keys():
    network = NetworkConfig.model_validate(
        {"name": "base", "label": "Base", "http": "https://mainnet.base.org"}
    )
    assert network.id == "base"
    assert network.label == "Base"
    assert network.endpoint == "https://mainnet.base.org"


def test_network_config_accepts_canonical_keys():
    network = NetworkConfig(id="op", label="OP Mainnet", endpoint="https://mainnet.optimism.io")
    assert network.id == "op"
    assert network.endpoint == "https://mainnet.optimism.io"


def test_network_config_label_defaults_to_id():
    network = NetworkConfig(id="scroll", endpoint="https://rpc.scroll.io")
    assert network.label == "scroll"


def test_network_config_rejects_bad_endpoint():
    with pytest.raises(ValidationError, match="Invalid endpoint URL"):
        NetworkConfig(id="bad", endpoint="wss://rpc.example")


def test_network_config_rejects_blank_id():
    with pytest.raises(ValidationError):
        NetworkConfig(id="   ", endpoint="https://rpc.example")


def test_network_config_is_immutable():
    network = NetworkConfig(id="base", endpoint="https://mainnet.base.org")
    with pytest.raises(ValidationError):
        network.label = "Other"


@pytest.mark.parametrize("threshold", [1, 2, 3, 5])
def test_health_is_a_function_of_failure_count(threshold):
    assert health_for(0, threshold) == HealthStatus.HEALTHY
    for failures in range(1, threshold):
        assert health_for(failures, threshold) == HealthStatus.DEGRADED
    for failures in range(threshold, threshold + 4):
        assert health_for(failures, threshold) == HealthStatus.UNREACHABLE


def test_network_state_placeholder():
    state = NetworkState()
    assert not state.has_data
    assert state.age(123.0) is None
    assert state.health == HealthStatus.HEALTHY
    assert state.consecutive_failures == 0


def test_network_state_age():
    metric = Metric(gas_price=1, block_height=1, latency=0.1, observed_at=100.0)
    state = NetworkState(metric=metric, updated_at=100.0)
    assert state.has_data
    assert state.age(104.5) == 4.5
    # Clock skew never yields a negative age
    assert state.age(99.0) == 0.0


def test_metric_gas_price_gwei():
    metric = Metric(gas_price=2_500_000_000, block_height=1, latency=0.0, observed_at=0.0)
    assert metric.gas_price_gwei == 2.5


def test_snapshot_lookup_and_order():
    a = NetworkConfig(id="a", endpoint="https://a.example")
    b = NetworkConfig(id="b", endpoint="https://b.example")
    failing = NetworkState(consecutive_failures=2, health=HealthStatus.DEGRADED)
    snapshot = Snapshot(
        entries=(SnapshotEntry(a, NetworkState()), SnapshotEntry(b, failing)),
        taken_at=1.0,
    )
    assert len(snapshot) == 2
    assert [entry.network.id for entry in snapshot] == ["a", "b"]
    assert snapshot.state("b") is failing
