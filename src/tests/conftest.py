import threading
from typing import List, Optional, Union

import pytest

from rollup_tui.core.models import BlockSample, Metric, NetworkConfig
from rollup_tui.core.settings import Settings


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedClient:
    """RPC client double returning scripted outcomes, one per fetch.

    Each outcome is a Metric, an exception instance, or "ok" to build a
    Metric from the current block counter. The last outcome repeats.
    """

    def __init__(self, network: NetworkConfig, outcomes: List[Union[str, Metric, Exception]], clock=None):
        self.network = network
        self.outcomes = list(outcomes)
        self.clock = clock
        self.calls: List[Optional[int]] = []
        self.block = 100
        self.safe_endpoint = network.endpoint
        self.lock = threading.Lock()

    def fetch(self, after_block: Optional[int] = None) -> Metric:
        with self.lock:
            self.calls.append(after_block)
            index = min(len(self.calls) - 1, len(self.outcomes) - 1)
            outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, Metric):
            return outcome
        self.block += 1
        now = self.clock() if self.clock else 0.0
        return Metric(
            gas_price=10_000_000 * self.block,
            block_height=self.block,
            latency=0.05,
            observed_at=now,
            blocks=(BlockSample(self.block, int(now), 1_000_000, 10, 2048),),
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def networks():
    return [
        NetworkConfig(id="arbitrum", label="Arbitrum One", endpoint="https://arb.example/rpc"),
        NetworkConfig(id="optimism", label="OP Mainnet", endpoint="https://op.example/rpc"),
        NetworkConfig(id="base", label="Base", endpoint="https://base.example/rpc"),
    ]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        poll_interval=0.01,
        frame_interval=0.05,
        request_timeout=1.0,
        failure_threshold=3,
        max_backoff=0.08,
        shutdown_grace=1.0,
    )


@pytest.fixture
def scripted_client():
    return ScriptedClient
