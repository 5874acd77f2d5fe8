"""Per-network polling state machine with capped exponential backoff."""

import threading
import time
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional

from rollup_tui.core.constants import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_WINDOW_SECONDS,
)
from rollup_tui.core.errors import RpcError, RpcProviderError
from rollup_tui.core.models import HealthStatus, Metric, NetworkConfig, NetworkState, health_for
from rollup_tui.core.rpc import RPCClient
from rollup_tui.core.store import StateWriter
from rollup_tui.core.throughput import BlockWindow
from rollup_tui.core.utils import configure_logger

logger = configure_logger()


class PollerPhase(str, Enum):
    """Phases of one polling cycle."""

    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCESS = "success"
    FAILED = "failed"


class Backoff:
    """Wait between attempts: doubles after each failure up to a cap.

    A success resets the wait to the base interval immediately.
    """

    def __init__(self, base: float, cap: float, factor: float = 2.0) -> None:
        """Initialize backoff.

        Args:
            base: Regular polling interval.
            cap: Maximum wait. Raised to ``base`` if smaller.
            factor: Growth factor per consecutive failure.

        """
        self.base = base
        self.cap = max(cap, base)
        self.factor = factor
        self.failures = 0
        self._delay = base

    @property
    def delay(self) -> float:
        """Current wait before the next attempt."""
        return self._delay

    def failure(self) -> float:
        """Record a failure and return the grown wait."""
        self.failures += 1
        self._delay = min(self._delay * self.factor, self.cap)
        return self._delay

    def reset(self) -> float:
        """Record a success and return the base wait."""
        self.failures = 0
        self._delay = self.base
        return self._delay


class Poller:
    """Owns the polling cycle of one network.

    Each cycle moves ``IDLE -> REQUESTING -> SUCCESS | FAILED -> IDLE`` and
    publishes a complete NetworkState through the poller's exclusive writer.
    The poller keeps its own copy of the last published state, so it never
    needs to read the shared store.
    """

    def __init__(
        self,
        network: NetworkConfig,
        client: RPCClient,
        writer: StateWriter,
        interval: float = DEFAULT_POLL_INTERVAL,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the poller in the IDLE phase with a placeholder state."""
        if writer.network_id != network.id:
            raise ValueError(f"Writer for {writer.network_id} cannot publish {network.id}")
        self.network = network
        self.client = client
        self.writer = writer
        self.failure_threshold = failure_threshold
        self.backoff = Backoff(interval, max_backoff)
        self.window = BlockWindow(window_seconds, clock=clock)
        self.phase = PollerPhase.IDLE
        self.state = NetworkState()
        self.ticks = 0
        self._clock = clock
        self._last_block: Optional[int] = None

    def tick(self) -> float:
        """Run one request cycle and return the wait before the next one."""
        self.ticks += 1
        self.phase = PollerPhase.REQUESTING
        try:
            metric = self.client.fetch(self._last_block)
        except RpcError as e:
            return self._on_failure(e)
        except Exception as e:
            logger.exception(f"[{self.network.id}] Unexpected error while fetching metrics")
            error = RpcProviderError(None, f"unexpected {type(e).__name__}: {e}")
            return self._on_failure(error)
        return self._on_success(metric)

    def run(self, stop: threading.Event) -> None:
        """Poll until ``stop`` is set. The inter-tick wait wakes up on stop."""
        logger.info(f"Starting poller for {self.network.id} ({self.client.safe_endpoint})")
        while not stop.is_set():
            try:
                delay = self.tick()
            except Exception as e:
                logger.error(f"Error in poller for {self.network.id}: {e}")
                delay = self.backoff.delay
            if stop.wait(delay):
                break
        logger.info(f"Poller for {self.network.id} stopped after {self.ticks} ticks")

    def _on_success(self, metric: Metric) -> float:
        self.phase = PollerPhase.SUCCESS
        self.window.extend(metric.blocks)
        if self._last_block is None or metric.block_height > self._last_block:
            self._last_block = metric.block_height

        if self.state.consecutive_failures:
            logger.info(
                f"[{self.network.id}] Recovered after {self.state.consecutive_failures} failures"
            )

        self._publish(
            NetworkState(
                metric=metric,
                updated_at=self._clock(),
                consecutive_failures=0,
                health=HealthStatus.HEALTHY,
                throughput=self.window.throughput(),
            )
        )
        return self.backoff.reset()

    def _on_failure(self, error: RpcError) -> float:
        self.phase = PollerPhase.FAILED
        failures = self.state.consecutive_failures + 1
        health = health_for(failures, self.failure_threshold)

        if health != self.state.health:
            logger.warning(
                f"[{self.network.id}] {self.state.health.value} -> {health.value} "
                f"after {failures} consecutive failures: {error.describe()}"
            )
        else:
            logger.debug(f"[{self.network.id}] Fetch failed ({failures}): {error.describe()}")

        # Metric and updated_at are kept so the row shows stale data. The
        # window is re-evaluated so throughput decays while no blocks arrive.
        self._publish(
            replace(
                self.state,
                consecutive_failures=failures,
                health=health,
                throughput=self.window.throughput(),
                last_error=error.describe(),
            )
        )
        return self.backoff.failure()

    def _publish(self, state: NetworkState) -> None:
        self.writer.write(state)
        self.state = state
        self.phase = PollerPhase.IDLE
