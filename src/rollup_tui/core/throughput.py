"""Sliding window of recent blocks used to derive per-second activity."""

import time
from collections import deque
from typing import Callable, Deque, Iterable, Optional, Set

from rollup_tui.core.constants import DEFAULT_WINDOW_SECONDS
from rollup_tui.core.models import BlockSample, Throughput


class BlockWindow:
    """Aggregates block samples seen over the last ``window_seconds``.

    Blocks are deduplicated by number and evicted once their timestamp falls
    out of the window. Averages are taken over the span from the oldest block
    still in the window until now, so a chain that stops producing blocks
    decays towards zero instead of freezing its last rate.

    Not thread-safe: each poller owns its own window.
    """

    def __init__(
        self,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty window."""
        self.window_seconds = window_seconds
        self._clock = clock
        self._blocks: Deque[BlockSample] = deque()
        self._seen: Set[int] = set()
        self.total_txs = 0
        self.total_gas = 0
        self.total_bytes = 0

    def __len__(self) -> int:
        """Number of blocks in the window."""
        return len(self._blocks)

    def add(self, block: BlockSample) -> bool:
        """Add a block. Returns False for duplicates and already expired blocks."""
        if block.number in self._seen:
            return False

        self._evict()
        if self._clock() - block.timestamp >= self.window_seconds:
            return False

        self._blocks.append(block)
        self._seen.add(block.number)
        self.total_txs += block.tx_count
        self.total_gas += block.gas_used
        self.total_bytes += block.size or 0
        return True

    def extend(self, blocks: Iterable[BlockSample]) -> int:
        """Add blocks in ascending number order. Returns how many were new."""
        return sum(1 for block in sorted(blocks, key=lambda b: b.number) if self.add(block))

    def throughput(self) -> Optional[Throughput]:
        """Averages over the window, or None until two distinct timestamps are seen."""
        self._evict()
        if len(self._blocks) < 2:
            return None

        first, last = self._blocks[0], self._blocks[-1]
        if last.timestamp <= first.timestamp:
            return None

        span = self._clock() - first.timestamp
        if span <= 0:
            return None

        return Throughput(
            tps=self.total_txs / span,
            gps=self.total_gas / span,
            dps=self.total_bytes / span,
        )

    def _evict(self) -> None:
        now = self._clock()
        while self._blocks and now - self._blocks[0].timestamp >= self.window_seconds:
            block = self._blocks.popleft()
            self.total_txs -= block.tx_count
            self.total_gas -= block.gas_used
            self.total_bytes -= block.size or 0
            self._seen.discard(block.number)
