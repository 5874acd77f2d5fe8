"""Snapshot store: the single piece of shared mutable state."""

import threading
import time
from typing import Callable, Dict, Iterable, List, Set

from rollup_tui.core.models import NetworkConfig, NetworkState, Snapshot, SnapshotEntry


class StateWriter:
    """Write handle for exactly one network's state."""

    def __init__(self, store: "SnapshotStore", network_id: str) -> None:
        """Bind the handle to a key."""
        self._store = store
        self.network_id = network_id

    def write(self, state: NetworkState) -> None:
        """Replace the state of the bound network."""
        self._store.write_state(self.network_id, state)


class SnapshotStore:
    """Latest NetworkState per configured network.

    States are immutable, so a write is a single dict assignment and a read
    is a shallow copy; the lock is only held for those and never across I/O.
    """

    def __init__(
        self, networks: Iterable[NetworkConfig], clock: Callable[[], float] = time.time
    ) -> None:
        """Create a placeholder state for every network, in registry order."""
        self._networks: List[NetworkConfig] = list(networks)
        self._states: Dict[str, NetworkState] = {n.id: NetworkState() for n in self._networks}
        if len(self._states) != len(self._networks):
            raise ValueError("Duplicate network id in snapshot store")
        self._claimed: Set[str] = set()
        self._lock = threading.Lock()
        self._clock = clock

    def __contains__(self, network_id: str) -> bool:
        """Whether the id is a configured network."""
        return network_id in self._states

    @property
    def networks(self) -> List[NetworkConfig]:
        """Configured networks in registry order."""
        return list(self._networks)

    def claim(self, network_id: str) -> StateWriter:
        """Hand out the only writer for a network. A second claim is an error."""
        if network_id not in self._states:
            raise KeyError(network_id)
        with self._lock:
            if network_id in self._claimed:
                raise RuntimeError(f"State for {network_id} already has a writer")
            self._claimed.add(network_id)
        return StateWriter(self, network_id)

    def write_state(self, network_id: str, state: NetworkState) -> None:
        """Atomically replace the state of one network."""
        if network_id not in self._states:
            raise KeyError(network_id)
        with self._lock:
            self._states[network_id] = state

    def get(self, network_id: str) -> NetworkState:
        """Current state of one network."""
        with self._lock:
            return self._states[network_id]

    def read_all(self) -> Snapshot:
        """Consistent point-in-time copy of every network's state."""
        with self._lock:
            states = dict(self._states)
        return Snapshot(
            entries=tuple(SnapshotEntry(n, states[n.id]) for n in self._networks),
            taken_at=self._clock(),
        )
