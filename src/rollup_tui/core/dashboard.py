"""Orchestrator wiring the registry, pollers, snapshot store and render loop."""

import threading
import time
from typing import Callable, Iterable, List, Optional, Union

from textual.app import App

from rollup_tui.core.models import NetworkConfig
from rollup_tui.core.poller import Poller
from rollup_tui.core.registry import NetworkRegistry
from rollup_tui.core.rpc import RPCClient
from rollup_tui.core.settings import Settings, load_settings
from rollup_tui.core.store import SnapshotStore
from rollup_tui.core.utils import configure_logger
from rollup_tui.tui.app import DashboardApp

logger = configure_logger()

ClientFactory = Callable[[NetworkConfig], RPCClient]
AppFactory = Callable[[SnapshotStore], App]


class Dashboard:
    """Owns one Poller per configured network and one render loop.

    Everything is allocated in the constructor: a bad registry raises
    ``ConfigError`` before any poller or app exists, and nothing is created
    or destroyed afterwards except at shutdown.
    """

    def __init__(
        self,
        networks: Union[NetworkRegistry, Iterable[NetworkConfig]],
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
        app_factory: Optional[AppFactory] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Validate the registry and allocate the store and pollers."""
        if isinstance(networks, NetworkRegistry):
            self.registry = networks
        else:
            self.registry = NetworkRegistry.from_entries(list(networks))
        self.settings = settings or load_settings()

        self.store = SnapshotStore(self.registry, clock=clock)
        self._client_factory = client_factory or self._default_client
        self._app_factory = app_factory or self._default_app
        self._stop = threading.Event()
        self.threads: List[threading.Thread] = []
        self.app: Optional[App] = None

        self.pollers: List[Poller] = [
            Poller(
                network,
                self._client_factory(network),
                self.store.claim(network.id),
                interval=self.settings.poll_interval,
                failure_threshold=self.settings.failure_threshold,
                max_backoff=self.settings.max_backoff,
                window_seconds=self.settings.window_seconds,
                clock=clock,
            )
            for network in self.registry
        ]

    def _default_client(self, network: NetworkConfig) -> RPCClient:
        return RPCClient(network, timeout=self.settings.request_timeout)

    def _default_app(self, store: SnapshotStore) -> App:
        return DashboardApp(store, frame_interval=self.settings.frame_interval)

    @property
    def stopping(self) -> bool:
        """Whether shutdown has been requested."""
        return self._stop.is_set()

    def start(self) -> None:
        """Start one daemon thread per poller."""
        if self.threads:
            raise RuntimeError("Dashboard already started")
        for poller in self.pollers:
            thread = threading.Thread(
                target=poller.run,
                args=(self._stop,),
                name=f"poller-{poller.network.id}",
                daemon=True,
            )
            thread.start()
            self.threads.append(thread)
        logger.info(f"Started {len(self.threads)} pollers")

    def run(self) -> int:
        """Run pollers and the render loop until the app exits. Returns the exit code."""
        self.app = self._app_factory(self.store)
        self.start()
        try:
            self.app.run()
        finally:
            self.shutdown()
        return 0

    def shutdown(self) -> None:
        """Signal every poller to stop and wait briefly for them.

        Requests still in flight after the grace period are abandoned; their
        daemon threads die with the process. Store writes are atomic, so an
        interrupted cycle leaves either its previous state or nothing behind.
        """
        if self._stop.is_set():
            return
        self._stop.set()

        deadline = time.monotonic() + self.settings.shutdown_grace
        for thread in self.threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))

        alive = [thread.name for thread in self.threads if thread.is_alive()]
        if alive:
            logger.warning(f"Abandoning in-flight requests in {', '.join(alive)}")
        logger.info("Dashboard stopped")
