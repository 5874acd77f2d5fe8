"""Main TUI Application module."""

import asyncio
import signal
import time
from typing import Callable, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Label

from rollup_tui.core.constants import DEFAULT_FRAME_INTERVAL
from rollup_tui.core.store import SnapshotStore
from rollup_tui.core.utils import configure_logger
from rollup_tui.tui.grid import COLUMNS, TOTALS_COLUMNS, Grid, build_grid

logger = configure_logger()


class DashboardApp(App):
    """Render loop: redraws the network grid from the snapshot store.

    The app only reads the store. It never talks to an RPC endpoint, so a
    slow network can delay neither a frame nor a key press.
    """

    TITLE = "Rollup TUI"
    SUB_TITLE = "live rollup metrics"

    CSS = """
    .header {
        margin: 1 1 0 1;
        text-style: bold;
    }
    #totals_table {
        height: 4;
        margin: 0 1;
    }
    #networks_table {
        height: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("s", "toggle_sort", "Sort by TPS"),
        Binding("r", "redraw", "Redraw"),
    ]

    def __init__(
        self,
        store: SnapshotStore,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the App."""
        super().__init__()
        self.store = store
        self.frame_interval = frame_interval
        self.sort_by_tps = False
        self.frames = 0
        self._clock = clock
        self._row_keys: List[str] = []
        self._timer: Optional[Timer] = None
        self._signals_installed = False

    def compose(self) -> ComposeResult:
        """Compose the App layout."""
        yield Header(show_clock=True)
        yield Label("Totals", classes="header")
        yield DataTable(id="totals_table", show_cursor=False)
        yield Label("Networks", classes="header")
        yield DataTable(id="networks_table", cursor_type="row", zebra_stripes=True)
        yield Footer()

    def on_mount(self) -> None:
        """Set up columns and start the frame timer."""
        totals = self.query_one("#totals_table", DataTable)
        for key, label in TOTALS_COLUMNS:
            totals.add_column(label, key=key)

        table = self.query_one("#networks_table", DataTable)
        for key, label in COLUMNS:
            table.add_column(label, key=key)

        self.render_frame()
        self._timer = self.set_interval(self.frame_interval, self.render_frame)
        self._install_signal_handlers()

    def on_unmount(self) -> None:
        """Stop the frame timer and release signal handlers."""
        if self._timer is not None:
            self._timer.stop()
        if self._signals_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)
            self._signals_installed = False

    def render_frame(self) -> None:
        """Read the whole snapshot once and redraw both tables from it."""
        snapshot = self.store.read_all()
        grid = build_grid(snapshot, now=self._clock(), sort_by_tps=self.sort_by_tps)
        self._draw_networks(grid)
        self._draw_totals(grid)
        self.frames += 1

    def _draw_networks(self, grid: Grid) -> None:
        table = self.query_one("#networks_table", DataTable)
        keys = [row.key for row in grid.rows]

        if keys == self._row_keys:
            for row in grid.rows:
                for (column_key, _), value in zip(COLUMNS, row.cells()):
                    table.update_cell(row.key, column_key, value)
            return

        # Row order changed (first frame or sort toggled): rebuild, keep cursor
        cursor = table.cursor_row
        table.clear()
        for row in grid.rows:
            table.add_row(*row.cells(), key=row.key)
        self._row_keys = keys
        if grid.rows:
            table.move_cursor(row=min(max(cursor, 0), len(grid.rows) - 1))

    def _draw_totals(self, grid: Grid) -> None:
        totals = self.query_one("#totals_table", DataTable)
        if totals.row_count == 0:
            totals.add_row(*grid.totals_cells(), key="totals")
            return
        for (column_key, _), value in zip(TOTALS_COLUMNS, grid.totals_cells()):
            totals.update_cell("totals", column_key, value)

    def action_toggle_sort(self) -> None:
        """Toggle between registry order and TPS descending."""
        self.sort_by_tps = not self.sort_by_tps
        self.render_frame()

    def action_redraw(self) -> None:
        """Redraw immediately."""
        self.render_frame()

    def _install_signal_handlers(self) -> None:
        """Route SIGTERM to a clean exit through the event loop."""
        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, self.exit)
            self._signals_installed = True
        except (NotImplementedError, RuntimeError, ValueError) as e:
            logger.debug(f"SIGTERM handler not installed: {e}")
