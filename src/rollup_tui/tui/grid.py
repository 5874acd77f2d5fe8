"""Turns a Snapshot into the rows and totals shown by the dashboard."""

import time
from dataclasses import dataclass
from typing import Optional, Tuple

from rich.text import Text

from rollup_tui.core.constants import EMPTY_CELL, NO_DATA_PLACEHOLDER
from rollup_tui.core.models import HealthStatus, Snapshot, SnapshotEntry, Throughput
from rollup_tui.core.utils import format_age

# (column key, header)
COLUMNS = (
    ("network", "Network"),
    ("block", "Block"),
    ("gas", "Gas (gwei)"),
    ("latency", "Latency (ms)"),
    ("tps", "TPS"),
    ("mgas", "MGas/s"),
    ("kbs", "KB/s"),
    ("age", "Age"),
    ("health", "Health"),
    ("error", "Last Error"),
)
TOTALS_COLUMNS = (("tps", "TPS"), ("mgas", "MGas/s"), ("kbs", "KB/s"))

HEALTH_STYLES = {
    HealthStatus.HEALTHY: "bold green",
    HealthStatus.DEGRADED: "bold yellow",
    HealthStatus.UNREACHABLE: "bold red",
}


def format_gwei(gas_price_wei: int) -> str:
    """Gas price in gwei with enough precision for sub-gwei rollup fees."""
    gwei = gas_price_wei / 1e9
    if gwei >= 1:
        return f"{gwei:,.2f}"
    if gwei >= 0.001:
        return f"{gwei:.4f}"
    return f"{gwei:.6f}"


def format_rate(value: Optional[float]) -> str:
    """Format a per-second rate, hiding absent values."""
    if value is None:
        return EMPTY_CELL
    return f"{value:,.2f}"


def health_cell(health: HealthStatus) -> Text:
    """Colored health indicator."""
    return Text(f"● {health.value}", style=HEALTH_STYLES[health])


@dataclass(frozen=True)
class GridRow:
    """Display values for one network."""

    key: str
    label: str
    block: str
    gas: str
    latency: str
    tps: str
    mgas: str
    kbs: str
    age: str
    health: HealthStatus
    error: str = ""
    tps_value: float = 0.0

    def cells(self) -> Tuple:
        """Cells in COLUMNS order."""
        return (
            self.label,
            self.block,
            self.gas,
            self.latency,
            self.tps,
            self.mgas,
            self.kbs,
            self.age,
            health_cell(self.health),
            Text(self.error, style="red"),
        )


@dataclass(frozen=True)
class Grid:
    """Everything one frame draws."""

    rows: Tuple[GridRow, ...]
    totals: Throughput

    def totals_cells(self) -> Tuple[str, str, str]:
        """Cells in TOTALS_COLUMNS order."""
        return (
            format_rate(self.totals.tps),
            format_rate(self.totals.gps / 1024 / 1024),
            format_rate(self.totals.dps / 1024),
        )


def build_row(entry: SnapshotEntry, now: float) -> GridRow:
    """Build the display row of one network.

    A network that never answered shows an explicit placeholder rather than
    zeros, so absence is not mistaken for a real zero gas price.
    """
    state = entry.state
    metric = state.metric
    throughput = state.throughput

    if metric is None:
        block = gas = NO_DATA_PLACEHOLDER
        latency = EMPTY_CELL
    else:
        block = f"{metric.block_height:,}"
        gas = format_gwei(metric.gas_price)
        latency = f"{metric.latency * 1000:.0f}"

    age = state.age(now)
    return GridRow(
        key=entry.network.id,
        label=entry.network.label,
        block=block,
        gas=gas,
        latency=latency,
        tps=format_rate(throughput.tps if throughput else None),
        mgas=format_rate(throughput.gps / 1024 / 1024 if throughput else None),
        kbs=format_rate(throughput.dps / 1024 if throughput else None),
        age=format_age(age) if age is not None else EMPTY_CELL,
        health=state.health,
        error=(state.last_error or "") if state.consecutive_failures else "",
        tps_value=throughput.tps if throughput else 0.0,
    )


def build_grid(
    snapshot: Snapshot, now: Optional[float] = None, sort_by_tps: bool = False
) -> Grid:
    """Build one frame from a snapshot. Rows keep registry order unless sorted."""
    now = time.time() if now is None else now
    rows = [build_row(entry, now) for entry in snapshot]
    if sort_by_tps:
        rows.sort(key=lambda row: row.tps_value, reverse=True)

    tps = gps = dps = 0.0
    for entry in snapshot:
        if entry.state.throughput is not None:
            tps += entry.state.throughput.tps
            gps += entry.state.throughput.gps
            dps += entry.state.throughput.dps

    return Grid(rows=tuple(rows), totals=Throughput(tps=tps, gps=gps, dps=dps))
