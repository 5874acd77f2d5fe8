import pytest
from textual.widgets import DataTable

from rollup_tui.core.models import BlockSample, HealthStatus, Metric, NetworkState, Throughput
from rollup_tui.core.store import SnapshotStore
from rollup_tui.tui.app import DashboardApp
from rollup_tui.tui.grid import build_grid, format_gwei, format_rate, health_cell


def _state(clock, block=1000, gas_price=10_000_000, tps=None, failures=0):
    throughput = Throughput(tps=tps, gps=tps * 1024 * 1024, dps=tps * 1024) if tps else None
    return NetworkState(
        metric=Metric(
            gas_price=gas_price,
            block_height=block,
            latency=0.123,
            observed_at=clock.now,
            blocks=(BlockSample(block, int(clock.now), 1, 1),),
        ),
        updated_at=clock.now,
        consecutive_failures=failures,
        health=HealthStatus.HEALTHY if not failures else HealthStatus.DEGRADED,
        throughput=throughput,
    )


@pytest.fixture
def store(networks, clock):
    return SnapshotStore(networks, clock=clock)


class TestFormatting:
    def test_format_gwei(self):
        assert format_gwei(25_000_000_000) == "25.00"
        assert format_gwei(1_234_500_000_000) == "1,234.50"
        assert format_gwei(10_000_000) == "0.0100"
        assert format_gwei(5_000) == "0.000005"
        assert format_gwei(0) == "0.000000"

    def test_format_rate(self):
        assert format_rate(None) == "—"
        assert format_rate(0.0) == "0.00"
        assert format_rate(1234.567) == "1,234.57"

    def test_health_cell(self):
        cell = health_cell(HealthStatus.UNREACHABLE)
        assert cell.plain == "● Unreachable"
        assert "red" in str(cell.style)


class TestBuildGrid:
    def test_never_succeeded_shows_placeholder(self, store, clock):
        grid = build_grid(store.read_all(), now=clock.now)
        row = grid.rows[0]
        assert row.block == "no data yet"
        assert row.gas == "no data yet"
        assert row.latency == "—"
        assert row.tps == "—"
        assert row.age == "—"
        assert row.health == HealthStatus.HEALTHY

    def test_row_values(self, store, clock):
        store.write_state("arbitrum", _state(clock, block=123456, tps=2.5))
        clock.advance(7)
        row = build_grid(store.read_all(), now=clock.now).rows[0]
        assert row.label == "Arbitrum One"
        assert row.block == "123,456"
        assert row.gas == "0.0100"
        assert row.latency == "123"
        assert row.tps == "2.50"
        assert row.mgas == "2.50"
        assert row.kbs == "2.50"
        assert row.age == "7s"

    def test_failing_network_shows_last_error(self, store, clock):
        store.write_state(
            "optimism",
            NetworkState(
                consecutive_failures=2,
                health=HealthStatus.DEGRADED,
                last_error="timeout: read timed out",
            ),
        )
        store.write_state("base", _state(clock))
        rows = {row.key: row for row in build_grid(store.read_all(), now=clock.now).rows}
        assert rows["optimism"].error == "timeout: read timed out"
        assert rows["optimism"].cells()[-1].plain == "timeout: read timed out"
        assert rows["base"].error == ""

    def test_registry_order_by_default(self, store, clock):
        store.write_state("base", _state(clock, tps=50.0))
        grid = build_grid(store.read_all(), now=clock.now)
        assert [row.key for row in grid.rows] == ["arbitrum", "optimism", "base"]

    def test_sort_by_tps(self, store, clock):
        store.write_state("arbitrum", _state(clock, tps=5.0))
        store.write_state("base", _state(clock, tps=50.0))
        grid = build_grid(store.read_all(), now=clock.now, sort_by_tps=True)
        assert [row.key for row in grid.rows] == ["base", "arbitrum", "optimism"]

    def test_totals_skip_networks_without_throughput(self, store, clock):
        store.write_state("arbitrum", _state(clock, tps=5.0))
        store.write_state("base", _state(clock, tps=1.5))
        store.write_state("optimism", _state(clock))
        grid = build_grid(store.read_all(), now=clock.now)
        assert grid.totals.tps == pytest.approx(6.5)
        assert grid.totals_cells() == ("6.50", "6.50", "6.50")


@pytest.mark.asyncio
async def test_app_draws_placeholder_rows(store, clock):
    app = DashboardApp(store, frame_interval=60, clock=clock)
    async with app.run_test() as pilot:
        await pilot.pause()
        table = app.query_one("#networks_table", DataTable)
        assert table.row_count == 3
        row = table.get_row("optimism")
        assert row[0] == "OP Mainnet"
        assert row[1] == "no data yet"
        assert row[2] == "no data yet"
        assert app.frames >= 1


@pytest.mark.asyncio
async def test_app_picks_up_new_state(store, clock):
    app = DashboardApp(store, frame_interval=60, clock=clock)
    async with app.run_test() as pilot:
        await pilot.pause()
        store.write_state("base", _state(clock, block=42, tps=3.0))
        await pilot.press("r")
        await pilot.pause()

        table = app.query_one("#networks_table", DataTable)
        row = table.get_row("base")
        assert row[1] == "42"
        assert row[4] == "3.00"
        assert row[8].plain == "● Healthy"
        assert row[9].plain == ""

        totals = app.query_one("#totals_table", DataTable)
        assert totals.get_row("totals")[0] == "3.00"


@pytest.mark.asyncio
async def test_app_redraws_on_timer(store, clock):
    app = DashboardApp(store, frame_interval=0.05, clock=clock)
    async with app.run_test() as pilot:
        await pilot.pause()
        store.write_state("arbitrum", _state(clock, block=7))
        await pilot.pause(0.3)
        table = app.query_one("#networks_table", DataTable)
        assert table.get_row("arbitrum")[1] == "7"
        assert app.frames > 1


@pytest.mark.asyncio
async def test_toggle_sort_reorders_rows(store, clock):
    store.write_state("base", _state(clock, tps=9.0))
    store.write_state("optimism", _state(clock, tps=4.0))
    app = DashboardApp(store, frame_interval=60, clock=clock)
    async with app.run_test() as pilot:
        await pilot.pause()
        table = app.query_one("#networks_table", DataTable)
        assert [table.get_row_at(i)[0] for i in range(3)] == ["Arbitrum One", "OP Mainnet", "Base"]

        await pilot.press("s")
        await pilot.pause()
        assert app.sort_by_tps
        assert [table.get_row_at(i)[0] for i in range(3)] == ["Base", "OP Mainnet", "Arbitrum One"]

        await pilot.press("s")
        await pilot.pause()
        assert [table.get_row_at(i)[0] for i in range(3)] == ["Arbitrum One", "OP Mainnet", "Base"]


@pytest.mark.asyncio
async def test_quit_binding_exits(store, clock):
    app = DashboardApp(store, frame_interval=60, clock=clock)
    async with app.run_test() as pilot:
        await pilot.press("q")
        await pilot.pause()
    assert app.return_code == 0


@pytest.mark.asyncio
async def test_app_never_writes_store(store, clock):
    before = store.read_all()
    app = DashboardApp(store, frame_interval=0.05, clock=clock)
    async with app.run_test() as pilot:
        await pilot.pause(0.2)
        await pilot.press("s", "r")
    after = store.read_all()
    assert [entry.state for entry in after] == [entry.state for entry in before]
