"""CLI"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple, Union

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from rollup_tui.core.dashboard import Dashboard
from rollup_tui.core.errors import ConfigError, RpcError, sanitize_rpc_url
from rollup_tui.core.models import HealthStatus, Metric, NetworkConfig
from rollup_tui.core.registry import NetworkRegistry
from rollup_tui.core.rpc import RPCClient
from rollup_tui.core.settings import Settings, load_settings
from rollup_tui.core.utils import configure_logger
from rollup_tui.tui.grid import format_gwei, health_cell

rollup_cli = typer.Typer(help="rollup-tui command line interface")

console = Console()

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Networks file (JSON, YAML or TOML). Defaults to config/networks.json.",
)


def _load(config: Optional[Path], **overrides) -> Tuple[Settings, NetworkRegistry]:
    settings = load_settings(networks_file=config, **overrides)
    configure_logger(settings.log_file, settings.log_level)
    return settings, NetworkRegistry.load(settings.networks_file)


@rollup_cli.command("run")
def run_dashboard(
    config: Optional[Path] = ConfigOption,
    poll_interval: Optional[float] = typer.Option(
        None, "--poll-interval", "-i", help="Seconds between polls of each network."
    ),
    frame_interval: Optional[float] = typer.Option(
        None, "--frame-interval", "-f", help="Seconds between screen redraws."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Per-request RPC timeout in seconds."
    ),
    threshold: Optional[int] = typer.Option(
        None, "--threshold", "-k", help="Consecutive failures before a network is unreachable."
    ),
    max_backoff: Optional[float] = typer.Option(
        None, "--max-backoff", help="Maximum wait between attempts after failures."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level."),
):
    """Run the live dashboard"""
    try:
        settings, registry = _load(
            config,
            poll_interval=poll_interval,
            frame_interval=frame_interval,
            request_timeout=timeout,
            failure_threshold=threshold,
            max_backoff=max_backoff,
            log_level=log_level,
        )
        dashboard = Dashboard(registry, settings)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    raise typer.Exit(code=dashboard.run())


@rollup_cli.command("networks")
def list_networks(config: Optional[Path] = ConfigOption):
    """List configured networks"""
    try:
        _, registry = _load(config)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    table = Table(title=f"{len(registry)} networks")
    table.add_column("Id")
    table.add_column("Label")
    table.add_column("Endpoint")
    for network in registry:
        table.add_row(network.id, network.label, sanitize_rpc_url(network.endpoint))
    console.print(table)


def _probe_one(network: NetworkConfig, timeout: float) -> Union[Metric, RpcError]:
    try:
        return RPCClient(network, timeout=timeout).fetch()
    except RpcError as e:
        return e


@rollup_cli.command("probe")
def probe_networks(
    config: Optional[Path] = ConfigOption,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Per-request RPC timeout in seconds."
    ),
):
    """Fetch metrics once from every network and print the result"""
    try:
        settings, registry = _load(config, request_timeout=timeout)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    networks: List[NetworkConfig] = list(registry)
    with ThreadPoolExecutor(max_workers=len(networks)) as executor:
        results = list(
            executor.map(lambda n: _probe_one(n, settings.request_timeout), networks)
        )

    table = Table(title="RPC Status")
    for header in ("Network", "Block", "Gas (gwei)", "Latency (ms)", "Status"):
        table.add_column(header)
    for network, result in zip(networks, results):
        if isinstance(result, Metric):
            table.add_row(
                network.label,
                f"{result.block_height:,}",
                format_gwei(result.gas_price),
                f"{result.latency * 1000:.0f}",
                health_cell(HealthStatus.HEALTHY),
            )
        else:
            table.add_row(network.label, "", "", "", Text(result.describe(), style="red"))
    console.print(table)


if __name__ == "__main__":
    rollup_cli()
