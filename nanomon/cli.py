"""CLI entry point for NanoMon.

Provides commands for one-off snapshots, process tops, stack aggregates
and a periodic watch mode.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nanomon.common.config import NanomonSettings, load_settings
from nanomon.common.exceptions import NanomonError
from nanomon.common.logging_setup import setup_logging_from_settings
from nanomon.common.models import HostSnapshot, Process
from nanomon.docker_handler import AsyncDockerClientWrapper, ConfigurationError
from nanomon.monitoring import MonitoringService, create_monitoring_service
from nanomon.poller import SnapshotPoller
from nanomon.store import SnapshotStore

logger = logging.getLogger(__name__)

# Create CLI app
app = typer.Typer(
    name="nanomon",
    help="NanoMon - Host, process and container monitoring",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    str | None,
    typer.Option("--config", "-c", help="Path to nanomon.yaml config file"),
]
EnvFileOption = Annotated[
    str | None,
    typer.Option("--env-file", help="Path to .env file"),
]
NoDockerOption = Annotated[
    bool,
    typer.Option("--no-docker", help="Skip the container runtime"),
]


# =============================================================================
# Helpers
# =============================================================================


def _load_settings(config: str | None, env_file: str | None) -> NanomonSettings:
    try:
        settings = NanomonSettings.from_yaml(config) if config else load_settings(env_file)
    except (FileNotFoundError, yaml.YAMLError, ValidationError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    setup_logging_from_settings(settings.logging)
    return settings


@contextlib.asynccontextmanager
async def _open_service(
    settings: NanomonSettings, no_docker: bool
) -> AsyncIterator[MonitoringService]:
    """Yield a service, connecting to the runtime unless disabled."""
    docker_client: AsyncDockerClientWrapper | None = None
    if settings.docker.docker_enabled and not no_docker:
        docker_client = AsyncDockerClientWrapper(
            docker_url=settings.docker.docker_host,
            timeout=settings.docker.docker_timeout_seconds,
        )
        try:
            await docker_client.connect()
        except ConfigurationError as e:
            logger.warning(f"Container runtime unavailable, continuing without it: {e.message}")
            docker_client = None

    try:
        yield create_monitoring_service(settings, docker_client)
    finally:
        if docker_client is not None:
            await docker_client.close()


def _format_bytes(value: int) -> str:
    """
    Format a byte count with a binary unit.

    Examples
    --------
    >>> _format_bytes(512)
    '512 B'
    >>> _format_bytes(1536)
    '1.5 KiB'
    """
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{value} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{value} B"


def _print_snapshot(snapshot: HostSnapshot) -> None:
    load = snapshot.load_average
    rprint(f"[bold]Host:[/bold] {snapshot.hostname}")
    rprint(f"[bold]Uptime:[/bold] {snapshot.uptime_seconds}s")
    rprint(f"[bold]Load:[/bold] {load.one:.2f} {load.five:.2f} {load.fifteen:.2f}")
    rprint(
        f"[bold]CPU:[/bold] {snapshot.cpu.usage_percent:.1f}% "
        f"(user {snapshot.cpu.user_percent:.1f}%, system {snapshot.cpu.system_percent:.1f}%)"
    )
    rprint(
        f"[bold]Memory:[/bold] {_format_bytes(snapshot.memory.used_bytes)} / "
        f"{_format_bytes(snapshot.memory.total_bytes)} ({snapshot.memory.usage_percent:.1f}%)"
    )

    if snapshot.disks:
        disks_table = Table(title="Disks")
        disks_table.add_column("Mount", style="cyan")
        disks_table.add_column("Device")
        disks_table.add_column("FS")
        disks_table.add_column("Used", justify="right")
        disks_table.add_column("Total", justify="right")
        disks_table.add_column("Use%", justify="right")
        for disk in snapshot.disks:
            disks_table.add_row(
                disk.mount_point,
                disk.device,
                disk.filesystem,
                _format_bytes(disk.used_bytes),
                _format_bytes(disk.total_bytes),
                f"{disk.usage_percent:.1f}",
            )
        console.print(disks_table)

    if snapshot.network_interfaces:
        net_table = Table(title="Network")
        net_table.add_column("Interface", style="cyan")
        net_table.add_column("State")
        net_table.add_column("RX", justify="right")
        net_table.add_column("TX", justify="right")
        for iface in snapshot.network_interfaces:
            state = "[green]up[/green]" if iface.is_up else "[red]down[/red]"
            net_table.add_row(
                iface.name,
                state,
                _format_bytes(iface.metrics.rx_bytes),
                _format_bytes(iface.metrics.tx_bytes),
            )
        console.print(net_table)

    if snapshot.containers:
        containers_table = Table(title="Containers")
        containers_table.add_column("Name", style="cyan")
        containers_table.add_column("Image")
        containers_table.add_column("Stack")
        containers_table.add_column("State")
        containers_table.add_column("CPU%", justify="right")
        containers_table.add_column("Memory", justify="right")
        for container in snapshot.containers:
            containers_table.add_row(
                container.name,
                container.image,
                container.stack or "-",
                container.state.value,
                f"{container.cpu.usage_percent:.1f}",
                _format_bytes(container.memory.used_bytes),
            )
        console.print(containers_table)

    rprint(f"[bold]Processes:[/bold] {len(snapshot.processes)}")


def _print_processes(title: str, processes: list[Process]) -> None:
    table = Table(title=title)
    table.add_column("PID", justify="right", style="cyan")
    table.add_column("User")
    table.add_column("State")
    table.add_column("CPU%", justify="right")
    table.add_column("MEM%", justify="right")
    table.add_column("RSS", justify="right")
    table.add_column("Command")
    for process in processes:
        table.add_row(
            str(process.pid),
            process.user,
            process.state.value,
            f"{process.cpu_percent:.1f}",
            f"{process.memory_percent:.1f}",
            _format_bytes(process.memory_bytes),
            process.command,
        )
    console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command("snapshot")
def cmd_snapshot(
    as_json: Annotated[bool, typer.Option("--json", help="Print the snapshot as JSON")] = False,
    config: ConfigOption = None,
    env_file: EnvFileOption = None,
    no_docker: NoDockerOption = False,
) -> None:
    """Collect and print one host snapshot."""
    settings = _load_settings(config, env_file)

    async def run() -> HostSnapshot:
        async with _open_service(settings, no_docker) as service:
            return await service.collect_all()

    try:
        snapshot = asyncio.run(run())
    except NanomonError as e:
        rprint(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from None

    if as_json:
        typer.echo(snapshot.model_dump_json(indent=2))
    else:
        _print_snapshot(snapshot)


@app.command("top")
def cmd_top(
    sort: Annotated[
        str,
        typer.Option("--sort", "-s", help="Sort key: cpu or memory"),
    ] = "cpu",
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Number of processes (default: process_limit)"),
    ] = None,
    config: ConfigOption = None,
    env_file: EnvFileOption = None,
) -> None:
    """Show the top processes by CPU or memory."""
    if sort not in ("cpu", "memory"):
        rprint(f"[red]Error:[/red] Unknown sort key '{sort}' (expected cpu or memory)")
        raise typer.Exit(2)

    settings = _load_settings(config, env_file)
    n = limit or settings.monitoring.process_limit

    async def run() -> list[Process]:
        # Process listing never touches the container runtime
        async with _open_service(settings, no_docker=True) as service:
            if sort == "memory":
                return await service.get_top_processes_by_memory(n)
            return await service.get_top_processes_by_cpu(n)

    try:
        processes = asyncio.run(run())
    except NanomonError as e:
        rprint(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from None

    _print_processes(f"Top {n} processes by {sort}", processes)


@app.command("stacks")
def cmd_stacks(
    config: ConfigOption = None,
    env_file: EnvFileOption = None,
    no_docker: NoDockerOption = False,
) -> None:
    """Show per-stack container aggregates."""
    settings = _load_settings(config, env_file)

    async def run():
        async with _open_service(settings, no_docker) as service:
            return await service.get_stacks()

    try:
        stacks = asyncio.run(run())
    except NanomonError as e:
        rprint(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from None

    if not stacks:
        rprint("[yellow]No stacks found[/yellow]")
        return

    table = Table(title="Stacks")
    table.add_column("Stack", style="cyan")
    table.add_column("Running", justify="right")
    table.add_column("CPU%", justify="right")
    table.add_column("Memory", justify="right")
    for stack in stacks:
        table.add_row(
            stack.name,
            f"{stack.containers_running}/{stack.containers_total}",
            f"{stack.cpu_percent:.1f}",
            _format_bytes(stack.memory_bytes),
        )
    console.print(table)


@app.command("watch")
def cmd_watch(
    interval: Annotated[
        float | None,
        typer.Option("--interval", "-i", min=0.01, help="Seconds between snapshots"),
    ] = None,
    count: Annotated[
        int | None,
        typer.Option("--count", min=1, help="Stop after this many ticks"),
    ] = None,
    config: ConfigOption = None,
    env_file: EnvFileOption = None,
    no_docker: NoDockerOption = False,
) -> None:
    """Poll snapshots periodically and print the latest one."""
    settings = _load_settings(config, env_file)
    period = interval or float(settings.monitoring.poll_interval_seconds)

    async def run() -> None:
        async with _open_service(settings, no_docker) as service:
            store = SnapshotStore(capacity=settings.monitoring.history_size)
            poller = SnapshotPoller(service, store, interval_seconds=period)
            await poller.start()
            ticks = 0
            try:
                while count is None or ticks < count:
                    await asyncio.sleep(period)
                    ticks += 1
                    latest = store.get_latest()
                    if latest is None:
                        rprint("[yellow]No snapshot collected yet[/yellow]")
                        continue
                    console.rule(latest.timestamp.isoformat())
                    _print_snapshot(latest)
            finally:
                await poller.stop()

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run())


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
