"""Container source backed by the Docker runtime API.

Turns container summaries and raw stats payloads from
``AsyncDockerClientWrapper`` into ``Container`` and ``ContainerStats`` models.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from nanomon.common.models import (
    Container,
    ContainerState,
    ContainerStats,
    CpuMetrics,
    IoMetrics,
    MemoryMetrics,
    NetworkMetrics,
)
from nanomon.docker_handler.async_client import AsyncDockerClientWrapper
from nanomon.docker_handler.exceptions import ContainerError
from nanomon.sources import ContainerSource

logger = logging.getLogger(__name__)

STACK_LABELS = ("com.docker.compose.project", "docker.compose.project")
UNKNOWN = "unknown"

_STATE_MAP = {
    "running": ContainerState.RUNNING,
    "paused": ContainerState.PAUSED,
    "restarting": ContainerState.RESTARTING,
    "dead": ContainerState.DEAD,
    "created": ContainerState.CREATED,
}


# =============================================================================
# Summary Parsing
# =============================================================================


def map_container_state(state: str | None) -> ContainerState:
    """
    Map a runtime state string onto ``ContainerState``.

    Examples
    --------
    >>> map_container_state("running")
    <ContainerState.RUNNING: 'running'>
    >>> map_container_state("exited")
    <ContainerState.STOPPED: 'stopped'>
    """
    if not state:
        return ContainerState.STOPPED
    return _STATE_MAP.get(state.lower(), ContainerState.STOPPED)


def parse_container_name(names: list[str] | None) -> str:
    """
    First runtime name with the leading slash removed.

    Examples
    --------
    >>> parse_container_name(["/web", "/alias"])
    'web'
    >>> parse_container_name([])
    'unknown'
    """
    if not names:
        return UNKNOWN
    return names[0].removeprefix("/")


def extract_stack_name(labels: dict[str, str] | None) -> str | None:
    """Return the compose project label, if any."""
    if not labels:
        return None
    for label in STACK_LABELS:
        if label in labels:
            return labels[label]
    return None


def parse_created_at(created: int | None) -> datetime:
    """Convert epoch seconds to an aware datetime (now when absent)."""
    if created is None:
        return datetime.now(UTC)
    try:
        return datetime.fromtimestamp(created, UTC)
    except (OverflowError, OSError, ValueError):
        return datetime.now(UTC)


def parse_container_summary(summary: dict[str, Any]) -> Container:
    """Build a ``Container`` (zeroed metrics) from a list summary."""
    return Container(
        id=summary.get("Id") or "",
        name=parse_container_name(summary.get("Names")),
        image=summary.get("Image") or UNKNOWN,
        stack=extract_stack_name(summary.get("Labels")),
        state=map_container_state(summary.get("State")),
        created_at=parse_created_at(summary.get("Created")),
    )


# =============================================================================
# Stats Parsing
# =============================================================================


def calculate_cpu_percent(stats: dict[str, Any]) -> float:
    """
    Calculate CPU percentage from a stats sample.

    Uses the formula from Docker CLI:
    cpu_percent = (delta_container / delta_system) * num_cpus * 100

    The result is not capped: a container using several cores exceeds 100.

    Examples
    --------
    >>> calculate_cpu_percent({
    ...     "cpu_stats": {"cpu_usage": {"total_usage": 300}, "system_cpu_usage": 2000,
    ...                   "online_cpus": 2},
    ...     "precpu_stats": {"cpu_usage": {"total_usage": 100}, "system_cpu_usage": 1000},
    ... })
    40.0
    """
    cpu_stats = stats.get("cpu_stats") or {}
    precpu_stats = stats.get("precpu_stats") or {}

    cpu_usage = cpu_stats.get("cpu_usage") or {}
    precpu_usage = precpu_stats.get("cpu_usage") or {}

    container_delta = cpu_usage.get("total_usage", 0) - precpu_usage.get("total_usage", 0)
    system_delta = (cpu_stats.get("system_cpu_usage") or 0) - (
        precpu_stats.get("system_cpu_usage") or 0
    )

    if system_delta > 0 and container_delta > 0:
        num_cpus = cpu_stats.get("online_cpus") or len(cpu_usage.get("percpu_usage") or []) or 1
        return (container_delta / system_delta) * num_cpus * 100

    return 0.0


def parse_memory(stats: dict[str, Any]) -> MemoryMetrics:
    """Memory usage against the container limit (the usage when unlimited)."""
    mem_stats = stats.get("memory_stats") or {}
    used = mem_stats.get("usage") or 0
    limit = mem_stats.get("limit") or used
    return MemoryMetrics(
        used_bytes=used,
        total_bytes=limit,
        available_bytes=max(limit - used, 0),
    )


def parse_network(stats: dict[str, Any]) -> NetworkMetrics:
    """Sum network counters over all container interfaces."""
    networks = stats.get("networks") or {}
    rx_bytes = tx_bytes = rx_errors = tx_errors = 0

    for iface_stats in networks.values():
        rx_bytes += iface_stats.get("rx_bytes", 0)
        tx_bytes += iface_stats.get("tx_bytes", 0)
        rx_errors += iface_stats.get("rx_errors", 0)
        tx_errors += iface_stats.get("tx_errors", 0)

    return NetworkMetrics(
        rx_bytes=rx_bytes,
        tx_bytes=tx_bytes,
        rx_errors=rx_errors,
        tx_errors=tx_errors,
    )


def parse_block_io(stats: dict[str, Any]) -> IoMetrics:
    """Sum Read/Write entries of ``io_service_bytes_recursive``."""
    blkio = stats.get("blkio_stats") or {}
    io_bytes = blkio.get("io_service_bytes_recursive") or []

    read_bytes = 0
    write_bytes = 0

    for entry in io_bytes:
        op = (entry.get("op") or "").lower()
        value = entry.get("value", 0)
        if op == "read":
            read_bytes += value
        elif op == "write":
            write_bytes += value

    return IoMetrics(read_bytes=read_bytes, write_bytes=write_bytes)


def parse_container_stats(stats: dict[str, Any]) -> ContainerStats:
    """
    Parse a raw stats payload into ``ContainerStats``.

    Container CPU carries only the usage figure; user, system and iowait
    shares are not reported by the runtime per container.
    """
    return ContainerStats(
        cpu=CpuMetrics(usage_percent=calculate_cpu_percent(stats)),
        memory=parse_memory(stats),
        network=parse_network(stats),
        block_io=parse_block_io(stats),
    )


# =============================================================================
# Source
# =============================================================================


class DockerContainerSource(ContainerSource):
    """
    Container source querying the Docker daemon.

    Parameters
    ----------
    client : AsyncDockerClientWrapper
        Connected runtime client

    Examples
    --------
    >>> async def example():
    ...     async with AsyncDockerClientWrapper() as client:
    ...         source = DockerContainerSource(client)
    ...         for container in await source.list_containers():
    ...             print(container.name, container.state.value)
    """

    def __init__(self, client: AsyncDockerClientWrapper):
        self.client = client

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        """
        Get one resource sample for a container.

        Raises
        ------
        ContainerNotFoundError
            If the container doesn't exist
        ContainerError
            If the runtime query fails or returns no sample
        """
        stats = await self.client.get_container_stats(container_id)
        return parse_container_stats(stats)

    async def _attach_stats(self, container: Container) -> Container:
        if not container.state.is_running:
            return container
        try:
            stats = await self.get_container_stats(container.id)
        except (ContainerError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to get stats for {container.id[:12]}: {e}")
            return container
        return container.with_stats(stats)

    async def list_containers(self) -> list[Container]:
        """
        List all containers, running and stopped.

        Running containers carry a fresh stats sample; a container whose
        sample fails keeps zeroed metrics.

        Raises
        ------
        ContainerError
            If the runtime cannot list containers
        """
        summaries = await self.client.list_containers(all=True)
        containers = [parse_container_summary(summary) for summary in summaries]

        return list(await asyncio.gather(*(self._attach_stats(c) for c in containers)))
