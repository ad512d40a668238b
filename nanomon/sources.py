"""Capability interfaces for metric sources.

The monitoring service depends only on these abstractions. Implementations:
- ProcfsSystemSource / ProcfsProcessSource: kernel counter files
- DockerContainerSource: container runtime API (aiodocker)
- NullContainerSource: no container runtime configured

Tests substitute fixture-backed implementations.
"""

from abc import ABC, abstractmethod

from nanomon.common.models import (
    Container,
    ContainerStats,
    CpuMetrics,
    Disk,
    HostInfo,
    LoadAverage,
    MemoryMetrics,
    NetworkInterface,
    Process,
)


class SystemSource(ABC):
    """Source of host-level information."""

    @abstractmethod
    async def get_host_info(self) -> HostInfo:
        """Get basic host information (hostname, uptime)."""

    @abstractmethod
    async def get_cpu_metrics(self) -> CpuMetrics:
        """Get CPU utilization since the previous call."""

    @abstractmethod
    async def get_memory_metrics(self) -> MemoryMetrics:
        """Get host memory usage."""

    @abstractmethod
    async def get_load_average(self) -> LoadAverage:
        """Get system load average."""

    @abstractmethod
    async def list_disks(self) -> list[Disk]:
        """List mounted physical filesystems."""

    @abstractmethod
    async def list_network_interfaces(self) -> list[NetworkInterface]:
        """List non-loopback network interfaces with counters."""


class ProcessSource(ABC):
    """Source of per-process information."""

    @abstractmethod
    async def list_processes(self) -> list[Process]:
        """List all processes."""

    async def get_top_by_cpu(self, n: int) -> list[Process]:
        """Get the ``n`` processes with the highest CPU share.

        Ties keep enumeration order.
        """
        processes = await self.list_processes()
        return sorted(processes, key=lambda p: p.cpu_percent, reverse=True)[:n]

    async def get_top_by_memory(self, n: int) -> list[Process]:
        """Get the ``n`` processes with the largest resident memory.

        Ties keep enumeration order.
        """
        processes = await self.list_processes()
        return sorted(processes, key=lambda p: p.memory_bytes, reverse=True)[:n]


class ContainerSource(ABC):
    """Source of container information."""

    @abstractmethod
    async def list_containers(self) -> list[Container]:
        """List all containers, running and stopped."""

    @abstractmethod
    async def get_container_stats(self, container_id: str) -> ContainerStats:
        """Get one resource sample for a container."""


class NullContainerSource(ContainerSource):
    """Container source used when no container runtime is configured."""

    async def list_containers(self) -> list[Container]:
        return []

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        return ContainerStats()
