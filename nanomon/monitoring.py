"""
Monitoring service composing the metric sources into host snapshots.

The service depends only on the source interfaces in ``nanomon.sources``;
``create_monitoring_service`` wires the procfs and Docker implementations
from settings.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import UTC, datetime

from nanomon.common.config import NanomonSettings
from nanomon.common.exceptions import CollectionError
from nanomon.common.models import Container, HostSnapshot, Process, Stack
from nanomon.docker_handler import AsyncDockerClientWrapper, DockerContainerSource
from nanomon.procfs import ProcfsConfig, ProcfsProcessSource, ProcfsSystemSource
from nanomon.sources import ContainerSource, NullContainerSource, ProcessSource, SystemSource

logger = logging.getLogger(__name__)

# Order in which failures are reported by collect_all()
COLLECT_OPERATIONS = (
    "host_info",
    "cpu",
    "memory",
    "load_average",
    "disks",
    "network_interfaces",
    "containers",
    "processes",
)


class MonitoringService:
    """
    Orchestrates the system, process and container sources.

    Parameters
    ----------
    system_source : SystemSource
        Host-level metrics
    process_source : ProcessSource
        Per-process metrics
    container_source : ContainerSource
        Container metrics (use NullContainerSource without a runtime)

    Examples
    --------
    >>> service = MonitoringService(
    ...     ProcfsSystemSource(), ProcfsProcessSource(), NullContainerSource()
    ... )
    >>> snapshot = asyncio.run(service.collect_all())
    >>> snapshot.containers
    []
    """

    def __init__(
        self,
        system_source: SystemSource,
        process_source: ProcessSource,
        container_source: ContainerSource,
    ):
        self.system_source = system_source
        self.process_source = process_source
        self.container_source = container_source

    async def collect_all(self) -> HostSnapshot:
        """
        Collect a complete host snapshot.

        All eight source operations run concurrently. A snapshot is produced
        only if every one succeeds.

        Returns
        -------
        HostSnapshot
            Snapshot stamped with the current UTC time

        Raises
        ------
        CollectionError
            Naming the first failed operation; the original error is chained
        """
        results = await asyncio.gather(
            self.system_source.get_host_info(),
            self.system_source.get_cpu_metrics(),
            self.system_source.get_memory_metrics(),
            self.system_source.get_load_average(),
            self.system_source.list_disks(),
            self.system_source.list_network_interfaces(),
            self.container_source.list_containers(),
            self.process_source.list_processes(),
            return_exceptions=True,
        )

        for operation, result in zip(COLLECT_OPERATIONS, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"Snapshot collection failed in {operation}: {result}")
                raise CollectionError(
                    f"Failed to collect {operation}: {result}",
                    details={"operation": operation, "error": str(result)},
                ) from result

        host_info, cpu, memory, load_average, disks, interfaces, containers, processes = results
        return HostSnapshot(
            hostname=host_info.hostname,
            uptime_seconds=host_info.uptime_seconds,
            load_average=load_average,
            cpu=cpu,
            memory=memory,
            disks=disks,
            network_interfaces=interfaces,
            containers=containers,
            processes=processes,
            timestamp=datetime.now(UTC),
        )

    async def get_containers(self) -> list[Container]:
        """List all containers with their current metrics."""
        return await self.container_source.list_containers()

    async def get_stacks(self) -> list[Stack]:
        """
        Aggregate containers by stack label.

        Containers without a stack label are ignored.

        Returns
        -------
        list[Stack]
            One aggregate per stack, sorted by stack name
        """
        containers = await self.get_containers()

        grouped: dict[str, list[Container]] = defaultdict(list)
        for container in containers:
            if container.stack is not None:
                grouped[container.stack].append(container)

        return [Stack.from_containers(name, grouped[name]) for name in sorted(grouped)]

    async def get_all_processes(self) -> list[Process]:
        return await self.process_source.list_processes()

    async def get_top_processes_by_cpu(self, n: int) -> list[Process]:
        return await self.process_source.get_top_by_cpu(n)

    async def get_top_processes_by_memory(self, n: int) -> list[Process]:
        return await self.process_source.get_top_by_memory(n)


def create_monitoring_service(
    settings: NanomonSettings,
    docker_client: AsyncDockerClientWrapper | None = None,
) -> MonitoringService:
    """
    Build a service from settings.

    Parameters
    ----------
    settings : NanomonSettings
        Loaded settings
    docker_client : AsyncDockerClientWrapper, optional
        Connected runtime client; without one the service reports no
        containers

    Returns
    -------
    MonitoringService
        Service backed by the procfs sources
    """
    procfs_config = ProcfsConfig.from_settings(settings.procfs)

    container_source: ContainerSource
    if docker_client is not None:
        container_source = DockerContainerSource(docker_client)
    else:
        container_source = NullContainerSource()

    return MonitoringService(
        system_source=ProcfsSystemSource(procfs_config),
        process_source=ProcfsProcessSource(procfs_config),
        container_source=container_source,
    )
