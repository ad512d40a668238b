"""
Async Docker client wrapper for NanoMon.

This module provides an async interface to the two runtime queries the
container collector needs, using aiodocker:
- List containers (including stopped ones)
- One-shot resource usage sample for a container
- Async context manager protocol

Runtime errors are translated into the docker_handler exception hierarchy.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import aiodocker
import aiohttp
from aiodocker.exceptions import DockerError

from nanomon.docker_handler.exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerNotFoundError,
    StatsUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncDockerClientWrapper:
    """
    Async wrapper around aiodocker for NanoMon queries.

    Parameters
    ----------
    docker_url : str, optional
        Docker daemon URL (default: unix:///var/run/docker.sock)
    timeout : int, optional
        Per-request timeout in seconds (default: 120)

    Examples
    --------
    >>> async def example():
    ...     async with AsyncDockerClientWrapper() as client:
    ...         containers = await client.list_containers(all=True)
    ...         print(f"Found {len(containers)} containers")
    >>> asyncio.run(example())
    Found 0 containers
    """

    def __init__(self, docker_url: str = "unix:///var/run/docker.sock", timeout: int = 120):
        """
        Initialize async Docker client.

        Parameters
        ----------
        docker_url : str
            Docker daemon URL
        timeout : int
            Per-request timeout (seconds)
        """
        self.docker_url = docker_url
        self.timeout = timeout
        self._client: aiodocker.Docker | None = None
        self._connected = False
        logger.info(f"Initialized AsyncDockerClient with URL: {docker_url}")

    async def connect(self) -> None:
        """
        Connect to Docker daemon.

        Raises
        ------
        ConfigurationError
            If connection fails
        """
        if self._connected and self._client:
            logger.debug("Already connected to Docker daemon")
            return

        client = aiodocker.Docker(url=self.docker_url)
        try:
            # Test connection
            await asyncio.wait_for(client.version(), timeout=self.timeout)
        except (DockerError, aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            await client.close()
            logger.error(f"Failed to connect to Docker daemon: {e}")
            raise ConfigurationError(
                f"Cannot connect to Docker daemon at {self.docker_url}",
                details={"url": self.docker_url, "error": str(e)},
            ) from e

        self._client = client
        self._connected = True
        logger.info("Connected to Docker daemon successfully")

    async def close(self) -> None:
        """Close Docker client connection."""
        if self._client:
            await self._client.close()
            self._client = None
            self._connected = False
            logger.info("Closed Docker client connection")

    @property
    def client(self) -> aiodocker.Docker:
        """
        Get Docker client instance.

        Raises
        ------
        ConfigurationError
            If not connected
        """
        if not self._connected or not self._client:
            raise ConfigurationError(
                "Docker client not connected. Call connect() first.",
                details={"connected": self._connected},
            )
        return self._client

    async def __aenter__(self) -> "AsyncDockerClientWrapper":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_containers(self, all: bool = False) -> list[dict[str, Any]]:
        """
        List containers.

        Parameters
        ----------
        all : bool
            Include stopped containers (default: False)

        Returns
        -------
        list[dict[str, Any]]
            Container summaries as returned by ``GET /containers/json``
            (Id, Names, Image, State, Created, Labels, ...)

        Raises
        ------
        ContainerError
            If listing fails
        """
        try:
            containers = await self._call(self.client.containers.list(all=all))
        except (DockerError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ContainerError(
                "Failed to list containers",
                details={"error": str(e)},
            ) from e

        # DockerContainer keeps the list payload in _container
        return [dict(container._container) for container in containers]

    async def get_container_stats(self, container_id: str) -> dict[str, Any]:
        """
        Get one non-streaming stats sample for a container.

        The runtime delivers the current and previous CPU counters together
        (``cpu_stats`` / ``precpu_stats``) so one sample is enough for a
        CPU percentage.

        Parameters
        ----------
        container_id : str
            Container ID or name

        Returns
        -------
        dict[str, Any]
            Raw stats payload

        Raises
        ------
        ContainerNotFoundError
            If container doesn't exist
        StatsUnavailableError
            If the runtime returns no sample
        ContainerError
            If stats retrieval fails
        """
        try:
            container = self.client.containers.container(container_id)
            stats = await self._call(container.stats(stream=False))
        except DockerError as e:
            if e.status == 404:
                raise ContainerNotFoundError(
                    f"Container not found: {container_id}",
                    details={"container_id": container_id},
                ) from e
            raise ContainerError(
                f"Failed to get stats for container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e
        except aiohttp.ClientError as e:
            raise ContainerError(
                f"Failed to get stats for container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e
        except asyncio.TimeoutError as e:
            raise ContainerError(
                f"Timed out getting stats for container: {container_id}",
                details={"container_id": container_id, "timeout": self.timeout},
            ) from e

        # aiodocker returns a list even with stream=False
        if isinstance(stats, list):
            stats = stats[0] if stats else None
        if not stats:
            raise StatsUnavailableError(
                f"No stats returned for container: {container_id}",
                details={"container_id": container_id},
            )
        return stats
