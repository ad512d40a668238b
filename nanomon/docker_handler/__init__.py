"""Docker runtime client and container source."""

from .async_client import AsyncDockerClientWrapper
from .exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerNotFoundError,
    DockerHandlerError,
    StatsUnavailableError,
)
from .source import DockerContainerSource

__all__ = [
    "AsyncDockerClientWrapper",
    "DockerContainerSource",
    "DockerHandlerError",
    "ContainerError",
    "ContainerNotFoundError",
    "StatsUnavailableError",
    "ConfigurationError",
]
