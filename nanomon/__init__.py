"""NanoMon - host, process and container telemetry for a single machine."""

from nanomon.common.config import NanomonSettings, load_settings
from nanomon.common.exceptions import (
    CollectionError,
    CollectorError,
    CounterIOError,
    MissingFieldError,
    NanomonError,
    ParseError,
)
from nanomon.common.models import (
    Container,
    ContainerState,
    HostSnapshot,
    Process,
    ProcessState,
    Stack,
)
from nanomon.docker_handler import AsyncDockerClientWrapper, DockerContainerSource
from nanomon.monitoring import MonitoringService, create_monitoring_service
from nanomon.poller import SnapshotPoller
from nanomon.procfs import ProcfsConfig, ProcfsProcessSource, ProcfsSystemSource
from nanomon.sources import ContainerSource, NullContainerSource, ProcessSource, SystemSource
from nanomon.store import SnapshotStore

__version__ = "0.1.0"

__all__ = [
    # Config
    "NanomonSettings",
    "load_settings",
    # Errors
    "NanomonError",
    "CollectorError",
    "CounterIOError",
    "ParseError",
    "MissingFieldError",
    "CollectionError",
    # Models
    "HostSnapshot",
    "Container",
    "ContainerState",
    "Stack",
    "Process",
    "ProcessState",
    # Sources
    "SystemSource",
    "ProcessSource",
    "ContainerSource",
    "NullContainerSource",
    "ProcfsConfig",
    "ProcfsSystemSource",
    "ProcfsProcessSource",
    "AsyncDockerClientWrapper",
    "DockerContainerSource",
    # Service
    "MonitoringService",
    "create_monitoring_service",
    "SnapshotStore",
    "SnapshotPoller",
]
