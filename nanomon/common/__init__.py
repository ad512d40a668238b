"""Shared configuration, exceptions and data models."""

from nanomon.common.config import (
    DockerSettings,
    LoggingSettings,
    MonitoringSettings,
    NanomonSettings,
    ProcfsSettings,
    load_settings,
)
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
    ContainerStats,
    CpuMetrics,
    Disk,
    HostInfo,
    HostSnapshot,
    IoMetrics,
    LoadAverage,
    MemoryMetrics,
    NetworkInterface,
    NetworkMetrics,
    Process,
    ProcessState,
    Stack,
)

__all__ = [
    # Config
    "DockerSettings",
    "LoggingSettings",
    "MonitoringSettings",
    "NanomonSettings",
    "ProcfsSettings",
    "load_settings",
    # Exceptions
    "CollectionError",
    "CollectorError",
    "CounterIOError",
    "MissingFieldError",
    "NanomonError",
    "ParseError",
    # Models
    "Container",
    "ContainerState",
    "ContainerStats",
    "CpuMetrics",
    "Disk",
    "HostInfo",
    "HostSnapshot",
    "IoMetrics",
    "LoadAverage",
    "MemoryMetrics",
    "NetworkInterface",
    "NetworkMetrics",
    "Process",
    "ProcessState",
    "Stack",
]
