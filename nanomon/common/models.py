"""
Pydantic data models for the NanoMon monitoring core.

This module defines all value types carried by a host snapshot:
- Metric groups (CPU, memory, network, block I/O, load average)
- Host resources (disks, network interfaces)
- Containers and derived stack aggregates
- Processes
- The host snapshot itself

All models use Pydantic v2 and are frozen: a snapshot and everything it
contains is immutable once constructed, so handles can be shared freely.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Metric Models
# =============================================================================


class CpuMetrics(BaseModel):
    """
    CPU utilization for a host or container.

    Parameters
    ----------
    usage_percent : float
        Busy time as a percentage of elapsed time
    user_percent : float
        User + nice time percentage
    system_percent : float
        System + irq + softirq time percentage
    iowait_percent : float, optional
        I/O wait percentage (host only, never reported for containers)

    Examples
    --------
    >>> cpu = CpuMetrics(usage_percent=42.0, user_percent=30.0, system_percent=12.0)
    >>> cpu.iowait_percent is None
    True
    """

    model_config = ConfigDict(frozen=True)

    usage_percent: float = Field(0.0, ge=0, description="Busy CPU %")
    user_percent: float = Field(0.0, ge=0, description="User CPU %")
    system_percent: float = Field(0.0, ge=0, description="System CPU %")
    iowait_percent: float | None = Field(None, ge=0, description="I/O wait % (host only)")


class MemoryMetrics(BaseModel):
    """
    Memory usage for a host or container.

    ``used_bytes <= total_bytes`` is not enforced: kernel and runtime figures
    are approximate and are reported as delivered.

    Parameters
    ----------
    used_bytes : int
        Memory in use
    total_bytes : int
        Total memory (host) or limit (container)
    available_bytes : int
        Memory available for new allocations
    cached_bytes : int, optional
        Page cache + buffers (host only)
    swap_used_bytes : int, optional
        Swap in use (host only)

    Examples
    --------
    >>> mem = MemoryMetrics(used_bytes=256, total_bytes=1024, available_bytes=768)
    >>> mem.usage_percent
    25.0
    >>> MemoryMetrics().usage_percent
    0.0
    """

    model_config = ConfigDict(frozen=True)

    used_bytes: int = Field(0, ge=0, description="Used memory (bytes)")
    total_bytes: int = Field(0, ge=0, description="Total memory (bytes)")
    available_bytes: int = Field(0, ge=0, description="Available memory (bytes)")
    cached_bytes: int | None = Field(None, ge=0, description="Cache + buffers (host only)")
    swap_used_bytes: int | None = Field(None, ge=0, description="Swap used (host only)")

    @property
    def usage_percent(self) -> float:
        """Calculate memory utilization percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.used_bytes / self.total_bytes) * 100


class NetworkMetrics(BaseModel):
    """
    Network counters for an interface or container.

    Values are monotonically increasing kernel counters, never reset here.
    """

    model_config = ConfigDict(frozen=True)

    rx_bytes: int = Field(0, ge=0, description="Bytes received")
    tx_bytes: int = Field(0, ge=0, description="Bytes transmitted")
    rx_errors: int = Field(0, ge=0, description="Receive errors")
    tx_errors: int = Field(0, ge=0, description="Transmit errors")

    @classmethod
    def zero(cls) -> "NetworkMetrics":
        """Return all-zero counters."""
        return cls()


class IoMetrics(BaseModel):
    """Block device read/write byte counters."""

    model_config = ConfigDict(frozen=True)

    read_bytes: int = Field(0, ge=0, description="Bytes read")
    write_bytes: int = Field(0, ge=0, description="Bytes written")

    @classmethod
    def zero(cls) -> "IoMetrics":
        """Return all-zero counters."""
        return cls()


class LoadAverage(BaseModel):
    """System load average over 1, 5 and 15 minutes."""

    model_config = ConfigDict(frozen=True)

    one: float = Field(0.0, ge=0)
    five: float = Field(0.0, ge=0)
    fifteen: float = Field(0.0, ge=0)

    @classmethod
    def zero(cls) -> "LoadAverage":
        return cls()


# =============================================================================
# Host Resource Models
# =============================================================================


class Disk(BaseModel):
    """
    Mounted filesystem with usage information.

    Examples
    --------
    >>> disk = Disk(
    ...     device="/dev/sda1",
    ...     mount_point="/",
    ...     filesystem="ext4",
    ...     total_bytes=1000,
    ...     used_bytes=250,
    ...     available_bytes=700,
    ... )
    >>> disk.usage_percent
    25.0
    """

    model_config = ConfigDict(frozen=True)

    device: str
    mount_point: str
    filesystem: str
    total_bytes: int = Field(0, ge=0)
    used_bytes: int = Field(0, ge=0)
    available_bytes: int = Field(0, ge=0)

    @property
    def usage_percent(self) -> float:
        """Calculate disk utilization percentage (0 for zero-sized filesystems)."""
        if self.total_bytes == 0:
            return 0.0
        return (self.used_bytes / self.total_bytes) * 100


class NetworkInterface(BaseModel):
    """Network interface with its up/down flag and counters."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_up: bool = False
    metrics: NetworkMetrics = Field(default_factory=NetworkMetrics)


class HostInfo(BaseModel):
    """Basic host identity: hostname and uptime in whole seconds."""

    model_config = ConfigDict(frozen=True)

    hostname: str
    uptime_seconds: int = Field(0, ge=0)


# =============================================================================
# Container Models
# =============================================================================


class ContainerState(str, Enum):
    """Container lifecycle state enumeration."""

    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    RESTARTING = "restarting"
    DEAD = "dead"
    CREATED = "created"

    @property
    def is_running(self) -> bool:
        return self is ContainerState.RUNNING


class ContainerStats(BaseModel):
    """Normalized resource sample for a single container."""

    model_config = ConfigDict(frozen=True)

    cpu: CpuMetrics = Field(default_factory=CpuMetrics)
    memory: MemoryMetrics = Field(default_factory=MemoryMetrics)
    network: NetworkMetrics = Field(default_factory=NetworkMetrics)
    block_io: IoMetrics = Field(default_factory=IoMetrics)


class Container(BaseModel):
    """
    Container with identity, lifecycle state and resource metrics.

    Metrics are zeroed unless the container is running and its stats sample
    was retrieved.

    Parameters
    ----------
    id : str
        Opaque runtime container ID
    name : str
        Container name without the leading slash
    image : str
        Image reference
    stack : str, optional
        Container-group name (compose project label)
    state : ContainerState
        Lifecycle state
    created_at : datetime
        Creation time
    cpu, memory, network, block_io
        Resource metrics

    Examples
    --------
    >>> from datetime import datetime, UTC
    >>> container = Container(
    ...     id="abc123",
    ...     name="web",
    ...     image="nginx:latest",
    ...     state=ContainerState.RUNNING,
    ...     created_at=datetime.now(UTC),
    ... )
    >>> container.cpu.usage_percent
    0.0
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: str
    stack: str | None = None
    state: ContainerState = ContainerState.STOPPED
    created_at: datetime
    cpu: CpuMetrics = Field(default_factory=CpuMetrics)
    memory: MemoryMetrics = Field(default_factory=MemoryMetrics)
    network: NetworkMetrics = Field(default_factory=NetworkMetrics)
    block_io: IoMetrics = Field(default_factory=IoMetrics)

    @property
    def is_healthy(self) -> bool:
        return self.state.is_running

    def with_stats(self, stats: ContainerStats) -> "Container":
        """Return a copy carrying the given resource sample."""
        return self.model_copy(
            update={
                "cpu": stats.cpu,
                "memory": stats.memory,
                "network": stats.network,
                "block_io": stats.block_io,
            }
        )


class Stack(BaseModel):
    """
    Aggregate over containers sharing a stack label.

    Recomputed from the current container set on every query, never stored.

    Examples
    --------
    >>> Stack.from_containers("empty", []).containers_total
    0
    """

    model_config = ConfigDict(frozen=True)

    name: str
    containers_total: int = 0
    containers_running: int = 0
    cpu_percent: float = 0.0
    memory_bytes: int = 0

    @classmethod
    def from_containers(cls, name: str, containers: Iterable[Container]) -> "Stack":
        """Build the aggregate for ``name`` from its member containers."""
        members = list(containers)
        return cls(
            name=name,
            containers_total=len(members),
            containers_running=sum(1 for c in members if c.state.is_running),
            cpu_percent=sum(c.cpu.usage_percent for c in members),
            memory_bytes=sum(c.memory.used_bytes for c in members),
        )


# =============================================================================
# Process Models
# =============================================================================


class ProcessState(str, Enum):
    """Process scheduler state enumeration."""

    RUNNING = "Running"
    SLEEPING = "Sleeping"
    WAITING = "Waiting"
    ZOMBIE = "Zombie"
    STOPPED = "Stopped"
    TRACING_STOP = "TracingStop"
    DEAD = "Dead"
    UNKNOWN = "Unknown"

    @classmethod
    def from_char(cls, state: str) -> "ProcessState":
        """
        Map a kernel state character onto the enum.

        Examples
        --------
        >>> ProcessState.from_char("D")
        <ProcessState.WAITING: 'Waiting'>
        >>> ProcessState.from_char("?")
        <ProcessState.UNKNOWN: 'Unknown'>
        """
        return _PROCESS_STATE_CHARS.get(state, cls.UNKNOWN)


_PROCESS_STATE_CHARS = {
    "R": ProcessState.RUNNING,
    "S": ProcessState.SLEEPING,
    "D": ProcessState.WAITING,
    "Z": ProcessState.ZOMBIE,
    "T": ProcessState.STOPPED,
    "t": ProcessState.TRACING_STOP,
    "X": ProcessState.DEAD,
    "x": ProcessState.DEAD,
}


class Process(BaseModel):
    """
    Process with ownership, state and resource usage.

    Parameters
    ----------
    pid : int
        Process ID
    ppid : int
        Parent process ID
    user : str
        Owning user name, or the decimal uid if it cannot be resolved
    command : str
        Command line
    state : ProcessState
        Scheduler state
    cpu_percent : float
        Lifetime-average CPU share
    memory_percent : float
        Resident memory relative to host memory
    memory_bytes : int
        Resident memory in bytes
    container_id : str, optional
        Owning container, if the process runs inside one
    """

    model_config = ConfigDict(frozen=True)

    pid: int = Field(..., ge=0)
    ppid: int = Field(0, ge=0)
    user: str
    command: str
    state: ProcessState = ProcessState.UNKNOWN
    cpu_percent: float = Field(0.0, ge=0)
    memory_percent: float = Field(0.0, ge=0)
    memory_bytes: int = Field(0, ge=0)
    container_id: str | None = None

    @property
    def is_containerized(self) -> bool:
        return self.container_id is not None

    @property
    def is_healthy(self) -> bool:
        return self.state not in (ProcessState.ZOMBIE, ProcessState.DEAD)


# =============================================================================
# Snapshot Model
# =============================================================================


class HostSnapshot(BaseModel):
    """
    Complete point-in-time view of a host.

    Parameters
    ----------
    hostname : str
        Host name
    uptime_seconds : int
        Seconds since boot
    load_average : LoadAverage
        1/5/15 minute load
    cpu : CpuMetrics
        Host CPU utilization
    memory : MemoryMetrics
        Host memory usage
    disks : list[Disk]
        Mounted filesystems
    network_interfaces : list[NetworkInterface]
        Non-loopback interfaces
    containers : list[Container]
        All containers known to the runtime
    processes : list[Process]
        All processes
    timestamp : datetime
        Capture time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    hostname: str
    uptime_seconds: int = Field(0, ge=0)
    load_average: LoadAverage = Field(default_factory=LoadAverage)
    cpu: CpuMetrics = Field(default_factory=CpuMetrics)
    memory: MemoryMetrics = Field(default_factory=MemoryMetrics)
    disks: list[Disk] = Field(default_factory=list)
    network_interfaces: list[NetworkInterface] = Field(default_factory=list)
    containers: list[Container] = Field(default_factory=list)
    processes: list[Process] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_network_rx_bytes(self) -> int:
        """Total bytes received across all interfaces."""
        return sum(i.metrics.rx_bytes for i in self.network_interfaces)

    @property
    def total_network_tx_bytes(self) -> int:
        """Total bytes transmitted across all interfaces."""
        return sum(i.metrics.tx_bytes for i in self.network_interfaces)
