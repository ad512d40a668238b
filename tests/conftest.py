"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from nanomon.common.models import (
    Container,
    ContainerState,
    ContainerStats,
    CpuMetrics,
    Disk,
    HostInfo,
    LoadAverage,
    MemoryMetrics,
    NetworkInterface,
    NetworkMetrics,
    Process,
)
from nanomon.monitoring import MonitoringService
from nanomon.procfs import ProcfsConfig
from nanomon.sources import ContainerSource, ProcessSource, SystemSource

# =============================================================================
# Fake counter tree
# =============================================================================

PROC_STAT = """cpu  1000 100 500 10000 200 50 30 0 0 0
cpu0 500 50 250 5000 100 25 15 0 0 0
intr 12345
ctxt 67890
"""

MEMINFO = """MemTotal:        8192000 kB
MemFree:         2048000 kB
MemAvailable:    4096000 kB
Buffers:          100000 kB
Cached:          1000000 kB
SwapTotal:       2048000 kB
SwapFree:        1024000 kB
"""


def proc_stat_line(pid: int, comm: str, state: str = "S", ppid: int = 1,
                   utime: int = 0, stime: int = 0, rss: int = 0) -> str:
    """Build a /proc/<pid>/stat line with the given fields."""
    fields = [state, str(ppid)] + ["0"] * 9 + [str(utime), str(stime)] + ["0"] * 8 + [str(rss)]
    return f"{pid} ({comm}) {' '.join(fields)} 0 0\n"


def add_process(
    proc: Path,
    pid: int,
    comm: str,
    cmdline: str = "",
    uid: int = 0,
    cgroup: str = "0::/init.scope\n",
    **stat_fields,
) -> Path:
    """Create a /proc/<pid> directory."""
    pid_dir = proc / str(pid)
    pid_dir.mkdir()
    (pid_dir / "stat").write_text(proc_stat_line(pid, comm, **stat_fields))
    (pid_dir / "status").write_text(f"Name:\t{comm}\nUid:\t{uid}\t{uid}\t{uid}\t{uid}\n")
    (pid_dir / "cmdline").write_bytes(cmdline.replace(" ", "\0").encode() + b"\0" if cmdline else b"")
    (pid_dir / "comm").write_text(f"{comm}\n")
    (pid_dir / "cgroup").write_text(cgroup)
    return pid_dir


def add_interface(sys_path: Path, name: str, operstate: str = "up",
                  rx_bytes: int = 0, tx_bytes: int = 0) -> Path:
    """Create a /sys/class/net/<name> directory."""
    iface = sys_path / "class" / "net" / name
    stats = iface / "statistics"
    stats.mkdir(parents=True)
    (iface / "operstate").write_text(f"{operstate}\n")
    (stats / "rx_bytes").write_text(f"{rx_bytes}\n")
    (stats / "tx_bytes").write_text(f"{tx_bytes}\n")
    (stats / "rx_errors").write_text("0\n")
    (stats / "tx_errors").write_text("0\n")
    return iface


@pytest.fixture
def procfs_root(tmp_path):
    """Create a minimal /proc + /sys tree under tmp_path."""
    proc = tmp_path / "proc"
    sys_path = tmp_path / "sys"
    proc.mkdir()
    (sys_path / "class" / "net").mkdir(parents=True)

    (proc / "uptime").write_text("1000.55 3000.00\n")
    (proc / "loadavg").write_text("0.52 0.78 1.21 2/456 12345\n")
    (proc / "stat").write_text(PROC_STAT)
    (proc / "meminfo").write_text(MEMINFO)
    (proc / "mounts").write_text(
        f"/dev/sda1 {tmp_path} ext4 rw,relatime 0 0\n"
        "proc /proc proc rw 0 0\n"
        "tmpfs /run tmpfs rw 0 0\n"
        "/dev/sdb1 /definitely/not/mounted ext4 rw 0 0\n"
    )
    (tmp_path / "hostname").write_text("testhost\n")

    add_interface(sys_path, "lo", operstate="unknown", rx_bytes=5, tx_bytes=5)
    add_interface(sys_path, "eth0", rx_bytes=1000, tx_bytes=2000)

    return tmp_path


@pytest.fixture
def procfs_config(procfs_root):
    """ProcfsConfig pointing at the fake tree."""
    return ProcfsConfig(
        proc_path=procfs_root / "proc",
        sys_path=procfs_root / "sys",
        hostname_path=procfs_root / "hostname",
    )


# =============================================================================
# Fake sources
# =============================================================================


def make_process(pid: int, cpu: float = 0.0, memory: int = 0, **kwargs) -> Process:
    """Create a Process with sensible defaults."""
    return Process(
        pid=pid,
        user=kwargs.pop("user", "root"),
        command=kwargs.pop("command", f"proc-{pid}"),
        cpu_percent=cpu,
        memory_bytes=memory,
        **kwargs,
    )


def make_container(
    container_id: str,
    stack: str | None = None,
    state: ContainerState = ContainerState.RUNNING,
    cpu: float = 0.0,
    memory: int = 0,
) -> Container:
    """Create a Container with sensible defaults."""
    return Container(
        id=container_id,
        name=container_id,
        image="busybox:latest",
        stack=stack,
        state=state,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
        cpu=CpuMetrics(usage_percent=cpu),
        memory=MemoryMetrics(used_bytes=memory, total_bytes=memory, available_bytes=0),
    )


class FakeSystemSource(SystemSource):
    """System source returning fixed values; set ``fail_on`` to raise."""

    def __init__(self):
        self.fail_on: dict[str, Exception] = {}

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def get_host_info(self) -> HostInfo:
        self._check("host_info")
        return HostInfo(hostname="fakehost", uptime_seconds=3600)

    async def get_cpu_metrics(self) -> CpuMetrics:
        self._check("cpu")
        return CpuMetrics(usage_percent=25.0, user_percent=20.0, system_percent=5.0)

    async def get_memory_metrics(self) -> MemoryMetrics:
        self._check("memory")
        return MemoryMetrics(used_bytes=512, total_bytes=1024, available_bytes=512)

    async def get_load_average(self) -> LoadAverage:
        self._check("load_average")
        return LoadAverage(one=1.0, five=0.5, fifteen=0.25)

    async def list_disks(self) -> list[Disk]:
        self._check("disks")
        return [
            Disk(
                device="/dev/sda1",
                mount_point="/",
                filesystem="ext4",
                total_bytes=1000,
                used_bytes=400,
                available_bytes=600,
            )
        ]

    async def list_network_interfaces(self) -> list[NetworkInterface]:
        self._check("network_interfaces")
        return [
            NetworkInterface(name="eth0", is_up=True, metrics=NetworkMetrics(rx_bytes=10, tx_bytes=20)),
            NetworkInterface(name="wlan0", is_up=False, metrics=NetworkMetrics(rx_bytes=5, tx_bytes=7)),
        ]


class FakeProcessSource(ProcessSource):
    """Process source returning ``processes``; set ``error`` to raise."""

    def __init__(self, processes: list[Process] | None = None):
        self.processes = processes or []
        self.error: Exception | None = None

    async def list_processes(self) -> list[Process]:
        if self.error:
            raise self.error
        return list(self.processes)


class FakeContainerSource(ContainerSource):
    """Container source returning ``containers``; set ``error`` to raise."""

    def __init__(self, containers: list[Container] | None = None):
        self.containers = containers or []
        self.error: Exception | None = None

    async def list_containers(self) -> list[Container]:
        if self.error:
            raise self.error
        return list(self.containers)

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        return ContainerStats()


@pytest.fixture
def fake_system_source():
    return FakeSystemSource()


@pytest.fixture
def fake_process_source():
    return FakeProcessSource(
        [
            make_process(1, cpu=5.0, memory=100, command="/sbin/init"),
            make_process(2, cpu=90.0, memory=50, command="stress"),
            make_process(3, cpu=12.0, memory=300, command="postgres"),
        ]
    )


@pytest.fixture
def fake_container_source():
    return FakeContainerSource(
        [
            make_container("web", stack="shop", cpu=10.0, memory=100),
            make_container("db", stack="shop", state=ContainerState.STOPPED),
            make_container("cache", stack="infra", cpu=2.5, memory=50),
            make_container("loner"),
        ]
    )


@pytest.fixture
def fake_service(fake_system_source, fake_process_source, fake_container_source):
    """MonitoringService wired to the fake sources."""
    return MonitoringService(fake_system_source, fake_process_source, fake_container_source)
