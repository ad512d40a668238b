"""Host metrics from the kernel counter tree.

CPU utilization is computed as delta percentages between successive calls to
``get_cpu_metrics()``. The first call returns zeros because there is no
previous sample to diff against; every call both reports and advances the
stored sample.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import psutil

from nanomon.common.exceptions import CollectorError, CounterIOError
from nanomon.common.models import (
    CpuMetrics,
    Disk,
    HostInfo,
    LoadAverage,
    MemoryMetrics,
    NetworkInterface,
    NetworkMetrics,
)
from nanomon.procfs import parser
from nanomon.procfs.config import ProcfsConfig
from nanomon.procfs.parser import CpuStat
from nanomon.sources import SystemSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Virtual filesystems that never represent real storage
SKIP_FILESYSTEMS = frozenset(
    {
        "proc",
        "sysfs",
        "tmpfs",
        "devtmpfs",
        "devpts",
        "cgroup",
        "cgroup2",
        "securityfs",
        "debugfs",
    }
)

LOOPBACK_INTERFACE = "lo"


def read_counter_file(path: Path) -> str:
    """Read a counter file, translating OS errors into CounterIOError."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise CounterIOError(
            f"Cannot read {path}",
            details={"path": str(path), "error": str(e)},
        ) from e


def _delta(current: int, previous: int) -> int:
    # Counters may wrap or be reset; never report a negative delta
    return max(current - previous, 0)


def calculate_cpu_metrics(current: CpuStat, previous: CpuStat | None) -> CpuMetrics:
    """
    Convert two aggregate CPU samples into utilization percentages.

    Parameters
    ----------
    current : CpuStat
        Latest counters
    previous : CpuStat, optional
        Counters from the previous call, None on the first call

    Returns
    -------
    CpuMetrics
        usage/user/system/iowait percentages; all zero without a baseline or
        when no ticks elapsed

    Examples
    --------
    >>> prev = CpuStat(user=100, idle=900)
    >>> cur = CpuStat(user=150, idle=950)
    >>> calculate_cpu_metrics(cur, prev).usage_percent
    50.0
    """
    zero = CpuMetrics(usage_percent=0.0, user_percent=0.0, system_percent=0.0, iowait_percent=0.0)
    if previous is None:
        return zero

    total_delta = _delta(current.total, previous.total)
    if total_delta == 0:
        return zero

    user_delta = _delta(current.user, previous.user) + _delta(current.nice, previous.nice)
    system_delta = (
        _delta(current.system, previous.system)
        + _delta(current.irq, previous.irq)
        + _delta(current.softirq, previous.softirq)
    )
    iowait_delta = _delta(current.iowait, previous.iowait)
    busy_delta = _delta(current.busy, previous.busy)

    # A counter moving backwards can push one category past the total delta
    iowait_percent = min(iowait_delta / total_delta * 100.0, 100.0)
    return CpuMetrics(
        usage_percent=min(busy_delta / total_delta * 100.0, 100.0 - iowait_percent),
        user_percent=min(user_delta / total_delta * 100.0, 100.0),
        system_percent=min(system_delta / total_delta * 100.0, 100.0),
        iowait_percent=iowait_percent,
    )


class ProcfsSystemSource(SystemSource):
    """
    System source reading /proc and /sys.

    Parameters
    ----------
    config : ProcfsConfig
        Counter tree locations

    Examples
    --------
    >>> source = ProcfsSystemSource(ProcfsConfig())
    >>> cpu = asyncio.run(source.get_cpu_metrics())
    >>> cpu.usage_percent
    0.0
    """

    def __init__(self, config: ProcfsConfig | None = None):
        self.config = config or ProcfsConfig()
        self._last_cpu_stat: CpuStat | None = None
        self._cpu_lock = threading.Lock()

    async def _run(self, func: Callable[[], T]) -> T:
        """Run blocking counter reads off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    # =========================================================================
    # Host Information
    # =========================================================================

    def _read_hostname(self) -> str:
        try:
            hostname = read_counter_file(self.config.hostname_path).strip()
        except CounterIOError as e:
            logger.debug(f"Cannot read hostname from {self.config.hostname_path}: {e}")
            return "unknown"
        return hostname or "unknown"

    def _read_host_info(self) -> HostInfo:
        content = read_counter_file(self.config.proc_path / "uptime")
        return HostInfo(hostname=self._read_hostname(), uptime_seconds=parser.parse_uptime(content))

    async def get_host_info(self) -> HostInfo:
        return await self._run(self._read_host_info)

    # =========================================================================
    # CPU
    # =========================================================================

    def _read_cpu_metrics(self) -> CpuMetrics:
        content = read_counter_file(self.config.proc_path / "stat")
        current = parser.parse_cpu_stat(content)

        with self._cpu_lock:
            metrics = calculate_cpu_metrics(current, self._last_cpu_stat)
            self._last_cpu_stat = current

        return metrics

    async def get_cpu_metrics(self) -> CpuMetrics:
        """
        Get CPU utilization since the previous call.

        Raises
        ------
        CounterIOError
            If the stat file cannot be read
        ParseError
            If the aggregate cpu line is missing or short
        """
        return await self._run(self._read_cpu_metrics)

    # =========================================================================
    # Memory and Load
    # =========================================================================

    def _read_memory_metrics(self) -> MemoryMetrics:
        meminfo = parser.parse_meminfo(read_counter_file(self.config.proc_path / "meminfo"))

        total = meminfo.get("MemTotal", 0)
        available = meminfo.get("MemAvailable", 0)
        cached = meminfo.get("Cached", 0) + meminfo.get("Buffers", 0)
        swap_used = max(meminfo.get("SwapTotal", 0) - meminfo.get("SwapFree", 0), 0)

        # total - available, not total - free: reclaimable cache is not "used"
        return MemoryMetrics(
            used_bytes=max(total - available, 0),
            total_bytes=total,
            available_bytes=available,
            cached_bytes=cached,
            swap_used_bytes=swap_used,
        )

    async def get_memory_metrics(self) -> MemoryMetrics:
        return await self._run(self._read_memory_metrics)

    def _read_load_average(self) -> LoadAverage:
        one, five, fifteen = parser.parse_loadavg(
            read_counter_file(self.config.proc_path / "loadavg")
        )
        return LoadAverage(one=one, five=five, fifteen=fifteen)

    async def get_load_average(self) -> LoadAverage:
        return await self._run(self._read_load_average)

    # =========================================================================
    # Disks
    # =========================================================================

    def _read_disks(self) -> list[Disk]:
        mounts = parser.parse_mounts(read_counter_file(self.config.proc_path / "mounts"))
        disks = []

        for mount in mounts:
            if mount.filesystem in SKIP_FILESYSTEMS:
                continue

            try:
                usage = psutil.disk_usage(mount.mount_point)
            except OSError as e:
                logger.debug(f"Skipping mount {mount.mount_point}: {e}")
                continue

            disks.append(
                Disk(
                    device=mount.device,
                    mount_point=mount.mount_point,
                    filesystem=mount.filesystem,
                    total_bytes=usage.total,
                    used_bytes=usage.used,
                    available_bytes=usage.free,
                )
            )

        return disks

    async def list_disks(self) -> list[Disk]:
        """
        List mounted filesystems, excluding virtual ones.

        Mounts whose filesystem statistics cannot be queried are dropped; only
        an unreadable mount table fails the call.
        """
        return await self._run(self._read_disks)

    # =========================================================================
    # Network
    # =========================================================================

    def _read_network_interfaces(self) -> list[NetworkInterface]:
        net_class_path = self.config.sys_path / "class" / "net"
        try:
            entries = sorted(net_class_path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise CounterIOError(
                f"Cannot list {net_class_path}",
                details={"path": str(net_class_path), "error": str(e)},
            ) from e

        interfaces = []
        for entry in entries:
            if entry.name == LOOPBACK_INTERFACE:
                continue

            try:
                is_up = read_counter_file(entry / "operstate").strip() == "up"
            except CounterIOError:
                is_up = False

            try:
                rx_bytes, tx_bytes, rx_errors, tx_errors = parser.parse_net_stats(
                    entry / "statistics"
                )
            except CollectorError as e:
                logger.debug(f"Skipping interface {entry.name}: {e}")
                continue

            interfaces.append(
                NetworkInterface(
                    name=entry.name,
                    is_up=is_up,
                    metrics=NetworkMetrics(
                        rx_bytes=rx_bytes,
                        tx_bytes=tx_bytes,
                        rx_errors=rx_errors,
                        tx_errors=tx_errors,
                    ),
                )
            )

        return interfaces

    async def list_network_interfaces(self) -> list[NetworkInterface]:
        return await self._run(self._read_network_interfaces)
