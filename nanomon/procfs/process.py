"""Per-process metrics from /proc/<pid>.

Processes come and go while the tree is being walked, so a process that
vanishes or cannot be read mid-listing is skipped rather than failing the
whole listing.
"""

import asyncio
import logging
import os
import pwd
from dataclasses import dataclass, field
from pathlib import Path

from nanomon.common.exceptions import CollectorError, CounterIOError
from nanomon.common.models import Process, ProcessState
from nanomon.procfs import parser
from nanomon.procfs.config import ProcfsConfig
from nanomon.procfs.system import read_counter_file
from nanomon.sources import ProcessSource

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_TICKS = 100  # typical USER_HZ
PAGE_SIZE = 4096


def get_clock_ticks() -> int:
    """Return the kernel clock tick rate, falling back to 100 Hz."""
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (ValueError, OSError, AttributeError):
        return DEFAULT_CLOCK_TICKS
    return ticks if ticks > 0 else DEFAULT_CLOCK_TICKS


def lookup_username(uid: int) -> str:
    """Map a uid to an account name, falling back to the decimal uid."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def calculate_process_cpu_percent(utime: int, stime: int, uptime_seconds: int, hertz: int) -> float:
    """
    Average CPU share of a process over the machine's uptime.

    This is a lifetime average, not an interval delta like the host figure.

    Examples
    --------
    >>> calculate_process_cpu_percent(utime=300, stime=200, uptime_seconds=15, hertz=100)
    50.0
    >>> calculate_process_cpu_percent(utime=1000, stime=0, uptime_seconds=10, hertz=100)
    0.0
    """
    cpu_seconds = (utime + stime) / hertz
    active_seconds = uptime_seconds - cpu_seconds
    if active_seconds <= 0:
        return 0.0
    return cpu_seconds / active_seconds * 100.0


@dataclass
class _ListingContext:
    """Host-wide values read once per listing."""

    uptime_seconds: int
    total_memory: int
    users: dict[int, str] = field(default_factory=dict)


class ProcfsProcessSource(ProcessSource):
    """
    Process source reading /proc/<pid>.

    Parameters
    ----------
    config : ProcfsConfig
        Counter tree locations
    clock_ticks : int, optional
        Kernel tick rate (default: reported by the platform, else 100)
    page_size : int
        Bytes per resident page (default: 4096)
    """

    def __init__(
        self,
        config: ProcfsConfig | None = None,
        clock_ticks: int | None = None,
        page_size: int = PAGE_SIZE,
    ):
        self.config = config or ProcfsConfig()
        self.clock_ticks = clock_ticks or get_clock_ticks()
        self.page_size = page_size

    def _list_pids(self) -> list[int]:
        try:
            names = [entry.name for entry in self.config.proc_path.iterdir()]
        except OSError as e:
            raise CounterIOError(
                f"Cannot list {self.config.proc_path}",
                details={"path": str(self.config.proc_path), "error": str(e)},
            ) from e
        return sorted(int(name) for name in names if name.isdigit())

    def _resolve_user(self, uid: int, context: _ListingContext) -> str:
        if uid not in context.users:
            context.users[uid] = lookup_username(uid)
        return context.users[uid]

    def _read_command(self, pid: int, pid_path: Path) -> str:
        try:
            raw = (pid_path / "cmdline").read_bytes().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        command = parser.parse_cmdline(raw)
        if command:
            return command

        # Kernel threads have an empty cmdline
        try:
            return read_counter_file(pid_path / "comm").strip() or f"[pid:{pid}]"
        except CounterIOError:
            return f"[pid:{pid}]"

    def _read_container_id(self, pid_path: Path) -> str | None:
        try:
            content = read_counter_file(pid_path / "cgroup")
        except CounterIOError:
            return None
        return parser.parse_cgroup_container_id(content)

    def _read_process(self, pid: int, context: _ListingContext) -> Process:
        pid_path = self.config.proc_path / str(pid)

        stat = parser.parse_proc_stat(read_counter_file(pid_path / "stat"))
        uid = parser.parse_proc_status_uid(read_counter_file(pid_path / "status"))

        memory_bytes = stat.rss * self.page_size
        return Process(
            pid=pid,
            ppid=stat.ppid,
            user=self._resolve_user(uid, context),
            command=self._read_command(pid, pid_path),
            state=ProcessState.from_char(stat.state),
            cpu_percent=calculate_process_cpu_percent(
                stat.utime, stat.stime, context.uptime_seconds, self.clock_ticks
            ),
            memory_percent=memory_bytes / context.total_memory * 100.0,
            memory_bytes=memory_bytes,
            container_id=self._read_container_id(pid_path),
        )

    def _read_processes(self) -> list[Process]:
        proc_path = self.config.proc_path
        meminfo = parser.parse_meminfo(read_counter_file(proc_path / "meminfo"))
        context = _ListingContext(
            uptime_seconds=parser.parse_uptime(read_counter_file(proc_path / "uptime")),
            total_memory=meminfo.get("MemTotal") or 1,
        )

        processes = []
        for pid in self._list_pids():
            try:
                processes.append(self._read_process(pid, context))
            except CollectorError as e:
                logger.debug(f"Skipping pid {pid}: {e}")
                continue

        return processes

    async def list_processes(self) -> list[Process]:
        """
        List all processes in ascending pid order.

        Raises
        ------
        CounterIOError
            If the process tree, uptime or meminfo cannot be read
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_processes)
