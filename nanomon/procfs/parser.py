"""
Parsers for kernel-exposed counter files.

Every function here turns the textual content of one counter file into a
typed value, raising ``ParseError`` (or ``MissingFieldError``) when the
content is malformed. They never touch the filesystem themselves, except
``parse_net_stats`` which reads the four counter files of one interface's
statistics directory as a unit.

Files covered:
- /proc/uptime, /proc/loadavg, /proc/stat (aggregate cpu line)
- /proc/meminfo, /proc/mounts
- /sys/class/net/<iface>/statistics/{rx,tx}_{bytes,errors}
- /proc/<pid>/stat, /proc/<pid>/status, /proc/<pid>/cmdline, /proc/<pid>/cgroup
"""

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

from nanomon.common.exceptions import CounterIOError, MissingFieldError, ParseError

# Path prefixes that identify a container runtime in a cgroup path. Directory
# prefixes ("docker/<id>") and scope-unit prefixes ("docker-<id>.scope") are both
# in use depending on the cgroup driver.
CONTAINER_CGROUP_DIRS = ("docker",)
CONTAINER_SCOPE_PREFIXES = ("docker-", "libpod-", "cri-containerd-", "crio-")

NET_COUNTER_FILES = ("rx_bytes", "tx_bytes", "rx_errors", "tx_errors")


@dataclass(frozen=True, slots=True)
class CpuStat:
    """Cumulative aggregate CPU tick counters since boot."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @property
    def total(self) -> int:
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    @property
    def busy(self) -> int:
        return self.total - self.idle - self.iowait


@dataclass(frozen=True, slots=True)
class MountInfo:
    """One entry of the mount table."""

    device: str
    mount_point: str
    filesystem: str


class ProcStat(NamedTuple):
    """Fields extracted from /proc/<pid>/stat."""

    pid: int
    ppid: int
    state: str
    utime: int
    stime: int
    rss: int


def _to_int(value: str, field: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise ParseError(f"Invalid {field} value: {value!r}", details={"field": field}) from e
    if parsed < 0:
        raise ParseError(f"Negative {field} value: {value!r}", details={"field": field})
    return parsed


def _to_float(value: str, field: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ParseError(f"Invalid {field} value: {value!r}", details={"field": field}) from e


def parse_uptime(content: str) -> int:
    """
    Parse /proc/uptime.

    Parameters
    ----------
    content : str
        File content, e.g. ``"12345.67 98765.43"``

    Returns
    -------
    int
        Seconds since boot, fractional part truncated

    Raises
    ------
    ParseError
        If the first token is missing or non-numeric

    Examples
    --------
    >>> parse_uptime("12345.67 98765.43\\n")
    12345
    """
    parts = content.split()
    if not parts:
        raise ParseError("Empty uptime file")
    return int(_to_float(parts[0], "uptime"))


def parse_loadavg(content: str) -> tuple[float, float, float]:
    """
    Parse /proc/loadavg into the 1, 5 and 15 minute load averages.

    Examples
    --------
    >>> parse_loadavg("0.52 0.78 1.21 2/456 12345\\n")
    (0.52, 0.78, 1.21)
    """
    parts = content.split()
    if len(parts) < 3:
        raise ParseError("Invalid loadavg format", details={"tokens": len(parts)})
    return (
        _to_float(parts[0], "load 1min"),
        _to_float(parts[1], "load 5min"),
        _to_float(parts[2], "load 15min"),
    )


def parse_cpu_stat(content: str) -> CpuStat:
    """
    Parse the aggregate ``cpu`` line of /proc/stat.

    Per-core lines (``cpu0``, ``cpu1``, ...) are ignored.

    Raises
    ------
    ParseError
        If there is no aggregate line or it carries fewer than 8 numeric fields

    Examples
    --------
    >>> stat = parse_cpu_stat("cpu  1000 100 500 10000 200 50 30 0\\n")
    >>> stat.total, stat.busy
    (11880, 1680)
    """
    for line in content.splitlines():
        parts = line.split()
        if not parts or parts[0] != "cpu":
            continue

        values = parts[1:]
        if len(values) < 8:
            raise ParseError("Incomplete cpu stat", details={"fields": len(values)})

        names = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")
        return CpuStat(**{name: _to_int(values[i], name) for i, name in enumerate(names)})

    raise ParseError("Missing cpu line")


def parse_meminfo(content: str) -> dict[str, int]:
    """
    Parse /proc/meminfo into a mapping of field name to bytes.

    Values are reported by the kernel in kB and converted with a factor of
    1024. Malformed lines are skipped.

    Examples
    --------
    >>> parse_meminfo("MemTotal:    1024 kB\\n")
    {'MemTotal': 1048576}
    """
    meminfo: dict[str, int] = {}

    for line in content.splitlines():
        parts = line.split(":")
        if len(parts) != 2:
            continue

        key = parts[0].strip()
        value = parts[1].strip().removesuffix("kB").strip()
        if not key or not value.isdigit():
            continue

        meminfo[key] = int(value) * 1024

    return meminfo


def parse_mounts(content: str) -> list[MountInfo]:
    """Parse /proc/mounts, skipping lines with fewer than three fields."""
    mounts = []

    for line in content.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        mounts.append(MountInfo(device=parts[0], mount_point=parts[1], filesystem=parts[2]))

    return mounts


def parse_net_stats(stats_dir: Path) -> tuple[int, int, int, int]:
    """
    Read one interface's statistics directory.

    The read is all-or-nothing: if any of the four counters is unreadable or
    malformed the whole interface fails.

    Parameters
    ----------
    stats_dir : Path
        e.g. /sys/class/net/eth0/statistics

    Returns
    -------
    tuple[int, int, int, int]
        rx_bytes, tx_bytes, rx_errors, tx_errors

    Raises
    ------
    CounterIOError
        If a counter file cannot be read
    ParseError
        If a counter file is not an unsigned integer
    """
    counters = []
    for name in NET_COUNTER_FILES:
        path = stats_dir / name
        try:
            raw = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CounterIOError(
                f"Cannot read {path}",
                details={"path": str(path), "error": str(e)},
            ) from e
        counters.append(_to_int(raw.strip(), name))

    rx_bytes, tx_bytes, rx_errors, tx_errors = counters
    return rx_bytes, tx_bytes, rx_errors, tx_errors


def parse_proc_stat(content: str) -> ProcStat:
    """
    Parse /proc/<pid>/stat.

    The command name sits between the first ``(`` and the *last* ``)``
    because it may itself contain spaces and parentheses. Fields after it
    are positional: state=0, ppid=1, utime=11, stime=12, rss=21.

    Examples
    --------
    >>> rest = " ".join(["S", "1"] + ["0"] * 9 + ["30", "20"] + ["0"] * 8 + ["512"])
    >>> parse_proc_stat(f"12 (my (weird) cmd) {rest}")
    ProcStat(pid=12, ppid=1, state='S', utime=30, stime=20, rss=512)
    """
    start = content.find("(")
    end = content.rfind(")")
    if start < 0:
        raise ParseError("No ( found in proc stat")
    if end < start:
        raise ParseError("No ) found in proc stat")

    pid = _to_int(content[:start].strip(), "pid")
    parts = content[end + 1 :].split()
    if len(parts) < 22:
        raise ParseError("Incomplete proc stat", details={"pid": pid, "fields": len(parts)})

    return ProcStat(
        pid=pid,
        ppid=_to_int(parts[1], "ppid"),
        state=parts[0][:1] or "?",
        utime=_to_int(parts[11], "utime"),
        stime=_to_int(parts[12], "stime"),
        rss=_to_int(parts[21], "rss"),
    )


def parse_proc_status_uid(content: str) -> int:
    """
    Extract the real uid from /proc/<pid>/status.

    Raises
    ------
    MissingFieldError
        If there is no ``Uid:`` line
    ParseError
        If the uid is not numeric

    Examples
    --------
    >>> parse_proc_status_uid("Name:\\tbash\\nUid:\\t1000\\t1000\\t1000\\t1000\\n")
    1000
    """
    for line in content.splitlines():
        if line.startswith("Uid:"):
            parts = line.split()
            if len(parts) >= 2:
                return _to_int(parts[1], "uid")
    raise MissingFieldError("Missing field: Uid", details={"field": "Uid"})


def parse_cmdline(content: str) -> str:
    """Join a NUL-separated /proc/<pid>/cmdline into one command string."""
    return content.replace("\0", " ").strip()


def parse_cgroup_container_id(content: str) -> str | None:
    """
    Find the owning container ID in /proc/<pid>/cgroup.

    Recognises both directory style (``0::/docker/<id>``) and systemd scope
    style (``0::/system.slice/docker-<id>.scope``) paths.

    Returns
    -------
    str or None
        Container ID, or None if the process does not belong to a container

    Examples
    --------
    >>> parse_cgroup_container_id("0::/docker/abc123\\n")
    'abc123'
    >>> parse_cgroup_container_id("0::/system.slice/docker-abc123.scope\\n")
    'abc123'
    >>> parse_cgroup_container_id("0::/user.slice/session-2.scope\\n") is None
    True
    """
    for line in content.splitlines():
        path = line.split(":", 2)[-1]
        segments = path.split("/")

        for index, segment in enumerate(segments):
            candidate = None
            if segment in CONTAINER_CGROUP_DIRS and index + 1 < len(segments):
                candidate = segments[index + 1]
            else:
                for prefix in CONTAINER_SCOPE_PREFIXES:
                    if segment.startswith(prefix):
                        candidate = segment[len(prefix) :]
                        break

            if candidate is None:
                continue
            candidate = candidate.removesuffix(".scope")
            # podman's conmon monitor lives in libpod-conmon-<id>.scope
            if candidate and not candidate.startswith("conmon-"):
                return candidate

    return None
