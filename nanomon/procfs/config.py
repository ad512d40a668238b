"""Counter tree locations shared by the procfs sources."""

from dataclasses import dataclass, field
from pathlib import Path

from nanomon.common.config import ProcfsSettings


@dataclass(frozen=True)
class ProcfsConfig:
    """Paths to the kernel counter trees (overridable for bind-mounted hosts)."""

    proc_path: Path = field(default_factory=lambda: Path("/proc"))
    sys_path: Path = field(default_factory=lambda: Path("/sys"))
    hostname_path: Path = field(default_factory=lambda: Path("/etc/hostname"))

    @classmethod
    def from_settings(cls, settings: ProcfsSettings) -> "ProcfsConfig":
        return cls(
            proc_path=Path(settings.proc_path),
            sys_path=Path(settings.sys_path),
            hostname_path=Path(settings.hostname_path),
        )
