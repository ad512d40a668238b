"""Kernel counter tree (procfs/sysfs) metric sources."""

from .config import ProcfsConfig
from .process import ProcfsProcessSource
from .system import ProcfsSystemSource

__all__ = [
    "ProcfsConfig",
    "ProcfsProcessSource",
    "ProcfsSystemSource",
]
