"""
Configuration management for NanoMon.

This module uses Pydantic Settings for environment-based configuration with
support for .env files and optional YAML files. Configuration is organized
into logical sections:
- Kernel counter tree paths
- Docker settings
- Monitoring settings (poll interval, history size, top-N size)
- Logging settings

Environment variables are prefixed with NANOMON_ (e.g., NANOMON_POLL_INTERVAL_SECONDS),
except the Docker daemon URL which honours the standard DOCKER_HOST.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProcfsSettings(BaseSettings):
    """
    Kernel counter tree locations.

    Overriding the paths lets NanoMon run inside a container with the host's
    /proc and /sys bind-mounted elsewhere.

    Parameters
    ----------
    proc_path : Path
        Root of the process/kernel counter tree (default: /proc)
    sys_path : Path
        Root of the device/class tree (default: /sys)
    hostname_path : Path
        File holding the host name (default: /etc/hostname)

    Examples
    --------
    >>> settings = ProcfsSettings()
    >>> str(settings.proc_path)
    '/proc'
    >>> settings = ProcfsSettings(proc_path="/host/proc")
    >>> str(settings.proc_path)
    '/host/proc'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="NANOMON_",
    )

    proc_path: Path = Field(default=Path("/proc"), description="Kernel counter tree root")
    sys_path: Path = Field(default=Path("/sys"), description="Device/class tree root")
    hostname_path: Path = Field(default=Path("/etc/hostname"), description="Hostname file")


class DockerSettings(BaseSettings):
    """
    Docker daemon connection settings.

    Parameters
    ----------
    docker_host : str
        Docker daemon URL (default: unix:///var/run/docker.sock)
    docker_enabled : bool
        Collect container metrics at all
    docker_timeout_seconds : int
        Request timeout for runtime API calls

    Environment Variables
    ---------------------
    DOCKER_HOST : str
        Override Docker daemon URL
    NANOMON_DOCKER_ENABLED : bool
        Disable container collection with "false"

    Examples
    --------
    >>> settings = DockerSettings()
    >>> settings.docker_host
    'unix:///var/run/docker.sock'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="NANOMON_",
        populate_by_name=True,
    )

    docker_host: str = Field(
        default="unix:///var/run/docker.sock",
        validation_alias=AliasChoices("docker_host", "DOCKER_HOST", "NANOMON_DOCKER_HOST"),
        description="Docker daemon URL",
    )
    docker_enabled: bool = Field(default=True, description="Collect container metrics")
    docker_timeout_seconds: int = Field(
        default=120,
        ge=1,
        le=600,
        description="Runtime API timeout (s)",
    )

    @field_validator("docker_host")
    @classmethod
    def validate_docker_host(cls, v: str) -> str:
        """Validate Docker host URL format."""
        valid_schemes = ("unix://", "tcp://", "http://", "https://")
        if not any(v.startswith(scheme) for scheme in valid_schemes):
            raise ValueError(f"Docker host must start with one of: {valid_schemes}. Got: {v}")
        return v


class MonitoringSettings(BaseSettings):
    """
    Monitoring and snapshot retention settings.

    Parameters
    ----------
    poll_interval_seconds : int
        Interval between snapshot collections (seconds)
    history_size : int
        Number of snapshots retained in memory
    process_limit : int
        Default size of top-N process views

    Examples
    --------
    >>> settings = MonitoringSettings()
    >>> settings.poll_interval_seconds
    10
    >>> settings.history_size
    360
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="NANOMON_",
    )

    poll_interval_seconds: int = Field(
        default=10,
        ge=1,
        le=3600,
        description="Snapshot collection interval",
    )
    history_size: int = Field(
        default=360,
        ge=1,
        le=100_000,
        description="Retained snapshot count",
    )
    process_limit: int = Field(default=20, ge=1, le=10_000, description="Default top-N size")


class LoggingSettings(BaseSettings):
    """
    Logging configuration.

    Parameters
    ----------
    log_level : str
        Logging level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    log_format : str
        Log format ("json", "console")

    Examples
    --------
    >>> settings = LoggingSettings()
    >>> settings.log_level
    'INFO'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="NANOMON_",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log format",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept lower-case level names (e.g. NANOMON_LOG_LEVEL=debug)."""
        return v.upper() if isinstance(v, str) else v


class NanomonSettings(BaseSettings):
    """
    Main NanoMon configuration aggregating all settings.

    Parameters
    ----------
    procfs : ProcfsSettings
        Kernel counter tree paths
    docker : DockerSettings
        Docker configuration
    monitoring : MonitoringSettings
        Poll interval and retention
    logging : LoggingSettings
        Logging configuration

    Examples
    --------
    >>> settings = NanomonSettings()
    >>> settings.monitoring.history_size
    360

    Using environment variables:
    >>> import os
    >>> os.environ["NANOMON_POLL_INTERVAL_SECONDS"] = "5"
    >>> NanomonSettings().monitoring.poll_interval_seconds
    5
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="NANOMON_",
    )

    procfs: ProcfsSettings = Field(default_factory=ProcfsSettings)
    docker: DockerSettings = Field(default_factory=DockerSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "NanomonSettings":
        """Load settings from a YAML file.

        Sections missing from the file fall back to environment variables
        and defaults.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        NanomonSettings
            Parsed settings.

        Raises
        ------
        FileNotFoundError
            If the config file doesn't exist.
        yaml.YAMLError
            If the config file is not valid YAML.
        pydantic.ValidationError
            If the config file is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        sections = {
            "procfs": ProcfsSettings,
            "docker": DockerSettings,
            "monitoring": MonitoringSettings,
            "logging": LoggingSettings,
        }
        return cls(
            **{
                name: section_cls(**(data.get(name) or {}))
                for name, section_cls in sections.items()
            }
        )


# =============================================================================
# Convenience functions
# =============================================================================


def load_settings(env_file: Path | str | None = None) -> NanomonSettings:
    """
    Load NanoMon settings from environment and optional .env file.

    Parameters
    ----------
    env_file : Path or str, optional
        Path to .env file (default: .env in current directory)

    Returns
    -------
    NanomonSettings
        Loaded settings

    Examples
    --------
    >>> settings = load_settings()
    >>> settings.docker.docker_host
    'unix:///var/run/docker.sock'
    """
    if env_file:
        return NanomonSettings(
            procfs=ProcfsSettings(_env_file=str(env_file)),
            docker=DockerSettings(_env_file=str(env_file)),
            monitoring=MonitoringSettings(_env_file=str(env_file)),
            logging=LoggingSettings(_env_file=str(env_file)),
        )
    return NanomonSettings()
