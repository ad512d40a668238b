"""Custom exceptions for the container runtime client."""

from nanomon.common.exceptions import NanomonError


class DockerHandlerError(NanomonError):
    """Base exception for all container runtime errors."""

    pass


# Container operation errors
class ContainerError(DockerHandlerError):
    """Base exception for container-related errors."""

    pass


class ContainerNotFoundError(ContainerError):
    """Raised when a container cannot be found."""

    pass


class StatsUnavailableError(ContainerError):
    """Raised when the runtime returns no usable stats sample."""

    pass


# Configuration errors
class ConfigurationError(DockerHandlerError):
    """Raised when the runtime connection is misconfigured or unreachable."""

    pass
