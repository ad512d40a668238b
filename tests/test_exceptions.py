"""Tests for common.exceptions and docker_handler.exceptions modules."""

import pytest

from nanomon.common.exceptions import (
    CollectionError,
    CollectorError,
    CounterIOError,
    MissingFieldError,
    NanomonError,
    ParseError,
)
from nanomon.docker_handler.exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerNotFoundError,
    DockerHandlerError,
    StatsUnavailableError,
)


class TestNanomonError:
    """Tests for NanomonError base exception."""

    def test_init_with_message_only(self):
        """Test exception initialization with only message."""
        exc = NanomonError("Test error")
        assert exc.message == "Test error"
        assert exc.details == {}
        assert str(exc) == "Test error"

    def test_init_with_message_and_details(self):
        """Test exception initialization with message and details."""
        details = {"path": "/proc/stat", "fields": 3}
        exc = NanomonError("Test error", details=details)
        assert exc.message == "Test error"
        assert exc.details == details
        assert str(exc) == "Test error"

    def test_repr(self):
        """Test exception repr."""
        repr_str = repr(NanomonError("Test error", details={"key": "value"}))
        assert "NanomonError" in repr_str
        assert "Test error" in repr_str


class TestCollectorErrors:
    """Tests for the collector error taxonomy."""

    @pytest.mark.parametrize("exc_class", [CounterIOError, ParseError, MissingFieldError])
    def test_are_collector_errors(self, exc_class):
        exc = exc_class("failed", details={"path": "/proc/1/stat"})
        assert isinstance(exc, CollectorError)
        assert isinstance(exc, NanomonError)
        assert exc.details["path"] == "/proc/1/stat"

    def test_missing_field_is_parse_error(self):
        assert isinstance(MissingFieldError("Missing field: Uid"), ParseError)

    def test_counter_io_is_not_parse_error(self):
        assert not isinstance(CounterIOError("gone"), ParseError)

    def test_collection_error_is_not_collector_error(self):
        exc = CollectionError("Failed to collect cpu", details={"operation": "cpu"})
        assert isinstance(exc, NanomonError)
        assert not isinstance(exc, CollectorError)
        assert exc.details["operation"] == "cpu"


class TestDockerHandlerErrors:
    """Tests for container runtime exceptions."""

    def test_base_is_nanomon_error(self):
        exc = DockerHandlerError("Runtime error")
        assert isinstance(exc, NanomonError)
        assert exc.details == {}

    @pytest.mark.parametrize("exc_class", [ContainerNotFoundError, StatsUnavailableError])
    def test_container_error_subclasses(self, exc_class):
        exc = exc_class("Container problem", details={"container_id": "abc123"})
        assert isinstance(exc, ContainerError)
        assert isinstance(exc, DockerHandlerError)
        assert exc.details["container_id"] == "abc123"

    def test_configuration_error(self):
        exc = ConfigurationError("Cannot connect", details={"url": "unix:///var/run/docker.sock"})
        assert isinstance(exc, DockerHandlerError)
        assert not isinstance(exc, ContainerError)

    def test_catch_by_base(self):
        with pytest.raises(NanomonError):
            raise ContainerNotFoundError("Container not found: abc")
