"""
Exception hierarchy for the tool version pipeline.
"""

from typing import Optional


class ToolVersionsError(Exception):
    """Base class for all tool version pipeline errors."""

    classification = "error"


class SourceUnavailable(ToolVersionsError):
    """Raised on network failure, timeout, or a non-200 upstream response."""

    classification = "source unavailable"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Whether the failure is transient (network error or 5xx)."""
        return self.status_code is None or self.status_code >= 500


class MalformedResponse(ToolVersionsError):
    """Raised when an upstream response cannot be read as a release."""

    classification = "malformed response"


class UnsupportedSourceType(ToolVersionsError):
    """Raised when no adapter is registered for a source type."""

    classification = "not yet implemented"


class RegistryError(ToolVersionsError):
    """Raised when the configured tool registry is invalid."""

    classification = "invalid registry"


class PersistenceFailure(ToolVersionsError):
    """Raised when the version document cannot be written."""

    classification = "persistence failure"


class ConfigError(ToolVersionsError):
    """Raised when a configuration value is missing or has the wrong type."""

    classification = "invalid configuration"
