"""
Base class for tool version source adapters.
"""

from abc import ABC, abstractmethod
from typing import Optional

from toolversions.fetcher import VersionInfo
from toolversions.sources.registry import SourceType


class SourceAdapter(ABC):
    """Abstract base class for version sources.

    Each adapter handles one source type and returns a complete
    VersionInfo for a locator, or raises a ToolVersionsError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source name."""
        ...

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        """Source type this adapter handles (used for dispatch)."""
        ...

    @property
    def call_timeout(self) -> Optional[float]:
        """Wall-clock limit in seconds for one fetch_latest call. None means unbounded."""
        return None

    @abstractmethod
    def fetch_latest(self, locator: str) -> VersionInfo:
        """Fetch the latest release for a locator.

        Args:
            locator: Repository path or URL, depending on the source type.

        Returns:
            VersionInfo for the latest release.

        Raises:
            SourceUnavailable: Network failure, timeout, or non-200 response.
            MalformedResponse: Response could not be read as a release.
        """
        ...
