"""
Fetch-and-aggregate pipeline for tool versions.

Runs every registered tool source through the adapter for its source type,
tolerating per-tool failures, and folds the results into a version document.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from .exceptions import SourceUnavailable, ToolVersionsError, UnsupportedSourceType

if TYPE_CHECKING:
    from .config import Config
    from .sources.base import SourceAdapter
    from .sources.registry import SourceType, ToolSource

logger = logging.getLogger(__name__)

STATUS_FETCHED = "fetched"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"
STATUS_CARRIED = "carried"


@dataclass(frozen=True)
class VersionInfo:
    """Latest known release of a single tool."""

    version: str
    release_date: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.version, str) or not self.version.strip():
            raise ValueError(f"version must be a non-empty string, got {self.version!r}")
        for name in ("release_date", "url"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a string or None, got {type(value).__name__}")

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Serialize to the output document schema."""
        return {"version": self.version, "date": self.release_date, "url": self.url}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VersionInfo":
        """Build from an output document entry.

        Raises:
            ValueError: If the entry is not a mapping or has no usable version.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"entry must be an object, got {type(data).__name__}")
        return cls(version=data.get("version"), release_date=data.get("date"), url=data.get("url"))


@dataclass
class ToolOutcome:
    """What happened to one tool during a run."""

    tool_id: str
    status: str
    info: Optional[VersionInfo] = None
    error: Optional[str] = None
    classification: Optional[str] = None

    @property
    def version(self) -> Optional[str]:
        return self.info.version if self.info else None


@dataclass
class FetchResult:
    """Results from a version fetch run."""

    versions: Dict[str, VersionInfo] = field(default_factory=dict)
    outcomes: List[ToolOutcome] = field(default_factory=list)
    fetch_time: Optional[datetime] = None

    def _count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def fetched(self) -> int:
        return self._count(STATUS_FETCHED)

    @property
    def failed(self) -> int:
        return self._count(STATUS_FAILED) + self._count(STATUS_CARRIED)

    @property
    def skipped(self) -> int:
        return self._count(STATUS_SKIPPED)

    @property
    def carried(self) -> int:
        return self._count(STATUS_CARRIED)

    def to_document(self) -> Dict[str, Dict[str, Optional[str]]]:
        """Return the version document as plain JSON-ready data."""
        return {tool_id: info.to_dict() for tool_id, info in self.versions.items()}

    def __str__(self) -> str:
        return (
            f"Fetched {self.fetched} of {len(self.outcomes)} tools"
            f"{f', {self.failed} failed' if self.failed else ''}"
            f"{f' ({self.carried} kept from previous run)' if self.carried else ''}"
            f"{f', {self.skipped} skipped' if self.skipped else ''}"
        )


def get_adapter(
    adapters: Mapping["SourceType", "SourceAdapter"], source_type: "SourceType"
) -> "SourceAdapter":
    """Look up the adapter for a source type.

    Raises:
        UnsupportedSourceType: If no adapter is registered for it.
    """
    adapter = adapters.get(source_type)
    if adapter is None:
        raise UnsupportedSourceType(f"{getattr(source_type, 'value', source_type)} not implemented yet")
    return adapter


async def _fetch_one(
    source: "ToolSource",
    adapters: Mapping["SourceType", "SourceAdapter"],
    semaphore: asyncio.Semaphore,
) -> ToolOutcome:
    try:
        adapter = get_adapter(adapters, source.source_type)
    except UnsupportedSourceType as e:
        return ToolOutcome(source.id, STATUS_SKIPPED, error=str(e), classification=e.classification)

    async with semaphore:
        try:
            info = await asyncio.wait_for(
                asyncio.to_thread(adapter.fetch_latest, source.locator),
                timeout=adapter.call_timeout,
            )
        except asyncio.TimeoutError:
            # The worker thread is abandoned; its eventual result is discarded
            error = SourceUnavailable(f"Timeout after {adapter.call_timeout:g}s fetching {source.locator}")
            return ToolOutcome(source.id, STATUS_FAILED, error=str(error), classification=error.classification)
        except ToolVersionsError as e:
            return ToolOutcome(source.id, STATUS_FAILED, error=str(e), classification=e.classification)
        except Exception as e:
            logger.debug("Unexpected adapter error for %s", source.id, exc_info=True)
            return ToolOutcome(source.id, STATUS_FAILED, error=str(e), classification="unexpected error")

    return ToolOutcome(source.id, STATUS_FETCHED, info=info)


def _log_outcome(outcome: ToolOutcome) -> None:
    if outcome.status == STATUS_FETCHED:
        logger.info("Fetched %s: %s", outcome.tool_id, outcome.version)
    elif outcome.status == STATUS_SKIPPED:
        logger.info("Skipping %s (%s)", outcome.tool_id, outcome.error)
    elif outcome.status == STATUS_CARRIED:
        logger.warning(
            "Failed to fetch %s [%s]: %s; keeping previous version %s",
            outcome.tool_id,
            outcome.classification,
            outcome.error,
            outcome.version,
        )
    else:
        logger.error("Failed to fetch %s [%s]: %s", outcome.tool_id, outcome.classification, outcome.error)


async def fetch_all_versions(
    sources: Sequence["ToolSource"],
    adapters: Mapping["SourceType", "SourceAdapter"],
    previous: Optional[Mapping[str, VersionInfo]] = None,
    max_concurrency: int = 4,
) -> FetchResult:
    """
    Fetch the latest version of every tool source.

    Sources are fetched concurrently, at most ``max_concurrency`` at a time.
    Each fetch returns its own outcome and the outcomes are folded in
    registry order, so notices and document keys follow the registry.

    Args:
        sources: Registry entries, in registry order.
        adapters: Adapter lookup keyed by source type.
        previous: Prior version document. When given, a tool whose fetch
            fails keeps its previous entry instead of being dropped.
        max_concurrency: Maximum simultaneous outbound requests.

    Returns:
        FetchResult with the version document and per-tool outcomes.
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    semaphore = asyncio.Semaphore(max_concurrency)
    outcomes = await asyncio.gather(*(_fetch_one(source, adapters, semaphore) for source in sources))

    result = FetchResult(fetch_time=datetime.now())
    for outcome in outcomes:
        if outcome.status == STATUS_FAILED and previous and outcome.tool_id in previous:
            outcome.status = STATUS_CARRIED
            outcome.info = previous[outcome.tool_id]

        if outcome.status in (STATUS_FETCHED, STATUS_CARRIED):
            result.versions[outcome.tool_id] = outcome.info
        result.outcomes.append(outcome)
        _log_outcome(outcome)

    logger.info(str(result))
    return result


def run_pipeline(
    output_path: Optional[Path] = None,
    carry_forward: Optional[bool] = None,
    max_concurrency: Optional[int] = None,
    cfg: Optional["Config"] = None,
) -> FetchResult:
    """
    Run one full fetch-and-persist cycle.

    Args:
        output_path: Where to write the version document. Defaults to the
            configured output path.
        carry_forward: Keep previous entries for tools whose fetch fails.
            Defaults to ``fetch.carry_forward``.
        max_concurrency: Defaults to ``fetch.max_concurrency``.
        cfg: Configuration to use. Defaults to the global instance.

    Returns:
        FetchResult for the run.

    Raises:
        PersistenceFailure: If the document could not be written.
        RegistryError, ConfigError: If the configuration is invalid.
    """
    from .persister import load_version_document, write_version_document
    from .sources.registry import get_adapters, get_tool_sources

    if cfg is None:
        from .config import config as cfg

    if output_path is None:
        output_path = cfg.output_path
    if carry_forward is None:
        carry_forward = cfg.get("fetch.carry_forward") is not False
    if max_concurrency is None:
        max_concurrency = cfg.get_number("fetch.max_concurrency", 4, cast=int, minimum=1)

    sources = get_tool_sources(cfg)
    adapters = get_adapters(cfg)

    previous = load_version_document(output_path) if carry_forward else None

    logger.info("Fetching versions for %d tools", len(sources))
    # loop.close() shuts the executor down without joining threads abandoned after a timeout
    loop = asyncio.new_event_loop()
    try:
        result = loop.run_until_complete(fetch_all_versions(sources, adapters, previous, max_concurrency))
    finally:
        loop.close()

    write_version_document(result.versions, output_path)
    logger.info("Saved tool versions to %s", output_path)
    return result
