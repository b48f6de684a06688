"""Shared test fixtures for the tool version tracker test suite."""

import pytest
from toolversions.config import Config
from toolversions.exceptions import MalformedResponse, SourceUnavailable
from toolversions.fetcher import VersionInfo
from toolversions.sources.base import SourceAdapter
from toolversions.sources.registry import SourceType


@pytest.fixture
def fresh_config(tmp_path, monkeypatch):
    """Create a Config instance with reset singleton state pointed at a temp directory."""
    Config._instance = None
    monkeypatch.setenv("TOOLVERSIONS_BASE_DIR", str(tmp_path))
    monkeypatch.delenv("TOOLVERSIONS_OUTPUT_PATH", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    cfg = Config()
    yield cfg
    Config._instance = None


class FakeAdapter(SourceAdapter):
    """Adapter returning canned results keyed by locator.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    @property
    def name(self) -> str:
        return "Fake"

    @property
    def source_type(self) -> SourceType:
        return SourceType.GITHUB_RELEASE

    def fetch_latest(self, locator: str) -> VersionInfo:
        self.calls.append(locator)
        value = self.responses[locator]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def make_adapter():
    """Factory for FakeAdapter instances."""
    return FakeAdapter


@pytest.fixture
def fake_adapter():
    """FakeAdapter with one success, one 404, and one malformed response."""
    return FakeAdapter(
        {
            "org/a": VersionInfo("v1.2.0", "2024-01-01T00:00:00Z", "https://x/releases/v1.2.0"),
            "org/missing": SourceUnavailable("HTTP 404", status_code=404),
            "org/broken": MalformedResponse("Failed to parse JSON"),
        }
    )
