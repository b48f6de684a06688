"""
Source registry: the tracked tools and the adapter for each source type.
"""

import importlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from toolversions.exceptions import ConfigError, RegistryError

if TYPE_CHECKING:
    from toolversions.config import Config
    from toolversions.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


class SourceType(str, Enum):
    """Where a tool's release information comes from."""

    GITHUB_RELEASE = "github-release"
    WEBPAGE = "webpage"


@dataclass(frozen=True)
class ToolSource:
    """One tracked tool and its version origin."""

    id: str
    locator: str
    source_type: SourceType


DEFAULT_TOOL_SOURCES: Tuple[ToolSource, ...] = (
    ToolSource("kubernetes", "kubernetes/kubernetes", SourceType.GITHUB_RELEASE),
    ToolSource("docker", "https://docs.docker.com/engine/release-notes/", SourceType.WEBPAGE),
    ToolSource("terraform", "hashicorp/terraform", SourceType.GITHUB_RELEASE),
    ToolSource("ansible", "ansible/ansible", SourceType.GITHUB_RELEASE),
    ToolSource("jenkins", "jenkinsci/jenkins", SourceType.GITHUB_RELEASE),
)

# Source type -> (module, class). Webpage sources have no adapter yet.
ADAPTER_CLASSES: Dict[SourceType, Tuple[str, str]] = {
    SourceType.GITHUB_RELEASE: ("toolversions.sources.github_release", "GitHubReleaseAdapter"),
}


def _parse_tool(tool_id: str, entry: Any) -> ToolSource:
    """Build a ToolSource from a config entry.

    Accepts ``{"type": ..., "repo": ...}``, ``{"type": ..., "url": ...}`` or
    ``{"type": ..., "locator": ...}``.
    """
    if not isinstance(entry, Mapping):
        raise RegistryError(f"Tool '{tool_id}': expected a mapping, got {type(entry).__name__}")

    raw_type = entry.get("type")
    try:
        source_type = SourceType(raw_type)
    except ValueError:
        valid = ", ".join(t.value for t in SourceType)
        raise RegistryError(f"Tool '{tool_id}': unknown source type '{raw_type}'. Valid types: {valid}") from None

    locator = entry.get("locator") or entry.get("repo") or entry.get("url")
    if not isinstance(locator, str) or not locator.strip():
        raise RegistryError(f"Tool '{tool_id}': missing locator (repo or url)")

    return ToolSource(id=str(tool_id), locator=locator.strip(), source_type=source_type)


def get_tool_sources(cfg: Optional["Config"] = None) -> List[ToolSource]:
    """
    Get the ordered tool registry.

    A ``tools`` mapping in the configuration replaces the built-in registry.

    Raises:
        RegistryError: If the configured registry is invalid.
    """
    tools = cfg.get("tools") if cfg is not None else None
    if not tools:
        return list(DEFAULT_TOOL_SOURCES)

    if not isinstance(tools, Mapping):
        raise RegistryError(f"'tools' must be a mapping of tool id to source, got {type(tools).__name__}")

    sources = [_parse_tool(tool_id, entry) for tool_id, entry in tools.items()]

    seen = set()
    for source in sources:
        if source.id in seen:
            raise RegistryError(f"Duplicate tool id '{source.id}'")
        seen.add(source.id)

    return sources


def get_adapters(cfg: Optional["Config"] = None) -> Dict[SourceType, "SourceAdapter"]:
    """Get one adapter instance per supported source type, keyed by its source type.

    Raises:
        ConfigError: If an adapter setting in the configuration is invalid.
    """
    adapters: Dict[SourceType, "SourceAdapter"] = {}
    for source_type, (module_path, class_name) in ADAPTER_CLASSES.items():
        mod = importlib.import_module(module_path)
        cls = getattr(mod, class_name)
        adapter = cls(**_adapter_options(source_type, cfg))
        adapters[adapter.source_type] = adapter
        logger.debug("Loaded %s adapter for %s sources", adapter.name, adapter.source_type.value)
    return adapters


def _text_option(cfg: "Config", key: str) -> str:
    """A string setting, falling back to the built-in default when unset or null."""
    value = cfg.get(key)
    if value is None:
        section, name = key.split(".", 1)
        return cfg.DEFAULTS[section][name]
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' must be a non-empty string, got {value!r}")
    return value


def _adapter_options(source_type: SourceType, cfg: Optional["Config"]) -> Dict[str, Any]:
    """Constructor options for an adapter, taken from configuration."""
    if cfg is None or source_type is not SourceType.GITHUB_RELEASE:
        return {}
    return {
        "api_url": _text_option(cfg, "github.api_url"),
        "user_agent": _text_option(cfg, "github.user_agent"),
        "accept": _text_option(cfg, "github.accept"),
        "timeout": cfg.get_number("fetch.timeout", 30.0, minimum=0.001),
        "max_attempts": cfg.get_number("fetch.max_attempts", 2, cast=int, minimum=1),
        "backoff_seconds": cfg.get_number("fetch.backoff_seconds", 1.0),
        "token": cfg.github_token,
    }


def is_supported(source_type: SourceType) -> bool:
    """Whether an adapter is registered for a source type."""
    return source_type in ADAPTER_CLASSES
