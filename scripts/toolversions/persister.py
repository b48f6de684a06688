"""
Reading and writing the persisted version document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Mapping

from .exceptions import PersistenceFailure
from .fetcher import VersionInfo

logger = logging.getLogger(__name__)


def serialize_version_document(versions: Mapping[str, VersionInfo]) -> str:
    """Serialize a version document with stable key order and a trailing newline."""
    document = {tool_id: info.to_dict() for tool_id, info in versions.items()}
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_version_document(versions: Mapping[str, VersionInfo], path: Path) -> None:
    """
    Atomically write the version document to ``path``.

    The document is written to a temporary file in the same directory and
    renamed over the target, so readers see either the old or the new file.

    Raises:
        PersistenceFailure: If the directory or file cannot be written.
    """
    path = Path(path)
    content = serialize_version_document(versions)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceFailure(f"Cannot create directory {path.parent}: {e}") from e

    try:
        tmp_fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    except OSError as e:
        raise PersistenceFailure(f"Cannot write to {path.parent}: {e}") from e

    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600; the document is public static data
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.debug("Could not remove temporary file %s", tmp_path)
        raise PersistenceFailure(f"Cannot write {path}: {e}") from e

    logger.debug("Wrote %d tool versions to %s", len(versions), path)


def load_version_document(path: Path) -> Dict[str, VersionInfo]:
    """
    Load a previously written version document.

    A missing or unreadable document yields an empty mapping. Entries that
    are not valid version records are dropped.
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable version document %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring version document %s: top level is not an object", path)
        return {}

    versions: Dict[str, VersionInfo] = {}
    for tool_id, entry in data.items():
        try:
            versions[tool_id] = VersionInfo.from_dict(entry)
        except ValueError as e:
            logger.warning("Dropping invalid entry %r from %s: %s", tool_id, path, e)
    return versions
