"""Persist command trees as JSON."""

import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from clint.errors import StorageError
from clint.models.command import CommandNode

logger = logging.getLogger(__name__)

PARSED_FILE_NAME = "parsed.json"
LATEST_TAG = "latest"

_VERSION_RE = re.compile(r"v?\d+(?:\.\d+)+(?:[-+][0-9A-Za-z.\-]+)?")
_UNSAFE_PATH_RE = re.compile(r"[^0-9A-Za-z._\-]+")


def version_tag(version: str | None) -> str:
    """Directory-safe tag for a probed version string."""
    if not version or version == "Unknown":
        return LATEST_TAG
    match = _VERSION_RE.search(version)
    if match:
        return match.group(0)
    tag = _UNSAFE_PATH_RE.sub("-", version).strip("-.")
    return tag or LATEST_TAG


def default_output_path(tree: CommandNode, output_dir: str | Path = "out", tag: str | None = None) -> Path:
    """``<output_dir>/<program>/<tag | version | latest>/parsed.json``."""
    directory = tag or version_tag(tree.version)
    return Path(output_dir) / tree.name / directory / PARSED_FILE_NAME


def save_tree(tree: CommandNode, path: str | Path) -> Path:
    """Write ``tree`` as indented JSON, creating parent directories.

    Raises:
        StorageError: the file could not be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(tree.to_json_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    logger.debug(f"Saved tree for {tree.name} to {path}")
    return path


def load_tree(path: str | Path) -> CommandNode:
    """Read a tree written by :func:`save_tree`.

    Raises:
        StorageError: missing file, invalid JSON, or wrong shape
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}") from e

    try:
        return CommandNode.from_json_dict(data)
    except ValidationError as e:
        raise StorageError(f"{path} is not a command tree: {e}") from e
