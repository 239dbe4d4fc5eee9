"""Locate YAML manifests under a root path."""

from __future__ import annotations

import logging
import os

from .models import YAML_EXTENSIONS

logger = logging.getLogger(__name__)


class LocatorError(Exception):
    """Raised when the root path cannot be traversed."""


def is_yaml_file(name: str) -> bool:
    return name.lower().endswith(YAML_EXTENSIONS)


def find_yaml_files(root: str | os.PathLike[str]) -> list[str]:
    """Find every file with a YAML extension under ``root``.

    ``root`` may itself be a file, in which case it is returned when its name
    has a YAML extension. Symlinked directories are not followed.

    Args:
        root: Directory (or single file) to search.

    Returns:
        Sorted list of matching file paths.

    Raises:
        LocatorError: If ``root`` does not exist or a directory below it
            cannot be listed.
    """
    root = os.fspath(root)

    if os.path.isfile(root):
        return [root] if is_yaml_file(os.path.basename(root)) else []
    if not os.path.isdir(root):
        raise LocatorError(f"Unable to process directory ({root}): no such file or directory")

    def _raise(error: OSError) -> None:
        raise LocatorError(f"Unable to process directory ({root}): {error}") from error

    yaml_files: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for filename in filenames:
            if is_yaml_file(filename):
                yaml_files.append(os.path.join(dirpath, filename))

    yaml_files.sort()
    logger.info(f"Found {len(yaml_files)} YAML files under {root}")
    return yaml_files
