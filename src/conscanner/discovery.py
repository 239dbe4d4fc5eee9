"""Image discovery pipeline for conscanner.

Locates YAML manifests, extracts candidate references with both the pattern
and the structural strategy into one ``ReferenceSet``, and validates them.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os

from .locator import find_yaml_files
from .models import DEFAULT_THREAD_POOL_WORKERS, ImagesDocument
from .pattern_extractor import extract_file_by_pattern
from .reference_set import ReferenceSet
from .registry_client import ImageLookup
from .structural_extractor import extract_file_by_fields
from .validator import ImageValidator

logger = logging.getLogger(__name__)


def _extract_file(reference_set: ReferenceSet, path: str) -> int:
    return extract_file_by_pattern(reference_set, path) + extract_file_by_fields(reference_set, path)


def collect_references(
    yaml_files: list[str],
    max_workers: int = DEFAULT_THREAD_POOL_WORKERS,
    reference_set: ReferenceSet | None = None,
) -> ReferenceSet:
    """Run both extractors over every file, one file per pool task.

    Args:
        yaml_files: Manifest paths to read.
        max_workers: Thread-pool size.
        reference_set: Set to fill; a new one is created when omitted.

    Returns:
        The populated ``ReferenceSet``.
    """
    references = reference_set if reference_set is not None else ReferenceSet()
    total_files = len(yaml_files)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {executor.submit(_extract_file, references, path): path for path in yaml_files}

        for idx, future in enumerate(concurrent.futures.as_completed(future_to_path), start=1):
            path = future_to_path[future]
            try:
                added = future.result()
                logger.debug(f"File {path} processed {idx}/{total_files} ({added} new references)")
            except Exception as e:
                logger.error(f"Failed to extract references from {path}: {e}")

    logger.info(f"Collected {len(references)} candidate references from {total_files} files")
    return references


def discover_images(
    root: str | os.PathLike[str],
    lookup: ImageLookup,
    max_workers: int = DEFAULT_THREAD_POOL_WORKERS,
) -> ImagesDocument:
    """Find, deduplicate and validate every image referenced under ``root``.

    Raises:
        LocatorError: If ``root`` cannot be traversed.
    """
    logger.info(f"Discovering images under {os.fspath(root)}")
    yaml_files = find_yaml_files(root)
    references = collect_references(yaml_files=yaml_files, max_workers=max_workers)
    validator = ImageValidator(lookup=lookup, max_workers=max_workers)
    return ImagesDocument(images=validator.validate(references))
