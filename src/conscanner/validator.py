"""Validation of raw image references against a registry.

Each candidate is parsed into registry/repository/tag and confirmed with one
``ImageLookup.exists`` call. Candidates are independent, so lookups run in a
bounded thread pool.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Iterable

from .image_parser import ImageReferenceError, parse_image_reference
from .models import DEFAULT_SCHEME, DEFAULT_THREAD_POOL_WORKERS, ImageRecord
from .registry_client import ImageLookup


class ImageValidator:
    def __init__(
        self,
        lookup: ImageLookup,
        max_workers: int = DEFAULT_THREAD_POOL_WORKERS,
        scheme: str = DEFAULT_SCHEME,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.lookup = lookup
        self.max_workers = max_workers
        self.scheme = scheme

    def validate_reference(self, raw: str) -> ImageRecord | None:
        """Validate a single raw reference.

        Returns:
            The validated record, or ``None`` when the reference has no usable
            tag or the registry does not serve it.
        """
        self.logger.info(f"Validating Docker Image: {raw}")
        try:
            reference = parse_image_reference(image=raw, scheme=self.scheme)
        except ImageReferenceError as e:
            self.logger.info(f"Skipping {raw!r}: {e}")
            return None

        if not self.lookup.exists(reference.registry, reference.repository, reference.tag):
            self.logger.warning(f"Invalid Image or Image Does Not Exist: {reference.canonical}")
            return None

        self.logger.info(f"Docker Image is valid: {reference.canonical}")
        return ImageRecord.from_reference(reference)

    def validate(self, references: Iterable[str]) -> list[ImageRecord]:
        """Validate every reference and return the confirmed records.

        Args:
            references: Raw candidate strings, typically a ``ReferenceSet``.

        Returns:
            Validated records sorted by canonical ``registry/repository:tag``,
            without duplicates.
        """
        candidates = list(references)
        total = len(candidates)
        records: dict[str, ImageRecord] = {}

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_raw = {executor.submit(self.validate_reference, raw): raw for raw in candidates}

            for idx, future in enumerate(concurrent.futures.as_completed(future_to_raw), start=1):
                raw = future_to_raw[future]
                try:
                    record = future.result()
                except Exception as e:
                    self.logger.error(f"Failed to validate {raw}: {e}")
                    continue
                self.logger.debug(f"Reference {raw} checked {idx}/{total}")
                if record is not None:
                    records.setdefault(record.canonical, record)

        self.logger.info(f"{len(records)} of {total} candidate references validated")
        return [records[key] for key in sorted(records)]
