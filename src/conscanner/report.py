"""Per-image vulnerability report generation.

Reads validated records and writes one raw scanner report per image into
the report directory.
"""

from __future__ import annotations

import logging
import os
import re

from .models import DEFAULT_REPORT_DIR, ImageRecord, ImagesDocument, ReportSummary
from .scanner import Scanner, ScannerError

# Path separators, drive/port colons and NUL
_UNSAFE_FILE_CHARS = re.compile(r"[/\\:\x00]")


class ReportDirectoryError(Exception):
    """Raised when the report directory cannot be created."""


def report_file_name(record: ImageRecord) -> str:
    """Return ``<scheme>_<registry>_<image>_<tag>.json`` with path-unsafe characters replaced.

    Records loaded from a hand-edited images file are not re-validated, so
    every component is sanitized and the name never leaves the report
    directory.
    """
    parts = (record.scheme, record.registry, record.image, record.tag)
    return "_".join(_UNSAFE_FILE_CHARS.sub("_", part) for part in parts) + ".json"


class ReportGenerator:
    def __init__(
        self,
        scanner: Scanner,
        report_dir: str | os.PathLike[str] = DEFAULT_REPORT_DIR,
        qualified_references: bool = False,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.scanner = scanner
        self.report_dir = os.fspath(report_dir)
        self.qualified_references = qualified_references

    def prepare(self) -> None:
        """Create the report directory; an existing directory is reused.

        Raises:
            ReportDirectoryError: If the directory cannot be created.
        """
        try:
            os.makedirs(self.report_dir, exist_ok=True)
        except OSError as e:
            raise ReportDirectoryError(f"Unable to create directory ({self.report_dir}): {e}") from e

    def generate_one(self, record: ImageRecord) -> str:
        """Scan one image and write its report.

        Returns:
            Path of the written report file.

        Raises:
            ScannerError: If the scan fails or the report cannot be written.
        """
        reference = record.scan_reference(qualified=self.qualified_references)
        self.logger.info(f"Generating Report for docker image: {reference}")
        output = self.scanner.scan(reference)

        report_path = os.path.join(self.report_dir, report_file_name(record))
        try:
            with open(report_path, "wb") as f:
                f.write(output)
        except OSError as e:
            raise ScannerError(f"Unable to write report ({report_path}): {e}") from e

        self.logger.info(f"Successfully generated report `{report_path}` for docker image: {reference}")
        return report_path

    def generate(self, document: ImagesDocument) -> ReportSummary:
        """Generate a report for every record; per-image failures are logged and skipped."""
        self.prepare()
        summary = ReportSummary()

        for record in document.images:
            reference = record.scan_reference(qualified=self.qualified_references)
            try:
                summary.generated[reference] = self.generate_one(record)
            except ScannerError as e:
                self.logger.error(f"Report for {reference} failed: {e}")
                summary.failed.append(reference)

        self.logger.info(f"Generated {len(summary.generated)} reports, {len(summary.failed)} failed")
        return summary
