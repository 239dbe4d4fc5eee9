"""Vulnerability scanner invocation for conscanner reports."""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from .models import DEFAULT_SCAN_TIMEOUT_SECONDS, DEFAULT_SCANNER_COMMAND


class ScannerError(Exception):
    """Raised when the scanner cannot produce a report for an image."""


class Scanner(Protocol):
    """Capability producing a raw JSON vulnerability report for a reference."""

    def scan(self, reference: str) -> bytes: ...


class GrypeScanner:
    """Runs ``grype`` as a subprocess and returns its JSON output.

    Args:
        command: Scanner executable name or path.
        timeout: Seconds to wait for a single scan.
    """

    def __init__(self, command: str = DEFAULT_SCANNER_COMMAND, timeout: int = DEFAULT_SCAN_TIMEOUT_SECONDS) -> None:
        self.logger = logging.getLogger(__name__)
        self.command = command
        self.timeout = timeout

    def build_command(self, reference: str) -> list[str]:
        return [self.command, "--quiet", "--output", "json", reference]

    def scan(self, reference: str) -> bytes:
        cmd = self.build_command(reference)
        self.logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, check=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ScannerError(f"Scanner command not found: {self.command}") from e
        except subprocess.TimeoutExpired as e:
            raise ScannerError(f"Scanner timed out after {self.timeout}s for {reference}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise ScannerError(f"Unable to run report generating command ({' '.join(cmd)}): {stderr or e}") from e
        return result.stdout
