"""conscanner — find container images in YAML manifests and scan them.

Two subcommands:

1. ``images``: discover image references under a directory, validate them
   against their registry and write ``images.json``.
2. ``report``: run a vulnerability scanner for every image in
   ``images.json`` and store one JSON report per image.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ._version import __version__
from .discovery import discover_images
from .locator import LocatorError
from .models import (
    DEFAULT_HUB_URL,
    DEFAULT_IMAGES_FILE,
    DEFAULT_REPORT_DIR,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SCAN_TIMEOUT_SECONDS,
    DEFAULT_SCANNER_COMMAND,
    DEFAULT_THREAD_POOL_WORKERS,
)
from .persistence import ImagesFileError, load_images_file, write_images_file
from .registry_client import RegistryClient
from .report import ReportDirectoryError, ReportGenerator
from .scanner import GrypeScanner

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI usage. Only called from main()."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s : %(name)-13s : %(levelname)s :: %(message)s",
    )
    # Keep per-request connection chatter out of the output
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {raw}")
    return value


def _positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {raw}")
    return value


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of argument strings (defaults to ``sys.argv``).

    Returns:
        Parsed ``argparse.Namespace`` with a ``command`` attribute naming the
        selected subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="conscanner",
        description="Find the docker images in a directory and generate vulnerability reports for them",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    images_parser = subparsers.add_parser(
        "images",
        help="Look for docker images in a directory or file",
        description="Find the docker images in a directory or file and generate the images file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    images_parser.add_argument(
        "dir",
        nargs="?",
        default="./",
        help="Source directory path containing all the YAML files",
    )
    images_parser.add_argument("--output", default=DEFAULT_IMAGES_FILE, help="Path of the images file to write")
    images_parser.add_argument(
        "--workers",
        type=_positive_int,
        default=DEFAULT_THREAD_POOL_WORKERS,
        help="Number of concurrent file readers and registry lookups",
    )
    images_parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        help="Per-request registry timeout in seconds",
    )
    images_parser.add_argument("--hub-url", default=DEFAULT_HUB_URL, help="Docker Hub API base URL")

    report_parser = subparsers.add_parser(
        "report",
        help="Run CVE scanning for all the images",
        description="Read all the docker images in an images file and generate a report for each image",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    report_parser.add_argument(
        "image_file",
        metavar="image-file",
        nargs="?",
        default=f"./{DEFAULT_IMAGES_FILE}",
        help="Path for the images file",
    )
    report_parser.add_argument("--report-dir", default=DEFAULT_REPORT_DIR, help="Directory for per-image reports")
    report_parser.add_argument("--scanner", default=DEFAULT_SCANNER_COMMAND, help="Vulnerability scanner executable")
    report_parser.add_argument(
        "--scan-timeout",
        type=_positive_int,
        default=DEFAULT_SCAN_TIMEOUT_SECONDS,
        help="Per-image scanner timeout in seconds",
    )
    report_parser.add_argument(
        "--qualified-references",
        action="store_true",
        help="Pass registry/repository:tag to the scanner for images outside docker.io",
    )
    return parser.parse_args(args)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def run_images(args: argparse.Namespace) -> int:
    """Discover and validate images, then write the images file.

    Returns:
        Process exit code (0 = success, 1 = fatal error).
    """
    logger.info("Running for finding images...")
    try:
        with RegistryClient(hub_url=args.hub_url, timeout=args.timeout) as client:
            document = discover_images(root=args.dir, lookup=client, max_workers=args.workers)
        write_images_file(args.output, document)
    except (LocatorError, ImagesFileError) as e:
        logger.error(str(e))
        return 1

    logger.info(f"Successfully Generated `{args.output}` file")
    return 0


def run_report(args: argparse.Namespace) -> int:
    """Generate a vulnerability report for every image in the images file.

    Returns:
        Process exit code (0 = success, 1 = fatal error). Failed scans of
        individual images do not change the exit code.
    """
    logger.info("Running for generating report...")
    generator = ReportGenerator(
        scanner=GrypeScanner(command=args.scanner, timeout=args.scan_timeout),
        report_dir=args.report_dir,
        qualified_references=args.qualified_references,
    )
    try:
        generator.prepare()
        document = load_images_file(args.image_file)
    except (ReportDirectoryError, ImagesFileError) as e:
        logger.error(str(e))
        return 1

    generator.generate(document)
    logger.info("Done.")
    return 0


_COMMANDS = {
    "images": run_images,
    "report": run_report,
}


def main() -> None:
    """CLI entry point for conscanner."""
    parsed_args = parse_args()
    _setup_logging(verbose=parsed_args.verbose)
    try:
        sys.exit(_COMMANDS[parsed_args.command](parsed_args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
