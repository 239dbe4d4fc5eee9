"""Read and write the ``images.json`` handoff document."""

from __future__ import annotations

import json
import logging
import os

from .models import ImagesDocument

logger = logging.getLogger(__name__)


class ImagesFileError(Exception):
    """Raised when an images document cannot be read, parsed or written."""


def dump_images(document: ImagesDocument) -> str:
    return json.dumps(document.to_dict(), indent=2) + "\n"


def loads_images(content: str) -> ImagesDocument:
    """Parse an images document from a JSON string.

    Raises:
        ImagesFileError: If ``content`` is not JSON or does not have the
            ``{"images": [{scheme, registry, image, tag}, ...]}`` shape.
    """
    try:
        return ImagesDocument.from_dict(json.loads(content))
    except ValueError as exc:
        raise ImagesFileError(f"Invalid images document: {exc}") from exc


def write_images_file(path: str | os.PathLike[str], document: ImagesDocument) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(dump_images(document))
    except OSError as exc:
        raise ImagesFileError(f"Unable to write file ({os.fspath(path)}): {exc}") from exc
    logger.info(f"Wrote {len(document.images)} images to {os.fspath(path)}")


def load_images_file(path: str | os.PathLike[str]) -> ImagesDocument:
    """Load an images document from disk.

    Raises:
        ImagesFileError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ImagesFileError(f"Unable to read file ({os.fspath(path)}): {exc}") from exc

    try:
        return loads_images(content)
    except ImagesFileError as exc:
        raise ImagesFileError(f"Unable to process file ({os.fspath(path)}): {exc}") from exc
