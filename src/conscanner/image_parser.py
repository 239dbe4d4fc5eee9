"""Container image reference parser for conscanner.

Splits a raw candidate string into registry, repository and tag using the
first-segment registry detection rule, with Docker Hub normalization.
"""

from __future__ import annotations

import re

from .models import DEFAULT_REGISTRY, DEFAULT_SCHEME, ImageReference

_TAG_PATTERN: re.Pattern[str] = re.compile(r"\w[\w.-]{0,127}", re.ASCII)

# Docker Hub host aliases that should be normalized
_DOCKER_HUB_HOSTS: frozenset[str] = frozenset({
    "docker.io",
    "index.docker.io",
    "registry-1.docker.io",
})


class ImageReferenceError(ValueError):
    """Raised when a raw reference cannot be turned into registry/repository/tag."""


def _has_registry_host(first_segment: str) -> bool:
    """Determine whether the first path segment is a registry host."""
    return first_segment == "localhost" or "." in first_segment or ":" in first_segment


def _normalize_registry(registry: str) -> str:
    """Collapse Docker Hub host aliases onto the default registry name."""
    if registry in _DOCKER_HUB_HOSTS:
        return DEFAULT_REGISTRY
    return registry


def split_registry(image: str) -> tuple[str | None, str]:
    """Split an explicit registry host off a reference.

    The first ``/``-separated segment is a registry when it is ``localhost``
    or contains a ``.`` or ``:``. A reference without any ``/`` never names a
    registry.

    Returns:
        ``(registry, remainder)``; ``registry`` is ``None`` when the reference
        has no explicit registry and ``remainder`` is then the whole input.
    """
    first_segment, sep, remainder = image.partition("/")
    if sep and _has_registry_host(first_segment):
        return first_segment, remainder
    return None, image


def parse_image_reference(image: str, scheme: str = DEFAULT_SCHEME) -> ImageReference:
    """Parse a raw container image reference into structured components.

    Args:
        image: Raw reference as found by an extractor.
        scheme: Transport scheme recorded on the result.

    Returns:
        The parsed ``ImageReference``.

    Raises:
        ImageReferenceError: If the reference is empty, has an empty
            repository, or carries no tag matching ``\w[\w.-]{0,127}``.
    """
    if not image or not image.strip():
        raise ImageReferenceError("Image reference must not be empty")

    working = image.strip()

    # Step 1: Strip any @digest suffix before parsing
    digest: str | None = None
    if "@" in working:
        working, _, digest = working.partition("@")

    # Step 2: Determine registry host
    registry, remainder = split_registry(working)
    registry = _normalize_registry(registry) if registry else DEFAULT_REGISTRY

    # Step 3: Split repository and tag on the first colon
    repository, sep, tag = remainder.partition(":")
    if not sep:
        raise ImageReferenceError(f"Image reference '{image}' has no tag")

    repository = repository.strip("/")
    if not repository:
        raise ImageReferenceError(f"Image reference '{image}' has an empty repository")
    if not tag:
        raise ImageReferenceError(f"Image reference '{image}' has an empty tag")
    if not _TAG_PATTERN.fullmatch(tag):
        raise ImageReferenceError(f"Image reference '{image}' has an invalid tag '{tag}'")

    return ImageReference(
        registry=registry,
        repository=repository,
        tag=tag,
        scheme=scheme,
        digest=digest,
    )
