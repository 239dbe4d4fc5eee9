"""Structural image reference extraction from parsed YAML.

Recognizes the chart-values convention::

    image:
      registry: docker.io
      repository: bitnami/nginx
      tag: 1.25.3

anywhere in a document and synthesizes ``registry/repository:tag`` from it.
A plain ``image: nginx:1.25`` scalar is collected as written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import yaml

from .pattern_extractor import read_text
from .reference_set import ReferenceSet
from .yaml_tree import Mapping, Node, NodeVisitor, Scalar, Sequence, parse_documents

logger = logging.getLogger(__name__)

IMAGE_KEY: str = "image"

# Markers of unrendered Helm/Go or shell templates
_TEMPLATE_MARKERS: tuple[str, ...] = ("{{", "${")


def _scalar_text(node: Node | None) -> str:
    return node.value if isinstance(node, Scalar) else ""


def synthesize_reference(image: Mapping) -> str:
    """Build ``registry/repository:tag`` from an ``image`` mapping; missing parts are empty."""
    registry = _scalar_text(image.get("registry"))
    repository = _scalar_text(image.get("repository"))
    tag = _scalar_text(image.get("tag"))
    return f"{registry}/{repository}:{tag}"


class ImageFieldCollector(NodeVisitor[None]):
    """Visitor collecting references from every ``image`` key in a tree."""

    def __init__(self) -> None:
        self.references: list[str] = []

    def visit_scalar(self, node: Scalar) -> None:
        return None

    def visit_sequence(self, node: Sequence) -> None:
        for item in node.items:
            self.visit(item)

    def visit_mapping(self, node: Mapping) -> None:
        for key, value in node.entries:
            if isinstance(key, Scalar) and key.value == IMAGE_KEY:
                self._collect(value)
            self.visit(value)

    def _collect(self, value: Node) -> None:
        if isinstance(value, Mapping):
            self.references.append(synthesize_reference(value))
        elif isinstance(value, Scalar):
            text = value.value.strip()
            if text and not any(marker in text for marker in _TEMPLATE_MARKERS):
                self.references.append(text)


def collect_image_references(node: Node) -> list[str]:
    """Return every reference found in ``node``, in document order."""
    collector = ImageFieldCollector()
    collector.visit(node)
    return collector.references


def extract_file_by_fields(reference_set: ReferenceSet, path: str) -> int:
    """Parse ``path`` and add its ``image`` field references to ``reference_set``.

    Unreadable or unparseable files are logged and skipped.

    Returns:
        Number of references that were new to the set.
    """
    content = read_text(path)
    if content is None:
        return 0

    try:
        documents = parse_documents(content)
    except yaml.YAMLError as e:
        logger.warning(f"Unable to load YAML file ({path}): {e}")
        return 0

    added = 0
    for document in documents:
        added += reference_set.update(collect_image_references(document))
    return added


def extract_by_fields(reference_set: ReferenceSet, yaml_files: Iterable[str]) -> None:
    for path in yaml_files:
        added = extract_file_by_fields(reference_set, path)
        logger.debug(f"Structural extraction found {added} new references in {path}")
