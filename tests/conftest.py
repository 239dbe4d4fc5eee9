"""Shared pytest fixtures for the conscanner test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conscanner.models import ImageRecord, ImagesDocument

KNOWN_IMAGES: frozenset[str] = frozenset({
    "docker.io/nginx:1.25",
    "docker.io/bitnami/redis:7.2.4",
    "quay.io/prometheus/node-exporter:v1.7.0",
    "localhost:5000/app:1",
})


def _mock_lookup(known: frozenset[str]) -> MagicMock:
    lookup = MagicMock()
    lookup.exists.side_effect = lambda registry, repository, tag: f"{registry}/{repository}:{tag}" in known
    return lookup


@pytest.fixture()
def fake_lookup() -> MagicMock:
    """Return a mock ``ImageLookup`` that confirms a handful of well-known images.

    Returns:
        A MagicMock whose ``exists`` knows nginx, bitnami/redis, a quay.io
        image and a local registry image.
    """
    return _mock_lookup(KNOWN_IMAGES)


@pytest.fixture()
def empty_lookup() -> MagicMock:
    """Return a mock ``ImageLookup`` that confirms nothing."""
    return _mock_lookup(frozenset())


@pytest.fixture()
def fake_scanner() -> MagicMock:
    """Return a mock ``Scanner`` echoing the scanned reference as JSON bytes."""
    scanner = MagicMock()
    scanner.scan.side_effect = lambda reference: f'{{"source": "{reference}"}}'.encode()
    return scanner


@pytest.fixture()
def sample_document() -> ImagesDocument:
    """Return an images document with one Docker Hub and one quay.io record."""
    return ImagesDocument(
        images=[
            ImageRecord(scheme="https", registry="docker.io", image="bitnami/redis", tag="7.2.4"),
            ImageRecord(scheme="https", registry="quay.io", image="prometheus/node-exporter", tag="v1.7.0"),
        ]
    )


@pytest.fixture()
def manifest_tree(tmp_path: Path) -> Path:
    """Create a small manifest tree mixing both image reference styles.

    Layout::

        deploy/deployment.yaml      plain ``image:`` scalars in a pod spec
        charts/redis/values.yml     chart-style ``image:`` mapping
        charts/exporter/values.yaml nested mapping inside a sequence
        README.md                   ignored (not YAML)

    Returns:
        The root directory of the tree.
    """
    deploy = tmp_path / "deploy"
    deploy.mkdir()
    (deploy / "deployment.yaml").write_text(
        "apiVersion: apps/v1\n"
        "kind: Deployment\n"
        "spec:\n"
        "  template:\n"
        "    spec:\n"
        "      containers:\n"
        "        - name: web\n"
        "          image: nginx:1.25\n"
        "        - name: sidecar\n"
        "          image: localhost:5000/app:1\n"
    )

    redis = tmp_path / "charts" / "redis"
    redis.mkdir(parents=True)
    (redis / "values.yml").write_text(
        "image:\n"
        "  registry: docker.io\n"
        "  repository: bitnami/redis\n"
        "  tag: 7.2.4\n"
    )

    exporter = tmp_path / "charts" / "exporter"
    exporter.mkdir(parents=True)
    (exporter / "values.yaml").write_text(
        "exporters:\n"
        "  - name: node\n"
        "    image:\n"
        "      registry: quay.io\n"
        "      repository: prometheus/node-exporter\n"
        "      tag: v1.7.0\n"
    )

    (tmp_path / "README.md").write_text("see quay.io/prometheus/node-exporter:v1.7.0\n")
    return tmp_path
