"""Unit tests for the image_parser module.

Tests ``parse_image_reference()`` and ``split_registry()`` against the
registry-detection rule, Docker Hub normalization and rejection cases.
"""

from __future__ import annotations

import pytest

from conscanner.image_parser import ImageReferenceError, parse_image_reference, split_registry

# ---------------------------------------------------------------------------
# Registry detection
# ---------------------------------------------------------------------------


class TestRegistryDetection:
    """Tests for the first-segment registry detection rule."""

    @pytest.mark.parametrize(
        ("image", "expected_registry", "expected_repository", "expected_tag"),
        [
            pytest.param("nginx:latest", "docker.io", "nginx", "latest", id="bare-name"),
            pytest.param("localhost:5000/app:1", "localhost:5000", "app", "1", id="localhost-port"),
            pytest.param("quay.io/org/app:v2", "quay.io", "org/app", "v2", id="dotted-host"),
            pytest.param("localhost/app:2", "localhost", "app", "2", id="localhost"),
            pytest.param("bitnami/redis:7.2", "docker.io", "bitnami/redis", "7.2", id="hub-namespace"),
            pytest.param(
                "registry.example.com:8443/team/svc/api:1.0.0",
                "registry.example.com:8443",
                "team/svc/api",
                "1.0.0",
                id="host-with-port-nested",
            ),
        ],
    )
    def test_registry_detection(
        self,
        image: str,
        expected_registry: str,
        expected_repository: str,
        expected_tag: str,
    ) -> None:
        """Verify registry, repository and tag for common reference shapes.

        Args:
            image: The raw reference string.
            expected_registry: Expected registry after normalization.
            expected_repository: Expected repository path.
            expected_tag: Expected tag.
        """
        result = parse_image_reference(image)

        assert result.registry == expected_registry
        assert result.repository == expected_repository
        assert result.tag == expected_tag
        assert result.scheme == "https"

    def test_dotted_single_segment_is_treated_as_registry(self) -> None:
        """Verify a dotted first segment is a registry even if it was meant as a repository."""
        result = parse_image_reference("my.repo/app:1")

        assert result.registry == "my.repo"
        assert result.repository == "app"

    def test_split_registry_without_slash(self) -> None:
        """Verify a reference without '/' never names a registry."""
        assert split_registry("nginx:latest") == (None, "nginx:latest")

    def test_split_registry_plain_namespace(self) -> None:
        """Verify an undotted first segment stays part of the repository."""
        assert split_registry("library/nginx:1") == (None, "library/nginx:1")


# ---------------------------------------------------------------------------
# Docker Hub normalization
# ---------------------------------------------------------------------------


class TestDockerHubNormalization:
    """Tests for Docker Hub host alias normalization."""

    @pytest.mark.parametrize("host", ["docker.io", "index.docker.io", "registry-1.docker.io"])
    def test_hub_aliases_normalize(self, host: str) -> None:
        """Verify every Docker Hub alias collapses to docker.io."""
        result = parse_image_reference(f"{host}/library/alpine:3.18")

        assert result.registry == "docker.io"
        assert result.repository == "library/alpine"
        assert result.tag == "3.18"

    def test_canonical_form(self) -> None:
        """Verify the canonical uniqueness key."""
        assert parse_image_reference("nginx:1.25").canonical == "docker.io/nginx:1.25"


# ---------------------------------------------------------------------------
# Normalization of structural candidates
# ---------------------------------------------------------------------------


class TestStructuralCandidates:
    """Tests for references synthesized from ``image`` mappings."""

    def test_empty_registry_candidate(self) -> None:
        """Verify '/repo:tag' (no registry field) defaults to docker.io."""
        result = parse_image_reference("/bitnami/redis:7.2.4")

        assert result.registry == "docker.io"
        assert result.repository == "bitnami/redis"
        assert result.tag == "7.2.4"

    def test_all_fields_empty_rejected(self) -> None:
        """Verify the '/:' candidate of an empty image mapping is rejected."""
        with pytest.raises(ImageReferenceError, match="empty repository"):
            parse_image_reference("/:")

    def test_empty_tag_rejected(self) -> None:
        """Verify a candidate with an empty tag field is rejected."""
        with pytest.raises(ImageReferenceError, match="empty tag"):
            parse_image_reference("docker.io/nginx:")


# ---------------------------------------------------------------------------
# Digests and rejection
# ---------------------------------------------------------------------------


class TestDigestsAndRejection:
    """Tests for @digest handling and missing-tag rejection."""

    def test_digest_is_split_from_tag(self) -> None:
        """Verify '@digest' is kept apart from the tag."""
        digest = "sha256:" + "a" * 64
        result = parse_image_reference(f"quay.io/org/app:v2@{digest}")

        assert result.tag == "v2"
        assert result.digest == digest

    def test_digest_without_tag_rejected(self) -> None:
        """Verify a digest-only reference has no tag and is rejected."""
        with pytest.raises(ImageReferenceError, match="has no tag"):
            parse_image_reference("quay.io/org/app@sha256:" + "b" * 64)

    def test_missing_tag_rejected(self) -> None:
        """Verify a reference with no ':' after the registry is rejected."""
        with pytest.raises(ImageReferenceError, match="has no tag"):
            parse_image_reference("localhost:5000/app")

    @pytest.mark.parametrize(
        "image",
        [
            pytest.param("/org/app:../../escape", id="slash-in-tag"),
            pytest.param("quay.io/org/app:-leading-dash", id="leading-dash"),
            pytest.param("quay.io/org/app:v1:extra", id="second-colon"),
            pytest.param("quay.io/org/app:" + "x" * 129, id="too-long"),
        ],
    )
    def test_invalid_tag_rejected(self, image: str) -> None:
        """Verify tags outside the tag grammar are rejected before any lookup.

        Args:
            image: Candidate whose tag is not ``\\w[\\w.-]{0,127}``.
        """
        with pytest.raises(ImageReferenceError, match="invalid tag"):
            parse_image_reference(image)

    def test_longest_valid_tag_accepted(self) -> None:
        """Verify a 128 character tag is still valid."""
        result = parse_image_reference("quay.io/org/app:" + "x" * 128)

        assert len(result.tag) == 128

    def test_registry_only_rejected(self) -> None:
        """Verify a registry with nothing after it is rejected."""
        with pytest.raises(ImageReferenceError):
            parse_image_reference("quay.io/")

    @pytest.mark.parametrize("image", ["", "   "])
    def test_empty_raises_value_error(self, image: str) -> None:
        """Verify empty input raises a ValueError subclass."""
        with pytest.raises(ValueError, match="must not be empty"):
            parse_image_reference(image)

    def test_whitespace_is_stripped(self) -> None:
        """Verify leading/trailing whitespace is ignored."""
        result = parse_image_reference("  redis:alpine  ")

        assert result.repository == "redis"
        assert result.tag == "alpine"
