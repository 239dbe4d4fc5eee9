"""Data models for conscanner image discovery and reporting."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

# ---------------------------------------------------------------------------
# Constants: defaults shared by the CLI and the pipelines
# ---------------------------------------------------------------------------
DEFAULT_REGISTRY: str = "docker.io"  # Registry assumed when a reference names none.

DEFAULT_SCHEME: str = "https"  # Transport scheme recorded for every validated image.

DEFAULT_HUB_URL: str = "https://hub.docker.com"  # Docker Hub API used for docker.io lookups.

DEFAULT_IMAGES_FILE: str = "images.json"

DEFAULT_REPORT_DIR: str = "conscanner-reports"

DEFAULT_SCANNER_COMMAND: str = "grype"

DEFAULT_THREAD_POOL_WORKERS: int = 8  # Thread-pool size for file extraction and registry lookups.

DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 10.0  # Per-call timeout for registry requests.

DEFAULT_SCAN_TIMEOUT_SECONDS: int = 600  # Per-image timeout for the vulnerability scanner.

YAML_EXTENSIONS: tuple[str, ...] = (".yaml", ".yml")


@dataclass(frozen=True)
class ImageReference:
    """Parsed container image reference.

    Produced by :func:`conscanner.image_parser.parse_image_reference` from a
    raw candidate string. ``digest`` is carried through for logging only and
    never persisted.
    """

    registry: str
    repository: str
    tag: str
    scheme: str = DEFAULT_SCHEME
    digest: str | None = None

    @property
    def canonical(self) -> str:
        """Return the ``registry/repository:tag`` uniqueness key."""
        return f"{self.registry}/{self.repository}:{self.tag}"


@dataclass(frozen=True)
class ImageRecord:
    """A registry-confirmed image, as persisted in ``images.json``.

    Attributes:
        scheme: Transport scheme used to reach the registry API.
        registry: Registry hostname (with optional port).
        image: Repository path within the registry.
        tag: Image tag.
    """

    scheme: str
    registry: str
    image: str
    tag: str

    @classmethod
    def from_reference(cls, reference: ImageReference) -> ImageRecord:
        return cls(
            scheme=reference.scheme,
            registry=reference.registry,
            image=reference.repository,
            tag=reference.tag,
        )

    @property
    def canonical(self) -> str:
        return f"{self.registry}/{self.image}:{self.tag}"

    def scan_reference(self, qualified: bool = False) -> str:
        """Return the reference handed to the vulnerability scanner.

        Args:
            qualified: Prefix the registry for images not hosted on the
                default registry.

        Returns:
            ``repository:tag``, or ``registry/repository:tag`` when
            ``qualified`` is set and the registry is not the default one.
        """
        if qualified and self.registry != DEFAULT_REGISTRY:
            return self.canonical
        return f"{self.image}:{self.tag}"


@dataclass
class ImagesDocument:
    """Top-level ``images.json`` document."""

    images: list[ImageRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        """Serialise the document to a plain dict suitable for JSON output."""
        return {"images": [asdict(record) for record in self.images]}

    @classmethod
    def from_dict(cls, data: object) -> ImagesDocument:
        """Build a document from decoded JSON.

        Raises:
            ValueError: If ``data`` does not have the ``images`` array shape or a
                record is missing one of its string fields.
        """
        if not isinstance(data, dict) or not isinstance(data.get("images"), list):
            raise ValueError("Document must be an object with an 'images' array")

        records: list[ImageRecord] = []
        for idx, entry in enumerate(data["images"]):
            if not isinstance(entry, dict):
                raise ValueError(f"Entry {idx} is not an object")
            values: dict[str, str] = {}
            for name in ("scheme", "registry", "image", "tag"):
                value = entry.get(name)
                if not isinstance(value, str):
                    raise ValueError(f"Entry {idx} has no string field '{name}'")
                values[name] = value
            records.append(ImageRecord(**values))
        return cls(images=records)


@dataclass
class ReportSummary:
    """Outcome of a report run, keyed by scanner reference."""

    generated: dict[str, str] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
