"""conscanner — container image discovery and vulnerability reporting.

Find container image references in YAML manifests, validate them against
their registry, and scan the validated images for vulnerabilities.
"""

import logging

from conscanner._version import __version__
from conscanner.models import ImageRecord, ImageReference, ImagesDocument

__all__ = ["ImageRecord", "ImageReference", "ImagesDocument", "__version__"]

logging.getLogger(__name__).addHandler(logging.NullHandler())
