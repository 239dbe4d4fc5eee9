"""Registry existence checks for conscanner.

``docker.io`` images are looked up through the Docker Hub repository API;
every other registry is asked for the tag's manifest over the OCI
distribution API, with an anonymous bearer token when the registry demands
one.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Protocol

import requests

from .models import DEFAULT_HUB_URL, DEFAULT_REGISTRY, DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_SCHEME

_MANIFEST_ACCEPT: str = ", ".join((
    "application/vnd.oci.image.index.v1+json",
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.docker.distribution.manifest.v2+json",
))

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class ImageLookup(Protocol):
    """Capability answering whether a registry serves ``repository:tag``."""

    def exists(self, registry: str, repository: str, tag: str) -> bool: ...


def parse_www_authenticate(header: str) -> tuple[str | None, dict[str, str]]:
    """Split a ``WWW-Authenticate`` challenge into its scheme and parameters.

    Example:
        ``Bearer realm="https://auth.example.com/token",service="registry"``
        gives ``("Bearer", {"realm": ..., "service": "registry"})``.
    """
    scheme, _, params = header.strip().partition(" ")
    if not scheme:
        return None, {}
    return scheme, dict(_CHALLENGE_PARAM.findall(params))


class RegistryClient:
    """Read-only registry lookups over ``requests`` sessions.

    Each calling thread uses its own ``requests.Session``; ``close`` closes
    all of them.

    Args:
        hub_url: Base URL of the Docker Hub API.
        timeout: Per-request timeout in seconds.
        scheme: Scheme used to reach registries other than Docker Hub.
        session: Optional pre-built session used by every thread (tests
            inject a mock).
    """

    def __init__(
        self,
        hub_url: str = DEFAULT_HUB_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        scheme: str = DEFAULT_SCHEME,
        session: requests.Session | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.hub_url = hub_url.rstrip("/")
        self.timeout = timeout
        self.scheme = scheme
        self._shared_session = session
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def session(self) -> requests.Session:
        """Session for the calling thread."""
        if self._shared_session is not None:
            return self._shared_session

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        if self._shared_session is not None:
            self._shared_session.close()
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def exists(self, registry: str, repository: str, tag: str) -> bool:
        """Return ``True`` if ``registry`` serves ``repository`` at ``tag``.

        Any HTTP error status, connection failure or timeout counts as "does
        not exist"; nothing is retried.
        """
        try:
            if registry == DEFAULT_REGISTRY:
                self._check_hub_tag(repository=repository, tag=tag)
            else:
                self._check_manifest(registry=registry, repository=repository, tag=tag)
        except (requests.RequestException, ValueError) as e:
            self.logger.warning(f"Invalid image or image does not exist ({registry}/{repository}:{tag}): {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Docker Hub
    # ------------------------------------------------------------------

    def hub_tag_url(self, repository: str, tag: str) -> str:
        # Official images live under the implicit library/ namespace
        if "/" not in repository:
            repository = f"library/{repository}"
        return f"{self.hub_url}/v2/repositories/{repository}/tags/{tag}"

    def _check_hub_tag(self, repository: str, tag: str) -> None:
        response = self.session.get(self.hub_tag_url(repository=repository, tag=tag), timeout=self.timeout)
        response.raise_for_status()

    # ------------------------------------------------------------------
    # OCI distribution API
    # ------------------------------------------------------------------

    def manifest_url(self, registry: str, repository: str, tag: str) -> str:
        return f"{self.scheme}://{registry}/v2/{repository}/manifests/{tag}"

    def _check_manifest(self, registry: str, repository: str, tag: str) -> None:
        url = self.manifest_url(registry=registry, repository=repository, tag=tag)
        headers = {"Accept": _MANIFEST_ACCEPT}

        response = self.session.head(url, headers=headers, timeout=self.timeout)
        if response.status_code == 401:
            token = self._fetch_token(response.headers.get("WWW-Authenticate", ""), repository=repository)
            if token:
                headers["Authorization"] = f"Bearer {token}"
                response = self.session.head(url, headers=headers, timeout=self.timeout)
        response.raise_for_status()

    def _fetch_token(self, challenge: str, repository: str) -> str | None:
        """Request an anonymous pull token for ``repository``.

        Returns:
            The token, or ``None`` when the challenge is not a bearer challenge.

        Raises:
            requests.RequestException: If the token endpoint fails.
            ValueError: If the token response carries no token.
        """
        auth_type, params = parse_www_authenticate(challenge)
        realm = params.get("realm")
        if not auth_type or auth_type.lower() != "bearer" or not realm:
            return None

        query = {"scope": params.get("scope") or f"repository:{repository}:pull"}
        if service := params.get("service"):
            query["service"] = service

        response = self.session.get(realm, params=query, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        token = (body.get("token") or body.get("access_token")) if isinstance(body, dict) else None
        if not token:
            raise ValueError("Invalid auth response, no token provided")
        return token
