"""
Artifact resolvers — where does the latest release live?

Four variants:

- ``JsonApiResolver``        product API returning a nested download link
- ``GithubReleaseResolver``  latest GitHub release, asset matched by name
- ``RedirectResolver``       the final redirected URL is the artifact
- ``StaticUrlResolver``      constant, architecture-specific template

Every resolved URL passes ``validate_artifact_url`` before it is
returned, so nothing is ever fetched from a bad location.
"""

from __future__ import annotations

import logging
import platform
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from src.core.services.provision.domain.artifacts import ArtifactRef
from src.core.services.provision.domain.errors import InvalidArtifactUrlError
from src.core.services.provision.execution.download import fetch_json, resolve_redirect

logger = logging.getLogger(__name__)

# uname -m → distribution naming
DEB_ARCH = {"x86_64": "amd64", "aarch64": "arm64", "arm64": "arm64"}
RPM_ARCH = {"x86_64": "x86_64", "amd64": "x86_64", "aarch64": "aarch64", "arm64": "aarch64"}


def validate_artifact_url(label: str, url: Any, raw: str = "") -> str:
    """Return ``url`` if it is a non-empty ``https://`` string.

    Raises:
        InvalidArtifactUrlError: carrying ``raw`` for diagnosis.
    """
    if not isinstance(url, str) or not url or not url.startswith("https://"):
        if raw:
            logger.debug("Response received while resolving %s: %s", label, raw)
        raise InvalidArtifactUrlError(label, url if isinstance(url, str) else repr(url), raw)
    return url


def dig(document: Any, path: Sequence[str | int]) -> Any:
    """Walk ``path`` through nested dicts/lists; ``None`` if any hop is missing."""
    node = document
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or not -len(node) <= key < len(node):
                return None
        elif not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


class Resolver(ABC):
    """Produces a validated ``ArtifactRef``."""

    def __init__(self, label: str, filename: str, *, timeout: float | None = None) -> None:
        self.label = label
        self.filename = filename
        self.timeout = timeout

    @abstractmethod
    def resolve(self) -> ArtifactRef:
        """Locate the artifact.

        Raises:
            NetworkError: the lookup request failed.
            InvalidArtifactUrlError: the location failed validation.
        """

    def _ref(self, url: Any, raw: str = "") -> ArtifactRef:
        url = validate_artifact_url(self.label, url, raw)
        logger.info("Latest %s URL: %s", self.label, url)
        return ArtifactRef(url=url, filename=self.filename, raw=raw)


class JsonApiResolver(Resolver):
    """Download link at a fixed path inside a JSON document."""

    def __init__(
        self,
        label: str,
        filename: str,
        *,
        endpoint: str,
        path: Sequence[str | int],
        timeout: float | None = None,
    ) -> None:
        super().__init__(label, filename, timeout=timeout)
        self.endpoint = endpoint
        self.path = tuple(path)

    def resolve(self) -> ArtifactRef:
        document, raw = fetch_json(self.endpoint, timeout=self.timeout)
        return self._ref(dig(document, self.path), raw)


class GithubReleaseResolver(Resolver):
    """First asset of the latest release whose name matches ``pattern``."""

    API = "https://api.github.com/repos/{repo}/releases/latest"

    def __init__(
        self,
        label: str,
        filename: str,
        *,
        repo: str,
        pattern: str,
        timeout: float | None = None,
    ) -> None:
        super().__init__(label, filename, timeout=timeout)
        self.repo = repo
        self.pattern = re.compile(pattern)

    @property
    def endpoint(self) -> str:
        return self.API.format(repo=self.repo)

    def resolve(self) -> ArtifactRef:
        document, raw = fetch_json(self.endpoint, timeout=self.timeout)
        assets = document.get("assets", []) if isinstance(document, dict) else document
        url = ""
        for asset in assets if isinstance(assets, list) else []:
            if isinstance(asset, dict) and self.pattern.search(str(asset.get("name", ""))):
                url = asset.get("browser_download_url", "")
                break
        return self._ref(url, raw)


class RedirectResolver(Resolver):
    """The redirect target of ``url`` is the artifact location."""

    def __init__(self, label: str, filename: str, *, url: str, timeout: float | None = None) -> None:
        super().__init__(label, filename, timeout=timeout)
        self.url = url

    def resolve(self) -> ArtifactRef:
        final = resolve_redirect(self.url, timeout=self.timeout)
        return self._ref(final, final)


class StaticUrlResolver(Resolver):
    """Constant URL; ``{arch}`` is filled from ``uname -m`` via ``arch_names``."""

    def __init__(
        self,
        label: str,
        filename: str,
        *,
        template: str,
        arch_names: Mapping[str, str] | None = None,
        machine: str | None = None,
    ) -> None:
        super().__init__(label, filename)
        self.template = template
        self.arch_names = dict(arch_names or {})
        self.machine = machine

    @property
    def arch(self) -> str:
        machine = (self.machine or platform.machine()).lower()
        return self.arch_names.get(machine, machine)

    def resolve(self) -> ArtifactRef:
        url = self.template.format(arch=self.arch) if "{arch}" in self.template else self.template
        return self._ref(url)
