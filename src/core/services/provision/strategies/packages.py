"""
Package-file and repository installers for the Debian and RPM families.

Retry depth differs on purpose between the two families:

- ``.deb``: ``dpkg -i``; on failure one ``apt-get install -f`` repair
  pass and exactly one retry.
- ``.rpm``: a single ``dnf install``; no repair, no retry.
"""

from __future__ import annotations

import logging
from pathlib import Path

from src.core.services.provision.domain.artifacts import ArtifactRef, LocalArtifact
from src.core.services.provision.domain.errors import InstallFailedError
from src.core.services.provision.execution.download import download_file
from src.core.services.provision.execution.subprocess_runner import (
    run_command,
    write_privileged_file,
)
from src.core.services.provision.execution.workspace import ScopedWorkspace
from src.core.services.provision.strategies.base import InstallerStrategy
from src.core.services.provision.strategies.resolvers import Resolver

logger = logging.getLogger(__name__)


# ── Debian family ───────────────────────────────────────────────


class DebPackageStrategy(InstallerStrategy):
    """Download a ``.deb`` and install it with dpkg, repairing once.

    With ``download_to_cwd`` the package is written to the current
    working directory instead of the workspace and removed after a
    successful install; a failed install leaves it in place.
    """

    requires = ("dpkg", "apt-get")

    def __init__(
        self,
        resolver: Resolver,
        *,
        download_to_cwd: bool = False,
        timeout: float | None = None,
    ) -> None:
        super().__init__(resolver, timeout=timeout)
        self.download_to_cwd = download_to_cwd

    def fetch(self, ref: ArtifactRef, workspace: ScopedWorkspace) -> LocalArtifact:
        if not self.download_to_cwd:
            return super().fetch(ref, workspace)
        dest = Path.cwd() / ref.filename
        download_file(ref.url, dest, timeout=self.timeout)
        if not dest.is_file():
            raise InstallFailedError(f"{self.label} .deb package not found after download.")
        return LocalArtifact(path=dest, ref=ref)

    def install(self, artifact: LocalArtifact) -> None:
        package = str(artifact.path)
        if not run_command(["dpkg", "-i", package], sudo=True).ok:
            logger.warning("Resolving dependencies and retrying installation...")
            if not run_command(["apt-get", "install", "-f", "-y"], sudo=True).ok:
                raise InstallFailedError(f"Failed to resolve dependencies for {self.label}.")
            if not run_command(["dpkg", "-i", package], sudo=True).ok:
                raise InstallFailedError(
                    f"Failed to install {self.label} after resolving dependencies."
                )

        if self.download_to_cwd:
            try:
                artifact.path.unlink(missing_ok=True)
            except OSError as e:
                raise InstallFailedError(
                    f"Failed to clean up {self.label} temporary files: {e}"
                ) from e


class AptRepositoryStrategy(InstallerStrategy):
    """Register a third-party apt repository, then ``apt-get install``.

    The resolver locates the repository signing key; it is dearmored
    into ``keyring`` and referenced from the source list entry.
    """

    requires = ("gpg", "apt-get", "tee")

    def __init__(
        self,
        resolver: Resolver,
        *,
        package: str,
        repo_url: str,
        keyring: str,
        source_list: str,
        suite: str = "any",
        component: str = "main",
        timeout: float | None = None,
    ) -> None:
        super().__init__(resolver, timeout=timeout)
        self.package = package
        self.repo_url = repo_url
        self.keyring = keyring
        self.source_list = source_list
        self.suite = suite
        self.component = component

    @property
    def source_line(self) -> str:
        return f"deb [signed-by={self.keyring}] {self.repo_url} {self.suite} {self.component}\n"

    def install(self, artifact: LocalArtifact) -> None:
        if not run_command(
            ["gpg", "--batch", "--yes", "--dearmor", "-o", self.keyring, str(artifact.path)],
            sudo=True,
        ).ok:
            raise InstallFailedError(f"Failed to add {self.label} GPG key.")
        if not write_privileged_file(self.source_list, self.source_line).ok:
            raise InstallFailedError(f"Failed to add {self.label} repository.")
        if not run_command(["apt-get", "update"], sudo=True).ok:
            raise InstallFailedError(f"Failed to refresh package lists for {self.label}.")
        if not run_command(["apt-get", "install", "-y", self.package], sudo=True).ok:
            raise InstallFailedError(f"Failed to install {self.label}.")


# ── RPM family ──────────────────────────────────────────────────


class RpmPackageStrategy(InstallerStrategy):
    """Download an ``.rpm`` and install it with dnf, once."""

    requires = ("dnf",)

    def install(self, artifact: LocalArtifact) -> None:
        if not run_command(["dnf", "install", "-y", str(artifact.path)], sudo=True).ok:
            raise InstallFailedError(f"Failed to install {self.label}.")


class DnfRepositoryStrategy(InstallerStrategy):
    """Drop a ``.repo`` definition into yum.repos.d, then ``dnf install``.

    The resolver yields the repository ``baseurl``; fetch renders the
    definition locally, no download involved.
    """

    requires = ("dnf", "tee")

    def __init__(
        self,
        resolver: Resolver,
        *,
        package: str,
        repo_id: str,
        gpgkey: str,
        repo_dir: str = "/etc/yum.repos.d",
        timeout: float | None = None,
    ) -> None:
        super().__init__(resolver, timeout=timeout)
        self.package = package
        self.repo_id = repo_id
        self.gpgkey = gpgkey
        self.repo_dir = repo_dir

    @property
    def repo_file(self) -> str:
        return f"{self.repo_dir}/{self.repo_id}.repo"

    def render(self, baseurl: str) -> str:
        return (
            f"[{self.repo_id}]\n"
            f"name={self.repo_id}\n"
            f"baseurl={baseurl}\n"
            "enabled=1\n"
            "gpgcheck=1\n"
            f"gpgkey={self.gpgkey}\n"
        )

    def fetch(self, ref: ArtifactRef, workspace: ScopedWorkspace) -> LocalArtifact:
        dest = workspace.path / ref.filename
        dest.write_text(self.render(ref.url), encoding="utf-8")
        return LocalArtifact(path=dest, ref=ref, workspace=workspace.path)

    def install(self, artifact: LocalArtifact) -> None:
        content = artifact.path.read_text(encoding="utf-8")
        if not write_privileged_file(self.repo_file, content).ok:
            raise InstallFailedError(f"Failed to add {self.label} repository.")
        if not run_command(["dnf", "install", "-y", self.package], sudo=True).ok:
            raise InstallFailedError(f"Failed to install {self.label}.")
