"""
Tarball installers.

``UserArchiveStrategy`` keeps the whole extracted payload under
``~/.local/share/<Vendor>/<App>`` and links its launcher into
``~/.local/bin``.  Re-running it replaces the previous install
completely, so N runs leave the same state as one.

``SystemArchiveStrategy`` unpacks into a root-owned prefix such as
``/opt/<app>`` with a link in ``/usr/local/bin``.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
from pathlib import Path

from src.core.services.provision.domain.artifacts import LocalArtifact
from src.core.services.provision.domain.errors import InstallFailedError
from src.core.services.provision.execution.subprocess_runner import run_command
from src.core.services.provision.strategies.base import InstallerStrategy
from src.core.services.provision.strategies.resolvers import Resolver

logger = logging.getLogger(__name__)


def _remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree if present."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


class UserArchiveStrategy(InstallerStrategy):
    """Install a self-contained tarball into the user's home."""

    privileged = False

    def __init__(
        self,
        resolver: Resolver,
        *,
        dir_prefix: str,
        install_dir: Path,
        launcher: str,
        bin_dir: Path,
        link_name: str,
        timeout: float | None = None,
    ) -> None:
        super().__init__(resolver, timeout=timeout)
        self.dir_prefix = dir_prefix
        self.install_dir = install_dir
        self.launcher = launcher
        self.bin_dir = bin_dir
        self.link_name = link_name

    @property
    def link_path(self) -> Path:
        return self.bin_dir / self.link_name

    def _extract(self, artifact: LocalArtifact) -> Path:
        """Unpack into the workspace and return the single payload directory."""
        target = artifact.workspace or artifact.path.parent
        try:
            with tarfile.open(artifact.path, "r:*") as tar:
                tar.extractall(target, filter="data")
        except (tarfile.TarError, OSError) as e:
            raise InstallFailedError(f"Failed to extract {self.label}: {e}") from e

        candidates = [
            p for p in target.iterdir()
            if p.is_dir() and not p.is_symlink() and p.name.startswith(self.dir_prefix)
        ]
        if len(candidates) != 1:
            raise InstallFailedError(
                f"Expected one extracted '{self.dir_prefix}*' directory, "
                f"found {len(candidates)}."
            )
        return candidates[0]

    def install(self, artifact: LocalArtifact) -> None:
        extracted = self._extract(artifact)

        # Replace any existing install
        try:
            self.install_dir.parent.mkdir(parents=True, exist_ok=True)
            _remove_path(self.install_dir)
            shutil.move(str(extracted), str(self.install_dir))
        except OSError as e:
            raise InstallFailedError(
                f"Failed to move {self.label} into {self.install_dir}: {e}"
            ) from e
        logger.debug("Installed %s payload at %s", self.label, self.install_dir)

        launcher = self.install_dir / self.launcher
        if not (launcher.is_file() and os.access(launcher, os.X_OK)):
            raise InstallFailedError(
                f"{self.label} launcher not found or not executable at: {launcher}"
            )

        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
            if self.link_path.is_symlink() or self.link_path.exists():
                self.link_path.unlink()
            self.link_path.symlink_to(launcher)
        except OSError as e:
            raise InstallFailedError(
                f"Failed to create symlink {self.link_path}: {e}"
            ) from e


class SystemArchiveStrategy(InstallerStrategy):
    """Unpack a tarball into a system prefix with ``sudo tar``."""

    requires = ("tar", "mkdir", "ln")

    def __init__(
        self,
        resolver: Resolver,
        *,
        install_dir: str,
        launcher: str,
        link_path: str,
        timeout: float | None = None,
    ) -> None:
        super().__init__(resolver, timeout=timeout)
        self.install_dir = install_dir
        self.launcher = launcher
        self.link_path = link_path

    def install(self, artifact: LocalArtifact) -> None:
        if not run_command(["mkdir", "-p", self.install_dir], sudo=True).ok:
            raise InstallFailedError(f"Failed to create {self.label} installation directory.")
        if not run_command(
            ["tar", "-xf", str(artifact.path), "-C", self.install_dir, "--strip-components=1"],
            sudo=True,
        ).ok:
            raise InstallFailedError(f"Failed to extract {self.label}.")
        launcher = f"{self.install_dir}/{self.launcher}"
        if not run_command(["ln", "-sf", launcher, self.link_path], sudo=True).ok:
            raise InstallFailedError(f"Failed to create symbolic link for {self.label}.")
