"""
Installer strategy base — the contract between the orchestrator and
one application's install procedure.

A strategy is three independently failing steps:

    resolve()                 → ArtifactRef    (where is the latest release?)
    fetch(ref, workspace)     → LocalArtifact  (download it)
    install(artifact)         → None           (hand it to the packaging tool)

Strategies RAISE ``ProvisionError`` subclasses on failure; the
orchestrator decides what a failure means for the run.

To create a new strategy:
    1. Subclass InstallerStrategy (or a packaging-family subclass)
    2. Pass a Resolver for the artifact location
    3. Implement install(), declaring required tools in ``requires``
    4. Register it in the catalog for the families it supports
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.core.services.provision.domain.artifacts import ArtifactRef, LocalArtifact
from src.core.services.provision.execution.download import download_file
from src.core.services.provision.execution.subprocess_runner import (
    ensure_privileges,
    require_tools,
)
from src.core.services.provision.execution.workspace import ScopedWorkspace
from src.core.services.provision.strategies.resolvers import Resolver


class InstallerStrategy(ABC):
    """Resolve, fetch and install one application for one family."""

    #: Executables that must be on PATH before anything runs.
    requires: tuple[str, ...] = ()
    #: Whether install() runs privileged commands.
    privileged: bool = True

    def __init__(self, resolver: Resolver, *, timeout: float | None = None) -> None:
        self.resolver = resolver
        self.timeout = timeout

    @property
    def label(self) -> str:
        return self.resolver.label

    def check_requirements(self) -> None:
        """Raise ``MissingDependencyError`` before any side effect."""
        if self.privileged:
            ensure_privileges()
        require_tools(self.requires)

    def resolve(self) -> ArtifactRef:
        """Locate the artifact; the URL is already validated."""
        return self.resolver.resolve()

    def fetch(self, ref: ArtifactRef, workspace: ScopedWorkspace) -> LocalArtifact:
        """Download ``ref`` into the workspace."""
        dest = workspace.path / ref.filename
        download_file(ref.url, dest, timeout=self.timeout)
        return LocalArtifact(path=dest, ref=ref, workspace=workspace.path)

    @abstractmethod
    def install(self, artifact: LocalArtifact) -> None:
        """Install a fetched artifact.

        Raises:
            InstallFailedError: the packaging tool or a filesystem
                step rejected the artifact.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} label={self.label!r}>"
