"""
L1 Domain — Values passed between the steps of an installer strategy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.services.provision.execution.workspace import ScopedWorkspace
    from src.core.services.provision.strategies.base import InstallerStrategy


@dataclass(frozen=True)
class ArtifactRef:
    """Where a release artifact lives.

    ``raw`` keeps the response the URL was resolved from (empty for
    static URLs).
    """

    url: str
    filename: str
    raw: str = ""


@dataclass(frozen=True)
class LocalArtifact:
    """A fetched artifact on local disk."""

    path: Path
    ref: ArtifactRef
    workspace: Path | None = None


@dataclass(frozen=True)
class SoftwareDescriptor:
    """Registry entry: one application under one packaging family."""

    id: str
    display_name: str
    strategy: InstallerStrategy


@dataclass
class InstallPlan:
    """One selected application being installed in this run."""

    descriptor: SoftwareDescriptor
    workspace: ScopedWorkspace
    resolved_artifact_url: str | None = None
    steps: list[str] = field(default_factory=list)
