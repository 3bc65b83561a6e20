"""
L4 Execution — Scoped workspaces.

Each installer invocation gets its own temporary directory, removed
when the invocation ends however it ends.  Use ``scoped_workspace()``
rather than pairing ``acquire``/``release`` by hand.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "provision-"


@dataclass
class ScopedWorkspace:
    """An exclusively owned temporary directory."""

    path: Path
    released: bool = False


def acquire(prefix: str = WORKSPACE_PREFIX) -> ScopedWorkspace:
    """Create a uniquely named temporary directory."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Acquired workspace %s", path)
    return ScopedWorkspace(path=path)


def release(workspace: ScopedWorkspace) -> None:
    """Recursively delete ``workspace``.

    Releasing twice is a no-op; the directory is removed exactly once.
    """
    if workspace.released:
        return
    workspace.released = True
    try:
        shutil.rmtree(workspace.path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove workspace %s: %s", workspace.path, e)
        return
    logger.debug("Released workspace %s", workspace.path)


@contextmanager
def scoped_workspace(prefix: str = WORKSPACE_PREFIX) -> Iterator[ScopedWorkspace]:
    """Bracket a block with ``acquire``/``release``."""
    workspace = acquire(prefix)
    try:
        yield workspace
    finally:
        release(workspace)
