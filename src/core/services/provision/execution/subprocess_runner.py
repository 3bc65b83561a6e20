"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for update and
install operations.  Privilege escalation, logging, and tool lookup
are centralised here.

Privilege rules:
- ``sudo`` is prepended per command, never cached or pre-authorised
- ``sudo`` must be on PATH before a privileged command runs
- already running as root → no prefix
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from src.core.services.provision.domain.errors import MissingDependencyError

logger = logging.getLogger(__name__)

SUDO = "sudo"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command."""

    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def has_tool(name: str) -> bool:
    """Check whether ``name`` is on PATH."""
    return shutil.which(name) is not None


def require_tool(name: str) -> str:
    """Resolve ``name`` on PATH.

    Raises:
        MissingDependencyError: ``name`` is not installed.
    """
    path = shutil.which(name)
    if path is None:
        raise MissingDependencyError(name)
    return path


def require_tools(names: Iterable[str]) -> None:
    """Check every tool in ``names`` before any side effect happens."""
    for name in names:
        require_tool(name)


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def ensure_privileges() -> None:
    """Precondition for state-changing commands.

    Raises:
        MissingDependencyError: not root and ``sudo`` is absent.
    """
    if not _is_root():
        require_tool(SUDO)


def run_command(
    cmd: Sequence[str],
    *,
    sudo: bool = False,
    input_text: str | None = None,
) -> CommandResult:
    """Run ``cmd`` to completion and report its exit status.

    Output streams straight to the terminal, since package-manager
    upgrades can run for minutes; it is captured only when
    ``input_text`` is fed to the command.  There is no timeout.

    Args:
        cmd: Command list.
        sudo: Run with elevated privileges.
        input_text: Text fed to the command's stdin.

    Raises:
        MissingDependencyError: ``sudo`` requested but unavailable, or
            the executable itself is not found.
    """
    argv = list(cmd)
    if sudo:
        ensure_privileges()
        if not _is_root():
            argv = [SUDO] + argv

    logger.info("$ %s", " ".join(argv))

    start = time.monotonic()
    try:
        result = subprocess.run(
            argv,
            input=input_text,
            capture_output=input_text is not None,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        raise MissingDependencyError(argv[0]) from None
    elapsed_ms = int((time.monotonic() - start) * 1000)

    stdout = result.stdout[-2000:] if result.stdout else ""
    stderr = result.stderr[-2000:] if result.stderr else ""
    if result.returncode != 0:
        logger.debug("Command failed (exit %d): %s", result.returncode, stderr.strip())

    return CommandResult(
        cmd=tuple(argv),
        returncode=result.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_ms=elapsed_ms,
    )


def write_privileged_file(path: str, content: str) -> CommandResult:
    """Write ``content`` to a root-owned ``path`` through ``sudo tee``."""
    return run_command(["tee", path], sudo=True, input_text=content)
