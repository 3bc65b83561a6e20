"""
L4 Execution — Bulk system updates, one procedure per package family.

Each procedure refreshes the package index and upgrades everything.
``sudo`` availability is checked before the first state-changing
command; any non-zero exit aborts the procedure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from src.core.models.host import Family
from src.core.services.provision.domain.errors import CommandFailedError
from src.core.services.provision.execution.subprocess_runner import (
    ensure_privileges,
    has_tool,
    run_command,
)

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]

AUR_HELPER = "yay"

# Privileged refresh + upgrade sequences.
UPDATE_COMMANDS: dict[Family, tuple[tuple[str, ...], ...]] = {
    Family.APT: (
        ("apt-get", "update"),
        ("apt-get", "-y", "dist-upgrade"),
    ),
    Family.DNF: (
        ("dnf", "upgrade", "--refresh", "-y"),
    ),
    Family.PACMAN_ARCH: (
        ("pacman", "-Syu", "--noconfirm"),
    ),
    Family.PACMAN_MANJARO: (
        ("pacman", "-Syu", "--noconfirm"),
    ),
    Family.FREEBSD: (
        ("freebsd-update", "fetch", "install"),
        ("pkg", "update"),
        ("pkg", "upgrade", "-y"),
    ),
    Family.HOMEBREW: (
        ("softwareupdate", "--install", "--all"),
    ),
}

_LABELS = {
    Family.APT: "Updating with APT...",
    Family.DNF: "Updating with DNF...",
    Family.PACMAN_ARCH: "Updating with Pacman...",
    Family.PACMAN_MANJARO: "Updating with Pacman...",
    Family.FREEBSD: "Updating FreeBSD base system and packages...",
    Family.HOMEBREW: "Running macOS Software Update...",
}


def _run_checked(cmd: Sequence[str], *, sudo: bool) -> None:
    result = run_command(cmd, sudo=sudo)
    if not result.ok:
        raise CommandFailedError(result.cmd, result.returncode)


def _update_homebrew(notify: Notify) -> None:
    """Unprivileged Homebrew upgrade; skipped when brew is absent."""
    if not has_tool("brew"):
        notify("Homebrew not found, skipping.")
        return
    notify("Updating Homebrew packages...")
    _run_checked(["brew", "update"], sudo=False)
    _run_checked(["brew", "upgrade"], sudo=False)


def _update_aur(notify: Notify) -> None:
    """AUR upgrade via yay; absence of yay is not an error."""
    if not has_tool(AUR_HELPER):
        logger.debug("%s not on PATH, skipping AUR upgrade", AUR_HELPER)
        return
    notify(f"Updating AUR packages with {AUR_HELPER}...")
    # yay escalates on its own and refuses to run as root
    _run_checked([AUR_HELPER, "-Syu", "--noconfirm"], sudo=False)


def run_update(family: Family, *, notify: Notify = logger.info) -> None:
    """Run the bulk-update procedure for ``family``.

    Raises:
        MissingDependencyError: ``sudo`` (or a package tool) is absent.
        CommandFailedError: an update command exited non-zero.
    """
    ensure_privileges()

    if family is Family.HOMEBREW:
        _update_homebrew(notify)

    notify(_LABELS[family])
    for cmd in UPDATE_COMMANDS[family]:
        _run_checked(cmd, sudo=True)

    if family is Family.PACMAN_MANJARO:
        _update_aur(notify)
