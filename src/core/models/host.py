"""
Host models — what machine we are running on and which package
ecosystem manages it.

``HostIdentity`` is populated once per run by the detection layer and
never mutated.  ``Family`` is derived from it by the update router.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OperatingSystem(StrEnum):
    """Kernel name as reported by ``uname -s``."""

    DARWIN = "Darwin"
    LINUX = "Linux"
    FREEBSD = "FreeBSD"


class Family(StrEnum):
    """Package-management ecosystem a host belongs to."""

    HOMEBREW = "homebrew+softwareupdate"
    APT = "apt-debian"
    DNF = "dnf-fedora"
    PACMAN_ARCH = "pacman-arch"
    PACMAN_MANJARO = "pacman-manjaro"
    FREEBSD = "freebsd-base"


class HostIdentity(BaseModel):
    """Environment signals used for routing.

    ``distro_id`` and ``distro_like`` are only meaningful on Linux; they
    come from the ``ID`` and ``ID_LIKE`` fields of os-release.
    """

    model_config = ConfigDict(frozen=True)

    os: OperatingSystem
    distro_id: str = ""
    distro_like: tuple[str, ...] = ()

    def describe(self) -> str:
        """Short human-readable label, e.g. ``Linux/pop (ubuntu debian)``."""
        if self.os is not OperatingSystem.LINUX:
            return str(self.os)
        label = f"{self.os}/{self.distro_id or 'unknown'}"
        if self.distro_like:
            label += f" ({' '.join(self.distro_like)})"
        return label
