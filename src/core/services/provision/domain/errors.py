"""
L1 Domain — Error taxonomy for provisioning runs.

Every failure a provisioning run can hit derives from
``ProvisionError``.  All of them are fatal to the run except
``UnknownPackageError``, which only skips the offending selection.
"""

from __future__ import annotations

from collections.abc import Sequence


class ProvisionError(Exception):
    """Base class for all provisioning failures."""

    fatal = True


class DetectionError(ProvisionError):
    """The host's package family cannot be determined."""


class UnsupportedDistroError(ProvisionError):
    """The Linux distribution is not in the routing table."""

    def __init__(self, distro_id: str, distro_like: Sequence[str]) -> None:
        self.distro_id = distro_id
        self.distro_like = tuple(distro_like)
        like = " ".join(self.distro_like) or "unset"
        super().__init__(
            f"unsupported Linux distribution: {distro_id or 'unknown'} "
            f"(ID_LIKE='{like}')"
        )


class MissingDependencyError(ProvisionError):
    """A required executable is not on PATH."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"required command not found: {tool}")


class NetworkError(ProvisionError):
    """A remote call (resolve or fetch) failed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"request to {url} failed: {reason}")


class InvalidArtifactUrlError(ProvisionError):
    """A resolved artifact location is empty or not ``https://``.

    ``raw`` holds the response the location was extracted from so the
    failure can be diagnosed.
    """

    def __init__(self, label: str, url: str, raw: str = "") -> None:
        self.label = label
        self.url = url
        self.raw = raw
        super().__init__(f"Failed to fetch a valid {label} URL (got {url!r})")


class InstallFailedError(ProvisionError):
    """The packaging tool or a filesystem step rejected the artifact."""


class CommandFailedError(ProvisionError):
    """A bulk-update command exited non-zero."""

    def __init__(self, cmd: Sequence[str], returncode: int) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        super().__init__(
            f"command failed (exit {returncode}): {' '.join(self.cmd)}"
        )


class UnknownPackageError(ProvisionError):
    """A selected id is not in the registry."""

    fatal = False

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"Unknown package: {package_id}")
