"""
L3 Detection — Host identity.

Read-only probes: ``uname`` system name and, on Linux, the
os-release descriptor file.
"""

from __future__ import annotations

import logging
import platform
import shlex
from pathlib import Path

from src.core.models.host import HostIdentity, OperatingSystem
from src.core.services.provision.domain.errors import DetectionError

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines.

    Values may be bare, single- or double-quoted.  Comments, blank
    lines and malformed lines are ignored.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            logger.debug("Unparsable os-release line: %s", line)
            continue
        fields[key.strip()] = " ".join(parts)
    return fields


def identify(
    *,
    system: str | None = None,
    os_release: Path = OS_RELEASE_PATH,
) -> HostIdentity:
    """Build the ``HostIdentity`` for this machine.

    Args:
        system: Override for ``platform.system()``.
        os_release: Path to the os-release file (Linux only).

    Raises:
        DetectionError: Unsupported kernel, or Linux without os-release.
    """
    system = system if system is not None else platform.system()

    try:
        os_name = OperatingSystem(system)
    except ValueError:
        raise DetectionError(f"unsupported operating system: {system or 'unknown'}") from None

    if os_name is not OperatingSystem.LINUX:
        logger.debug("Detected %s", os_name)
        return HostIdentity(os=os_name)

    try:
        text = os_release.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DetectionError(
            f"cannot detect Linux distribution, {os_release} missing"
        ) from None
    except OSError as e:
        raise DetectionError(f"cannot read {os_release}: {e}") from e

    fields = parse_os_release(text)
    identity = HostIdentity(
        os=os_name,
        distro_id=fields.get("ID", "").strip(),
        distro_like=tuple(fields.get("ID_LIKE", "").split()),
    )
    logger.debug("Detected %s", identity.describe())
    return identity
