"""
L1 Domain — Update router.

Maps a ``HostIdentity`` onto the package family whose bulk-update
procedure applies.  Pure: no I/O, no environment access.

Matching is an explicit priority list evaluated top to bottom; the
first predicate that holds wins.  ``ID_LIKE`` is only consulted when
no exact rule matched, scanning its tokens left to right.
"""

from __future__ import annotations

from collections.abc import Callable

from src.core.models.host import Family, HostIdentity, OperatingSystem
from src.core.services.provision.domain.errors import UnsupportedDistroError

Predicate = Callable[[HostIdentity], bool]


def _os_is(os_name: OperatingSystem) -> Predicate:
    return lambda identity: identity.os is os_name


def _linux_id_in(*distro_ids: str) -> Predicate:
    wanted = frozenset(distro_ids)

    def _match(identity: HostIdentity) -> bool:
        return identity.os is OperatingSystem.LINUX and identity.distro_id in wanted

    return _match


# ── Priority list: (predicate, family) ──────────────────────────

ROUTES: tuple[tuple[Predicate, Family], ...] = (
    (_os_is(OperatingSystem.DARWIN), Family.HOMEBREW),
    (_os_is(OperatingSystem.FREEBSD), Family.FREEBSD),
    (_linux_id_in("ubuntu", "kali", "debian"), Family.APT),
    (_linux_id_in("fedora"), Family.DNF),
    (_linux_id_in("manjaro"), Family.PACMAN_MANJARO),
    (_linux_id_in("arch"), Family.PACMAN_ARCH),
)

# ID_LIKE fallback: substring → family, checked per token in this order.
LIKE_ROUTES: tuple[tuple[str, Family], ...] = (
    ("debian", Family.APT),
    ("rhel", Family.DNF),
    ("fedora", Family.DNF),
    ("arch", Family.PACMAN_ARCH),
)


def route(identity: HostIdentity) -> Family:
    """Select the package family for ``identity``.

    Raises:
        UnsupportedDistroError: Linux host matching no rule.
    """
    for predicate, family in ROUTES:
        if predicate(identity):
            return family

    if identity.os is OperatingSystem.LINUX:
        for token in identity.distro_like:
            for needle, family in LIKE_ROUTES:
                if needle in token:
                    return family

    raise UnsupportedDistroError(identity.distro_id, identity.distro_like)
