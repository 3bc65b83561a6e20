"""
Tests for the update router — priority order and first-match-wins.
"""

import pytest

from src.core.models.host import Family, HostIdentity, OperatingSystem
from src.core.services.provision.detection.host import identify
from src.core.services.provision.domain.errors import UnsupportedDistroError
from src.core.services.provision.domain.routing import route
from tests.provision.simulated_hosts import OS_RELEASES, UNSUPPORTED


def _linux(distro_id: str = "", *like: str) -> HostIdentity:
    return HostIdentity(os=OperatingSystem.LINUX, distro_id=distro_id, distro_like=like)


class TestNonLinux:
    def test_darwin(self):
        assert route(HostIdentity(os=OperatingSystem.DARWIN)) is Family.HOMEBREW

    def test_freebsd(self):
        assert route(HostIdentity(os=OperatingSystem.FREEBSD)) is Family.FREEBSD

    def test_distro_fields_never_matter(self):
        identity = HostIdentity(
            os=OperatingSystem.DARWIN, distro_id="gentoo", distro_like=("nothing",),
        )
        assert route(identity) is Family.HOMEBREW


class TestExactId:
    @pytest.mark.parametrize("distro_id", ["ubuntu", "debian", "kali"])
    @pytest.mark.parametrize("like", [(), ("rhel",), ("arch", "fedora")])
    def test_apt_ids_ignore_id_like(self, distro_id: str, like: tuple[str, ...]):
        assert route(_linux(distro_id, *like)) is Family.APT

    def test_fedora(self):
        assert route(_linux("fedora")) is Family.DNF

    def test_manjaro_beats_arch_like(self):
        assert route(_linux("manjaro", "arch")) is Family.PACMAN_MANJARO

    def test_arch(self):
        assert route(_linux("arch")) is Family.PACMAN_ARCH


class TestIdLike:
    def test_rhel_fedora(self):
        assert route(_linux("rocky", "rhel", "fedora")) is Family.DNF

    def test_leftmost_token_beats_pattern_order(self):
        assert route(_linux("hybrid", "arch", "debian")) is Family.PACMAN_ARCH
        assert route(_linux("hybrid", "debian", "arch")) is Family.APT

    def test_substring_match(self):
        assert route(_linux("custom", "archlinux")) is Family.PACMAN_ARCH

    def test_skips_unrecognised_tokens(self):
        assert route(_linux("pop", "ubuntu", "debian")) is Family.APT

    def test_no_match_raises(self):
        with pytest.raises(UnsupportedDistroError) as exc_info:
            route(_linux("alpine", "busybox"))
        assert exc_info.value.distro_id == "alpine"
        assert exc_info.value.distro_like == ("busybox",)
        assert "alpine" in str(exc_info.value)

    def test_empty_identity_raises(self):
        with pytest.raises(UnsupportedDistroError, match="unknown"):
            route(_linux())


class TestSimulatedHosts:
    @pytest.mark.parametrize("name", sorted(OS_RELEASES))
    def test_supported(self, name: str, write_os_release):
        content, expected = OS_RELEASES[name]
        identity = identify(system="Linux", os_release=write_os_release(content))
        assert route(identity) is expected

    @pytest.mark.parametrize("name", sorted(UNSUPPORTED))
    def test_unsupported(self, name: str, write_os_release):
        identity = identify(system="Linux", os_release=write_os_release(UNSUPPORTED[name]))
        with pytest.raises(UnsupportedDistroError):
            route(identity)
