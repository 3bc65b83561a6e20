"""
L0 Data — Software registry.

Applications installable outside the primary package manager, one
strategy per (application, packaging family).  Registries are built
once at startup from ``Settings`` and never change afterwards.

Only the Debian and RPM families carry a catalog; every other
family gets an empty registry.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from src.core.config.settings import Settings
from src.core.models.host import Family
from src.core.services.provision.domain.artifacts import SoftwareDescriptor
from src.core.services.provision.domain.errors import UnknownPackageError
from src.core.services.provision.strategies.archives import (
    SystemArchiveStrategy,
    UserArchiveStrategy,
)
from src.core.services.provision.strategies.packages import (
    AptRepositoryStrategy,
    DebPackageStrategy,
    DnfRepositoryStrategy,
    RpmPackageStrategy,
)
from src.core.services.provision.strategies.resolvers import (
    DEB_ARCH,
    RPM_ARCH,
    GithubReleaseResolver,
    JsonApiResolver,
    RedirectResolver,
    StaticUrlResolver,
)

# ── Remote endpoints ────────────────────────────────────────────

JETBRAINS_RELEASES = (
    "https://data.services.jetbrains.com/products/releases"
    "?code=TBA&latest=true&type=release"
)
DISCORD_DEB = "https://discord.com/api/download?platform=linux&format=deb"
DISCORD_TARBALL = "https://discord.com/api/download?platform=linux&format=tar.gz"
CHROME_DEB = "https://dl.google.com/linux/direct/google-chrome-stable_current_{arch}.deb"
CHROME_RPM_REPO = "https://dl.google.com/linux/chrome/rpm/stable/{arch}"
CHROME_SIGNING_KEY = "https://dl.google.com/linux/linux_signing_key.pub"
ONEPASSWORD_DEB = "https://downloads.1password.com/linux/debian/{arch}/stable/1password-latest.deb"
ONEPASSWORD_RPM = "https://downloads.1password.com/linux/rpm/stable/{arch}/1password-latest.rpm"
GITHUB_DESKTOP_KEY = "https://packagecloud.io/shiftkey/desktop/gpgkey"
GITHUB_DESKTOP_APT = "https://packagecloud.io/shiftkey/desktop/any/"
GITHUB_DESKTOP_REPO = "shiftkey/desktop"

DISPLAY_NAMES: dict[str, str] = {
    "jetbrains-toolbox": "JetBrains Toolbox",
    "github-desktop": "GitHub Desktop",
    "discord": "Discord",
    "google-chrome": "Google Chrome",
    "1password": "1Password",
}


class Registry(Mapping[str, SoftwareDescriptor]):
    """Read-only id → descriptor mapping with unique ids."""

    def __init__(self, family: Family, descriptors: Iterable[SoftwareDescriptor] = ()) -> None:
        self.family = family
        self._entries: dict[str, SoftwareDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._entries:
                raise ValueError(f"Duplicate software id in {family} registry: {descriptor.id}")
            self._entries[descriptor.id] = descriptor

    def __getitem__(self, package_id: str) -> SoftwareDescriptor:
        return self._entries[package_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, package_id: str) -> SoftwareDescriptor:
        """Return the descriptor for ``package_id``.

        Raises:
            UnknownPackageError: id not in this registry.
        """
        try:
            return self._entries[package_id]
        except KeyError:
            raise UnknownPackageError(package_id) from None


def _descriptor(package_id: str, strategy) -> SoftwareDescriptor:
    return SoftwareDescriptor(
        id=package_id,
        display_name=DISPLAY_NAMES[package_id],
        strategy=strategy,
    )


def _jetbrains_toolbox(settings: Settings) -> UserArchiveStrategy:
    timeout = settings.http_timeout
    return UserArchiveStrategy(
        JsonApiResolver(
            "JetBrains Toolbox",
            "jetbrains-toolbox.tar.gz",
            endpoint=JETBRAINS_RELEASES,
            path=("TBA", 0, "downloads", "linux", "link"),
            timeout=timeout,
        ),
        dir_prefix="jetbrains-toolbox-",
        install_dir=settings.local_share / "JetBrains" / "Toolbox",
        launcher="bin/jetbrains-toolbox",
        bin_dir=settings.local_bin,
        link_name="jetbrains-toolbox",
        timeout=timeout,
    )


def _apt_catalog(settings: Settings) -> list[SoftwareDescriptor]:
    timeout = settings.http_timeout
    return [
        _descriptor("jetbrains-toolbox", _jetbrains_toolbox(settings)),
        _descriptor("github-desktop", AptRepositoryStrategy(
            StaticUrlResolver("GitHub Desktop", "github-desktop.gpgkey", template=GITHUB_DESKTOP_KEY),
            package="github-desktop",
            repo_url=GITHUB_DESKTOP_APT,
            keyring="/usr/share/keyrings/github-desktop-keyring.gpg",
            source_list="/etc/apt/sources.list.d/github-desktop.list",
            timeout=timeout,
        )),
        _descriptor("discord", DebPackageStrategy(
            StaticUrlResolver("Discord", "discord.deb", template=DISCORD_DEB),
            download_to_cwd=True,
            timeout=timeout,
        )),
        _descriptor("google-chrome", DebPackageStrategy(
            StaticUrlResolver(
                "Google Chrome", "google-chrome.deb",
                template=CHROME_DEB, arch_names=DEB_ARCH,
            ),
            timeout=timeout,
        )),
        _descriptor("1password", DebPackageStrategy(
            StaticUrlResolver(
                "1Password", "1password-latest.deb",
                template=ONEPASSWORD_DEB, arch_names=DEB_ARCH,
            ),
            timeout=timeout,
        )),
    ]


def _dnf_catalog(settings: Settings) -> list[SoftwareDescriptor]:
    timeout = settings.http_timeout
    return [
        _descriptor("jetbrains-toolbox", _jetbrains_toolbox(settings)),
        _descriptor("github-desktop", RpmPackageStrategy(
            GithubReleaseResolver(
                "GitHub Desktop", "github-desktop.rpm",
                repo=GITHUB_DESKTOP_REPO, pattern=r"x86_64.*\.rpm$", timeout=timeout,
            ),
            timeout=timeout,
        )),
        _descriptor("discord", SystemArchiveStrategy(
            RedirectResolver("Discord", "discord.tar.gz", url=DISCORD_TARBALL, timeout=timeout),
            install_dir="/opt/discord",
            launcher="Discord",
            link_path="/usr/local/bin/discord",
            timeout=timeout,
        )),
        _descriptor("google-chrome", DnfRepositoryStrategy(
            StaticUrlResolver(
                "Google Chrome", "google-chrome.repo",
                template=CHROME_RPM_REPO, arch_names=RPM_ARCH,
            ),
            package="google-chrome-stable",
            repo_id="google-chrome",
            gpgkey=CHROME_SIGNING_KEY,
        )),
        _descriptor("1password", RpmPackageStrategy(
            StaticUrlResolver(
                "1Password", "1password.rpm",
                template=ONEPASSWORD_RPM, arch_names=RPM_ARCH,
            ),
            timeout=timeout,
        )),
    ]


_CATALOGS = {
    Family.APT: _apt_catalog,
    Family.DNF: _dnf_catalog,
}


def build_registry(family: Family, settings: Settings) -> Registry:
    """The registry of installable applications for ``family``."""
    builder = _CATALOGS.get(family)
    return Registry(family, builder(settings) if builder else ())
