"""
Tests for the run orchestrator — state machine, ordering, failure isolation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.core.config.settings import Settings
from src.core.models.host import Family, HostIdentity, OperatingSystem
from src.core.services.provision.data.catalog import Registry
from src.core.services.provision.domain.artifacts import (
    ArtifactRef,
    LocalArtifact,
    SoftwareDescriptor,
)
from src.core.services.provision.domain.errors import (
    CommandFailedError,
    InstallFailedError,
    InvalidArtifactUrlError,
    NetworkError,
)
from src.core.services.provision.execution.workspace import ScopedWorkspace
from src.core.services.provision.orchestration.orchestrator import (
    RunOrchestrator,
    RunState,
    install_software,
)
from src.core.services.provision.strategies.base import InstallerStrategy
from src.core.services.provision.strategies.resolvers import StaticUrlResolver

ORCH = "src.core.services.provision.orchestration.orchestrator"


class RecordingStrategy(InstallerStrategy):
    """Strategy double that records each step and can fail on demand."""

    privileged = False

    def __init__(self, name: str, *, url: str | None = None, fail_at: str = "") -> None:
        super().__init__(StaticUrlResolver(name, f"{name}.bin", template=url or f"https://example.com/{name}.bin"))
        self.fail_at = fail_at
        self.steps: list[str] = []
        self.workspaces: list[Path] = []

    def fetch(self, ref: ArtifactRef, workspace: ScopedWorkspace) -> LocalArtifact:
        self.steps.append("fetch")
        self.workspaces.append(workspace.path)
        dest = workspace.path / ref.filename
        dest.write_bytes(b"partial")
        if self.fail_at == "fetch":
            raise NetworkError(ref.url, "connection reset")
        return LocalArtifact(path=dest, ref=ref, workspace=workspace.path)

    def install(self, artifact: LocalArtifact) -> None:
        self.steps.append("install")
        if self.fail_at == "install":
            raise InstallFailedError(f"Failed to install {self.label}.")


def _registry(**strategies: RecordingStrategy) -> Registry:
    return Registry(Family.APT, [
        SoftwareDescriptor(id=pid, display_name=pid.title(), strategy=s)
        for pid, s in strategies.items()
    ])


@pytest.fixture
def host(monkeypatch: pytest.MonkeyPatch) -> list[Family]:
    """Ubuntu host; records the families passed to run_update."""
    updated: list[Family] = []
    monkeypatch.setattr(
        f"{ORCH}.identify",
        lambda os_release: HostIdentity(os=OperatingSystem.LINUX, distro_id="ubuntu"),
    )
    monkeypatch.setattr(f"{ORCH}.run_update", lambda family, notify: updated.append(family))
    return updated


def _use_registry(monkeypatch: pytest.MonkeyPatch, registry: Registry) -> None:
    monkeypatch.setattr(f"{ORCH}.build_registry", lambda family, settings: registry)


class TestInstallSoftware:
    def test_steps_and_plan(self):
        strategy = RecordingStrategy("demo")
        plan = install_software(
            SoftwareDescriptor(id="demo", display_name="Demo", strategy=strategy),
            notify=lambda msg: None,
        )
        assert strategy.steps == ["fetch", "install"]
        assert plan.steps == ["resolve", "fetch", "install"]
        assert plan.resolved_artifact_url == "https://example.com/demo.bin"
        assert plan.workspace.released
        assert not strategy.workspaces[0].exists()

    def test_invalid_url_fails_before_fetch(self):
        strategy = RecordingStrategy("demo", url="ftp://example.com/x")
        with pytest.raises(InvalidArtifactUrlError):
            install_software(
                SoftwareDescriptor(id="demo", display_name="Demo", strategy=strategy),
                notify=lambda msg: None,
            )
        assert strategy.steps == []

    def test_fetch_failure_releases_workspace(self):
        strategy = RecordingStrategy("demo", fail_at="fetch")
        with pytest.raises(NetworkError):
            install_software(
                SoftwareDescriptor(id="demo", display_name="Demo", strategy=strategy),
                notify=lambda msg: None,
            )
        assert len(strategy.workspaces) == 1
        assert not strategy.workspaces[0].exists()

    def test_install_failure_releases_workspace(self):
        strategy = RecordingStrategy("demo", fail_at="install")
        with pytest.raises(InstallFailedError):
            install_software(
                SoftwareDescriptor(id="demo", display_name="Demo", strategy=strategy),
                notify=lambda msg: None,
            )
        assert not strategy.workspaces[0].exists()


class TestRunOrchestrator:
    def test_happy_path_in_selection_order(self, host, monkeypatch, settings: Settings):
        order: list[str] = []
        a, b = RecordingStrategy("alpha"), RecordingStrategy("beta")
        a.install = lambda artifact: order.append("alpha")
        b.install = lambda artifact: order.append("beta")
        _use_registry(monkeypatch, _registry(alpha=a, beta=b))

        report = RunOrchestrator(settings, select=lambda r: ["beta", "alpha"], notify=lambda m: None).run()

        assert report.state is RunState.DONE
        assert report.ok
        assert host == [Family.APT]
        assert order == ["beta", "alpha"]
        assert report.installed == ["beta", "alpha"]

    def test_unknown_id_skipped(self, host, monkeypatch, settings: Settings):
        known = RecordingStrategy("alpha")
        _use_registry(monkeypatch, _registry(alpha=known))
        messages: list[str] = []

        report = RunOrchestrator(
            settings, select=lambda r: ["nope", "alpha"], notify=messages.append,
        ).run()

        assert report.ok
        assert report.unknown == ["nope"]
        assert report.installed == ["alpha"]
        assert known.steps == ["fetch", "install"]
        assert "Unknown package: nope. Skipping." in messages

    def test_failure_abandons_remaining(self, host, monkeypatch, settings: Settings):
        first = RecordingStrategy("first")
        broken = RecordingStrategy("broken", fail_at="install")
        last = RecordingStrategy("last")
        _use_registry(monkeypatch, _registry(first=first, broken=broken, last=last))

        report = RunOrchestrator(
            settings, select=lambda r: ["first", "broken", "last"], notify=lambda m: None,
        ).run()

        assert report.state is RunState.FAILED
        assert report.error == "Failed to install broken."
        assert report.error_type == "InstallFailedError"
        assert report.installed == ["first"]
        assert report.current == 1
        assert last.steps == []

    def test_empty_selection_is_success(self, host, monkeypatch, settings: Settings):
        _use_registry(monkeypatch, _registry(alpha=RecordingStrategy("alpha")))
        messages: list[str] = []
        report = RunOrchestrator(settings, select=lambda r: [], notify=messages.append).run()
        assert report.ok
        assert report.installed == []
        assert "No software selected for installation. Exiting." in messages

    def test_selection_sees_family_registry(self, host, monkeypatch, settings: Settings):
        registry = _registry(alpha=RecordingStrategy("alpha"))
        _use_registry(monkeypatch, registry)
        seen: list[Registry] = []
        RunOrchestrator(settings, select=lambda r: seen.append(r) or [], notify=lambda m: None).run()
        assert seen == [registry]

    def test_update_failure_installs_nothing(self, monkeypatch, settings: Settings):
        monkeypatch.setattr(
            f"{ORCH}.identify",
            lambda os_release: HostIdentity(os=OperatingSystem.LINUX, distro_id="fedora"),
        )

        def failing_update(family, notify):
            raise CommandFailedError(["dnf", "upgrade"], 1)

        monkeypatch.setattr(f"{ORCH}.run_update", failing_update)
        select_calls: list[Registry] = []

        report = RunOrchestrator(
            settings, select=lambda r: select_calls.append(r) or ["x"], notify=lambda m: None,
        ).run()

        assert report.state is RunState.FAILED
        assert report.family is Family.DNF
        assert select_calls == []
        assert "dnf upgrade" in report.error

    def test_unsupported_distro(self, monkeypatch, settings: Settings):
        monkeypatch.setattr(
            f"{ORCH}.identify",
            lambda os_release: HostIdentity(os=OperatingSystem.LINUX, distro_id="alpine"),
        )
        report = RunOrchestrator(settings, select=lambda r: [], notify=lambda m: None).run()
        assert report.state is RunState.FAILED
        assert report.error_type == "UnsupportedDistroError"

    def test_skip_update(self, host, monkeypatch, settings: Settings):
        _use_registry(monkeypatch, _registry())
        RunOrchestrator(settings, select=lambda r: [], notify=lambda m: None, update=False).run()
        assert host == []

