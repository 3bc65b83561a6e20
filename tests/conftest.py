"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import textwrap
from collections.abc import Sequence
from pathlib import Path

import pytest

from src.core.config.settings import Settings
from src.core.services.provision.execution.subprocess_runner import CommandResult


class FakeRunner:
    """Stand-in for ``run_command`` that records calls.

    ``returncodes`` are consumed in order; once exhausted every
    command succeeds.
    """

    def __init__(self, returncodes: Sequence[int] = ()) -> None:
        self.returncodes = list(returncodes)
        self.calls: list[tuple[tuple[str, ...], bool]] = []
        self.inputs: list[str | None] = []

    def __call__(self, cmd, *, sudo=False, input_text=None):
        self.calls.append((tuple(cmd), sudo))
        self.inputs.append(input_text)
        rc = self.returncodes.pop(0) if self.returncodes else 0
        return CommandResult(cmd=tuple(cmd), returncode=rc)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [cmd for cmd, _ in self.calls]


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def settings(home: Path, tmp_path: Path) -> Settings:
    """Settings rooted at the fake home."""
    return Settings(home=home, os_release=tmp_path / "os-release")


@pytest.fixture
def write_os_release(tmp_path: Path):
    """Write an os-release file and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "os-release"
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Replace every module-level ``run_command`` with a recorder."""
    runner = FakeRunner()
    for module in (
        "src.core.services.provision.execution.subprocess_runner",
        "src.core.services.provision.execution.updates",
        "src.core.services.provision.strategies.packages",
        "src.core.services.provision.strategies.archives",
    ):
        monkeypatch.setattr(f"{module}.run_command", runner)
    return runner


@pytest.fixture
def no_preconditions(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend sudo and every required tool are installed."""
    base = "src.core.services.provision.strategies.base"
    monkeypatch.setattr(f"{base}.ensure_privileges", lambda: None)
    monkeypatch.setattr(f"{base}.require_tools", lambda names: None)
