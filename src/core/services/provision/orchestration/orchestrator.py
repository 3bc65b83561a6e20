"""
L5 Orchestration — Run coordinator.

Drives one provisioning run:

    START → UPDATING → SELECTING → INSTALLING(i) → DONE
                 ↘                        ↘
                  FAILED                   FAILED

Selections are processed strictly in order.  An unknown id is
reported and skipped; any other failure ends the run and leaves the
remaining selections untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from src.core.config.settings import Settings
from src.core.models.host import Family, HostIdentity
from src.core.services.provision.data.catalog import Registry, build_registry
from src.core.services.provision.detection.host import identify
from src.core.services.provision.domain.artifacts import InstallPlan, SoftwareDescriptor
from src.core.services.provision.domain.errors import ProvisionError, UnknownPackageError
from src.core.services.provision.domain.routing import route
from src.core.services.provision.execution.updates import run_update
from src.core.services.provision.execution.workspace import scoped_workspace

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]
Selector = Callable[[Registry], Sequence[str]]


class RunState(StrEnum):
    """Orchestrator states."""

    START = "start"
    UPDATING = "updating"
    SELECTING = "selecting"
    INSTALLING = "installing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunReport:
    """What happened during a run."""

    state: RunState = RunState.START
    identity: HostIdentity | None = None
    family: Family | None = None
    selected: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)
    current: int | None = None
    error: str = ""
    error_type: str = ""

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE


def install_software(descriptor: SoftwareDescriptor, *, notify: Notify = logger.info) -> InstallPlan:
    """Run one application's strategy inside its own workspace.

    Requirements are checked before the workspace exists; the
    workspace is gone when this returns or raises.
    """
    strategy = descriptor.strategy
    notify(f"Installing {descriptor.display_name}...")
    strategy.check_requirements()

    with scoped_workspace() as workspace:
        plan = InstallPlan(descriptor=descriptor, workspace=workspace)
        ref = strategy.resolve()
        plan.resolved_artifact_url = ref.url
        plan.steps.append("resolve")
        artifact = strategy.fetch(ref, workspace)
        plan.steps.append("fetch")
        strategy.install(artifact)
        plan.steps.append("install")

    notify(f"{descriptor.display_name} installed successfully.")
    return plan


class RunOrchestrator:
    """Update the host, then install the selected applications.

    Args:
        settings: Runtime settings.
        select: Called once with the host's registry; returns the ids
            to install, in order.  The selection is fixed from then on.
        notify: Sink for user-facing progress lines.
        update: Run the bulk system update first.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        select: Selector,
        notify: Notify = logger.info,
        update: bool = True,
    ) -> None:
        self.settings = settings
        self.select = select
        self.notify = notify
        self.update = update

    def run(self) -> RunReport:
        report = RunReport()
        try:
            self._run(report)
        except ProvisionError as e:
            logger.debug("Run failed in state %s", report.state, exc_info=True)
            report.state = RunState.FAILED
            report.error = str(e)
            report.error_type = type(e).__name__
        return report

    def _run(self, report: RunReport) -> None:
        report.state = RunState.UPDATING
        report.identity = identify(os_release=self.settings.os_release)
        report.family = route(report.identity)
        logger.info("Host %s → %s", report.identity.describe(), report.family)
        if self.update:
            run_update(report.family, notify=self.notify)

        report.state = RunState.SELECTING
        registry = build_registry(report.family, self.settings)
        report.selected = list(self.select(registry))
        if not report.selected:
            self.notify("No software selected for installation. Exiting.")
            report.state = RunState.DONE
            return

        report.state = RunState.INSTALLING
        self.notify(f"Installing selected packages: {' '.join(report.selected)}")
        for index, package_id in enumerate(report.selected):
            report.current = index
            try:
                descriptor = registry.lookup(package_id)
            except UnknownPackageError as e:
                self.notify(f"{e}. Skipping.")
                report.unknown.append(package_id)
                continue
            install_software(descriptor, notify=self.notify)
            report.installed.append(package_id)

        report.current = None
        report.state = RunState.DONE
        self.notify("Selected software installed successfully.")
