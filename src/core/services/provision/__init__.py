"""
Provisioning service — package re-exports.

    from src.core.services.provision import RunOrchestrator, identify, route

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → detection → execution →
orchestration).
"""

# ── L0: Data ──
from src.core.services.provision.data.catalog import (  # noqa: F401
    Registry,
    build_registry,
)

# ── L1: Domain ──
from src.core.services.provision.domain.artifacts import (  # noqa: F401
    ArtifactRef,
    InstallPlan,
    LocalArtifact,
    SoftwareDescriptor,
)
from src.core.services.provision.domain.errors import (  # noqa: F401
    CommandFailedError,
    DetectionError,
    InstallFailedError,
    InvalidArtifactUrlError,
    MissingDependencyError,
    NetworkError,
    ProvisionError,
    UnknownPackageError,
    UnsupportedDistroError,
)
from src.core.services.provision.domain.routing import route  # noqa: F401

# ── L3: Detection ──
from src.core.services.provision.detection.host import identify  # noqa: F401

# ── L4: Execution ──
from src.core.services.provision.execution.updates import run_update  # noqa: F401
from src.core.services.provision.execution.workspace import (  # noqa: F401
    ScopedWorkspace,
    acquire,
    release,
    scoped_workspace,
)

# ── L5: Orchestration ──
from src.core.services.provision.orchestration.orchestrator import (  # noqa: F401
    RunOrchestrator,
    RunReport,
    RunState,
    install_software,
)
