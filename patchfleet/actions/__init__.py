"""
Action collaborators for the remediation core.

- LocalPackageActions: runs git / the package manager on this host
- TemporalPackageActions: dispatches each action to the Temporal worker fleet
"""

from patchfleet.config import config

from .base import PackageActions
from .local import LocalPackageActions


def build_actions(backend: str | None = None) -> PackageActions:
    """Create the collaborator selected by PATCHFLEET_ACTION_BACKEND."""
    backend = (backend or config.PATCHFLEET_ACTION_BACKEND or "local").lower()
    if backend == "local":
        return LocalPackageActions()
    if backend == "temporal":
        # Imported lazily so the local backend works without a Temporal server
        from .temporal import TemporalPackageActions

        return TemporalPackageActions()
    raise ValueError(f"Unknown action backend: {backend}")


__all__ = ["PackageActions", "LocalPackageActions", "build_actions"]
