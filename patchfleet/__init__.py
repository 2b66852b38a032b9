"""Track vulnerable React/Next.js packages across a fleet of working copies and remediate them."""

from patchfleet.models.models import ActionResult, FleetFilter, FleetView, PackageInfo, Phase
from patchfleet.remediation.fleet import FleetController
from patchfleet.remediation.machine import PackageRemediationMachine

__all__ = [
    "ActionResult",
    "FleetController",
    "FleetFilter",
    "FleetView",
    "PackageInfo",
    "PackageRemediationMachine",
    "Phase",
]
