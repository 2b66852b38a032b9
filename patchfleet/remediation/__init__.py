"""
Remediation core.

- PackageRemediationMachine: guarded upgrade / commit / checkout for one package
- FleetController: the tracked packages and their derived view
- policy: which actions are offered for a package
"""

from .machine import PackageRemediationMachine, UNEXPECTED_ERROR
from .fleet import FleetController, OPERATIONS
from .policy import checkout_action, upgrade_offered, commit_offered, available_actions

__all__ = [
    "PackageRemediationMachine",
    "UNEXPECTED_ERROR",
    "FleetController",
    "OPERATIONS",
    "checkout_action",
    "upgrade_offered",
    "commit_offered",
    "available_actions",
]
