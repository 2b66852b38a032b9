"""
Contract for the collaborators that mutate a package's working copy.

Implementations return an ActionResult for every expected outcome. Anything
raised instead is treated by the remediation machine as an unexpected fault.
"""
from typing import Protocol

from patchfleet.models.models import ActionResult, PackageInfo


class PackageActions(Protocol):
    async def upgrade(self, package: PackageInfo) -> ActionResult:
        """Upgrade the vulnerable dependencies of the package."""
        ...

    async def commit_and_push(self, package: PackageInfo) -> ActionResult:
        """Stage, commit and push the working copy's current changes."""
        ...

    async def checkout_default_branch(self, package: PackageInfo) -> ActionResult:
        """Switch to the default branch if needed, then pull it."""
        ...
