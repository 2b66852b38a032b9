"""Which remediation actions are offered for a package, derived from its info and state."""

from __future__ import annotations

from patchfleet.models.models import CheckoutAction, CheckoutKind, PackageInfo
from patchfleet.remediation.machine import PackageRemediationMachine


def checkout_action(package: PackageInfo) -> CheckoutAction | None:
    """Return the checkout/pull action for the package, or None when it is not offered.

    Offered when both the current and the default branch are known and the
    working copy is either on another branch or behind the default branch.
    A detached HEAD gets no branch controls.
    """
    if not package.default_branch or not package.git_branch:
        return None

    behind = package.commits_behind_default or 0
    on_default = package.git_branch == package.default_branch
    if on_default and behind <= 0:
        return None

    badge = f"+{behind}" if behind > 0 else None
    if on_default:
        return CheckoutAction(kind=CheckoutKind.PULL, label="Pull", icon="download", badge=badge)
    return CheckoutAction(
        kind=CheckoutKind.RETURN_TO_DEFAULT,
        label=package.default_branch,
        icon="home",
        badge=badge,
    )


def upgrade_offered(machine: PackageRemediationMachine) -> bool:
    return machine.package.is_vulnerable


def commit_offered(machine: PackageRemediationMachine) -> bool:
    # Stays available after an upgrade even once the vulnerability clears.
    return machine.package.is_vulnerable or machine.was_upgraded


def available_actions(machine: PackageRemediationMachine) -> list[str]:
    """Names of the actions that can be invoked right now; empty while busy."""
    if machine.is_busy:
        return []
    actions = []
    if upgrade_offered(machine):
        actions.append("upgrade")
    if commit_offered(machine):
        actions.append("commit")
    if checkout_action(machine.package) is not None:
        actions.append("checkout")
    return actions
