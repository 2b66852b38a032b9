"""
Temporal activities for the three mutating package actions.

Each activity receives {"package": {...PackageInfo fields}} and returns the
ActionResult as a dictionary. Work is delegated to LocalPackageActions on the
worker host.
"""
from typing import Any, Dict
from temporalio import activity

from patchfleet.actions.local import LocalPackageActions
from patchfleet.models.models import PackageInfo


def _load_package(payload: Dict[str, Any]) -> PackageInfo:
    package = payload.get("package")
    if not package:
        raise ValueError("Missing required parameter: package")
    return PackageInfo.model_validate(package)


@activity.defn(name="upgrade_package_activity")
async def upgrade_package_activity(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upgrade the vulnerable dependencies of one package.

    Args:
        payload: {"package": {...}}

    Returns:
        {"success": bool, "message": str | None, "error": str | None}
    """
    package = _load_package(payload)
    activity.logger.info(f"Upgrading dependencies for {package.relative_path}")

    result = await LocalPackageActions().upgrade(package)

    activity.logger.info(
        f"Upgrade finished for {package.relative_path}: success={result.success}"
    )
    return result.model_dump()


@activity.defn(name="commit_and_push_activity")
async def commit_and_push_activity(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Commit and push the working copy of one package."""
    package = _load_package(payload)
    activity.logger.info(f"Committing and pushing {package.relative_path}")

    result = await LocalPackageActions().commit_and_push(package)

    activity.logger.info(
        f"Commit and push finished for {package.relative_path}: success={result.success}"
    )
    return result.model_dump()


@activity.defn(name="checkout_default_branch_activity")
async def checkout_default_branch_activity(payload: Dict[str, Any]) -> Dict[str, Any]:
    package = _load_package(payload)
    activity.logger.info(
        f"Checking out {package.default_branch} for {package.relative_path}"
    )

    result = await LocalPackageActions().checkout_default_branch(package)

    activity.logger.info(
        f"Checkout finished for {package.relative_path}: success={result.success}"
    )
    return result.model_dump()
