"""
Temporal activity for discovering the packages under a root directory.
"""
from typing import Any, Dict
from temporalio import activity

from patchfleet.discovery.scanner import discover_packages
from patchfleet.discovery.vulnerability_policy import VulnerabilityPolicy


@activity.defn(name="discover_packages_activity")
async def discover_packages_activity(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Discover packages and their vulnerability status.

    Args:
        payload: Dictionary containing:
                {
                    "root": "/srv/checkouts",  # optional
                    "policy_file": "policy.json"  # optional
                }

    Returns:
        Dictionary containing results:
        {
            "packages": [...],  # PackageInfo dictionaries
            "count": 12
        }
    """
    activity.logger.info("Starting discover packages activity")

    root = payload.get("root")
    policy_file = payload.get("policy_file")
    policy = VulnerabilityPolicy.from_file(policy_file) if policy_file else None

    packages = await discover_packages(root, policy=policy)

    activity.logger.info(f"Discovered {len(packages)} package(s)")
    return {
        "packages": [p.model_dump() for p in packages],
        "count": len(packages),
    }
