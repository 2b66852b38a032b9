from datetime import timedelta
from typing import Any, Dict
from temporalio import workflow, exceptions
from temporalio.common import RetryPolicy

DISCOVER_PACKAGES_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=3,
)


@workflow.defn
class FleetAuditWorkflow:
    """Scheduled workflow that rescans the fleet and reports vulnerable packages."""

    @workflow.run
    async def run(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Discover packages and summarize their vulnerability status.

        Args:
            input_data: Input data containing:
                - root: Directory to scan (optional, worker default otherwise)
                - policy_file: Vulnerability policy JSON (optional)
                - workflow_id: Workflow identifier (optional)

        Returns:
            Dictionary containing:
            {
                "workflow_id": "...",
                "total": 12,
                "vulnerable_count": 3,
                "vulnerable": ["apps/web", ...]
            }
        """
        workflow.logger.info(f"Starting FleetAuditWorkflow with input: {input_data}")

        workflow_id = input_data.get("workflow_id", "fleet-audit")
        discover_payload = {
            "root": input_data.get("root"),
            "policy_file": input_data.get("policy_file"),
        }

        discover_result = await workflow.execute_activity(
            "discover_packages_activity",
            discover_payload,
            start_to_close_timeout=timedelta(minutes=10),
            retry_policy=DISCOVER_PACKAGES_RETRY_POLICY,
        )

        if not isinstance(discover_result, dict) or "packages" not in discover_result:
            raise exceptions.ApplicationError(
                f"discover_packages_activity returned invalid result: {discover_result}"
            )

        packages = discover_result.get("packages", [])
        vulnerable = [
            p.get("relative_path")
            for p in packages
            if p.get("is_react_vulnerable") or p.get("is_next_vulnerable")
        ]

        results = {
            "workflow_id": workflow_id,
            "total": len(packages),
            "vulnerable_count": len(vulnerable),
            "vulnerable": vulnerable,
        }
        workflow.logger.info(
            f"FleetAuditWorkflow completed: {len(vulnerable)} of {len(packages)} "
            f"package(s) vulnerable"
        )
        return results
