"""
Workflow running a single mutating action against one package.

Each remediation operation dispatched through Temporal starts one instance of
this workflow, which executes exactly one activity:
1. upgrade_package_activity - Upgrades the vulnerable dependencies
2. commit_and_push_activity - Commits and pushes the working copy
3. checkout_default_branch_activity - Returns to / pulls the default branch
"""
from datetime import timedelta
from typing import Any, Dict
from temporalio import workflow, exceptions
from temporalio.common import RetryPolicy

# Task queue constant
PATCHFLEET_TASK_QUEUE = "patchfleet-task-queue"

# Mutating actions are never retried automatically; a retry is a new explicit request
PACKAGE_ACTION_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    maximum_attempts=1,
)

ACTION_ACTIVITIES = {
    "upgrade": "upgrade_package_activity",
    "commit_and_push": "commit_and_push_activity",
    "checkout_default_branch": "checkout_default_branch_activity",
}

DEFAULT_ACTION_TIMEOUT_SECONDS = 900


@workflow.defn
class PackageActionWorkflow:
    """Runs one upgrade / commit / checkout activity and returns its result."""

    @workflow.run
    async def run(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute one package action.

        Args:
            input_data: Dictionary containing:
                {
                    "action": "upgrade" | "commit_and_push" | "checkout_default_branch",
                    "package": {...},  # PackageInfo fields
                    "timeout_seconds": 900  # optional
                }

        Returns:
            Dictionary containing the action result:
            {
                "success": true,
                "message": "Upgraded react to 19.2.1",
                "error": null
            }
        """
        action = input_data.get("action")
        package = input_data.get("package")
        timeout_seconds = input_data.get("timeout_seconds", DEFAULT_ACTION_TIMEOUT_SECONDS)

        if action not in ACTION_ACTIVITIES:
            raise exceptions.ApplicationError(
                f"Unknown package action: {action}", non_retryable=True
            )
        if not package:
            raise exceptions.ApplicationError(
                "Missing required parameter: package", non_retryable=True
            )

        workflow.logger.info(
            f"Starting PackageActionWorkflow: {action} for {package.get('relative_path')}"
        )

        result = await workflow.execute_activity(
            ACTION_ACTIVITIES[action],
            {"package": package},
            start_to_close_timeout=timedelta(seconds=timeout_seconds),
            retry_policy=PACKAGE_ACTION_RETRY_POLICY,
        )

        workflow.logger.info(
            f"PackageActionWorkflow completed: {action} for "
            f"{package.get('relative_path')}, success={result.get('success')}"
        )
        return result
