"""
Temporal worker for patchfleet.

Hosts the per-package action workflow and the fleet audit workflow on one task
queue, and keeps the daily audit schedule in line with the current settings.
"""
import asyncio
import signal
import sys
from typing import Any, Dict, Optional

from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleSpec,
    ScheduleUpdate,
    ScheduleUpdateInput,
)
from temporalio.service import RPCError, RPCStatusCode
from temporalio.worker import Worker

from patchfleet.activities.discover_packages import discover_packages_activity
from patchfleet.activities.package_actions import (
    checkout_default_branch_activity,
    commit_and_push_activity,
    upgrade_package_activity,
)
from patchfleet.config import config
from patchfleet.services.temporal_client import temporal_client_service
from patchfleet.utils.app_logging import logger
from patchfleet.workflows.fleet_audit import FleetAuditWorkflow
from patchfleet.workflows.package_action import PATCHFLEET_TASK_QUEUE, PackageActionWorkflow

AUDIT_SCHEDULE_ID = "patchfleet_audit_schedule"

WORKFLOWS = [PackageActionWorkflow, FleetAuditWorkflow]
ACTIVITIES = [
    upgrade_package_activity,
    commit_and_push_activity,
    checkout_default_branch_activity,
    discover_packages_activity,
]


def audit_input(root: Optional[str] = None, policy_file: Optional[str] = None) -> Dict[str, Any]:
    return {
        "workflow_id": f"{AUDIT_SCHEDULE_ID}_workflow",
        "root": root,
        "policy_file": policy_file,
    }


def audit_schedule(cron: str, root: Optional[str] = None, policy_file: Optional[str] = None) -> Schedule:
    """Schedule that starts FleetAuditWorkflow on the patchfleet task queue."""
    return Schedule(
        action=ScheduleActionStartWorkflow(
            FleetAuditWorkflow.run,
            audit_input(root, policy_file),
            id=f"{AUDIT_SCHEDULE_ID}_workflow",
            task_queue=PATCHFLEET_TASK_QUEUE,
        ),
        spec=ScheduleSpec(cron_expressions=[cron]),
    )


async def sync_audit_schedule(
    client: Client,
    cron: str,
    root: Optional[str] = None,
    policy_file: Optional[str] = None,
) -> str:
    """
    Create the audit schedule, or replace the definition of an existing one.

    Returns:
        "created" or "updated"
    """
    schedule = audit_schedule(cron, root, policy_file)
    handle = client.get_schedule_handle(AUDIT_SCHEDULE_ID)

    try:
        await handle.describe()
    except RPCError as e:
        if e.status != RPCStatusCode.NOT_FOUND:
            raise
        await client.create_schedule(AUDIT_SCHEDULE_ID, schedule)
        logger.info(f"Created schedule '{AUDIT_SCHEDULE_ID}' with cron: {cron}")
        return "created"

    def replace(_: ScheduleUpdateInput) -> ScheduleUpdate:
        return ScheduleUpdate(schedule=schedule)

    await handle.update(replace)
    logger.info(f"Updated schedule '{AUDIT_SCHEDULE_ID}' with cron: {cron}")
    return "updated"


class PatchfleetWorker:
    """Runs a single Temporal worker for all patchfleet workflows and activities."""

    def __init__(self, task_queue: str = PATCHFLEET_TASK_QUEUE, max_concurrent_activities: int = 20):
        self.task_queue = task_queue
        self.max_concurrent_activities = max_concurrent_activities
        self.worker: Optional[Worker] = None

    def build(self, client: Client) -> Worker:
        self.worker = Worker(
            client,
            task_queue=self.task_queue,
            workflows=WORKFLOWS,
            activities=ACTIVITIES,
            max_concurrent_activities=self.max_concurrent_activities,
        )
        logger.info(
            f"Worker on '{self.task_queue}' registered {len(WORKFLOWS)} workflow(s) "
            f"and {len(ACTIVITIES)} activities"
        )
        return self.worker

    async def run(self, client: Client) -> None:
        worker = self.build(client)
        try:
            await worker.run()
        except asyncio.CancelledError:
            logger.info("Worker cancelled")
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if self.worker is None:
            return
        worker, self.worker = self.worker, None
        logger.info("Shutting down patchfleet worker...")
        try:
            await worker.shutdown()
            await temporal_client_service.close_client()
        except Exception as e:
            logger.error(f"Error during worker shutdown: {str(e)}")


async def main(audit_cron: Optional[str] = None):
    """Sync the audit schedule, then run the worker until SIGINT/SIGTERM."""
    patchfleet_worker = PatchfleetWorker()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(patchfleet_worker.shutdown()))

    try:
        client = await temporal_client_service.get_client()
        await sync_audit_schedule(
            client,
            audit_cron or config.PATCHFLEET_AUDIT_CRON,
            root=config.get("PATCHFLEET_ROOT"),
            policy_file=config.get("PATCHFLEET_POLICY_FILE"),
        )
        await patchfleet_worker.run(client)
    except Exception as e:
        logger.error(f"Patchfleet worker failed: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
