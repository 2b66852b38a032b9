"""
Action collaborator that runs each action as a Temporal workflow on the worker fleet.
"""
from typing import Optional

from patchfleet.config import config
from patchfleet.models.models import ActionResult, PackageInfo
from patchfleet.services.temporal_client import TemporalClientService, temporal_client_service
from patchfleet.utils.app_logging import logger
from patchfleet.utils.timing import timed
from patchfleet.workflows.package_action import PATCHFLEET_TASK_QUEUE, PackageActionWorkflow


class TemporalPackageActions:
    """
    Dispatches upgrade / commit / checkout to PackageActionWorkflow.

    Workflow failures (worker crash, timeout, activity exception) are raised
    to the caller unchanged; the remediation machine reports them as
    unexpected errors.
    """

    def __init__(
        self,
        client_service: TemporalClientService = temporal_client_service,
        task_queue: str = PATCHFLEET_TASK_QUEUE,
        timeout_seconds: Optional[float] = None,
    ):
        self._client_service = client_service
        self._task_queue = task_queue
        self._timeout_seconds = timeout_seconds or config.PATCHFLEET_COMMAND_TIMEOUT

    async def _dispatch(self, action: str, package: PackageInfo) -> ActionResult:
        client = await self._client_service.get_client()
        workflow_id = self._client_service.get_workflow_id(package.path, action)

        logger.info(f"Dispatching {action} for {package.relative_path} as {workflow_id}")
        result = await client.execute_workflow(
            PackageActionWorkflow.run,
            {
                "action": action,
                "package": package.model_dump(),
                "timeout_seconds": self._timeout_seconds,
            },
            id=workflow_id,
            task_queue=self._task_queue,
        )
        return ActionResult.model_validate(result)

    @timed
    async def upgrade(self, package: PackageInfo) -> ActionResult:
        return await self._dispatch("upgrade", package)

    @timed
    async def commit_and_push(self, package: PackageInfo) -> ActionResult:
        return await self._dispatch("commit_and_push", package)

    @timed
    async def checkout_default_branch(self, package: PackageInfo) -> ActionResult:
        return await self._dispatch("checkout_default_branch", package)
