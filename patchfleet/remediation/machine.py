"""
Per-package remediation state machine.

Every tracked package gets one PackageRemediationMachine. It owns the package's
runtime state (phase, last outcome message, whether an upgrade succeeded) and
exposes the three mutating operations:

    IDLE -> UPGRADING    -> IDLE
    IDLE -> COMMITTING   -> IDLE
    IDLE -> CHECKING_OUT -> IDLE

A call made while another operation is in flight is ignored. The phase check
and the phase write run without a suspension point in between, so concurrent
callers on the same event loop cannot both start an operation.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from patchfleet.actions.base import PackageActions
from patchfleet.models.models import (
    ActionResult,
    MessageKind,
    PackageInfo,
    Phase,
    RemediationMessage,
)
from patchfleet.utils.app_logging import logger

UNEXPECTED_ERROR = "An unexpected error occurred"

Action = Callable[[PackageInfo], Awaitable[ActionResult]]
ChangeListener = Callable[["PackageRemediationMachine"], None]


class PackageRemediationMachine:
    """Guarded upgrade / commit / checkout operations for a single package."""

    def __init__(
        self,
        package: PackageInfo,
        actions: PackageActions,
        on_change: Optional[ChangeListener] = None,
    ):
        self._package = package
        self._actions = actions
        self._on_change = on_change
        self._phase = Phase.IDLE
        self._was_upgraded = False
        self._last_message: Optional[RemediationMessage] = None

    @property
    def package(self) -> PackageInfo:
        return self._package

    @property
    def path(self) -> str:
        return self._package.path

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_busy(self) -> bool:
        return self._phase is not Phase.IDLE

    @property
    def was_upgraded(self) -> bool:
        return self._was_upgraded

    @property
    def last_message(self) -> Optional[RemediationMessage]:
        return self._last_message

    def update_package(self, package: PackageInfo) -> None:
        """
        Replace the package info after a discovery refresh.

        Runtime state is kept: was_upgraded stays set even if the refreshed
        info no longer reports a vulnerability.
        """
        if package.path != self._package.path:
            raise ValueError(
                f"Cannot move machine for {self._package.path} to {package.path}"
            )
        self._package = package
        self._notify()

    async def upgrade(self) -> Optional[RemediationMessage]:
        """Upgrade the package's vulnerable dependencies."""
        return await self._run(
            Phase.UPGRADING,
            self._actions.upgrade,
            success_text="Upgraded!",
            failure_text="Upgrade failed",
        )

    async def commit_and_push(self) -> Optional[RemediationMessage]:
        """Commit the working copy's changes and push them to the remote."""
        return await self._run(
            Phase.COMMITTING,
            self._actions.commit_and_push,
            success_text="Committed and pushed!",
            failure_text="Commit failed",
        )

    async def checkout_default_branch(self) -> Optional[RemediationMessage]:
        """Return to the default branch, or pull it when already on it."""
        return await self._run(
            Phase.CHECKING_OUT,
            self._actions.checkout_default_branch,
            success_text="Checked out!",
            failure_text="Checkout failed",
        )

    async def _run(
        self,
        phase: Phase,
        action: Action,
        success_text: str,
        failure_text: str,
    ) -> Optional[RemediationMessage]:
        """
        Drive one operation through its phase and back to IDLE.

        Args:
            phase: Active phase held while the collaborator runs
            action: Collaborator coroutine function taking the package
            success_text: Message used when a successful result carries none
            failure_text: Message used when a failed result carries no error

        Returns:
            The recorded outcome message, or None when the call was ignored
        """
        if self._phase is not Phase.IDLE:
            logger.debug(
                f"Ignoring {phase.value} request for {self.path}: "
                f"already {self._phase.value}"
            )
            return None

        self._phase = phase
        self._last_message = None
        self._notify()

        logger.info(f"Starting {phase.value} for {self._package.relative_path}")

        try:
            result = await action(self._package)
            if result.success:
                message = RemediationMessage(
                    kind=MessageKind.SUCCESS, text=result.message or success_text
                )
                if phase is Phase.UPGRADING:
                    self._was_upgraded = True
            else:
                message = RemediationMessage(
                    kind=MessageKind.ERROR, text=result.error or failure_text
                )
        except Exception as e:
            logger.error(
                f"Unexpected error during {phase.value} for {self.path}: {str(e)}",
                exc_info=True,
            )
            message = RemediationMessage(kind=MessageKind.ERROR, text=UNEXPECTED_ERROR)
        except asyncio.CancelledError:
            logger.warning(f"{phase.value} cancelled for {self.path}")
            self._phase = Phase.IDLE
            self._notify()
            raise
        finally:
            self._phase = Phase.IDLE

        self._last_message = message
        logger.info(
            f"Finished {phase.value} for {self._package.relative_path}: "
            f"{message.kind.value} - {message.text}"
        )
        self._notify()
        return message

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self)
        except Exception as e:
            logger.error(f"State change listener failed for {self.path}: {str(e)}")
