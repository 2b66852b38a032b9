"""
Fleet controller: the ordered set of tracked packages and the view derived from them.
"""
import asyncio
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from patchfleet.actions.base import PackageActions
from patchfleet.errors import DuplicatePackageError, PackageNotTrackedError
from patchfleet.models.models import FleetFilter, FleetView, PackageInfo, RemediationMessage
from patchfleet.remediation.machine import PackageRemediationMachine
from patchfleet.utils.app_logging import logger

OPERATIONS = ("upgrade", "commit_and_push", "checkout_default_branch")

# Called with the path of the package that changed, or None for fleet-wide changes
Subscriber = Callable[[Optional[str]], None]


class FleetController:
    """
    Holds one PackageRemediationMachine per tracked package, keyed by path.

    Package order is the order discovery reported them in. The view is
    recomputed from the machines on every call; nothing is cached.
    """

    def __init__(self, actions: PackageActions, packages: Iterable[PackageInfo] = ()):
        self._actions = actions
        self._machines: Dict[str, PackageRemediationMachine] = {}
        self._filter = FleetFilter.ALL
        self._subscribers: List[Subscriber] = []
        self.refresh(packages)

    def __len__(self) -> int:
        return len(self._machines)

    def __iter__(self) -> Iterator[PackageRemediationMachine]:
        return iter(list(self._machines.values()))

    def __contains__(self, path: object) -> bool:
        return path in self._machines

    @property
    def filter(self) -> FleetFilter:
        return self._filter

    def machine(self, path: str) -> PackageRemediationMachine:
        try:
            return self._machines[path]
        except KeyError:
            raise PackageNotTrackedError(path) from None

    def refresh(self, packages: Iterable[PackageInfo]) -> None:
        """
        Replace the tracked collection with a new discovery result.

        Machines of packages that are still present keep their runtime state,
        new packages get a fresh machine, and packages no longer reported are
        dropped together with their state.

        Raises:
            DuplicatePackageError: If the same path appears twice
        """
        packages = list(packages)
        seen = set()
        for package in packages:
            if package.path in seen:
                raise DuplicatePackageError(package.path)
            seen.add(package.path)

        machines: Dict[str, PackageRemediationMachine] = {}
        for package in packages:
            existing = self._machines.get(package.path)
            if existing is not None:
                existing.update_package(package)
                machines[package.path] = existing
            else:
                machines[package.path] = PackageRemediationMachine(
                    package, self._actions, on_change=self._machine_changed
                )

        dropped = [path for path in self._machines if path not in machines]
        if dropped:
            logger.info(f"No longer tracking {len(dropped)} package(s): {dropped}")

        self._machines = machines
        logger.debug(f"Fleet refreshed: {len(machines)} package(s) tracked")
        self._publish(None)

    def set_filter(self, fleet_filter: FleetFilter) -> None:
        self._filter = FleetFilter(fleet_filter)
        self._publish(None)

    def toggle_filter(self) -> FleetFilter:
        if self._filter is FleetFilter.VULNERABLE_ONLY:
            self.set_filter(FleetFilter.ALL)
        else:
            self.set_filter(FleetFilter.VULNERABLE_ONLY)
        return self._filter

    def view(self) -> FleetView:
        packages = [machine.package for machine in self._machines.values()]
        vulnerable = [package for package in packages if package.is_vulnerable]

        if self._filter is FleetFilter.VULNERABLE_ONLY:
            shown = vulnerable
            showing = len(shown) if len(shown) != len(packages) else None
        else:
            shown = packages
            showing = None

        return FleetView(
            total=len(packages),
            vulnerable_count=len(vulnerable),
            filter=self._filter,
            packages=shown,
            showing=showing,
        )

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a change subscriber. Returns a callable that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    async def run_all(
        self, operation: str, vulnerable_only: bool = True
    ) -> Dict[str, Optional[RemediationMessage]]:
        """
        Run one operation on many packages concurrently.

        Args:
            operation: One of "upgrade", "commit_and_push", "checkout_default_branch"
            vulnerable_only: Only target packages currently reported vulnerable

        Returns:
            Mapping of package path to the recorded message (None if the
            machine was busy and ignored the call)
        """
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")

        targets = [
            machine
            for machine in self._machines.values()
            if not vulnerable_only or machine.package.is_vulnerable
        ]
        logger.info(f"Running {operation} on {len(targets)} package(s)")

        results = await asyncio.gather(
            *(getattr(machine, operation)() for machine in targets)
        )
        return {machine.path: message for machine, message in zip(targets, results)}

    def _machine_changed(self, machine: PackageRemediationMachine) -> None:
        # Machines dropped by a refresh may still finish an in-flight operation.
        if self._machines.get(machine.path) is not machine:
            return
        self._publish(machine.path)

    def _publish(self, path: Optional[str]) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(path)
            except Exception as e:
                logger.error(f"Fleet subscriber failed: {str(e)}")
