"""Tests for the fleet controller and its derived view."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from patchfleet.errors import DuplicatePackageError, PackageNotTrackedError
from patchfleet.models.models import ActionResult, FleetFilter, MessageKind, Phase
from patchfleet.remediation.fleet import FleetController


@pytest.fixture
def fleet_packages(make_package):
    return [
        make_package("/work/a", is_react_vulnerable=True),
        make_package("/work/b"),
        make_package("/work/c", is_next_vulnerable=True),
        make_package("/work/d"),
    ]


def ok_actions():
    actions = AsyncMock()
    actions.upgrade.return_value = ActionResult.ok("upgraded")
    actions.commit_and_push.return_value = ActionResult.ok("pushed")
    actions.checkout_default_branch.return_value = ActionResult.ok("checked out")
    return actions


class TestView:
    def test_counts_and_order(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        view = controller.view()
        assert view.total == 4
        assert view.vulnerable_count == 2
        assert view.filter is FleetFilter.ALL
        assert [p.path for p in view.packages] == ["/work/a", "/work/b", "/work/c", "/work/d"]
        assert view.showing is None

    def test_vulnerable_only_keeps_relative_order(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        controller.set_filter(FleetFilter.VULNERABLE_ONLY)
        view = controller.view()
        assert [p.path for p in view.packages] == ["/work/a", "/work/c"]
        assert len(view.packages) == view.vulnerable_count
        assert view.total == 4
        assert view.showing == 2

    def test_showing_omitted_when_nothing_hidden(self, make_package):
        packages = [make_package("/work/a", is_react_vulnerable=True)]
        controller = FleetController(ok_actions(), packages)
        controller.set_filter(FleetFilter.VULNERABLE_ONLY)
        assert controller.view().showing is None

    def test_toggle_filter(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        assert controller.toggle_filter() is FleetFilter.VULNERABLE_ONLY
        assert controller.toggle_filter() is FleetFilter.ALL

    def test_empty_fleet(self):
        view = FleetController(ok_actions()).view()
        assert view.total == 0
        assert view.vulnerable_count == 0
        assert view.packages == []

    def test_view_reflects_refreshed_flags(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        fixed = [p.model_copy(update={"is_react_vulnerable": False}) for p in fleet_packages]
        controller.refresh(fixed)
        assert controller.view().vulnerable_count == 1


class TestRefresh:
    @pytest.mark.asyncio
    async def test_existing_machines_keep_state(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        machine = controller.machine("/work/a")
        await machine.upgrade()

        controller.refresh(fleet_packages)

        assert controller.machine("/work/a") is machine
        assert machine.was_upgraded is True

    def test_missing_packages_are_dropped(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        controller.refresh(fleet_packages[:2])
        assert len(controller) == 2
        assert "/work/c" not in controller
        with pytest.raises(PackageNotTrackedError):
            controller.machine("/work/c")

    def test_new_order_is_canonical(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        controller.refresh(list(reversed(fleet_packages)))
        assert [m.path for m in controller] == ["/work/d", "/work/c", "/work/b", "/work/a"]

    def test_duplicate_paths_rejected(self, make_package):
        with pytest.raises(DuplicatePackageError):
            FleetController(ok_actions(), [make_package("/work/a"), make_package("/work/a")])


class TestSubscribers:
    @pytest.mark.asyncio
    async def test_notified_on_machine_change(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        events = []
        controller.subscribe(events.append)

        await controller.machine("/work/c").commit_and_push()

        assert events == ["/work/c", "/work/c"]

    def test_notified_on_filter_change(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        events = []
        unsubscribe = controller.subscribe(events.append)
        controller.set_filter(FleetFilter.VULNERABLE_ONLY)
        unsubscribe()
        controller.set_filter(FleetFilter.ALL)
        assert events == [None]

    @pytest.mark.asyncio
    async def test_dropped_machine_does_not_notify(self, fleet_packages):
        release = asyncio.Event()

        async def slow(_package):
            await release.wait()
            return ActionResult.ok("done")

        actions = ok_actions()
        actions.upgrade.side_effect = slow
        controller = FleetController(actions, fleet_packages)
        task = asyncio.create_task(controller.machine("/work/a").upgrade())
        await asyncio.sleep(0)

        controller.refresh(fleet_packages[1:])
        events = []
        controller.subscribe(events.append)
        release.set()
        await task

        assert events == []

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_isolated(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        seen = []

        def broken(_path):
            raise RuntimeError("render failed")

        controller.subscribe(broken)
        controller.subscribe(seen.append)
        message = await controller.machine("/work/a").upgrade()

        assert message.kind is MessageKind.SUCCESS
        assert seen == ["/work/a", "/work/a"]


class TestRunAll:
    @pytest.mark.asyncio
    async def test_upgrades_vulnerable_packages_concurrently(self, fleet_packages):
        release = asyncio.Event()
        started = []

        async def slow(package):
            started.append(package.path)
            await release.wait()
            return ActionResult.ok(f"upgraded {package.relative_path}")

        actions = ok_actions()
        actions.upgrade.side_effect = slow
        controller = FleetController(actions, fleet_packages)

        task = asyncio.create_task(controller.run_all("upgrade"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert started == ["/work/a", "/work/c"]
        assert controller.machine("/work/a").phase is Phase.UPGRADING
        assert controller.machine("/work/c").phase is Phase.UPGRADING

        release.set()
        results = await task

        assert set(results) == {"/work/a", "/work/c"}
        assert all(m.kind is MessageKind.SUCCESS for m in results.values())

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self, fleet_packages):
        async def flaky(package):
            if package.path == "/work/a":
                raise RuntimeError("disk full")
            return ActionResult.ok("upgraded")

        actions = ok_actions()
        actions.upgrade.side_effect = flaky
        controller = FleetController(actions, fleet_packages)

        results = await controller.run_all("upgrade")

        assert results["/work/a"].kind is MessageKind.ERROR
        assert results["/work/c"].kind is MessageKind.SUCCESS
        assert controller.machine("/work/a").was_upgraded is False
        assert controller.machine("/work/c").was_upgraded is True
        assert controller.view().total == 4

    @pytest.mark.asyncio
    async def test_all_packages(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        results = await controller.run_all("checkout_default_branch", vulnerable_only=False)
        assert list(results) == ["/work/a", "/work/b", "/work/c", "/work/d"]

    @pytest.mark.asyncio
    async def test_unknown_operation(self, fleet_packages):
        controller = FleetController(ok_actions(), fleet_packages)
        with pytest.raises(ValueError):
            await controller.run_all("delete")
