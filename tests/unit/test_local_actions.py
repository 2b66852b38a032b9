"""Tests for LocalPackageActions using a recording command runner."""

from __future__ import annotations

import json

import pytest

from patchfleet.actions.local import LocalPackageActions
from patchfleet.errors import CommandError, CommandTimeoutError


class FakeRunner:
    """Records commands and answers them from a prefix -> output table."""

    def __init__(self, outputs=None, fail_on=None, timeout_on=None):
        self.calls: list[list[str]] = []
        self.outputs = outputs or {}
        self.fail_on = fail_on
        self.timeout_on = timeout_on

    async def __call__(self, cmd, cwd, timeout=None):
        self.calls.append(cmd)
        line = " ".join(cmd)
        if self.fail_on and line.startswith(self.fail_on):
            raise CommandError(cmd, 1, "fatal: something went wrong")
        if self.timeout_on and line.startswith(self.timeout_on):
            raise CommandTimeoutError(cmd, timeout or 0)
        for prefix, output in self.outputs.items():
            if line.startswith(prefix):
                return output
        return ""


def make_actions(runner):
    return LocalPackageActions(
        timeout=5, commit_message="chore(deps): upgrade", remote="origin", runner=runner
    )


class TestUpgrade:
    @pytest.mark.asyncio
    async def test_installs_react_pair_with_detected_manager(self, make_package, tmp_path):
        (tmp_path / "package.json").write_text(
            json.dumps({"dependencies": {"react": "^19.2.1", "react-dom": "^19.2.1"}})
        )
        runner = FakeRunner()
        package = make_package(str(tmp_path), package_manager="pnpm", is_react_vulnerable=True)

        result = await make_actions(runner).upgrade(package)

        assert result.success is True
        assert result.message == "Upgraded react to 19.2.1"
        assert runner.calls == [["pnpm", "add", "react@latest", "react-dom@latest"]]

    @pytest.mark.asyncio
    async def test_upgrades_both_dependencies(self, make_package, tmp_path):
        (tmp_path / "package.json").write_text(
            json.dumps({"dependencies": {"react": "19.2.1", "next": "15.5.7"}})
        )
        runner = FakeRunner()
        package = make_package(
            str(tmp_path), package_manager=None, is_react_vulnerable=True, is_next_vulnerable=True
        )

        result = await make_actions(runner).upgrade(package)

        assert runner.calls == [["npm", "install", "react@latest", "react-dom@latest", "next@latest"]]
        assert result.message == "Upgraded react to 19.2.1, next to 15.5.7"

    @pytest.mark.asyncio
    async def test_nothing_vulnerable(self, make_package):
        runner = FakeRunner()
        result = await make_actions(runner).upgrade(make_package())
        assert result.success is False
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_manager(self, make_package):
        package = make_package(package_manager="deno", is_next_vulnerable=True)
        result = await make_actions(FakeRunner()).upgrade(package)
        assert result.success is False
        assert "deno" in result.error

    @pytest.mark.asyncio
    async def test_install_failure(self, make_package):
        runner = FakeRunner(fail_on="npm install")
        result = await make_actions(runner).upgrade(make_package(is_react_vulnerable=True))
        assert result.success is False
        assert "something went wrong" in result.error

    @pytest.mark.asyncio
    async def test_install_timeout(self, make_package):
        runner = FakeRunner(timeout_on="npm install")
        result = await make_actions(runner).upgrade(make_package(is_react_vulnerable=True))
        assert result.success is False
        assert "timed out" in result.error


class TestCommitAndPush:
    @pytest.mark.asyncio
    async def test_nothing_to_commit(self, make_package):
        runner = FakeRunner(outputs={"git status": ""})
        result = await make_actions(runner).commit_and_push(make_package())
        assert result.success is False
        assert result.error == "nothing to commit"
        assert ["git", "commit", "-m", "chore(deps): upgrade"] not in runner.calls

    @pytest.mark.asyncio
    async def test_commits_and_pushes_current_branch(self, make_package):
        runner = FakeRunner(
            outputs={
                "git status": " M package.json",
                "git rev-parse --abbrev-ref HEAD": "fix/react-cve",
            }
        )
        result = await make_actions(runner).commit_and_push(make_package())

        assert result.success is True
        assert result.message == "Committed and pushed to origin/fix/react-cve"
        assert runner.calls[-2:] == [
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            ["git", "push", "-u", "origin", "fix/react-cve"],
        ]

    @pytest.mark.asyncio
    async def test_push_rejected(self, make_package):
        runner = FakeRunner(outputs={"git status": " M package.json"}, fail_on="git push")
        result = await make_actions(runner).commit_and_push(make_package())
        assert result.success is False

    @pytest.mark.asyncio
    async def test_clean_tree_with_unpushed_commits_pushes(self, make_package):
        runner = FakeRunner(
            outputs={
                "git status": "",
                "git rev-list --count HEAD --not --remotes=origin": "2",
                "git rev-parse --abbrev-ref HEAD": "fix/cve",
            }
        )
        result = await make_actions(runner).commit_and_push(make_package())

        assert result.success is True
        assert result.message == "Pushed pending commits to origin/fix/cve"
        assert ["git", "commit", "-m", "chore(deps): upgrade"] not in runner.calls
        assert runner.calls[-1] == ["git", "push", "-u", "origin", "fix/cve"]

    @pytest.mark.asyncio
    async def test_retry_after_rejected_push(self, make_package):
        runner = FlakyRemote()
        actions = make_actions(runner)
        package = make_package()

        first = await actions.commit_and_push(package)
        assert first.success is False
        assert "rejected" in first.error

        second = await actions.commit_and_push(package)
        assert second.success is True
        assert second.message == "Pushed pending commits to origin/fix/cve"
        assert runner.commits == 1
        assert runner.pushes == 2

        third = await actions.commit_and_push(package)
        assert third.success is False
        assert third.error == "nothing to commit"
        assert runner.pushes == 2


class FlakyRemote:
    """Working copy whose first push is rejected and later pushes succeed."""

    def __init__(self):
        self.commits = 0
        self.pushes = 0
        self.pushed = False

    async def __call__(self, cmd, cwd, timeout=None):
        line = " ".join(cmd)
        if line.startswith("git status"):
            return "" if self.commits else " M package.json"
        if line.startswith("git commit"):
            self.commits += 1
        elif line.startswith("git rev-list"):
            return "0" if self.pushed else str(self.commits)
        elif line.startswith("git rev-parse"):
            return "fix/cve"
        elif line.startswith("git push"):
            self.pushes += 1
            if self.pushes == 1:
                raise CommandError(cmd, 1, "rejected")
            self.pushed = True
        return ""


class TestCheckoutDefaultBranch:
    @pytest.mark.asyncio
    async def test_switches_then_pulls(self, make_package):
        runner = FakeRunner(outputs={"git rev-parse --abbrev-ref HEAD": "feature-x"})
        result = await make_actions(runner).checkout_default_branch(make_package())

        assert result.success is True
        assert result.message == "Switched to main and pulled latest"
        assert runner.calls[1:] == [
            ["git", "checkout", "main"],
            ["git", "pull", "--ff-only", "origin", "main"],
        ]

    @pytest.mark.asyncio
    async def test_pulls_when_already_on_default(self, make_package):
        runner = FakeRunner(outputs={"git rev-parse --abbrev-ref HEAD": "main"})
        result = await make_actions(runner).checkout_default_branch(make_package())

        assert result.message == "Pulled latest main"
        assert ["git", "checkout", "main"] not in runner.calls

    @pytest.mark.asyncio
    async def test_unknown_default_branch(self, make_package):
        runner = FakeRunner()
        result = await make_actions(runner).checkout_default_branch(make_package(default_branch=None))
        assert result.success is False
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_checkout_conflict(self, make_package):
        runner = FakeRunner(
            outputs={"git rev-parse --abbrev-ref HEAD": "feature-x"}, fail_on="git checkout"
        )
        result = await make_actions(runner).checkout_default_branch(make_package())
        assert result.success is False
