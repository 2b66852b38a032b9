"""
Action collaborator that mutates working copies directly on this machine.

Runs git and the package's package manager as subprocesses inside the
package directory. Command failures become failed ActionResults; anything
else propagates to the caller.
"""
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from patchfleet.config import config
from patchfleet.discovery.manifest import dependency_versions
from patchfleet.errors import CommandError, CommandTimeoutError
from patchfleet.models.models import ActionResult, PackageInfo
from patchfleet.utils.app_logging import logger
from patchfleet.utils.commands import run_command
from patchfleet.utils.timing import timed

Runner = Callable[..., Awaitable[str]]

INSTALL_COMMANDS = {
    "npm": ["npm", "install"],
    "yarn": ["yarn", "add"],
    "pnpm": ["pnpm", "add"],
    "bun": ["bun", "add"],
}

# Packages that have to move together with the vulnerable dependency
COMPANION_PACKAGES = {
    "react": ["react", "react-dom"],
    "next": ["next"],
}


class LocalPackageActions:
    """Upgrade, commit and checkout against local working copies."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        commit_message: Optional[str] = None,
        remote: Optional[str] = None,
        runner: Runner = run_command,
    ):
        self._timeout = timeout if timeout is not None else config.PATCHFLEET_COMMAND_TIMEOUT
        self._commit_message = commit_message or config.PATCHFLEET_COMMIT_MESSAGE
        self._remote = remote or config.PATCHFLEET_GIT_REMOTE
        self._runner = runner

    async def _run(self, cmd: List[str], cwd: str) -> str:
        logger.debug(f"Running {' '.join(cmd)} in {cwd}")
        return await self._runner(cmd, cwd, timeout=self._timeout)

    @timed
    async def upgrade(self, package: PackageInfo) -> ActionResult:
        targets = []
        if package.is_react_vulnerable:
            targets.append("react")
        if package.is_next_vulnerable:
            targets.append("next")
        if not targets:
            return ActionResult.fail("No vulnerable dependencies to upgrade")

        manager = package.package_manager or "npm"
        install = INSTALL_COMMANDS.get(manager)
        if install is None:
            return ActionResult.fail(f"Unsupported package manager: {manager}")

        specs = [f"{name}@latest" for target in targets for name in COMPANION_PACKAGES[target]]
        try:
            await self._run(install + specs, package.path)
        except (CommandError, CommandTimeoutError) as e:
            logger.warning(f"Upgrade failed for {package.relative_path}: {str(e)}")
            return ActionResult.fail(str(e))

        versions = dependency_versions(Path(package.path) / "package.json")
        upgraded = [f"{target} to {versions.get(target) or 'latest'}" for target in targets]
        return ActionResult.ok(f"Upgraded {', '.join(upgraded)}")

    async def _unpushed_commits(self, cwd: str) -> int:
        # Commits on HEAD that no branch of the remote has yet
        ahead = await self._run(
            ["git", "rev-list", "--count", "HEAD", "--not", f"--remotes={self._remote}"], cwd
        )
        return int(ahead or 0)

    @timed
    async def commit_and_push(self, package: PackageInfo) -> ActionResult:
        """
        Commit pending changes and push the current branch.

        With a clean working tree, commits left behind by an earlier rejected
        push are pushed on their own. Fails with "nothing to commit" only when
        the tree is clean and nothing is ahead of the remote.
        """
        try:
            await self._run(["git", "add", "-A"], package.path)
            status = await self._run(["git", "status", "--porcelain"], package.path)
            if status:
                await self._run(["git", "commit", "-m", self._commit_message], package.path)
            elif not await self._unpushed_commits(package.path):
                return ActionResult.fail("nothing to commit")

            branch = await self._run(["git", "rev-parse", "--abbrev-ref", "HEAD"], package.path)
            await self._run(["git", "push", "-u", self._remote, branch], package.path)
        except (CommandError, CommandTimeoutError) as e:
            logger.warning(f"Commit and push failed for {package.relative_path}: {str(e)}")
            return ActionResult.fail(str(e))

        if not status:
            return ActionResult.ok(f"Pushed pending commits to {self._remote}/{branch}")
        return ActionResult.ok(f"Committed and pushed to {self._remote}/{branch}")

    @timed
    async def checkout_default_branch(self, package: PackageInfo) -> ActionResult:
        default_branch = package.default_branch
        if not default_branch:
            return ActionResult.fail("Default branch is unknown")

        try:
            current = await self._run(["git", "rev-parse", "--abbrev-ref", "HEAD"], package.path)
            switched = current != default_branch
            if switched:
                await self._run(["git", "checkout", default_branch], package.path)
            await self._run(
                ["git", "pull", "--ff-only", self._remote, default_branch], package.path
            )
        except (CommandError, CommandTimeoutError) as e:
            logger.warning(f"Checkout failed for {package.relative_path}: {str(e)}")
            return ActionResult.fail(str(e))

        if switched:
            return ActionResult.ok(f"Switched to {default_branch} and pulled latest")
        return ActionResult.ok(f"Pulled latest {default_branch}")
