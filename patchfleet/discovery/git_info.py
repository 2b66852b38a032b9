"""Branch and sync state of a package's working copy."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from patchfleet.errors import CommandError, CommandTimeoutError
from patchfleet.utils.commands import run_command

Runner = Callable[..., Awaitable[str]]

_FALLBACK_DEFAULT_BRANCHES = ("main", "master")


@dataclass
class GitInfo:
    git_branch: str | None = None
    default_branch: str | None = None
    commits_behind_default: int | None = None


async def _try(runner: Runner, cmd: list[str], cwd: Path) -> str | None:
    try:
        return await runner(cmd, cwd, timeout=30)
    except (CommandError, CommandTimeoutError, OSError):
        return None


async def read_git_info(package_dir: Path, remote: str = "origin", runner: Runner = run_command) -> GitInfo:
    """Collect branch information for *package_dir*.

    Every field is best effort: a package outside a git repository, a
    detached HEAD or a missing remote leaves the matching field None.
    """
    info = GitInfo()

    branch = await _try(runner, ["git", "rev-parse", "--abbrev-ref", "HEAD"], package_dir)
    if not branch:
        return info
    info.git_branch = None if branch == "HEAD" else branch

    remote_head = await _try(
        runner, ["git", "symbolic-ref", "--short", f"refs/remotes/{remote}/HEAD"], package_dir
    )
    if remote_head and remote_head.startswith(f"{remote}/"):
        info.default_branch = remote_head[len(remote) + 1:]
    else:
        for candidate in _FALLBACK_DEFAULT_BRANCHES:
            if await _try(runner, ["git", "rev-parse", "--verify", "--quiet", candidate], package_dir):
                info.default_branch = candidate
                break

    if info.default_branch:
        behind = await _try(
            runner,
            ["git", "rev-list", "--count", f"HEAD..{remote}/{info.default_branch}"],
            package_dir,
        )
        if behind and behind.isdigit():
            info.commits_behind_default = int(behind)

    return info
