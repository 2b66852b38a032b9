"""
Package discovery: find every package.json under a root directory and describe it.
"""
import asyncio
import os
from pathlib import Path
from typing import List, Optional, Union

from patchfleet.config import config
from patchfleet.discovery.git_info import Runner, read_git_info
from patchfleet.discovery.manifest import dependency_versions, detect_package_manager
from patchfleet.discovery.vulnerability_policy import VulnerabilityPolicy
from patchfleet.models.models import PackageInfo
from patchfleet.utils.app_logging import logger
from patchfleet.utils.commands import run_command

SKIPPED_DIRECTORIES = {"node_modules"}


def find_package_dirs(root: Path) -> List[Path]:
    """Directories under root containing a package.json, sorted by relative path."""
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [
            d for d in dirnames if d not in SKIPPED_DIRECTORIES and not d.startswith(".")
        ]
        if "package.json" in filenames:
            found.append(Path(dirpath))
    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


async def describe_package(
    package_dir: Path,
    root: Path,
    policy: VulnerabilityPolicy,
    remote: str = "origin",
    runner: Runner = run_command,
) -> PackageInfo:
    versions = dependency_versions(package_dir / "package.json")
    git = await read_git_info(package_dir, remote=remote, runner=runner)
    relative = package_dir.relative_to(root).as_posix()

    return PackageInfo(
        path=str(package_dir),
        relative_path=relative,
        react_version=versions["react"],
        next_version=versions["next"],
        is_react_vulnerable=policy.is_vulnerable("react", versions["react"]),
        is_next_vulnerable=policy.is_vulnerable("next", versions["next"]),
        package_manager=detect_package_manager(package_dir),
        git_branch=git.git_branch,
        default_branch=git.default_branch,
        commits_behind_default=git.commits_behind_default,
    )


async def discover_packages(
    root: Union[str, Path, None] = None,
    policy: Optional[VulnerabilityPolicy] = None,
    remote: Optional[str] = None,
    runner: Runner = run_command,
    concurrency: Optional[int] = None,
) -> List[PackageInfo]:
    """
    Discover all packages under root.

    Args:
        root: Directory to scan (defaults to PATCHFLEET_ROOT)
        policy: Vulnerability policy (defaults to PATCHFLEET_POLICY_FILE, or empty)
        remote: Git remote used for default-branch detection
        runner: Command runner used for git calls
        concurrency: Packages described at once (defaults to PATCHFLEET_DISCOVERY_CONCURRENCY)

    Returns:
        Packages in canonical order (sorted by relative path)
    """
    root = Path(root or config.PATCHFLEET_ROOT).resolve()
    if policy is None:
        policy_file = config.get("PATCHFLEET_POLICY_FILE")
        policy = VulnerabilityPolicy.from_file(policy_file) if policy_file else VulnerabilityPolicy()
    remote = remote or config.PATCHFLEET_GIT_REMOTE
    semaphore = asyncio.Semaphore(max(1, concurrency or config.PATCHFLEET_DISCOVERY_CONCURRENCY))

    package_dirs = find_package_dirs(root)
    logger.info(f"Found {len(package_dirs)} package(s) under {root}")

    async def describe(package_dir: Path) -> PackageInfo:
        async with semaphore:
            return await describe_package(package_dir, root, policy, remote=remote, runner=runner)

    packages = await asyncio.gather(*(describe(d) for d in package_dirs))
    vulnerable = sum(1 for p in packages if p.is_vulnerable)
    logger.info(f"Discovery complete: {len(packages)} package(s), {vulnerable} vulnerable")
    return list(packages)
