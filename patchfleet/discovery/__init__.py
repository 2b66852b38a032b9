"""
Package discovery: manifests, git branch state and the vulnerability policy.
"""

from .scanner import discover_packages, find_package_dirs
from .vulnerability_policy import VulnerabilityPolicy
from .git_info import GitInfo, read_git_info

__all__ = [
    "discover_packages",
    "find_package_dirs",
    "VulnerabilityPolicy",
    "GitInfo",
    "read_git_info",
]
