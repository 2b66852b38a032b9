"""Shared pytest configuration."""

import pytest

from patchfleet.models.models import PackageInfo


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks integration tests")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly requested."""
    if not config.getoption("-m", default=None) or "integration" not in config.getoption("-m", default=""):
        skip_integration = pytest.mark.skip(reason="use -m integration to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


@pytest.fixture
def make_package():
    """Factory for PackageInfo with sensible defaults."""

    def _make(path="/work/app", **overrides):
        fields = {
            "path": path,
            "relative_path": path.rsplit("/", 1)[-1],
            "package_manager": "npm",
            "git_branch": "main",
            "default_branch": "main",
            "commits_behind_default": 0,
        }
        fields.update(overrides)
        return PackageInfo(**fields)

    return _make
