"""Pytest configuration and shared fixtures for the diffviz test suite.

This module provides shared fixtures, test configuration, and sample
diffs used across the entire test suite.
"""

from unittest.mock import MagicMock

import pytest

from diffviz.config import DiffvizConfig
from diffviz.delivery.local import PlatformOpener, PlaywrightRasterizer

# Configure Hypothesis for property-based testing
try:
    from hypothesis import Phase, Verbosity, settings

    # Register custom Hypothesis profiles
    settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
    settings.register_profile("dev", max_examples=30)
    settings.register_profile(
        "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
    )

    # Load profile from environment or use default
    import os

    profile = os.getenv("HYPOTHESIS_PROFILE", "dev")
    settings.load_profile(profile)
except ImportError:
    # Hypothesis not installed, skip configuration
    pass


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "property: Property-based tests using Hypothesis")
    config.addinivalue_line("markers", "network: Tests of the remote share client (mocked transport only)")
    config.addinivalue_line("markers", "mcp: Tests of the MCP tool surface")


SIMPLE_DIFF = "--- a/x.py\n+++ b/x.py\n@@ -1,1 +1,2 @@\n line\n+added"

MODIFIED_DIFF = """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,4 +1,4 @@
 import os
-print("hello world")
+print("hello, world")

 def main():
"""

MULTI_FILE_DIFF = """diff --git a/README.md b/README.md
--- a/README.md
+++ b/README.md
@@ -1,2 +1,2 @@
 # Project
-Old description
+New description
diff --git a/docs/new.txt b/docs/new.txt
new file mode 100644
--- /dev/null
+++ b/docs/new.txt
@@ -0,0 +1,2 @@
+first
+second
diff --git a/old.cfg b/old.cfg
deleted file mode 100644
--- a/old.cfg
+++ /dev/null
@@ -1 +0,0 @@
-setting = 1
"""

DRY_RUN_REPORT = (
    '{"path": "/workspace/notes.md", "diff": "--- a/notes.md\\n+++ b/notes.md\\n@@ -1 +1 @@\\n-draft\\n+final\\n"}'
)


@pytest.fixture
def simple_diff() -> str:
    """Provide the smallest useful unified diff (one context, one added line)."""
    return SIMPLE_DIFF


@pytest.fixture
def modified_diff() -> str:
    """Provide a ``git diff`` of one modified Python file."""
    return MODIFIED_DIFF


@pytest.fixture
def multi_file_diff() -> str:
    """Provide a ``git diff`` with a modified, an added and a deleted file."""
    return MULTI_FILE_DIFF


@pytest.fixture
def dry_run_report() -> str:
    """Provide a JSON dry-run report wrapping a unified diff."""
    return DRY_RUN_REPORT


@pytest.fixture
def local_config(tmp_path) -> DiffvizConfig:
    """Provide an interactive-deployment config writing under ``tmp_path`` without a token."""
    return DiffvizConfig(output_dir=str(tmp_path / "output"), is_hosted=False)


@pytest.fixture
def mock_rasterizer() -> MagicMock:
    """Provide a rasterizer that returns fixed PNG bytes without a browser."""
    rasterizer = MagicMock(spec=PlaywrightRasterizer)
    rasterizer.render_png.return_value = b"\x89PNG\r\n\x1a\nfake-image"
    return rasterizer


@pytest.fixture
def mock_opener() -> MagicMock:
    """Provide an opener that records calls instead of launching a viewer."""
    return MagicMock(spec=PlatformOpener)
