# Test configuration for pytest
#
# Note: Tests require the package to be installed.
# Run `pip install -e .[test]` from the project root before running tests.
# This installs the package in development mode, allowing proper imports.

import logging
import sys
import pytest


def pytest_configure(config):
    """Register custom markers for platform-specific tests."""
    config.addinivalue_line("markers", "unix: mark test to run only on Unix")
    config.addinivalue_line("markers", "windows: mark test to run only on Windows")


def pytest_collection_modifyitems(config, items):
    """Skip platform-specific tests on incompatible platforms."""
    is_windows = sys.platform.startswith('win')
    skip_unix = pytest.mark.skip(reason="Unix-only test")
    skip_windows = pytest.mark.skip(reason="Windows-only test")
    
    for item in items:
        if "unix" in item.keywords and is_windows:
            item.add_marker(skip_unix)
        if "windows" in item.keywords and not is_windows:
            item.add_marker(skip_windows)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging() so handlers don't leak between tests."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def install_tree(tmp_path):
    """An install prefix with an (empty) launcher at <prefix>/bin/ldoc.

    Returns the prefix directory.
    """
    prefix = tmp_path / "prefix"
    bin_dir = prefix / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "ldoc").write_text("")
    return prefix
