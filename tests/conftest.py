"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FullFeed tests.
"""

import pytest
import tempfile
import os
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="fullfeed_tests_"))
os.environ["FULLFEED_CACHE__DIRECTORY"] = str(_TEST_ROOT / "cache")
os.environ["FULLFEED_LOGGING__FILE_PATH"] = ""
os.environ["FULLFEED_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ.pop("PORT", None)
os.environ.pop("FULLFEED_SERVER__PORT", None)


@pytest.fixture
def cache_dir(tmp_path):
    """Empty content cache directory."""
    directory = tmp_path / "cache"
    directory.mkdir()
    return directory


@pytest.fixture
def content_cache(cache_dir):
    from fullfeed.storage.content_cache import ContentCache

    return ContentCache(str(cache_dir))
