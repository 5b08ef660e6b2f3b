"""
Content Cache
=============

Disk cache of extracted article HTML, addressed by the MD5 digest of the
resolved article URL. Entries are written once and never expire.
"""

import hashlib
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component

_ENTRY_NAME = re.compile(r"^[0-9a-f]{32}$")


class ContentCache:
    """Flat directory of ``<md5(url)>`` files holding extracted content."""

    def __init__(self, directory: Optional[str] = None):
        """Initialize the cache.

        Args:
            directory: Cache directory (default from config); created if missing
        """
        self.directory = Path(directory or get_settings().cache.directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger_for_component("content_cache")

    @staticmethod
    def key_for(url: str) -> str:
        """Content address of a resolved URL."""
        return hashlib.md5(url.encode("utf-8")).hexdigest()

    def path_for(self, url: str) -> Path:
        return self.directory / self.key_for(url)

    def contains(self, url: str) -> bool:
        return self.path_for(url).is_file()

    def get(self, url: str) -> Optional[str]:
        """Return cached content for ``url``, or None on a miss.

        An unreadable entry counts as a miss.
        """
        path = self.path_for(url)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Unreadable cache entry {path.name} for {url}: {e}")
            return None

        self.logger.debug(f"Cache hit for {url} ({path.name})")
        return content

    def put(self, url: str, content: str) -> bool:
        """Store extracted content for ``url``.

        The entry is written to a temporary file in the cache directory and
        renamed into place, so readers see either nothing or the whole entry.

        Returns:
            True if the entry was written
        """
        path = self.path_for(url)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.directory,
                prefix=".tmp-",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
            os.replace(tmp_name, path)
        except OSError as e:
            self.logger.error(f"Failed to write cache entry {path.name} for {url}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        self.logger.debug(f"Cached {len(content)} chars for {url} ({path.name})")
        return True

    def stats(self) -> Dict[str, Any]:
        """Entry count and total size of the cache directory."""
        entries = 0
        total_bytes = 0
        for path in self.directory.iterdir():
            if path.is_file() and _ENTRY_NAME.match(path.name):
                entries += 1
                total_bytes += path.stat().st_size

        return {
            "directory": str(self.directory),
            "entries": entries,
            "total_bytes": total_bytes,
        }
