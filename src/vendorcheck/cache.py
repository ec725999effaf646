"""File-backed TTL cache for per-package check results.

All entries live in one JSON file so a run costs a single read and at most
one write. Concurrent runs sharing a cache directory are not coordinated.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from vendorcheck.constants import Constants

logger = logging.getLogger(__name__)


class ResultCache:
    """Persisted map of package name to ``{"result", "cached_at"}``.

    Expired entries are ignored on read but kept until overwritten.
    """

    def __init__(
        self,
        cache_dir: str,
        ttl: int = Constants.CACHE_TTL_SEC,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the result cache.

        Args:
            cache_dir: Directory holding the cache file.
            ttl: Time-to-live in seconds.
            clock: Source of the current epoch time.
        """
        self._cache_dir = Path(cache_dir)
        self._ttl = ttl
        self._clock = clock
        self._data: Optional[Dict[str, Dict[str, Any]]] = None
        self._dirty = False

    @property
    def path(self) -> Path:
        return self._cache_dir / Constants.CACHE_FILE_NAME

    @property
    def ttl(self) -> int:
        return self._ttl

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Cached result, or None when missing or older than the TTL."""
        data = self._load()
        entry = data.get(key)
        if not isinstance(entry, dict):
            return None
        try:
            cached_at = float(entry["cached_at"])
        except (KeyError, TypeError, ValueError):
            return None
        if self._clock() - cached_at > self._ttl:
            return None
        return entry.get("result")

    def set(self, key: str, result: Dict[str, Any]) -> None:
        data = self._load()
        data[key] = {"result": result, "cached_at": self._clock()}
        self._dirty = True

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        """Delete the cache file and forget everything in memory."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        self._data = {}
        self._dirty = False

    def flush(self) -> None:
        """Write the map to disk if anything changed since the last flush."""
        if not self._dirty:
            return
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._cache_dir), prefix=".results-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=4)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        self._dirty = False
        logger.debug("Flushed %d cache entries to %s", len(self._data or {}), self.path)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if self._data is not None:
            return self._data
        self._data = {}
        if self.path.is_file():
            try:
                with open(self.path, "r", encoding="utf-8") as fh:
                    loaded = json.load(fh)
                if isinstance(loaded, dict):
                    self._data = loaded
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
        return self._data
