"""
Churn cache for PunchTrunk.

Uses diskcache for SQLite-based persistent caching. Entries are keyed by a
digest of the repository state, so a stale entry is never returned; it simply
stops being addressed.
"""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from diskcache import Cache

from .logging_config import get_logger
from .temporal.models import ChurnReport

logger = get_logger(__name__)


def churn_cache_key(
    repo_root: Path,
    head: str,
    base: Optional[str],
    window_days: int,
    today: Optional[str] = None,
) -> str:
    """Digest of everything the churn report depends on.

    The UTC date is part of the key because the window is relative to now.
    """
    today = today or datetime.now(timezone.utc).date().isoformat()
    key_data = f"{Path(repo_root).resolve()}:{head}:{base or '-'}:{window_days}:{today}"
    return hashlib.sha256(key_data.encode()).hexdigest()


class ChurnCache:
    """
    SQLite-based cache for churn reports.

    Features:
    - Content-addressed keys (see ``churn_cache_key``)
    - TTL-based expiration
    - Failures degrade to cache misses
    """

    def __init__(self, cache_dir: str, ttl_hours: int = 24, enabled: bool = True):
        """
        Initialize cache.

        Args:
            cache_dir: Directory for cache storage
            ttl_hours: Time-to-live in hours
            enabled: Whether caching is enabled
        """
        self.enabled = enabled
        self.ttl_seconds = ttl_hours * 3600
        self.cache: Optional[Cache] = None

        if self.enabled:
            try:
                self.cache = Cache(cache_dir)
                logger.debug("Cache initialized at %s with TTL=%dh", cache_dir, ttl_hours)
            except OSError as e:
                logger.warning("Cache unavailable at %s: %s", cache_dir, e)
                self.enabled = False
        else:
            logger.debug("Cache disabled")

    def get(self, key: str) -> Optional[ChurnReport]:
        """
        Get a churn report from cache.

        Returns:
            Cached report or None if not found/expired/unreadable
        """
        if not self.enabled or self.cache is None:
            return None

        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning("Cache get failed: %s", e)
            return None
        if value is None:
            return None
        try:
            report = ChurnReport.from_dict(value)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding malformed cache entry %s...: %s", key[:16], e)
            return None
        logger.debug("Cache hit: %s...", key[:16])
        return report

    def set(self, key: str, report: ChurnReport) -> None:
        """Store a churn report."""
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.set(key, report.to_dict(), expire=self.ttl_seconds)
            logger.debug("Cache set: %s...", key[:16])
        except Exception as e:
            logger.warning("Cache set failed: %s", e)

    def clear(self) -> None:
        """Clear all cache entries."""
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.clear()
            logger.info("Cache cleared")
        except Exception as e:
            logger.warning("Cache clear failed: %s", e)

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        if not self.enabled or self.cache is None:
            return {"enabled": False}

        try:
            return {
                "enabled": True,
                "size": len(self.cache),
                "directory": self.cache.directory,
                "volume": self.cache.volume(),
            }
        except Exception as e:
            logger.warning("Cache stats failed: %s", e)
            return {"enabled": True, "error": str(e)}

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
