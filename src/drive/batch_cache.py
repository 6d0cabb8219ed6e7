"""Batch cache for resolved repository objects.

This module provides the BatchCache class which keeps entities resolved during
one burst of activity so that the many internal lookups a single external
operation triggers do not hit the backend again. The cache stays populated
only while it is being used: if the pause between two accesses is longer than
the keep-alive period, the whole content is discarded.
"""

import logging
import time
from typing import Callable, Iterator, Optional

from requests.structures import CaseInsensitiveDict

from .models import Container, Entity
from .path_utils import SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_KEEP_ALIVE = 2.0


class BatchCache:
    """Path-keyed entity cache with a sliding keep-alive window.

    There is no per-entry staleness tracking. Interactive work has natural
    pauses between commands, and such a pause flushes the cache, so every new
    command sees fresh data. Commands running in quick succession, in a script
    for example, keep the cache warm and share consistent data. Changes made
    through the drive itself are reflected by explicit removals.

    Keys are matched case-insensitively.

    Example:
        >>> cache = BatchCache(keep_alive=2.0)
        >>> cache.put(site)
        >>> cache.get("Team/Docs") is None
        True
    """

    def __init__(
        self,
        keep_alive: float = DEFAULT_KEEP_ALIVE,
        clock: Callable[[], float] = time.monotonic,
        on_cold: Optional[Callable[[], None]] = None,
    ):
        """Initialize an empty, warm cache.

        Args:
            keep_alive: Longest pause in seconds that keeps the content
            clock: Source of the current time in seconds
            on_cold: Called whenever a check finds the window lapsed, so owners
                of listings kept outside the cache can drop them too
        """
        if keep_alive <= 0:
            raise ValueError(f"keep_alive must be positive, got {keep_alive}")
        self.keep_alive = keep_alive
        self._clock = clock
        self._on_cold = on_cold
        self._objects: CaseInsensitiveDict = CaseInsensitiveDict()
        self._last_touched: Optional[float] = clock()

    def check(self) -> bool:
        """Refresh the window if it is still open, otherwise drop everything.

        A check coming within the keep-alive period remembers the current time
        to check the next access against. A check coming too late clears the
        content, so the read which called it finds nothing. Writes touch the
        cache unconditionally.

        Returns:
            True if the cache is still warm, False if it went cold
        """
        now = self._clock()
        if self._last_touched is not None and now - self._last_touched < self.keep_alive:
            self._last_touched = now
            return True
        if self._objects:
            logger.debug(f"Batch cache went cold, discarding {len(self._objects)} objects")
        self._objects.clear()
        if self._on_cold is not None:
            self._on_cold()
        return False

    def get(self, path: str) -> Optional[Entity]:
        """Return the cached entity for a path, or None on a miss."""
        if path is None:
            raise ValueError("path cannot be None")
        self.check()
        entity = self._objects.get(path)
        if entity is None:
            logger.debug(f"Cache miss: '{path}'")
        else:
            logger.debug(f"Cache hit: '{path}'")
        return entity

    def peek(self, path: str) -> Optional[Entity]:
        """Return the cached entity for a path without checking the window."""
        return self._objects.get(path)

    def put(self, entity: Entity) -> None:
        """Store an entity under its path, replacing an older one."""
        if entity is None:
            raise ValueError("entity cannot be None")
        self._objects[entity.path] = entity
        self._touch()

    def remove(self, entity: Entity) -> None:
        """Evict an entity; containers take their cached descendants with them.

        Descendants are all entries whose path starts with the container path
        followed by a slash.
        """
        if entity is None:
            raise ValueError("entity cannot be None")
        self._objects.pop(entity.path, None)
        if isinstance(entity, Container):
            root = (entity.path + SEPARATOR).casefold()
            descendants = [key for key in self._objects if key.casefold().startswith(root)]
            for descendant in descendants:
                del self._objects[descendant]
            if descendants:
                logger.debug(
                    f"Evicted {len(descendants)} cached descendants of '{entity.path}'"
                )
        self._touch()

    def invalidate(self) -> None:
        """Make the next check report a cold cache."""
        self._last_touched = None
        logger.debug("Batch cache invalidated")

    def paths(self) -> Iterator[str]:
        """Iterate over the cached paths without touching the window."""
        return iter(list(self._objects))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def _touch(self) -> None:
        self._last_touched = self._clock()
