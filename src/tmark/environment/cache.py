"""Content-addressed cache of parsed templates.

Parsing is the expensive half of rendering, and the parsed tree of a given
source text never changes: nodes are immutable after building and all
per-render state lives outside the tree. Trees are therefore cached by a
hash of their source, process-wide, and never evicted or invalidated.
Editing a template changes its hash, so a stale entry is simply never hit
again.

Thread-Safety:
    Insertion is guarded by a lock. Two renders that miss on the same
    source at once both parse it; the last insert wins, and both trees are
    equivalent.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from threading import Lock

from tmark.nodes import Fragment

logger = logging.getLogger(__name__)


def content_key(source: str, *, self_closing: bool = True) -> str:
    """SHA-256 hex digest identifying a parse of source.

    The self-closing mode changes the shape of the tree, so it is part of
    the key.
    """
    digest = hashlib.sha256()
    digest.update(b"sc:1\n" if self_closing else b"sc:0\n")
    digest.update(source.encode("utf-8", "surrogatepass"))
    return digest.hexdigest()


class DomCache:
    """Append-only map of content hash → parsed `Fragment`.

    Example:
        >>> cache = DomCache()
        >>> a = cache.get_or_parse("<p>{{ x }}</p>", parse)
        >>> b = cache.get_or_parse("<p>{{ x }}</p>", parse)
        >>> a is b, cache.stats
        (True, {'hits': 1, 'misses': 1, 'size': 1})
    """

    __slots__ = ("_entries", "_hits", "_lock", "_misses")

    def __init__(self) -> None:
        self._entries: dict[str, Fragment] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Fragment | None:
        fragment = self._entries.get(key)
        with self._lock:
            if fragment is None:
                self._misses += 1
            else:
                self._hits += 1
        return fragment

    def set(self, key: str, fragment: Fragment) -> None:
        with self._lock:
            self._entries[key] = fragment

    def get_or_parse(
        self,
        source: str,
        parse: Callable[..., Fragment],
        *,
        self_closing: bool = True,
    ) -> Fragment:
        """Return the cached tree for source, parsing and storing it on a miss."""
        key = content_key(source, self_closing=self_closing)
        fragment = self.get(key)
        if fragment is not None:
            logger.debug("DOM cache hit %s", key[:12])
            return fragment
        logger.debug("DOM cache miss %s", key[:12])
        fragment = parse(source, self_closing=self_closing)
        self.set(key, fragment)
        return fragment

    @property
    def stats(self) -> dict[str, int]:
        """Hit/miss counters and current number of entries."""
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "size": len(self._entries)}

    def clear(self) -> None:
        """Drop all entries and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


# Process-wide default shared by every Environment that does not inject one
DEFAULT_DOM_CACHE = DomCache()
