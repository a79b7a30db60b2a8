"""Tree sessions: the state behind ``t-tree`` / ``t-children``.

A ``t-tree`` directive registers its body and item name under a fresh id
for as long as it renders. Every ``t-children`` placeholder inside the body
looks the session up through the id carried on its scope and renders the
same body against the current item's nested collection, which is how one
written fragment expands an arbitrarily deep hierarchy.

Ids come from a process-wide counter, so concurrently rendering trees
(siblings, loop items, includes) never share a session.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock

from tmark.environment.exceptions import SequencingError
from tmark.nodes import Node

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class TreeSession:
    """Body and item name registered by one ``t-tree``."""

    id: int
    body: tuple[Node, ...]
    var_name: str


class TreeSessionStore:
    """Registry of active tree sessions for one render invocation.

    Example:
        >>> store = TreeSessionStore()
        >>> with store.open(body, "item") as session:
        ...     store.get(session.id).var_name
        'item'
        >>> len(store)
        0
    """

    __slots__ = ("_lock", "_sessions")

    def __init__(self) -> None:
        self._sessions: dict[int, TreeSession] = {}
        self._lock = Lock()

    @contextmanager
    def open(self, body: tuple[Node, ...], var_name: str) -> Iterator[TreeSession]:
        """Register a session for the duration of the block.

        The session is removed on every exit path, including errors and
        cancellation.
        """
        session = TreeSession(next(_session_ids), body, var_name)
        with self._lock:
            self._sessions[session.id] = session
        logger.debug("Opened tree session %d (item %r)", session.id, var_name)
        try:
            yield session
        finally:
            with self._lock:
                self._sessions.pop(session.id, None)
            logger.debug("Closed tree session %d", session.id)

    def get(self, session_id: int | None) -> TreeSession:
        """Return an active session.

        Raises:
            SequencingError: If no session with this id is active
        """
        session = self._sessions.get(session_id) if session_id is not None else None
        if session is None:
            raise SequencingError(
                "t-children must be inside a t-tree",
                suggestion="Place t-children within the body of a t-tree element",
            )
        return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
