"""If/elif/else chaining across concurrently rendered siblings.

A ``t-if`` decides whether its ``t-elif`` / ``t-else`` followers render, but
siblings render as concurrent tasks. Each follower therefore waits on a
future that its preceding chain member resolves as soon as its own decision
is known (before rendering its children).

The value passed down the chain is ``not condition`` of the sender. A
``t-else`` renders iff it receives True. How a ``t-elif`` uses the value
depends on the environment:

- exclusive (default): True means no branch was taken yet. An eligible
  ``t-elif`` evaluates its own condition and passes ``not condition`` on; an
  ineligible one passes False without evaluating. At most one branch of a
  chain renders.
- non-exclusive (``exclusive_conditions=False``): every ``t-elif`` evaluates
  its own condition like a ``t-if`` and passes ``not condition`` on, so a
  follower only looks at its direct predecessor.

The state lives here, keyed by node identity, and a chain is created per
sibling-run render. Cached trees are never annotated, and two loop items
rendering the same body never share a chain.
"""

from __future__ import annotations

import asyncio

from tmark._types import Directive
from tmark.environment.exceptions import SequencingError
from tmark.nodes import Node

CHAIN_FOLLOWERS = frozenset({Directive.ELIF.value, Directive.ELSE.value})
CHAIN_MEMBERS = frozenset({Directive.IF.value, Directive.ELIF.value})


class ConditionChain:
    """Per-render side table: chain follower → pending decision."""

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: dict[Node, asyncio.Future[bool]] = {}

    def _future(self, node: Node) -> asyncio.Future[bool]:
        future = self._pending.get(node)
        if future is None:
            future = asyncio.get_running_loop().create_future()
            self._pending[node] = future
        return future

    def propagate(self, node: Node, eligible: bool) -> None:
        """Pass the decision of a chain member on to its follower, if any."""
        follower = node.next_element
        if follower is not None and follower.tag.lower() in CHAIN_FOLLOWERS:
            future = self._future(follower)
            if not future.done():
                future.set_result(eligible)

    async def wait(self, node: Node) -> bool:
        """Wait for the decision propagated to a ``t-elif`` / ``t-else``.

        Raises:
            SequencingError: If the preceding element is not a chain member
        """
        predecessor = node.prev_element
        if predecessor is None or predecessor.tag.lower() not in CHAIN_MEMBERS:
            raise SequencingError(
                f"{node.tag} must follow t-if or t-elif",
                suggestion=f"Place {node.tag} directly after a t-if or t-elif element",
            )
        return await self._future(node)

    def __len__(self) -> int:
        return len(self._pending)
