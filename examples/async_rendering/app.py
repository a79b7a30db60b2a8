"""Async rendering -- awaitable data resolved while the page renders.

Context values may be coroutine functions and async iterables. Sibling
elements render concurrently, so the three slow lookups below overlap
instead of running one after another.

Run:
    python app.py
"""

import asyncio
import time
from collections.abc import AsyncIterator

from tmark import DictLoader, Environment

# -- Simulated async data sources ----------------------------------------

DELAY = 0.05


async def fetch_title() -> str:
    """Simulate fetching a page title."""
    await asyncio.sleep(DELAY)
    return "tmark Features"


async def fetch_count() -> int:
    """Simulate an async API call that returns a value."""
    await asyncio.sleep(DELAY)
    return 3


async def fetch_items() -> AsyncIterator[dict]:
    """Simulate an async data stream (e.g., database cursor, API pagination)."""
    await asyncio.sleep(DELAY)
    for item in [
        {"id": 1, "title": "Directives are plain elements"},
        {"id": 2, "title": "Concurrent sibling rendering"},
        {"id": 3, "title": "Zero dependencies"},
    ]:
        yield item


# -- Template setup -------------------------------------------------------

TEMPLATE_SOURCE = """\
<h1>{{ fetch_title() }}</h1>
<p>Total: {{ fetch_count() }} features</p>
<ul>
<t-for on="item of fetch_items()">  <li>#{{ item.id }}: {{ item.title }}</li>
</t-for></ul>
"""

env = Environment(loader=DictLoader({"features.html": TEMPLATE_SOURCE}), markers=False)


async def render() -> tuple[str, float]:
    """Render the page and report how long it took."""
    start = time.perf_counter()
    html = await env.render_async(
        "features.html",
        fetch_title=fetch_title,
        fetch_count=fetch_count,
        fetch_items=fetch_items,
    )
    return html, time.perf_counter() - start


output, elapsed = asyncio.run(render())


def main() -> None:
    print(output)
    print(f"Rendered in {elapsed:.3f}s (three lookups of {DELAY}s each)")


if __name__ == "__main__":
    main()
