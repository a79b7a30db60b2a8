"""Tests for the async_rendering example."""

import pytest


class TestAsyncRenderingApp:
    """Verify awaitables and async iterables resolve during rendering."""

    def test_awaited_values(self, example_app) -> None:
        assert "<h1>tmark Features</h1>" in example_app.output
        assert "<p>Total: 3 features</p>" in example_app.output

    def test_async_iterable_in_order(self, example_app) -> None:
        output = example_app.output
        positions = [output.index(f"<li>#{n}:") for n in (1, 2, 3)]
        assert positions == sorted(positions)

    def test_lookups_overlap(self, example_app) -> None:
        assert example_app.elapsed < example_app.DELAY * 3

    @pytest.mark.asyncio
    async def test_render_again_in_running_loop(self, example_app) -> None:
        html, _ = await example_app.render()
        assert html == example_app.output
