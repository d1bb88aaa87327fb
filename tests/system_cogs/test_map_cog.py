"""
Tests for the map system cog: ordering, bounded parallelism and
per-iteration control flow.
"""

import asyncio

import pytest
from pydantic import ValidationError

from cogwork import Workflow
from cogwork.errors import IterationDidNotRunError
from cogwork.system_cogs.map import MapOutput, coerce_items


@pytest.fixture
def workflow():
    return Workflow("map-test")


def export(name):
    async def proc(ctx):
        return (await ctx.require_cog(name)).value

    return proc


def identity_scope(workflow, name="body"):
    @workflow.execute(name)
    def body(ex):
        ex.python("item", lambda ctx, inp: ctx.value)
        ex.outputs(export("item"))


def collect_outputs(ex, map_name):
    async def collect(ctx):
        return await ctx.collect(ctx.cog(map_name))

    ex.outputs(collect)


class TestCoerceItems:
    def test_none_is_empty(self):
        assert coerce_items(None) == []

    def test_string_is_single_item(self):
        assert coerce_items("abc") == ["abc"]

    def test_mapping_becomes_pairs(self):
        assert coerce_items({"a": 1, "b": 2}) == [("a", 1), ("b", 2)]

    def test_iterables_are_listed(self):
        assert coerce_items(x for x in range(3)) == [0, 1, 2]

    def test_scalar_is_wrapped(self):
        assert coerce_items(5) == [5]


@pytest.mark.asyncio
async def test_next_leaves_empty_slot(workflow):
    """Iteration 2 signals next; the others still run and keep their place."""

    @workflow.execute("double")
    def double(ex):
        def proc(ctx, inp):
            if ctx.value == 2:
                ctx.next_iteration()
            return ctx.value * 2

        ex.python("d", proc)
        ex.outputs(export("d"))

    @workflow.execute()
    def main(ex):
        ex.map("doubled", lambda ctx, inp: [1, 2, 3], run="double")
        collect_outputs(ex, "doubled")

    assert await workflow.start() == [2, None, 6]


@pytest.mark.asyncio
async def test_break_stops_serial_iterations(workflow):
    started = []

    @workflow.execute("body")
    def body(ex):
        def proc(ctx, inp):
            started.append(ctx.value)
            if ctx.value == 3:
                ctx.break_loop()
            return ctx.value

        ex.python("item", proc)
        ex.outputs(export("item"))

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: [1, 2, 3, 4, 5], run="body")
        collect_outputs(ex, "items")

    assert await workflow.start() == [1, 2, None, None, None]
    assert started == [1, 2, 3]


@pytest.mark.asyncio
async def test_break_in_parallel_prevents_new_iterations(workflow):
    started = []

    @workflow.config
    def configure(c):
        c.cog("map").parallel = 2

    @workflow.execute("body")
    def body(ex):
        async def proc(ctx, inp):
            started.append(ctx.value)
            if ctx.value == 2:
                ctx.break_loop()
            await asyncio.sleep(0.01)
            return ctx.value

        ex.python("item", proc)
        ex.outputs(export("item"))

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: [1, 2, 3, 4, 5, 6], run="body")
        collect_outputs(ex, "items")

    assert await workflow.start() == [1, None, None, None, None, None]
    assert sorted(started) == [1, 2]


@pytest.mark.asyncio
async def test_parallel_results_keep_item_order(workflow):
    @workflow.config
    def configure(c):
        c.cog("map", "delays").parallel_unlimited()

    @workflow.execute("sleepy")
    def sleepy(ex):
        async def proc(ctx, inp):
            await asyncio.sleep(ctx.value)
            return ctx.value

        ex.python("slept", proc)
        ex.outputs(export("slept"))

    @workflow.execute()
    def main(ex):
        ex.map("delays", lambda ctx, inp: [0.03, 0.0, 0.02, 0.01], run="sleepy")
        collect_outputs(ex, "delays")

    assert await workflow.start() == [0.03, 0.0, 0.02, 0.01]


@pytest.mark.asyncio
async def test_parallel_limit_bounds_concurrency(workflow):
    running = 0
    peak = 0

    @workflow.config
    def configure(c):
        c.cog("map").parallel = 2

    @workflow.execute("tracked")
    def tracked(ex):
        async def proc(ctx, inp):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return ctx.value

        ex.python("work", proc)

    @workflow.execute()
    def main(ex):
        ex.map("fan_out", lambda ctx, inp: range(6), run="tracked")

    result = await workflow.start()

    assert len(result) == 6
    assert peak == 2


@pytest.mark.asyncio
async def test_serial_by_default(workflow):
    running = 0
    peak = 0

    @workflow.execute("tracked")
    def tracked(ex):
        async def proc(ctx, inp):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.005)
            running -= 1

        ex.python("work", proc)

    @workflow.execute()
    def main(ex):
        ex.map("fan_out", lambda ctx, inp: range(4), run="tracked")

    await workflow.start()

    assert peak == 1


@pytest.mark.asyncio
async def test_iteration_accessors(workflow):
    identity_scope(workflow)

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: inp.update(items=["a", "b", "c"], initial_index=10), run="body")

    result = await workflow.start()

    assert isinstance(result, MapOutput)
    assert len(result) == 3
    assert result.first().final_output == "a"
    assert result.last().final_output == "c"
    assert result.iteration(-2).index == 11
    assert result.has_iteration(2)
    assert not result.has_iteration(3)
    with pytest.raises(IterationDidNotRunError):
        result.iteration(3)


@pytest.mark.asyncio
async def test_missing_iteration_raises(workflow):
    @workflow.execute("body")
    def body(ex):
        ex.python("skip_all", lambda ctx, inp: ctx.next_iteration())

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: [1], run="body")

    result = await workflow.start()

    assert not result.has_iteration(0)
    with pytest.raises(IterationDidNotRunError):
        result.first()


@pytest.mark.asyncio
async def test_from_reads_single_iteration(workflow):
    identity_scope(workflow)

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: ["x", "y"], run="body")

        async def pick(ctx, inp):
            items = ctx.cog("items")
            return await ctx.from_(items.iteration(1), lambda sub, final: (sub.index, sub.value, final))

        ex.python("picked", pick)

    result = await workflow.start()

    assert result.value == (1, "y", "y")


@pytest.mark.asyncio
async def test_empty_items(workflow):
    identity_scope(workflow)

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: [], run="body")

    result = await workflow.start()

    assert len(result) == 0


@pytest.mark.asyncio
async def test_iteration_failure_fails_map(workflow):
    @workflow.config
    def configure(c):
        c.cog("map").parallel_unlimited()

    @workflow.execute("body")
    def body(ex):
        def proc(ctx, inp):
            if ctx.value == 1:
                raise RuntimeError("iteration failed")
            return ctx.value

        ex.python("item", proc)

    @workflow.execute()
    def main(ex):
        ex.map("items", lambda ctx, inp: [0, 1, 2], run="body")

    with pytest.raises(RuntimeError, match="iteration failed"):
        await workflow.start()


def test_negative_parallel_rejected():
    workflow = Workflow()

    @workflow.config
    def configure(c):
        c.cog("map").parallel = -1

    @workflow.execute()
    def main(ex):
        pass

    with pytest.raises(ValidationError):
        workflow.run()
