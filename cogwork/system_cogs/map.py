"""
map - run a named scope once per item.

Iterations run serially by default. ``parallel`` bounds the number of
iterations in flight; 0 (or None) means unlimited. Whatever the concurrency,
results are kept in original item order.

Per-iteration signals:
- Next: that slot is None, remaining iterations continue
- Break: that slot is None and no further iteration starts; iterations
  already running are allowed to finish
"""

import asyncio
import contextlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import Field

from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput
from cogwork.control_flow import ScopeOutcome
from cogwork.system_cogs.base import IterationResults, ScopeInvocation, SystemCog
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)


def coerce_items(value: Any) -> list[Any]:
    """
    Turn a proc return value into a list of items.

    Strings and bytes are single items; mappings become (key, value) pairs;
    other iterables are listed; anything else is wrapped.
    """
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value]
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, Iterable):
        return list(value)
    return [value]


class MapConfig(CogConfig):
    parallel: int | None = Field(default=1, ge=0)

    def parallel_unlimited(self) -> None:
        self.parallel = 0

    def serial(self) -> None:
        self.parallel = 1

    @property
    def max_parallel(self) -> int | None:
        """Concurrency bound, None when unlimited."""
        return self.parallel or None


@dataclass
class MapInput(CogInput):
    items: Any = None
    initial_index: int = 0

    def coerce(self, value: Any) -> None:
        self.items = coerce_items(value if self.items is None else self.items)


@dataclass(frozen=True)
class MapOutput(IterationResults, CogOutput):
    """Iteration handles in item order; usable with collect/reduce."""


async def run_all(tasks: list[asyncio.Task]) -> None:
    """Await every task; on the first error cancel the rest, join, re-raise."""
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class Map(SystemCog):
    type_name = "map"
    Config = MapConfig
    Input = MapInput

    async def execute(self, cog_input: MapInput) -> MapOutput:
        items: list[Any] = cog_input.items
        slots: list[ScopeInvocation | None] = [None] * len(items)
        limit = self.config.max_parallel if isinstance(self.config, MapConfig) else 1

        logger.debug(
            "map_started",
            cog=self.name,
            scope=self.run_scope,
            items=len(items),
            parallel=limit or "unlimited",
        )

        if limit == 1:
            await self._run_serial(items, cog_input.initial_index, slots)
        else:
            await self._run_parallel(items, cog_input.initial_index, slots, limit)

        return MapOutput(tuple(slots))

    async def _run_serial(
        self, items: list[Any], start: int, slots: list[ScopeInvocation | None]
    ) -> None:
        for offset, item in enumerate(items):
            outcome, invocation = await self._run_iteration(item, start + offset)
            if outcome is ScopeOutcome.COMPLETED:
                slots[offset] = invocation
            elif outcome is ScopeOutcome.BREAK:
                break

    async def _run_parallel(
        self,
        items: list[Any],
        start: int,
        slots: list[ScopeInvocation | None],
        limit: int | None,
    ) -> None:
        gate: Any = asyncio.Semaphore(limit) if limit else contextlib.nullcontext()
        broke = False

        async def run_slot(offset: int, item: Any) -> None:
            nonlocal broke
            async with gate:
                if broke:
                    return
                outcome, invocation = await self._run_iteration(item, start + offset)
            if outcome is ScopeOutcome.COMPLETED:
                slots[offset] = invocation
            elif outcome is ScopeOutcome.BREAK:
                broke = True

        tasks = [
            asyncio.create_task(run_slot(offset, item), name=f"map:{self.name}:{offset}")
            for offset, item in enumerate(items)
        ]
        await run_all(tasks)

    async def _run_iteration(self, item: Any, index: int) -> tuple[ScopeOutcome, ScopeInvocation]:
        manager = self.runner.spawn(self.run_scope, item, index)
        logger.debug("map_iteration_started", cog=self.name, index=index)
        outcome = await manager.run()
        return outcome, ScopeInvocation(manager)


__all__ = ["Map", "MapConfig", "MapInput", "MapOutput", "coerce_items", "run_all"]
