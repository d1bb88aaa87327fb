"""
repeat - run a named scope until Break or max_iterations.

Iteration i receives the previous iteration's final output as its scope
value (the input value seeds iteration 0) and ``index + i`` as scope index.

- Next: the slot is None and the previous value is carried forward
- Break: the breaking iteration counts; its final output becomes ``value``
  and the loop stops
"""

from dataclasses import dataclass, field
from typing import Any

from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput
from cogwork.control_flow import ScopeOutcome
from cogwork.errors import InvalidInputError
from cogwork.system_cogs.base import ScopeInvocation, SystemCog
from cogwork.system_cogs.map import MapOutput
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RepeatInput(CogInput):
    value: Any = None
    index: int = 0
    max_iterations: int | None = None

    def coerce(self, value: Any) -> None:
        if self.value is None:
            self.value = value

    def validate(self) -> None:
        if self.max_iterations is None:
            raise InvalidInputError("'max_iterations' is required")
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            raise InvalidInputError("'max_iterations' must be an integer")
        if self.max_iterations < 1:
            raise InvalidInputError("'max_iterations' must be at least 1")


@dataclass(frozen=True)
class RepeatOutput(CogOutput):
    """
    Result of a repeat loop.

    Attributes:
        results: Iteration slots, usable with collect/reduce
        broke: True iff an iteration signalled Break
    """

    results: MapOutput = field(default_factory=MapOutput)
    broke: bool = False

    @property
    def invocations(self) -> tuple[ScopeInvocation | None, ...]:
        return self.results.invocations

    @property
    def iterations(self) -> int:
        """Number of iterations actually run."""
        return len(self.results)

    @property
    def value(self) -> Any:
        """Final output of the last iteration that produced one."""
        for invocation in reversed(self.results.invocations):
            if invocation is not None:
                return invocation.final_output
        return None

    def has_iteration(self, index: int) -> bool:
        return self.results.has_iteration(index)

    def iteration(self, index: int) -> ScopeInvocation:
        return self.results.iteration(index)

    def first(self) -> ScopeInvocation:
        return self.results.first()

    def last(self) -> ScopeInvocation:
        return self.results.last()


class Repeat(SystemCog):
    type_name = "repeat"
    Input = RepeatInput

    async def execute(self, cog_input: RepeatInput) -> RepeatOutput:
        value = cog_input.value
        slots: list[ScopeInvocation | None] = []
        broke = False
        max_iterations = cog_input.max_iterations or 0

        for iteration in range(max_iterations):
            manager = self.runner.spawn(self.run_scope, value, cog_input.index + iteration)
            outcome = await manager.run()
            logger.debug(
                "repeat_iteration_completed",
                cog=self.name,
                index=cog_input.index + iteration,
                outcome=outcome.value,
            )

            if outcome is ScopeOutcome.NEXT:
                slots.append(None)
                continue

            slots.append(ScopeInvocation(manager))
            if outcome is ScopeOutcome.BREAK:
                broke = True
                break
            value = manager.final_output

        logger.debug(
            "repeat_completed",
            cog=self.name,
            scope=self.run_scope,
            iterations=len(slots),
            broke=broke,
        )
        return RepeatOutput(results=MapOutput(tuple(slots)), broke=broke)


__all__ = ["Repeat", "RepeatInput", "RepeatOutput"]
