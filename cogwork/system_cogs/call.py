"""
call - run a named scope once.
"""

from dataclasses import dataclass
from typing import Any

from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput
from cogwork.control_flow import ScopeOutcome
from cogwork.system_cogs.base import ScopeInvocation, SystemCog
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CallInput(CogInput):
    value: Any = None
    index: int = 0

    def coerce(self, value: Any) -> None:
        if self.value is None:
            self.value = value


@dataclass(frozen=True)
class CallOutput(CogOutput):
    """Handle for ``from_``; wraps the single invocation."""

    invocation: ScopeInvocation

    @property
    def final_output(self) -> Any:
        return self.invocation.final_output


class Call(SystemCog):
    """
    Runs ``run_scope`` once with the input value as scope value.

    Next/Break inside the called scope end that invocation early; the final
    output is whatever the scope produced before the signal.
    """

    type_name = "call"
    Input = CallInput

    async def execute(self, cog_input: CallInput) -> CallOutput:
        manager = self.runner.spawn(self.run_scope, cog_input.value, cog_input.index)
        outcome = await manager.run()
        if outcome is not ScopeOutcome.COMPLETED:
            logger.debug("call_ended_early", cog=self.name, scope=self.run_scope, outcome=outcome.value)
        return CallOutput(ScopeInvocation(manager))


__all__ = ["Call", "CallInput", "CallOutput"]
