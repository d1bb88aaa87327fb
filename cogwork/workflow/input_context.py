"""
CogInputContext - what an input proc can see.

Each context is bound to one ExecutionManager (one scope invocation), so
cog lookups only ever see that invocation's namespace. Other invocations are
reached through from_/collect/reduce, which evaluate a procedure inside the
target invocation's own context.

Accessors:
- cog(name): output if succeeded, else None
- cog_succeeded(name): True iff the cog exists and succeeded
- require_cog(name): output, waiting on a running cog; raises otherwise

Signals (never return): skip(), fail(), next_iteration(), break_loop()
"""

import copy
import inspect
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, NoReturn

from cogwork.cog.base import Cog, CogState
from cogwork.control_flow import Break, FailCog, Next, SkipCog
from cogwork.errors import (
    CogDoesNotExistError,
    CogFailedError,
    CogNotYetRunError,
    CogSkippedError,
    CogStoppedError,
    InvalidInputError,
)

if TYPE_CHECKING:
    from cogwork.system_cogs.base import ScopeInvocation
    from cogwork.system_cogs.call import CallOutput
    from cogwork.system_cogs.map import MapOutput
    from cogwork.system_cogs.repeat import RepeatOutput
    from cogwork.workflow.execution_manager import ExecutionManager


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class CogInputContext:
    """
    Evaluation environment for input procs and outputs procs.

    Examples:
        >>> async def build(ctx, inp):
        ...     listing = await ctx.require_cog("list_files")
        ...     if not listing.text():
        ...         ctx.skip()
        ...     return f"Summarize: {listing.text()}"
    """

    def __init__(self, manager: "ExecutionManager", cog: Cog | None = None):
        self._manager = manager
        self._cog = cog

    # ------------------------------------------------------------------
    # Scope data
    # ------------------------------------------------------------------

    @property
    def value(self) -> Any:
        """Scope value handed in by call/map/repeat (a copy)."""
        return copy.deepcopy(self._manager.scope_value)

    @property
    def index(self) -> int:
        return self._manager.scope_index

    # ------------------------------------------------------------------
    # Workflow parameters
    # ------------------------------------------------------------------

    @property
    def targets(self) -> list[str]:
        return list(self._manager.environment.workflow.params.targets)

    @property
    def target(self) -> str:
        """The single workflow target; raises unless exactly one was given."""
        targets = self.targets
        if len(targets) != 1:
            raise InvalidInputError(f"Expected exactly one target, got {len(targets)}")
        return targets[0]

    @property
    def args(self) -> list[str]:
        return list(self._manager.environment.workflow.params.args)

    def has_arg(self, arg: str) -> bool:
        return arg in self._manager.environment.workflow.params.args

    @property
    def kwargs(self) -> dict[str, Any]:
        return dict(self._manager.environment.workflow.params.kwargs)

    def kwarg(self, key: str, default: Any = None) -> Any:
        return self._manager.environment.workflow.params.kwargs.get(key, default)

    def require_kwarg(self, key: str) -> Any:
        kwargs = self._manager.environment.workflow.params.kwargs
        if key not in kwargs:
            raise InvalidInputError(f"Missing required workflow kwarg: {key}")
        return kwargs[key]

    def has_kwarg(self, key: str) -> bool:
        return key in self._manager.environment.workflow.params.kwargs

    @property
    def tmpdir(self) -> Path:
        return self._manager.environment.workflow.tmpdir

    @property
    def workflow_dir(self) -> Path | None:
        return self._manager.environment.workflow.workflow_dir

    # ------------------------------------------------------------------
    # Cog accessors
    # ------------------------------------------------------------------

    def cog(self, name: str) -> Any:
        """Copy of the output of ``name`` if it succeeded, else None. Never blocks."""
        target = self._manager.store.get(name)
        if target is None or target.state is not CogState.SUCCEEDED:
            return None
        return copy.deepcopy(target.output)

    def cog_succeeded(self, name: str) -> bool:
        target = self._manager.store.get(name)
        return target is not None and target.state is CogState.SUCCEEDED

    async def require_cog(self, name: str) -> Any:
        """
        Copy of the output of ``name``, waiting if the cog is running.

        Raises:
            CogDoesNotExistError: No cog of that name was declared in this scope
            CogNotYetRunError: The cog has not started (declared later, or
                asked for by itself)
            CogSkippedError / CogFailedError / CogStoppedError: The cog ended
                without an output
        """
        target = self._manager.store.get(name)
        if target is None:
            raise CogDoesNotExistError(name)
        if target is self._cog or not target.started:
            raise CogNotYetRunError(name)

        await target.wait()

        if target.state is CogState.SUCCEEDED:
            return copy.deepcopy(target.output)
        if target.state is CogState.SKIPPED:
            raise CogSkippedError(name)
        if target.state is CogState.STOPPED:
            raise CogStoppedError(name)
        raise CogFailedError(name, str(target.error) if target.error else None)

    # ------------------------------------------------------------------
    # Cross-scope accessors
    # ------------------------------------------------------------------

    async def from_(
        self,
        handle: "CallOutput | ScopeInvocation",
        fn: Callable[["CogInputContext", Any], Any] | None = None,
    ) -> Any:
        """
        Evaluate ``fn(ctx, final_output)`` inside a specific invocation.

        Without ``fn`` returns that invocation's final output.
        """
        invocation = getattr(handle, "invocation", handle)
        if fn is None:
            return invocation.final_output
        return await _maybe_await(fn(invocation.input_context(), invocation.final_output))

    async def collect(
        self,
        handle: "MapOutput | RepeatOutput",
        fn: Callable[["CogInputContext", Any], Any] | None = None,
    ) -> list[Any]:
        """
        Apply ``fn`` inside every iteration, in original item order.

        Slots whose iteration did not run are None.
        """
        results: list[Any] = []
        for invocation in handle.invocations:
            if invocation is None:
                results.append(None)
            elif fn is None:
                results.append(invocation.final_output)
            else:
                results.append(
                    await _maybe_await(fn(invocation.input_context(), invocation.final_output))
                )
        return results

    async def reduce(
        self,
        handle: "MapOutput | RepeatOutput",
        fn: Callable[["CogInputContext", Any, Any], Any],
        initial: Any = None,
    ) -> Any:
        """
        Fold ``fn(ctx, acc, final_output)`` over iterations in item order.

        Slots that did not run are skipped, and a None result never replaces
        the accumulator.
        """
        accumulator = initial
        for invocation in handle.invocations:
            if invocation is None:
                continue
            result = await _maybe_await(
                fn(invocation.input_context(), accumulator, invocation.final_output)
            )
            if result is not None:
                accumulator = result
        return accumulator

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def skip(self, reason: str | None = None) -> NoReturn:
        raise SkipCog(reason)

    def fail(self, reason: str | None = None) -> NoReturn:
        raise FailCog(reason)

    def next_iteration(self, reason: str | None = None) -> NoReturn:
        raise Next(reason)

    def break_loop(self, reason: str | None = None) -> NoReturn:
        raise Break(reason)


__all__ = ["CogInputContext"]
