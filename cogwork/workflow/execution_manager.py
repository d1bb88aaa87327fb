"""
ExecutionManager - the scheduler for one scope invocation.

A map over five items creates five managers for the same scope definition.
Each manager owns its CogStore exclusively and runs at most once:

    idle -> prepared -> running -> complete

Scheduling model:
- prepare() runs the scope's step procs, which declare cogs into the store
- run() starts cogs strictly in declaration order
- a sync cog is awaited before the next cog starts
- an async cog runs as a background task; the scope keeps going
- blocking accessors (require_cog, from_) are the only thing that orders
  otherwise independent async work
- every background task is joined before run() returns

Next/Break reported by a cog end the scope early; in-flight background cogs
are cancelled and joined, and the final output is still computed from what
ran. A failed cog whose config aborts on failure re-raises its error after
the same cleanup.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence

from cogwork.cog.base import Cog, CogState
from cogwork.cog.registry import CogRegistry
from cogwork.cog.store import CogStore
from cogwork.control_flow import Break, FailCog, Next, ScopeOutcome, SkipCog, StepOutcome
from cogwork.errors import (
    CogExecutionError,
    CogNotYetRunError,
    CogSkippedError,
    CogStoppedError,
    ExecutionManagerStateError,
    ExecutionScopeDoesNotExistError,
    OutputsAlreadyDefinedError,
)
from cogwork.utils.logging import get_logger
from cogwork.workflow.config_manager import ConfigManager
from cogwork.workflow.params import WorkflowContext

if TYPE_CHECKING:
    from cogwork.workflow.execution_context import ExecutionContext
    from cogwork.workflow.input_context import CogInputContext

logger = get_logger(__name__)

StepProc = Callable[["ExecutionContext"], Any]
OutputsProc = Callable[["CogInputContext"], Any]


@dataclass(frozen=True)
class ExecutionEnvironment:
    """
    Collaborators shared by every manager of one workflow run.

    Passed explicitly from parent to child managers.
    """

    registry: CogRegistry
    config_manager: ConfigManager
    scopes: Mapping[str | None, Sequence[StepProc]]
    workflow: WorkflowContext

    def has_scope(self, scope: str | None) -> bool:
        return scope in self.scopes


class ExecutionManager:
    """
    Runs one invocation of a scope.

    Attributes:
        scope: Scope name, None for the top-level scope
        scope_value: Value handed in by call/map/repeat
        scope_index: Position within a map/repeat sequence
        store: This invocation's cog namespace
        final_output: Set once run() completes
        outcome: How run() ended
    """

    def __init__(
        self,
        environment: ExecutionEnvironment,
        scope: str | None = None,
        scope_value: Any = None,
        scope_index: int = 0,
    ):
        self.environment = environment
        self.scope = scope
        self.scope_value = scope_value
        self.scope_index = scope_index
        self.store = CogStore()
        self.final_output: Any = None
        self.outcome: ScopeOutcome | None = None

        self._outputs_proc: OutputsProc | None = None
        self._outputs_strict = False
        self._prepared = False
        self._started = False
        self._in_flight: dict[asyncio.Task, Cog] = {}

    @property
    def scope_label(self) -> str:
        return self.scope or "<top>"

    @property
    def prepared(self) -> bool:
        return self._prepared

    @property
    def completed(self) -> bool:
        return self.outcome is not None

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------

    def prepare(self) -> None:
        """
        Declare the scope's cogs.

        Raises:
            ExecutionManagerStateError: If already prepared
            ExecutionScopeDoesNotExistError: If the scope was never declared
        """
        from cogwork.workflow.execution_context import ExecutionContext

        if self._prepared:
            raise ExecutionManagerStateError(
                f"Scope {self.scope_label} is already prepared"
            )
        if not self.environment.has_scope(self.scope):
            raise ExecutionScopeDoesNotExistError(
                f"Execution scope does not exist: {self.scope_label}"
            )

        declaration = ExecutionContext(self)
        for proc in self.environment.scopes[self.scope]:
            proc(declaration)
        self._prepared = True

    def add_cog(self, cog: Cog) -> Cog:
        return self.store.add(cog)

    def set_outputs(self, proc: OutputsProc, strict: bool) -> None:
        if self._outputs_proc is not None:
            raise OutputsAlreadyDefinedError(
                f"Scope {self.scope_label} already defines an outputs procedure"
            )
        self._outputs_proc = proc
        self._outputs_strict = strict

    def input_context(self, cog: Cog | None = None) -> "CogInputContext":
        from cogwork.workflow.input_context import CogInputContext

        return CogInputContext(self, cog)

    def spawn(self, scope: str, value: Any = None, index: int = 0) -> "ExecutionManager":
        """Create and prepare a manager for a nested scope invocation."""
        child = ExecutionManager(
            self.environment, scope=scope, scope_value=value, scope_index=index
        )
        child.prepare()
        return child

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self) -> ScopeOutcome:
        """
        Run every declared cog and compute the final output.

        Returns:
            COMPLETED, or NEXT/BREAK when a cog (or the outputs proc) signalled

        Raises:
            ExecutionManagerStateError: If not prepared or already run
            Exception: The error of a failed cog configured to abort
        """
        if not self._prepared:
            raise ExecutionManagerStateError(f"Scope {self.scope_label} is not prepared")
        if self._started:
            raise ExecutionManagerStateError(f"Scope {self.scope_label} has already run")
        self._started = True

        logger.debug(
            "scope_started",
            scope=self.scope_label,
            index=self.scope_index,
            cogs=len(self.store),
        )

        try:
            outcome = await self._run_cogs()
            await self._stop_in_flight()
            # After Next the scope keeps what it produced; exports are lenient
            self.final_output, broke = await self._compute_final_output(
                strict=self._outputs_strict and outcome is not ScopeOutcome.NEXT
            )
            if broke:
                outcome = ScopeOutcome.BREAK
        finally:
            await self._stop_in_flight()

        self.outcome = outcome
        logger.debug(
            "scope_completed",
            scope=self.scope_label,
            index=self.scope_index,
            outcome=outcome.value,
        )
        return outcome

    async def _run_cogs(self) -> ScopeOutcome:
        config_manager = self.environment.config_manager

        for cog in self.store:
            config = config_manager.config_for(cog)
            task = asyncio.create_task(
                cog.run(config, self.input_context(cog)), name=f"cog:{cog.name}"
            )

            if config.run_async:
                self._in_flight[task] = cog
                logger.debug("cog_dispatched_async", cog=cog.name, scope=self.scope_label)
            else:
                outcome = self._resolve(cog, await task)
                if outcome is not ScopeOutcome.COMPLETED:
                    return outcome

            outcome = self._reap_finished()
            if outcome is not ScopeOutcome.COMPLETED:
                return outcome

        return await self._join_in_flight()

    def _reap_finished(self) -> ScopeOutcome:
        for task in [t for t in self._in_flight if t.done()]:
            cog = self._in_flight.pop(task)
            outcome = self._resolve(cog, task.result())
            if outcome is not ScopeOutcome.COMPLETED:
                return outcome
        return ScopeOutcome.COMPLETED

    async def _join_in_flight(self) -> ScopeOutcome:
        while self._in_flight:
            done, _ = await asyncio.wait(
                list(self._in_flight), return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                cog = self._in_flight.pop(task)
                outcome = self._resolve(cog, task.result())
                if outcome is not ScopeOutcome.COMPLETED:
                    return outcome
        return ScopeOutcome.COMPLETED

    async def _stop_in_flight(self) -> None:
        if not self._in_flight:
            return
        tasks = list(self._in_flight)
        self._in_flight.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _resolve(self, cog: Cog, step: StepOutcome) -> ScopeOutcome:
        if step is StepOutcome.NEXT:
            return ScopeOutcome.NEXT
        if step is StepOutcome.BREAK:
            return ScopeOutcome.BREAK
        if step is StepOutcome.FAILED and cog.config is not None and cog.config.abort_on_failure:
            raise cog.error or CogExecutionError(f"Cog '{cog.name}' failed", cog_name=cog.name)
        return ScopeOutcome.COMPLETED

    # ------------------------------------------------------------------
    # Final output
    # ------------------------------------------------------------------

    async def _compute_final_output(self, strict: bool) -> tuple[Any, bool]:
        """
        Lenient exports turn reads of cogs that did not run, were skipped or
        were stopped into None. Any other access error propagates.

        Returns:
            (final_output, broke) where broke is True when the outputs proc
            signalled Break
        """
        if self._outputs_proc is None:
            return self._last_output(), False

        context = self.input_context()
        try:
            result = self._outputs_proc(context)
            if inspect.isawaitable(result):
                result = await result
            return result, False
        except (SkipCog, Next):
            return None, False
        except Break:
            return None, True
        except FailCog as signal:
            raise CogExecutionError(
                f"Outputs of scope {self.scope_label} failed: {signal.reason or 'fail requested'}"
            ) from signal
        except (CogNotYetRunError, CogSkippedError, CogStoppedError) as e:
            if strict:
                raise
            logger.debug("outputs_access_suppressed", scope=self.scope_label, error=str(e))
            return None, False

    def _last_output(self) -> Any:
        last: Cog | None = None
        for cog in self.store:
            if cog.started and cog.state is not CogState.SKIPPED:
                last = cog
        return last.output if last is not None else None


__all__ = ["ExecutionManager", "ExecutionEnvironment", "StepProc", "OutputsProc"]
