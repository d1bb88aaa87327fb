"""
Shared pieces for the system cogs (call, map, repeat).

This module defines:
- ScopeRunner: protocol for spawning nested scope invocations
- ScopeInvocation: read-only handle onto one completed invocation
- IterationResults: ordered iteration slots, shared by map and repeat
- SystemCog: base class wiring a cog to the scope it runs
"""

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cogwork.cog.base import Cog, InputProc
from cogwork.control_flow import ScopeOutcome
from cogwork.errors import IterationDidNotRunError

if TYPE_CHECKING:
    from cogwork.workflow.execution_manager import ExecutionManager
    from cogwork.workflow.input_context import CogInputContext


@runtime_checkable
class ScopeRunner(Protocol):
    """Anything that can create prepared managers for nested scopes."""

    def spawn(self, scope: str, value: Any = None, index: int = 0) -> "ExecutionManager":
        """Create and prepare a manager for ``scope``."""
        ...


class ScopeInvocation:
    """
    Handle onto one completed scope invocation.

    The invocation's cogs are only reachable by evaluating a procedure in its
    input context (CogInputContext.from_/collect/reduce); the store itself is
    never handed out.
    """

    def __init__(self, manager: "ExecutionManager"):
        self._manager = manager

    def __repr__(self) -> str:
        return f"<ScopeInvocation scope={self.scope!r} index={self.index}>"

    def __deepcopy__(self, memo: dict) -> "ScopeInvocation":
        # Handles are references; copying an output keeps pointing at the run
        return self

    @property
    def scope(self) -> str | None:
        return self._manager.scope

    @property
    def index(self) -> int:
        return self._manager.scope_index

    @property
    def value(self) -> Any:
        return copy.deepcopy(self._manager.scope_value)

    @property
    def final_output(self) -> Any:
        return self._manager.final_output

    @property
    def outcome(self) -> ScopeOutcome | None:
        return self._manager.outcome

    def input_context(self) -> "CogInputContext":
        return self._manager.input_context()


@dataclass(frozen=True)
class IterationResults:
    """
    Iteration slots in original item order.

    A slot is None when its iteration did not run to completion (Next/Break,
    or never started).
    """

    invocations: tuple[ScopeInvocation | None, ...] = ()

    def __len__(self) -> int:
        return len(self.invocations)

    def has_iteration(self, index: int) -> bool:
        try:
            return self.invocations[index] is not None
        except IndexError:
            return False

    def iteration(self, index: int) -> ScopeInvocation:
        """
        Get one iteration. Negative indices count from the end.

        Raises:
            IterationDidNotRunError: If the slot is empty or out of range
        """
        try:
            invocation = self.invocations[index]
        except IndexError:
            invocation = None
        if invocation is None:
            raise IterationDidNotRunError(index)
        return invocation

    def first(self) -> ScopeInvocation:
        return self.iteration(0)

    def last(self) -> ScopeInvocation:
        return self.iteration(-1)


class SystemCog(Cog):
    """
    Cog that runs nested scope invocations.

    Attributes:
        run_scope: Name of the scope to run
        runner: Spawns prepared managers, normally the declaring manager
    """

    def __init__(
        self,
        name: str | None,
        input_proc: InputProc | None,
        run_scope: str,
        runner: ScopeRunner,
    ):
        super().__init__(name, input_proc)
        self.run_scope = run_scope
        self.runner = runner


__all__ = ["ScopeRunner", "ScopeInvocation", "IterationResults", "SystemCog"]
