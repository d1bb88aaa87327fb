"""
ExecutionContext - the declaration API passed to step procs.

Step procs run during ExecutionManager.prepare() and only declare cogs; no
work happens until run().

    @workflow.execute()
    def main(ex):
        ex.cmd("files", lambda ctx, inp: "ls")
        ex.map("summaries", lambda ctx, inp: ctx.cog("files").lines(), run="summarize")
        ex.outputs(lambda ctx: ctx.cog("summaries"))
"""

from typing import TYPE_CHECKING, Any

from cogwork.cog.base import Cog, InputProc
from cogwork.errors import (
    ExecutionScopeDoesNotExistError,
    ExecutionScopeNotSpecifiedError,
    InvalidConfigError,
)
from cogwork.system_cogs.base import SystemCog

if TYPE_CHECKING:
    from cogwork.workflow.execution_manager import ExecutionManager, OutputsProc


class ExecutionContext:
    """Declares cogs into one scope invocation."""

    def __init__(self, manager: "ExecutionManager"):
        self._manager = manager

    @property
    def scope(self) -> str | None:
        return self._manager.scope

    def cog(
        self,
        type_name: str,
        name: str | None = None,
        proc: InputProc | None = None,
        **params: Any,
    ) -> Cog:
        """
        Declare a cog of any registered type.

        Args:
            type_name: Registered cog type
            name: Unique name in this scope, None for an anonymous cog
            proc: Input proc ``proc(ctx, inp)``, sync or async
            **params: Type parameters; system cogs take ``run``

        Raises:
            UnknownCogTypeError: If the type is not registered
            CogAlreadyDefinedError: If the name is taken in this scope
        """
        cog_class = self._manager.environment.registry.get(type_name)

        if issubclass(cog_class, SystemCog):
            run_scope = self._resolve_scope(type_name, params.pop("run", None))
            if params:
                raise InvalidConfigError(
                    f"Unexpected parameters for {type_name}: {sorted(params)}"
                )
            cog: Cog = cog_class(name, proc, run_scope=run_scope, runner=self._manager)
        else:
            if params:
                raise InvalidConfigError(
                    f"Unexpected parameters for {type_name}: {sorted(params)}"
                )
            cog = cog_class(name, proc)

        return self._manager.add_cog(cog)

    def _resolve_scope(self, type_name: str, run_scope: str | None) -> str:
        if not run_scope:
            raise ExecutionScopeNotSpecifiedError(
                f"'{type_name}' requires a scope to run (run=...)"
            )
        if not self._manager.environment.has_scope(run_scope):
            raise ExecutionScopeDoesNotExistError(
                f"Execution scope does not exist: {run_scope}"
            )
        return run_scope

    # Built-in cogs

    def python(self, name: str | None = None, proc: InputProc | None = None) -> Cog:
        return self.cog("python", name, proc)

    def cmd(self, name: str | None = None, proc: InputProc | None = None) -> Cog:
        return self.cog("cmd", name, proc)

    def chat(self, name: str | None = None, proc: InputProc | None = None) -> Cog:
        return self.cog("chat", name, proc)

    def agent(self, name: str | None = None, proc: InputProc | None = None) -> Cog:
        return self.cog("agent", name, proc)

    # System cogs

    def call(self, name: str | None = None, proc: InputProc | None = None, *, run: str) -> Cog:
        return self.cog("call", name, proc, run=run)

    def map(self, name: str | None = None, proc: InputProc | None = None, *, run: str) -> Cog:
        return self.cog("map", name, proc, run=run)

    def repeat(self, name: str | None = None, proc: InputProc | None = None, *, run: str) -> Cog:
        return self.cog("repeat", name, proc, run=run)

    # Scope exports

    def outputs(self, fn: "OutputsProc") -> "OutputsProc":
        """Lenient final output: access errors become None."""
        self._manager.set_outputs(fn, strict=False)
        return fn

    def outputs_strict(self, fn: "OutputsProc") -> "OutputsProc":
        """Strict final output: access errors propagate."""
        self._manager.set_outputs(fn, strict=True)
        return fn


__all__ = ["ExecutionContext"]
