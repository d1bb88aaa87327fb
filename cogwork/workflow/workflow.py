"""
Workflow - declaration and entry point.

A workflow collects config procs and step procs per scope, then runs the
top-level scope:

    workflow = Workflow()

    @workflow.config
    def configure(c):
        c.cog("cmd").display()

    @workflow.execute()
    def main(ex):
        ex.cmd("status", lambda ctx, inp: "git status --short")

    result = workflow.run(targets=["src/"])
"""

import asyncio
import tempfile
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from cogwork.cog.registry import CogRegistry
from cogwork.control_flow import ScopeOutcome
from cogwork.errors import ControlFlowOutsideLoopError
from cogwork.utils.logging import get_logger
from cogwork.workflow.config_manager import ConfigManager, ConfigProc
from cogwork.workflow.execution_manager import (
    ExecutionEnvironment,
    ExecutionManager,
    StepProc,
)
from cogwork.workflow.params import WorkflowContext, WorkflowParams

logger = get_logger(__name__)


class Workflow:
    """
    A set of named scopes plus configuration.

    Attributes:
        name: Display name used in logs
        registry: Cog types available to step procs
        workflow_dir: Directory of the workflow file, if loaded from one
    """

    def __init__(
        self,
        name: str = "workflow",
        registry: CogRegistry | None = None,
        workflow_dir: Path | None = None,
    ):
        self.name = name
        self.registry = registry or CogRegistry.default()
        self.workflow_dir = workflow_dir
        self._config_procs: list[ConfigProc] = []
        self._scopes: dict[str | None, list[StepProc]] = {}

    def config(self, fn: ConfigProc) -> ConfigProc:
        """Decorator registering a config proc."""
        self._config_procs.append(fn)
        return fn

    def execute(self, scope: str | None = None) -> Callable[[StepProc], StepProc]:
        """
        Decorator registering a step proc.

        Args:
            scope: Named scope for call/map/repeat, None for the top level
        """

        def decorator(fn: StepProc) -> StepProc:
            self._scopes.setdefault(scope, []).append(fn)
            return fn

        return decorator

    @property
    def scopes(self) -> Mapping[str | None, tuple[StepProc, ...]]:
        return MappingProxyType({k: tuple(v) for k, v in self._scopes.items()})

    async def start(
        self,
        targets: Iterable[str] = (),
        args: Iterable[str] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Run the top-level scope.

        Returns:
            The top-level scope's final output

        Raises:
            ExecutionScopeDoesNotExistError: If no top-level step was declared
            ControlFlowOutsideLoopError: If next/break reached the top scope
        """
        config_manager = ConfigManager(self.registry)
        config_manager.prepare(self._config_procs)
        params = WorkflowParams(
            targets=tuple(targets), args=tuple(args), kwargs=dict(kwargs or {})
        )

        with tempfile.TemporaryDirectory(prefix="cogwork-") as tmpdir:
            environment = ExecutionEnvironment(
                registry=self.registry,
                config_manager=config_manager,
                scopes=self.scopes,
                workflow=WorkflowContext(
                    params=params, tmpdir=Path(tmpdir), workflow_dir=self.workflow_dir
                ),
            )
            manager = ExecutionManager(environment)
            manager.prepare()

            logger.info("workflow_started", workflow=self.name, targets=len(params.targets))
            outcome = await manager.run()

        if outcome is not ScopeOutcome.COMPLETED:
            raise ControlFlowOutsideLoopError(
                f"'{outcome.value}' signalled outside of a map or repeat"
            )

        logger.info("workflow_completed", workflow=self.name)
        return manager.final_output

    def run(
        self,
        targets: Iterable[str] = (),
        args: Iterable[str] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """Blocking wrapper around start()."""
        return asyncio.run(self.start(targets=targets, args=args, kwargs=kwargs))


__all__ = ["Workflow"]
