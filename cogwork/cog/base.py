"""
Cog - the schedulable unit of work.

A cog pairs an input proc with an execute() implementation. Every cog type
shares one lifecycle, driven by Cog.run():

    pending -> running -> succeeded | failed | skipped | stopped

A cog stays pending while its input proc runs, so a skip or a signal raised
there never passes through running. The terminal state is set exactly once.
Control-flow signals raised by the input proc are converted into a
StepOutcome here and never escape run().
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar
from uuid import uuid4

from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput
from cogwork.cog.output import CogOutput
from cogwork.control_flow import Break, FailCog, Next, SkipCog, StepOutcome
from cogwork.errors import (
    CogExecutionError,
    ConfigurationError,
    ExecutionManagerStateError,
)
from cogwork.utils.logging import get_logger

if TYPE_CHECKING:
    from cogwork.workflow.input_context import CogInputContext

logger = get_logger(__name__)

InputProc = Callable[["CogInputContext", Any], Any]


class CogState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    STOPPED = "stopped"


TERMINAL_STATES = frozenset(
    {CogState.SUCCEEDED, CogState.FAILED, CogState.SKIPPED, CogState.STOPPED}
)


class Cog(ABC):
    """
    Base class for cog implementations.

    Subclasses set ``type_name`` and, when they need more than the base
    contracts, nested ``Config``/``Input`` classes, then implement execute().

    Attributes:
        name: Unique name within the owning scope invocation
        anonymous: True when the author did not name the cog
        state: Current lifecycle state
        output: Set iff the cog succeeded
        error: The failure, when the cog failed
        config: Resolved config, set when the cog starts
    """

    type_name: ClassVar[str] = ""
    Config: ClassVar[type[CogConfig]] = CogConfig
    Input: ClassVar[type[CogInput]] = CogInput

    def __init__(self, name: str | None, input_proc: InputProc | None = None):
        self.anonymous = name is None
        self.name = name if name is not None else f"{self.type_name}-{uuid4().hex[:12]}"
        self.input_proc = input_proc
        self.state = CogState.PENDING
        self.output: CogOutput | None = None
        self.error: BaseException | None = None
        self.config: CogConfig | None = None
        self._dispatched = False
        self._finished = asyncio.Event()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} state={self.state.value}>"

    @property
    def started(self) -> bool:
        """True once the scheduler has handed the cog its config."""
        return self._dispatched

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    async def wait(self) -> None:
        """Block until the cog reaches a terminal state."""
        await self._finished.wait()

    @abstractmethod
    async def execute(self, cog_input: Any) -> CogOutput:
        """Perform the work for a validated input."""

    async def run(self, config: CogConfig, context: "CogInputContext") -> StepOutcome:
        """
        Build the input and execute the cog.

        Returns:
            StepOutcome describing how the cog ended

        Raises:
            ConfigurationError: Invalid input or config, regardless of
                abort_on_failure
            asyncio.CancelledError: The cog was stopped
        """
        if self.started:
            raise ExecutionManagerStateError(f"Cog '{self.name}' has already run")

        self._dispatched = True
        self.config = config

        try:
            cog_input = await self._build_input(context)
            self.state = CogState.RUNNING
            logger.debug("cog_started", cog=self.name, type=self.type_name)
            output = await self.execute(cog_input)
        except SkipCog:
            self.state = CogState.SKIPPED
            logger.debug("cog_skipped", cog=self.name)
            return StepOutcome.SKIPPED
        except FailCog as signal:
            self.state = CogState.FAILED
            self.error = CogExecutionError(
                f"Cog '{self.name}' failed: {signal.reason or 'fail requested'}",
                cog_name=self.name,
            )
            logger.warning("cog_failed", cog=self.name, reason=signal.reason)
            return StepOutcome.FAILED
        except Next:
            self.state = CogState.SKIPPED
            logger.debug("cog_signalled_next", cog=self.name)
            return StepOutcome.NEXT
        except Break:
            self.state = CogState.SKIPPED
            logger.debug("cog_signalled_break", cog=self.name)
            return StepOutcome.BREAK
        except ConfigurationError as e:
            self.state = CogState.FAILED
            self.error = e
            raise
        except asyncio.CancelledError:
            self.state = CogState.STOPPED
            logger.debug("cog_stopped", cog=self.name)
            raise
        except Exception as e:
            self.state = CogState.FAILED
            self.error = e
            logger.error(
                "cog_failed",
                cog=self.name,
                type=self.type_name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return StepOutcome.FAILED
        else:
            self.output = output
            self.state = CogState.SUCCEEDED
            logger.debug("cog_succeeded", cog=self.name)
            return StepOutcome.RAN
        finally:
            self._finished.set()

    async def _build_input(self, context: "CogInputContext") -> CogInput:
        cog_input = self.Input()
        result = None
        if self.input_proc is not None:
            result = self.input_proc(context, cog_input)
            if inspect.isawaitable(result):
                result = await result
        if result is cog_input:
            result = None
        cog_input.coerce(result)
        cog_input.validate()
        return cog_input


__all__ = ["Cog", "CogState", "InputProc", "TERMINAL_STATES"]
