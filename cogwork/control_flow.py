"""
Control-flow signals and outcomes.

User procedures short-circuit with signals (raised from CogInputContext):
- SkipCog: the cog being built never runs and is recorded as skipped
- FailCog: the cog is recorded as failed
- Next: end the current loop iteration
- Break: end the enclosing loop

Signals never travel past the cog boundary. Cog.run converts them into a
StepOutcome and ExecutionManager.run reports a ScopeOutcome, so the scheduler
and the system cogs branch on plain values.
"""

from enum import Enum


class ControlFlowSignal(Exception):
    """Base class for deliberate short-circuits raised inside user procs."""

    def __init__(self, reason: str | None = None):
        super().__init__(reason or type(self).__name__)
        self.reason = reason


class SkipCog(ControlFlowSignal):
    pass


class FailCog(ControlFlowSignal):
    pass


class Next(ControlFlowSignal):
    pass


class Break(ControlFlowSignal):
    pass


class StepOutcome(str, Enum):
    """Result of running a single cog."""

    RAN = "ran"
    SKIPPED = "skipped"
    FAILED = "failed"
    NEXT = "next"
    BREAK = "break"


class ScopeOutcome(str, Enum):
    """Result of running one scope invocation."""

    COMPLETED = "completed"
    NEXT = "next"
    BREAK = "break"


__all__ = [
    "ControlFlowSignal",
    "SkipCog",
    "FailCog",
    "Next",
    "Break",
    "StepOutcome",
    "ScopeOutcome",
]
