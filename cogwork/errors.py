"""
Cogwork exception hierarchy.

Errors fall into four families:
- ConfigurationError: authoring mistakes detected while declaring or preparing
  a workflow. Always propagate, never retried.
- OutputAccessError: a step asked for an output that is not available.
- CogExecutionError: the work performed by a cog failed.
- CommandRunnerError: subprocess plumbing failures.

Control-flow signals (skip/fail/next/break) are not errors and live in
cogwork.control_flow.
"""


class CogworkError(Exception):
    """Base exception for all cogwork errors."""

    pass


# ============================================================================
# Configuration errors
# ============================================================================


class ConfigurationError(CogworkError):
    """Base exception for workflow authoring errors."""

    pass


class InvalidInputError(ConfigurationError):
    """Cog input is still invalid after coercion."""

    pass


class InvalidConfigError(ConfigurationError):
    """Resolved cog configuration cannot be used."""

    pass


class CogAlreadyDefinedError(ConfigurationError):
    """A cog name was declared twice in the same scope invocation."""

    def __init__(self, name: str):
        super().__init__(f"Cog already defined in this scope: {name}")
        self.cog_name = name


class IllegalCogNameError(ConfigurationError):
    """A cog type name clashes with the declaration API."""

    pass


class UnknownCogTypeError(ConfigurationError):
    """No cog implementation is registered under the requested type name."""

    pass


class ExecutionScopeDoesNotExistError(ConfigurationError):
    """A call/map/repeat references a scope that was never declared."""

    pass


class ExecutionScopeNotSpecifiedError(ConfigurationError):
    """A call/map/repeat was declared without a scope to run."""

    pass


class OutputsAlreadyDefinedError(ConfigurationError):
    """A scope declared more than one outputs procedure."""

    pass


class ControlFlowOutsideLoopError(ConfigurationError):
    """A next/break signal reached the top-level scope."""

    pass


class ExecutionManagerStateError(ConfigurationError):
    """An execution manager was prepared or run out of order."""

    pass


# ============================================================================
# Output access errors
# ============================================================================


class OutputAccessError(CogworkError):
    """Base exception for outputs that cannot be read."""

    pass


class CogOutputAccessError(OutputAccessError):
    """Base exception for reading a cog output by name."""

    reason = "is unavailable"

    def __init__(self, name: str, detail: str | None = None):
        message = f"Cog '{name}' {self.reason}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.cog_name = name


class CogDoesNotExistError(CogOutputAccessError):
    reason = "does not exist in this scope"


class CogNotYetRunError(CogOutputAccessError):
    reason = "has not run yet"


class CogSkippedError(CogOutputAccessError):
    reason = "was skipped"


class CogFailedError(CogOutputAccessError):
    reason = "failed"


class CogStoppedError(CogOutputAccessError):
    reason = "was stopped before completing"


class IterationDidNotRunError(OutputAccessError):
    """A map/repeat iteration slot has no result."""

    def __init__(self, index: int):
        super().__init__(f"Iteration {index} did not run")
        self.index = index


# ============================================================================
# Execution errors
# ============================================================================


class CogExecutionError(CogworkError):
    """A cog failed while doing its work."""

    def __init__(self, message: str, cog_name: str | None = None):
        super().__init__(message)
        self.cog_name = cog_name


class CommandFailedError(CogExecutionError):
    """A shell command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        message = f"Command exited with status {returncode}: {command}"
        if stderr.strip():
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class AgentInvocationError(CogExecutionError):
    """The coding agent process failed."""

    pass


# ============================================================================
# Command runner errors
# ============================================================================


class CommandRunnerError(CogworkError):
    """Base exception for subprocess execution."""

    pass


class NoCommandProvidedError(CommandRunnerError):
    """Nothing was left to run after dropping empty command parts."""

    pass


class CommandTimeoutError(CommandRunnerError):
    """The command did not finish in time and was killed."""

    def __init__(self, command: str, timeout: float):
        super().__init__(f"Command timed out after {timeout}s: {command}")
        self.command = command
        self.timeout = timeout


# ============================================================================
# Misc
# ============================================================================


class OutputParseError(CogworkError, ValueError):
    """Structured data could not be extracted from an output."""

    pass


class WorkflowLoadError(CogworkError):
    """A workflow file could not be loaded."""

    pass


__all__ = [
    "CogworkError",
    "ConfigurationError",
    "InvalidInputError",
    "InvalidConfigError",
    "CogAlreadyDefinedError",
    "IllegalCogNameError",
    "UnknownCogTypeError",
    "ExecutionScopeDoesNotExistError",
    "ExecutionScopeNotSpecifiedError",
    "OutputsAlreadyDefinedError",
    "ControlFlowOutsideLoopError",
    "ExecutionManagerStateError",
    "OutputAccessError",
    "CogOutputAccessError",
    "CogDoesNotExistError",
    "CogNotYetRunError",
    "CogSkippedError",
    "CogFailedError",
    "CogStoppedError",
    "IterationDidNotRunError",
    "CogExecutionError",
    "CommandFailedError",
    "AgentInvocationError",
    "CommandRunnerError",
    "NoCommandProvidedError",
    "CommandTimeoutError",
    "OutputParseError",
    "WorkflowLoadError",
]
