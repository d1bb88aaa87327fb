"""
Cogwork - workflow execution engine.

Top-level exports for easy access to core functionality.
"""

from cogwork.cog import Cog, CogConfig, CogInput, CogOutput, CogRegistry, CogState
from cogwork.config import settings
from cogwork.control_flow import Break, FailCog, Next, ScopeOutcome, SkipCog, StepOutcome
from cogwork.errors import CogworkError, ConfigurationError
from cogwork.workflow import (
    CogInputContext,
    ExecutionContext,
    ExecutionManager,
    Workflow,
    load_workflow,
)

__version__ = "0.1.0"

__all__ = [
    # Workflow
    "Workflow",
    "load_workflow",
    "ExecutionManager",
    "ExecutionContext",
    "CogInputContext",
    # Cogs
    "Cog",
    "CogConfig",
    "CogInput",
    "CogOutput",
    "CogRegistry",
    "CogState",
    # Control flow
    "Break",
    "FailCog",
    "Next",
    "SkipCog",
    "ScopeOutcome",
    "StepOutcome",
    # Errors
    "CogworkError",
    "ConfigurationError",
    # Config
    "settings",
]
