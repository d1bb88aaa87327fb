"""
Workflow module.

This module provides:
- Workflow: scope declarations and the run entry point
- ExecutionManager: scheduler for one scope invocation
- ExecutionContext: declaration API for step procs
- CogInputContext: accessors and signals for input procs
- ConfigManager: layered cog configuration
"""

from cogwork.workflow.config_manager import ConfigContext, ConfigManager
from cogwork.workflow.execution_context import ExecutionContext
from cogwork.workflow.execution_manager import ExecutionEnvironment, ExecutionManager
from cogwork.workflow.input_context import CogInputContext
from cogwork.workflow.loader import load_workflow
from cogwork.workflow.params import WorkflowContext, WorkflowParams
from cogwork.workflow.workflow import Workflow

__all__ = [
    "ConfigContext",
    "ConfigManager",
    "ExecutionContext",
    "ExecutionEnvironment",
    "ExecutionManager",
    "CogInputContext",
    "load_workflow",
    "WorkflowContext",
    "WorkflowParams",
    "Workflow",
]
