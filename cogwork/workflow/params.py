"""
Workflow invocation parameters.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class WorkflowParams:
    """Targets, positional args and keyword args supplied by the caller."""

    targets: tuple[str, ...] = ()
    args: tuple[str, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowContext:
    """
    Per-run environment shared by every scope invocation.

    tmpdir lives for the duration of a single Workflow.start() call.
    """

    params: WorkflowParams
    tmpdir: Path
    workflow_dir: Path | None = None


__all__ = ["WorkflowParams", "WorkflowContext"]
