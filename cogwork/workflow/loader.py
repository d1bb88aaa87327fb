"""
Load workflows from Python files.

A workflow file is a plain module that defines a module-level ``workflow``:

    from cogwork import Workflow

    workflow = Workflow("review")

    @workflow.execute()
    def main(ex):
        ...
"""

import importlib.util
from pathlib import Path

from cogwork.errors import CogworkError, WorkflowLoadError
from cogwork.utils.logging import get_logger
from cogwork.workflow.workflow import Workflow

logger = get_logger(__name__)

WORKFLOW_ATTRIBUTE = "workflow"


def load_workflow(path: str | Path) -> Workflow:
    """
    Import a workflow file and return its Workflow.

    Raises:
        WorkflowLoadError: If the file is missing, fails to import, or does
            not define a Workflow named ``workflow``
    """
    file_path = Path(path).expanduser().resolve()
    if not file_path.is_file():
        raise WorkflowLoadError(f"Workflow file not found: {file_path}")

    spec = importlib.util.spec_from_file_location(f"cogwork_workflow_{file_path.stem}", file_path)
    if spec is None or spec.loader is None:
        raise WorkflowLoadError(f"Cannot import workflow file: {file_path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except CogworkError:
        raise
    except Exception as e:
        raise WorkflowLoadError(f"Failed to load workflow {file_path}: {e}") from e

    workflow = getattr(module, WORKFLOW_ATTRIBUTE, None)
    if not isinstance(workflow, Workflow):
        raise WorkflowLoadError(
            f"{file_path} does not define a Workflow named '{WORKFLOW_ATTRIBUTE}'"
        )

    if workflow.workflow_dir is None:
        workflow.workflow_dir = file_path.parent

    logger.debug("workflow_loaded", path=str(file_path), workflow=workflow.name)
    return workflow


__all__ = ["load_workflow"]
