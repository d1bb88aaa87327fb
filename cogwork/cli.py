"""
Command-line interface for Cogwork.
"""

import argparse
import sys
from pathlib import Path
from typing import Any

import yaml

from cogwork.cog.output import WithText
from cogwork.cog.registry import CogRegistry
from cogwork.cogs.python import PythonOutput
from cogwork.errors import ConfigurationError, CogworkError
from cogwork.utils.logging import configure_logging
from cogwork.workflow.loader import load_workflow


def _parse_kwarg(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {raw!r}")
    return key, value


def _load_kwargs_file(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError(f"{path} must contain a mapping")
    return data


def _format_result(result: Any) -> str:
    if isinstance(result, PythonOutput):
        return str(result.value)
    if isinstance(result, WithText):
        return result.text()
    return str(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cogwork", description="Cogwork - workflow execution engine"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    execute = subparsers.add_parser("execute", help="Run a workflow file")
    execute.add_argument("workflow", help="Path to a workflow .py file")
    execute.add_argument("targets", nargs="*", help="Workflow targets")
    execute.add_argument(
        "-a", "--arg", dest="args", action="append", default=[], help="Positional workflow arg (repeatable)"
    )
    execute.add_argument(
        "-k",
        "--kwarg",
        dest="kwargs",
        action="append",
        default=[],
        type=_parse_kwarg,
        help="Workflow kwarg as KEY=VALUE (repeatable)",
    )
    execute.add_argument("--kwargs-file", help="YAML file with workflow kwargs")
    execute.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    execute.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    subparsers.add_parser("list-cogs", help="List registered cog types")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "list-cogs":
        for type_name in CogRegistry.default().list_types():
            print(type_name)
        return 0

    configure_logging(
        level="DEBUG" if args.verbose else None,
        json_logs=True if args.json_logs else None,
    )

    kwargs: dict[str, Any] = {}
    if args.kwargs_file:
        try:
            kwargs.update(_load_kwargs_file(args.kwargs_file))
        except (OSError, yaml.YAMLError, argparse.ArgumentTypeError) as e:
            print(f"Error: cannot read kwargs file: {e}", file=sys.stderr)
            return 2
    kwargs.update(dict(args.kwargs))

    try:
        workflow = load_workflow(Path(args.workflow))
        result = workflow.run(targets=args.targets, args=args.args, kwargs=kwargs)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except CogworkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    if result is not None:
        print(_format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
