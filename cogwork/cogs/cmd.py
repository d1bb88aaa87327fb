"""
cmd - run a shell command.

A string return from the input proc becomes the command (run through the
shell). A list return becomes ``command`` plus ``args`` and runs without a
shell.
"""

import shlex
import sys
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from cogwork.cog.base import Cog
from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput, require_text
from cogwork.cog.output import CogOutput, WithJson, WithNumber, WithText
from cogwork.errors import CommandFailedError
from cogwork.runtime.command_runner import CommandRunner
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)


class CmdConfig(CogConfig):
    """
    Fields:
    - fail_on_error: a non-zero exit fails the cog
    - show_stdout / show_stderr: echo output lines while the command runs
    - timeout: seconds before the process tree is killed
    """

    fail_on_error: bool = True
    show_stdout: bool = False
    show_stderr: bool = False
    timeout: float | None = Field(default=None, gt=0)

    def display(self) -> None:
        self.show_stdout = True
        self.show_stderr = True

    def quiet(self) -> None:
        self.show_stdout = False
        self.show_stderr = False


@dataclass
class CmdInput(CogInput):
    command: str | None = None
    args: list[str] = field(default_factory=list)
    stdin: str | None = None

    def coerce(self, value: Any) -> None:
        if self.command is not None:
            return
        if isinstance(value, str):
            self.command = value
        elif isinstance(value, (list, tuple)) and value:
            self.command = str(value[0])
            self.args = [str(part) for part in value[1:]]

    def validate(self) -> None:
        require_text(self.command, "command")

    def argv_or_shell(self) -> str | list[str]:
        if self.args:
            return [str(self.command), *self.args]
        return str(self.command)


@dataclass(frozen=True)
class CmdOutput(WithText, WithJson, WithNumber, CogOutput):
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def _raw_text(self) -> str:
        return self.stdout


def _echo_stdout(line: str) -> None:
    print(line, flush=True)


def _echo_stderr(line: str) -> None:
    print(line, file=sys.stderr, flush=True)


class CmdCog(Cog):
    type_name = "cmd"
    Config = CmdConfig
    Input = CmdInput

    async def execute(self, cog_input: CmdInput) -> CmdOutput:
        config = self.config if isinstance(self.config, CmdConfig) else CmdConfig()
        command = cog_input.argv_or_shell()
        display = command if isinstance(command, str) else shlex.join(command)

        logger.info("cmd_started", cog=self.name, command=display)
        result = await CommandRunner().execute(
            command,
            working_directory=config.valid_working_directory(),
            timeout=config.timeout,
            stdin_content=cog_input.stdin,
            stdout_handler=_echo_stdout if config.show_stdout else None,
            stderr_handler=_echo_stderr if config.show_stderr else None,
        )

        if not result.success and config.fail_on_error:
            raise CommandFailedError(display, result.returncode, result.stderr)

        return CmdOutput(result.stdout, result.stderr, result.returncode)


__all__ = ["CmdCog", "CmdConfig", "CmdInput", "CmdOutput"]
