"""
Command runner for process-like cogs.

Runs a command as a subprocess, streaming stdout/stderr line by line to
optional handlers while collecting the full output.

- A string command runs through the shell (sh -c); a list runs directly
- PWD is set to the working directory
- On timeout or cancellation the whole process tree is terminated
"""

import asyncio
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Sequence

import psutil

from cogwork.config.settings import settings
from cogwork.errors import CommandTimeoutError, NoCommandProvidedError
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)

LineHandler = Callable[[str], None]

TERMINATE_GRACE_SECONDS = 5


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def __iter__(self) -> Iterator:
        return iter((self.stdout, self.stderr, self.returncode))


def _display_command(command: str | Sequence[str]) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


class CommandRunner:
    """
    Async subprocess execution with line handlers and timeouts.

    Examples:
        >>> runner = CommandRunner()
        >>> result = await runner.execute("ls -la", working_directory="/tmp")
        >>> stdout, stderr, status = result
    """

    def __init__(self, default_timeout: float | None = None):
        self.default_timeout = default_timeout if default_timeout is not None else settings.command_timeout

    async def execute(
        self,
        command: str | Sequence[str],
        *,
        working_directory: str | Path | None = None,
        timeout: float | None = None,
        stdin_content: str | None = None,
        stdout_handler: LineHandler | None = None,
        stderr_handler: LineHandler | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Args:
            command: Shell string or argv list
            working_directory: cwd for the process, defaults to the current one
            timeout: Seconds before the process tree is killed
            stdin_content: Written to stdin, which is then closed
            stdout_handler: Called with each stdout line
            stderr_handler: Called with each stderr line
            env: Extra environment variables

        Returns:
            CommandResult with collected output and exit status

        Raises:
            NoCommandProvidedError: If the command is empty
            CommandTimeoutError: If the timeout elapsed
        """
        if not command or (isinstance(command, str) and not command.strip()):
            raise NoCommandProvidedError("No command provided")

        cwd = Path(working_directory) if working_directory else Path.cwd()
        process_env = os.environ.copy()
        process_env.update(env or {})
        process_env["PWD"] = str(cwd)
        timeout = timeout if timeout is not None else self.default_timeout
        display = _display_command(command)
        stdin = asyncio.subprocess.PIPE if stdin_content is not None else asyncio.subprocess.DEVNULL

        logger.debug("command_started", command=display, cwd=str(cwd), timeout=timeout)

        if isinstance(command, str):
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=process_env,
            )
        else:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=process_env,
            )

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []

        try:
            await asyncio.wait_for(
                self._communicate(
                    process,
                    stdin_content,
                    (stdout_lines, stdout_handler),
                    (stderr_lines, stderr_handler),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("command_timed_out", command=display, timeout=timeout)
            await self._terminate_process(process)
            raise CommandTimeoutError(display, timeout or 0) from None
        except asyncio.CancelledError:
            await self._terminate_process(process)
            raise

        returncode = process.returncode if process.returncode is not None else -1
        logger.debug("command_finished", command=display, returncode=returncode)
        return CommandResult("".join(stdout_lines), "".join(stderr_lines), returncode)

    async def simple_execute(self, *parts: str | None, **kwargs) -> str:
        """
        Run ``parts`` as an argv list and return stdout.

        None and empty parts are dropped.

        Raises:
            NoCommandProvidedError: If nothing is left to run
        """
        argv = [part for part in parts if part]
        if not argv:
            raise NoCommandProvidedError("No command provided")
        result = await self.execute(argv, **kwargs)
        return result.stdout

    async def _communicate(
        self,
        process: asyncio.subprocess.Process,
        stdin_content: str | None,
        stdout_sink: tuple[list[str], LineHandler | None],
        stderr_sink: tuple[list[str], LineHandler | None],
    ) -> None:
        async def feed_stdin() -> None:
            if process.stdin is None or stdin_content is None:
                return
            try:
                process.stdin.write(stdin_content.encode("utf-8"))
                await process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("command_stdin_closed_early")
            finally:
                process.stdin.close()

        async def read_stream(
            stream: asyncio.StreamReader | None, sink: tuple[list[str], LineHandler | None]
        ) -> None:
            if stream is None:
                return
            lines, handler = sink
            while True:
                line = await stream.readline()
                if not line:
                    break
                decoded = line.decode("utf-8", errors="replace")
                lines.append(decoded)
                if handler is not None:
                    self._call_handler(handler, decoded.rstrip("\r\n"))

        await asyncio.gather(
            feed_stdin(),
            read_stream(process.stdout, stdout_sink),
            read_stream(process.stderr, stderr_sink),
        )
        await process.wait()

    @staticmethod
    def _call_handler(handler: LineHandler, line: str) -> None:
        try:
            handler(line)
        except Exception as e:
            logger.warning(
                "command_output_handler_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )

    async def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        """Terminate process and its child processes."""
        if process.returncode is not None:
            return
        try:
            parent = psutil.Process(process.pid)
            children = parent.children(recursive=True)

            # Send SIGTERM first
            for child in children:
                child.terminate()
            parent.terminate()

            _, alive = await asyncio.to_thread(
                psutil.wait_procs, children + [parent], timeout=TERMINATE_GRACE_SECONDS
            )

            for proc in alive:
                proc.kill()

        except psutil.NoSuchProcess:
            pass

        await process.wait()


__all__ = ["CommandRunner", "CommandResult", "LineHandler"]
