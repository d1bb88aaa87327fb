"""
Tests for CommandRunner. These spawn real /bin/sh processes.
"""

import sys
import time
from unittest.mock import patch

import pytest

from cogwork.errors import CommandTimeoutError, NoCommandProvidedError
from cogwork.runtime.command_runner import CommandResult, CommandRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


@pytest.fixture
def runner():
    return CommandRunner(default_timeout=10)


@pytest.mark.asyncio
async def test_collects_stdout_stderr_and_status(runner):
    result = await runner.execute("echo out; echo err >&2; exit 2")

    assert isinstance(result, CommandResult)
    assert result.stdout == "out\n"
    assert result.stderr == "err\n"
    assert result.returncode == 2
    assert not result.success


@pytest.mark.asyncio
async def test_result_unpacks(runner):
    stdout, stderr, status = await runner.execute(["printf", "x"])

    assert (stdout, stderr, status) == ("x", "", 0)


@pytest.mark.asyncio
async def test_line_handlers_receive_lines(runner):
    out_lines, err_lines = [], []

    await runner.execute(
        "printf 'a\\nb\\n'; echo c >&2",
        stdout_handler=out_lines.append,
        stderr_handler=err_lines.append,
    )

    assert out_lines == ["a", "b"]
    assert err_lines == ["c"]


@pytest.mark.asyncio
async def test_failing_handler_is_logged_not_raised(runner):
    def handler(line):
        raise ValueError("handler broke")

    with patch("cogwork.runtime.command_runner.logger") as mock_logger:
        result = await runner.execute("echo hi", stdout_handler=handler)

    assert result.stdout == "hi\n"
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.args[0] == "command_output_handler_failed"
    assert mock_logger.warning.call_args.kwargs["error_type"] == "ValueError"


@pytest.mark.asyncio
async def test_stdin_content(runner):
    result = await runner.execute(["cat"], stdin_content="from stdin")

    assert result.stdout == "from stdin"


@pytest.mark.asyncio
async def test_working_directory_and_pwd(runner, tmp_path):
    result = await runner.execute('pwd; echo "$PWD"', working_directory=tmp_path)

    assert result.stdout.splitlines() == [str(tmp_path), str(tmp_path)]


@pytest.mark.asyncio
async def test_extra_env(runner):
    result = await runner.execute('echo "$COGWORK_TEST_VALUE"', env={"COGWORK_TEST_VALUE": "42"})

    assert result.stdout.strip() == "42"


@pytest.mark.asyncio
async def test_timeout_kills_process_tree(runner):
    start = time.monotonic()

    with pytest.raises(CommandTimeoutError) as exc_info:
        await runner.execute("sleep 30 & sleep 30; wait", timeout=0.2)

    assert time.monotonic() - start < 10
    assert exc_info.value.timeout == 0.2


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["", "   ", []])
async def test_empty_command(runner, command):
    with pytest.raises(NoCommandProvidedError):
        await runner.execute(command)


@pytest.mark.asyncio
async def test_simple_execute_drops_empty_parts(runner):
    assert await runner.simple_execute("echo", None, "", "joined") == "joined\n"

    with pytest.raises(NoCommandProvidedError):
        await runner.simple_execute(None, "")
