"""
Tests for the cmd cog. These run real commands through /bin/sh.
"""

import sys

import pytest

from cogwork import Workflow
from cogwork.cogs.cmd import CmdInput, CmdOutput
from cogwork.errors import CommandFailedError, InvalidConfigError, InvalidInputError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


@pytest.fixture
def workflow():
    return Workflow("cmd-test")


@pytest.mark.asyncio
async def test_shell_string_command(workflow):
    @workflow.execute()
    def main(ex):
        ex.cmd("greet", lambda ctx, inp: "echo hello && echo world")

    result = await workflow.start()

    assert isinstance(result, CmdOutput)
    assert result.lines() == ["hello", "world"]
    assert result.returncode == 0


@pytest.mark.asyncio
async def test_list_command_runs_without_shell(workflow):
    @workflow.execute()
    def main(ex):
        ex.cmd("literal", lambda ctx, inp: ["echo", "$HOME", "a b"])

    result = await workflow.start()

    assert result.text() == "$HOME a b"


@pytest.mark.asyncio
async def test_stdin_and_json_output(workflow):
    @workflow.execute()
    def main(ex):
        ex.cmd("cat", lambda ctx, inp: inp.update(command="cat", stdin='{"ok": true}'))

    result = await workflow.start()

    assert result.json() == {"ok": True}


@pytest.mark.asyncio
async def test_non_zero_exit_fails_by_default(workflow):
    @workflow.execute()
    def main(ex):
        ex.cmd("broken", lambda ctx, inp: "echo oops >&2; exit 3")

    with pytest.raises(CommandFailedError) as exc_info:
        await workflow.start()
    assert exc_info.value.returncode == 3
    assert "oops" in exc_info.value.stderr


@pytest.mark.asyncio
async def test_non_zero_exit_tolerated_when_configured(workflow):
    @workflow.config
    def configure(c):
        c.cog("cmd", "exit_check").fail_on_error = False

    @workflow.execute()
    def main(ex):
        ex.cmd("exit_check", lambda ctx, inp: "echo 7; exit 1")

    result = await workflow.start()

    assert result.returncode == 1
    assert not result.success
    assert result.to_int() == 7


@pytest.mark.asyncio
async def test_working_directory(workflow, tmp_path):
    (tmp_path / "marker.txt").write_text("x")

    @workflow.config
    def configure(c):
        c.cog("cmd").working_directory = tmp_path

    @workflow.execute()
    def main(ex):
        ex.cmd("list", lambda ctx, inp: "ls")

    result = await workflow.start()

    assert "marker.txt" in result.lines()


@pytest.mark.asyncio
async def test_missing_working_directory_is_config_error(workflow, tmp_path):
    @workflow.config
    def configure(c):
        c.cog("cmd").working_directory = tmp_path / "missing"
        c.cog("cmd").continue_on_failure()

    @workflow.execute()
    def main(ex):
        ex.cmd("list", lambda ctx, inp: "ls")

    with pytest.raises(InvalidConfigError):
        await workflow.start()


@pytest.mark.asyncio
async def test_display_echoes_output(workflow, capsys):
    @workflow.config
    def configure(c):
        c.cog("cmd").display()

    @workflow.execute()
    def main(ex):
        ex.cmd("loud", lambda ctx, inp: "echo visible")

    await workflow.start()

    assert "visible" in capsys.readouterr().out


class TestCmdInput:
    def test_string_becomes_command(self):
        cog_input = CmdInput()
        cog_input.coerce("ls -la")

        assert cog_input.argv_or_shell() == "ls -la"

    def test_list_becomes_argv(self):
        cog_input = CmdInput()
        cog_input.coerce(["git", "status", 1])

        assert cog_input.argv_or_shell() == ["git", "status", "1"]

    def test_explicit_command_wins(self):
        cog_input = CmdInput(command="pwd")
        cog_input.coerce("ls")

        assert cog_input.command == "pwd"

    @pytest.mark.parametrize("value", [None, "", "   ", []])
    def test_blank_command_invalid(self, value):
        cog_input = CmdInput()
        cog_input.coerce(value)

        with pytest.raises(InvalidInputError):
            cog_input.validate()
