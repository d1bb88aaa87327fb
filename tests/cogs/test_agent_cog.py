"""
Tests for the agent cog. A small shell script stands in for the agent CLI
and speaks the stream-json protocol.
"""

import sys
import textwrap

import pytest

from cogwork import Workflow
from cogwork.cogs.agent import AgentConfig, AgentOutput, StreamJsonParser
from cogwork.errors import AgentInvocationError, InvalidInputError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")

SUCCESS_SCRIPT = """\
prompt=$(cat)
echo '{"type":"system","subtype":"init","session_id":"sess-1"}'
echo '{"type":"assistant","message":{"content":[{"type":"text","text":"working"}]}}'
printf '{"type":"result","subtype":"success","result":"done: %s","duration_ms":12,"num_turns":2,"total_cost_usd":0.01,"session_id":"sess-1"}\\n' "$prompt"
"""

FAILURE_SCRIPT = """\
cat > /dev/null
echo '{"type":"result","subtype":"error","is_error":true,"result":"model overloaded"}'
exit 1
"""


def fake_agent(tmp_path, body):
    script = tmp_path / "agent.sh"
    script.write_text(body)
    return ["sh", str(script)]


def agent_workflow(command, proc):
    workflow = Workflow("agent-test")

    @workflow.config
    def configure(c):
        c.cog("agent").command = command
        c.cog("agent").quiet()

    @workflow.execute()
    def main(ex):
        ex.agent("agent", proc)

    return workflow


@pytest.mark.asyncio
async def test_agent_success(tmp_path):
    workflow = agent_workflow(fake_agent(tmp_path, SUCCESS_SCRIPT), lambda ctx, inp: "fix it")

    result = await workflow.start()

    assert isinstance(result, AgentOutput)
    assert result.text() == "done: fix it"
    assert result.session == "sess-1"
    assert result.stats.num_turns == 2
    assert result.stats.cost_usd == 0.01


@pytest.mark.asyncio
async def test_agent_failure_raises(tmp_path):
    workflow = agent_workflow(fake_agent(tmp_path, FAILURE_SCRIPT), lambda ctx, inp: "fix it")

    with pytest.raises(AgentInvocationError, match="model overloaded"):
        await workflow.start()


@pytest.mark.asyncio
async def test_agent_without_result_message(tmp_path):
    workflow = agent_workflow(
        fake_agent(tmp_path, "cat > /dev/null\necho not-json\n"), lambda ctx, inp: "fix it"
    )

    with pytest.raises(AgentInvocationError, match="no result"):
        await workflow.start()


@pytest.mark.asyncio
async def test_agent_requires_prompt(tmp_path):
    workflow = agent_workflow(fake_agent(tmp_path, SUCCESS_SCRIPT), lambda ctx, inp: None)

    with pytest.raises(InvalidInputError, match="prompt"):
        await workflow.start()


class TestCommandLine:
    def test_defaults(self):
        argv = AgentConfig(command="claude").command_line()

        assert argv == [
            "claude",
            "-p",
            "--verbose",
            "--output-format",
            "stream-json",
            "--dangerously-skip-permissions",
        ]

    def test_all_options(self):
        config = AgentConfig(
            command="npx claude",
            model="opus",
            append_system_prompt="Be brief",
            apply_permissions=True,
        )

        argv = config.command_line(session="sess-9")

        assert argv[:2] == ["npx", "claude"]
        assert argv[argv.index("--model") + 1] == "opus"
        assert argv[argv.index("--append-system-prompt") + 1] == "Be brief"
        assert argv[-3:] == ["--fork-session", "--resume", "sess-9"]
        assert "--dangerously-skip-permissions" not in argv


class TestStreamJsonParser:
    def test_result_message(self):
        parser = StreamJsonParser()
        parser.handle_line('{"type":"result","subtype":"success","result":"ok","session_id":"s"}')

        assert parser.completed and parser.success
        assert parser.response == "ok"
        assert parser.session == "s"

    def test_error_without_text_uses_error_message(self):
        parser = StreamJsonParser()
        parser.handle_line('{"type":"result","is_error":true,"error":{"message":"boom"}}')

        assert parser.completed
        assert not parser.success
        assert parser.response == "boom"

    def test_ignores_noise(self):
        parser = StreamJsonParser()
        for line in ("", "not json", "[1, 2]"):
            parser.handle_line(line)

        assert not parser.completed

    def test_progress_printed(self, capsys):
        parser = StreamJsonParser(show_progress=True)
        parser.handle_line(
            textwrap.dedent(
                """\
                {"type":"assistant","message":{"content":[{"type":"text","text":"thinking"},{"type":"tool_use","name":"Edit"}]}}
                """
            )
        )

        assert capsys.readouterr().out == "thinking\n[TOOL] Edit\n"
