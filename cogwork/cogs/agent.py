"""
agent - delegate a prompt to a coding agent CLI.

The claude CLI runs in print mode with stream-json output; the prompt goes in
on stdin and each stdout line is one JSON message. The ``result`` message
carries the final response and stats; any message may carry the session id,
which a later agent cog can resume.
"""

import json
import shlex
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import Field

from cogwork.cog.base import Cog
from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput, require_text
from cogwork.cog.output import CogOutput, WithJson, WithText
from cogwork.config.settings import settings
from cogwork.errors import AgentInvocationError
from cogwork.runtime.command_runner import CommandRunner
from cogwork.utils.logging import get_logger

logger = get_logger(__name__)


class AgentConfig(CogConfig):
    provider: Literal["claude"] = "claude"
    command: str | list[str] | None = None
    model: str | None = None
    append_system_prompt: str | None = None
    apply_permissions: bool = False
    timeout: float | None = Field(default=None, gt=0)
    show_progress: bool = True
    show_prompt: bool = False
    show_response: bool = False
    show_stats: bool = False

    def display(self) -> None:
        self.show_progress = True
        self.show_prompt = True
        self.show_response = True
        self.show_stats = True

    def quiet(self) -> None:
        self.show_progress = False
        self.show_prompt = False
        self.show_response = False
        self.show_stats = False

    def command_line(self, session: str | None = None) -> list[str]:
        """Build the agent argv."""
        if isinstance(self.command, list):
            argv = list(self.command)
        else:
            argv = shlex.split(self.command or settings.agent_command)
        argv += ["-p", "--verbose", "--output-format", "stream-json"]
        if self.model:
            argv += ["--model", self.model]
        if self.append_system_prompt:
            argv += ["--append-system-prompt", self.append_system_prompt]
        if session:
            argv += ["--fork-session", "--resume", session]
        if not self.apply_permissions:
            argv.append("--dangerously-skip-permissions")
        return argv


@dataclass
class AgentInput(CogInput):
    prompt: str | None = None
    session: str | None = None

    def coerce(self, value: Any) -> None:
        if self.prompt is None and isinstance(value, str):
            self.prompt = value

    def validate(self) -> None:
        require_text(self.prompt, "prompt")


@dataclass(frozen=True)
class AgentStats:
    duration_ms: int | None = None
    num_turns: int | None = None
    cost_usd: float | None = None
    usage: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AgentOutput(WithText, WithJson, CogOutput):
    response: str = ""
    session: str | None = None
    stats: AgentStats | None = None

    def _raw_text(self) -> str:
        return self.response


class StreamJsonParser:
    """Accumulates the agent result from stream-json lines."""

    def __init__(self, show_progress: bool = False):
        self.show_progress = show_progress
        self.response = ""
        self.success = False
        self.completed = False
        self.session: str | None = None
        self.stats: AgentStats | None = None

    def handle_line(self, line: str) -> None:
        line = line.strip()
        if not line:
            return
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("agent_unparsed_line", line=line[:200])
            return
        if not isinstance(message, dict):
            return

        if message.get("session_id"):
            self.session = message["session_id"]

        message_type = message.get("type")
        if message_type == "result":
            self._handle_result(message)
        elif message_type == "assistant" and self.show_progress:
            self._show_assistant(message)

    def _handle_result(self, message: dict[str, Any]) -> None:
        self.completed = True
        self.response = message.get("result") or ""
        is_error = bool(message.get("is_error")) or message.get("subtype") == "error"
        self.success = not is_error and (
            bool(message.get("success")) or message.get("subtype") == "success"
        )
        if is_error and not self.response:
            error = message.get("error") or {}
            self.response = error.get("message") or "Unknown error"
        self.stats = AgentStats(
            duration_ms=message.get("duration_ms"),
            num_turns=message.get("num_turns"),
            cost_usd=message.get("total_cost_usd"),
            usage=message.get("usage") or {},
        )

    def _show_assistant(self, message: dict[str, Any]) -> None:
        content = (message.get("message") or {}).get("content") or []
        for block in content:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text" and block.get("text"):
                print(block["text"], flush=True)
            elif block.get("type") == "tool_use":
                print(f"[TOOL] {block.get('name')}", flush=True)


class AgentCog(Cog):
    type_name = "agent"
    Config = AgentConfig
    Input = AgentInput

    async def execute(self, cog_input: AgentInput) -> AgentOutput:
        config = self.config if isinstance(self.config, AgentConfig) else AgentConfig()
        argv = config.command_line(cog_input.session)
        parser = StreamJsonParser(show_progress=config.show_progress)

        if config.show_prompt:
            print(f"[AGENT PROMPT] {cog_input.prompt}", flush=True)

        logger.info(
            "agent_invocation_started",
            cog=self.name,
            provider=config.provider,
            resume=bool(cog_input.session),
        )
        result = await CommandRunner().execute(
            argv,
            working_directory=config.valid_working_directory(),
            timeout=config.timeout,
            stdin_content=cog_input.prompt,
            stdout_handler=parser.handle_line,
        )

        if not result.success:
            detail = "\n".join(part for part in (parser.response, result.stderr.strip()) if part)
            raise AgentInvocationError(
                f"Agent exited with status {result.returncode}: {detail}", cog_name=self.name
            )
        if not parser.completed or not parser.success:
            raise AgentInvocationError(
                f"Agent did not complete successfully: {parser.response or 'no result'}",
                cog_name=self.name,
            )

        if config.show_response:
            print(f"[AGENT RESPONSE] {parser.response}", flush=True)
        if config.show_stats and parser.stats is not None:
            print(
                f"[AGENT STATS] turns={parser.stats.num_turns} "
                f"duration_ms={parser.stats.duration_ms} cost_usd={parser.stats.cost_usd}",
                flush=True,
            )

        return AgentOutput(response=parser.response, session=parser.session, stats=parser.stats)


__all__ = [
    "AgentCog",
    "AgentConfig",
    "AgentInput",
    "AgentOutput",
    "AgentStats",
    "StreamJsonParser",
]
