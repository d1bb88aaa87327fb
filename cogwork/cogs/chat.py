"""
chat - single-turn LLM chat over the OpenAI chat completions API.

A ChatSession from an earlier chat output can seed the conversation, so a
workflow can continue (or trim with first/last) a previous exchange.
"""

import copy
import os
from dataclasses import dataclass, field
from typing import Any

import openai
from openai import AsyncOpenAI
from pydantic import Field, SecretStr

from cogwork.cog.base import Cog
from cogwork.cog.config import CogConfig
from cogwork.cog.input import CogInput, require_text
from cogwork.cog.output import CogOutput, WithJson, WithNumber, WithText
from cogwork.config.settings import settings
from cogwork.errors import InvalidConfigError
from cogwork.utils.logging import get_logger
from cogwork.utils.retry import retry_async

logger = get_logger(__name__)

OPENAI_RETRYABLE = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.InternalServerError,
)


class ChatConfig(CogConfig):
    model: str | None = None
    api_key: SecretStr | None = None
    base_url: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    show_prompt: bool = False
    show_response: bool = False
    show_stats: bool = False

    def display(self) -> None:
        self.show_prompt = True
        self.show_response = True
        self.show_stats = True

    def quiet(self) -> None:
        self.show_prompt = False
        self.show_response = False
        self.show_stats = False

    def valid_model(self) -> str:
        return self.model or settings.openai_model

    def valid_api_key(self) -> str:
        """
        Resolve the API key: config > COGWORK_OPENAI_API_KEY > OPENAI_API_KEY.

        Raises:
            InvalidConfigError: If no key is available
        """
        if self.api_key:
            return self.api_key.get_secret_value()
        if settings.openai_api_key:
            return settings.openai_api_key.get_secret_value()
        env_key = os.getenv("OPENAI_API_KEY")
        if env_key:
            return env_key
        raise InvalidConfigError(
            "No OpenAI API key configured (set api_key, COGWORK_OPENAI_API_KEY or OPENAI_API_KEY)"
        )

    def valid_base_url(self) -> str | None:
        return self.base_url or settings.openai_base_url or os.getenv("OPENAI_BASE_URL")


@dataclass(frozen=True)
class ChatSession:
    """Immutable conversation transcript."""

    messages: tuple[dict[str, Any], ...] = ()

    def __len__(self) -> int:
        return len(self.messages)

    def first(self, n: int = 2) -> "ChatSession":
        return ChatSession(copy.deepcopy(self.messages[:n]))

    def last(self, n: int = 2) -> "ChatSession":
        return ChatSession(copy.deepcopy(self.messages[-n:] if n > 0 else ()))

    def to_messages(self) -> list[dict[str, Any]]:
        return copy.deepcopy(list(self.messages))


@dataclass(frozen=True)
class ChatUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass
class ChatInput(CogInput):
    prompt: str | None = None
    session: ChatSession | None = None

    def coerce(self, value: Any) -> None:
        if self.prompt is None and isinstance(value, str):
            self.prompt = value

    def validate(self) -> None:
        require_text(self.prompt, "prompt")


@dataclass(frozen=True)
class ChatOutput(WithText, WithJson, WithNumber, CogOutput):
    response: str = ""
    session: ChatSession = field(default_factory=ChatSession)
    model: str | None = None
    usage: ChatUsage | None = None

    def _raw_text(self) -> str:
        return self.response


@retry_async(exceptions=OPENAI_RETRYABLE)
async def _create_completion(client: AsyncOpenAI, params: dict[str, Any]) -> Any:
    return await client.chat.completions.create(**params)


class ChatCog(Cog):
    type_name = "chat"
    Config = ChatConfig
    Input = ChatInput

    async def execute(self, cog_input: ChatInput) -> ChatOutput:
        config = self.config if isinstance(self.config, ChatConfig) else ChatConfig()
        model = config.valid_model()
        client = AsyncOpenAI(api_key=config.valid_api_key(), base_url=config.valid_base_url())

        history = cog_input.session.to_messages() if cog_input.session else []
        messages = [*history, {"role": "user", "content": cog_input.prompt}]
        params: dict[str, Any] = {"model": model, "messages": messages}
        if config.temperature is not None:
            params["temperature"] = config.temperature

        if config.show_prompt:
            print(f"[USER PROMPT] {cog_input.prompt}", flush=True)

        logger.info(
            "chat_request",
            cog=self.name,
            model=model,
            messages_count=len(messages),
            temperature=config.temperature,
        )

        try:
            completion = await _create_completion(client, params)
        except Exception as e:
            logger.error(
                "chat_request_failed",
                cog=self.name,
                model=model,
                error=str(e),
                error_type=type(e).__name__,
                messages_count=len(messages),
                exc_info=True,
            )
            raise

        content = completion.choices[0].message.content or ""
        usage = None
        if completion.usage is not None:
            usage = ChatUsage(
                input_tokens=completion.usage.prompt_tokens,
                output_tokens=completion.usage.completion_tokens,
                total_tokens=completion.usage.total_tokens,
            )

        if config.show_response:
            print(f"[LLM RESPONSE] {content}", flush=True)
        if config.show_stats and usage is not None:
            print(
                f"[LLM STATS] model={completion.model} "
                f"input_tokens={usage.input_tokens} output_tokens={usage.output_tokens}",
                flush=True,
            )

        session = ChatSession(tuple([*messages, {"role": "assistant", "content": content}]))
        return ChatOutput(response=content, session=session, model=completion.model, usage=usage)


__all__ = ["ChatCog", "ChatConfig", "ChatInput", "ChatOutput", "ChatSession", "ChatUsage"]
