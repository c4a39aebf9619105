"""
LLM provider adapter.

The chat turn talks to the language model only through :class:`ChatProvider`.
:class:`OpenAIChatProvider` implements it on top of OpenAI chat completions
with function tools; tests substitute a scripted fake.
"""
from __future__ import annotations

import abc
import json
import logging
import typing as t

from openai import AsyncOpenAI, OpenAIError

from assistant.models import (
    ChatMessage,
    ModelReply,
    StopReason,
    ToolCall,
    ToolRequest,
    ToolResult,
    TranscriptEntry,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT = 30.0
MAX_TOKENS = 2000


class ProviderError(RuntimeError):
    """The LLM provider could not be reached or rejected the request."""


class ChatProvider(abc.ABC):
    @abc.abstractmethod
    async def complete(
        self,
        system_prompt: str,
        transcript: t.Sequence[TranscriptEntry],
        tools: t.Sequence[dict[str, t.Any]] = (),
        allow_tools: bool = True,
    ) -> ModelReply:
        """Run one completion over the transcript.

        With ``allow_tools`` False the model sees the tool catalog (so earlier
        tool exchanges stay valid) but may not request another call.
        """

    @abc.abstractmethod
    async def complete_json(self, system_prompt: str, payload: dict[str, t.Any]) -> dict[str, t.Any]:
        """Run a JSON-mode completion and return the decoded object."""

    async def aclose(self) -> None:
        """Release network resources, if any."""


def to_openai_message(entry: TranscriptEntry) -> dict[str, t.Any]:
    """Render one transcript entry as an OpenAI chat message."""
    if isinstance(entry, ChatMessage):
        return {"role": entry.role, "content": entry.content}
    if isinstance(entry, ToolRequest):
        return {
            "role": "assistant",
            "content": entry.text or None,
            "tool_calls": [{
                "id": entry.call.id,
                "type": "function",
                "function": {
                    "name": entry.call.name,
                    "arguments": entry.call.raw_arguments or json.dumps(entry.call.arguments or {}),
                },
            }],
        }
    if isinstance(entry, ToolResult):
        return {"role": "tool", "tool_call_id": entry.tool_call_id, "content": entry.content}
    raise TypeError(f"Unsupported transcript entry: {type(entry).__name__}")


def _stop_reason(finish_reason: t.Optional[str]) -> StopReason:
    if finish_reason == "tool_calls":
        return StopReason.TOOL_USE
    if finish_reason == "length":
        return StopReason.MAX_TOKENS
    return StopReason.END_TURN


def parse_completion(completion: t.Any) -> ModelReply:
    """Convert an OpenAI chat completion into a ModelReply.

    Only the first tool call is kept; one tool runs per turn.
    """
    choice = completion.choices[0]
    message = choice.message
    text = message.content or ""
    tool_calls = getattr(message, "tool_calls", None) or []
    if not tool_calls:
        return ModelReply(stop_reason=_stop_reason(choice.finish_reason), text=text)

    first = tool_calls[0]
    raw = first.function.arguments or "{}"
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError:
        arguments = None
    if arguments is not None and not isinstance(arguments, dict):
        arguments = None
    return ModelReply(
        stop_reason=StopReason.TOOL_USE,
        text=text,
        tool_call=ToolCall(id=first.id, name=first.function.name, arguments=arguments, raw_arguments=raw),
    )


class OpenAIChatProvider(ChatProvider):
    def __init__(
        self,
        client: t.Optional[AsyncOpenAI] = None,
        api_key: t.Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        # No retry policy: a failed call surfaces to the user immediately.
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model

    async def complete(
        self,
        system_prompt: str,
        transcript: t.Sequence[TranscriptEntry],
        tools: t.Sequence[dict[str, t.Any]] = (),
        allow_tools: bool = True,
    ) -> ModelReply:
        kwargs: dict[str, t.Any] = {
            "model": self.model,
            "max_completion_tokens": MAX_TOKENS,
            "messages": [{"role": "system", "content": system_prompt}]
            + [to_openai_message(entry) for entry in transcript],
        }
        if tools:
            kwargs["tools"] = list(tools)
            kwargs["tool_choice"] = "auto" if allow_tools else "none"
            if allow_tools:
                kwargs["parallel_tool_calls"] = False

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error("Chat completion failed: %s", e)
            raise ProviderError(f"Language model request failed: {e}") from e
        return parse_completion(completion)

    async def complete_json(self, system_prompt: str, payload: dict[str, t.Any]) -> dict[str, t.Any]:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": json.dumps(payload)},
                ],
            )
        except OpenAIError as e:
            logger.error("JSON completion failed: %s", e)
            raise ProviderError(f"Language model request failed: {e}") from e

        raw = completion.choices[0].message.content or "{}"
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProviderError(f"Invalid JSON response from LLM: {e}") from e
        if not isinstance(data, dict):
            raise ProviderError("LLM response was not a JSON object")
        return data

    async def aclose(self) -> None:
        await self.client.close()
