"""
Data models for a chat turn with the assistant.

This module contains the dataclasses exchanged between the turn state
machine, the LLM provider adapter and the tool dispatcher.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from enum import Enum


@dataclass
class ChatMessage:
    """A plain text message from the user or the assistant."""
    role: str
    content: str


@dataclass
class ToolCall:
    """A request from the model to run one named tool.

    ``arguments`` is None when the model sent arguments that were not valid
    JSON; ``raw_arguments`` keeps the original text.
    """
    id: str
    name: str
    arguments: t.Optional[dict[str, t.Any]]
    raw_arguments: str = ""


@dataclass
class ToolRequest:
    """The assistant message that carried a tool call, replayed to the model."""
    call: ToolCall
    text: str = ""


@dataclass
class ToolResult:
    """Serialized outcome of a tool call, fed back to the model."""
    tool_call_id: str
    content: str
    is_error: bool = False


TranscriptEntry = t.Union[ChatMessage, ToolRequest, ToolResult]


class StopReason(Enum):
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"


@dataclass
class ModelReply:
    """One response from the provider: final text or a tool request."""
    stop_reason: StopReason
    text: str = ""
    tool_call: t.Optional[ToolCall] = None

    @property
    def wants_tool(self) -> bool:
        return self.tool_call is not None


class TurnState(Enum):
    """State of a single chat turn."""
    IDLE = "IDLE"
    AWAITING_MODEL_FIRST_RESPONSE = "AWAITING_MODEL_FIRST_RESPONSE"
    AWAITING_TOOL_EXECUTION = "AWAITING_TOOL_EXECUTION"
    AWAITING_MODEL_FINAL_RESPONSE = "AWAITING_MODEL_FINAL_RESPONSE"
    DONE = "DONE"


@dataclass
class TurnResult:
    """Outcome of a chat turn, including the tool exchange if one happened."""
    reply: str
    tool_call: t.Optional[ToolCall] = None
    tool_result: t.Optional[ToolResult] = None
    states: list[TurnState] = field(default_factory=list)

    def content_blocks(self) -> list[dict[str, str]]:
        return [{"type": "text", "text": self.reply}]
