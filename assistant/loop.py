"""
Bounded tool-dispatch loop for one chat turn.

A turn moves through a fixed set of states:

    IDLE -> AWAITING_MODEL_FIRST_RESPONSE -> DONE
                                          -> AWAITING_TOOL_EXECUTION
                                             -> AWAITING_MODEL_FINAL_RESPONSE -> DONE

The model may request at most one tool per turn. The follow-up request
replays the tool exchange with tool use disabled, so the second reply is
always the final answer.
"""
from __future__ import annotations

import logging
import typing as t

from assistant.handlers import ToolDispatcher
from assistant.models import (
    ChatMessage,
    ModelReply,
    ToolRequest,
    TranscriptEntry,
    TurnResult,
    TurnState,
)
from assistant.provider import ChatProvider
from assistant.tools import list_tool_schemas
from prompts import load_prompt

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.IDLE: frozenset({TurnState.AWAITING_MODEL_FIRST_RESPONSE}),
    TurnState.AWAITING_MODEL_FIRST_RESPONSE: frozenset({TurnState.DONE, TurnState.AWAITING_TOOL_EXECUTION}),
    TurnState.AWAITING_TOOL_EXECUTION: frozenset({TurnState.AWAITING_MODEL_FINAL_RESPONSE, TurnState.DONE}),
    TurnState.AWAITING_MODEL_FINAL_RESPONSE: frozenset({TurnState.DONE}),
    TurnState.DONE: frozenset(),
}

CHAT_ROLES = ("user", "assistant")
EMPTY_REPLY = "Sorry, I wasn't able to put together an answer. Could you try asking again?"


class InvalidTransition(RuntimeError):
    pass


def build_system_prompt(student_name: str, today: str, timezone_name: str) -> str:
    return load_prompt("assistant_system_prompt").format(
        student_name=student_name,
        today=today,
        timezone=timezone_name,
    )


def validate_messages(messages: t.Sequence[ChatMessage]) -> None:
    """Reject conversations the provider could not accept.

    Raises:
        ValueError: If the history is empty, has an unknown role, or does not
            end with a user message.
    """
    if not messages:
        raise ValueError("Conversation must contain at least one message")
    for message in messages:
        if message.role not in CHAT_ROLES:
            raise ValueError(f"Unsupported message role: {message.role}")
    if messages[-1].role != "user":
        raise ValueError("Conversation must end with a user message")


class ChatTurn:
    """Runs a single user turn against the provider and dispatcher.

    A ChatTurn is single use; each new user message starts a fresh turn with
    the accumulated history.
    """

    def __init__(
        self,
        provider: ChatProvider,
        dispatcher: ToolDispatcher,
        system_prompt: str,
        tools: t.Optional[list[dict[str, t.Any]]] = None,
    ) -> None:
        self.provider = provider
        self.dispatcher = dispatcher
        self.system_prompt = system_prompt
        self.tools = list_tool_schemas() if tools is None else tools
        self.state = TurnState.IDLE
        self.history: list[TurnState] = [TurnState.IDLE]

    def _advance(self, target: TurnState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransition(f"Cannot move from {self.state.value} to {target.value}")
        logger.debug("Chat turn %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def _finish(self, reply: ModelReply, **kwargs: t.Any) -> TurnResult:
        self._advance(TurnState.DONE)
        return TurnResult(reply=reply.text or EMPTY_REPLY, states=list(self.history), **kwargs)

    async def run(self, messages: t.Sequence[ChatMessage]) -> TurnResult:
        """Answer the last user message, running at most one tool.

        Raises:
            ValueError: If ``messages`` is not a valid conversation.
            ProviderError: If either model request fails.
        """
        validate_messages(messages)
        transcript: list[TranscriptEntry] = list(messages)

        self._advance(TurnState.AWAITING_MODEL_FIRST_RESPONSE)
        first = await self.provider.complete(self.system_prompt, transcript, self.tools, allow_tools=True)
        if first.tool_call is None:
            return self._finish(first)

        call = first.tool_call
        self._advance(TurnState.AWAITING_TOOL_EXECUTION)
        logger.info("Model requested tool %s", call.name)
        result = await self.dispatcher.dispatch(call)

        self._advance(TurnState.AWAITING_MODEL_FINAL_RESPONSE)
        transcript += [ToolRequest(call=call, text=first.text), result]
        final = await self.provider.complete(self.system_prompt, transcript, self.tools, allow_tools=False)
        return self._finish(final, tool_call=call, tool_result=result)


async def run_chat_turn(
    messages: t.Sequence[ChatMessage],
    provider: ChatProvider,
    dispatcher: ToolDispatcher,
    student_name: str,
) -> TurnResult:
    """Build the system prompt for today and run one turn."""
    today = dispatcher.today()
    prompt = build_system_prompt(student_name, f"{today:%A, %B} {today.day}, {today.year}", str(dispatcher.tz))
    return await ChatTurn(provider, dispatcher, prompt).run(messages)
