"""Frederick, the chat assistant: tool catalog, dispatch and the turn loop."""
from assistant.handlers import ToolDispatcher
from assistant.loop import ChatTurn, InvalidTransition, run_chat_turn
from assistant.models import ChatMessage, ModelReply, StopReason, ToolCall, ToolResult, TurnResult, TurnState
from assistant.provider import ChatProvider, OpenAIChatProvider, ProviderError

__all__ = [
    "ChatMessage",
    "ChatProvider",
    "ChatTurn",
    "InvalidTransition",
    "ModelReply",
    "OpenAIChatProvider",
    "ProviderError",
    "StopReason",
    "ToolCall",
    "ToolDispatcher",
    "ToolResult",
    "TurnResult",
    "TurnState",
    "run_chat_turn",
]
