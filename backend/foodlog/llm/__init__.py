"""
Prompt composition and the chat-completions extraction engine.
"""
from .client import ExtractionEngine, OpenAIChatClient
from .composer import ChatTurn, PromptComposer

__all__ = ["ExtractionEngine", "OpenAIChatClient", "ChatTurn", "PromptComposer"]
