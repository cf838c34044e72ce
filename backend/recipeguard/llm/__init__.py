"""External text capability used by model-backed checkers and the repair generator."""

from recipeguard.llm.client import OpenAIChatClient, TextClient

__all__ = ["OpenAIChatClient", "TextClient"]
