"""LLM module -- chat model wrapper and system prompts."""

from src.llm.base import ChatModel

__all__ = ["ChatModel"]
