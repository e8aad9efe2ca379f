"""Security module -- request validation."""

from src.security.guardrails import is_valid_uuid, validate_chat_request, validate_message

__all__ = ["is_valid_uuid", "validate_chat_request", "validate_message"]
