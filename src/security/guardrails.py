"""Input validation for chat requests."""

import uuid
from typing import Any, Optional, Tuple

from src.errors import ValidationError
from src.utils.config import settings


def validate_message(message: Any, max_length: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Return (is_valid, reason) for a user chat message."""
    limit = max_length or settings.max_message_length
    if not isinstance(message, str) or not message.strip():
        return False, "Message is required and must be a non-empty string"
    if len(message) > limit:
        return False, f"Message must be at most {limit} characters"
    return True, None


def is_valid_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def validate_chat_request(
    message: Any,
    conversation_id: Any = None,
    file_id: Any = None,
    max_length: Optional[int] = None,
) -> None:
    """Raise ``ValidationError`` if any chat field is malformed."""
    ok, reason = validate_message(message, max_length)
    if not ok:
        raise ValidationError(reason)
    if conversation_id is not None and not isinstance(conversation_id, str):
        raise ValidationError("conversationId must be a string")
    if file_id is not None and not is_valid_uuid(file_id):
        raise ValidationError("fileId must be a valid UUID")
