"""Utilities for reading and serializing chat completion responses."""

import json
from typing import Any, Optional


def extract_message_text(response: Any) -> Optional[str]:
    """Return the text content of the first choice, or None when unavailable.

    Args:
        response: Object returned by `AsyncOpenAI.chat.completions.create`.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        return None

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else None


def serialize_response(response: Any) -> Any:
    """Convert a response object into a serializable structure."""
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "to_dict"):
        return response.to_dict()
    return str(response)


def response_to_text(response: Any) -> str:
    """Serialize a response object to JSON text for audit storage."""
    return json.dumps(serialize_response(response), default=str)
