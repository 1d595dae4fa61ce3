"""Helpers to turn the model's text output into an InferenceResult."""

import json
import math
import re
from typing import Any, Optional

from models.inference_result import InferenceResult, ParsedInference, RawFallback

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1).strip() if match else stripped


def normalize_confidence(value: Any) -> Optional[float]:
    """Coerce a confidence value to a float clamped to [0, 1], or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number):
        return None
    return min(1.0, max(0.0, number))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else json.dumps(value)
    text = text.strip()
    return text or None


def parse_model_output(text: Optional[str], raw_response: str) -> InferenceResult:
    """Parse model output as the expected JSON object.

    Args:
        text: Textual output of the model, or None if the response had none.
        raw_response: Full serialized API response, kept for audit.

    Returns:
        A `ParsedInference` when `text` is a JSON object, otherwise a
        `RawFallback` whose notes hold the raw response.
    """
    if text is None:
        return RawFallback(raw_response=raw_response, notes=raw_response)

    try:
        data = json.loads(strip_code_fence(text))
    except ValueError:
        return RawFallback(raw_response=raw_response, notes=raw_response)

    if not isinstance(data, dict):
        return RawFallback(raw_response=raw_response, notes=raw_response)

    return ParsedInference(
        raw_response=raw_response,
        label=_optional_text(data.get("label")),
        estimated_age=_optional_text(data.get("estimated_age")),
        confidence=normalize_confidence(data.get("confidence")),
        notes=_optional_text(data.get("notes")),
    )


def error_fallback(exc: BaseException) -> RawFallback:
    """Build the fallback recorded when the inference call itself failed."""
    raw = json.dumps({"error": f"{type(exc).__name__}: {exc}"})
    return RawFallback(raw_response=raw, notes=raw)
