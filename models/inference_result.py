"""Outcome of one call to the inference API.

Either the model output parsed into the expected schema (`ParsedInference`)
or it did not, in which case the raw text is kept as notes (`RawFallback`).
Both carry the serialized API response and are persisted the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ParsedInference:
    raw_response: str
    label: Optional[str] = None
    estimated_age: Optional[str] = None
    confidence: Optional[float] = None
    notes: Optional[str] = None

    parsed = True


@dataclass(frozen=True)
class RawFallback:
    raw_response: str
    notes: Optional[str] = None

    parsed = False
    label = None
    estimated_age = None
    confidence = None


InferenceResult = Union[ParsedInference, RawFallback]
