from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ObservationRecord:
    """In-memory representation of a row in the observations table.

    Attributes:
        id: Primary key (None for new records).
        filename: Stored file name of the uploaded image.
        image_url: Public path of the stored image.
        label: Optional short classification.
        estimated_age: Optional human-readable date range.
        confidence: Optional score in [0, 1].
        raw_response: Full inference response serialized as text.
        created_at: UTC timestamp (``YYYY-MM-DD HH:MM:SS``) set at insert.
    """

    id: Optional[int]
    filename: str
    image_url: Optional[str] = None
    label: Optional[str] = None
    estimated_age: Optional[str] = None
    confidence: Optional[float] = None
    raw_response: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
