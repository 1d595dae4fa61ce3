"""Camera capability model used by the capture client.

These types mirror the browser media API the capture page works against:
a `MediaDevices` object that opens streams from constraint dictionaries and
enumerates devices, the `MediaStream` it returns, the video element a
stream is bound to, and the capture button whose enabled state is the
readiness signal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np

Constraints = Dict[str, Any]

FACING_USER = "user"
FACING_ENVIRONMENT = "environment"

FACING_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    FACING_ENVIRONMENT: ("back", "rear", "environment"),
    FACING_USER: ("front", "face", "user", "selfie"),
}


class MediaError(Exception):
    """A stream request could not be satisfied."""


class OverconstrainedError(MediaError):
    """No device satisfies the requested constraints."""


class NotReadableError(MediaError):
    """A device was selected but could not deliver video."""


def label_matches_facing(label: str, facing: str) -> bool:
    """Return True when a device label mentions one of the facing keywords (case-insensitive)."""
    lowered = (label or "").lower()
    return any(key in lowered for key in FACING_KEYWORDS.get(facing, ()))


@dataclass(frozen=True)
class DeviceInfo:
    device_id: str
    kind: str
    label: str = ""


class MediaStream(Protocol):
    video_width: int
    video_height: int

    async def wait_for_metadata(self) -> None:
        ...

    def read_frame(self) -> Optional[np.ndarray]:
        ...

    def stop(self) -> None:
        ...


class MediaDevices(Protocol):
    async def get_user_media(self, constraints: Constraints) -> MediaStream:
        ...

    async def enumerate_devices(self) -> List[DeviceInfo]:
        ...


@dataclass
class VideoElement:
    """Display element a stream is attached to; client size is its rendered size."""

    src_object: Optional[MediaStream] = None
    client_width: int = 0
    client_height: int = 0


@dataclass
class CaptureControl:
    enabled: bool = False
