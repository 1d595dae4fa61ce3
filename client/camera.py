"""Camera acquisition through an ordered chain of fallback strategies.

Each strategy turns the requested facing into one set of stream constraints
(or declines with None). `CameraAcquisition.start` tries them in order and
stops at the first stream that opens and reports its metadata. Appending a
strategy to the chain never changes how the earlier ones behave.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from client.display import Display
from client.media import (
    FACING_KEYWORDS,
    FACING_USER,
    CaptureControl,
    Constraints,
    MediaDevices,
    MediaStream,
    VideoElement,
    label_matches_facing,
)

logger = logging.getLogger(__name__)

CAMERA_UNAVAILABLE_MESSAGE = (
    "Could not access a camera on this device. "
    "Check permissions and that the device supports video capture."
)


class CameraUnavailableError(RuntimeError):
    """Every acquisition strategy failed."""


class AcquisitionStrategy(Protocol):
    name: str

    async def constraints(self, devices: MediaDevices, facing: str) -> Optional[Constraints]:
        ...


class DeviceLabelStrategy:
    """Pin the first video input whose label names the wanted facing."""

    name = "device-label"

    async def constraints(self, devices: MediaDevices, facing: str) -> Optional[Constraints]:
        for device in await devices.enumerate_devices():
            if device.kind == "videoinput" and label_matches_facing(device.label, facing):
                return {"video": {"deviceId": {"exact": device.device_id}}}
        return None


class FacingModeStrategy:
    """Ask for the facing mode as an exact requirement, an ideal, or a bare preference."""

    def __init__(self, strictness: Optional[str]) -> None:
        if strictness not in ("exact", "ideal", None):
            raise ValueError(f"Unknown facing-mode strictness: {strictness!r}")
        self.strictness = strictness
        self.name = f"facing-mode-{strictness or 'preference'}"

    async def constraints(self, devices: MediaDevices, facing: str) -> Optional[Constraints]:
        if self.strictness is None:
            return {"video": {"facingMode": facing}}
        return {"video": {"facingMode": {self.strictness: facing}}}


class AnyCameraStrategy:
    name = "any-camera"

    async def constraints(self, devices: MediaDevices, facing: str) -> Optional[Constraints]:
        return {"video": True}


def default_strategies() -> Sequence[AcquisitionStrategy]:
    return (
        DeviceLabelStrategy(),
        FacingModeStrategy("exact"),
        FacingModeStrategy("ideal"),
        FacingModeStrategy(None),
        AnyCameraStrategy(),
    )


class CameraAcquisition:
    """Bind a live camera stream to a video element.

    The capture control is disabled while negotiating and enabled only once a
    stream has delivered its metadata.

    Args:
        media_devices: Camera capability provider.
        video: Display element receiving the stream.
        capture_control: Capture button whose `enabled` flag signals readiness.
        display: Optional surface for the terminal error message.
        strategies: Ordered strategy chain; defaults to `default_strategies()`.
    """

    def __init__(
        self,
        media_devices: MediaDevices,
        video: VideoElement,
        capture_control: CaptureControl,
        display: Optional[Display] = None,
        strategies: Optional[Sequence[AcquisitionStrategy]] = None,
    ) -> None:
        self.media_devices = media_devices
        self.video = video
        self.capture_control = capture_control
        self.display = display
        self.strategies = tuple(strategies) if strategies is not None else tuple(default_strategies())
        self.capture_control.enabled = False

    @property
    def ready(self) -> bool:
        return self.capture_control.enabled

    async def start(self, facing: str = FACING_USER) -> MediaStream:
        """Open a stream for `facing` ("user" or "environment").

        Raises:
            CameraUnavailableError: When every strategy failed.
        """
        if facing not in FACING_KEYWORDS:
            raise ValueError(f"Unknown facing mode: {facing!r}")
        self.stop()

        await self._request_permission()

        for strategy in self.strategies:
            try:
                constraints = await strategy.constraints(self.media_devices, facing)
            except Exception as exc:
                logger.warning("Camera strategy %s failed: %s", strategy.name, exc)
                continue
            if constraints is None:
                continue
            stream = await self._open_stream(constraints)
            if stream is not None:
                logger.info("Camera ready via %s", strategy.name)
                return stream

        if self.display is not None:
            self.display.show_message(CAMERA_UNAVAILABLE_MESSAGE)
        raise CameraUnavailableError(CAMERA_UNAVAILABLE_MESSAGE)

    def stop(self) -> None:
        """Release the bound stream and disable capture."""
        self.capture_control.enabled = False
        stream, self.video.src_object = self.video.src_object, None
        if stream is not None:
            stream.stop()

    async def _request_permission(self) -> None:
        """Open and immediately release a generic stream so device labels become visible."""
        try:
            stream = await self.media_devices.get_user_media({"video": True})
        except Exception as exc:
            logger.warning("Initial permission request failed (labels may be hidden): %s", exc)
            return
        stream.stop()

    async def _open_stream(self, constraints: Constraints) -> Optional[MediaStream]:
        try:
            stream = await self.media_devices.get_user_media(constraints)
        except Exception as exc:
            logger.warning("Stream request failed for %r: %s", constraints, exc)
            return None

        self.video.src_object = stream
        try:
            await stream.wait_for_metadata()
        except Exception as exc:
            logger.warning("Stream for %r delivered no metadata: %s", constraints, exc)
            self.video.src_object = None
            stream.stop()
            return None

        self.capture_control.enabled = True
        return stream
