"""One capture-to-upload cycle, as triggered by the capture button."""

from __future__ import annotations

import logging
from typing import Optional

from client.camera import CameraAcquisition
from client.capture import CaptureEncoder, CaptureError
from client.display import Display
from client.upload import UploadClient, UploadOutcome

logger = logging.getLogger(__name__)

CAPTURE_FAILED_MESSAGE = "Capture failed (no image data)."


class CaptureSession:
    """Glue between camera, encoder, upload client and display."""

    def __init__(
        self,
        camera: CameraAcquisition,
        uploader: UploadClient,
        display: Display,
        encoder: Optional[CaptureEncoder] = None,
    ) -> None:
        self.camera = camera
        self.uploader = uploader
        self.display = display
        self.encoder = encoder or CaptureEncoder()

    async def on_capture(self) -> Optional[UploadOutcome]:
        """Capture a frame, show its preview, then upload it.

        Returns None when capture is not ready or produced no image.
        """
        if not self.camera.ready:
            logger.warning("Capture requested before the camera was ready")
            return None

        try:
            payload = self.encoder.capture(self.camera.video)
        except CaptureError:
            self.display.show_message(CAPTURE_FAILED_MESSAGE)
            return None

        # Preview first so the user sees the capture even if the upload fails.
        self.display.show_preview(payload)
        return await self.uploader.send(payload)
