"""Still-image capture from the stream bound to a video element."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from client.media import VideoElement

DEFAULT_SIZE = (640, 480)


class CaptureError(RuntimeError):
    """Encoding the current frame produced no image data."""


@dataclass(frozen=True)
class CapturePayload:
    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"
    filename: str = "capture.png"

    def preview_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


class CaptureEncoder:
    """Rasterize the current frame of a video element into a PNG payload.

    The canvas size is the stream's native resolution when known, otherwise
    the element's rendered size, otherwise 640x480; each dimension falls back
    independently.
    """

    def __init__(self, default_size: Tuple[int, int] = DEFAULT_SIZE) -> None:
        self.default_size = default_size

    def canvas_size(self, video: VideoElement) -> Tuple[int, int]:
        stream = video.src_object
        native_w = getattr(stream, "video_width", 0) if stream is not None else 0
        native_h = getattr(stream, "video_height", 0) if stream is not None else 0
        width = native_w or video.client_width or self.default_size[0]
        height = native_h or video.client_height or self.default_size[1]
        return int(width), int(height)

    def capture(self, video: VideoElement) -> CapturePayload:
        """Encode the displayed frame. An absent frame yields a blank canvas.

        Raises:
            CaptureError: If encoding yields no data.
        """
        width, height = self.canvas_size(video)
        frame = video.src_object.read_frame() if video.src_object is not None else None
        canvas = self._draw(frame, width, height)

        buffer = io.BytesIO()
        canvas.save(buffer, format="PNG")
        data = buffer.getvalue()
        if not data:
            raise CaptureError("Capture failed (no image data).")
        return CapturePayload(data=data, width=width, height=height)

    @staticmethod
    def _draw(frame: Optional[np.ndarray], width: int, height: int) -> Image.Image:
        if frame is None or frame.size == 0:
            return Image.new("RGB", (width, height))
        if frame.ndim == 2:
            image = Image.fromarray(frame.astype(np.uint8)).convert("RGB")
        else:
            # Frames arrive in OpenCV's BGR channel order.
            image = Image.fromarray(np.ascontiguousarray(frame[:, :, 2::-1]).astype(np.uint8))
        if image.size != (width, height):
            image = image.resize((width, height))
        return image
