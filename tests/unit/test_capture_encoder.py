"""
Unit tests for still-image capture.
"""
import io

import numpy as np
import pytest
from PIL import Image

from client.capture import CaptureEncoder, CaptureError
from client.media import VideoElement


def _decode(payload):
    return Image.open(io.BytesIO(payload.data))


class TestCaptureEncoder:
    def test_uses_native_stream_size(self, stream_factory):
        frame = np.zeros((600, 800, 3), dtype=np.uint8)
        video = VideoElement(src_object=stream_factory(800, 600, frame=frame), client_width=320, client_height=240)

        payload = CaptureEncoder().capture(video)

        assert (payload.width, payload.height) == (800, 600)
        assert _decode(payload).size == (800, 600)
        assert payload.mime_type == "image/png"
        assert payload.filename == "capture.png"

    def test_zero_dimension_stream_uses_element_size(self, stream_factory):
        video = VideoElement(src_object=stream_factory(0, 0), client_width=320, client_height=240)

        payload = CaptureEncoder().capture(video)

        assert _decode(payload).size == (320, 240)

    def test_zero_dimension_stream_and_element_use_default(self, stream_factory):
        video = VideoElement(src_object=stream_factory(0, 0))

        payload = CaptureEncoder().capture(video)

        assert _decode(payload).size == (640, 480)
        assert _decode(payload).format == "PNG"

    def test_no_stream_still_produces_an_image(self):
        payload = CaptureEncoder().capture(VideoElement())
        assert (payload.width, payload.height) == (640, 480)

    def test_bgr_frames_become_rgb(self, stream_factory):
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[:, :, 0] = 255  # blue in BGR order
        video = VideoElement(src_object=stream_factory(2, 2, frame=frame))

        image = _decode(CaptureEncoder().capture(video)).convert("RGB")

        assert image.getpixel((0, 0)) == (0, 0, 255)

    def test_frame_is_scaled_to_canvas(self, stream_factory):
        frame = np.full((10, 10, 3), 128, dtype=np.uint8)
        video = VideoElement(src_object=stream_factory(0, 0, frame=frame), client_width=40, client_height=30)

        assert _decode(CaptureEncoder().capture(video)).size == (40, 30)

    def test_preview_data_url(self):
        payload = CaptureEncoder().capture(VideoElement(client_width=4, client_height=4))
        assert payload.preview_data_url().startswith("data:image/png;base64,iVBOR")

    def test_empty_encoding_is_a_capture_error(self, monkeypatch):
        monkeypatch.setattr(Image.Image, "save", lambda self, fp, format=None, **params: None)

        with pytest.raises(CaptureError):
            CaptureEncoder().capture(VideoElement())
