"""
Shared pytest fixtures for FieldLens tests.
"""
import io
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from PIL import Image

from client.media import DeviceInfo, OverconstrainedError
from utils.app_config import AppConfig


def make_png(width: int = 8, height: int = 6, color=(200, 120, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeCompletion:
    """Stand-in for a chat completion response object."""

    def __init__(self, content: Optional[str]):
        self._content = content
        self.choices = [SimpleNamespace(message=SimpleNamespace(role="assistant", content=content))]

    def model_dump(self) -> Dict[str, Any]:
        return {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": self._content}}],
        }


def make_openai_client(content: Optional[str] = None, error: Optional[BaseException] = None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=FakeCompletion(content), side_effect=error)
    return client


class FakeStream:
    def __init__(self, width: int = 0, height: int = 0, frame: Optional[np.ndarray] = None, metadata_error=None):
        self.video_width = width
        self.video_height = height
        self.frame = frame
        self.metadata_error = metadata_error
        self.stopped = False

    async def wait_for_metadata(self) -> None:
        if self.metadata_error is not None:
            raise self.metadata_error

    def read_frame(self) -> Optional[np.ndarray]:
        return self.frame

    def stop(self) -> None:
        self.stopped = True


class FakeMediaDevices:
    """Media devices that accept constraints according to a predicate.

    Args:
        devices: Devices returned by `enumerate_devices`.
        accept: Predicate over constraints; rejected requests raise OverconstrainedError.
        enumerate_error: Optional exception raised by `enumerate_devices`.
        stream_factory: Builds the stream returned for accepted constraints.
    """

    def __init__(self, devices=(), accept=lambda c: True, enumerate_error=None, stream_factory=None):
        self.devices = list(devices)
        self.accept = accept
        self.enumerate_error = enumerate_error
        self.stream_factory = stream_factory or (lambda c: FakeStream(1280, 720))
        self.requests: List[Dict[str, Any]] = []
        self.streams: List[FakeStream] = []

    async def get_user_media(self, constraints):
        self.requests.append(constraints)
        if not self.accept(constraints):
            raise OverconstrainedError(f"rejected {constraints!r}")
        stream = self.stream_factory(constraints)
        self.streams.append(stream)
        return stream

    async def enumerate_devices(self):
        if self.enumerate_error is not None:
            raise self.enumerate_error
        return list(self.devices)


def video_device(device_id: str, label: str = "") -> DeviceInfo:
    return DeviceInfo(device_id=device_id, kind="videoinput", label=label)


class SlowBackendHandler(BaseHTTPRequestHandler):
    """Answers like the analysis service, but only after `delay` seconds."""

    delay = 5.5

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self._reply({"id": 7, "label": "coin"})

    def do_GET(self):
        self._reply([{"id": 7, "filename": "7.png", "label": "coin"}])

    def _reply(self, payload):
        time.sleep(self.delay)
        body = json.dumps(payload).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Config pointing the store and uploads at a temporary directory."""
    return AppConfig(
        groq_api_key="test_groq_key",
        groq_model="test-vision-model",
        database_dir=tmp_path / "database",
        upload_dir=tmp_path / "uploads",
        log_level="WARNING",
    )


@pytest.fixture
def openai_client_factory():
    """Factory for mocked async inference clients: `factory(content=..., error=...)`."""
    return make_openai_client


@pytest.fixture
def media_devices_factory():
    return FakeMediaDevices


@pytest.fixture
def stream_factory():
    return FakeStream


@pytest.fixture
def device_factory():
    return video_device


@pytest.fixture
def slow_backend():
    """Base URL of a local HTTP server that replies after the httpx default timeout."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), SlowBackendHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
