"""Output surfaces for the capture client."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol, TextIO

if TYPE_CHECKING:
    from client.capture import CapturePayload


class Display(Protocol):
    def show_message(self, text: str) -> None:
        ...

    def show_preview(self, payload: "CapturePayload") -> None:
        ...

    def navigate(self, url: str) -> None:
        ...


class ConsoleDisplay:
    """Display that prints messages, writes previews to a file, and records navigation.

    Args:
        preview_path: Where the latest capture preview is written.
        stream: Text stream for messages; stdout by default.
    """

    def __init__(self, preview_path: Optional[Path] = None, stream: Optional[TextIO] = None) -> None:
        self.preview_path = preview_path
        self.stream = stream or sys.stdout
        self.messages: List[str] = []
        self.location: Optional[str] = None

    def show_message(self, text: str) -> None:
        self.messages.append(text)
        print(text, file=self.stream)

    def show_preview(self, payload: "CapturePayload") -> None:
        if self.preview_path is None:
            return
        self.preview_path.write_bytes(payload.data)
        print(f"Preview ({payload.width}x{payload.height}) saved to {self.preview_path}", file=self.stream)

    def navigate(self, url: str) -> None:
        self.location = url
