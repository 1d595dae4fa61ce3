"""Utilities to build the multimodal chat payload for the inference API."""

import io
import mimetypes
from typing import Any, Dict, List, Optional

from PIL import Image, UnidentifiedImageError

DEFAULT_MIME_TYPE = "image/png"


def detect_mime_type(image_bytes: bytes, filename: Optional[str] = None) -> str:
    """Return the image MIME type, sniffed with Pillow and falling back to the file name."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        mime = None
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed and guessed.startswith("image/"):
        return guessed
    return DEFAULT_MIME_TYPE


def to_image_data_url(image_b64: str, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Wrap a base64 image string in a data URL suitable for vision input."""
    if not image_b64:
        raise ValueError("Image data must not be empty.")
    return f"data:{mime_type};base64,{image_b64}"


def build_messages(instruction: str, image_b64: str, mime_type: str) -> List[Dict[str, Any]]:
    """Build the chat completions message list: one user turn with text and image parts."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": instruction},
                {"type": "image_url", "image_url": {"url": to_image_data_url(image_b64, mime_type)}},
            ],
        }
    ]
