"""Storage of uploaded images on disk.

`UploadStore` owns one upload directory. Each upload is written under a
fresh name built from the current time in milliseconds plus a random
component, keeping the original extension (``.png`` when there is none).
Files are created exclusively, so two concurrent uploads never share a name.
"""

from __future__ import annotations

import base64
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

import aiofiles

DEFAULT_EXTENSION = ".png"
URL_PREFIX = "/uploads"

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


@dataclass(frozen=True)
class StoredImage:
    filename: str
    path: Path
    image_url: str


def generate_filename(original_name: str | None) -> str:
    """Return a new collision-resistant file name for an upload."""
    ext = Path(original_name or "").suffix.lower()
    if not _EXTENSION_RE.match(ext):
        ext = DEFAULT_EXTENSION
    return f"{int(time.time() * 1000)}-{secrets.randbelow(1_000_000)}{ext}"


class UploadStore:
    """Write uploaded images to a directory and read them back.

    Args:
        upload_dir: Directory for stored images; created on first save or
            by `ensure_dir()`.
        url_prefix: Public path prefix under which the directory is served.
    """

    _MAX_NAME_ATTEMPTS = 5

    def __init__(self, upload_dir: Path | str, url_prefix: str = URL_PREFIX) -> None:
        self.upload_dir = Path(upload_dir).expanduser()
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def save(self, data: bytes, original_name: str | None = None) -> StoredImage:
        """Persist `data` under a newly generated name.

        Raises:
            FileExistsError: If no unused name could be generated.
            OSError: On any filesystem failure.
        """
        self.ensure_dir()
        for _ in range(self._MAX_NAME_ATTEMPTS):
            filename = generate_filename(original_name)
            path = self.upload_dir / filename
            try:
                async with aiofiles.open(path, "xb") as f:
                    await f.write(data)
            except FileExistsError:
                continue
            return StoredImage(filename=filename, path=path, image_url=self.url_for(filename))
        raise FileExistsError(f"Could not allocate a unique file name in {self.upload_dir}")

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    async def read_base64(self, stored: StoredImage) -> str:
        """Read a stored image back and return it base64-encoded."""
        async with aiofiles.open(stored.path, "rb") as f:
            raw = await f.read()
        return base64.b64encode(raw).decode("ascii")
