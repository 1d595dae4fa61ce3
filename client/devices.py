"""OpenCV-backed implementation of the camera capability model.

Device ids are OpenCV capture indices rendered as strings. On Linux, device
labels come from the V4L2 sysfs tree; elsewhere devices are discovered by
probing indices and carry no label, the same way a browser hides labels
before permission is granted. OpenCV cannot report which way a camera faces,
so facing-mode constraints are resolved against labels.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional

import cv2
import numpy as np

from client.media import (
    Constraints,
    DeviceInfo,
    MediaError,
    NotReadableError,
    OverconstrainedError,
    label_matches_facing,
)

logger = logging.getLogger(__name__)

V4L2_SYSFS_ROOT = Path("/sys/class/video4linux")


class OpenCVStream:
    """A live stream from one `cv2.VideoCapture`."""

    def __init__(self, capture: cv2.VideoCapture, device_id: str) -> None:
        self._capture = capture
        self.device_id = device_id
        self.video_width = 0
        self.video_height = 0
        self._last_frame: Optional[np.ndarray] = None

    async def wait_for_metadata(self) -> None:
        """Block until the first frame arrives, which fixes the native resolution."""
        ok, frame = await asyncio.to_thread(self._capture.read)
        if not ok or frame is None:
            raise NotReadableError(f"Camera {self.device_id} delivered no frames")
        self._last_frame = frame
        self.video_height, self.video_width = frame.shape[:2]

    def read_frame(self) -> Optional[np.ndarray]:
        ok, frame = self._capture.read()
        if ok and frame is not None:
            self._last_frame = frame
        return self._last_frame

    def stop(self) -> None:
        self._capture.release()


class OpenCVMediaDevices:
    """`MediaDevices` over local cameras reachable through OpenCV.

    Args:
        max_probe: Number of indices probed when no sysfs tree is available.
        sysfs_root: Location of the V4L2 class directory.
    """

    def __init__(self, max_probe: int = 4, sysfs_root: Path = V4L2_SYSFS_ROOT) -> None:
        self.max_probe = max_probe
        self.sysfs_root = sysfs_root

    async def enumerate_devices(self) -> List[DeviceInfo]:
        return await asyncio.to_thread(self._list_devices)

    async def get_user_media(self, constraints: Constraints) -> OpenCVStream:
        video = constraints.get("video")
        if not video:
            raise MediaError("A video constraint is required")
        index = await self._select_index(video)
        capture = await asyncio.to_thread(cv2.VideoCapture, index)
        if not capture.isOpened():
            capture.release()
            raise NotReadableError(f"Could not open camera index {index}")
        logger.debug("Opened camera %s for constraints %r", index, constraints)
        return OpenCVStream(capture, str(index))

    def _list_devices(self) -> List[DeviceInfo]:
        if self.sysfs_root.is_dir():
            devices = []
            for entry in sorted(self.sysfs_root.glob("video*")):
                suffix = entry.name[len("video"):]
                if not suffix.isdigit():
                    continue
                name_file = entry / "name"
                label = name_file.read_text().strip() if name_file.exists() else ""
                devices.append(DeviceInfo(device_id=suffix, kind="videoinput", label=label))
            return devices

        devices = []
        for index in range(self.max_probe):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    devices.append(DeviceInfo(device_id=str(index), kind="videoinput"))
            finally:
                capture.release()
        return devices

    async def _select_index(self, video: Any) -> int:
        if video is True:
            return 0
        if not isinstance(video, dict):
            raise MediaError(f"Unsupported video constraint: {video!r}")

        device_id = video.get("deviceId")
        if device_id is not None:
            wanted = device_id.get("exact") if isinstance(device_id, dict) else device_id
            try:
                return int(wanted)
            except (TypeError, ValueError) as exc:
                raise OverconstrainedError(f"Unknown device id {wanted!r}") from exc

        facing = video.get("facingMode")
        if facing is None:
            return 0

        if isinstance(facing, dict) and "exact" in facing:
            match = await self._find_facing(facing["exact"])
            if match is None:
                raise OverconstrainedError(f"No camera facing {facing['exact']!r}")
            return match

        preferred = facing.get("ideal") if isinstance(facing, dict) else facing
        match = await self._find_facing(preferred)
        return 0 if match is None else match

    async def _find_facing(self, facing: str) -> Optional[int]:
        for device in await self.enumerate_devices():
            if label_matches_facing(device.label, facing):
                return int(device.device_id)
        return None
