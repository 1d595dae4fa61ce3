"""Command line entry point: capture a photo or browse recent observations.

    fieldlens capture [--facing user|environment] [--backend URL] [--preview PATH]
    fieldlens recents [--highlight ID] [--backend URL]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

import httpx
from dotenv import load_dotenv

from client.camera import CameraAcquisition, CameraUnavailableError
from client.devices import OpenCVMediaDevices
from client.display import ConsoleDisplay
from client.listing import EMPTY_MESSAGE, ListingClient
from client.media import FACING_KEYWORDS, FACING_USER, CaptureControl, MediaDevices, VideoElement
from client.session import CaptureSession
from client.upload import DEFAULT_BACKEND_BASE, InlineResult, Persisted, UploadClient


async def show_recents(
    backend: str,
    highlight: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> int:
    view = await ListingClient(backend, http_client).load(highlight)
    if view.pending_highlight is not None:
        await view.pending_highlight
    print(view.render_text())
    return 0 if view.items or view.message == EMPTY_MESSAGE else 1


async def capture_once(
    backend: str,
    facing: str,
    preview: Path,
    media_devices: Optional[MediaDevices] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> int:
    """Take one photo, upload it, and print the listing with the new observation highlighted."""
    display = ConsoleDisplay(preview_path=preview)
    camera = CameraAcquisition(media_devices or OpenCVMediaDevices(), VideoElement(), CaptureControl(), display)
    try:
        await camera.start(facing)
    except CameraUnavailableError:
        return 1

    try:
        session = CaptureSession(camera, UploadClient(display, backend, http_client), display)
        outcome = await session.on_capture()
    finally:
        camera.stop()

    if isinstance(outcome, Persisted):
        print(f"Saved observation {outcome.observation_id}")
        return await show_recents(backend, str(outcome.observation_id), http_client)
    return 0 if isinstance(outcome, InlineResult) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fieldlens", description="Capture and browse artifact observations.")
    parser.add_argument(
        "--backend",
        default=os.getenv("FIELDLENS_BACKEND", DEFAULT_BACKEND_BASE),
        help="base address of the analysis service",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="take one photo and upload it")
    capture.add_argument("--facing", choices=sorted(FACING_KEYWORDS), default=FACING_USER)
    capture.add_argument("--preview", type=Path, default=Path("capture-preview.png"))

    recents = sub.add_parser("recents", help="list recent observations")
    recents.add_argument("--highlight", help="observation id to highlight")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "capture":
        return asyncio.run(capture_once(args.backend, args.facing, args.preview))
    return asyncio.run(show_recents(args.backend, args.highlight))


if __name__ == "__main__":
    raise SystemExit(main())
