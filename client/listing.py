"""Listing of recent observations, with optional highlighting of one item."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import httpx

from client.upload import DEFAULT_BACKEND_BASE

logger = logging.getLogger(__name__)

OBSERVATIONS_PATH = "/api/observations"
HIGHLIGHT_CLASS = "highlight"
HIGHLIGHT_RENDER_DELAY = 0.2
HIGHLIGHT_DURATION = 4.0

EMPTY_MESSAGE = "No captures yet. Take one from the camera page."


@dataclass
class ObservationItem:
    id: Optional[str]
    image_src: str
    label: str
    estimated_age: str
    confidence: str
    captured_at: str
    classes: Set[str] = field(default_factory=lambda: {"obs-item"})

    @property
    def highlighted(self) -> bool:
        return HIGHLIGHT_CLASS in self.classes


@dataclass
class ListingView:
    """Rendered listing: either items or a single user-facing message."""

    items: List[ObservationItem] = field(default_factory=list)
    message: Optional[str] = None
    scrolled_to: Optional[str] = None
    pending_highlight: Optional["asyncio.Task[Optional[asyncio.TimerHandle]]"] = None

    def find(self, item_id: Any) -> Optional[ObservationItem]:
        wanted = str(item_id)
        for item in self.items:
            if item.id is not None and item.id == wanted:
                return item
        return None

    async def highlight(
        self,
        item_id: Any,
        *,
        render_delay: float = HIGHLIGHT_RENDER_DELAY,
        duration: float = HIGHLIGHT_DURATION,
    ) -> Optional[asyncio.TimerHandle]:
        """Scroll to the matching item and mark it; the mark is removed after `duration`.

        Returns the timer that removes the mark, or None when no item matches.
        """
        item = self.find(item_id)
        if item is None:
            return None
        await asyncio.sleep(render_delay)
        self.scrolled_to = item.id
        item.classes.add(HIGHLIGHT_CLASS)
        loop = asyncio.get_running_loop()
        return loop.call_later(duration, item.classes.discard, HIGHLIGHT_CLASS)

    def render_text(self) -> str:
        if self.message is not None:
            return self.message
        blocks = []
        for item in self.items:
            marker = ">>" if item.highlighted else "  "
            blocks.append(
                f"{marker} [{item.id}] {item.label}\n"
                f"     Estimated age: {item.estimated_age}\n"
                f"     Confidence: {item.confidence}\n"
                f"     Captured: {item.captured_at}\n"
                f"     Image: {item.image_src}"
            )
        return "\n".join(blocks)


def _format_confidence(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return "N/A"
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return "N/A"


class ListingClient:
    """Fetch recent observations and build a `ListingView`.

    Args:
        backend_base: Base address of the analysis service.
        http_client: Optional shared `httpx.AsyncClient`.
    """

    def __init__(self, backend_base: str = DEFAULT_BACKEND_BASE, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.backend_base = backend_base.rstrip("/")
        self._http_client = http_client

    def image_src(self, row: Dict[str, Any]) -> str:
        relative = row.get("image_url") or (f"/uploads/{row['filename']}" if row.get("filename") else "")
        if not relative:
            return ""
        if relative.startswith("http"):
            return relative
        return f"{self.backend_base}{relative}"

    def to_item(self, row: Dict[str, Any]) -> ObservationItem:
        confidence = row.get("confidence")
        row_id = row.get("id")
        return ObservationItem(
            id=None if row_id is None else str(row_id),
            image_src=self.image_src(row),
            label=row.get("label") or "Unknown",
            estimated_age=row.get("estimated_age") or "N/A",
            confidence=_format_confidence(confidence),
            captured_at=row.get("created_at") or "",
        )

    async def fetch(self) -> ListingView:
        """Fetch rows and render them. HTTP and network failures become messages."""
        try:
            response = await self._get(f"{self.backend_base}{OBSERVATIONS_PATH}")
            if not response.is_success:
                return ListingView(message=f"Server error: {response.status_code}")
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("fetching observations failed: %s", exc)
            return ListingView(message=f"Network error: {str(exc) or type(exc).__name__}")

        if not isinstance(rows, list) or not rows:
            return ListingView(message=EMPTY_MESSAGE)
        return ListingView(items=[self.to_item(row) for row in rows if isinstance(row, dict)])

    async def load(self, highlight_id: Optional[Any] = None) -> ListingView:
        """Fetch the listing and, when `highlight_id` matches a row, schedule its highlight."""
        view = await self.fetch()
        if highlight_id is not None and view.find(highlight_id) is not None:
            view.pending_highlight = asyncio.create_task(view.highlight(highlight_id))
        return view

    async def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url)
        async with httpx.AsyncClient(timeout=None) as client:
            return await client.get(url)
