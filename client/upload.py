"""Upload of captured images to the analysis endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx

from client.capture import CapturePayload
from client.display import Display

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_BASE = "http://localhost:3000"
ANALYZE_PATH = "/api/analyze"
LISTING_PAGE = "recents.html"


@dataclass(frozen=True)
class ServerRejected:
    status_code: int
    message: str


@dataclass(frozen=True)
class Persisted:
    observation_id: Any
    listing_url: str
    body: Dict[str, Any]


@dataclass(frozen=True)
class InlineResult:
    label: Optional[str]
    estimated_age: Optional[str]
    confidence: Optional[float]
    body: Dict[str, Any]


@dataclass(frozen=True)
class TransportFailed:
    reason: str


UploadOutcome = Union[ServerRejected, Persisted, InlineResult, TransportFailed]


def listing_url(backend_base: str, observation_id: Any) -> str:
    """URL of the listing view highlighting `observation_id`."""
    return f"{backend_base.rstrip('/')}/{LISTING_PAGE}?highlight={quote(str(observation_id), safe='')}"


def _or_na(value: Any) -> Any:
    return "N/A" if value is None or value == "" else value


class UploadClient:
    """Send one capture to the backend and report the result on a display.

    Args:
        display: Surface for status messages and navigation.
        backend_base: Base address of the analysis service.
        http_client: Optional shared `httpx.AsyncClient`; one is created per
            upload when omitted.
    """

    def __init__(
        self,
        display: Display,
        backend_base: str = DEFAULT_BACKEND_BASE,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.display = display
        self.backend_base = backend_base.rstrip("/")
        self._http_client = http_client

    async def send(self, payload: CapturePayload) -> UploadOutcome:
        """Upload `payload` once and route the response. Never raises on transport errors."""
        self.display.show_message("Sending to server...")
        try:
            response, body = await self._post(payload)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Upload failed: %s", exc)
            reason = str(exc) or type(exc).__name__
            self.display.show_message(f"Network error: {reason}")
            return TransportFailed(reason=reason)

        if not response.is_success:
            logger.warning("Server returned error %s: %r", response.status_code, body)
            error = body.get("error") if isinstance(body, dict) else None
            message = str(error) if error else json.dumps(body)
            self.display.show_message(f"Server error: {message}")
            return ServerRejected(status_code=response.status_code, message=message)

        if not isinstance(body, dict):
            body = {}

        observation_id = body.get("id")
        if observation_id is not None and observation_id != "":
            url = listing_url(self.backend_base, observation_id)
            self.display.navigate(url)
            return Persisted(observation_id=observation_id, listing_url=url, body=body)

        self.display.show_message(
            f"Label: {_or_na(body.get('label'))} | "
            f"Age: {_or_na(body.get('estimated_age'))} | "
            f"Confidence: {_or_na(body.get('confidence'))}"
        )
        return InlineResult(
            label=body.get("label"),
            estimated_age=body.get("estimated_age"),
            confidence=body.get("confidence"),
            body=body,
        )

    async def _post(self, payload: CapturePayload):
        files = {"photo": (payload.filename, payload.data, payload.mime_type)}
        url = f"{self.backend_base}{ANALYZE_PATH}"
        if self._http_client is not None:
            response = await self._http_client.post(url, files=files)
        else:
            # The reply waits on model inference, so no client-side timeout applies.
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(url, files=files)
        return response, response.json()
