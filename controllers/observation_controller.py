from fastapi import Request, UploadFile, HTTPException
from typing import Dict, Any, List, Optional
import json
import logging

from openai import OpenAIError

from services.inference.analyzer import ObservationAnalyzer
from services.inference.media_inputs import detect_mime_type
from services.inference.response_parser import error_fallback
from services.image_store import UploadStore
from dal.observation_dal import ObservationDAL
from models.inference_result import InferenceResult
from models.observation_record import ObservationRecord
from utils.media_validation import read_photo_bytes


async def analyze_upload(request: Request, photo: Optional[UploadFile]) -> Dict[str, Any]:
    """Store an uploaded photo, ask the inference API about it, and record an observation.

    Args:
        request: FastAPI Request object (used to access app.state for shared services).
        photo: The uploaded `photo` form field, or None when absent.

    Returns:
        A dict containing: id, filename, imageUrl, label, estimated_age,
        confidence, raw_response.

    Raises:
        HTTPException(400) when no file was uploaded.
        HTTPException(500) when the inference credential is not configured.
    """
    raw = await read_photo_bytes(photo)

    config = request.app.state.config
    upload_store: UploadStore = request.app.state.upload_store
    observation_dal = ObservationDAL(request.app.state.db_initializer)

    stored = await upload_store.save(raw, photo.filename)
    image_b64 = await upload_store.read_base64(stored)

    openai_client = getattr(request.app.state, "openai_client", None)
    if not config.groq_api_key or openai_client is None:
        raise HTTPException(status_code=500, detail="GROQ_API_KEY is not set")

    analyzer = ObservationAnalyzer(openai_client, config.groq_model)
    try:
        result = await analyzer.analyze(image_b64, detect_mime_type(raw, stored.filename))
    except OpenAIError as exc:
        # Upstream failures still leave a row behind; the error is kept for audit.
        result = error_fallback(exc)

    record = ObservationRecord(
        id=None,
        filename=stored.filename,
        image_url=stored.image_url,
        label=result.label,
        estimated_age=result.estimated_age,
        confidence=result.confidence,
        raw_response=result.raw_response,
    )
    observation_id = await observation_dal.create_observation(record)
    logging.info("Stored observation %s for %s (parsed=%s)", observation_id, stored.filename, result.parsed)

    return {
        "id": observation_id,
        "filename": stored.filename,
        "imageUrl": stored.image_url,
        "label": result.label,
        "estimated_age": result.estimated_age,
        "confidence": result.confidence,
        "raw_response": _response_detail(result),
    }


async def list_observations(request: Request) -> List[Dict[str, Any]]:
    """Return the most recent observations as JSON-ready dicts, newest first."""
    observation_dal = ObservationDAL(request.app.state.db_initializer)
    records = await observation_dal.list_recent()
    return [record.to_dict() for record in records]


def _response_detail(result: InferenceResult) -> Any:
    """Notes when the model supplied them, otherwise the decoded raw response."""
    if result.notes:
        return result.notes
    try:
        return json.loads(result.raw_response)
    except ValueError:
        return result.raw_response
