"""FastAPI routes for photo analysis and the observation listing."""

import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from controllers.observation_controller import analyze_upload, list_observations

router = APIRouter(prefix="/api", tags=["observations"])


@router.post("/analyze", summary="Analyze an uploaded photo and record an observation")
async def analyze_route(request: Request, photo: Optional[UploadFile] = File(None)):
	try:
		return await analyze_upload(request, photo)
	except HTTPException:
		raise
	except Exception as exc:
		logging.exception("Analyze request failed")
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/observations", summary="List the most recent observations")
async def observations_route(request: Request):
	try:
		return await list_observations(request)
	except HTTPException:
		raise
	except Exception as exc:
		logging.exception("Listing observations failed")
		raise HTTPException(status_code=500, detail=str(exc))
