"""Validation helpers for uploaded image content."""

from typing import Optional

from fastapi import HTTPException, UploadFile


async def read_photo_bytes(photo: Optional[UploadFile]) -> bytes:
    """Read the uploaded photo, rejecting a missing or empty upload with a 400."""
    if photo is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    data = await photo.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return data
