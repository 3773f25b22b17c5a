"""API routes."""

from fastapi import APIRouter

from voxnote.api import transcriptions

router = APIRouter()
router.include_router(transcriptions.router, prefix="/transcriptions", tags=["transcriptions"])
