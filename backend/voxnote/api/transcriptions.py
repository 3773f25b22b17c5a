"""Transcription API: ingest, history search, retrieval, deletion."""

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from loguru import logger
from sqlalchemy.orm import Session

from voxnote.config import settings
from voxnote.database import get_db
from voxnote.errors import InputError
from voxnote.schemas.transcription import (
    DeleteResponse,
    HistoryMeta,
    HistoryResponse,
    TranscribeResponse,
    TranscriptionRecordRead,
)
from voxnote.services import history
from voxnote.services.pipeline import IngestionPipeline

router = APIRouter()


def get_pipeline(request: Request) -> IngestionPipeline:
    """Pipeline built once in the app lifespan."""
    return request.app.state.pipeline


@router.post("", response_model=TranscribeResponse)
async def create_transcription(
    file: UploadFile | None = File(None),
    name: str | None = Form(None),
    description: str | None = Form(None),
    db: Session = Depends(get_db),
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> TranscribeResponse:
    """
    Upload an audio/video file; it is transcribed, enriched and persisted,
    and the finished record is returned.
    """
    if file is None:
        raise InputError("No file provided")

    try:
        content = await file.read()
    except Exception as e:
        logger.error(f"{e=}")
        raise InputError("Failed to read upload") from e

    result = await pipeline.ingest(
        db,
        content,
        file.filename or "upload",
        content_type=file.content_type,
        name=name,
        description=description,
    )
    return TranscribeResponse(
        text=result.text,
        formatted_text=result.formatted_text,
        record=TranscriptionRecordRead.model_validate(result.record),
    )


@router.get("", response_model=HistoryResponse)
def list_transcriptions(
    q: str = Query("", description="Substring searched in name, description and both texts"),
    page: str | None = Query(None, description="1-based page, defaults to 1"),
    limit: str | None = Query(None, description="Page size, defaults to the configured size"),
    db: Session = Depends(get_db),
) -> HistoryResponse:
    result = history.query_history(
        db,
        q,
        page,
        limit,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    return HistoryResponse(
        data=[TranscriptionRecordRead.model_validate(r) for r in result.items],
        meta=HistoryMeta(
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        ),
    )


@router.get("/{record_id}", response_model=TranscriptionRecordRead)
def read_transcription(record_id: str, db: Session = Depends(get_db)) -> TranscriptionRecordRead:
    return TranscriptionRecordRead.model_validate(history.get_record(db, record_id))


@router.delete("", response_model=DeleteResponse)
def delete_without_id() -> DeleteResponse:
    raise InputError("ID is required")


@router.delete("/{record_id}", response_model=DeleteResponse)
def delete_transcription(record_id: str, db: Session = Depends(get_db)) -> DeleteResponse:
    history.delete_record(db, record_id)
    return DeleteResponse(success=True)
