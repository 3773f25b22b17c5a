"""
Ingestion pipeline: blob write -> transcription -> best-effort enrichment -> record insert.

Stages run strictly in order for one request with no retries. Enrichment failures
degrade to the raw transcript; every other failure aborts the request.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voxnote.errors import ConfigurationError, InputError, StorageError, TranscriptionError
from voxnote.models.transcription import TranscriptionRecord
from voxnote.schemas.transcription import EnrichmentPayload
from voxnote.services.base import Enricher, Transcriber
from voxnote.services.blob_store import BlobStore, generate_filename
from voxnote.services.enrichment import SYSTEM_PROMPT, build_user_content, parse_enrichment


class PipelineStage(str, Enum):
    VALIDATING = "validating"
    BLOB_WRITTEN = "blob_written"
    TRANSCRIBED = "transcribed"
    ENRICHED = "enriched"
    ENRICHMENT_DEGRADED = "enrichment_degraded"
    PERSISTED = "persisted"


@dataclass
class IngestResult:
    text: str
    formatted_text: str
    record: TranscriptionRecord
    enrichment_degraded: bool = False


class IngestionPipeline:
    def __init__(
        self,
        blob_store: BlobStore,
        transcriber: Transcriber | None,
        enricher: Enricher | None,
        *,
        max_upload_bytes: int | None = None,
    ) -> None:
        self.blob_store = blob_store
        self.transcriber = transcriber
        self.enricher = enricher
        self.max_upload_bytes = max_upload_bytes

    def _validate(self, data: bytes | None) -> None:
        if not data:
            raise InputError("No file provided")
        if self.max_upload_bytes is not None and len(data) > self.max_upload_bytes:
            raise InputError(f"File exceeds the {self.max_upload_bytes} byte upload limit")
        if self.transcriber is None:
            raise ConfigurationError("Transcription capability is not configured")
        if self.enricher is None:
            raise ConfigurationError("Enrichment capability is not configured")

    async def _transcribe(self, data: bytes, filename: str, content_type: str | None) -> str:
        try:
            text = await self.transcriber.transcribe(data, filename, content_type)
        except Exception as e:
            logger.error(f"transcription failed: {self.transcriber.name=} {e=}")
            raise TranscriptionError(str(e) or "Failed to transcribe") from e
        if not text or not text.strip():
            raise TranscriptionError("Transcription returned no text")
        return text

    async def _enrich(
        self, transcript: str, name: str | None, description: str | None
    ) -> EnrichmentPayload | None:
        """Never raises: any failure yields ``None``."""
        try:
            content = await self.enricher.complete_json(
                SYSTEM_PROMPT, build_user_content(transcript, name, description)
            )
        except Exception as e:
            logger.warning(f"enrichment failed: {self.enricher.name=} {e=}")
            return None
        return parse_enrichment(content)

    def _persist(self, db: Session, record: TranscriptionRecord) -> TranscriptionRecord:
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"record insert failed: {e=}")
            raise StorageError("Failed to save transcription") from e
        return record

    async def ingest(
        self,
        db: Session,
        data: bytes | None,
        filename: str,
        content_type: str | None = None,
        name: str | None = None,
        description: str | None = None,
    ) -> IngestResult:
        logger.debug(f"stage={PipelineStage.VALIDATING.value} {filename=} {content_type=}")
        self._validate(data)
        name = name or None
        description = description or None

        loop = asyncio.get_running_loop()
        start = loop.time()

        stored_name = generate_filename(filename)
        try:
            await self.blob_store.write(stored_name, data)
        except OSError as e:
            logger.error(f"blob write failed: {stored_name=} {e=}")
            raise StorageError("Failed to store upload") from e
        logger.info(f"stage={PipelineStage.BLOB_WRITTEN.value} {stored_name=} {len(data)=}")

        transcript = await self._transcribe(data, filename, content_type)
        logger.info(f"stage={PipelineStage.TRANSCRIBED.value} {self.transcriber.name=} {len(transcript)=}")

        payload = await self._enrich(transcript, name, description)
        degraded = payload is None
        formatted_text = transcript
        if payload is not None:
            if payload.formatted_text and payload.formatted_text.strip():
                formatted_text = payload.formatted_text
            name = name or payload.generated_title or None
            description = description or payload.generated_description or None
        stage = PipelineStage.ENRICHMENT_DEGRADED if degraded else PipelineStage.ENRICHED
        logger.info(f"stage={stage.value} {self.enricher.name=}")

        record = self._persist(
            db,
            TranscriptionRecord(
                filename=stored_name,
                original_name=filename,
                name=name,
                description=description,
                text=transcript,
                formatted_text=formatted_text,
            ),
        )
        elapsed = loop.time() - start
        logger.info(f"stage={PipelineStage.PERSISTED.value} {record.id=} {elapsed=:.2f}s")

        return IngestResult(
            text=transcript,
            formatted_text=formatted_text,
            record=record,
            enrichment_degraded=degraded,
        )
