# Test configuration: in-memory database, temporary upload dir, fake capabilities.
from __future__ import annotations

import os
import shutil
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
_UPLOAD_TMP: str | None = None
if "UPLOAD_DIR" not in os.environ:
    _UPLOAD_TMP = tempfile.mkdtemp(prefix="voxnote-uploads-")
    os.environ["UPLOAD_DIR"] = _UPLOAD_TMP

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from voxnote.api.transcriptions import get_pipeline
from voxnote.database import Base, get_db
from voxnote.main import app
from voxnote.models.transcription import TranscriptionRecord
from voxnote.services.base import Enricher, Transcriber
from voxnote.services.blob_store import BlobStore
from voxnote.services.pipeline import IngestionPipeline


class FakeTranscriber(Transcriber):
    name = "fake"

    def __init__(self, text: str = "hello world", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[tuple[bytes, str, str | None]] = []

    async def transcribe(self, data, filename, content_type=None):
        self.calls.append((data, filename, content_type))
        if self.error is not None:
            raise self.error
        return self.text


class FakeEnricher(Enricher):
    name = "fake"

    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def complete_json(self, system_prompt, user_content):
        self.calls.append((system_prompt, user_content))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def blob_store(tmp_path) -> BlobStore:
    return BlobStore(tmp_path / "uploads")


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def enricher() -> FakeEnricher:
    return FakeEnricher(reply='{"formattedText": "# Hello\\n\\nHello world."}')


@pytest.fixture
def pipeline(blob_store, transcriber, enricher) -> IngestionPipeline:
    return IngestionPipeline(blob_store, transcriber, enricher, max_upload_bytes=1024)


@pytest.fixture
def client(session_factory, pipeline):
    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_record(db_session):
    """Insert a record directly; ``minutes`` offsets created_at from a fixed base."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(minutes: int = 0, **fields) -> TranscriptionRecord:
        values = {
            "filename": f"{minutes}-clip.mp3",
            "original_name": "clip.mp3",
            "text": "plain transcript",
            "formatted_text": "plain transcript",
            "created_at": base + timedelta(minutes=minutes),
        }
        values.update(fields)
        record = TranscriptionRecord(**values)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


def pytest_sessionfinish(session, exitstatus):
    if _UPLOAD_TMP is not None:
        shutil.rmtree(_UPLOAD_TMP, ignore_errors=True)
