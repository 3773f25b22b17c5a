"""History queries over transcription records: paginated search, retrieval, deletion."""

import math
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voxnote.errors import InputError, NotFoundError, StorageError
from voxnote.models.transcription import TranscriptionRecord

SEARCH_FIELDS = (
    TranscriptionRecord.name,
    TranscriptionRecord.description,
    TranscriptionRecord.text,
    TranscriptionRecord.formatted_text,
)


@dataclass
class HistoryPage:
    items: list[TranscriptionRecord]
    total: int
    page: int
    limit: int
    total_pages: int


def positive_int(value: object, default: int) -> int:
    """Parse a positive integer, falling back to ``default`` on anything else."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _search_filter(q: str):
    # LIKE: case-insensitive for ASCII on SQLite, case-sensitive on PostgreSQL
    return or_(*(field.contains(q, autoescape=True) for field in SEARCH_FIELDS))


def query_history(
    db: Session,
    q: str = "",
    page: object = 1,
    limit: object = None,
    *,
    default_limit: int = 10,
    max_limit: int | None = None,
) -> HistoryPage:
    """
    Records whose searchable fields contain ``q`` (all records when empty),
    newest first with ``id`` as tie-breaker. Count and page are two separate
    statements and may disagree under concurrent writes.

    Invalid or missing ``page``/``limit`` fall back to 1 / ``default_limit``;
    ``limit`` is capped at ``max_limit`` when given.
    """
    page = positive_int(page, 1)
    limit = positive_int(limit, default_limit)
    if max_limit is not None:
        limit = min(limit, max_limit)

    count_stmt = select(func.count()).select_from(TranscriptionRecord)
    page_stmt = select(TranscriptionRecord).order_by(
        TranscriptionRecord.created_at.desc(), TranscriptionRecord.id.desc()
    )
    if q:
        count_stmt = count_stmt.where(_search_filter(q))
        page_stmt = page_stmt.where(_search_filter(q))
    page_stmt = page_stmt.offset((page - 1) * limit).limit(limit)

    try:
        total = db.scalar(count_stmt) or 0
        items = list(db.scalars(page_stmt))
    except SQLAlchemyError as e:
        logger.error(f"history fetch failed: {q=} {page=} {limit=} {e=}")
        raise StorageError("Failed to fetch history") from e

    logger.debug(f"{q=} {page=} {limit=} {total=} {len(items)=}")
    return HistoryPage(
        items=items,
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def get_record(db: Session, record_id: str) -> TranscriptionRecord:
    try:
        record = db.get(TranscriptionRecord, record_id)
    except SQLAlchemyError as e:
        logger.error(f"record fetch failed: {record_id=} {e=}")
        raise StorageError("Failed to fetch record") from e
    if record is None:
        raise NotFoundError(f"Record {record_id} not found")
    return record


def delete_record(db: Session, record_id: str) -> None:
    """Hard delete. The stored blob is left in place."""
    if not record_id or not record_id.strip():
        raise InputError("ID is required")
    record = get_record(db, record_id)
    filename = record.filename
    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"record delete failed: {record_id=} {e=}")
        raise StorageError("Failed to delete record") from e
    logger.info(f"deleted {record_id=} {filename=}")
