"""SQLAlchemy engine and sessions; tables are created with create_all at startup."""

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from voxnote.config import settings

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if "sqlite" in settings.database_url else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db() -> None:
    """Create all tables."""
    from voxnote.models import transcription  # noqa: F401 - registers the model

    Base.metadata.create_all(bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
