"""FastAPI application entry point."""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from voxnote.api import router as api_router
from voxnote.config import settings
from voxnote.database import init_db
from voxnote.errors import VoxnoteError
from voxnote.services.blob_store import BlobStore
from voxnote.services.factory import build_enricher, build_transcriber
from voxnote.services.pipeline import IngestionPipeline


def _setup_loguru() -> None:
    """Configure Loguru."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.log_level,
    )


def build_pipeline() -> IngestionPipeline:
    """Capability clients are constructed once per process."""
    blob_store = BlobStore(settings.upload_path)
    blob_store.ensure_root()
    return IngestionPipeline(
        blob_store,
        build_transcriber(settings),
        build_enricher(settings),
        max_upload_bytes=settings.max_upload_bytes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: logging, tables, upload directory, capability clients."""
    _setup_loguru()
    init_db()
    app.state.pipeline = build_pipeline()
    logger.info(
        f"voxnote backend started {settings.transcription_engine=} {settings.enrichment_engine=}"
    )
    yield
    logger.info("voxnote backend shutdown")


app = FastAPI(
    title="voxnote",
    description="Audio transcription, enrichment and history API",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)
app.mount(
    settings.public_asset_root,
    StaticFiles(directory=settings.upload_path, check_dir=False),
    name="uploads",
)


@app.exception_handler(VoxnoteError)
async def _voxnote_error_handler(_request: Request, exc: VoxnoteError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.detail}")
    else:
        logger.warning(f"{type(exc).__name__}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.get("/health")
def health() -> dict:
    """Health check."""
    return {"status": "ok"}


def main() -> None:
    """Run uvicorn."""
    _setup_loguru()
    import uvicorn

    uvicorn.run(
        "voxnote.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
