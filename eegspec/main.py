"""
EEG Spectrogram Service - FastAPI application.

create_app() wires the handle cache, compute pool and pipeline into the
WebSocket and health routes. run_server() serves it with uvicorn.
"""

import platform
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from eegspec import __version__
from eegspec.api.health import router as health_router
from eegspec.common.logging import get_logger
from eegspec.core.config import get_settings
from eegspec.core.monitoring import set_app_info
from eegspec.modules.spectrogram.pipelines import FileSpectrogramPipeline
from eegspec.services.compute_pool import ComputePool
from eegspec.services.ws_server import router as ws_router

logger = get_logger(__name__)


def create_app(
    pipeline: Optional[FileSpectrogramPipeline] = None,
    compute_pool: Optional[ComputePool] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        pipeline: Spectrogram pipeline (default: EDF reader + process-wide cache)
        compute_pool: Worker pool (default: sized from settings)
    """
    pipeline = pipeline or FileSpectrogramPipeline()
    compute_pool = compute_pool or ComputePool.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        set_app_info(__version__, "server", platform.python_version())
        logger.info("Spectrogram service started", data={
            "host": settings.host,
            "port": settings.port,
            "workers": compute_pool.workers,
            "queue_size": compute_pool.queue_size,
            "max_open_files": pipeline.cache.capacity,
        })
        yield
        compute_pool.shutdown()
        pipeline.cache.close_all()
        logger.info("Spectrogram service stopped")

    app = FastAPI(
        title="EEG Spectrogram Service",
        description="Montage-group spectrograms over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.compute_pool = compute_pool

    app.include_router(health_router)
    app.include_router(ws_router)
    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )
