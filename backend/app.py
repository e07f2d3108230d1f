"""
FastAPI application - CodeMentor DSA analysis API.

Retrieval-augmented analysis of algorithm problems on a local LLM, with a
guided interview mode and rubric-based code evaluation.
"""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from codementor.core.config import Settings
from codementor.core.exceptions import CodeMentorError
from codementor.core.rate_limit import limiter
from codementor.routers import analyze, evaluate, health
from codementor.services.pipeline import RAGPipeline, build_pipeline
from codementor.utils.logging import configure_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# ==================== Lifespan ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the pipeline, load or build the index, and run the session sweep.

    A pipeline already set on app.state (e.g. by tests) is used as is.
    """
    settings: Settings = app.state.settings
    pipeline: Optional[RAGPipeline] = getattr(app.state, "pipeline", None)
    if pipeline is None:
        pipeline = build_pipeline(settings)
        app.state.pipeline = pipeline

    await pipeline.initialize()
    sweeper = asyncio.create_task(pipeline.sessions.run_expiry_loop())

    logger.info(f"CodeMentor API started (allowed origins: {settings.allowed_origins})")
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("CodeMentor API shutting down")


# ==================== Error Handling ====================

async def codementor_error_handler(request: Request, exc: CodeMentorError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "details": exc.details}
    )


# ==================== FastAPI App ====================

def create_app(settings: Optional[Settings] = None, pipeline: Optional[RAGPipeline] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="CodeMentor API",
        description="DSA problem analysis with retrieval-augmented generation on a local LLM",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    if pipeline is not None:
        app.state.pipeline = pipeline

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(CodeMentorError, codementor_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(analyze.router)
    app.include_router(evaluate.router)

    @app.get("/", tags=["Root"], summary="API root")
    async def root():
        return {
            "message": "CodeMentor API",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


# ==================== Run Configuration ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
