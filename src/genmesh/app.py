"""FastAPI application factory."""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from genmesh import __version__
from genmesh.api.routes import predictions
from genmesh.core.config import Settings, configure_logging
from genmesh.services.exceptions import GenerationError

logger = structlog.get_logger()

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Configures logging and reports configuration needed for outbound calls that
    is missing. Missing values do not stop startup; affected requests fail with
    a structured 500 instead.
    """
    settings = Settings()  # type: ignore[call-arg]
    configure_logging(settings)

    missing = settings.missing_config()
    if missing:
        logger.warning("config.incomplete", missing=missing)

    logger.info("application.startup", app_env=settings.app_env, version=__version__)

    yield

    logger.info("application.shutdown")


async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Render pipeline errors as ``{body_key: message}`` with the error's status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request.failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content={exc.body_key: exc.message})


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="genmesh",
        description="Generate 3D assets from prompts and images with hosted models",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GenerationError, generation_error_handler)  # type: ignore[arg-type]

    app.include_router(predictions.router)

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Generation form and 3D viewer page."""
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create app instance for uvicorn
app = create_app()
