"""
Page Builder Conversion Service - FastAPI Application

Recognizes components in an analyzed page and converts them to native
page-builder exports (Elementor, Gutenberg, Beaver Builder, Divi, Bricks,
Oxygen).
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from pagebuilder import __version__
from pagebuilder.config import settings, log_settings
from pagebuilder.api.routes import health, convert
from pagebuilder.errors import MalformedInputError, UnsupportedBuilderError
from pagebuilder.services.conversion_engine import get_conversion_engine
from pagebuilder.validator import PlaywrightRenderer

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: log the effective configuration.
    Shutdown: close the validation browser if one was started.
    """
    logger.info("=" * 60)
    logger.info("Starting Page Builder Conversion Service")
    logger.info("=" * 60)
    log_settings()
    logger.info(f"Service ready on port {settings.SERVICE_PORT}")

    yield

    logger.info("Shutting down...")
    engine = get_conversion_engine()
    renderer = engine.validator.renderer
    if isinstance(renderer, PlaywrightRenderer):
        await renderer.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Page Builder Conversion Service",
    description="""
Converts analyzed web pages into native page-builder exports.

## Pipeline

| Stage | Responsibility |
|-------|---------------|
| Analyzer | Normalized computed styles, context and geometry per element |
| Recognizer | Component type and confidence per element |
| Typography | Font families, type scale and text styles |
| Hierarchy | Section / container / row / column / widget tree |
| Converters | Elementor, Gutenberg, Beaver Builder, Divi, Bricks, Oxygen |
| Validator | Visual comparison, asset reachability, custom code |

## Streaming

`/api/pagebuilder/convert/stream` reports state transitions as Server-Sent Events.
""",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/pagebuilder/docs",
    redoc_url="/api/pagebuilder/redoc",
    openapi_url="/api/pagebuilder/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MalformedInputError)
@app.exception_handler(UnsupportedBuilderError)
async def invalid_input_handler(request: Request, exc: ValueError):
    """Input that cannot be converted is a client error"""
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# API prefix - matches gateway routing: /api/pagebuilder/**
API_PREFIX = "/api/pagebuilder"

app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(convert.router, prefix=API_PREFIX, tags=["Conversion"])


# Root health check (for direct container health checks)
@app.get("/health")
async def root_health():
    """Root health check for container/load balancer"""
    return {"status": "UP", "service": settings.SERVICE_NAME}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Page Builder Conversion Service",
        "version": __version__,
        "port": settings.SERVICE_PORT,
        "endpoints": {
            "health": f"{API_PREFIX}/health",
            "info": f"{API_PREFIX}/info",
            "convert": f"{API_PREFIX}/convert",
            "convert_all": f"{API_PREFIX}/convert/all",
            "convert_stream": f"{API_PREFIX}/convert/stream",
            "docs": f"{API_PREFIX}/docs"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pagebuilder.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=True
    )
