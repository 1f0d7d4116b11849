"""Health check endpoints for container liveness checks and load balancers"""
from fastapi import APIRouter
from pagebuilder.config import settings
from pagebuilder.converters import CONVERTERS, get_converter
from pagebuilder.recognizer import PATTERN_TABLE_VERSION

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "UP", "service": settings.SERVICE_NAME}


@router.get("/info")
async def info():
    """Service info endpoint"""
    from pagebuilder import __version__
    return {
        "service": settings.SERVICE_NAME,
        "version": __version__,
        "description": "Page builder conversion - component recognition and multi-target export",
        "targets": {
            builder.value: get_converter(builder).version
            for builder in CONVERTERS
        },
        "patternTableVersion": PATTERN_TABLE_VERSION,
        "defaults": {
            "minConfidence": settings.DEFAULT_MIN_CONFIDENCE,
            "fallbackToHTML": settings.DEFAULT_FALLBACK_TO_HTML,
            "preserveCustomCSS": settings.DEFAULT_PRESERVE_CUSTOM_CSS
        },
        "validation": {
            "timeoutSeconds": settings.VALIDATION_TIMEOUT_SECONDS,
            "maxWorkers": settings.VALIDATION_MAX_WORKERS
        }
    }
