"""Conversion request / result models"""
from enum import Enum
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field, field_validator

from pagebuilder.config import settings
from pagebuilder.models.colors import ColorSystem
from pagebuilder.models.component import ComponentHierarchy, ComponentType, RecognizedComponent
from pagebuilder.models.typography import TypographySystem
from pagebuilder.models.validation import ValidationResult


class BuilderType(str, Enum):
    ELEMENTOR = "elementor"
    GUTENBERG = "gutenberg"
    BEAVER_BUILDER = "beaver-builder"
    DIVI = "divi"
    BRICKS = "bricks"
    OXYGEN = "oxygen"


class FallbackType(str, Enum):
    HTML_WIDGET = "html-widget"
    CUSTOM_CSS = "custom-css"
    IMAGE_REPLACEMENT = "image-replacement"
    MANUAL_REVIEW = "manual-review"


class ConversionStatus(str, Enum):
    PENDING = "pending"
    CONVERTING = "converting"
    VALIDATING = "validating"
    DONE = "done"
    FAILED = "failed"


class ConversionOptions(BaseModel):
    """Options for a single (page, target) conversion"""
    targetBuilder: BuilderType = BuilderType.ELEMENTOR
    preserveCustomCSS: bool = Field(default_factory=lambda: settings.DEFAULT_PRESERVE_CUSTOM_CSS)
    includeResponsive: bool = Field(default_factory=lambda: settings.DEFAULT_INCLUDE_RESPONSIVE)
    includeAnimations: bool = Field(default_factory=lambda: settings.DEFAULT_INCLUDE_ANIMATIONS)
    optimizeAssets: bool = Field(default_factory=lambda: settings.DEFAULT_OPTIMIZE_ASSETS)
    minConfidence: float = Field(default_factory=lambda: settings.DEFAULT_MIN_CONFIDENCE)
    fallbackToHTML: bool = Field(default_factory=lambda: settings.DEFAULT_FALLBACK_TO_HTML)

    # Validation (off unless asked for)
    runValidation: bool = False
    validationTimeout: float = Field(default_factory=lambda: settings.VALIDATION_TIMEOUT_SECONDS)
    originalUrl: Optional[str] = None
    pageTitle: str = "Imported Page"

    @field_validator("minConfidence")
    @classmethod
    def clamp_confidence(cls, value: float) -> float:
        return max(0.0, min(100.0, value))


class FallbackStrategy(BaseModel):
    """Recorded decision to degrade a node instead of emitting it natively"""
    nodeId: str
    strategy: FallbackType
    reason: str
    originalHtml: str = ""
    suggestions: List[str] = []
    alternativeType: Optional[ComponentType] = None
    customCss: str = ""


class ConversionStats(BaseModel):
    totalNodes: int = 0
    nativeWidgets: int = 0
    htmlFallbacks: int = 0
    manualReview: int = 0
    averageConfidence: float = 0
    durationMs: float = 0


class ConversionResult(BaseModel):
    """Everything produced for one (page, target) pair"""
    targetBuilder: BuilderType
    status: ConversionStatus = ConversionStatus.DONE
    exportData: Dict[str, Any] = {}
    serialized: Optional[str] = None    # block / shortcode text for text-based targets
    components: List[RecognizedComponent] = []
    hierarchy: ComponentHierarchy
    typography: Optional[TypographySystem] = None
    colors: Optional[ColorSystem] = None
    fallbacks: List[FallbackStrategy] = []
    nodeMap: Dict[str, str] = {}        # hierarchy node id -> native node id
    validation: Optional[ValidationResult] = None
    stats: ConversionStats = ConversionStats()
    warnings: List[str] = []
    manualReviewNeeded: bool = False
