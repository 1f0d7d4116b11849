"""Post-conversion validation models"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel


class Severity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class Impact(str, Enum):
    BLOCKING = "blocking"
    DEGRADED = "degraded"
    MINIMAL = "minimal"


class Viewport(BaseModel):
    name: str
    width: int
    height: int


class StyleDiscrepancy(BaseModel):
    selector: str
    property: str
    expected: str
    actual: str
    severity: Severity = Severity.MINOR


class ComparisonMetrics(BaseModel):
    """Per-breakpoint comparison of original vs converted rendering"""
    viewport: str
    similarityScore: float = 0
    pixelDifference: float = 100     # percent of differing pixels
    dimensionMismatch: bool = False


class VisualComparisonResult(BaseModel):
    similarityScore: float = 0
    pixelDifference: float = 100
    metrics: List[ComparisonMetrics] = []
    missingElements: List[str] = []
    extraElements: List[str] = []
    styleDiscrepancies: List[StyleDiscrepancy] = []
    timedOut: bool = False


class AssetStatus(str, Enum):
    REACHABLE = "reachable"
    MISSING = "missing"
    BROKEN = "broken"


class AssetType(str, Enum):
    IMAGE = "image"
    FONT = "font"
    VIDEO = "video"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


class AssetCheck(BaseModel):
    url: str
    assetType: AssetType
    status: AssetStatus
    statusCode: Optional[int] = None
    error: Optional[str] = None


class AssetBucket(BaseModel):
    total: int = 0
    reachable: int = 0
    missing: int = 0
    broken: int = 0


class AssetVerificationResult(BaseModel):
    totalAssets: int = 0
    reachable: List[str] = []
    missing: List[str] = []
    broken: List[str] = []
    assetsByType: Dict[str, AssetBucket] = {}
    compatibilityScore: float = 100
    checks: List[AssetCheck] = []
    timedOut: bool = False

    @property
    def critical_failures(self) -> List[AssetCheck]:
        """Missing or broken stylesheets and fonts break the whole page."""
        return [
            check for check in self.checks
            if check.status != AssetStatus.REACHABLE
            and check.assetType in (AssetType.STYLESHEET, AssetType.FONT)
        ]


class Incompatibility(BaseModel):
    feature: str
    description: str
    impact: Impact
    suggestion: str = ""


class CustomCodeWarning(BaseModel):
    message: str
    critical: bool = False


class CustomCodeDetection(BaseModel):
    hasCustomJS: bool = False
    hasCustomCSS: bool = False
    libraries: List[str] = []
    jsFeatures: List[str] = []
    cssFeatures: List[str] = []
    unsupportedFeatures: List[str] = []
    incompatibilities: List[Incompatibility] = []
    warnings: List[CustomCodeWarning] = []
    compatibilityScore: float = 100
    canBeConverted: bool = True


class ValidationResult(BaseModel):
    isValid: bool = True
    canExport: bool = True
    requiresOverride: bool = False
    overallScore: float = 100
    criticalViolations: int = 0
    errors: List[str] = []
    warnings: List[str] = []
    suggestions: List[str] = []
    visual: Optional[VisualComparisonResult] = None
    assets: Optional[AssetVerificationResult] = None
    customCode: Optional[CustomCodeDetection] = None
