"""Data models for the conversion pipeline"""

from .component import (
    ComponentType,
    LayoutType,
    STRUCTURAL_TYPES,
    ExtractedStyles,
    ResponsiveStyles,
    StateStyles,
    ElementContext,
    Geometry,
    AnalyzedElement,
    RecognitionResult,
    ComponentProps,
    RecognizedComponent,
    ComponentHierarchy,
)
from .typography import (
    FontUsage,
    FontFamily,
    TypeScaleSize,
    TypeScale,
    TextStyle,
    GlobalTypographySettings,
    TypographyStatistics,
    ElementorGlobalFont,
    TypographySystem,
)
from .colors import (
    ColorContext,
    ColorDefinition,
    ColorStatistics,
    SpacingToken,
    SpacingScale,
    ElementorGlobalColor,
    ColorSystem,
)
from .validation import (
    Severity,
    Impact,
    Viewport,
    StyleDiscrepancy,
    ComparisonMetrics,
    VisualComparisonResult,
    AssetStatus,
    AssetType,
    AssetCheck,
    AssetBucket,
    AssetVerificationResult,
    Incompatibility,
    CustomCodeWarning,
    CustomCodeDetection,
    ValidationResult,
)
from .conversion import (
    BuilderType,
    FallbackType,
    ConversionStatus,
    ConversionOptions,
    FallbackStrategy,
    ConversionStats,
    ConversionResult,
)

__all__ = [
    # Components
    "ComponentType",
    "LayoutType",
    "STRUCTURAL_TYPES",
    "ExtractedStyles",
    "ResponsiveStyles",
    "StateStyles",
    "ElementContext",
    "Geometry",
    "AnalyzedElement",
    "RecognitionResult",
    "ComponentProps",
    "RecognizedComponent",
    "ComponentHierarchy",
    # Typography
    "FontUsage",
    "FontFamily",
    "TypeScaleSize",
    "TypeScale",
    "TextStyle",
    "GlobalTypographySettings",
    "TypographyStatistics",
    "ElementorGlobalFont",
    "TypographySystem",
    # Colors and spacing
    "ColorContext",
    "ColorDefinition",
    "ColorStatistics",
    "SpacingToken",
    "SpacingScale",
    "ElementorGlobalColor",
    "ColorSystem",
    # Validation
    "Severity",
    "Impact",
    "Viewport",
    "StyleDiscrepancy",
    "ComparisonMetrics",
    "VisualComparisonResult",
    "AssetStatus",
    "AssetType",
    "AssetCheck",
    "AssetBucket",
    "AssetVerificationResult",
    "Incompatibility",
    "CustomCodeWarning",
    "CustomCodeDetection",
    "ValidationResult",
    # Conversion
    "BuilderType",
    "FallbackType",
    "ConversionStatus",
    "ConversionOptions",
    "FallbackStrategy",
    "ConversionStats",
    "ConversionResult",
]
