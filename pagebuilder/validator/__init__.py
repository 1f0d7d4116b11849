"""Post-conversion validation - visual comparison, asset reachability and custom code"""

from .renderer import Renderer, RenderSnapshot, PlaywrightRenderer, VIEWPORTS
from .visual import (
    VisualComparator,
    compare_images,
    element_differences,
    pixel_difference,
    style_discrepancies,
)
from .assets import AssetCollector, AssetVerifier, check_asset, collect_assets
from .custom_code import CustomCodeDetector, detect_custom_code
from .preview import preview_html
from .validator import ConversionValidator, get_validator

__all__ = [
    # Rendering
    "Renderer",
    "RenderSnapshot",
    "PlaywrightRenderer",
    "VIEWPORTS",
    # Visual
    "VisualComparator",
    "compare_images",
    "element_differences",
    "pixel_difference",
    "style_discrepancies",
    "preview_html",
    # Assets
    "AssetCollector",
    "AssetVerifier",
    "check_asset",
    "collect_assets",
    # Custom code
    "CustomCodeDetector",
    "detect_custom_code",
    # Validator
    "ConversionValidator",
    "get_validator",
]
