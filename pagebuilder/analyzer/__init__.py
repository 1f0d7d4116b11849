"""Element analysis - DOM walking, style normalization, typography and color extraction"""

from .styles import (
    parse_inline_style,
    extract_styles,
    normalize_color,
    normalize_font_weight,
    parse_px,
    parse_percent,
    to_css,
)
from .element import ElementAnalyzer, get_element_analyzer, analyze_html, analyze_node
from .typography import TypographyExtractor, get_typography_extractor
from .colors import ColorExtractor, get_color_extractor

__all__ = [
    # Styles
    "parse_inline_style",
    "extract_styles",
    "normalize_color",
    "normalize_font_weight",
    "parse_px",
    "parse_percent",
    "to_css",
    # Elements
    "ElementAnalyzer",
    "get_element_analyzer",
    "analyze_html",
    "analyze_node",
    # Typography
    "TypographyExtractor",
    "get_typography_extractor",
    # Colors and spacing
    "ColorExtractor",
    "get_color_extractor",
]
