"""Typography / design-system models"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class FontUsage(BaseModel):
    """How often a font family is used, by role"""
    heading: int = 0
    body: int = 0
    button: int = 0
    caption: int = 0
    other: int = 0


class FontFamily(BaseModel):
    name: str
    weights: List[int] = []
    usage: FontUsage = FontUsage()
    isGoogleFont: bool = False


class TypeScaleSize(BaseModel):
    """A named step of the type scale"""
    name: str        # xs, sm, base, lg, xl, 2xl ... 6xl
    px: float
    rem: float
    usage: int = 0


class TypeScale(BaseModel):
    base: float = 16
    ratio: float = 1.25
    sizes: List[TypeScaleSize] = []


class TextStyle(BaseModel):
    """Representative style of one text role"""
    fontFamily: str = "inherit"
    fontSize: float = 16
    fontWeight: int = 400
    lineHeight: float = 1.5
    letterSpacing: Optional[str] = None
    textTransform: Optional[str] = None
    color: Optional[str] = None
    usage: int = 0


class GlobalTypographySettings(BaseModel):
    baseFontFamily: str = "inherit"
    baseFontSize: float = 16
    baseLineHeight: float = 1.5
    baseColor: str = "#000000"
    headingFontFamily: str = "inherit"
    headingFontWeight: int = 700
    headingLineHeight: float = 1.2


class TypographyStatistics(BaseModel):
    totalFonts: int = 0
    totalSizes: int = 0
    totalWeights: int = 0
    hasConsistentScale: bool = False
    scaleQuality: str = "poor"   # excellent | good | fair | poor


class ElementorGlobalFont(BaseModel):
    """Entry of Elementor's system typography list"""
    id: str
    title: str
    typography_typography: str = "custom"
    typography_font_family: str
    typography_font_size: Dict[str, Any] = {}
    typography_font_weight: str = "400"
    typography_line_height: Dict[str, Any] = {}


class TypographySystem(BaseModel):
    fontFamilies: Dict[str, FontFamily] = {}
    typeScale: TypeScale = TypeScale()
    textStyles: Dict[str, TextStyle] = {}
    globalSettings: GlobalTypographySettings = GlobalTypographySettings()
    statistics: TypographyStatistics = TypographyStatistics()
    elementorGlobalFonts: List[ElementorGlobalFont] = []
