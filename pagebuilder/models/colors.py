"""Color palette and spacing design-token models"""
from typing import List, Optional
from pydantic import BaseModel


class ColorContext(BaseModel):
    """Where a color is used"""
    type: str                # text | background | border | button | link
    components: List[str] = []
    count: int = 0


class ColorDefinition(BaseModel):
    hex: str
    hue: int = 0
    saturation: int = 0
    lightness: int = 0
    count: int = 0
    usage: float = 0         # percent of all color declarations
    contexts: List[ColorContext] = []


class ColorStatistics(BaseModel):
    totalColors: int = 0
    uniqueColors: int = 0
    mostUsedColor: Optional[str] = None
    dominantHue: Optional[str] = None
    colorScheme: str = "monochromatic"   # monochromatic | analogous | complementary | diverse


class SpacingToken(BaseModel):
    """A named step of the spacing scale"""
    name: str                # 2xs, xs, sm, md, lg, xl, 2xl, 3xl, 4xl
    px: float
    usage: int = 0


class SpacingScale(BaseModel):
    baseUnit: float = 8
    tokens: List[SpacingToken] = []


class ElementorGlobalColor(BaseModel):
    """Entry of Elementor's system or custom color list (`_id` in the export)"""
    id: str
    title: str
    color: str


class ColorSystem(BaseModel):
    primary: List[ColorDefinition] = []
    secondary: List[ColorDefinition] = []
    accent: List[ColorDefinition] = []
    neutral: List[ColorDefinition] = []
    spacing: SpacingScale = SpacingScale()
    statistics: ColorStatistics = ColorStatistics()
    elementorGlobalColors: List[ElementorGlobalColor] = []
    elementorCustomColors: List[ElementorGlobalColor] = []
