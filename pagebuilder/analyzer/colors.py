"""
Color Extractor - derives a color palette and spacing scale from a page.

Like typography extraction this is a fold over per-element observations
into an immutable usage summary, followed by pure derivations (palette
roles, statistics, spacing tokens, Elementor global colors).
"""
import colorsys
import logging
import re
from collections import Counter
from dataclasses import dataclass
from functools import reduce
from typing import Dict, List, Mapping, Optional, Tuple

from pagebuilder.models import (
    AnalyzedElement,
    ColorContext,
    ColorDefinition,
    ColorStatistics,
    ColorSystem,
    ComponentType,
    ElementorGlobalColor,
    RecognitionResult,
    SpacingScale,
    SpacingToken,
)
from .styles import parse_px

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9a-f]{6}")

NAMED_COLORS = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "gray": "#808080",
    "grey": "#808080",
}

BUTTON_TYPES = {ComponentType.BUTTON, ComponentType.SUBMIT_BUTTON}

SPACING_PROPS = (
    "marginTop", "marginRight", "marginBottom", "marginLeft",
    "paddingTop", "paddingRight", "paddingBottom", "paddingLeft",
    "gap",
)

# Upper bound of each spacing step, as a multiple of the base unit
SPACING_BUCKETS = (
    (0.5, "2xs"),
    (1, "xs"),
    (2, "sm"),
    (3, "md"),
    (4, "lg"),
    (6, "xl"),
    (8, "2xl"),
    (12, "3xl"),
)

HUE_NAMES = (
    (30, "red"),
    (60, "orange"),
    (90, "yellow"),
    (150, "green"),
    (210, "cyan"),
    (270, "blue"),
    (330, "purple"),
)


@dataclass(frozen=True)
class ColorObservation:
    """Color and spacing declarations of one element"""
    component: str
    colors: Tuple[Tuple[str, str], ...]    # (hex, context)
    spacing: Tuple[int, ...]


@dataclass(frozen=True)
class ColorUsage:
    """Immutable usage summary produced by the fold"""
    colors: Tuple[Tuple[Tuple[str, str, str], int], ...] = ()    # ((hex, context, component), count)
    spacing: Tuple[Tuple[int, int], ...] = ()

    def color_counts(self) -> Counter:
        counts: Counter = Counter()
        for (hex_value, _, _), count in self.colors:
            counts[hex_value] += count
        return counts

    def contexts(self, hex_value: str) -> List[ColorContext]:
        contexts: Dict[str, ColorContext] = {}
        for (color, context, component), count in self.colors:
            if color != hex_value:
                continue
            entry = contexts.setdefault(context, ColorContext(type=context))
            entry.count += count
            if component not in entry.components:
                entry.components.append(component)
        return list(contexts.values())

    def spacing_counts(self) -> Counter:
        return Counter(dict(self.spacing))


def to_hex(value: Optional[str]) -> Optional[str]:
    """Normalized style color -> #rrggbb; alpha is dropped, keywords and functions are skipped."""
    if not value:
        return None
    lowered = value.strip().lower()
    if lowered in NAMED_COLORS:
        return NAMED_COLORS[lowered]
    if HEX_COLOR.match(lowered):
        return lowered[:7]
    return None


def hsl(hex_value: str) -> Tuple[int, int, int]:
    """Hue in degrees, saturation and lightness in percent."""
    r, g, b = (int(hex_value[i:i + 2], 16) / 255 for i in (1, 3, 5))
    hue, lightness, saturation = colorsys.rgb_to_hls(r, g, b)
    return round(hue * 360) % 360, round(saturation * 100), round(lightness * 100)


def hue_name(hue: float) -> str:
    for limit, name in HUE_NAMES:
        if hue < limit:
            return name
    return "red"


def color_scheme(hues: List[int]) -> str:
    if len(hues) < 2:
        return "monochromatic"
    spread = max(hues) - min(hues)
    if spread < 30:
        return "monochromatic"
    if spread < 60:
        return "analogous"
    if spread <= 300:
        for i, first in enumerate(hues):
            if any(abs(abs(first - second) - 180) < 30 for second in hues[i + 1:]):
                return "complementary"
    return "diverse"


def spacing_name(px: float, base: float) -> str:
    ratio = px / base
    for limit, name in SPACING_BUCKETS:
        if ratio <= limit:
            return name
    return "4xl"


def _observe(element: AnalyzedElement, recognition: Optional[RecognitionResult]) -> Optional[ColorObservation]:
    styles = element.styles
    component_type = recognition.componentType if recognition else None
    is_button = component_type in BUTTON_TYPES

    colors = []
    for value, context in (
        (styles.color, "link" if element.tagName == "a" and not is_button else "text"),
        (styles.backgroundColor, "background"),
        (styles.borderColor, "border"),
    ):
        hex_value = to_hex(value)
        if hex_value:
            colors.append((hex_value, "button" if is_button and context != "border" else context))

    spacing = []
    for prop in SPACING_PROPS:
        px = parse_px(getattr(styles, prop))
        if px and px > 0:
            spacing.append(round(px))

    if not colors and not spacing:
        return None
    return ColorObservation(
        component=component_type.value if component_type else element.tagName,
        colors=tuple(colors),
        spacing=tuple(spacing),
    )


def _accumulate(usage: ColorUsage, observation: ColorObservation) -> ColorUsage:
    """One fold step: returns a new summary including `observation`."""
    colors = Counter(dict(usage.colors))
    for hex_value, context in observation.colors:
        colors[(hex_value, context, observation.component)] += 1

    spacing = usage.spacing_counts()
    for px in observation.spacing:
        spacing[px] += 1

    return ColorUsage(colors=tuple(colors.items()), spacing=tuple(sorted(spacing.items())))


def summarize(observations: List[ColorObservation]) -> ColorUsage:
    return reduce(_accumulate, observations, ColorUsage())


class ColorExtractor:
    """Builds a ColorSystem from an analyzed page."""

    def extract(
        self,
        root: AnalyzedElement,
        recognitions: Optional[Mapping[str, RecognitionResult]] = None,
    ) -> ColorSystem:
        recognitions = recognitions or {}
        observations = []
        for element in root.walk():
            observation = _observe(element, recognitions.get(element.path))
            if observation is not None:
                observations.append(observation)
        usage = summarize(observations)

        definitions = self._definitions(usage)
        primary = [c for c in definitions if c.usage >= 10][:3]
        secondary = [c for c in definitions if 2 <= c.usage < 10][:5]
        # Vibrant colors used sparingly
        accent = [c for c in definitions if c.saturation > 40 and 30 < c.lightness < 70 and c.usage < 10][:3]
        neutral = [c for c in definitions if c.saturation < 20][:5]

        statistics = self._statistics(definitions)
        spacing = self.spacing_scale(usage.spacing_counts())
        system_colors = self._elementor_global_colors(definitions, accent, neutral)
        system_hexes = {color.color for color in system_colors}
        custom_colors = [
            ElementorGlobalColor(id=f"c{color.hex[1:]}", title=color.hex, color=color.hex)
            for color in primary + secondary + accent
            if color.hex not in system_hexes
        ]

        logger.info(
            f"Colors: {statistics.uniqueColors} unique ({statistics.colorScheme}), "
            f"{len(spacing.tokens)} spacing steps on a {spacing.baseUnit:g}px unit"
        )
        return ColorSystem(
            primary=primary,
            secondary=secondary,
            accent=accent,
            neutral=neutral,
            spacing=spacing,
            statistics=statistics,
            elementorGlobalColors=system_colors,
            elementorCustomColors=list({color.id: color for color in custom_colors}.values()),
        )

    def _definitions(self, usage: ColorUsage) -> List[ColorDefinition]:
        """Every color, most used first; first-seen order breaks ties."""
        counts = usage.color_counts()
        total = sum(counts.values())
        definitions = []
        for hex_value, count in counts.items():
            hue, saturation, lightness = hsl(hex_value)
            definitions.append(ColorDefinition(
                hex=hex_value,
                hue=hue,
                saturation=saturation,
                lightness=lightness,
                count=count,
                usage=round(count / total * 100, 2),
                contexts=usage.contexts(hex_value),
            ))
        return sorted(definitions, key=lambda c: -c.count)

    def spacing_scale(self, counts: Mapping[int, int]) -> SpacingScale:
        """
        Base unit = 8 when most spacing values are multiples of 8, else 4 when
        most are multiples of 4, else the smallest value. Each named step
        keeps the most-used value that falls into it.
        """
        if not counts:
            return SpacingScale()

        total = sum(counts.values())
        if sum(n for px, n in counts.items() if px % 8 == 0) * 2 >= total:
            base = 8.0
        elif sum(n for px, n in counts.items() if px % 4 == 0) * 2 >= total:
            base = 4.0
        else:
            base = float(min(counts))

        steps: Dict[str, List[Tuple[int, int]]] = {}
        for px in sorted(counts):
            steps.setdefault(spacing_name(px, base), []).append((px, counts[px]))
        tokens = [
            SpacingToken(
                name=name,
                px=float(max(values, key=lambda entry: (entry[1], -entry[0]))[0]),
                usage=sum(n for _, n in values),
            )
            for name, values in steps.items()
        ]
        return SpacingScale(baseUnit=base, tokens=tokens)

    def _statistics(self, definitions: List[ColorDefinition]) -> ColorStatistics:
        if not definitions:
            return ColorStatistics()
        hues = [color.hue for color in definitions if color.saturation >= 20]
        return ColorStatistics(
            totalColors=sum(color.count for color in definitions),
            uniqueColors=len(definitions),
            mostUsedColor=definitions[0].hex,
            dominantHue=hue_name(sum(hues) / len(hues)) if hues else None,
            colorScheme=color_scheme(hues),
        )

    def _elementor_global_colors(
        self,
        definitions: List[ColorDefinition],
        accent: List[ColorDefinition],
        neutral: List[ColorDefinition],
    ) -> List[ElementorGlobalColor]:
        """
        Elementor's four system colors. Primary and secondary prefer chromatic
        colors by usage, text is the darkest neutral.
        """
        brand = [color for color in definitions if color.saturation >= 20] or definitions
        picks: Dict[str, str] = {}
        if brand:
            picks["primary"] = brand[0].hex
        if len(brand) > 1:
            picks["secondary"] = brand[1].hex
        if neutral:
            picks["text"] = min(neutral, key=lambda c: c.lightness).hex
        spare = [color.hex for color in accent + brand[2:] if color.hex not in picks.values()]
        if spare:
            picks["accent"] = spare[0]
        return [
            ElementorGlobalColor(id=role, title=role.capitalize(), color=picks[role])
            for role in ("primary", "secondary", "text", "accent")
            if role in picks
        ]


_extractor = None


def get_color_extractor() -> ColorExtractor:
    global _extractor
    if _extractor is None:
        _extractor = ColorExtractor()
    return _extractor
