"""
Typography Extractor - derives a page design system from observed font usage.

The extraction is a fold over per-element observations into an immutable
usage summary, followed by pure derivations (scale, text styles, globals).
"""
import re
import logging
from collections import Counter
from dataclasses import dataclass
from functools import reduce
from typing import Dict, List, Mapping, Optional, Tuple

from pagebuilder.models import (
    AnalyzedElement,
    ComponentType,
    ElementorGlobalFont,
    FontFamily,
    FontUsage,
    GlobalTypographySettings,
    RecognitionResult,
    TextStyle,
    TypeScale,
    TypeScaleSize,
    TypographyStatistics,
    TypographySystem,
)
from .styles import parse_px

logger = logging.getLogger(__name__)

CANONICAL_RATIOS = (1.125, 1.2, 1.25, 1.333, 1.414, 1.5, 1.618)
DEFAULT_BASE_SIZE = 16.0
DEFAULT_RATIO = 1.25
BASE_BAND = (14, 18)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
CAPTION_TAGS = {"figcaption", "small", "caption"}
BODY_TAGS = {"p", "span", "li", "div", "td", "label", "blockquote"}
BODY_TYPES = {
    ComponentType.PARAGRAPH, ComponentType.TEXT, ComponentType.LIST,
    ComponentType.BLOCKQUOTE, ComponentType.LINK,
}
BUTTON_TYPES = {ComponentType.BUTTON, ComponentType.SUBMIT_BUTTON}

GOOGLE_FONTS = (
    "Roboto", "Open Sans", "Lato", "Montserrat", "Roboto Condensed",
    "Source Sans Pro", "Oswald", "Raleway", "PT Sans", "Merriweather",
    "Nunito", "Playfair Display", "Poppins", "Ubuntu", "Roboto Slab",
    "Inter", "Work Sans", "Rubik", "Noto Sans", "Fira Sans",
)

SIZE_BUCKETS = (
    (0.75, "xs"),
    (0.875, "sm"),
    (1.125, "base"),
    (1.25, "lg"),
    (1.5, "xl"),
    (1.875, "2xl"),
    (2.25, "3xl"),
    (3.0, "4xl"),
    (4.0, "5xl"),
)


@dataclass(frozen=True)
class TypographyObservation:
    """Font declarations of one element"""
    tag: str
    role: str            # heading | body | button | caption | other
    family: Optional[str]
    size: Optional[float]
    weight: int
    lineHeight: Optional[str]
    letterSpacing: Optional[str]
    textTransform: Optional[str]
    color: Optional[str]


@dataclass(frozen=True)
class TypographyUsage:
    """Immutable usage summary produced by the fold"""
    families: Tuple[Tuple[str, Tuple[Tuple[str, int], ...], Tuple[Tuple[int, int], ...]], ...] = ()
    sizes: Tuple[Tuple[int, int], ...] = ()
    weights: Tuple[int, ...] = ()
    firstStyles: Tuple[Tuple[str, TypographyObservation], ...] = ()

    def family_roles(self) -> Dict[str, Counter]:
        return {name: Counter(dict(roles)) for name, roles, _ in self.families}

    def family_weights(self) -> Dict[str, Counter]:
        return {name: Counter(dict(weights)) for name, _, weights in self.families}

    def size_counts(self) -> Counter:
        return Counter(dict(self.sizes))

    def first_style(self, key: str) -> Optional[TypographyObservation]:
        return dict(self.firstStyles).get(key)


def normalize_font_family(value: Optional[str]) -> Optional[str]:
    """'"Open Sans", Arial, sans-serif' -> 'Open Sans'"""
    if not value:
        return None
    first = re.sub(r"['\"]", "", value).split(",")[0].strip()
    return first or None


def parse_font_size(value: Optional[str]) -> Optional[float]:
    """Font size in px (rem/em assume a 16px root)."""
    size = parse_px(value, base=DEFAULT_BASE_SIZE)
    return size if size and size > 0 else None


def parse_weight(value: Optional[str]) -> int:
    if value and str(value).isdigit():
        return int(value)
    return 700 if value in ("bold", "bolder") else 400


def role_for(tag: str, component_type: Optional[ComponentType]) -> str:
    if tag in HEADING_TAGS or component_type == ComponentType.HEADING:
        return "heading"
    if component_type in BUTTON_TYPES or tag == "button":
        return "button"
    if tag in CAPTION_TAGS:
        return "caption"
    if component_type in BODY_TYPES or tag in BODY_TAGS:
        return "body"
    return "other"


def size_name(px: float, base: float) -> str:
    ratio = px / base
    for limit, name in SIZE_BUCKETS:
        if ratio <= limit:
            return name
    return "6xl"


def snap_ratio(ratio: float) -> float:
    return min(CANONICAL_RATIOS, key=lambda canonical: abs(canonical - ratio))


def _observe(element: AnalyzedElement, recognition: Optional[RecognitionResult]) -> Optional[TypographyObservation]:
    styles = element.styles
    if not (styles.fontFamily or styles.fontSize):
        return None
    component_type = recognition.componentType if recognition else None
    return TypographyObservation(
        tag=element.tagName,
        role=role_for(element.tagName, component_type),
        family=normalize_font_family(styles.fontFamily),
        size=parse_font_size(styles.fontSize),
        weight=parse_weight(styles.fontWeight),
        lineHeight=styles.lineHeight,
        letterSpacing=styles.letterSpacing,
        textTransform=styles.textTransform,
        color=styles.color,
    )


def _accumulate(usage: TypographyUsage, observation: TypographyObservation) -> TypographyUsage:
    """One fold step: returns a new summary including `observation`."""
    families = list(usage.families)
    if observation.family:
        index = next((i for i, entry in enumerate(families) if entry[0] == observation.family), None)
        roles = Counter(dict(families[index][1])) if index is not None else Counter()
        weights = Counter(dict(families[index][2])) if index is not None else Counter()
        roles[observation.role] += 1
        weights[observation.weight] += 1
        entry = (observation.family, tuple(roles.items()), tuple(sorted(weights.items())))
        if index is None:
            families.append(entry)
        else:
            families[index] = entry

    sizes = usage.size_counts()
    if observation.size:
        sizes[round(observation.size)] += 1

    weights = usage.weights if observation.weight in usage.weights else usage.weights + (observation.weight,)

    first = dict(usage.firstStyles)
    for key in (observation.tag, observation.role):
        first.setdefault(key, observation)

    return TypographyUsage(
        families=tuple(families),
        sizes=tuple(sorted(sizes.items())),
        weights=weights,
        firstStyles=tuple(first.items()),
    )


def summarize(observations: List[TypographyObservation]) -> TypographyUsage:
    return reduce(_accumulate, observations, TypographyUsage())


class TypographyExtractor:
    """Builds a TypographySystem from an analyzed page."""

    def extract(
        self,
        root: AnalyzedElement,
        recognitions: Optional[Mapping[str, RecognitionResult]] = None,
    ) -> TypographySystem:
        recognitions = recognitions or {}
        observations = []
        for element in root.walk():
            observation = _observe(element, recognitions.get(element.path))
            if observation is not None:
                observations.append(observation)
        usage = summarize(observations)

        font_families = self._font_families(usage)
        type_scale = self.type_scale(usage.size_counts())
        text_styles = self._text_styles(usage)
        global_settings = self._global_settings(usage, type_scale, text_styles)
        statistics = self._statistics(usage)
        global_fonts = self._elementor_global_fonts(usage, text_styles, global_settings)

        logger.info(
            f"Typography: {statistics.totalFonts} fonts, {statistics.totalSizes} sizes, "
            f"base={type_scale.base}px ratio={type_scale.ratio} ({statistics.scaleQuality})"
        )
        return TypographySystem(
            fontFamilies=font_families,
            typeScale=type_scale,
            textStyles=text_styles,
            globalSettings=global_settings,
            statistics=statistics,
            elementorGlobalFonts=global_fonts,
        )

    def type_scale(self, size_counts: Mapping[int, int]) -> TypeScale:
        """
        Base = most-used size inside the 14-18px band (16 if none).
        Ratio = average of consecutive ratios from base upward, snapped to a
        canonical scale.
        """
        if not size_counts:
            return TypeScale(base=DEFAULT_BASE_SIZE, ratio=DEFAULT_RATIO, sizes=[])

        in_band = [size for size in size_counts if BASE_BAND[0] <= size <= BASE_BAND[1]]
        if in_band:
            base = float(max(in_band, key=lambda s: (size_counts[s], -abs(s - DEFAULT_BASE_SIZE), -s)))
        else:
            base = DEFAULT_BASE_SIZE

        ratio = self._scale_ratio(sorted(size_counts), base)
        sizes = [
            TypeScaleSize(
                name=size_name(px, base),
                px=float(px),
                rem=round(px / DEFAULT_BASE_SIZE, 2),
                usage=size_counts[px],
            )
            for px in sorted(size_counts)
        ]
        return TypeScale(base=base, ratio=ratio, sizes=sizes)

    def _scale_ratio(self, sizes: List[int], base: float) -> float:
        if len(sizes) < 2:
            return DEFAULT_RATIO
        above = [size for size in sizes if size > base]
        if not above:
            return DEFAULT_RATIO
        steps = [base] + above
        ratios = [steps[i] / steps[i - 1] for i in range(1, len(steps))]
        return snap_ratio(sum(ratios) / len(ratios))

    def _font_families(self, usage: TypographyUsage) -> Dict[str, FontFamily]:
        weights = usage.family_weights()
        families = {}
        for name, roles in usage.family_roles().items():
            families[name] = FontFamily(
                name=name,
                weights=sorted(weights[name]),
                usage=FontUsage(**{role: count for role, count in roles.items()}),
                isGoogleFont=any(google in name for google in GOOGLE_FONTS),
            )
        return families

    def _text_style(self, observation: Optional[TypographyObservation], default_line_height: float) -> TextStyle:
        if observation is None:
            return TextStyle()
        return TextStyle(
            fontFamily=observation.family or "inherit",
            fontSize=observation.size or DEFAULT_BASE_SIZE,
            fontWeight=observation.weight,
            lineHeight=self._line_height(observation, default_line_height),
            letterSpacing=observation.letterSpacing,
            textTransform=observation.textTransform,
            color=observation.color,
            usage=1,
        )

    def _line_height(self, observation: TypographyObservation, default: float) -> float:
        raw = observation.lineHeight
        if not raw or raw == "normal":
            return default
        if raw.endswith("px"):
            px = parse_px(raw)
            size = observation.size or DEFAULT_BASE_SIZE
            return round(px / size, 2) if px else default
        if raw.endswith("%"):
            try:
                return round(float(raw[:-1]) / 100, 2)
            except ValueError:
                return default
        try:
            return float(raw)
        except ValueError:
            return default

    def _text_styles(self, usage: TypographyUsage) -> Dict[str, TextStyle]:
        # Each heading style is the first instance seen for its tag, not a mean
        styles = {tag: self._text_style(usage.first_style(tag), 1.2) for tag in HEADING_TAGS}
        styles["body"] = self._text_style(usage.first_style("body"), 1.5)
        styles["button"] = self._text_style(usage.first_style("button"), 1.5)
        styles["caption"] = self._text_style(usage.first_style("caption"), 1.5)
        styles["link"] = self._text_style(usage.first_style("a"), 1.5)
        return styles

    def _most_used(self, usage: TypographyUsage, role: Optional[str] = None) -> Optional[str]:
        ranked = [
            (roles[role] if role else sum(roles.values()), name)
            for name, roles in usage.family_roles().items()
        ]
        ranked = [entry for entry in ranked if entry[0] > 0]
        if not ranked:
            return None
        # Highest count wins, first-seen order breaks ties
        return max(ranked, key=lambda entry: entry[0])[1]

    def _global_settings(
        self, usage: TypographyUsage, scale: TypeScale, styles: Dict[str, TextStyle]
    ) -> GlobalTypographySettings:
        base_family = self._most_used(usage, "body") or self._most_used(usage) or "sans-serif"
        body = styles["body"]
        return GlobalTypographySettings(
            baseFontFamily=base_family,
            baseFontSize=scale.base,
            baseLineHeight=body.lineHeight if body.usage else 1.5,
            baseColor=body.color or "#000000",
            headingFontFamily=self._most_used(usage, "heading") or base_family,
            headingFontWeight=700,
            headingLineHeight=1.2,
        )

    def _statistics(self, usage: TypographyUsage) -> TypographyStatistics:
        total_fonts = len(usage.families)
        total_sizes = len(usage.sizes)
        if total_sizes <= 8 and total_fonts <= 2:
            quality = "excellent"
        elif total_sizes <= 12 and total_fonts <= 3:
            quality = "good"
        elif total_sizes <= 16 and total_fonts <= 4:
            quality = "fair"
        else:
            quality = "poor"
        return TypographyStatistics(
            totalFonts=total_fonts,
            totalSizes=total_sizes,
            totalWeights=len(usage.weights),
            hasConsistentScale=5 <= total_sizes <= 10,
            scaleQuality=quality,
        )

    def _elementor_global_fonts(
        self,
        usage: TypographyUsage,
        styles: Dict[str, TextStyle],
        settings: GlobalTypographySettings,
    ) -> List[ElementorGlobalFont]:
        fonts = [
            ElementorGlobalFont(
                id="primary",
                title="Primary",
                typography_font_family=settings.baseFontFamily,
                typography_font_weight="400",
                typography_font_size={"unit": "px", "size": settings.baseFontSize},
                typography_line_height={"unit": "em", "size": settings.baseLineHeight},
            ),
            ElementorGlobalFont(
                id="secondary",
                title="Secondary",
                typography_font_family=settings.headingFontFamily,
                typography_font_weight=str(settings.headingFontWeight),
                typography_font_size={"unit": "px", "size": 24},
                typography_line_height={"unit": "em", "size": settings.headingLineHeight},
            ),
        ]
        for tag in ("h1", "h2", "h3"):
            if usage.first_style(tag) is None:
                continue
            style = styles[tag]
            fonts.append(ElementorGlobalFont(
                id=tag,
                title=tag.upper(),
                typography_font_family=style.fontFamily,
                typography_font_weight=str(style.fontWeight),
                typography_font_size={"unit": "px", "size": style.fontSize},
                typography_line_height={"unit": "em", "size": style.lineHeight},
            ))
        return fonts


_extractor = None


def get_typography_extractor() -> TypographyExtractor:
    global _extractor
    if _extractor is None:
        _extractor = TypographyExtractor()
    return _extractor
