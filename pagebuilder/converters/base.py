"""
Shared converter machinery.

Every target converter declares a `PropertyMapping` per ComponentType and a
style map from normalized CSS properties to its own setting keys. The base
class turns a hierarchy node into a WidgetPlan (native or html fallback),
tracks node ids and fallbacks in a ConversionContext, and assembles the
ConversionResult.
"""
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Set, Tuple, Union

from pagebuilder.analyzer.styles import diff_styles, parse_px, to_css
from pagebuilder.models import (
    BuilderType,
    ColorSystem,
    ComponentHierarchy,
    ComponentType,
    ConversionOptions,
    ConversionResult,
    ConversionStats,
    ExtractedStyles,
    FallbackStrategy,
    FallbackType,
    STRUCTURAL_TYPES,
    TypographySystem,
)
from .fallback import (
    fallback_html,
    fallback_reason,
    html_widget_strategy,
    manual_review_strategy,
    missing_mapping_reason,
    needs_manual_review,
)

logger = logging.getLogger(__name__)

# Types that can reach a converter as widgets
WIDGET_TYPES = frozenset(
    t for t in ComponentType if t not in STRUCTURAL_TYPES and t != ComponentType.UNKNOWN
)


class Transform(NamedTuple):
    """Write `fn(value)` at `path`; a None result leaves the setting unset."""
    path: str
    fn: Callable[[Any], Any]


PropertyTarget = Union[str, Transform]


@dataclass(frozen=True)
class PropertyMapping:
    """
    How one component type becomes one native widget/block/module.

    Attributes:
        target: Native widget, block or module name
        properties: IR prop name -> setting path (dotted for nested) or Transform
        defaults: Settings applied before mapped values
        required: Setting paths that must be present after mapping
        styles: Style map entries that replace the converter-wide ones for this target
    """
    target: str
    properties: Mapping[str, PropertyTarget] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    styles: Mapping[str, PropertyTarget] = field(default_factory=dict)


@dataclass
class WidgetPlan:
    name: str
    settings: Dict[str, Any]
    is_html: bool = False


def get_path(data: Mapping[str, Any], path: str) -> Any:
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def set_path(data: Dict[str, Any], path: str, value: Any):
    keys = path.split(".")
    current = data
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


def number(value: Any) -> Optional[Union[int, float]]:
    """CSS length to a bare pixel number (int when whole)."""
    px = parse_px(value)
    if px is None:
        return None
    return int(px) if px.is_integer() else round(px, 2)


def px_string(value: Any) -> Optional[str]:
    px = number(value)
    return None if px is None else f"{px}px"


ANIMATION_KEYWORDS = (
    ("fade", "fadeIn"),
    ("slide", "slideInUp"),
    ("zoom", "zoomIn"),
    ("bounce", "bounceIn"),
    ("rotate", "rotateIn"),
)


def entrance_animation(animation: str) -> str:
    lowered = animation.lower()
    for keyword, name in ANIMATION_KEYWORDS:
        if keyword in lowered:
            return name
    return "fadeIn"


def unmapped_types(converter) -> List[ComponentType]:
    """Widget types with neither an explicit mapping nor a place in the default arm."""
    return [
        t for t in WIDGET_TYPES
        if t not in converter.mappings and t not in converter.default_arm
    ]


class ConversionContext:
    """Mutable state for a single conversion run."""

    def __init__(
        self,
        options: ConversionOptions,
        typography: Optional[TypographySystem],
        first_id: int = 1,
        colors: Optional[ColorSystem] = None,
    ):
        self.options = options
        self.typography = typography
        self.colors = colors
        self.fallbacks: List[FallbackStrategy] = []
        self.warnings: List[str] = []
        self.node_map: Dict[str, str] = {}
        self.native_widgets = 0
        self._native_ids: Set[str] = set()
        self._next_number = first_id

    def next_number(self) -> int:
        """Next value of the per-conversion id counter."""
        number = self._next_number
        self._next_number += 1
        return number

    def map_node(self, node_id: str, native_id: str):
        """Record the native id emitted for a hierarchy node."""
        if native_id in self._native_ids:
            raise ValueError(f"Native id {native_id} emitted twice")
        self._native_ids.add(native_id)
        self.node_map[node_id] = native_id

    def add_fallback(self, strategy: FallbackStrategy):
        self.fallbacks.append(strategy)

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    @property
    def html_fallbacks(self) -> int:
        return sum(1 for f in self.fallbacks if f.strategy == FallbackType.HTML_WIDGET)


class BaseConverter(ABC):
    """
    Base class for target converters.

    Subclasses set `builder`, `html_mapping`, `mappings`, `default_arm` and
    `style_map`, and implement `build()`. Mapping completeness is checked
    when the subclass is defined.
    """

    builder: BuilderType
    html_mapping: PropertyMapping
    mappings: Dict[ComponentType, PropertyMapping] = {}
    default_arm: FrozenSet[ComponentType] = frozenset()
    style_map: Dict[str, PropertyTarget] = {}
    layout_style_map: Dict[str, PropertyTarget] = {}
    custom_css_key: Optional[str] = None
    responsive_suffixes: Dict[str, str] = {}
    animation_key: Optional[str] = None
    first_id = 1

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if getattr(cls, "builder", None) is None:
            return
        missing = unmapped_types(cls)
        if missing:
            names = ", ".join(sorted(t.value for t in missing))
            raise TypeError(f"{cls.__name__} has no mapping or default arm for: {names}")

    @property
    @abstractmethod
    def version(self) -> str:
        """Target builder format version written into the export."""

    def convert(
        self,
        hierarchy: ComponentHierarchy,
        typography: Optional[TypographySystem],
        options: ConversionOptions,
        colors: Optional[ColorSystem] = None,
    ) -> ConversionResult:
        context = ConversionContext(options, typography, self.first_id, colors)
        export, serialized = self.build(hierarchy, context)

        nodes = list(hierarchy.walk())
        covered = set(context.node_map) | {f.nodeId for f in context.fallbacks}
        for node in nodes:
            if node.id not in covered:
                context.add_warning(f"Node {node.id} ({node.componentType.value}) has no native counterpart")

        stats = ConversionStats(
            totalNodes=len(nodes),
            nativeWidgets=context.native_widgets,
            htmlFallbacks=context.html_fallbacks,
            manualReview=sum(1 for node in nodes if node.manualReviewNeeded),
            averageConfidence=round(sum(node.confidence for node in nodes) / len(nodes), 2),
        )
        logger.info(
            f"{self.builder.value}: {stats.totalNodes} nodes, {stats.nativeWidgets} native widgets, "
            f"{stats.htmlFallbacks} html fallbacks"
        )
        return ConversionResult(
            targetBuilder=self.builder,
            exportData=export,
            serialized=serialized,
            hierarchy=hierarchy,
            typography=typography,
            colors=colors,
            fallbacks=context.fallbacks,
            nodeMap=context.node_map,
            stats=stats,
            warnings=context.warnings,
            manualReviewNeeded=stats.manualReview > 0,
        )

    @abstractmethod
    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        """Return (export data, serialized text or None)."""

    # -- Widgets ------------------------------------------------------------

    def plan_widget(self, node: ComponentHierarchy, context: ConversionContext) -> WidgetPlan:
        """Decide native vs html emission for a widget node and build its settings."""
        reason = fallback_reason(node, context.options)
        if reason:
            context.add_fallback(html_widget_strategy(node, reason))
            return self.html_plan(node, context)

        mapping = self.mappings.get(node.componentType)
        if mapping is None:
            context.add_fallback(html_widget_strategy(node, missing_mapping_reason(node.componentType)))
            return self.html_plan(node, context)

        if needs_manual_review(node, context.options):
            context.add_fallback(manual_review_strategy(node))

        settings = self.apply_mapping(mapping, node, context)
        settings.update(self.style_settings(node, context, {**self.style_map, **mapping.styles}))
        context.native_widgets += 1
        return WidgetPlan(mapping.target, settings)

    def html_plan(self, node: ComponentHierarchy, context: ConversionContext) -> WidgetPlan:
        mapping = self.html_mapping
        settings = copy.deepcopy(dict(mapping.defaults))
        for path in mapping.properties.values():
            target = path.path if isinstance(path, Transform) else path
            set_path(settings, target, fallback_html(node))
        return WidgetPlan(mapping.target, settings, is_html=True)

    def apply_mapping(self, mapping: PropertyMapping, node: ComponentHierarchy, context: ConversionContext) -> Dict[str, Any]:
        settings: Dict[str, Any] = {}
        for path, value in mapping.defaults.items():
            if path not in mapping.required:
                set_path(settings, path, copy.deepcopy(value))

        props = node.props.model_dump(exclude_none=True)
        for name, target in mapping.properties.items():
            value = props.get(name)
            if value is None or value == "" or value == [] or value == {}:
                continue
            if isinstance(target, Transform):
                value = target.fn(value)
                if value is None:
                    continue
                set_path(settings, target.path, value)
            else:
                set_path(settings, target, value)

        for path in mapping.required:
            if get_path(settings, path) in (None, ""):
                set_path(settings, path, copy.deepcopy(get_path(mapping.defaults, path)))
                context.add_warning(
                    f"{node.id}: required setting '{path}' missing for {mapping.target}, using default"
                )
        return settings

    # -- Styles -------------------------------------------------------------

    def map_styles(self, styles: ExtractedStyles, style_map: Mapping[str, PropertyTarget]) -> Tuple[Dict[str, Any], Set[str]]:
        """Map declared CSS properties through the style map; returns (settings, consumed props)."""
        settings: Dict[str, Any] = {}
        consumed: Set[str] = set()
        for prop, value in styles.declared().items():
            target = style_map.get(prop)
            if target is None:
                continue
            if isinstance(target, Transform):
                mapped = target.fn(value)
                if mapped is None:
                    continue
                set_path(settings, target.path, mapped)
            else:
                set_path(settings, target, value)
            consumed.add(prop)
        return settings, consumed

    def style_settings(
        self,
        node: ComponentHierarchy,
        context: ConversionContext,
        style_map: Optional[Mapping[str, PropertyTarget]] = None,
    ) -> Dict[str, Any]:
        """Mapped styles plus responsive variants, entrance animation and leftover custom CSS."""
        if style_map is None:
            style_map = self.layout_style_map if node.is_layout else self.style_map
        settings, consumed = self.map_styles(node.styles, style_map)
        options = context.options

        if options.includeResponsive and node.responsiveStyles:
            for breakpoint, suffix in self.responsive_suffixes.items():
                variant = getattr(node.responsiveStyles, breakpoint, None)
                if variant is None:
                    continue
                changed = diff_styles(node.styles, variant)
                mapped, _ = self.map_styles(ExtractedStyles(**changed), style_map)
                self.merge_responsive(settings, mapped, suffix)

        if options.includeAnimations and node.styles.animation and self.animation_key:
            set_path(settings, self.animation_key, self.animation_value(entrance_animation(node.styles.animation)))
            consumed.add("animation")

        if options.preserveCustomCSS and self.custom_css_key:
            leftover = {
                prop: value for prop, value in node.styles.declared().items()
                if prop not in consumed and not self.is_shorthand_of_consumed(prop, consumed)
            }
            if leftover:
                set_path(settings, self.custom_css_key, self.format_custom_css(node, to_css(leftover)))
        return settings

    def merge_responsive(self, settings: Dict[str, Any], mapped: Dict[str, Any], suffix: str):
        """Default: suffix the top-level key of each mapped setting."""
        for key, value in mapped.items():
            settings[f"{key}{suffix}"] = value

    def animation_value(self, name: str) -> Any:
        return name

    def format_custom_css(self, node: ComponentHierarchy, css: str) -> str:
        return css

    @staticmethod
    def is_shorthand_of_consumed(prop: str, consumed: Set[str]) -> bool:
        """`padding` is covered once its longhands were mapped."""
        return any(other != prop and other.startswith(prop) for other in consumed)
