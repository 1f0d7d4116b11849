"""
Fallback strategies for nodes that cannot be emitted natively.

Widgets that are unrecognized, or recognized below the caller's minimum
confidence, are passed through as raw HTML in the target's html widget.
Layout nodes are never degraded here.
"""
import html as html_lib
import logging
from typing import Optional

from pagebuilder.analyzer.styles import to_css
from pagebuilder.models import (
    ComponentHierarchy,
    ComponentType,
    ConversionOptions,
    FallbackStrategy,
    FallbackType,
)

logger = logging.getLogger(__name__)

FALLBACK_SUGGESTIONS = [
    "Review component manually",
    "Adjust in page builder after import",
]

UNRECOGNIZED = "Unrecognized component"


def low_confidence_reason(confidence: float) -> str:
    return f"Low confidence ({confidence:g}%)"


def missing_mapping_reason(component_type: ComponentType) -> str:
    return f"No explicit mapping for {component_type.value}"


def fallback_reason(node: ComponentHierarchy, options: ConversionOptions) -> Optional[str]:
    """
    Why a widget should go through the html widget, or None to emit it natively.

    With `fallbackToHTML` off only unrecognized widgets fall back.
    """
    if node.is_layout:
        return None
    if node.componentType == ComponentType.UNKNOWN:
        return UNRECOGNIZED
    if node.confidence < options.minConfidence and options.fallbackToHTML:
        return low_confidence_reason(node.confidence)
    return None


def needs_manual_review(node: ComponentHierarchy, options: ConversionOptions) -> bool:
    """Native emission of a widget that is below the confidence threshold."""
    return (
        not node.is_layout
        and node.componentType != ComponentType.UNKNOWN
        and node.confidence < options.minConfidence
        and not options.fallbackToHTML
    )


def fallback_html(node: ComponentHierarchy) -> str:
    """Markup carried by an html widget: the original element, else its escaped text."""
    if node.props.html:
        return node.props.html
    return html_lib.escape(node.props.text or "")


def html_widget_strategy(node: ComponentHierarchy, reason: str) -> FallbackStrategy:
    alternative = None if node.componentType == ComponentType.UNKNOWN else node.componentType
    logger.debug(f"{node.id}: html-widget fallback ({reason})")
    return FallbackStrategy(
        nodeId=node.id,
        strategy=FallbackType.HTML_WIDGET,
        reason=reason,
        originalHtml=fallback_html(node),
        suggestions=list(FALLBACK_SUGGESTIONS),
        alternativeType=alternative,
    )


def manual_review_strategy(node: ComponentHierarchy) -> FallbackStrategy:
    logger.debug(f"{node.id}: emitted natively below confidence threshold ({node.confidence:g}%)")
    return FallbackStrategy(
        nodeId=node.id,
        strategy=FallbackType.MANUAL_REVIEW,
        reason=low_confidence_reason(node.confidence),
        originalHtml=fallback_html(node),
        suggestions=list(FALLBACK_SUGGESTIONS),
        alternativeType=node.componentType,
    )


FLATTENED_LAYOUT = "Layout nested below an inner row is flattened into the enclosing column"

FLATTENED_SUGGESTIONS = [
    "Recreate the nested layout with the builder's own row tools",
    "Apply the recorded CSS to the enclosing column",
]


def flattened_layout_strategy(node: ComponentHierarchy) -> FallbackStrategy:
    """A layout node whose children were lifted into the parent column; its own box styling is kept as CSS."""
    logger.debug(f"{node.id}: flattening layout nested below an inner row")
    return FallbackStrategy(
        nodeId=node.id,
        strategy=FallbackType.CUSTOM_CSS,
        reason=FLATTENED_LAYOUT,
        originalHtml=fallback_html(node),
        suggestions=list(FLATTENED_SUGGESTIONS),
        customCss=to_css(node.styles.declared()),
    )
