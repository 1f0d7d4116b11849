"""
Element Analyzer - builds AnalyzedElement trees from a DOM with computed styles.

Two input shapes are accepted:
- HTML whose inline `style` attributes carry the computed styles (parsed with
  BeautifulSoup + lxml). Responsive and state variants ride along in
  `data-<breakpoint>-style` / `data-<state>-style` attributes.
- The serialized element tree produced by upstream extraction:
  {tag, id, text, attributes, styles: {desktop, tablet, mobile, hover, ...},
   bounds: {desktop: {x, y, width, height}}, children}
"""
import re
import html as html_lib
import logging
from typing import Dict, Any, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from pagebuilder.errors import MalformedInputError
from pagebuilder.models import (
    AnalyzedElement,
    ElementContext,
    Geometry,
    ResponsiveStyles,
    StateStyles,
)
from .styles import extract_styles, parse_inline_style

logger = logging.getLogger(__name__)

# Never part of the visual tree
SKIPPED_TAGS = {"script", "style", "noscript", "template", "head", "meta", "link", "title", "base"}

# Analyzed as a single leaf, their internals are not components
OPAQUE_TAGS = {"svg", "canvas", "iframe", "video", "audio", "picture", "select", "math"}

BREAKPOINTS = ("desktop", "laptop", "tablet", "mobile")
STATES = ("normal", "hover", "focus", "active", "before", "after")

HERO_KEYWORDS = ("hero", "banner", "jumbotron")
CARD_KEYWORDS = ("card", "box")


def _class_parts(classes: List[str]) -> List[str]:
    parts = []
    for cls in classes:
        parts.extend(p for p in re.split(r"[-_]", cls.lower()) if p)
    return parts


def child_context(parent: ElementContext, parent_tag: str, parent_classes: List[str]) -> ElementContext:
    """Context of a child, given its parent's context and the parent element itself."""
    parts = _class_parts(parent_classes)
    return ElementContext(
        insideHero=parent.insideHero or any(k in parts for k in HERO_KEYWORDS),
        insideForm=parent.insideForm or parent_tag == "form",
        insideCard=parent.insideCard or any(k in parts for k in CARD_KEYWORDS),
        insideNav=parent.insideNav or parent_tag == "nav",
        insideHeader=parent.insideHeader or parent_tag == "header",
        insideFooter=parent.insideFooter or parent_tag == "footer",
        insideSection=parent.insideSection or parent_tag == "section",
        depth=parent.depth + 1,
    )


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class ElementAnalyzer:
    """
    Walks a DOM and produces an immutable AnalyzedElement tree.

    Paths are dotted child indexes from the root ("0", "0.0", "0.1", ...).
    """

    def analyze_html(self, html: str) -> AnalyzedElement:
        """
        Parse HTML and analyze its root.

        The root is <body> when the document declares one, the single
        top-level element of a fragment, or lxml's implied body when a
        fragment has several top-level elements.
        """
        if html is None or not str(html).strip():
            raise MalformedInputError("Cannot analyze an empty document")

        soup = BeautifulSoup(html, "lxml")
        body = soup.body
        if body is None:
            raise MalformedInputError("Document has no renderable body")

        if re.search(r"<body[\s>]", html, re.IGNORECASE):
            root = body
        else:
            top_level = self._element_children(body)
            if not top_level:
                raise MalformedInputError("Document contains no elements")
            root = top_level[0] if len(top_level) == 1 else body

        element = self._analyze_tag(root, "0", ElementContext())
        logger.info(f"Analyzed {sum(1 for _ in element.walk())} elements (root <{element.tagName}>)")
        return element

    def analyze_node(self, node: Optional[Dict[str, Any]]) -> AnalyzedElement:
        """Analyze a serialized element tree (see module docstring for the shape)."""
        if not node or not isinstance(node, dict):
            raise MalformedInputError("Root node is missing")
        if not (node.get("tag") or node.get("tagName")):
            raise MalformedInputError("Root node has no tag name")

        element = self._analyze_dict(node, "0", ElementContext())
        logger.info(f"Analyzed {sum(1 for _ in element.walk())} elements from DOM snapshot")
        return element

    # -- HTML ---------------------------------------------------------------

    def _element_children(self, tag: Tag) -> List[Tag]:
        return [
            child for child in tag.children
            if isinstance(child, Tag) and child.name and child.name.lower() not in SKIPPED_TAGS
        ]

    def _analyze_tag(self, tag: Tag, path: str, context: ElementContext) -> AnalyzedElement:
        tag_name = tag.name.lower()
        classes = list(tag.get("class") or [])
        attributes = {
            name: " ".join(value) if isinstance(value, list) else str(value)
            for name, value in tag.attrs.items()
        }

        styles = extract_styles(parse_inline_style(attributes.get("style")))
        responsive, states = self._variants_from_attributes(attributes)

        children: List[AnalyzedElement] = []
        if tag_name not in OPAQUE_TAGS:
            nested = child_context(context, tag_name, classes)
            for index, child in enumerate(self._element_children(tag)):
                children.append(self._analyze_tag(child, f"{path}.{index}", nested))

        return AnalyzedElement(
            path=path,
            tagName=tag_name,
            id=attributes.get("id") or None,
            classes=classes,
            attributes=attributes,
            textContent=_collapse(tag.get_text(" ")),
            html=str(tag),
            styles=styles,
            responsiveStyles=responsive,
            stateStyles=states,
            context=context,
            geometry=self._geometry_from_attributes(attributes),
            children=children,
        )

    def _variants_from_attributes(
        self, attributes: Dict[str, str]
    ) -> Tuple[Optional[ResponsiveStyles], Optional[StateStyles]]:
        breakpoints = {
            name: extract_styles(parse_inline_style(attributes[f"data-{name}-style"]))
            for name in BREAKPOINTS
            if attributes.get(f"data-{name}-style")
        }
        states = {
            name: extract_styles(parse_inline_style(attributes[f"data-{name}-style"]))
            for name in STATES
            if attributes.get(f"data-{name}-style")
        }
        return (
            ResponsiveStyles(**breakpoints) if breakpoints else None,
            StateStyles(**states) if states else None,
        )

    def _geometry_from_attributes(self, attributes: Dict[str, str]) -> Geometry:
        bounds = {}
        for key in ("x", "y", "width", "height"):
            raw = attributes.get(f"data-{key}")
            if raw is None:
                continue
            try:
                bounds[key] = float(raw)
            except ValueError:
                logger.debug(f"Ignoring non-numeric data-{key}={raw!r}")
        return Geometry(**bounds)

    # -- Serialized DOM -----------------------------------------------------

    def _analyze_dict(self, node: Dict[str, Any], path: str, context: ElementContext) -> AnalyzedElement:
        tag_name = str(node.get("tag") or node.get("tagName") or "div").lower()
        attributes = {k: str(v) for k, v in (node.get("attributes") or {}).items()}
        if node.get("id") and "id" not in attributes:
            attributes["id"] = str(node["id"])

        classes = node.get("classes")
        if classes is None:
            classes = attributes.get("class", "").split()
        classes = list(classes)

        raw_styles = node.get("styles") or {}
        viewport_keyed = any(key in raw_styles for key in BREAKPOINTS + STATES)
        base = raw_styles.get("desktop", {}) if viewport_keyed else raw_styles
        styles = extract_styles(base)

        responsive = None
        states = None
        if viewport_keyed:
            breakpoints = {
                name: extract_styles(raw_styles[name])
                for name in BREAKPOINTS
                if raw_styles.get(name)
            }
            custom = {
                name: extract_styles(value)
                for name, value in (raw_styles.get("custom") or {}).items()
            }
            responsive = ResponsiveStyles(**breakpoints, custom=custom) if breakpoints or custom else None
            state_values = {name: extract_styles(raw_styles[name]) for name in STATES if raw_styles.get(name)}
            states = StateStyles(**state_values) if state_values else None

        bounds = node.get("bounds") or {}
        bounds = bounds.get("desktop", bounds) if isinstance(bounds, dict) else {}
        geometry = Geometry(**{k: float(v) for k, v in bounds.items() if k in ("x", "y", "width", "height")})

        children: List[AnalyzedElement] = []
        if tag_name not in OPAQUE_TAGS:
            nested = child_context(context, tag_name, classes)
            for index, child in enumerate(node.get("children") or []):
                if not isinstance(child, dict):
                    raise MalformedInputError(f"Child {index} of node {path} is not an object")
                child_tag = str(child.get("tag") or child.get("tagName") or "").lower()
                if child_tag in SKIPPED_TAGS:
                    continue
                children.append(self._analyze_dict(child, f"{path}.{len(children)}", nested))

        own_text = _collapse(str(node.get("text") or ""))
        child_text = " ".join(c.textContent for c in children if c.textContent)
        text = own_text if not child_text else _collapse(f"{own_text} {child_text}")

        return AnalyzedElement(
            path=path,
            tagName=tag_name,
            id=attributes.get("id") or None,
            classes=classes,
            attributes=attributes,
            textContent=text,
            html=node.get("html") or self._render_markup(tag_name, attributes, own_text, children),
            styles=styles,
            responsiveStyles=responsive,
            stateStyles=states,
            context=context,
            geometry=geometry,
            children=children,
        )

    def _render_markup(
        self, tag: str, attributes: Dict[str, str], text: str, children: List[AnalyzedElement]
    ) -> str:
        attrs = "".join(
            f' {name}="{html_lib.escape(value, quote=True)}"' for name, value in attributes.items()
        )
        inner = html_lib.escape(text) + "".join(child.html for child in children)
        if tag in ("img", "br", "hr", "input", "source", "meta", "link"):
            return f"<{tag}{attrs}>"
        return f"<{tag}{attrs}>{inner}</{tag}>"


_analyzer = None


def get_element_analyzer() -> ElementAnalyzer:
    global _analyzer
    if _analyzer is None:
        _analyzer = ElementAnalyzer()
    return _analyzer


def analyze_html(html: str) -> AnalyzedElement:
    return get_element_analyzer().analyze_html(html)


def analyze_node(node: Dict[str, Any]) -> AnalyzedElement:
    return get_element_analyzer().analyze_node(node)
