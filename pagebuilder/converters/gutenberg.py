"""
Gutenberg converter.

Blocks are built as dicts shaped like WordPress' own parse_blocks() output
(blockName, attrs, innerBlocks, innerContent) and serialized to the
comment-delimited block grammar.
"""
import html as html_lib
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from pagebuilder.config import settings
from pagebuilder.errors import MalformedInputError
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, px_string
from .types import GutenbergBlock
from .values import video_provider

logger = logging.getLogger(__name__)

CORE_PREFIX = "core/"
INLINE_STYLE = "_inlineStyle"

BLOCK_MARKER = re.compile(
    r"<!--\s+(?P<closer>/)?wp:(?P<name>[a-z][a-z0-9_-]*(?:/[a-z][a-z0-9_-]*)?)\s+"
    r"(?:(?P<attrs>\{.*?\})\s+)?(?P<void>/)?-->",
    re.DOTALL,
)


def _typography_styles() -> Dict[str, Any]:
    return {
        "color": "style.color.text",
        "backgroundColor": "style.color.background",
        "fontSize": Transform("style.typography.fontSize", px_string),
        "fontWeight": "style.typography.fontWeight",
        "lineHeight": "style.typography.lineHeight",
        "letterSpacing": "style.typography.letterSpacing",
        "textTransform": "style.typography.textTransform",
        "fontStyle": "style.typography.fontStyle",
        "textDecoration": "style.typography.textDecoration",
    }


SPACING_STYLES = {
    f"{box}{side}": Transform(f"style.spacing.{box}.{side.lower()}", px_string)
    for box in ("padding", "margin")
    for side in ("Top", "Right", "Bottom", "Left")
}

BLOCK_STYLES = {
    **_typography_styles(),
    **SPACING_STYLES,
    "borderRadius": Transform("style.border.radius", px_string),
    "borderWidth": Transform("style.border.width", px_string),
    "borderColor": "style.border.color",
    "borderStyle": "style.border.style",
}

LAYOUT_STYLES = {
    "backgroundColor": "style.color.background",
    "color": "style.color.text",
    "backgroundImage": Transform("style.background.backgroundImage", lambda url: {"url": url}),
    "minHeight": Transform("style.dimensions.minHeight", px_string),
    "borderRadius": Transform("style.border.radius", px_string),
    **SPACING_STYLES,
}

TEXT_ALIGN = {"textAlign": "textAlign"}

PARAGRAPH = PropertyMapping("core/paragraph", styles={"textAlign": "align"})
LIST = PropertyMapping("core/list", properties={"ordered": "ordered"})
GALLERY = PropertyMapping("core/gallery", defaults={"linkTo": "none"})


# Elements allowed inside <p>; anything else is unwrapped or reduced to text
PHRASING_TAGS = frozenset({
    "a", "span", "strong", "em", "b", "i", "u", "s", "small", "label", "cite", "abbr",
    "time", "sup", "sub", "mark", "code", "br", "q", "kbd", "var", "img",
})


def _outer_element(markup: str):
    soup = BeautifulSoup(markup or "", "lxml")
    body = soup.body
    if body is None:
        return None, None
    return body, next((child for child in body.children if getattr(child, "name", None)), None)


def paragraph_body(markup: Optional[str], text: Optional[str]) -> str:
    """
    Phrasing content for a core/paragraph.

    Inline sources (a, span, ...) keep their own element; block sources
    (div, li, headings) contribute their children. Text is escaped instead
    whenever the result would still nest a block element inside <p>.
    """
    fallback = html_lib.escape(text or "")
    _, first = _outer_element(markup) if markup else (None, None)
    if first is None:
        return fallback
    if first.name in PHRASING_TAGS:
        candidate, descendants = str(first), [first, *first.find_all(True)]
    else:
        candidate, descendants = first.decode_contents().strip(), first.find_all(True)
    if any(element.name not in PHRASING_TAGS for element in descendants):
        return fallback
    return candidate


def _attr(value: Optional[str]) -> str:
    return html_lib.escape(value or "", quote=True)


def _style_attr(css: Optional[str]) -> str:
    return f' style="{_attr(css)}"' if css else ""


def block_name(marker: str) -> str:
    """Marker name to full block name: "heading" -> "core/heading"."""
    return marker if "/" in marker else f"{CORE_PREFIX}{marker}"


def marker_name(name: str) -> str:
    return name[len(CORE_PREFIX):] if name.startswith(CORE_PREFIX) else name


def serialize_attrs(attrs: Dict[str, Any]) -> str:
    text = json.dumps(attrs, separators=(",", ":"), ensure_ascii=False)
    # Same escapes WordPress applies so attributes never close the comment
    return (
        text.replace("--", "\\u002d\\u002d")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def serialize_block(block: GutenbergBlock) -> str:
    name = marker_name(block["blockName"])
    attrs = block.get("attrs") or {}
    attr_text = f" {serialize_attrs(attrs)}" if attrs else ""
    inner_content = block.get("innerContent") or []
    if not inner_content:
        return f"<!-- wp:{name}{attr_text} /-->"

    children = iter(block.get("innerBlocks") or [])
    parts = []
    for piece in inner_content:
        if piece is None:
            parts.append(f"\n{serialize_block(next(children))}\n")
        else:
            parts.append(piece)
    return f"<!-- wp:{name}{attr_text} -->\n{''.join(parts)}\n<!-- /wp:{name} -->"


def serialize_blocks(blocks: List[GutenbergBlock]) -> str:
    return "\n\n".join(serialize_block(block) for block in blocks)


def parse_block_markers(content: str) -> List[GutenbergBlock]:
    """
    Re-read block boundaries from serialized content.

    Returns the block tree with full block names, parsed attrs, innerHTML
    (the raw text between the markers) and innerBlocks. Raises
    MalformedInputError on unbalanced markers.
    """
    blocks: List[GutenbergBlock] = []
    stack: List[Tuple[GutenbergBlock, int]] = []

    for match in BLOCK_MARKER.finditer(content or ""):
        name = block_name(match.group("name"))
        if match.group("closer"):
            if not stack or stack[-1][0]["blockName"] != name:
                raise MalformedInputError(f"Unexpected closing marker for {name} at offset {match.start()}")
            block, start = stack.pop()
            block["innerHTML"] = content[start:match.start()].strip()
            (stack[-1][0]["innerBlocks"] if stack else blocks).append(block)
            continue

        raw_attrs = match.group("attrs")
        try:
            attrs = json.loads(raw_attrs) if raw_attrs else {}
        except ValueError as e:
            raise MalformedInputError(f"Invalid attributes for {name}: {e}") from e
        block = GutenbergBlock(blockName=name, attrs=attrs, innerHTML="", innerBlocks=[])
        if match.group("void"):
            (stack[-1][0]["innerBlocks"] if stack else blocks).append(block)
        else:
            stack.append((block, match.end()))

    if stack:
        raise MalformedInputError(f"Unclosed block {stack[-1][0]['blockName']}")
    return blocks


class GutenbergConverter(BaseConverter):
    builder = BuilderType.GUTENBERG
    custom_css_key = INLINE_STYLE
    style_map = BLOCK_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("core/html", properties={"html": "content"}, defaults={"content": ""})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "core/heading",
            properties={"level": "level"},
            defaults={"level": 2},
            required=("level",),
            styles=TEXT_ALIGN,
        ),
        ComponentType.PARAGRAPH: PARAGRAPH,
        ComponentType.TEXT: PARAGRAPH,
        ComponentType.LINK: PARAGRAPH,
        ComponentType.IMAGE: PropertyMapping(
            "core/image",
            properties={"src": "url", "alt": "alt", "href": "href"},
            defaults={"url": "", "sizeSlug": "full"},
            required=("url",),
        ),
        ComponentType.VIDEO: PropertyMapping("core/video", properties={"src": "src", "poster": "poster"}),
        ComponentType.LIST: LIST,
        ComponentType.MENU: LIST,
        ComponentType.BLOCKQUOTE: PropertyMapping("core/quote", properties={"citation": "citation"}),
        ComponentType.TESTIMONIAL: PropertyMapping("core/quote", properties={"citation": "citation"}),
        ComponentType.CODE_BLOCK: PropertyMapping("core/code"),
        ComponentType.BUTTON: PropertyMapping("core/button", properties={"href": "url", "text": "text"}),
        ComponentType.SUBMIT_BUTTON: PropertyMapping("core/button", properties={"text": "text"}),
        ComponentType.TABLE: PropertyMapping("core/table", defaults={"hasFixedLayout": False}),
        ComponentType.DIVIDER: PropertyMapping("core/separator", styles={"borderColor": "style.color.background"}),
        ComponentType.SPACER: PropertyMapping(
            "core/spacer",
            defaults={"height": "50px"},
            styles={"height": Transform("height", px_string)},
        ),
        ComponentType.GALLERY: GALLERY,
        ComponentType.CAROUSEL: GALLERY,
        ComponentType.SLIDER: GALLERY,
        ComponentType.SEARCH_BAR: PropertyMapping(
            "core/search",
            properties={"placeholder": "placeholder"},
            defaults={"label": "Search", "buttonText": "Search"},
        ),
        ComponentType.ACCORDION: PropertyMapping("core/details", properties={"items": Transform("summary", lambda items: items[0])}),
    }

    default_arm = frozenset({
        ComponentType.ICON,
        ComponentType.INPUT,
        ComponentType.TEXTAREA,
        ComponentType.SELECT,
        ComponentType.CHECKBOX,
        ComponentType.RADIO,
        ComponentType.FILE_UPLOAD,
        ComponentType.TABS,
        ComponentType.MODAL,
        ComponentType.PRICING_TABLE,
        ComponentType.PROGRESS_BAR,
        ComponentType.COUNTDOWN,
        ComponentType.SOCIAL_SHARE,
        ComponentType.BREADCRUMBS,
        ComponentType.PAGINATION,
        ComponentType.CTA,
        ComponentType.FEATURE_BOX,
        ComponentType.ICON_BOX,
        ComponentType.TEAM_MEMBER,
        ComponentType.GOOGLE_MAPS,
        ComponentType.SOCIAL_FEED,
    })

    @property
    def version(self) -> str:
        return settings.GUTENBERG_WP_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        blocks = [self._block(child, context) for child in hierarchy.children]
        return {"version": self.version, "blocks": blocks}, serialize_blocks(blocks)

    def _next_id(self, context: ConversionContext) -> str:
        return f"block-{context.next_number()}"

    def _block(self, node: ComponentHierarchy, context: ConversionContext, in_row: bool = False) -> GutenbergBlock:
        if node.is_layout:
            return self._layout_block(node, context, in_row)
        return self._widget_block(node, context)

    def _layout_block(self, node: ComponentHierarchy, context: ConversionContext, in_row: bool) -> GutenbergBlock:
        context.map_node(node.id, self._next_id(context))
        attrs = self.style_settings(node, context)
        custom_css = attrs.pop(INLINE_STYLE, None)
        inline = _style_attr(custom_css)

        if node.type == LayoutType.ROW:
            name, opener = "core/columns", f'<div class="wp-block-columns"{inline}>'
        elif node.type == LayoutType.COLUMN and in_row:
            # core/column is only valid directly inside core/columns
            name = "core/column"
            width = f"{node.size:g}%" if node.size is not None else None
            if width:
                attrs["width"] = width
            basis = f"flex-basis:{width}" if width else ""
            styles = ";".join(part for part in (basis, custom_css) if part)
            opener = f'<div class="wp-block-column"{_style_attr(styles)}>'
        else:
            name, opener = "core/group", f'<div class="wp-block-group"{inline}>'
            attrs["layout"] = {"type": "constrained"}

        in_columns = name == "core/columns"
        inner_blocks = [self._block(child, context, in_columns) for child in node.children]
        return GutenbergBlock(
            blockName=name,
            attrs=attrs,
            innerBlocks=inner_blocks,
            innerContent=[opener, *([None] * len(inner_blocks)), "</div>"],
        )

    def _widget_block(self, node: ComponentHierarchy, context: ConversionContext) -> GutenbergBlock:
        plan = self.plan_widget(node, context)
        name = plan.name
        attrs = plan.settings
        if name == "core/video" and video_provider(attrs.get("src", "")) != "hosted":
            url = attrs.pop("src")
            attrs.pop("poster", None)
            provider = video_provider(url)
            name = "core/embed"
            attrs.update({"url": url, "type": "video", "providerNameSlug": provider, "responsive": True})

        # core/button only lives inside core/buttons
        if name == "core/button":
            button = self._leaf(node, context, name, attrs)
            return GutenbergBlock(
                blockName="core/buttons",
                attrs={},
                innerBlocks=[button],
                innerContent=['<div class="wp-block-buttons">', None, "</div>"],
            )
        return self._leaf(node, context, name, attrs)

    def _leaf(self, node: ComponentHierarchy, context: ConversionContext, name: str, attrs: Dict[str, Any]) -> GutenbergBlock:
        context.map_node(node.id, self._next_id(context))
        inline = _style_attr(attrs.pop(INLINE_STYLE, None))
        props = node.props
        inner_blocks: List[GutenbergBlock] = []

        if name == "core/html":
            content = attrs.pop("content")
            inner_content: List[Optional[str]] = [content]
        elif name == "core/heading":
            level = attrs.get("level", 2)
            text = html_lib.escape(props.text or "")
            inner_content = [f'<h{level} class="wp-block-heading"{inline}>{text}</h{level}>']
        elif name == "core/paragraph":
            body = paragraph_body(props.html, props.text)
            inner_content = [f"<p{inline}>{body}</p>"]
        elif name == "core/image":
            alt = f' alt="{_attr(attrs.get("alt"))}"'
            inner_content = [f'<figure class="wp-block-image size-full"{inline}><img src="{_attr(attrs.get("url"))}"{alt}/></figure>']
        elif name == "core/video":
            inner_content = [f'<figure class="wp-block-video"{inline}><video controls src="{_attr(attrs.get("src"))}"></video></figure>']
        elif name == "core/embed":
            provider = attrs["providerNameSlug"]
            inner_content = [
                f'<figure class="wp-block-embed is-type-video is-provider-{provider} wp-block-embed-{provider}">'
                f'<div class="wp-block-embed__wrapper">\n{attrs["url"]}\n</div></figure>'
            ]
        elif name == "core/list":
            tag = "ol" if attrs.get("ordered") else "ul"
            for item in props.items or []:
                inner_blocks.append(GutenbergBlock(
                    blockName="core/list-item",
                    attrs={},
                    innerBlocks=[],
                    innerContent=[f"<li>{html_lib.escape(item)}</li>"],
                ))
            inner_content = [f'<{tag} class="wp-block-list"{inline}>', *([None] * len(inner_blocks)), f"</{tag}>"]
        elif name == "core/quote":
            citation = props.citation
            text = props.text or ""
            if citation and text.endswith(citation):
                text = text[: -len(citation)].strip()
            cite = f"<cite>{html_lib.escape(citation)}</cite>" if citation else ""
            inner_content = [f'<blockquote class="wp-block-quote"{inline}><p>{html_lib.escape(text)}</p>{cite}</blockquote>']
        elif name == "core/code":
            inner_content = [f'<pre class="wp-block-code"{inline}><code>{html_lib.escape(props.text or "")}</code></pre>']
        elif name == "core/button":
            text = html_lib.escape(attrs.pop("text", props.text or ""))
            href = f' href="{_attr(attrs["url"])}"' if attrs.get("url") else ""
            inner_content = [
                f'<div class="wp-block-button"><a class="wp-block-button__link wp-element-button"{href}{inline}>{text}</a></div>'
            ]
        elif name == "core/table":
            rows = "".join(
                "<tr>" + "".join(f"<td>{html_lib.escape(cell)}</td>" for cell in row) + "</tr>"
                for row in props.rows or []
            )
            inner_content = [f'<figure class="wp-block-table"{inline}><table><tbody>{rows}</tbody></table></figure>']
        elif name == "core/separator":
            inner_content = ['<hr class="wp-block-separator has-alpha-channel-opacity"/>']
        elif name == "core/spacer":
            inner_content = [f'<div style="height:{attrs.get("height", "50px")}" aria-hidden="true" class="wp-block-spacer"></div>']
        elif name == "core/gallery":
            for url in getattr(props, "images", None) or []:
                inner_blocks.append(GutenbergBlock(
                    blockName="core/image",
                    attrs={"url": url, "sizeSlug": "large"},
                    innerBlocks=[],
                    innerContent=[f'<figure class="wp-block-image size-large"><img src="{_attr(url)}" alt=""/></figure>'],
                ))
            inner_content = [
                f'<figure class="wp-block-gallery has-nested-images columns-default is-cropped"{inline}>',
                *([None] * len(inner_blocks)),
                "</figure>",
            ]
        elif name == "core/details":
            items = props.items or []
            summary = html_lib.escape(attrs.get("summary", ""))
            body = "".join(f"<p>{html_lib.escape(item)}</p>" for item in items[1:])
            inner_content = [f'<details class="wp-block-details"{inline}><summary>{summary}</summary>{body}</details>']
        else:
            # Dynamic blocks (core/search) are rendered server side
            inner_content = []

        return GutenbergBlock(blockName=name, attrs=attrs, innerBlocks=inner_blocks, innerContent=inner_content)
