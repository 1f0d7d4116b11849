"""
Beaver Builder converter.

Beaver Builder nests row -> column-group -> column -> module, but its layout
data is a flat node table. Parent/child links are carried by each node's
`parent` and `position` plus the export's `nodeOrder` adjacency list.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pagebuilder.config import settings
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, number
from .types import BeaverExport, BeaverNode
from .values import heading_tag, icon_classes, map_address, percent_from_text, vimeo_id, youtube_id

logger = logging.getLogger(__name__)


def _length(value: Any) -> Optional[Dict[str, str]]:
    px = number(value)
    return None if px is None else {"length": str(px), "unit": "px"}


def _line_height(value: Any) -> Optional[Dict[str, str]]:
    text = str(value).strip()
    if re.fullmatch(r"[\d.]+", text):
        return {"length": text, "unit": ""}
    return _length(text)


def _dimension(value: Any) -> Optional[str]:
    px = number(value)
    return None if px is None else str(px)


def _radius(value: Any) -> Optional[Dict[str, str]]:
    px = _dimension(value)
    if px is None:
        return None
    return {corner: px for corner in ("top_left", "top_right", "bottom_left", "bottom_right")}


def _embed_code(url: str) -> str:
    if youtube_id(url):
        return f'<iframe src="https://www.youtube.com/embed/{youtube_id(url)}" frameborder="0" allowfullscreen></iframe>'
    if vimeo_id(url):
        return f'<iframe src="https://player.vimeo.com/video/{vimeo_id(url)}" frameborder="0" allowfullscreen></iframe>'
    return f'<video src="{url}" controls></video>'


def _list_items(items: List[str]) -> List[Dict[str, str]]:
    return [{"heading": "", "content": text} for text in items]


def _panels(items: List[str]) -> List[Dict[str, str]]:
    return [{"label": text, "content": ""} for text in items]


def _photos(images: List[str]) -> List[Dict[str, str]]:
    return [{"src": url, "alt": ""} for url in images]


def _box(prefix: str, value_fn=_dimension) -> Dict[str, Transform]:
    return {
        f"{prefix}{side}": Transform(f"{prefix.lower()}_{side.lower()}", value_fn)
        for side in ("Top", "Right", "Bottom", "Left")
    }


TYPOGRAPHY_STYLES = {
    "fontFamily": Transform("typography.font_family", lambda v: v.split(",")[0].strip("'\" ")),
    "fontWeight": "typography.font_weight",
    "fontSize": Transform("typography.font_size", _length),
    "lineHeight": Transform("typography.line_height", _line_height),
    "letterSpacing": Transform("typography.letter_spacing", _length),
    "textAlign": "typography.text_align",
    "textTransform": "typography.text_transform",
    "fontStyle": "typography.font_style",
    "textDecoration": "typography.text_decoration",
}

MODULE_STYLES = {
    **_box("margin"),
    "color": "color",
    "zIndex": "z_index",
    **TYPOGRAPHY_STYLES,
}

LAYOUT_STYLES = {
    **_box("margin"),
    **_box("padding"),
    "backgroundColor": "bg_color",
    "backgroundImage": "bg_image_src",
    "backgroundSize": "bg_size",
    "backgroundPosition": "bg_position",
    "backgroundRepeat": "bg_repeat",
    "minHeight": Transform("min_height", _dimension),
    "color": "text_color",
    "borderStyle": "border.style",
    "borderColor": "border.color",
    "borderRadius": Transform("border.radius", _radius),
}

BUTTON = PropertyMapping(
    "button",
    properties={
        "text": "text",
        "href": "link",
        "target": Transform("link_target", lambda t: t if t == "_blank" else None),
    },
    defaults={"text": "Click Here", "link": "#", "link_target": "_self"},
    required=("text",),
    styles={
        "color": "text_color",
        "backgroundColor": "bg_color",
        "borderRadius": Transform("border.radius", _radius),
        "paddingTop": Transform("padding_top", _dimension),
        "paddingBottom": Transform("padding_bottom", _dimension),
        "textAlign": "align",
    },
)
RICH_TEXT = PropertyMapping("rich-text", properties={"html": "text"}, defaults={"text": ""}, required=("text",))
LIST = PropertyMapping(
    "list",
    properties={"items": Transform("list_items", _list_items), "ordered": Transform("list_type", lambda o: "ol" if o else "ul")},
    defaults={"list_items": [], "list_type": "ul"},
    required=("list_items",),
)
CALLOUT = PropertyMapping(
    "callout",
    properties={"text": "title", "className": Transform("icon", icon_classes)},
    defaults={"title": "", "text": "", "image_type": "icon", "icon": "fas fa-star", "cta_type": "none"},
    required=("title",),
    styles={"color": "title_color"},
)
SLIDESHOW = PropertyMapping("slideshow", properties={"images": Transform("photos", _photos)}, defaults={"source": "urls", "photos": []})


class BeaverBuilderConverter(BaseConverter):
    builder = BuilderType.BEAVER_BUILDER
    custom_css_key = "custom_css"
    animation_key = "animation"
    responsive_suffixes = {"tablet": "_medium", "mobile": "_responsive"}
    style_map = MODULE_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("html", properties={"html": "html"}, defaults={"html": ""})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "heading",
            properties={"text": "heading", "level": Transform("tag", heading_tag), "href": "link"},
            defaults={"heading": "", "tag": "h2"},
            required=("heading",),
        ),
        ComponentType.PARAGRAPH: RICH_TEXT,
        ComponentType.TEXT: RICH_TEXT,
        ComponentType.LINK: RICH_TEXT,
        ComponentType.BLOCKQUOTE: RICH_TEXT,
        ComponentType.CODE_BLOCK: RICH_TEXT,
        ComponentType.BUTTON: BUTTON,
        ComponentType.SUBMIT_BUTTON: BUTTON,
        ComponentType.IMAGE: PropertyMapping(
            "photo",
            properties={"src": "photo_url", "alt": "alt", "href": "link_url"},
            defaults={"photo_source": "url", "photo_url": "", "crop": "", "align": "center"},
            required=("photo_url",),
        ),
        ComponentType.VIDEO: PropertyMapping(
            "video",
            properties={"src": Transform("embed_code", _embed_code)},
            defaults={"video_type": "embed", "embed_code": ""},
            required=("embed_code",),
        ),
        ComponentType.ICON: PropertyMapping(
            "icon",
            properties={"className": Transform("icon", icon_classes)},
            defaults={"icon": "fas fa-star"},
            styles={"color": "color", "fontSize": Transform("size", _dimension)},
        ),
        ComponentType.DIVIDER: PropertyMapping(
            "separator",
            defaults={"style": "solid", "width": "100"},
            styles={"borderColor": "color", "borderStyle": "style", "borderWidth": Transform("height", _dimension)},
        ),
        ComponentType.SPACER: PropertyMapping(
            "separator",
            defaults={"style": "none", "height": "50"},
            styles={"height": Transform("height", _dimension)},
        ),
        ComponentType.LIST: LIST,
        ComponentType.MENU: LIST,
        ComponentType.ACCORDION: PropertyMapping(
            "accordion",
            properties={"items": Transform("items", _panels)},
            defaults={"items": [], "collapse": "1"},
            required=("items",),
        ),
        ComponentType.TABS: PropertyMapping(
            "tabs",
            properties={"items": Transform("items", _panels)},
            defaults={"items": [], "layout": "horizontal"},
            required=("items",),
        ),
        ComponentType.GALLERY: PropertyMapping(
            "gallery",
            properties={"images": Transform("photos", _photos)},
            defaults={"layout": "collage", "photos": []},
        ),
        ComponentType.CAROUSEL: SLIDESHOW,
        ComponentType.SLIDER: SLIDESHOW,
        ComponentType.TESTIMONIAL: PropertyMapping(
            "testimonials",
            properties={"text": Transform("testimonials", lambda text: [{"testimonial": text}])},
            defaults={"layout": "wide", "testimonials": []},
            required=("testimonials",),
        ),
        ComponentType.PROGRESS_BAR: PropertyMapping(
            "numbers",
            properties={"text": Transform("number", percent_from_text)},
            defaults={"layout": "bar", "number_type": "percent", "number": 50, "max_number": 100},
        ),
        ComponentType.CTA: PropertyMapping(
            "cta",
            properties={"text": "title", "href": "btn_link"},
            defaults={"title": "", "layout": "inline", "btn_text": "Click Here", "btn_link": "#"},
            required=("title",),
        ),
        ComponentType.ICON_BOX: CALLOUT,
        ComponentType.FEATURE_BOX: CALLOUT,
        ComponentType.TEAM_MEMBER: PropertyMapping(
            "callout",
            properties={"text": "title", "src": "photo_url"},
            defaults={"title": "", "image_type": "photo", "photo_source": "url", "cta_type": "none"},
            required=("title",),
        ),
        ComponentType.GOOGLE_MAPS: PropertyMapping(
            "map",
            properties={"src": Transform("address", map_address)},
            defaults={"address": "", "height": "400"},
            required=("address",),
        ),
        ComponentType.SEARCH_BAR: PropertyMapping(
            "search",
            properties={"placeholder": "placeholder"},
            defaults={"layout": "input", "placeholder": "Search..."},
        ),
    }

    default_arm = frozenset({
        ComponentType.INPUT,
        ComponentType.TEXTAREA,
        ComponentType.SELECT,
        ComponentType.CHECKBOX,
        ComponentType.RADIO,
        ComponentType.FILE_UPLOAD,
        ComponentType.MODAL,
        ComponentType.PRICING_TABLE,
        ComponentType.COUNTDOWN,
        ComponentType.SOCIAL_SHARE,
        ComponentType.BREADCRUMBS,
        ComponentType.PAGINATION,
        ComponentType.TABLE,
        ComponentType.SOCIAL_FEED,
    })

    @property
    def version(self) -> str:
        return settings.BEAVER_BUILDER_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        export = BeaverExport(version=self.version, nodes={}, nodeOrder={}, rootNodes=[])
        wrapper_column: Optional[str] = None

        for child in hierarchy.children:
            if child.is_layout:
                wrapper_column = None
                self._row(child, context, export)
                continue
            if wrapper_column is None:
                row_id = self._add(export, context, "row", None, {})
                group_id = self._add(export, context, "column-group", row_id, {})
                wrapper_column = self._add(export, context, "column", group_id, {"size": 100})
            self._module(child, context, export, wrapper_column)

        logger.debug(f"beaver-builder: {len(export['nodes'])} nodes, {len(export['rootNodes'])} rows")
        return dict(export), None

    def _add(
        self,
        export: BeaverExport,
        context: ConversionContext,
        node_type: str,
        parent: Optional[str],
        node_settings: Dict[str, Any],
        hierarchy_id: Optional[str] = None,
    ) -> str:
        """Register a node in the table and in its parent's order list."""
        node_id = f"node_{context.next_number()}"
        if hierarchy_id is not None:
            context.map_node(hierarchy_id, node_id)
        siblings = export["nodeOrder"].setdefault(parent, []) if parent else export["rootNodes"]
        export["nodes"][node_id] = BeaverNode(
            node=node_id,
            type=node_type,
            parent=parent,
            position=len(siblings),
            settings=node_settings,
        )
        siblings.append(node_id)
        return node_id

    def _row(self, node: ComponentHierarchy, context: ConversionContext, export: BeaverExport):
        row_id = self._add(export, context, "row", None, self.style_settings(node, context), node.id)
        group_id = self._add(export, context, "column-group", row_id, {})
        self._fill_group(node, context, export, group_id)

    def _fill_group(self, node: ComponentHierarchy, context: ConversionContext, export: BeaverExport, group_id: str):
        if node.type == LayoutType.ROW:
            for column in node.children:
                self._column(column, context, export, group_id)
            return
        column_id = self._add(export, context, "column", group_id, {"size": 100})
        for child in node.children:
            self._child(child, context, export, column_id)

    def _column(self, node: ComponentHierarchy, context: ConversionContext, export: BeaverExport, group_id: str):
        column_settings = {"size": node.size or 100, **self.style_settings(node, context)}
        column_id = self._add(export, context, "column", group_id, column_settings, node.id)
        for child in node.children:
            self._child(child, context, export, column_id)

    def _child(self, node: ComponentHierarchy, context: ConversionContext, export: BeaverExport, column_id: str):
        if not node.is_layout:
            self._module(node, context, export, column_id)
            return
        # Nested layout becomes a column group inside the column
        group_id = self._add(export, context, "column-group", column_id, self.style_settings(node, context), node.id)
        self._fill_group(node, context, export, group_id)

    def _module(self, node: ComponentHierarchy, context: ConversionContext, export: BeaverExport, column_id: str):
        plan = self.plan_widget(node, context)
        self._add(export, context, "module", column_id, {"type": plan.name, **plan.settings}, node.id)

    def animation_value(self, name: str) -> Dict[str, str]:
        style = re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()
        return {"style": style, "delay": "0.0", "duration": "1"}
