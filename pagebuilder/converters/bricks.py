"""
Bricks converter.

Bricks stores a page as one flat element list. Each element names its
parent (0 for top-level elements) and lists its children's ids.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pagebuilder.config import settings
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, px_string
from .types import BricksElement, BricksExport
from .values import heading_tag, icon_classes, icon_library, map_address, percent_from_text, video_provider, vimeo_id, youtube_id

logger = logging.getLogger(__name__)

SIDES = ("Top", "Right", "Bottom", "Left")


def _color(value: str) -> Dict[str, str]:
    return {"hex": value} if value.startswith("#") else {"rgb": value}


def _box(prefix: str) -> Dict[str, Transform]:
    return {f"{prefix}{side}": Transform(f"_{prefix}.{side.lower()}", px_string) for side in SIDES}


def _radius(value: Any) -> Optional[Dict[str, str]]:
    px = px_string(value)
    return None if px is None else {side.lower(): px for side in SIDES}


ICON_LIBRARIES = {"fa-solid": "fontawesomeSolid", "fa-regular": "fontawesomeRegular", "fa-brands": "fontawesomeBrands"}


def _icon(class_name: str) -> Optional[Dict[str, str]]:
    classes = icon_classes(class_name)
    if not classes:
        return None
    return {"library": ICON_LIBRARIES[icon_library(classes)], "icon": classes}


def _images(images: List[str]) -> Dict[str, Any]:
    return {"images": [{"url": url} for url in images], "size": "full"}


def _bars(text: str) -> Optional[List[Dict[str, Any]]]:
    percent = percent_from_text(text)
    return None if percent is None else [{"title": "", "percentage": percent}]


def _addresses(src: str) -> Optional[List[Dict[str, str]]]:
    address = map_address(src)
    return [{"address": address}] if address else None


def _panels(items: List[str]) -> List[Dict[str, str]]:
    return [{"title": text, "content": ""} for text in items]


TYPOGRAPHY_STYLES = {
    "color": Transform("_typography.color", _color),
    "fontFamily": Transform("_typography.font-family", lambda v: v.split(",")[0].strip("'\" ")),
    "fontSize": Transform("_typography.font-size", px_string),
    "fontWeight": "_typography.font-weight",
    "fontStyle": "_typography.font-style",
    "lineHeight": "_typography.line-height",
    "letterSpacing": Transform("_typography.letter-spacing", px_string),
    "textAlign": "_typography.text-align",
    "textTransform": "_typography.text-transform",
    "textDecoration": "_typography.text-decoration",
}

ELEMENT_STYLES = {
    **_box("margin"),
    **_box("padding"),
    **TYPOGRAPHY_STYLES,
    "backgroundColor": Transform("_background.color", _color),
    "borderRadius": Transform("_border.radius", _radius),
    "borderWidth": Transform("_border.width", _radius),
    "borderStyle": "_border.style",
    "borderColor": Transform("_border.color", _color),
    "width": "_width",
    "maxWidth": "_widthMax",
    "height": "_height",
    "zIndex": "_zIndex",
    "opacity": "_opacity",
}

LAYOUT_STYLES = {
    **ELEMENT_STYLES,
    "backgroundImage": Transform("_background.image", lambda url: {"url": url}),
    "backgroundSize": "_background.size",
    "backgroundPosition": "_background.position",
    "minHeight": "_heightMin",
    "flexDirection": "_direction",
    "justifyContent": "_justifyContent",
    "alignItems": "_alignItems",
    "gap": "_gap",
}

TEXT = PropertyMapping("text", properties={"html": "text"}, defaults={"text": ""}, required=("text",))
BUTTON = PropertyMapping(
    "button",
    properties={
        "text": "text",
        "href": "link.url",
        "target": Transform("link.newTab", lambda t: True if t == "_blank" else None),
    },
    defaults={"text": "Click me", "link": {"type": "external", "url": "#"}, "style": "primary"},
    required=("text",),
)
LIST = PropertyMapping(
    "list",
    properties={"items": Transform("items", lambda items: [{"title": text} for text in items])},
    defaults={"items": []},
    required=("items",),
)
ICON_BOX = PropertyMapping(
    "icon-box",
    properties={"text": "content", "className": Transform("icon", _icon)},
    defaults={"content": "", "icon": {"library": "fontawesomeSolid", "icon": "fas fa-star"}},
    required=("content",),
)


def _video(url: str) -> Dict[str, str]:
    provider = video_provider(url)
    if provider == "youtube":
        return {"videoType": "youtube", "youTubeId": youtube_id(url)}
    if provider == "vimeo":
        return {"videoType": "vimeo", "vimeoId": vimeo_id(url)}
    return {"videoType": "file", "fileUrl": url}


class BricksConverter(BaseConverter):
    builder = BuilderType.BRICKS
    custom_css_key = "_cssCustom"
    responsive_suffixes = {"tablet": ":tablet_portrait", "mobile": ":mobile_portrait"}
    style_map = ELEMENT_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("code", properties={"html": "code"}, defaults={"code": "", "executeCode": True, "noRoot": True})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "heading",
            properties={"text": "text", "level": Transform("tag", heading_tag), "href": "link.url"},
            defaults={"text": "", "tag": "h2"},
            required=("text",),
        ),
        ComponentType.PARAGRAPH: TEXT,
        ComponentType.BLOCKQUOTE: TEXT,
        ComponentType.TEXT: PropertyMapping("text-basic", properties={"text": "text"}, defaults={"text": ""}, required=("text",)),
        ComponentType.LINK: PropertyMapping(
            "text-link",
            properties={"text": "text", "href": "link.url"},
            defaults={"text": "", "link": {"type": "external", "url": "#"}},
            required=("text",),
        ),
        ComponentType.BUTTON: BUTTON,
        ComponentType.SUBMIT_BUTTON: BUTTON,
        ComponentType.IMAGE: PropertyMapping(
            "image",
            properties={"src": "image.url", "alt": "altText"},
            defaults={"image": {"url": "", "size": "full"}},
            required=("image.url",),
        ),
        ComponentType.VIDEO: PropertyMapping("video", properties={"src": Transform("_video", _video)}),
        ComponentType.ICON: PropertyMapping(
            "icon",
            properties={"className": Transform("icon", _icon)},
            defaults={"icon": {"library": "fontawesomeSolid", "icon": "fas fa-star"}},
            styles={"color": Transform("iconColor", _color), "fontSize": Transform("iconSize", px_string)},
        ),
        ComponentType.DIVIDER: PropertyMapping(
            "divider",
            defaults={"style": "solid"},
            styles={"borderColor": Transform("color", _color), "borderStyle": "style", "borderWidth": Transform("height", px_string)},
        ),
        ComponentType.SPACER: PropertyMapping(
            "div",
            defaults={"_height": "50px"},
            styles={"height": Transform("_height", px_string)},
        ),
        ComponentType.LIST: LIST,
        ComponentType.MENU: LIST,
        ComponentType.CODE_BLOCK: PropertyMapping(
            "code",
            properties={"text": "code", "language": "language"},
            defaults={"code": "", "executeCode": False, "prettify": True},
            required=("code",),
        ),
        ComponentType.ACCORDION: PropertyMapping(
            "accordion",
            properties={"items": Transform("accordions", _panels)},
            defaults={"accordions": []},
            required=("accordions",),
        ),
        ComponentType.TABS: PropertyMapping(
            "tabs",
            properties={"items": Transform("tabs", _panels)},
            defaults={"tabs": []},
            required=("tabs",),
        ),
        ComponentType.CAROUSEL: PropertyMapping(
            "carousel",
            properties={"images": Transform("items", _images)},
            defaults={"type": "media"},
        ),
        ComponentType.SLIDER: PropertyMapping(
            "slider",
            properties={"images": Transform("items", lambda images: [{"background": {"image": {"url": url}}} for url in images])},
            defaults={"items": []},
        ),
        ComponentType.GALLERY: PropertyMapping(
            "image-gallery",
            properties={"images": Transform("items", _images)},
            defaults={"columns": 3},
        ),
        ComponentType.TESTIMONIAL: PropertyMapping(
            "testimonials",
            properties={"text": Transform("items", lambda text: [{"content": text}])},
            defaults={"items": []},
            required=("items",),
        ),
        ComponentType.PROGRESS_BAR: PropertyMapping(
            "progress-bar",
            properties={"text": Transform("bars", _bars)},
            defaults={"bars": [{"title": "", "percentage": 50}]},
        ),
        ComponentType.ICON_BOX: ICON_BOX,
        ComponentType.FEATURE_BOX: ICON_BOX,
        ComponentType.GOOGLE_MAPS: PropertyMapping(
            "map",
            properties={"src": Transform("addresses", _addresses)},
            defaults={"zoom": 12},
        ),
        ComponentType.SEARCH_BAR: PropertyMapping(
            "search",
            properties={"placeholder": "placeholder"},
            defaults={"searchType": "input"},
        ),
        ComponentType.BREADCRUMBS: PropertyMapping("breadcrumbs"),
        ComponentType.COUNTDOWN: PropertyMapping("countdown", defaults={"fields": "%D% days %H% hours %M% minutes"}),
        ComponentType.PRICING_TABLE: PropertyMapping(
            "pricing-tables",
            properties={"text": Transform("pricingTables", lambda text: [{"title": text.split("\n")[0]}])},
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
        ComponentType.SOCIAL_SHARE,
        ComponentType.PAGINATION,
        ComponentType.TABLE,
        ComponentType.CTA,
        ComponentType.TEAM_MEMBER,
        ComponentType.SOCIAL_FEED,
    })

    @property
    def version(self) -> str:
        return settings.BRICKS_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        elements: List[BricksElement] = []
        wrapper: Optional[BricksElement] = None

        for child in hierarchy.children:
            if child.is_layout:
                wrapper = None
                self._element(child, context, elements, None, top_level=True)
                continue
            if wrapper is None:
                section = self._add(context, elements, "section", None, {})
                wrapper = self._add(context, elements, "container", section, {})
            self._element(child, context, elements, wrapper)

        return dict(BricksExport(version=self.version, elements=elements)), None

    def _add(
        self,
        context: ConversionContext,
        elements: List[BricksElement],
        name: str,
        parent: Optional[BricksElement],
        element_settings: Dict[str, Any],
        node: Optional[ComponentHierarchy] = None,
    ) -> BricksElement:
        element_id = f"{context.next_number():06d}"
        if node is not None:
            context.map_node(node.id, element_id)
        element = BricksElement(
            id=element_id,
            name=name,
            parent=parent["id"] if parent is not None else 0,
            children=[],
            settings=element_settings,
        )
        elements.append(element)
        if parent is not None:
            parent["children"].append(element_id)
        return element

    def _element(
        self,
        node: ComponentHierarchy,
        context: ConversionContext,
        elements: List[BricksElement],
        parent: Optional[BricksElement],
        top_level: bool = False,
    ):
        if not node.is_layout:
            plan = self.plan_widget(node, context)
            element_settings = plan.settings
            video = element_settings.pop("_video", None)
            if video:
                element_settings.update(video)
            self._add(context, elements, plan.name, parent, element_settings, node)
            return

        layout_settings = self.style_settings(node, context)
        if top_level:
            name = "section"
        elif node.type == LayoutType.COLUMN:
            name = "block"
            if node.size is not None:
                layout_settings.setdefault("_width", f"{node.size:g}%")
        else:
            name = "container"
        if node.type == LayoutType.ROW:
            layout_settings.setdefault("_direction", "row")

        element = self._add(context, elements, name, parent, layout_settings, node)
        for child in node.children:
            self._element(child, context, elements, element)

    def format_custom_css(self, node: ComponentHierarchy, css: str) -> str:
        return f"%root% {{ {css} }}"
