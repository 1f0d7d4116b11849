"""
Elementor converter.

Output nests section -> column -> widget. Layout nodes below the top level
become inner sections inside the enclosing column, and runs of top-level
widgets share one synthesized section.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pagebuilder.config import settings
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, ElementorGlobalColor, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, number
from .types import ElementorDocument, ElementorElement
from .values import (
    heading_tag,
    icon_classes,
    icon_library,
    line_height_value,
    map_address,
    percent_from_text,
    size_value,
    video_provider,
)

logger = logging.getLogger(__name__)

BODY_GLOBAL = "globals/typography?id=primary"
HEADING_GLOBAL = "globals/typography?id=secondary"
TEXT_WIDGETS = {"text-editor", "icon-list", "testimonial"}
DIMENSION_KEYS = ("_padding", "_margin", "padding", "margin")


def _side(value: Any) -> Optional[str]:
    px = number(value)
    return None if px is None else str(px)


def _radius(value: Any) -> Optional[Dict[str, Any]]:
    px = number(value)
    if px is None:
        return None
    side = str(px)
    return {"unit": "px", "top": side, "right": side, "bottom": side, "left": side, "isLinked": True}


def _icon(class_name: str) -> Optional[Dict[str, str]]:
    classes = icon_classes(class_name)
    if not classes:
        return None
    return {"value": classes, "library": icon_library(classes)}


def _icon_list(items: List[str]) -> List[Dict[str, Any]]:
    return [
        {"_id": f"{index:07x}", "text": text, "selected_icon": {"value": "fas fa-check", "library": "fa-solid"}}
        for index, text in enumerate(items)
    ]


def _tab_items(items: List[str]) -> List[Dict[str, str]]:
    return [{"_id": f"{index:07x}", "tab_title": text, "tab_content": ""} for index, text in enumerate(items)]


def _gallery(images: List[str]) -> List[Dict[str, str]]:
    return [{"id": "", "url": url} for url in images]


def global_color(color: ElementorGlobalColor) -> Dict[str, str]:
    """Kit color entry; Elementor keys these by `_id`."""
    return {"_id": color.id, "title": color.title, "color": color.color}


def _percent(text: str) -> Optional[Dict[str, Any]]:
    percent = percent_from_text(text)
    return None if percent is None else {"unit": "%", "size": percent}


def _typography(prefix: str = "typography") -> Dict[str, Transform]:
    return {
        "fontFamily": Transform(f"{prefix}_font_family", lambda v: v.split(",")[0].strip("'\" ")),
        "fontSize": Transform(f"{prefix}_font_size", size_value),
        "fontWeight": f"{prefix}_font_weight",
        "lineHeight": Transform(f"{prefix}_line_height", line_height_value),
        "letterSpacing": Transform(f"{prefix}_letter_spacing", size_value),
        "textTransform": f"{prefix}_text_transform",
        "fontStyle": f"{prefix}_font_style",
        "textDecoration": f"{prefix}_text_decoration",
    }


COMMON_STYLES = {
    "paddingTop": Transform("_padding.top", _side),
    "paddingRight": Transform("_padding.right", _side),
    "paddingBottom": Transform("_padding.bottom", _side),
    "paddingLeft": Transform("_padding.left", _side),
    "marginTop": Transform("_margin.top", _side),
    "marginRight": Transform("_margin.right", _side),
    "marginBottom": Transform("_margin.bottom", _side),
    "marginLeft": Transform("_margin.left", _side),
    "backgroundColor": "_background_color",
    "borderStyle": "_border_border",
    "borderColor": "_border_color",
    "borderWidth": Transform("_border_width", _radius),
    "borderRadius": Transform("_border_radius", _radius),
    "zIndex": "_z_index",
    "boxShadow": "_box_shadow_box_shadow_css",
}

LAYOUT_STYLES = {
    "paddingTop": Transform("padding.top", _side),
    "paddingRight": Transform("padding.right", _side),
    "paddingBottom": Transform("padding.bottom", _side),
    "paddingLeft": Transform("padding.left", _side),
    "marginTop": Transform("margin.top", _side),
    "marginRight": Transform("margin.right", _side),
    "marginBottom": Transform("margin.bottom", _side),
    "marginLeft": Transform("margin.left", _side),
    "backgroundColor": "background_color",
    "backgroundImage": Transform("background_image", lambda url: {"url": url, "id": ""}),
    "backgroundSize": "background_size",
    "backgroundPosition": "background_position",
    "backgroundRepeat": "background_repeat",
    "borderStyle": "border_border",
    "borderColor": "border_color",
    "borderWidth": Transform("border_width", _radius),
    "borderRadius": Transform("border_radius", _radius),
    "minHeight": Transform("custom_height", size_value),
    "color": "color_text",
    "textAlign": "text_align",
}

HEADING_STYLES = {"color": "title_color", "textAlign": "align", **_typography()}
TEXT_STYLES = {"color": "text_color", "textAlign": "align", **_typography()}
BUTTON_STYLES = {
    "color": "button_text_color",
    "backgroundColor": "background_color",
    "borderRadius": Transform("border_radius", _radius),
    "textAlign": "align",
    **_typography(),
}

BUTTON = PropertyMapping(
    "button",
    properties={
        "text": "text",
        "href": "link.url",
        "target": Transform("link.is_external", lambda t: "on" if t == "_blank" else None),
    },
    defaults={"text": "Click here", "link": {"url": "#", "is_external": "", "nofollow": ""}},
    required=("text",),
    styles=BUTTON_STYLES,
)
TEXT_EDITOR = PropertyMapping(
    "text-editor",
    properties={"html": "editor"},
    defaults={"editor": ""},
    required=("editor",),
    styles=TEXT_STYLES,
)
ICON_LIST = PropertyMapping(
    "icon-list",
    properties={"items": Transform("icon_list", _icon_list)},
    defaults={"icon_list": [], "view": "traditional"},
    required=("icon_list",),
    styles={"color": "text_color", **_typography("icon_typography")},
)
TABBED = {"items": Transform("tabs", _tab_items)}
ICON_BOX = PropertyMapping(
    "icon-box",
    properties={"text": "title_text", "className": Transform("selected_icon", _icon)},
    defaults={"title_text": "", "description_text": "", "selected_icon": {"value": "fas fa-star", "library": "fa-solid"}},
    required=("title_text",),
    styles={"color": "title_color", **_typography("title_typography")},
)
CAROUSEL = PropertyMapping(
    "image-carousel",
    properties={"images": Transform("carousel", _gallery)},
    defaults={"carousel": [], "navigation": "both"},
    required=("carousel",),
)


class ElementorConverter(BaseConverter):
    builder = BuilderType.ELEMENTOR
    first_id = 1000
    custom_css_key = "custom_css"
    animation_key = "_animation"
    responsive_suffixes = {"tablet": "_tablet", "mobile": "_mobile"}
    style_map = COMMON_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("html", properties={"html": "html"}, defaults={"html": ""})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "heading",
            properties={"text": "title", "level": Transform("header_size", heading_tag), "href": "link.url"},
            defaults={"title": "", "header_size": "h2"},
            required=("title",),
            styles=HEADING_STYLES,
        ),
        ComponentType.PARAGRAPH: TEXT_EDITOR,
        ComponentType.TEXT: TEXT_EDITOR,
        ComponentType.LINK: TEXT_EDITOR,
        ComponentType.BLOCKQUOTE: TEXT_EDITOR,
        ComponentType.CODE_BLOCK: TEXT_EDITOR,
        ComponentType.BUTTON: BUTTON,
        ComponentType.SUBMIT_BUTTON: BUTTON,
        ComponentType.IMAGE: PropertyMapping(
            "image",
            properties={"src": "image.url", "alt": "image.alt"},
            defaults={"image": {"url": "", "id": ""}, "image_size": "full"},
            required=("image.url",),
            styles={"width": Transform("width", size_value), "textAlign": "align"},
        ),
        ComponentType.VIDEO: PropertyMapping(
            "video",
            properties={"src": "youtube_url", "poster": "image_overlay.url"},
            defaults={"video_type": "youtube", "youtube_url": ""},
            required=("youtube_url",),
        ),
        ComponentType.ICON: PropertyMapping(
            "icon",
            properties={"className": Transform("selected_icon", _icon)},
            defaults={"selected_icon": {"value": "fas fa-star", "library": "fa-solid"}},
            styles={"color": "primary_color", "fontSize": Transform("size", size_value)},
        ),
        ComponentType.SPACER: PropertyMapping(
            "spacer",
            defaults={"space": {"unit": "px", "size": 50}},
            styles={"height": Transform("space", size_value)},
        ),
        ComponentType.DIVIDER: PropertyMapping(
            "divider",
            defaults={"style": "solid"},
            styles={"borderColor": "color", "borderStyle": "style", "borderWidth": Transform("weight", size_value)},
        ),
        ComponentType.LIST: ICON_LIST,
        ComponentType.MENU: ICON_LIST,
        ComponentType.ACCORDION: PropertyMapping("accordion", properties=TABBED, defaults={"tabs": []}, required=("tabs",)),
        ComponentType.TABS: PropertyMapping("tabs", properties=TABBED, defaults={"tabs": []}, required=("tabs",)),
        ComponentType.CAROUSEL: CAROUSEL,
        ComponentType.SLIDER: CAROUSEL,
        ComponentType.GALLERY: PropertyMapping(
            "image-gallery",
            properties={"images": Transform("wp_gallery", _gallery)},
            defaults={"wp_gallery": [], "gallery_columns": "4"},
            required=("wp_gallery",),
        ),
        ComponentType.TESTIMONIAL: PropertyMapping(
            "testimonial",
            properties={"text": "testimonial_content", "citation": "testimonial_name", "src": "testimonial_image.url"},
            defaults={"testimonial_content": "", "testimonial_name": ""},
            required=("testimonial_content",),
            styles={"color": "content_content_color", **_typography("content_typography")},
        ),
        ComponentType.PROGRESS_BAR: PropertyMapping(
            "progress",
            properties={"text": Transform("percent", _percent)},
            defaults={"title": "", "percent": {"unit": "%", "size": 50}},
        ),
        ComponentType.ICON_BOX: ICON_BOX,
        ComponentType.FEATURE_BOX: ICON_BOX,
        ComponentType.TEAM_MEMBER: PropertyMapping(
            "image-box",
            properties={"src": "image.url", "text": "title_text"},
            defaults={"image": {"url": "", "id": ""}, "title_text": "", "description_text": ""},
            required=("title_text",),
        ),
        ComponentType.GOOGLE_MAPS: PropertyMapping(
            "google_maps",
            properties={"src": Transform("address", map_address)},
            defaults={"address": "", "zoom": {"unit": "px", "size": 14}},
            required=("address",),
        ),
    }

    # Pro-only or form widgets: passed through as html
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
        ComponentType.CTA,
        ComponentType.SEARCH_BAR,
        ComponentType.SOCIAL_FEED,
    })

    @property
    def version(self) -> str:
        return settings.ELEMENTOR_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        content: List[ElementorElement] = []
        wrapper: Optional[ElementorElement] = None

        for child in hierarchy.children:
            if child.is_layout:
                wrapper = None
                content.append(self._section(child, context, inner=False))
                continue
            if wrapper is None:
                wrapper = self._wrapper_section(context)
                content.append(wrapper)
            wrapper["elements"][0]["elements"].append(self._widget(child, context))

        document = ElementorDocument(
            version=self.version,
            title=context.options.pageTitle,
            type="page",
            content=content,
            page_settings=self._page_settings(hierarchy, context),
        )
        if context.options.optimizeAssets:
            document = optimize_elementor_export(document, keep_ids=set(context.node_map.values()))
        for error in validate_elementor_export(document):
            context.add_warning(error)
        return dict(document), None

    def _next_id(self, context: ConversionContext) -> str:
        return f"{context.next_number():07x}"

    def _wrapper_section(self, context: ConversionContext) -> ElementorElement:
        section_id = self._next_id(context)
        column = self._column_element(self._next_id(context), 100, {}, inner=False)
        return ElementorElement(id=section_id, elType="section", isInner=False, settings={}, elements=[column])

    def _column_element(self, column_id: str, size: float, extra: Dict[str, Any], inner: bool) -> ElementorElement:
        settings_ = {"_column_size": int(round(size)), "_inline_size": None if float(size).is_integer() else size}
        settings_.update(extra)
        return ElementorElement(id=column_id, elType="column", isInner=inner, settings=settings_, elements=[])

    def _section(self, node: ComponentHierarchy, context: ConversionContext, inner: bool) -> ElementorElement:
        section_id = self._next_id(context)
        context.map_node(node.id, section_id)
        section_settings = self.style_settings(node, context)

        if node.type == LayoutType.ROW:
            columns = [self._column(column, context, inner) for column in node.children]
            section_settings["structure"] = str(len(columns) * 10)
        else:
            column = self._column_element(self._next_id(context), 100, {}, inner)
            column["elements"] = [self._element(child, context) for child in node.children]
            columns = [column]

        return ElementorElement(id=section_id, elType="section", isInner=inner, settings=section_settings, elements=columns)

    def _column(self, node: ComponentHierarchy, context: ConversionContext, inner: bool) -> ElementorElement:
        column_id = self._next_id(context)
        context.map_node(node.id, column_id)
        column = self._column_element(column_id, node.size or 100, self.style_settings(node, context), inner)
        column["elements"] = [self._element(child, context) for child in node.children]
        return column

    def _element(self, node: ComponentHierarchy, context: ConversionContext) -> ElementorElement:
        if node.type == LayoutType.COLUMN:
            # A column outside a row still needs a section around it
            return self._section(node.model_copy(update={"type": LayoutType.CONTAINER}), context, inner=True)
        if node.is_layout:
            return self._section(node, context, inner=True)
        return self._widget(node, context)

    def _widget(self, node: ComponentHierarchy, context: ConversionContext) -> ElementorElement:
        plan = self.plan_widget(node, context)
        widget_id = self._next_id(context)
        context.map_node(node.id, widget_id)

        widget_settings = plan.settings
        if not plan.is_html:
            if plan.name == "video" and video_provider(widget_settings.get("youtube_url", "")) != "youtube":
                url = widget_settings.pop("youtube_url", "")
                widget_settings["video_type"] = video_provider(url)
                if widget_settings["video_type"] == "vimeo":
                    widget_settings["vimeo_url"] = url
                else:
                    widget_settings["hosted_url"] = {"url": url, "id": ""}
            if context.typography is not None:
                if plan.name == "heading":
                    widget_settings["__globals__"] = {"typography_typography": HEADING_GLOBAL}
                elif plan.name in TEXT_WIDGETS:
                    widget_settings["__globals__"] = {"typography_typography": BODY_GLOBAL}

        return ElementorElement(id=widget_id, elType="widget", widgetType=plan.name, settings=widget_settings, elements=[])

    def style_settings(self, node, context, style_map=None) -> Dict[str, Any]:
        result = super().style_settings(node, context, style_map)
        for key in list(result):
            base = key.rsplit("_", 1)[0] if key.endswith(("_tablet", "_mobile")) else key
            if base in DIMENSION_KEYS and isinstance(result[key], dict):
                sides = result[key]
                for side in ("top", "right", "bottom", "left"):
                    sides.setdefault(side, "0")
                sides.setdefault("unit", "px")
                sides.setdefault("isLinked", False)
        if "_background_color" in result:
            result["_background_background"] = "classic"
        if "background_color" in result or "background_image" in result:
            result["background_background"] = "classic"
        if any(key.startswith("typography_") for key in result):
            result["typography_typography"] = "custom"
        return result

    def format_custom_css(self, node: ComponentHierarchy, css: str) -> str:
        return f"selector {{ {css} }}"

    def _page_settings(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Dict[str, Any]:
        page_settings: Dict[str, Any] = {}
        if context.typography is not None:
            page_settings["system_typography"] = [
                font.model_dump() for font in context.typography.elementorGlobalFonts
            ]
        if context.colors is not None:
            page_settings["system_colors"] = [
                global_color(color) for color in context.colors.elementorGlobalColors
            ]
            if context.colors.elementorCustomColors:
                page_settings["custom_colors"] = [
                    global_color(color) for color in context.colors.elementorCustomColors
                ]
        background = hierarchy.styles.backgroundColor
        if background:
            page_settings["background_background"] = "classic"
            page_settings["background_color"] = background
        return page_settings


def validate_elementor_export(data: Dict[str, Any]) -> List[str]:
    """Structural problems in an Elementor document; an empty list means valid."""
    errors: List[str] = []
    if not data.get("version"):
        errors.append("Missing version")
    if not isinstance(data.get("content"), list):
        errors.append("Content must be a list")
        return errors

    seen = set()

    def check(element: Dict[str, Any], parent_type: Optional[str]):
        element_id = element.get("id")
        el_type = element.get("elType")
        if not element_id:
            errors.append(f"Element without id under {parent_type or 'document'}")
        elif element_id in seen:
            errors.append(f"Duplicate element id {element_id}")
        else:
            seen.add(element_id)

        if el_type == "widget":
            if parent_type != "column":
                errors.append(f"Widget {element_id} is outside a column")
            if not element.get("widgetType"):
                errors.append(f"Widget {element_id} has no widgetType")
        elif el_type == "column":
            if parent_type != "section":
                errors.append(f"Column {element_id} is outside a section")
        elif el_type == "section":
            if parent_type not in (None, "column"):
                errors.append(f"Section {element_id} nested under {parent_type}")
        else:
            errors.append(f"Element {element_id} has unknown elType {el_type!r}")

        for child in element.get("elements", []):
            check(child, el_type)

    for element in data["content"]:
        check(element, None)
    return errors


def optimize_elementor_export(data: ElementorDocument, keep_ids=frozenset()) -> ElementorDocument:
    """
    Drop empty sections and columns.

    Elements whose id is in `keep_ids` (the ones emitted for hierarchy nodes)
    always stay, so only synthesized wrappers can disappear.
    """
    def prune(elements: List[ElementorElement]) -> List[ElementorElement]:
        kept = []
        for element in elements:
            if element.get("elType") in ("section", "column"):
                element["elements"] = prune(element.get("elements", []))
                if element["id"] not in keep_ids and not element["elements"]:
                    logger.debug(f"Removing empty {element['elType']} {element['id']}")
                    continue
            kept.append(element)
        return kept

    data["content"] = prune(data["content"])
    return data
