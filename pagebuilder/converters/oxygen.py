"""
Oxygen converter.

Oxygen keeps a nested component tree (ct_builder_json) and an equivalent
shortcode string (ct_builder_shortcodes). Component ids are integers; the
root is id 0.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pagebuilder.config import settings
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, number
from .types import OxygenComponent, OxygenExport
from .values import heading_tag, icon_classes, map_address, percent_from_text, video_provider, vimeo_id, youtube_id

logger = logging.getLogger(__name__)

CONTENT = "ct_content"
MEDIA = "_media"

SELECTOR_PREFIXES = {
    "ct_section": "section",
    "ct_div_block": "div_block",
    "ct_new_columns": "new_columns",
    "ct_headline": "headline",
    "ct_text_block": "text_block",
    "oxy_rich_text": "text_block",
    "ct_link_text": "link_text",
    "ct_image": "image",
    "ct_video": "video",
    "ct_fancy_icon": "fancy_icon",
    "ct_code_block": "code_block",
    "ct_slider": "slider",
    "ct_slide": "slide",
}


def _unitless(value: Any) -> Optional[str]:
    px = number(value)
    return None if px is None else str(px)


def _icon_id(class_name: str) -> Optional[str]:
    classes = icon_classes(class_name)
    if not classes:
        return None
    name = classes.split()[-1]
    if not name.startswith("fa-"):
        return None
    return f"FontAwesomeicon-{name[3:]}"


def _embed_src(url: str) -> str:
    provider = video_provider(url)
    if provider == "youtube":
        return f"https://www.youtube.com/embed/{youtube_id(url)}"
    if provider == "vimeo":
        return f"https://player.vimeo.com/video/{vimeo_id(url)}"
    return url


def _progress(text: str) -> Optional[str]:
    percent = percent_from_text(text)
    return None if percent is None else f"{percent:g}"


def _box(prefix: str) -> Dict[str, Transform]:
    return {
        f"{prefix}{side}": Transform(f"{prefix}-{side.lower()}", _unitless)
        for side in ("Top", "Right", "Bottom", "Left")
    }


COMPONENT_STYLES = {
    **_box("margin"),
    **_box("padding"),
    "color": "color",
    "backgroundColor": "background-color",
    "fontFamily": Transform("font-family", lambda v: v.split(",")[0].strip("'\" ")),
    "fontSize": Transform("font-size", _unitless),
    "fontWeight": "font-weight",
    "fontStyle": "font-style",
    "lineHeight": "line-height",
    "letterSpacing": Transform("letter-spacing", _unitless),
    "textAlign": "text-align",
    "textTransform": "text-transform",
    "textDecoration": "text-decoration",
    "borderRadius": Transform("border-radius", _unitless),
    "borderWidth": Transform("border-all-width", _unitless),
    "borderStyle": "border-all-style",
    "borderColor": "border-all-color",
    "width": Transform("width", _unitless),
    "maxWidth": Transform("max-width", _unitless),
    "height": Transform("height", _unitless),
    "zIndex": "z-index",
    "opacity": "opacity",
}

LAYOUT_STYLES = {
    **COMPONENT_STYLES,
    "backgroundImage": "background-image",
    "backgroundSize": "background-size",
    "backgroundPosition": "background-position",
    "backgroundRepeat": "background-repeat",
    "minHeight": Transform("min-height", _unitless),
    "flexDirection": "flex-direction",
    "justifyContent": "justify-content",
    "alignItems": "align-items",
    "gap": Transform("gap", _unitless),
}

TEXT_BLOCK = PropertyMapping("ct_text_block", properties={"text": CONTENT}, defaults={CONTENT: ""}, required=(CONTENT,))
RICH_TEXT = PropertyMapping("oxy_rich_text", properties={"html": CONTENT}, defaults={CONTENT: ""}, required=(CONTENT,))
BUTTON = PropertyMapping(
    "oxy_button",
    properties={
        "text": "button_text",
        "href": "button_url",
        "target": Transform("button_url_target", lambda t: t if t == "_blank" else None),
    },
    defaults={"button_text": "Click Me", "button_url": "#"},
    required=("button_text",),
    styles={"backgroundColor": "button_color", "color": "button_text_color"},
)
ICON_BOX = PropertyMapping(
    "oxy_icon_box",
    properties={"text": "icon_box_heading"},
    defaults={"icon_box_heading": "", "icon_box_text": ""},
    required=("icon_box_heading",),
)
SLIDER = PropertyMapping("ct_slider", properties={"images": "_slides"}, defaults={"slider-autoplay": "yes"})


def _options_json(options: Dict[str, Any]) -> str:
    # Quotes and brackets would end the shortcode attribute early
    return (
        json.dumps(options, separators=(",", ":"))
        .replace("'", "\\u0027")
        .replace("[", "\\u005b")
        .replace("]", "\\u005d")
    )


def serialize_component(component: OxygenComponent) -> str:
    name = component["name"]
    options = {key: value for key, value in component["options"].items() if key != CONTENT}
    children = component.get("children") or []
    body = "".join(serialize_component(child) for child in children)
    if not children:
        body = component["options"].get(CONTENT, "")
    return f"[{name} ct_options='{_options_json(options)}']{body}[/{name}]"


def serialize_shortcodes(root: OxygenComponent) -> str:
    return "".join(serialize_component(child) for child in root.get("children") or [])


class OxygenConverter(BaseConverter):
    builder = BuilderType.OXYGEN
    custom_css_key = "custom-css"
    responsive_suffixes = {"tablet": "tablet", "mobile": "phone-portrait"}
    style_map = COMPONENT_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("ct_code_block", properties={"html": "code-php"}, defaults={"code-php": ""})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "ct_headline",
            properties={"text": CONTENT, "level": Transform("tag", heading_tag)},
            defaults={CONTENT: "", "tag": "h2"},
            required=(CONTENT,),
        ),
        ComponentType.PARAGRAPH: TEXT_BLOCK,
        ComponentType.TEXT: TEXT_BLOCK,
        ComponentType.LINK: PropertyMapping(
            "ct_link_text",
            properties={"text": CONTENT, "href": "url", "target": "target"},
            defaults={CONTENT: "", "url": "#"},
            required=(CONTENT,),
        ),
        ComponentType.BLOCKQUOTE: RICH_TEXT,
        ComponentType.LIST: RICH_TEXT,
        ComponentType.MENU: RICH_TEXT,
        ComponentType.CODE_BLOCK: RICH_TEXT,
        ComponentType.BUTTON: BUTTON,
        ComponentType.SUBMIT_BUTTON: BUTTON,
        ComponentType.IMAGE: PropertyMapping(
            "ct_image",
            properties={"src": "src", "alt": "alt"},
            defaults={"src": "", "image_type": "2"},
            required=("src",),
        ),
        ComponentType.VIDEO: PropertyMapping(
            "ct_video",
            properties={"src": Transform("embed-src", _embed_src)},
            defaults={"embed-src": "", "video-padding-bottom": "56.25"},
            required=("embed-src",),
        ),
        ComponentType.ICON: PropertyMapping(
            "ct_fancy_icon",
            properties={"className": Transform("icon-id", _icon_id)},
            defaults={"icon-id": "FontAwesomeicon-star"},
            styles={"color": "icon-color", "fontSize": Transform("icon-size", _unitless)},
        ),
        ComponentType.SPACER: PropertyMapping(
            "ct_div_block",
            defaults={"height": "50"},
            styles={"height": Transform("height", _unitless)},
        ),
        ComponentType.DIVIDER: PropertyMapping(
            "ct_div_block",
            defaults={"width": "100", "width-unit": "%", "border-top-width": "1", "border-top-style": "solid"},
            styles={"borderColor": "border-top-color", "borderWidth": Transform("border-top-width", _unitless)},
        ),
        ComponentType.TESTIMONIAL: PropertyMapping(
            "oxy_testimonial",
            properties={"text": "testimonial_text", "citation": "testimonial_author", "src": "testimonial_photo"},
            defaults={"testimonial_text": ""},
            required=("testimonial_text",),
        ),
        ComponentType.ICON_BOX: ICON_BOX,
        ComponentType.FEATURE_BOX: ICON_BOX,
        ComponentType.PRICING_TABLE: PropertyMapping(
            "oxy_pricing_box",
            properties={"text": Transform("pricing_box_package_title", lambda text: text.split("\n")[0])},
            defaults={"pricing_box_package_title": ""},
        ),
        ComponentType.PROGRESS_BAR: PropertyMapping(
            "oxy_progress_bar",
            properties={"text": Transform("progress_bar_progress", _progress)},
            defaults={"progress_bar_progress": "50"},
        ),
        ComponentType.ACCORDION: PropertyMapping(
            "oxy_toggle",
            properties={"items": Transform("toggle_text", lambda items: items[0])},
            defaults={"toggle_text": "", "toggle_init_state": "closed"},
        ),
        ComponentType.CAROUSEL: SLIDER,
        ComponentType.SLIDER: SLIDER,
        ComponentType.GOOGLE_MAPS: PropertyMapping(
            "oxy_map",
            properties={"src": Transform("map_address", map_address)},
            defaults={"map_address": "", "map_zoom": "14"},
            required=("map_address",),
        ),
        ComponentType.SEARCH_BAR: PropertyMapping("oxy_search_form"),
        ComponentType.SOCIAL_SHARE: PropertyMapping("oxy_social_icons", defaults={"icon-layout": "row"}),
    }

    default_arm = frozenset({
        ComponentType.INPUT,
        ComponentType.TEXTAREA,
        ComponentType.SELECT,
        ComponentType.CHECKBOX,
        ComponentType.RADIO,
        ComponentType.FILE_UPLOAD,
        ComponentType.TABS,
        ComponentType.MODAL,
        ComponentType.GALLERY,
        ComponentType.COUNTDOWN,
        ComponentType.BREADCRUMBS,
        ComponentType.PAGINATION,
        ComponentType.TABLE,
        ComponentType.CTA,
        ComponentType.TEAM_MEMBER,
        ComponentType.SOCIAL_FEED,
    })

    @property
    def version(self) -> str:
        return settings.OXYGEN_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        root = OxygenComponent(id=0, name="root", options={"ct_id": 0, "ct_parent": 0, "selector": "root"}, children=[])
        for child in hierarchy.children:
            root["children"].append(self._component(child, context, 0, top_level=True))

        shortcodes = serialize_shortcodes(root)
        export = OxygenExport(version=self.version, ct_builder_json=root, ct_builder_shortcodes=shortcodes)
        return dict(export), shortcodes

    def _new(self, context: ConversionContext, name: str, parent_id: int, original: Dict[str, Any]) -> OxygenComponent:
        component_id = context.next_number()
        slug = SELECTOR_PREFIXES.get(name, re.sub(r"^(ct|oxy)_", "", name))
        options: Dict[str, Any] = {
            "ct_id": component_id,
            "ct_parent": parent_id,
            "selector": f"{slug}-{component_id}",
            "nicename": f"{slug.replace('_', ' ').title()} (#{component_id})",
        }
        content = original.pop(CONTENT, None)
        if content is not None:
            options[CONTENT] = content
        media = original.pop(MEDIA, None)
        if media:
            options["media"] = media
        options["original"] = original
        return OxygenComponent(id=component_id, name=name, options=options, children=[])

    def _component(self, node: ComponentHierarchy, context: ConversionContext, parent_id: int, top_level: bool = False) -> OxygenComponent:
        if not node.is_layout:
            return self._widget(node, context, parent_id)

        original = self.style_settings(node, context)
        if top_level:
            name = "ct_section"
        elif node.type == LayoutType.ROW:
            name = "ct_new_columns"
        else:
            name = "ct_div_block"
            if node.type == LayoutType.COLUMN and node.size is not None:
                original.setdefault("width", f"{node.size:g}")
                original.setdefault("width-unit", "%")

        component = self._new(context, name, parent_id, original)
        context.map_node(node.id, str(component["id"]))
        if top_level and node.type == LayoutType.ROW:
            # Sections hold columns through an inner ct_new_columns
            columns = self._new(context, "ct_new_columns", component["id"], {})
            component["children"].append(columns)
            parent = columns
        else:
            parent = component
        for child in node.children:
            parent["children"].append(self._component(child, context, parent["id"]))
        return component

    def _widget(self, node: ComponentHierarchy, context: ConversionContext, parent_id: int) -> OxygenComponent:
        plan = self.plan_widget(node, context)
        original = plan.settings
        slides = original.pop("_slides", None)
        component = self._new(context, plan.name, parent_id, original)
        context.map_node(node.id, str(component["id"]))

        for url in slides or []:
            slide = self._new(context, "ct_slide", component["id"], {})
            slide["children"].append(self._new(context, "ct_image", slide["id"], {"src": url, "image_type": "2"}))
            component["children"].append(slide)
        return component

    def merge_responsive(self, settings_: Dict[str, Any], mapped: Dict[str, Any], suffix: str):
        """Oxygen keeps breakpoint overrides under options.media.<breakpoint>.original."""
        media = settings_.setdefault(MEDIA, {})
        media.setdefault(suffix, {"original": {}})["original"].update(mapped)
