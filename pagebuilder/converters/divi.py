"""
Divi converter.

Divi layouts are a shortcode tree: et_pb_section > et_pb_row > et_pb_column >
module. A layout nested inside a column becomes et_pb_row_inner /
et_pb_column_inner; Divi allows no deeper rows, so layouts below that level
are flattened into the enclosing inner column.
"""
import html as html_lib
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pagebuilder.config import settings
from pagebuilder.models import BuilderType, ComponentHierarchy, ComponentType, LayoutType
from .base import BaseConverter, ConversionContext, PropertyMapping, Transform, px_string
from .fallback import flattened_layout_strategy
from .types import DiviExport, DiviModule
from .values import icon_classes, map_address, percent_from_text

logger = logging.getLogger(__name__)

# Column types Divi offers, with their width in percent
FRACTIONS = {
    "4_4": 100.0,
    "3_4": 75.0,
    "2_3": 66.67,
    "3_5": 60.0,
    "1_2": 50.0,
    "2_5": 40.0,
    "1_3": 33.33,
    "1_4": 25.0,
    "1_5": 20.0,
    "1_6": 16.67,
}

BOX_KEYS = ("custom_margin", "custom_padding")
FONT_KEYS = ("text_font", "header_font", "button_font")

# Container modules whose items are child shortcodes
CHILD_MODULES = {
    "et_pb_accordion": ("et_pb_accordion_item", "title"),
    "et_pb_tabs": ("et_pb_tab", "title"),
    "et_pb_slider": ("et_pb_slide", "image"),
    "et_pb_counters": ("et_pb_counter", "percent"),
}
ITEMS = "_items"

ANIMATION_STYLES = {
    "fadeIn": "fade",
    "slideInUp": "slide",
    "zoomIn": "zoom",
    "bounceIn": "bounce",
    "rotateIn": "roll",
}


def column_fraction(size: Optional[float]) -> str:
    """Nearest Divi column type for a width in percent."""
    if size is None:
        return "4_4"
    return min(FRACTIONS, key=lambda fraction: abs(FRACTIONS[fraction] - size))


def _box(prefix: str, key: str) -> Dict[str, Transform]:
    return {
        f"{prefix}{side}": Transform(f"{key}.{side.lower()}", px_string)
        for side in ("Top", "Right", "Bottom", "Left")
    }


def _font(key: str) -> Dict[str, Any]:
    return {
        "fontFamily": Transform(f"{key}.family", lambda v: v.split(",")[0].strip("'\" ")),
        "fontWeight": f"{key}.weight",
        "fontStyle": Transform(f"{key}.style", lambda v: "on" if v == "italic" else None),
    }


def _text_styles(prefix: str) -> Dict[str, Any]:
    return {
        "color": f"{prefix}_text_color",
        "fontSize": Transform(f"{prefix}_font_size", px_string),
        "lineHeight": f"{prefix}_line_height",
        "letterSpacing": Transform(f"{prefix}_letter_spacing", px_string),
        **_font(f"{prefix}_font"),
    }


MODULE_STYLES = {
    **_box("margin", "custom_margin"),
    **_box("padding", "custom_padding"),
    "backgroundColor": "background_color",
    "borderRadius": Transform("border_radii", lambda v: "on|" + "|".join([px_string(v) or "0px"] * 4)),
    "borderWidth": Transform("border_width_all", px_string),
    "borderColor": "border_color_all",
    "borderStyle": "border_style_all",
    "textAlign": "text_orientation",
    "zIndex": "z_index",
    "boxShadow": "box_shadow_style",
    **_text_styles("text"),
}

LAYOUT_STYLES = {
    **_box("margin", "custom_margin"),
    **_box("padding", "custom_padding"),
    "backgroundColor": "background_color",
    "backgroundImage": "background_image",
    "backgroundSize": "background_size",
    "backgroundPosition": "background_position",
    "backgroundRepeat": "background_repeat",
    "minHeight": Transform("min_height", px_string),
    "borderRadius": Transform("border_radii", lambda v: "on|" + "|".join([px_string(v) or "0px"] * 4)),
}

TEXT = PropertyMapping("et_pb_text", properties={"html": "content"}, defaults={"content": ""}, required=("content",))
BUTTON = PropertyMapping(
    "et_pb_button",
    properties={
        "text": "button_text",
        "href": "button_url",
        "target": Transform("url_new_window", lambda t: "on" if t == "_blank" else None),
    },
    defaults={"button_text": "Click Here", "button_url": "#"},
    required=("button_text",),
    styles={
        "color": "button_text_color",
        "backgroundColor": "button_bg_color",
        "borderRadius": Transform("button_border_radius", px_string),
        "fontSize": Transform("button_text_size", px_string),
        "textAlign": "button_alignment",
    },
)
BLURB = PropertyMapping(
    "et_pb_blurb",
    properties={"text": "title", "className": Transform("font_icon", icon_classes)},
    defaults={"title": "", "use_icon": "on", "font_icon": "fas fa-star"},
    required=("title",),
    styles=_text_styles("header"),
)

SLIDER = PropertyMapping("et_pb_slider", properties={"images": ITEMS}, defaults={"show_arrows": "on"})
PANELS = {"items": ITEMS}


def _attr_value(value: Any) -> str:
    if isinstance(value, bool):
        value = "on" if value else "off"
    elif isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"))
    # Divi's own escapes for characters that would end the shortcode
    return str(value).replace('"', "%22").replace("[", "%91").replace("]", "%93")


def _counter(text: str) -> Optional[List[float]]:
    percent = percent_from_text(text)
    return None if percent is None else [percent]


def serialize_attrs(attrs: Dict[str, Any]) -> str:
    return " ".join(
        f'{key}="{_attr_value(value)}"' for key, value in attrs.items()
        if value is not None and value != ""
    )


def serialize_module(module: DiviModule) -> str:
    name = module["type"]
    attrs = serialize_attrs(module.get("attrs") or {})
    opener = f"[{name} {attrs}]" if attrs else f"[{name}]"
    children = module.get("children") or []
    body = "".join(serialize_module(child) for child in children) if children else module.get("content", "")
    return f"{opener}{body}[/{name}]"


def serialize_modules(modules: List[DiviModule]) -> str:
    return "".join(serialize_module(module) for module in modules)


class DiviConverter(BaseConverter):
    builder = BuilderType.DIVI
    custom_css_key = "custom_css_main_element"
    animation_key = "animation_style"
    responsive_suffixes = {"tablet": "_tablet", "mobile": "_phone"}
    style_map = MODULE_STYLES
    layout_style_map = LAYOUT_STYLES

    html_mapping = PropertyMapping("et_pb_code", properties={"html": "content"}, defaults={"content": ""})

    mappings = {
        ComponentType.HEADING: PropertyMapping(
            "et_pb_text",
            properties={"text": "content"},
            defaults={"content": ""},
            required=("content",),
            styles=_text_styles("header"),
        ),
        ComponentType.PARAGRAPH: TEXT,
        ComponentType.TEXT: TEXT,
        ComponentType.LINK: TEXT,
        ComponentType.BLOCKQUOTE: TEXT,
        ComponentType.LIST: TEXT,
        ComponentType.MENU: TEXT,
        ComponentType.CODE_BLOCK: TEXT,
        ComponentType.BUTTON: BUTTON,
        ComponentType.SUBMIT_BUTTON: BUTTON,
        ComponentType.IMAGE: PropertyMapping(
            "et_pb_image",
            properties={"src": "src", "alt": "alt", "href": "url"},
            defaults={"src": ""},
            required=("src",),
            styles={"textAlign": "align", "width": Transform("width", px_string)},
        ),
        ComponentType.VIDEO: PropertyMapping(
            "et_pb_video",
            properties={"src": "src", "poster": "image_src"},
            defaults={"src": ""},
            required=("src",),
        ),
        ComponentType.ICON: PropertyMapping(
            "et_pb_icon",
            properties={"className": Transform("font_icon", icon_classes)},
            defaults={"font_icon": "fas fa-star"},
            styles={"color": "icon_color", "fontSize": Transform("icon_width", px_string)},
        ),
        ComponentType.DIVIDER: PropertyMapping(
            "et_pb_divider",
            defaults={"show_divider": "on"},
            styles={"borderColor": "color", "borderStyle": "divider_style", "borderWidth": Transform("divider_weight", px_string)},
        ),
        ComponentType.SPACER: PropertyMapping(
            "et_pb_divider",
            defaults={"show_divider": "off", "height": "50px"},
            styles={"height": Transform("height", px_string)},
        ),
        ComponentType.ICON_BOX: BLURB,
        ComponentType.FEATURE_BOX: BLURB,
        ComponentType.TEAM_MEMBER: PropertyMapping(
            "et_pb_team_member",
            properties={"text": "name", "src": "image_url"},
            defaults={"name": ""},
            required=("name",),
        ),
        ComponentType.CTA: PropertyMapping(
            "et_pb_cta",
            properties={"text": "title", "href": "button_url"},
            defaults={"title": "", "button_text": "Click Here", "button_url": "#"},
            required=("title",),
            styles=_text_styles("header"),
        ),
        ComponentType.TESTIMONIAL: PropertyMapping(
            "et_pb_testimonial",
            properties={"text": "content", "citation": "author", "src": "portrait_url"},
            defaults={"content": ""},
            required=("content",),
        ),
        ComponentType.CAROUSEL: SLIDER,
        ComponentType.SLIDER: SLIDER,
        ComponentType.GOOGLE_MAPS: PropertyMapping(
            "et_pb_map",
            properties={"src": Transform("address", map_address)},
            defaults={"address": "", "zoom_level": "14"},
            required=("address",),
        ),
        ComponentType.ACCORDION: PropertyMapping("et_pb_accordion", properties=PANELS),
        ComponentType.TABS: PropertyMapping("et_pb_tabs", properties=PANELS),
        ComponentType.SEARCH_BAR: PropertyMapping(
            "et_pb_search",
            properties={"placeholder": "placeholder"},
            defaults={"show_button": "on"},
        ),
        ComponentType.PROGRESS_BAR: PropertyMapping(
            "et_pb_counters",
            properties={"text": Transform(ITEMS, _counter)},
            defaults={ITEMS: [50]},
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
        ComponentType.GALLERY,
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
        return settings.DIVI_VERSION

    def build(self, hierarchy: ComponentHierarchy, context: ConversionContext) -> Tuple[Dict[str, Any], Optional[str]]:
        context.map_node(hierarchy.id, "document")
        modules: List[DiviModule] = []
        wrapper_column: Optional[DiviModule] = None

        for child in hierarchy.children:
            if child.is_layout:
                wrapper_column = None
                modules.append(self._section(child, context))
                continue
            if wrapper_column is None:
                section = self._new(context, "et_pb_section", {})
                row = self._new(context, "et_pb_row", {"column_structure": "4_4"})
                wrapper_column = self._new(context, "et_pb_column", {"type": "4_4"})
                row["children"].append(wrapper_column)
                section["children"].append(row)
                modules.append(section)
            wrapper_column["children"].append(self._widget(child, context))

        content = serialize_modules(modules)
        return dict(DiviExport(version=self.version, modules=modules, content=content)), content

    def _new(self, context: ConversionContext, module_type: str, attrs: Dict[str, Any], node_id: Optional[str] = None) -> DiviModule:
        module_id = f"module_{context.next_number()}"
        if node_id is not None:
            context.map_node(node_id, module_id)
        return DiviModule(
            id=module_id,
            type=module_type,
            attrs={"_builder_version": self.version, **attrs},
            content="",
            children=[],
        )

    def _section(self, node: ComponentHierarchy, context: ConversionContext) -> DiviModule:
        section = self._new(context, "et_pb_section", self.style_settings(node, context), node.id)
        if node.type == LayoutType.ROW:
            row = self._new(context, "et_pb_row", {})
            self._add_columns(row, node.children, context, inner=False)
        else:
            row = self._new(context, "et_pb_row", {"column_structure": "4_4"})
            column = self._new(context, "et_pb_column", {"type": "4_4"})
            row["children"].append(column)
            for child in node.children:
                self._fill(column, child, context, inner=False)
        section["children"].append(row)
        return section

    def _add_columns(self, row: DiviModule, columns: List[ComponentHierarchy], context: ConversionContext, inner: bool):
        name = "et_pb_column_inner" if inner else "et_pb_column"
        fractions = [column_fraction(column.size) for column in columns]
        row["attrs"]["column_structure"] = ",".join(fractions)
        for column, fraction in zip(columns, fractions):
            module = self._new(context, name, {"type": fraction, **self.style_settings(column, context)}, column.id)
            row["children"].append(module)
            for child in column.children:
                self._fill(module, child, context, inner)

    def _fill(self, column: DiviModule, node: ComponentHierarchy, context: ConversionContext, inner: bool):
        if not node.is_layout:
            column["children"].append(self._widget(node, context))
            return
        if inner:
            context.add_fallback(flattened_layout_strategy(node))
            for child in node.children:
                self._fill(column, child, context, inner)
            return

        row = self._new(context, "et_pb_row_inner", self.style_settings(node, context), node.id)
        column["children"].append(row)
        if node.type == LayoutType.ROW:
            self._add_columns(row, node.children, context, inner=True)
            return
        row["attrs"]["column_structure"] = "4_4"
        inner_column = self._new(context, "et_pb_column_inner", {"type": "4_4"})
        row["children"].append(inner_column)
        for child in node.children:
            self._fill(inner_column, child, context, inner=True)

    def _widget(self, node: ComponentHierarchy, context: ConversionContext) -> DiviModule:
        plan = self.plan_widget(node, context)
        attrs = plan.settings
        content = attrs.pop("content", "")
        items = attrs.pop(ITEMS, None)
        module = self._new(context, plan.name, attrs, node.id)

        if not plan.is_html and node.componentType == ComponentType.HEADING:
            level = node.props.level or 2
            content = f"<h{level}>{html_lib.escape(content)}</h{level}>"
        elif plan.name == "et_pb_testimonial":
            content = f"<p>{html_lib.escape(content)}</p>"
        module["content"] = content

        if plan.name in CHILD_MODULES:
            child_type, key = CHILD_MODULES[plan.name]
            for item in items or []:
                module["children"].append(self._new(context, child_type, {key: item}))
        return module

    def style_settings(self, node, context, style_map=None) -> Dict[str, Any]:
        result = super().style_settings(node, context, style_map)
        for key, value in list(result.items()):
            if not isinstance(value, dict):
                continue
            if key.startswith(BOX_KEYS):
                sides = [value.get(side, "") for side in ("top", "right", "bottom", "left")]
                result[key] = "|".join(sides) + "|false|false"
            elif key.startswith(FONT_KEYS):
                result[key] = "|".join([value.get("family", ""), value.get("weight", ""), value.get("style", "")]) + "||||||"
        return result

    def merge_responsive(self, settings_: Dict[str, Any], mapped: Dict[str, Any], suffix: str):
        super().merge_responsive(settings_, mapped, suffix)
        for key in mapped:
            settings_[f"{key}_last_edited"] = f"on|{suffix.lstrip('_')}"

    def animation_value(self, name: str) -> str:
        return ANIMATION_STYLES.get(name, "fade")
