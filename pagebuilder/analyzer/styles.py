"""
Style normalization.

Turns raw CSS declarations (inline `style` attributes or computed-style
dictionaries from upstream extraction) into ExtractedStyles records.
"""
import re
import logging
from typing import Dict, Optional, Any

from pagebuilder.models import ExtractedStyles

logger = logging.getLogger(__name__)

FONT_WEIGHTS = {
    "normal": "400",
    "bold": "700",
    "bolder": "700",
    "lighter": "300",
}

COLOR_PROPS = ("color", "backgroundColor", "borderColor")

RGB_PATTERN = re.compile(
    r"rgba?\(\s*(\d+)\s*[, ]\s*(\d+)\s*[, ]\s*(\d+)(?:\s*[,/]\s*([\d.]+%?))?\s*\)",
    re.IGNORECASE,
)
URL_PATTERN = re.compile(r"url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")
HEX_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
BORDER_STYLES = {"none", "solid", "dashed", "dotted", "double", "groove", "ridge", "inset", "outset", "hidden"}


def css_to_camel(prop: str) -> str:
    """background-color -> backgroundColor"""
    prop = prop.strip()
    if prop.startswith("--"):
        return prop
    return re.sub(r"-([a-z])", lambda m: m.group(1).upper(), prop.lower())


def camel_to_css(prop: str) -> str:
    """backgroundColor -> background-color"""
    return re.sub(r"([A-Z])", r"-\1", prop).lower()


def parse_inline_style(style: Optional[str]) -> Dict[str, str]:
    """
    Split a CSS declaration list into {camelCaseProperty: value}.

    Semicolons inside parentheses (data URIs in url()) do not end a declaration.
    """
    declarations: Dict[str, str] = {}
    if not style:
        return declarations

    depth = 0
    current = []
    parts = []
    for char in style:
        if char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1
        if char == ";" and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))

    for part in parts:
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        value = value.replace("!important", "").strip()
        if prop.strip() and value:
            declarations[css_to_camel(prop)] = value
    return declarations


def normalize_color(color: Optional[str]) -> Optional[str]:
    """Convert rgb()/rgba()/short hex to lowercase #rrggbb (#rrggbbaa when translucent)."""
    if not color:
        return None
    value = color.strip()
    if value.lower() in ("transparent", "rgba(0, 0, 0, 0)", "rgba(0,0,0,0)"):
        return None

    if HEX_PATTERN.match(value):
        digits = value[1:].lower()
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 8 and digits.endswith("ff"):
            digits = digits[:6]
        return f"#{digits}"

    match = RGB_PATTERN.match(value)
    if match:
        r, g, b = (max(0, min(255, int(match.group(i)))) for i in range(1, 4))
        hex_value = f"#{r:02x}{g:02x}{b:02x}"
        alpha = match.group(4)
        if alpha is not None:
            alpha_value = float(alpha[:-1]) / 100 if alpha.endswith("%") else float(alpha)
            if alpha_value <= 0:
                return None
            if alpha_value < 1:
                hex_value += f"{round(alpha_value * 255):02x}"
        return hex_value

    return value.lower()


def normalize_font_weight(weight: Optional[str]) -> Optional[str]:
    if not weight:
        return None
    return FONT_WEIGHTS.get(weight.strip().lower(), weight.strip())


def extract_background_image(value: Optional[str]) -> Optional[str]:
    """Return the first url(...) target of a background value."""
    if not value or value.strip() == "none":
        return None
    match = URL_PATTERN.search(value)
    return match.group(1).strip() if match else None


def parse_px(value: Optional[Any], base: float = 16) -> Optional[float]:
    """
    Convert a CSS length to pixels.

    px passes through, rem/em are relative to `base`. Unitless numbers are
    taken as pixels. Percentages and keywords return None.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = re.match(r"^\s*(-?[\d.]+)\s*(px|rem|em)?\s*$", str(value).lower())
    if not match:
        return None
    try:
        number = float(match.group(1))
    except ValueError:
        return None
    unit = match.group(2)
    if unit in ("rem", "em"):
        return number * base
    return number


def parse_percent(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = re.match(r"^\s*([\d.]+)\s*%\s*$", value)
    return float(match.group(1)) if match else None


def split_top_level(value: str):
    """Split a shorthand on whitespace outside parentheses."""
    tokens, current, depth = [], [], 0
    for char in value:
        if char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1
        if char.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        tokens.append("".join(current))
    return tokens


def _expand_box(value: str) -> Dict[str, str]:
    """Expand a 1-4 value margin/padding shorthand to sides."""
    parts = split_top_level(value)
    if not parts or len(parts) > 4:
        return {}
    if len(parts) == 1:
        top = right = bottom = left = parts[0]
    elif len(parts) == 2:
        top, right = parts
        bottom, left = top, right
    elif len(parts) == 3:
        top, right, bottom = parts
        left = right
    else:
        top, right, bottom, left = parts
    return {"Top": top, "Right": right, "Bottom": bottom, "Left": left}


def _looks_like_color(token: str) -> bool:
    token = token.lower()
    return (
        token.startswith("#")
        or token.startswith("rgb")
        or token.startswith("hsl")
        or token.isalpha() and token not in BORDER_STYLES and token not in ("none", "repeat", "no-repeat", "center", "top", "bottom", "left", "right", "cover", "contain", "fixed", "scroll")
    )


def extract_styles(declarations: Optional[Dict[str, Any]]) -> ExtractedStyles:
    """
    Normalize a declaration mapping (kebab or camel keys) into ExtractedStyles.

    Shorthands for margin, padding, border and background are expanded into
    their longhand fields without overriding explicit longhands.
    """
    if not declarations:
        return ExtractedStyles()

    values: Dict[str, str] = {}
    for prop, value in declarations.items():
        if value is None or value == "":
            continue
        values[css_to_camel(prop)] = str(value).strip()

    for box in ("margin", "padding"):
        if box in values:
            for side, side_value in _expand_box(values[box]).items():
                values.setdefault(f"{box}{side}", side_value)

    if "border" in values:
        for token in split_top_level(values["border"]):
            if token.lower() in BORDER_STYLES:
                values.setdefault("borderStyle", token.lower())
            elif parse_px(token) is not None:
                values.setdefault("borderWidth", token)
            elif _looks_like_color(token):
                values.setdefault("borderColor", token)

    if "background" in values:
        background = values["background"]
        image = extract_background_image(background)
        if image:
            values.setdefault("backgroundImage", image)
        for token in split_top_level(URL_PATTERN.sub("", background)):
            if _looks_like_color(token):
                values.setdefault("backgroundColor", token)
                break
    elif "backgroundImage" in values:
        image = extract_background_image(values["backgroundImage"])
        if image:
            values["backgroundImage"] = image
        else:
            values.pop("backgroundImage")

    for prop in COLOR_PROPS:
        if prop in values:
            normalized = normalize_color(values[prop])
            if normalized:
                values[prop] = normalized
            else:
                values.pop(prop)

    if "fontWeight" in values:
        values["fontWeight"] = normalize_font_weight(values["fontWeight"])

    for prop, neutral in (("boxShadow", "none"), ("transform", "none"), ("opacity", "1")):
        if values.get(prop) == neutral:
            values.pop(prop)

    return ExtractedStyles(**values)


def merge_styles(base: ExtractedStyles, override: ExtractedStyles) -> ExtractedStyles:
    """Overlay the declared values of `override` on `base`."""
    return ExtractedStyles(**{**base.declared(), **override.declared()})


def diff_styles(base: ExtractedStyles, current: ExtractedStyles) -> Dict[str, str]:
    """Properties whose value in `current` differs from `base`."""
    base_values = base.declared()
    return {
        prop: value
        for prop, value in current.declared().items()
        if value != base_values.get(prop) and value.lower() not in ("initial", "inherit", "unset")
    }


def to_css(styles: Dict[str, str]) -> str:
    """Serialize camelCase declarations to a CSS declaration list."""
    return "; ".join(f"{camel_to_css(prop)}: {value}" for prop, value in styles.items())
