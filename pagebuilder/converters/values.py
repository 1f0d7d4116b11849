"""Value transforms shared by the converter mapping tables"""
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from pagebuilder.analyzer.styles import parse_px

YOUTUBE_ID = re.compile(r"(?:youtube\.com/(?:embed/|watch\?v=|v/)|youtu\.be/)([\w-]{6,})")
VIMEO_ID = re.compile(r"vimeo\.com/(?:video/)?(\d+)")
PERCENT = re.compile(r"(\d{1,3}(?:\.\d+)?)\s?%")
ICON_CLASS = re.compile(r"^(?:fa[srlbd]?|fa-[\w-]+|bi|bi-[\w-]+|dashicons(?:-[\w-]+)?)$")


def youtube_id(url: str) -> Optional[str]:
    match = YOUTUBE_ID.search(url or "")
    return match.group(1) if match else None


def vimeo_id(url: str) -> Optional[str]:
    match = VIMEO_ID.search(url or "")
    return match.group(1) if match else None


def video_provider(url: str) -> str:
    if youtube_id(url):
        return "youtube"
    if vimeo_id(url):
        return "vimeo"
    return "hosted"


def map_address(src: str) -> Optional[str]:
    """Address (the `q` query) of a Google Maps embed URL."""
    query = parse_qs(urlparse(src).query)
    for key in ("q", "query", "address"):
        if query.get(key):
            return query[key][0]
    return None


def percent_from_text(text: str) -> Optional[float]:
    match = PERCENT.search(text or "")
    if not match:
        return None
    value = float(match.group(1))
    return value if value <= 100 else None


def icon_classes(class_name: str) -> Optional[str]:
    """Icon-font classes from a class list ("fas fa-star" out of "icon fas fa-star big")."""
    classes = [cls for cls in (class_name or "").split() if ICON_CLASS.match(cls)]
    return " ".join(classes) or None


def icon_library(classes: str) -> str:
    first = classes.split()[0] if classes else ""
    return {
        "fab": "fa-brands",
        "far": "fa-regular",
        "fa": "fa-solid",
        "fas": "fa-solid",
    }.get(first, "fa-solid")


def heading_tag(level: Any) -> str:
    return f"h{level}"


def size_value(value: Any, unit: str = "px") -> Optional[Dict[str, Any]]:
    """Elementor/Bricks style {unit, size} slider value."""
    if isinstance(value, str) and value.strip().endswith("%"):
        try:
            return {"unit": "%", "size": float(value.strip()[:-1])}
        except ValueError:
            return None
    px = parse_px(value)
    if px is None:
        return None
    return {"unit": unit, "size": int(px) if px.is_integer() else round(px, 2)}


def line_height_value(value: Any) -> Optional[Dict[str, Any]]:
    """Unitless line heights are em multiples."""
    text = str(value).strip()
    if re.fullmatch(r"[\d.]+", text):
        return {"unit": "em", "size": float(text)}
    return size_value(text)


def texts_to_items(texts: List[str], key: str) -> List[Dict[str, str]]:
    return [{key: text} for text in texts]
