"""Builder-neutral property extraction for recognized components"""
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from pagebuilder.models import AnalyzedElement, ComponentProps, ComponentType

STYLE_VARIANT_ATTR = re.compile(r"^data-(desktop|laptop|tablet|mobile|normal|hover|focus|active|before|after)-style$")
GEOMETRY_ATTRS = {"data-x", "data-y", "data-width", "data-height"}
LIST_TYPES = {ComponentType.LIST, ComponentType.MENU, ComponentType.BREADCRUMBS, ComponentType.PAGINATION}
PANEL_TYPES = {ComponentType.ACCORDION, ComponentType.TABS, ComponentType.CAROUSEL, ComponentType.SLIDER, ComponentType.GALLERY}


def find_first(element: AnalyzedElement, tags) -> Optional[AnalyzedElement]:
    """First node (self included) in pre-order whose tag is in `tags`."""
    for node in element.walk():
        if node.tagName in tags:
            return node
    return None


def _heading_level(element: AnalyzedElement) -> int:
    if re.fullmatch(r"h[1-6]", element.tagName):
        return int(element.tagName[1])
    level = element.attributes.get("aria-level", "")
    if level.isdigit() and 1 <= int(level) <= 6:
        return int(level)
    nested = find_first(element, {"h1", "h2", "h3", "h4", "h5", "h6"})
    if nested is not None and nested is not element:
        return int(nested.tagName[1])
    return 2


def _list_items(element: AnalyzedElement) -> List[str]:
    items = [node.textContent for node in element.walk() if node.tagName == "li" and node.textContent]
    if items:
        return items
    links = [node.textContent for node in element.walk() if node.tagName == "a" and node.textContent]
    if links:
        return links
    return [child.textContent for child in element.children if child.textContent]


def _select_options(element: AnalyzedElement) -> List[str]:
    soup = BeautifulSoup(element.html, "lxml")
    return [option.get_text(" ", strip=True) for option in soup.find_all("option")]


def _table_rows(element: AnalyzedElement) -> List[List[str]]:
    rows = []
    for node in element.walk():
        if node.tagName == "tr":
            rows.append([cell.textContent for cell in node.children if cell.tagName in ("td", "th")])
    return rows


def _form_fields(element: AnalyzedElement) -> List[str]:
    fields = []
    for node in element.walk():
        if node.tagName in ("input", "textarea", "select"):
            if node.attributes.get("type", "").lower() in ("submit", "button", "hidden"):
                continue
            fields.append(node.attributes.get("name") or node.attributes.get("placeholder") or node.tagName)
    return fields


def _code_language(element: AnalyzedElement) -> Optional[str]:
    for node in element.walk():
        for cls in node.classes:
            match = re.match(r"^(?:language|lang)-([\w+#-]+)$", cls)
            if match:
                return match.group(1)
    return None


def extract_props(element: AnalyzedElement, component_type: ComponentType) -> ComponentProps:
    """Pull the properties a converter needs out of an element's markup."""
    attrs = element.attributes
    values = {
        "text": element.textContent or None,
        "html": element.html,
        "className": " ".join(element.classes) or None,
        "elementId": element.id,
        "dataAttributes": {
            name: value for name, value in attrs.items()
            if name.startswith("data-") and not STYLE_VARIANT_ATTR.match(name) and name not in GEOMETRY_ATTRS
        },
        "ariaAttributes": {name: value for name, value in attrs.items() if name.startswith("aria-")},
    }

    if component_type == ComponentType.HEADING:
        values["level"] = _heading_level(element)

    link = find_first(element, {"a"})
    if link is not None and link.attributes.get("href"):
        values["href"] = link.attributes["href"]
        values["target"] = link.attributes.get("target")

    media = find_first(element, {"img", "video", "iframe", "audio", "source"})
    if media is not None:
        src = media.attributes.get("src") or media.attributes.get("data-src")
        if not src and media.tagName == "video":
            source = find_first(media, {"source"})
            src = source.attributes.get("src") if source else None
        values["src"] = src
        values["alt"] = media.attributes.get("alt")
        values["poster"] = media.attributes.get("poster")
    elif component_type == ComponentType.IMAGE and element.tagName == "picture":
        match = re.search(r"<img[^>]*\ssrc=[\"']([^\"']+)", element.html)
        values["src"] = match.group(1) if match else None

    if element.tagName in ("input", "textarea", "select", "button"):
        values["inputType"] = attrs.get("type", "text" if element.tagName == "input" else element.tagName)
        values["name"] = attrs.get("name")
        values["placeholder"] = attrs.get("placeholder")
        values["value"] = attrs.get("value")
        values["required"] = "required" in attrs

    if component_type in LIST_TYPES:
        values["items"] = _list_items(element)
        values["ordered"] = element.tagName == "ol" or find_first(element, {"ol"}) is not None
    elif component_type == ComponentType.SELECT:
        values["items"] = _select_options(element)
    elif component_type == ComponentType.FORM:
        values["items"] = _form_fields(element)
    elif component_type in PANEL_TYPES:
        values["items"] = [child.textContent for child in element.children if child.textContent]
        values["images"] = [
            node.attributes["src"] for node in element.walk()
            if node.tagName == "img" and node.attributes.get("src")
        ]
    elif component_type == ComponentType.TABLE:
        values["rows"] = _table_rows(element)
    elif component_type == ComponentType.BLOCKQUOTE:
        cite = find_first(element, {"cite", "footer"})
        values["citation"] = cite.textContent if cite is not None and cite is not element else None
    elif component_type == ComponentType.CODE_BLOCK:
        values["language"] = _code_language(element)

    return ComponentProps(**values)
