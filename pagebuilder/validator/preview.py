"""
Preview markup for the visual pass.

Builder exports only render inside their CMS, so the converted side of the
comparison is approximated: Gutenberg's serialized block markup is already
front-end HTML, the other targets are previewed from the hierarchy the
export was built from (layout as flex boxes, widgets as their markup).
"""
import html as html_lib
from typing import List

from pagebuilder.analyzer.styles import to_css
from pagebuilder.converters.fallback import fallback_html
from pagebuilder.models import BuilderType, ComponentHierarchy, ConversionResult, LayoutType

DOCUMENT = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>*, *::before, *::after {{ box-sizing: border-box; }} body {{ margin: 0; }}</style>
</head>
<body>
{body}
</body>
</html>"""


def _layout_css(node: ComponentHierarchy) -> str:
    declared = node.styles.declared()
    if node.type == LayoutType.ROW:
        declared.setdefault("display", "flex")
        declared.setdefault("flexWrap", "wrap")
    if node.type == LayoutType.COLUMN and node.size:
        declared.setdefault("flexBasis", f"{node.size:g}%")
        declared.setdefault("maxWidth", f"{node.size:g}%")
    return to_css(declared)


def render_node(node: ComponentHierarchy) -> str:
    if not node.is_layout:
        return fallback_html(node)

    inner = "\n".join(render_node(child) for child in node.children)
    css = _layout_css(node)
    style = f' style="{html_lib.escape(css, quote=True)}"' if css else ""
    return f'<div data-node="{node.id}"{style}>{inner}</div>'


def preview_html(result: ConversionResult, title: str = "Preview") -> str:
    """Standalone HTML document approximating how the conversion renders."""
    if result.targetBuilder == BuilderType.GUTENBERG and result.serialized:
        body = result.serialized
    else:
        parts: List[str] = [render_node(child) for child in result.hierarchy.children]
        body = "\n".join(parts)
    return DOCUMENT.format(title=html_lib.escape(title), body=body)
