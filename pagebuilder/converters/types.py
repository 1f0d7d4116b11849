"""
Native node shapes for each target builder.
"""
from typing import Dict, Any, List, Optional, TypedDict, Union


class ElementorElement(TypedDict, total=False):
    """
    One node of an Elementor document.

    Attributes:
        id: Hex element id
        elType: "section", "column" or "widget"
        widgetType: Widget name (widgets only)
        isInner: True for sections/columns nested inside a column
        settings: Widget/section settings, including responsive suffixes
        elements: Child nodes
    """
    id: str
    elType: str
    widgetType: str
    isInner: bool
    settings: Dict[str, Any]
    elements: List["ElementorElement"]


class ElementorDocument(TypedDict):
    version: str
    title: str
    type: str
    content: List[ElementorElement]
    page_settings: Dict[str, Any]


class GutenbergBlock(TypedDict, total=False):
    """
    A parsed block.

    Attributes:
        blockName: Full block name including namespace ("core/heading")
        attrs: Block comment attributes
        innerHTML: Saved markup of the block itself
        innerBlocks: Nested blocks
        innerContent: Markup fragments, with None where each inner block goes
    """
    blockName: str
    attrs: Dict[str, Any]
    innerHTML: str
    innerBlocks: List["GutenbergBlock"]
    innerContent: List[Optional[str]]


class BeaverNode(TypedDict, total=False):
    """
    Beaver Builder layout node. Parent/child relations live in `parent`
    and the export's `nodeOrder` table, never as nested objects.
    """
    node: str
    type: str            # row, column-group, column, module
    parent: Union[str, None]
    position: int
    settings: Dict[str, Any]


class BeaverExport(TypedDict):
    version: str
    nodes: Dict[str, BeaverNode]
    nodeOrder: Dict[str, List[str]]
    rootNodes: List[str]


class DiviModule(TypedDict, total=False):
    """
    One Divi shortcode.

    Attributes:
        id: Counter id used for the node map (not serialized)
        type: Shortcode tag ("et_pb_section", "et_pb_text", ...)
        attrs: Shortcode attributes (empty values are not serialized)
        content: Inner markup for leaf modules
        children: Nested shortcodes
    """
    id: str
    type: str
    attrs: Dict[str, Any]
    content: str
    children: List["DiviModule"]


class DiviExport(TypedDict):
    version: str
    modules: List[DiviModule]
    content: str


class BricksElement(TypedDict, total=False):
    id: str
    name: str
    parent: Union[str, int]
    children: List[str]
    settings: Dict[str, Any]
    label: str


class BricksExport(TypedDict):
    version: str
    elements: List[BricksElement]


class OxygenComponent(TypedDict, total=False):
    """
    Oxygen builder tree node.

    Attributes:
        id: Integer component id (ct_id)
        name: Component name ("ct_section", "ct_headline", ...)
        options: ct_id, ct_parent, selector, nicename and the `original` settings
        children: Nested components
    """
    id: int
    name: str
    options: Dict[str, Any]
    children: List["OxygenComponent"]


class OxygenExport(TypedDict):
    version: str
    ct_builder_json: OxygenComponent
    ct_builder_shortcodes: str
