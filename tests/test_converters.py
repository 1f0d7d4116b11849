"""
Tests for the target converters and the html fallback.

Run with: pytest tests/test_converters.py -v
"""
import pytest

from pagebuilder.analyzer import get_color_extractor
from pagebuilder.converters import (
    CONVERTERS,
    FLATTENED_LAYOUT,
    UNRECOGNIZED,
    BaseConverter,
    get_converter,
    parse_block_markers,
    serialize_blocks,
    unmapped_types,
    validate_elementor_export,
)
from pagebuilder.converters.gutenberg import paragraph_body
from pagebuilder.errors import MalformedInputError, UnsupportedBuilderError
from pagebuilder.models import BuilderType, ComponentType, ConversionOptions, FallbackType, LayoutType

from conftest import LANDING_PAGE, prepare

ALL_TARGETS = list(BuilderType)

UNKNOWN_PAGE = "<div><h2>News</h2><marquee>Breaking</marquee></div>"

# Rows three levels deep: deeper than Divi's inner rows can express
NESTED_ROWS_PAGE = (
    '<section>'
    '<div class="row">'
    '<div class="col-6">'
    '<div class="row">'
    '<div class="col-6">'
    '<div class="row" style="padding: 10px">'
    '<div class="col-6"><p>Deepest left</p></div>'
    '<div class="col-6"><p>Deepest right</p></div>'
    '</div>'
    '</div>'
    '<div class="col-6"><p>Inner right</p></div>'
    '</div>'
    '</div>'
    '<div class="col-6"><p>Outer right</p></div>'
    '</div>'
    '</section>'
)


def convert(page, target, **options):
    root, recognitions, hierarchy, typography = page
    colors = get_color_extractor().extract(root, recognitions)
    return get_converter(target).convert(hierarchy, typography, ConversionOptions(targetBuilder=target, **options), colors)


def walk_tree(elements, children_key):
    for element in elements:
        yield element
        yield from walk_tree(element.get(children_key) or [], children_key)


def native_name(result, native_id):
    """Widget/module name emitted under `native_id` for tree-shaped targets."""
    data = result.exportData
    target = result.targetBuilder
    if target == BuilderType.ELEMENTOR:
        element = next(e for e in walk_tree(data["content"], "elements") if e["id"] == native_id)
        return element.get("widgetType") or element["elType"]
    if target == BuilderType.BEAVER_BUILDER:
        node = data["nodes"][native_id]
        return node["settings"].get("type", node["type"])
    if target == BuilderType.DIVI:
        return next(m["type"] for m in walk_tree(data["modules"], "children") if m["id"] == native_id)
    if target == BuilderType.BRICKS:
        return next(e["name"] for e in data["elements"] if e["id"] == native_id)
    if target == BuilderType.OXYGEN:
        components = walk_tree(data["ct_builder_json"]["children"], "children")
        return next(c["name"] for c in components if str(c["id"]) == native_id)
    raise ValueError(target)


def block_tree(blocks):
    return [(block["blockName"], block.get("attrs") or {}, block_tree(block.get("innerBlocks") or [])) for block in blocks]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_every_builder_registered(self):
        assert set(CONVERTERS) == set(BuilderType)

    def test_lookup_by_value(self):
        assert get_converter("gutenberg").builder == BuilderType.GUTENBERG

    def test_unknown_builder(self):
        with pytest.raises(UnsupportedBuilderError):
            get_converter("wix")

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_mapping_complete(self, target):
        assert unmapped_types(get_converter(target)) == []

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_version_reported(self, target):
        assert get_converter(target).version

    def test_version_is_abstract(self):
        assert BaseConverter.__abstractmethods__ == frozenset({"build", "version"})


# ---------------------------------------------------------------------------
# Shared behavior
# ---------------------------------------------------------------------------


class TestAllTargets:
    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_node_map_covers_hierarchy(self, landing_page, target):
        result = convert(landing_page, target)
        node_ids = {node.id for node in result.hierarchy.walk()}
        assert set(result.nodeMap) == node_ids
        assert len(set(result.nodeMap.values())) == len(node_ids)
        assert result.nodeMap[result.hierarchy.id] == "document"

    @pytest.mark.parametrize("target", ALL_TARGETS)
    @pytest.mark.parametrize("html", [LANDING_PAGE, NESTED_ROWS_PAGE], ids=["landing", "nested-rows"])
    def test_every_node_mapped_or_degraded(self, html, target):
        result = convert(prepare(html), target)
        fallback_ids = [f.nodeId for f in result.fallbacks]
        for node in result.hierarchy.walk():
            if node.id not in result.nodeMap:
                assert fallback_ids.count(node.id) == 1, node.id
        assert len(set(result.nodeMap.values())) == len(result.nodeMap)
        assert not [w for w in result.warnings if "no native counterpart" in w]

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_deterministic(self, landing_page, target):
        first = convert(landing_page, target)
        second = convert(landing_page, target)
        assert first.exportData == second.exportData
        assert first.nodeMap == second.nodeMap
        assert first.serialized == second.serialized

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_unknown_element_uses_html_widget(self, target):
        page = prepare(UNKNOWN_PAGE)
        result = convert(page, target)
        unknown = next(n for n in result.hierarchy.walk() if n.componentType == ComponentType.UNKNOWN)

        assert len(result.fallbacks) == 1
        fallback = result.fallbacks[0]
        assert fallback.nodeId == unknown.id
        assert fallback.strategy == FallbackType.HTML_WIDGET
        assert fallback.reason == UNRECOGNIZED
        assert "<marquee>" in fallback.originalHtml
        assert fallback.alternativeType is None
        assert result.stats.htmlFallbacks == 1
        assert result.manualReviewNeeded

        if target != BuilderType.GUTENBERG:
            html_target = get_converter(target).html_mapping.target
            assert native_name(result, result.nodeMap[unknown.id]) == html_target

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_fallbacks_grow_with_min_confidence(self, landing_page, target):
        counts = [
            len(convert(landing_page, target, minConfidence=threshold).fallbacks)
            for threshold in (0, 50, 80, 95, 100)
        ]
        assert counts == sorted(counts)

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_low_confidence_without_html_fallback_is_native(self, target):
        page = prepare("<div><h2>A</h2><p>B</p></div>")
        result = convert(page, target, minConfidence=100, fallbackToHTML=False)
        assert result.stats.htmlFallbacks == 0
        assert all(f.strategy == FallbackType.MANUAL_REVIEW for f in result.fallbacks)
        assert len(result.fallbacks) == 2

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_part_classes_emit_native_widgets(self, target):
        page = prepare('<div><h3 class="feature-title">Fast</h3><p class="service-text">Quick to set up</p></div>')
        result = convert(page, target)
        assert result.fallbacks == []
        assert not [w for w in result.warnings if "No explicit mapping" in w]
        assert result.stats.nativeWidgets == 2

    @pytest.mark.parametrize("target", ALL_TARGETS)
    def test_stats(self, heading_page, target):
        result = convert(heading_page, target)
        assert result.stats.totalNodes == 3
        assert result.stats.nativeWidgets == 2
        assert result.stats.htmlFallbacks == 0
        assert result.targetBuilder == target


# ---------------------------------------------------------------------------
# Gutenberg
# ---------------------------------------------------------------------------


class TestGutenberg:
    def test_heading_and_paragraph(self, heading_page):
        result = convert(heading_page, BuilderType.GUTENBERG)
        blocks = result.exportData["blocks"]
        assert [block["blockName"] for block in blocks] == ["core/heading", "core/paragraph"]
        assert blocks[0]["attrs"]["level"] == 1
        assert result.fallbacks == []
        assert not result.manualReviewNeeded

    def test_serialized_markup(self):
        result = convert(prepare("<h1>Title</h1><p>Body</p>"), BuilderType.GUTENBERG)
        assert result.serialized.startswith('<!-- wp:heading {"level":1} -->')
        assert '<h1 class="wp-block-heading">Title</h1>' in result.serialized
        assert "<!-- wp:paragraph -->\n<p>Body</p>\n<!-- /wp:paragraph -->" in result.serialized

    def test_heading_font_size(self, heading_page):
        heading = convert(heading_page, BuilderType.GUTENBERG).exportData["blocks"][0]
        assert heading["attrs"]["style"]["typography"]["fontSize"] == "32px"

    def test_text_node_paragraph_has_no_block_markup(self):
        result = convert(prepare("<section><div>Hello world</div><h2>T</h2></section>"), BuilderType.GUTENBERG)
        assert "<p>Hello world</p>" in result.serialized
        assert "<p><div" not in result.serialized

    def test_link_node_paragraph_keeps_anchor(self):
        result = convert(prepare('<div><a href="/more">Read more</a><h2>T</h2></div>'), BuilderType.GUTENBERG)
        assert '<p><a href="/more">Read more</a></p>' in result.serialized

    def test_hero_title_is_heading_block(self):
        page = prepare('<section class="hero"><h1 class="hero__title">Welcome</h1><p class="hero__text">Hello</p></section>')
        result = convert(page, BuilderType.GUTENBERG)
        assert '<h1 class="wp-block-heading">Welcome</h1>' in result.serialized
        assert "<p><h1" not in result.serialized
        assert result.fallbacks == []

    @pytest.mark.parametrize("markup,text,expected", [
        ("<p>Body</p>", "Body", "Body"),
        ("<div>Hello <strong>world</strong></div>", "Hello world", "Hello <strong>world</strong>"),
        ('<a href="/x">Go</a>', "Go", '<a href="/x">Go</a>'),
        ("<li>One<ul><li>Two</li></ul></li>", "One Two", "One Two"),
        (None, "a <b>", "a &lt;b&gt;"),
    ])
    def test_paragraph_body(self, markup, text, expected):
        assert paragraph_body(markup, text) == expected

    def test_markers_round_trip(self, landing_page):
        result = convert(landing_page, BuilderType.GUTENBERG)
        parsed = parse_block_markers(result.serialized)
        assert block_tree(parsed) == block_tree(result.exportData["blocks"])

    def test_columns(self, two_column_page):
        blocks = convert(two_column_page, BuilderType.GUTENBERG).exportData["blocks"]
        columns = blocks[0]
        assert columns["blockName"] == "core/columns"
        assert [c["blockName"] for c in columns["innerBlocks"]] == ["core/column", "core/column"]
        assert [c["attrs"]["width"] for c in columns["innerBlocks"]] == ["50%", "50%"]

    def test_button_wrapped_in_buttons(self):
        result = convert(prepare('<div><a class="btn" href="/go">Go</a></div>'), BuilderType.GUTENBERG)
        block = result.exportData["blocks"][0]
        assert block["blockName"] == "core/buttons"
        assert block["innerBlocks"][0]["blockName"] == "core/button"
        assert block["innerBlocks"][0]["attrs"]["url"] == "/go"

    def test_unknown_is_html_block(self):
        blocks = convert(prepare(UNKNOWN_PAGE), BuilderType.GUTENBERG).exportData["blocks"]
        assert blocks[1]["blockName"] == "core/html"
        assert "<marquee>" in blocks[1]["innerContent"][0]

    def test_attribute_escaping(self):
        blocks = [{"blockName": "core/paragraph", "attrs": {"note": "a --> b"}, "innerBlocks": [], "innerContent": ["<p>x</p>"]}]
        text = serialize_blocks(blocks)
        assert "-->" not in text.split("\n")[0][:-3]
        assert parse_block_markers(text)[0]["attrs"] == {"note": "a --> b"}

    @pytest.mark.parametrize("content", [
        "<!-- wp:paragraph -->\n<p>x</p>",
        "<p>x</p>\n<!-- /wp:paragraph -->",
        "<!-- wp:group -->\n<!-- wp:paragraph -->x<!-- /wp:group -->",
    ])
    def test_unbalanced_markers(self, content):
        with pytest.raises(MalformedInputError):
            parse_block_markers(content)


# ---------------------------------------------------------------------------
# Elementor
# ---------------------------------------------------------------------------


class TestElementor:
    def test_widgets_wrapped_in_section_and_column(self, heading_page):
        data = convert(heading_page, BuilderType.ELEMENTOR).exportData
        section = data["content"][0]
        assert section["elType"] == "section"
        column = section["elements"][0]
        assert column["elType"] == "column"
        assert [w["widgetType"] for w in column["elements"]] == ["heading", "text-editor"]

    def test_export_is_structurally_valid(self, landing_page):
        data = convert(landing_page, BuilderType.ELEMENTOR).exportData
        assert validate_elementor_export(data) == []

    def test_ids_are_seven_hex_digits(self, landing_page):
        result = convert(landing_page, BuilderType.ELEMENTOR)
        for element in walk_tree(result.exportData["content"], "elements"):
            assert len(element["id"]) == 7
            int(element["id"], 16)

    def test_row_columns(self, two_column_page):
        data = convert(two_column_page, BuilderType.ELEMENTOR).exportData
        rows = [e for e in walk_tree(data["content"], "elements") if e.get("settings", {}).get("structure")]
        assert rows[0]["settings"]["structure"] == "20"
        assert [c["settings"]["_column_size"] for c in rows[0]["elements"]] == [50, 50]

    def test_global_fonts_in_page_settings(self, landing_page):
        data = convert(landing_page, BuilderType.ELEMENTOR).exportData
        fonts = data["page_settings"]["system_typography"]
        assert fonts[0]["id"] == "primary"

    def test_global_colors_in_page_settings(self, landing_page):
        settings = convert(landing_page, BuilderType.ELEMENTOR).exportData["page_settings"]
        assert settings["system_colors"] == [
            {"_id": "primary", "title": "Primary", "color": "#0066ff"},
            {"_id": "text", "title": "Text", "color": "#222222"},
        ]
        assert [c["_id"] for c in settings["custom_colors"]] == ["cffffff", "cf0f0f0"]

    def test_no_colors_without_color_system(self, heading_page):
        _, _, hierarchy, typography = heading_page
        result = get_converter(BuilderType.ELEMENTOR).convert(hierarchy, typography, ConversionOptions())
        assert "system_colors" not in result.exportData["page_settings"]
        assert result.colors is None

    def test_validator_reports_misplaced_widget(self):
        data = {"version": "3.0", "content": [{"id": "a", "elType": "widget", "widgetType": "heading", "elements": []}]}
        assert validate_elementor_export(data) == ["Widget a is outside a column"]


# ---------------------------------------------------------------------------
# Other targets
# ---------------------------------------------------------------------------


class TestBeaverBuilder:
    def test_node_table(self, two_column_page):
        data = convert(two_column_page, BuilderType.BEAVER_BUILDER).exportData
        nodes = data["nodes"]
        assert len(data["rootNodes"]) == 1
        assert nodes[data["rootNodes"][0]]["type"] == "row"
        columns = [n for n in nodes.values() if n["type"] == "column"]
        assert sorted(c["settings"]["size"] for c in columns) == [50, 50]
        for node in nodes.values():
            if node["parent"]:
                assert node["node"] in data["nodeOrder"][node["parent"]]


class TestDivi:
    def test_shortcodes(self, two_column_page):
        result = convert(two_column_page, BuilderType.DIVI)
        assert result.serialized.startswith("[et_pb_section")
        assert "[et_pb_row" in result.serialized
        assert result.serialized.count("[/et_pb_section]") == 1
        assert result.exportData["content"] == result.serialized

    def test_column_structure(self, two_column_page):
        modules = convert(two_column_page, BuilderType.DIVI).exportData["modules"]
        rows = [m for m in walk_tree(modules, "children") if m["type"].startswith("et_pb_row")]
        assert any(row["attrs"]["column_structure"] == "1_2,1_2" for row in rows)

    def test_rows_below_inner_row_are_flattened_with_custom_css(self):
        result = convert(prepare(NESTED_ROWS_PAGE), BuilderType.DIVI)
        unmapped = [n for n in result.hierarchy.walk() if n.id not in result.nodeMap]
        assert unmapped
        assert all(n.is_layout for n in unmapped)

        flattened = {f.nodeId: f for f in result.fallbacks}
        assert set(flattened) == {n.id for n in unmapped}
        for fallback in flattened.values():
            assert fallback.strategy == FallbackType.CUSTOM_CSS
            assert fallback.reason == FLATTENED_LAYOUT
            assert fallback.originalHtml
        deepest_row = next(n for n in unmapped if n.type == LayoutType.ROW)
        assert "padding" in flattened[deepest_row.id].customCss

        # The flattened widgets still land in the export
        assert "Deepest left" in result.serialized
        assert "Deepest right" in result.serialized
        assert result.stats.htmlFallbacks == 0


class TestBricks:
    def test_flat_elements_with_parents(self, landing_page):
        elements = convert(landing_page, BuilderType.BRICKS).exportData["elements"]
        by_id = {element["id"]: element for element in elements}
        for element in elements:
            if element["parent"]:
                assert element["id"] in by_id[element["parent"]]["children"]
            else:
                assert element["name"] == "section"


class TestOxygen:
    def test_component_tree(self, two_column_page):
        result = convert(two_column_page, BuilderType.OXYGEN)
        root = result.exportData["ct_builder_json"]
        assert root["name"] == "root"
        assert root["children"][0]["name"] == "ct_section"
        assert result.serialized == result.exportData["ct_builder_shortcodes"]
        assert result.serialized.startswith("[ct_section")
