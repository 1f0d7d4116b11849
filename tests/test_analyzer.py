"""
Tests for the element analyzer (HTML and serialized DOM input).

Run with: pytest tests/test_analyzer.py -v
"""
import pytest

from pagebuilder.analyzer import analyze_html, analyze_node
from pagebuilder.errors import MalformedInputError


# ---------------------------------------------------------------------------
# HTML input
# ---------------------------------------------------------------------------


class TestAnalyzeHtml:
    def test_single_fragment_root(self):
        root = analyze_html('<div class="wrap"><h1>Title</h1><p>Body</p></div>')
        assert root.tagName == "div"
        assert root.path == "0"
        assert [c.tagName for c in root.children] == ["h1", "p"]
        assert [c.path for c in root.children] == ["0.0", "0.1"]

    def test_multiple_fragments_use_body(self):
        root = analyze_html("<h1>A</h1><p>B</p>")
        assert root.tagName == "body"
        assert len(root.children) == 2

    def test_document_uses_body(self):
        root = analyze_html("<html><body><div>Only</div></body></html>")
        assert root.tagName == "body"
        assert root.children[0].tagName == "div"

    def test_inline_styles_normalized(self):
        root = analyze_html('<p style="color: rgb(255, 0, 0); font-size: 18px">Red</p>')
        assert root.styles.color == "#ff0000"
        assert root.styles.fontSize == "18px"

    def test_scripts_and_styles_skipped(self):
        root = analyze_html("<div><script>var a = 1;</script><style>p{}</style><p>Text</p></div>")
        assert [c.tagName for c in root.children] == ["p"]

    def test_opaque_tags_have_no_children(self):
        root = analyze_html('<div><svg><circle r="4"></circle></svg></div>')
        assert root.children[0].tagName == "svg"
        assert root.children[0].children == []

    def test_text_collapsed(self):
        root = analyze_html("<p>  Hello \n   world  </p>")
        assert root.textContent == "Hello world"

    def test_context_propagates(self):
        root = analyze_html('<section class="hero-banner"><form><input name="q"></form></section>')
        form = root.children[0]
        field = form.children[0]
        assert form.context.insideHero
        assert form.context.insideSection
        assert field.context.insideForm
        assert field.context.depth == 2

    def test_responsive_and_state_variants(self):
        root = analyze_html(
            '<a style="color: #000" data-mobile-style="font-size: 12px" data-hover-style="color: #f00">x</a>'
        )
        assert root.responsiveStyles.mobile.fontSize == "12px"
        assert root.stateStyles.hover.color == "#ff0000"

    def test_geometry_from_data_attributes(self):
        root = analyze_html('<div data-x="10" data-width="300" data-height="oops">x</div>')
        assert root.geometry.x == 10
        assert root.geometry.width == 300
        assert root.geometry.height == 0

    @pytest.mark.parametrize("html", ["", "   ", None])
    def test_empty_document_rejected(self, html):
        with pytest.raises(MalformedInputError):
            analyze_html(html)

    def test_walk_is_preorder(self):
        root = analyze_html("<div><section><h2>A</h2></section><p>B</p></div>")
        assert [e.path for e in root.walk()] == ["0", "0.0", "0.0.0", "0.1"]


# ---------------------------------------------------------------------------
# Serialized DOM input
# ---------------------------------------------------------------------------


class TestAnalyzeNode:
    def test_viewport_keyed_styles(self):
        root = analyze_node({
            "tag": "div",
            "styles": {
                "desktop": {"font-size": "20px"},
                "mobile": {"font-size": "14px"},
                "hover": {"color": "#fff"},
            },
            "bounds": {"desktop": {"x": 0, "y": 10, "width": 800, "height": 200}},
            "children": [{"tag": "p", "text": "Hello"}],
        })
        assert root.styles.fontSize == "20px"
        assert root.responsiveStyles.mobile.fontSize == "14px"
        assert root.stateStyles.hover.color == "#ffffff"
        assert root.geometry.width == 800
        assert root.textContent == "Hello"

    def test_flat_styles(self):
        root = analyze_node({"tagName": "P", "styles": {"color": "red"}, "text": "x"})
        assert root.tagName == "p"
        assert root.styles.color == "red"
        assert root.responsiveStyles is None

    def test_markup_rendered_when_missing(self):
        root = analyze_node({"tag": "p", "attributes": {"class": "lead"}, "text": "a < b"})
        assert root.html == '<p class="lead">a &lt; b</p>'

    def test_skipped_children_do_not_consume_paths(self):
        root = analyze_node({
            "tag": "div",
            "children": [{"tag": "script"}, {"tag": "p", "text": "x"}],
        })
        assert [c.path for c in root.children] == ["0.0"]

    @pytest.mark.parametrize("node", [None, {}, {"text": "no tag"}, "div"])
    def test_missing_root_rejected(self, node):
        with pytest.raises(MalformedInputError):
            analyze_node(node)

    def test_non_object_child_rejected(self):
        with pytest.raises(MalformedInputError):
            analyze_node({"tag": "div", "children": ["oops"]})
