"""
Tests for hierarchy building and column inference.

Run with: pytest tests/test_hierarchy.py -v
"""
from pagebuilder.analyzer import analyze_html
from pagebuilder.hierarchy import (
    AMBIGUOUS_LAYOUT,
    build_hierarchy,
    class_signal,
    partition_rows,
    resolve_sizes,
)
from pagebuilder.hierarchy.columns import EQUAL
from pagebuilder.models import ComponentType, LayoutType
from pagebuilder.recognizer import get_recognizer


def hierarchy_for(html):
    root = analyze_html(html)
    return build_hierarchy(root, get_recognizer().recognize_tree(root))


# ---------------------------------------------------------------------------
# Column signals
# ---------------------------------------------------------------------------


class TestColumnSignals:
    def test_sized_class(self):
        element = analyze_html('<div class="col-md-4">x</div>')
        assert class_signal(element) == 33.33

    def test_last_sized_class_wins(self):
        element = analyze_html('<div class="col-12 col-lg-6">x</div>')
        assert class_signal(element) == 50

    def test_bare_column_is_equal_share(self):
        assert class_signal(analyze_html('<div class="col">x</div>')) == EQUAL

    def test_no_signal(self):
        assert class_signal(analyze_html('<div class="card">x</div>')) is None

    def test_resolve_equal_shares(self):
        assert resolve_sizes([50.0, EQUAL, EQUAL]) == [50.0, 25.0, 25.0]
        assert resolve_sizes([EQUAL, EQUAL]) == [50.0, 50.0]

    def test_partition_wraps_at_full_width(self):
        assert partition_rows([50, 50, 50]) == [[0, 1], [2]]

    def test_partition_by_track_count(self):
        assert partition_rows([25, 25, 25, 25], track_count=2) == [[0, 1], [2, 3]]


# ---------------------------------------------------------------------------
# Tree building
# ---------------------------------------------------------------------------


class TestBuildHierarchy:
    def test_two_columns(self, two_column_page):
        hierarchy = two_column_page[2]
        row = hierarchy.children[0]
        assert row.type == LayoutType.ROW
        assert [column.type for column in row.children] == [LayoutType.COLUMN, LayoutType.COLUMN]
        assert [column.size for column in row.children] == [50, 50]
        assert sum(column.size for column in row.children) == 100

    def test_column_widgets(self, two_column_page):
        column = two_column_page[2].children[0].children[0]
        assert [child.componentType for child in column.children] == [
            ComponentType.HEADING,
            ComponentType.PARAGRAPH,
        ]
        assert all(child.type == LayoutType.WIDGET for child in column.children)

    def test_ambiguous_row_gets_full_width_column(self):
        hierarchy = hierarchy_for('<section><div class="row"><h2>A</h2><p>B</p></div></section>')
        row = hierarchy.children[0]
        assert row.type == LayoutType.ROW
        assert row.manualReviewNeeded
        assert row.reason == AMBIGUOUS_LAYOUT
        assert len(row.children) == 1
        assert row.children[0].size == 100
        assert len(row.children[0].children) == 2

    def test_grid_tracks_become_columns(self):
        hierarchy = hierarchy_for(
            '<section><div style="display: grid; grid-template-columns: 1fr 3fr">'
            '<p>A</p><p>B</p></div></section>'
        )
        row = hierarchy.children[0]
        assert row.type == LayoutType.ROW
        assert [column.size for column in row.children] == [25, 75]

    def test_overflowing_columns_wrap_into_rows(self):
        hierarchy = hierarchy_for(
            '<section><div class="row">'
            '<div class="col-6"><p>A</p></div><div class="col-6"><p>B</p></div>'
            '<div class="col-6"><p>C</p></div></div></section>'
        )
        wrapper = hierarchy.children[0]
        assert [child.type for child in wrapper.children] == [LayoutType.ROW, LayoutType.ROW]
        assert [len(row.children) for row in wrapper.children] == [2, 1]

    def test_widget_root_gets_synthesized_container(self):
        hierarchy = hierarchy_for("<h1>Title</h1>")
        assert hierarchy.type == LayoutType.CONTAINER
        assert hierarchy.elementPath is None
        assert hierarchy.children[0].componentType == ComponentType.HEADING

    def test_text_only_structural_tag_is_text(self):
        hierarchy = hierarchy_for("<div><section>Just words</section></div>")
        child = hierarchy.children[0]
        assert child.type == LayoutType.WIDGET
        assert child.componentType == ComponentType.TEXT

    def test_ids_unique_and_restart(self, landing_page):
        root, recognitions, hierarchy, _ = landing_page
        ids = [node.id for node in hierarchy.walk()]
        assert len(ids) == len(set(ids))
        assert ids[0] == "node_0"
        again = build_hierarchy(root, recognitions)
        assert [node.id for node in again.walk()] == ids

    def test_unknown_element_flagged(self, landing_page):
        nodes = list(landing_page[2].walk())
        unknown = [node for node in nodes if node.componentType == ComponentType.UNKNOWN]
        assert len(unknown) == 1
        assert unknown[0].manualReviewNeeded
