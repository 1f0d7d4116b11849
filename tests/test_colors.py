"""
Tests for color palette and spacing scale extraction.

Run with: pytest tests/test_colors.py -v
"""
import pytest

from pagebuilder.analyzer import analyze_html, get_color_extractor
from pagebuilder.analyzer.colors import (
    color_scheme,
    hsl,
    hue_name,
    spacing_name,
    summarize,
    to_hex,
    ColorObservation,
)


def extract(html):
    return get_color_extractor().extract(analyze_html(html))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [
        ("#0066ff", "#0066ff"),
        ("#0066ff80", "#0066ff"),
        ("White", "#ffffff"),
        ("currentcolor", None),
        ("var(--brand)", None),
        (None, None),
    ])
    def test_to_hex(self, value, expected):
        assert to_hex(value) == expected

    def test_hsl(self):
        assert hsl("#ff0000") == (0, 100, 50)
        assert hsl("#ffffff") == (0, 0, 100)
        assert hsl("#0066ff")[0] == 216

    def test_hue_name(self):
        assert hue_name(216) == "blue"
        assert hue_name(120) == "green"
        assert hue_name(350) == "red"

    @pytest.mark.parametrize("hues,expected", [
        ([], "monochromatic"),
        ([200, 210], "monochromatic"),
        ([200, 240], "analogous"),
        ([20, 200], "complementary"),
        ([0, 90], "diverse"),
    ])
    def test_color_scheme(self, hues, expected):
        assert color_scheme(hues) == expected

    def test_spacing_name(self):
        assert spacing_name(4, 8) == "2xs"
        assert spacing_name(16, 8) == "sm"
        assert spacing_name(200, 8) == "4xl"

    def test_summarize_counts_per_context(self):
        usage = summarize([
            ColorObservation("heading", (("#111111", "text"),), (16,)),
            ColorObservation("paragraph", (("#111111", "text"),), (16, 8)),
            ColorObservation("button", (("#111111", "button"),), ()),
        ])
        assert usage.color_counts() == {"#111111": 3}
        contexts = {c.type: c for c in usage.contexts("#111111")}
        assert contexts["text"].count == 2
        assert contexts["text"].components == ["heading", "paragraph"]
        assert usage.spacing_counts() == {8: 1, 16: 2}


# ---------------------------------------------------------------------------
# Spacing scale
# ---------------------------------------------------------------------------


class TestSpacingScale:
    def test_eight_point_grid(self):
        scale = get_color_extractor().spacing_scale({8: 3, 16: 2, 24: 1, 48: 1})
        assert scale.baseUnit == 8
        assert [(t.name, t.px) for t in scale.tokens] == [("xs", 8), ("sm", 16), ("md", 24), ("xl", 48)]

    def test_four_point_grid(self):
        scale = get_color_extractor().spacing_scale({4: 2, 12: 2, 10: 1})
        assert scale.baseUnit == 4

    def test_irregular_values_use_smallest(self):
        scale = get_color_extractor().spacing_scale({5: 1, 15: 1, 30: 1})
        assert scale.baseUnit == 5

    def test_step_keeps_most_used_value(self):
        scale = get_color_extractor().spacing_scale({20: 1, 24: 3})
        md = next(t for t in scale.tokens if t.name == "md")
        assert md.px == 24
        assert md.usage == 4

    def test_empty(self):
        scale = get_color_extractor().spacing_scale({})
        assert scale.baseUnit == 8
        assert scale.tokens == []


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtract:
    def test_palette_roles(self, landing_page):
        root, recognitions, _, _ = landing_page
        colors = get_color_extractor().extract(root, recognitions)
        assert [c.hex for c in colors.primary] == ["#ffffff", "#222222", "#f0f0f0"]
        assert colors.secondary == []
        assert [c.hex for c in colors.neutral] == ["#ffffff", "#222222", "#f0f0f0"]
        white = colors.primary[0]
        assert white.count == 2
        assert white.usage == 40
        assert {c.type for c in white.contexts} == {"text", "button"}

    def test_statistics(self, landing_page):
        root, recognitions, _, _ = landing_page
        stats = get_color_extractor().extract(root, recognitions).statistics
        assert stats.totalColors == 5
        assert stats.uniqueColors == 4
        assert stats.mostUsedColor == "#ffffff"
        assert stats.dominantHue == "blue"
        assert stats.colorScheme == "monochromatic"

    def test_spacing_from_margin_padding_and_gap(self, landing_page):
        root, recognitions, _, _ = landing_page
        spacing = get_color_extractor().extract(root, recognitions).spacing
        assert spacing.baseUnit == 8
        assert [(t.name, t.px) for t in spacing.tokens] == [("sm", 12), ("md", 20), ("xl", 40), ("3xl", 80)]

        gap = extract('<div style="display: flex; gap: 32px"><p>a</p></div>').spacing
        assert [t.px for t in gap.tokens] == [32]

    def test_elementor_system_colors(self):
        colors = extract(
            '<div style="background-color: #ffffff">'
            '<h1 style="color: #1a1a1a">A</h1>'
            '<p style="color: #1a1a1a">B</p>'
            '<a href="/x" style="color: #e63946">C</a>'
            '<button style="background-color: #457b9d; color: #ffffff">D</button>'
            '</div>'
        )
        picks = {c.id: c.color for c in colors.elementorGlobalColors}
        assert picks["primary"] == "#e63946"
        assert picks["secondary"] == "#457b9d"
        assert picks["text"] == "#1a1a1a"
        assert "accent" not in picks

    def test_accent_is_a_sparingly_used_vibrant_color(self):
        body = "".join(f'<p style="color: #333333">{i}</p>' for i in range(20))
        colors = extract(f'<div>{body}<span style="color: #ff6600">!</span></div>')
        assert [c.hex for c in colors.accent] == ["#ff6600"]
        assert {c.id: c.color for c in colors.elementorGlobalColors}["primary"] == "#ff6600"

    def test_no_colors(self):
        colors = extract("<div><p>Plain</p></div>")
        assert colors.primary == []
        assert colors.elementorGlobalColors == []
        assert colors.statistics.mostUsedColor is None
