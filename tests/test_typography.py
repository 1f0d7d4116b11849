"""
Tests for typography extraction.

Run with: pytest tests/test_typography.py -v
"""
import pytest

from pagebuilder.analyzer import analyze_html, get_typography_extractor
from pagebuilder.analyzer.typography import (
    normalize_font_family,
    parse_weight,
    size_name,
    snap_ratio,
)


def extract(html):
    return get_typography_extractor().extract(analyze_html(html))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_font_family_first_entry(self):
        assert normalize_font_family('"Open Sans", Arial, sans-serif') == "Open Sans"
        assert normalize_font_family(None) is None

    @pytest.mark.parametrize("value,expected", [("700", 700), ("bold", 700), ("normal", 400), (None, 400)])
    def test_weight(self, value, expected):
        assert parse_weight(value) == expected

    def test_snap_ratio(self):
        assert snap_ratio(1.26) == 1.25
        assert snap_ratio(1.6) == 1.618

    def test_size_name(self):
        assert size_name(16, 16) == "base"
        assert size_name(12, 16) == "xs"
        assert size_name(200, 16) == "6xl"


# ---------------------------------------------------------------------------
# Type scale
# ---------------------------------------------------------------------------


class TestTypeScale:
    def test_base_and_ratio(self):
        scale = get_typography_extractor().type_scale({16: 3, 20: 2, 25: 1})
        assert scale.base == 16
        assert scale.ratio == 1.25
        assert [s.px for s in scale.sizes] == [16, 20, 25]
        assert [s.name for s in scale.sizes] == ["base", "lg", "2xl"]

    def test_base_is_most_used_in_band(self):
        scale = get_typography_extractor().type_scale({14: 5, 16: 2, 32: 1})
        assert scale.base == 14

    def test_no_sizes_in_band_defaults_base(self):
        scale = get_typography_extractor().type_scale({40: 1, 60: 1})
        assert scale.base == 16

    def test_empty_defaults(self):
        scale = get_typography_extractor().type_scale({})
        assert scale.base == 16
        assert scale.ratio == 1.25
        assert scale.sizes == []


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtract:
    def test_heading_style_is_first_instance(self):
        system = extract(
            '<div><h2 style="font-size: 32px">First</h2>'
            '<h2 style="font-size: 24px">Second</h2></div>'
        )
        assert system.textStyles["h2"].fontSize == 32
        assert system.textStyles["h2"].usage == 1

    def test_line_height_forms(self):
        system = extract(
            '<div><p style="font-size: 16px; line-height: 24px">a</p>'
            '<h1 style="font-size: 40px; line-height: 120%">b</h1></div>'
        )
        assert system.textStyles["body"].lineHeight == 1.5
        assert system.textStyles["h1"].lineHeight == 1.2

    def test_unobserved_styles_are_defaults(self):
        system = extract("<div><p>Plain</p></div>")
        assert system.textStyles["h1"].usage == 0
        assert system.typeScale.sizes == []
        assert system.statistics.totalFonts == 0

    def test_families_and_globals(self, landing_page):
        system = landing_page[3]
        assert set(system.fontFamilies) == {"Poppins", "Open Sans"}
        assert system.fontFamilies["Poppins"].isGoogleFont
        assert system.fontFamilies["Poppins"].usage.heading == 2
        assert system.globalSettings.baseFontFamily == "Open Sans"
        assert system.globalSettings.headingFontFamily == "Poppins"
        assert system.globalSettings.baseLineHeight == 1.6

    def test_elementor_global_fonts(self, landing_page):
        fonts = landing_page[3].elementorGlobalFonts
        assert [font.id for font in fonts] == ["primary", "secondary", "h1", "h2"]
        assert fonts[2].typography_font_size == {"unit": "px", "size": 40}

    def test_statistics(self, landing_page):
        stats = landing_page[3].statistics
        assert stats.totalFonts == 2
        assert stats.totalSizes == 3
        assert stats.scaleQuality == "excellent"
        assert not stats.hasConsistentScale
