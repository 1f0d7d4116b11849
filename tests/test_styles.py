"""
Tests for style normalization helpers.

Run with: pytest tests/test_styles.py -v
"""
import pytest
from pydantic import ValidationError

from pagebuilder.analyzer.styles import (
    camel_to_css,
    css_to_camel,
    diff_styles,
    extract_styles,
    merge_styles,
    normalize_color,
    normalize_font_weight,
    parse_inline_style,
    parse_percent,
    parse_px,
    split_top_level,
    to_css,
)
from pagebuilder.models import ComponentProps, ExtractedStyles, ResponsiveStyles


class TestPropertyNames:
    def test_kebab_to_camel(self):
        assert css_to_camel("background-color") == "backgroundColor"
        assert css_to_camel("  font-size ") == "fontSize"

    def test_custom_properties_kept(self):
        assert css_to_camel("--brand-color") == "--brand-color"

    def test_camel_to_kebab(self):
        assert camel_to_css("backgroundColor") == "background-color"
        assert camel_to_css("color") == "color"


class TestParseInlineStyle:
    def test_empty(self):
        assert parse_inline_style(None) == {}
        assert parse_inline_style("") == {}

    def test_declarations(self):
        assert parse_inline_style("color: red; font-size:16px") == {"color": "red", "fontSize": "16px"}

    def test_important_is_stripped(self):
        assert parse_inline_style("color: red !important") == {"color": "red"}

    def test_semicolon_inside_url(self):
        style = "background-image: url(data:image/png;base64,AAA); color: blue"
        declarations = parse_inline_style(style)
        assert declarations["backgroundImage"] == "url(data:image/png;base64,AAA)"
        assert declarations["color"] == "blue"


class TestNormalizeColor:
    @pytest.mark.parametrize("value,expected", [
        ("#FFF", "#ffffff"),
        ("#AbCdEf", "#abcdef"),
        ("rgb(255, 0, 0)", "#ff0000"),
        ("rgba(0, 0, 255, 0.5)", "#0000ff80"),
        ("#112233ff", "#112233"),
        ("Red", "red"),
    ])
    def test_normalizes(self, value, expected):
        assert normalize_color(value) == expected

    @pytest.mark.parametrize("value", [None, "", "transparent", "rgba(0, 0, 0, 0)"])
    def test_transparent_is_none(self, value):
        assert normalize_color(value) is None


class TestUnits:
    def test_px(self):
        assert parse_px("12px") == 12
        assert parse_px("1.5rem") == 24
        assert parse_px("2em", base=10) == 20
        assert parse_px(8) == 8.0
        assert parse_px("14") == 14

    def test_px_rejects_keywords_and_percent(self):
        assert parse_px("auto") is None
        assert parse_px("50%") is None
        assert parse_px(None) is None

    def test_percent(self):
        assert parse_percent("50%") == 50
        assert parse_percent("12px") is None

    def test_font_weight_keywords(self):
        assert normalize_font_weight("bold") == "700"
        assert normalize_font_weight("normal") == "400"
        assert normalize_font_weight("600") == "600"
        assert normalize_font_weight(None) is None

    def test_split_top_level_keeps_functions(self):
        assert split_top_level("1px solid rgb(0, 0, 0)") == ["1px", "solid", "rgb(0, 0, 0)"]


class TestExtractStyles:
    def test_box_shorthand_expands(self):
        styles = extract_styles({"padding": "10px 20px"})
        assert styles.paddingTop == "10px"
        assert styles.paddingRight == "20px"
        assert styles.paddingBottom == "10px"
        assert styles.paddingLeft == "20px"

    def test_longhand_wins_over_shorthand(self):
        styles = extract_styles({"margin": "4px", "margin-top": "30px"})
        assert styles.marginTop == "30px"
        assert styles.marginBottom == "4px"

    def test_border_shorthand(self):
        styles = extract_styles({"border": "2px dashed #F00"})
        assert styles.borderWidth == "2px"
        assert styles.borderStyle == "dashed"
        assert styles.borderColor == "#ff0000"

    def test_background_shorthand(self):
        styles = extract_styles({"background": "#eee url('/img/bg.jpg') no-repeat"})
        assert styles.backgroundImage == "/img/bg.jpg"
        assert styles.backgroundColor == "#eeeeee"

    def test_background_image_none_dropped(self):
        assert extract_styles({"background-image": "none"}).backgroundImage is None

    def test_neutral_values_dropped(self):
        styles = extract_styles({"box-shadow": "none", "transform": "none", "opacity": "1"})
        assert styles.declared() == {}

    def test_transparent_background_dropped(self):
        assert extract_styles({"background-color": "transparent"}).backgroundColor is None

    def test_font_weight_normalized(self):
        assert extract_styles({"font-weight": "bold"}).fontWeight == "700"


class TestStyleOperations:
    def test_merge_overlays(self):
        base = ExtractedStyles(color="#000000", fontSize="16px")
        merged = merge_styles(base, ExtractedStyles(fontSize="14px"))
        assert merged.color == "#000000"
        assert merged.fontSize == "14px"

    def test_diff_ignores_reset_keywords(self):
        base = ExtractedStyles(color="#000000", fontSize="16px")
        current = ExtractedStyles(color="#ff0000", fontSize="inherit")
        assert diff_styles(base, current) == {"color": "#ff0000"}

    def test_to_css(self):
        assert to_css({"fontSize": "12px", "color": "red"}) == "font-size: 12px; color: red"


class TestStyleModels:
    def test_styles_are_immutable(self):
        styles = ExtractedStyles(color="#000000")
        with pytest.raises(ValidationError):
            styles.color = "#ffffff"

    def test_unknown_properties_ignored(self):
        assert ExtractedStyles(color="#000000", boxSizing="border-box").declared() == {"color": "#000000"}

    def test_responsive_variants_are_immutable(self):
        responsive = ResponsiveStyles(mobile=ExtractedStyles(fontSize="14px"))
        with pytest.raises(ValidationError):
            responsive.mobile = None

    def test_component_props_keep_extra_fields(self):
        props = ComponentProps(text="Hi", images=["a.png"])
        assert props.model_dump(exclude_none=True)["images"] == ["a.png"]
