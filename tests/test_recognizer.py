"""
Tests for the pattern recognizer and prop extraction.

Run with: pytest tests/test_recognizer.py -v
"""
import pytest

from pagebuilder.analyzer import analyze_html
from pagebuilder.models import ComponentType
from pagebuilder.recognizer import (
    PATTERNS,
    ComponentRecognizer,
    PredicateKind,
    RecognitionPattern,
    class_matches,
    component_id,
    extract_props,
    get_recognizer,
)


def recognize(html, min_confidence=None):
    root = analyze_html(html)
    return get_recognizer().recognize(root, min_confidence=min_confidence)


# ---------------------------------------------------------------------------
# Pattern table
# ---------------------------------------------------------------------------


class TestPatternTable:
    def test_every_pattern_declares_a_predicate(self):
        for pattern in PATTERNS:
            assert pattern.declared(), pattern.id

    def test_pattern_ids_unique(self):
        ids = [pattern.id for pattern in PATTERNS]
        assert len(ids) == len(set(ids))

    def test_confidence_in_range(self):
        assert all(0 <= pattern.confidence <= 100 for pattern in PATTERNS)

    def test_recognizer_orders_by_priority(self):
        priorities = [pattern.priority for pattern in ComponentRecognizer().patterns]
        assert priorities == sorted(priorities, reverse=True)

    def test_declared_kinds(self):
        pattern = RecognitionPattern("x", ComponentType.BUTTON, 90, 1, tags=frozenset({"a"}), class_keywords=("btn",))
        assert pattern.declared() == (PredicateKind.TAG, PredicateKind.CLASS)

    def test_pattern_without_predicates_never_matches(self):
        pattern = RecognitionPattern("empty", ComponentType.BUTTON, 90, 1)
        element = analyze_html("<a>x</a>")
        assert not pattern.matches(element, element.context)


class TestClassMatches:
    def test_plain_keyword_matches_token(self):
        assert class_matches(["btn-primary"], ("btn",))
        assert class_matches(["main_nav"], ("nav",))

    def test_plain_keyword_does_not_match_substring(self):
        assert not class_matches(["navigation-bar"], ("nav",))
        assert not class_matches(["subtitle"], ("tile",))

    def test_hyphenated_keyword_matches_anywhere(self):
        assert class_matches(["my-icon-box-wrap"], ("icon-box",))

    def test_bem_element_classes_are_skipped(self):
        assert not class_matches(["hero__title"], ("hero",))
        assert not class_matches(["card__body"], ("card",))
        assert class_matches(["hero__title", "hero"], ("hero",))
        assert class_matches(["hero--dark"], ("hero",))


# ---------------------------------------------------------------------------
# Recognition
# ---------------------------------------------------------------------------


class TestRecognize:
    @pytest.mark.parametrize("html,expected", [
        ("<h2>Title</h2>", ComponentType.HEADING),
        ("<p>Body</p>", ComponentType.PARAGRAPH),
        ('<img src="a.png">', ComponentType.IMAGE),
        ("<button>Go</button>", ComponentType.BUTTON),
        ('<a class="btn" href="/x">Go</a>', ComponentType.BUTTON),
        ('<a href="/x">More</a>', ComponentType.LINK),
        ("<hr>", ComponentType.DIVIDER),
        ("<ul><li>A</li></ul>", ComponentType.LIST),
        ("<table><tr><td>1</td></tr></table>", ComponentType.TABLE),
        ("<blockquote>Quote</blockquote>", ComponentType.BLOCKQUOTE),
        ("<pre>code</pre>", ComponentType.CODE_BLOCK),
        ("<video src=\"v.mp4\"></video>", ComponentType.VIDEO),
        ('<iframe src="https://www.youtube.com/embed/abc"></iframe>', ComponentType.VIDEO),
        ('<iframe src="https://www.google.com/maps/embed?pb=1"></iframe>', ComponentType.GOOGLE_MAPS),
        ("<nav><a href=\"/\">Home</a></nav>", ComponentType.MENU),
        ('<div class="accordion"><div>Q</div></div>', ComponentType.ACCORDION),
        ('<div class="testimonial"><p>Great</p></div>', ComponentType.TESTIMONIAL),
        ("<select><option>A</option></select>", ComponentType.SELECT),
        ("<textarea></textarea>", ComponentType.TEXTAREA),
        ('<input type="checkbox">', ComponentType.CHECKBOX),
        ('<input type="email">', ComponentType.INPUT),
        ("<form><input></form>", ComponentType.FORM),
        ("<section><p>x</p></section>", ComponentType.SECTION),
        ('<i class="fa fa-star"></i>', ComponentType.ICON),
        ('<progress value="40" max="100"></progress>', ComponentType.PROGRESS_BAR),
    ])
    def test_component_types(self, html, expected):
        assert recognize(html).componentType == expected

    def test_unmatched_element_is_unknown(self):
        result = recognize("<marquee>Legacy</marquee>")
        assert result.componentType == ComponentType.UNKNOWN
        assert result.confidence == 0
        assert result.manualReviewNeeded
        assert result.matchedPatterns == []

    def test_matched_pattern_reported(self):
        result = recognize("<h1>Title</h1>")
        assert result.matchedPatterns == ["heading-tag"]
        assert result.confidence == 95
        assert not result.manualReviewNeeded

    def test_below_threshold_flags_review(self):
        result = recognize("<span>Label</span>", min_confidence=80)
        assert result.componentType == ComponentType.TEXT
        assert result.fallbackType == ComponentType.UNKNOWN
        assert result.manualReviewNeeded

    def test_submit_button_needs_form_context(self):
        root = analyze_html("<form><button>Send</button></form>")
        results = get_recognizer().recognize_tree(root)
        assert results["0.0"].componentType == ComponentType.SUBMIT_BUTTON

        assert recognize("<button>Send</button>").componentType == ComponentType.BUTTON

    def test_row_of_columns(self):
        result = recognize('<div><div class="col-6">A</div><div class="col-6">B</div></div>')
        assert result.componentType == ComponentType.ROW

    def test_styled_link_button(self):
        html = (
            '<a href="/go" style="background-color: #06f; padding: 12px 20px; '
            'border-radius: 4px">Start</a>'
        )
        assert recognize(html).componentType == ComponentType.BUTTON


class TestBlockClassKeywords:
    """Component class keywords name a block; its parts keep their tag-based type."""

    def test_bem_children_of_hero(self):
        root = analyze_html(
            '<section class="hero">'
            '<h1 class="hero__title">Welcome</h1>'
            '<p class="hero__text">Hello</p>'
            '<div class="hero__inner"><h2>More</h2></div>'
            '</section>'
        )
        results = get_recognizer().recognize_tree(root)
        assert results["0"].componentType == ComponentType.HERO
        assert results["0.0"].componentType == ComponentType.HEADING
        assert results["0.1"].componentType == ComponentType.PARAGRAPH
        assert results["0.2"].componentType != ComponentType.HERO

    def test_nested_hero_class_is_not_a_second_hero(self):
        root = analyze_html('<section class="hero"><div class="hero-content"><h1>Hi</h1></div></section>')
        results = get_recognizer().recognize_tree(root)
        assert results["0"].componentType == ComponentType.HERO
        assert results["0.0"].componentType != ComponentType.HERO

    @pytest.mark.parametrize("html,expected", [
        ('<h3 class="feature-title">Fast</h3>', ComponentType.HEADING),
        ('<p class="service-text">Quick to set up</p>', ComponentType.PARAGRAPH),
        ('<h3 class="pricing-plan">Pro</h3>', ComponentType.HEADING),
        ('<p class="testimonial-review">Great</p>', ComponentType.PARAGRAPH),
        ('<h4 class="countdown-title">Launching soon</h4>', ComponentType.HEADING),
        ('<img class="gallery-item" src="a.png">', ComponentType.IMAGE),
    ])
    def test_part_classes_keep_tag_type(self, html, expected):
        assert recognize(html).componentType == expected

    def test_feature_box_needs_icon_and_title(self):
        html = '<div class="feature"><i class="fa fa-bolt"></i><h3>Fast</h3><p>Quick</p></div>'
        assert recognize(html).componentType == ComponentType.FEATURE_BOX
        assert recognize('<div class="feature"><p>Only text</p></div>').componentType != ComponentType.FEATURE_BOX
        assert recognize('<div class="service"><h3>No icon</h3><p>Text</p></div>').componentType != ComponentType.FEATURE_BOX

    def test_empty_block_class_is_not_a_component(self):
        assert recognize('<div class="testimonial"></div>').componentType != ComponentType.TESTIMONIAL


class TestRecognizeTree:
    def test_every_element_has_a_result(self, landing_page):
        root, recognitions, _, _ = landing_page
        assert set(recognitions) == {element.path for element in root.walk()}

    def test_sibling_context_filled(self):
        root = analyze_html("<div><h2>A</h2><p>B</p></div>")
        recognizer = get_recognizer()
        results = recognizer.recognize_tree(root)
        assert results["0.0"].componentType == ComponentType.HEADING
        assert results["0.1"].componentType == ComponentType.PARAGRAPH

    def test_recognized_components_flat_preorder(self):
        root = analyze_html("<div><h2>A</h2><p>B</p></div>")
        recognizer = get_recognizer()
        components = recognizer.recognized_components(root, recognizer.recognize_tree(root))
        assert [c.id for c in components] == ["component-0", "component-0.0", "component-0.1"]
        assert components[0].parentId is None
        assert components[1].parentId == component_id("0")
        assert components[1].props.level == 2

    def test_deterministic(self, landing_page):
        root = landing_page[0]
        first = get_recognizer().recognize_tree(root)
        second = get_recognizer().recognize_tree(root)
        assert {k: v.model_dump() for k, v in first.items()} == {k: v.model_dump() for k, v in second.items()}


# ---------------------------------------------------------------------------
# Props
# ---------------------------------------------------------------------------


class TestExtractProps:
    def test_heading_level(self):
        element = analyze_html("<h3>Sub</h3>")
        assert extract_props(element, ComponentType.HEADING).level == 3

    def test_link_and_target(self):
        element = analyze_html('<a class="btn" href="/buy" target="_blank">Buy</a>')
        props = extract_props(element, ComponentType.BUTTON)
        assert props.href == "/buy"
        assert props.target == "_blank"
        assert props.text == "Buy"
        assert props.className == "btn"

    def test_image(self):
        element = analyze_html('<img src="/a.png" alt="A">')
        props = extract_props(element, ComponentType.IMAGE)
        assert props.src == "/a.png"
        assert props.alt == "A"

    def test_video_source_child(self):
        element = analyze_html('<video poster="p.jpg"><source src="v.mp4"></video>')
        props = extract_props(element, ComponentType.VIDEO)
        assert props.poster == "p.jpg"

    def test_list_items(self):
        element = analyze_html("<ol><li>One</li><li>Two</li></ol>")
        props = extract_props(element, ComponentType.LIST)
        assert props.items == ["One", "Two"]
        assert props.ordered is True

    def test_table_rows(self):
        element = analyze_html("<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></table>")
        assert extract_props(element, ComponentType.TABLE).rows == [["A", "B"], ["1", "2"]]

    def test_blockquote_citation(self):
        element = analyze_html("<blockquote>Great<cite>Jane</cite></blockquote>")
        assert extract_props(element, ComponentType.BLOCKQUOTE).citation == "Jane"

    def test_code_language(self):
        element = analyze_html('<pre><code class="language-python">x = 1</code></pre>')
        assert extract_props(element, ComponentType.CODE_BLOCK).language == "python"

    def test_form_input(self):
        element = analyze_html('<input type="email" name="mail" placeholder="You" required>')
        props = extract_props(element, ComponentType.INPUT)
        assert props.inputType == "email"
        assert props.name == "mail"
        assert props.placeholder == "You"
        assert props.required is True

    def test_style_and_geometry_attributes_not_data(self):
        element = analyze_html('<p data-hover-style="color: red" data-x="3" data-track="cta">x</p>')
        assert extract_props(element, ComponentType.PARAGRAPH).dataAttributes == {"data-track": "cta"}

    def test_gallery_images_extra_field(self):
        element = analyze_html('<div class="gallery"><img src="1.jpg"><img src="2.jpg"></div>')
        props = extract_props(element, ComponentType.GALLERY)
        assert props.images == ["1.jpg", "2.jpg"]
