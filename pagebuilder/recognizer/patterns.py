"""
Recognition pattern table.

Each RecognitionPattern declares some of seven predicate kinds. A pattern
matches only when every declared predicate holds; the recognizer walks the
table by descending priority and the first match wins.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Optional, Pattern, Tuple

from pagebuilder.models import AnalyzedElement, ComponentType, ElementContext, ExtractedStyles
from pagebuilder.analyzer.styles import parse_px

PATTERN_TABLE_VERSION = "1.5.0"

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
INLINE_TEXT_TAGS = frozenset({
    "span", "strong", "em", "b", "i", "u", "s", "small", "label", "figcaption",
    "cite", "abbr", "time", "sup", "sub", "mark", "address", "dt", "dd", "td", "th",
})
CONTAINER_TAGS = frozenset({"div", "main", "article", "section", "aside", "span", "li", "figure"})

# Class-keyword component patterns only apply to these, so BEM children such as
# `hero__title` keep their own tag-based type
BLOCK_TAGS = frozenset({
    "div", "section", "article", "aside", "main", "header", "footer", "nav",
    "ul", "ol", "li", "figure", "form", "details", "dialog",
})

StylePredicate = Callable[[ExtractedStyles, AnalyzedElement], bool]
ChildPredicate = Callable[[AnalyzedElement], bool]
ContextPredicate = Callable[[ElementContext], bool]


class PredicateKind(str, Enum):
    TAG = "tag"
    CLASS = "class"
    STYLE = "style"
    CONTENT = "content"
    CHILDREN = "children"
    ROLE = "role"
    CONTEXT = "context"


def class_matches(classes, keywords) -> bool:
    """
    Token match: a plain keyword must equal one of the `-`/`_` separated
    parts of a class; a hyphenated keyword may appear anywhere in it.
    BEM element classes (`block__element`) name a part of a block, never the
    block itself, and are skipped.
    """
    for cls in classes:
        lowered = cls.lower()
        if "__" in lowered:
            continue
        parts = set(re.split(r"[-_]", lowered))
        for keyword in keywords:
            if "-" in keyword:
                if keyword in lowered:
                    return True
            elif keyword in parts:
                return True
    return False


@dataclass(frozen=True)
class RecognitionPattern:
    id: str
    component_type: ComponentType
    confidence: float
    priority: int
    tags: Optional[FrozenSet[str]] = None
    class_keywords: Optional[Tuple[str, ...]] = None
    style: Optional[StylePredicate] = None
    content: Optional[Pattern] = None
    children: Optional[ChildPredicate] = None
    roles: Optional[FrozenSet[str]] = None
    context: Optional[ContextPredicate] = None

    def declared(self) -> Tuple[PredicateKind, ...]:
        kinds = (
            (PredicateKind.TAG, self.tags),
            (PredicateKind.CLASS, self.class_keywords),
            (PredicateKind.STYLE, self.style),
            (PredicateKind.CONTENT, self.content),
            (PredicateKind.CHILDREN, self.children),
            (PredicateKind.ROLE, self.roles),
            (PredicateKind.CONTEXT, self.context),
        )
        return tuple(kind for kind, value in kinds if value is not None)

    def check(self, kind: PredicateKind, element: AnalyzedElement, context: ElementContext) -> bool:
        if kind == PredicateKind.TAG:
            return element.tagName in self.tags
        if kind == PredicateKind.CLASS:
            return class_matches(element.classes, self.class_keywords)
        if kind == PredicateKind.STYLE:
            return bool(self.style(element.styles, element))
        if kind == PredicateKind.CONTENT:
            return bool(self.content.search(element.textContent))
        if kind == PredicateKind.CHILDREN:
            return bool(self.children(element))
        if kind == PredicateKind.ROLE:
            return (element.role or "").lower() in self.roles
        if kind == PredicateKind.CONTEXT:
            return bool(self.context(context))
        raise ValueError(f"Unknown predicate kind: {kind}")

    def matches(self, element: AnalyzedElement, context: ElementContext) -> bool:
        declared = self.declared()
        return bool(declared) and all(self.check(kind, element, context) for kind in declared)


# -- Predicate helpers -------------------------------------------------------

def tags(*names: str) -> FrozenSet[str]:
    return frozenset(names)


def roles(*names: str) -> FrozenSet[str]:
    return frozenset(names)


def input_type(*types: str) -> StylePredicate:
    """Element predicate on <input type=...> (missing type means text)."""
    wanted = set(types)

    def predicate(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
        return element.attributes.get("type", "text").lower() in wanted
    return predicate


def attribute_contains(name: str, *fragments: str) -> StylePredicate:
    def predicate(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
        value = element.attributes.get(name, "").lower()
        return any(fragment in value for fragment in fragments)
    return predicate


def has_descendant(element: AnalyzedElement, names) -> bool:
    return any(node.tagName in names for node in element.walk() if node is not element)


def child_count(element: AnalyzedElement, names=None) -> int:
    return sum(1 for child in element.children if names is None or child.tagName in names)


def has_children(element: AnalyzedElement) -> bool:
    return bool(element.children)


def is_leaf_with_text(element: AnalyzedElement) -> bool:
    return not element.children and bool(element.textContent)


def is_empty(element: AnalyzedElement) -> bool:
    return not element.children and not element.textContent


COLUMN_CLASS = re.compile(r"^(?:col|column)(?:-(?:xs|sm|md|lg|xl|xxl))?(?:-\d{1,2})?$|^(?:is|w)-\d", re.IGNORECASE)


def is_column_like(element: AnalyzedElement) -> bool:
    return any(COLUMN_CLASS.match(cls) for cls in element.classes)


def all_children_columns(element: AnalyzedElement) -> bool:
    return len(element.children) >= 2 and all(is_column_like(child) for child in element.children)


def looks_like_button(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    """Three or more of: background, padding, rounded corners, pointer cursor, inline box."""
    padding = max(
        parse_px(styles.paddingTop) or 0,
        parse_px(styles.paddingLeft) or 0,
    )
    score = sum((
        bool(styles.backgroundColor),
        padding > 5,
        (parse_px(styles.borderRadius) or 0) > 0,
        styles.cursor == "pointer",
        styles.display in ("inline-block", "inline-flex", "flex"),
    ))
    return score >= 3 and len(element.textContent) <= 40


def looks_like_heading(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    size = parse_px(styles.fontSize) or 16
    weight = int(styles.fontWeight) if (styles.fontWeight or "").isdigit() else 400
    return size > 20 and weight >= 600 and 0 < len(element.textContent) <= 120


def is_grid_display(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    return (styles.display or "") in ("grid", "inline-grid")


def is_spacer_box(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    return (parse_px(styles.height) or 0) > 0 and not styles.backgroundColor and not styles.backgroundImage


def is_small_graphic(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    size = max(parse_px(styles.width) or 0, parse_px(styles.height) or 0,
               parse_px(element.attributes.get("width")) or 0, parse_px(element.attributes.get("height")) or 0)
    return size <= 64


def is_icon_font(styles: ExtractedStyles, element: AnalyzedElement) -> bool:
    return not element.textContent.strip() or len(element.textContent.strip()) <= 2


def is_card_structure(element: AnalyzedElement) -> bool:
    return (
        has_descendant(element, {"img", "picture"})
        and has_descendant(element, HEADING_TAGS)
        and has_descendant(element, {"p"})
    )


def has_icon(element: AnalyzedElement) -> bool:
    for node in element.walk():
        if node is element:
            continue
        if node.tagName in ("i", "svg") or any("icon" in cls.lower() or cls.startswith("fa-") for cls in node.classes):
            return True
        if node.tagName == "img" and "icon" in node.attributes.get("src", "").lower():
            return True
    return False


def is_feature_structure(element: AnalyzedElement) -> bool:
    """An icon plus a title (h3/h4 or a *title class) somewhere inside."""
    has_title = has_descendant(element, {"h3", "h4"}) or any(
        "title" in cls.lower() for node in element.walk() if node is not element for cls in node.classes
    )
    return has_icon(element) and has_title


def has_many_images(element: AnalyzedElement) -> bool:
    images = sum(
        1 for child in element.children
        if child.tagName in ("img", "picture") or (child.tagName in ("figure", "a", "div") and has_descendant(child, {"img"}))
    )
    return images >= 3 and images == len(element.children)


# -- Pattern table -------------------------------------------------------------

PATTERNS: Tuple[RecognitionPattern, ...] = (
    # Document root
    RecognitionPattern("body-root", ComponentType.CONTAINER, 95, 110, tags=tags("body")),

    # Layout landmarks
    RecognitionPattern(
        "hero-landmark", ComponentType.HERO, 95, 105,
        tags=tags("section", "header", "div"),
        class_keywords=("hero", "banner", "jumbotron", "masthead"),
        children=lambda e: has_descendant(e, HEADING_TAGS),
        context=lambda c: not c.insideHero,
    ),
    RecognitionPattern(
        "hero-class", ComponentType.HERO, 80, 98,
        tags=BLOCK_TAGS,
        class_keywords=("hero", "jumbotron", "masthead"),
        children=lambda e: has_descendant(e, HEADING_TAGS),
        context=lambda c: not c.insideHero,
    ),
    RecognitionPattern(
        "header-tag", ComponentType.HEADER, 95, 100,
        tags=tags("header"),
        context=lambda c: not c.insideCard and not c.insideSection,
    ),
    RecognitionPattern("header-role", ComponentType.HEADER, 90, 95, roles=roles("banner")),
    RecognitionPattern(
        "footer-tag", ComponentType.FOOTER, 95, 100,
        tags=tags("footer"),
        context=lambda c: not c.insideCard,
    ),
    RecognitionPattern("footer-role", ComponentType.FOOTER, 90, 95, roles=roles("contentinfo")),

    # Forms
    RecognitionPattern(
        "search-form", ComponentType.SEARCH_BAR, 90, 102,
        tags=tags("form", "div"),
        class_keywords=("search", "searchform", "search-form"),
    ),
    RecognitionPattern("search-role", ComponentType.SEARCH_BAR, 92, 102, roles=roles("search")),
    RecognitionPattern("form-tag", ComponentType.FORM, 95, 100, tags=tags("form")),
    RecognitionPattern("form-role", ComponentType.FORM, 90, 90, roles=roles("form")),
    RecognitionPattern(
        "form-class", ComponentType.FORM, 80, 80,
        tags=tags("div", "section"),
        class_keywords=("form", "contact-form", "signup", "register", "login"),
        children=lambda e: has_descendant(e, {"input", "textarea", "select"}),
    ),
    RecognitionPattern("submit-input", ComponentType.SUBMIT_BUTTON, 95, 97, tags=tags("input"), style=input_type("submit")),
    RecognitionPattern(
        "submit-button", ComponentType.SUBMIT_BUTTON, 92, 96,
        tags=tags("button"),
        style=lambda s, e: e.attributes.get("type", "submit").lower() == "submit",
        context=lambda c: c.insideForm,
    ),
    RecognitionPattern("search-input", ComponentType.SEARCH_BAR, 90, 96, tags=tags("input"), style=input_type("search")),
    RecognitionPattern("checkbox-input", ComponentType.CHECKBOX, 95, 95, tags=tags("input"), style=input_type("checkbox")),
    RecognitionPattern("radio-input", ComponentType.RADIO, 95, 95, tags=tags("input"), style=input_type("radio")),
    RecognitionPattern("file-input", ComponentType.FILE_UPLOAD, 95, 95, tags=tags("input"), style=input_type("file")),
    RecognitionPattern("button-input", ComponentType.BUTTON, 90, 95, tags=tags("input"), style=input_type("button", "reset")),
    RecognitionPattern("hidden-input", ComponentType.INPUT, 50, 92, tags=tags("input"), style=input_type("hidden")),
    RecognitionPattern("textarea-tag", ComponentType.TEXTAREA, 95, 95, tags=tags("textarea")),
    RecognitionPattern("select-tag", ComponentType.SELECT, 95, 95, tags=tags("select")),
    RecognitionPattern("input-tag", ComponentType.INPUT, 90, 90, tags=tags("input")),
    RecognitionPattern("checkbox-role", ComponentType.CHECKBOX, 90, 90, roles=roles("checkbox", "switch")),
    RecognitionPattern("radio-role", ComponentType.RADIO, 90, 90, roles=roles("radio")),
    RecognitionPattern("select-role", ComponentType.SELECT, 90, 90, roles=roles("combobox", "listbox")),
    RecognitionPattern(
        "dropzone-class", ComponentType.FILE_UPLOAD, 90, 90,
        tags=BLOCK_TAGS, class_keywords=("dropzone", "file-upload", "filepond", "file-drop"),
    ),

    # Navigation
    RecognitionPattern("breadcrumbs-class", ComponentType.BREADCRUMBS, 90, 99, tags=BLOCK_TAGS, class_keywords=("breadcrumb", "breadcrumbs"), children=has_children),
    RecognitionPattern(
        "breadcrumbs-label", ComponentType.BREADCRUMBS, 90, 99,
        tags=tags("nav", "ol", "ul", "div"),
        style=attribute_contains("aria-label", "breadcrumb"),
    ),
    RecognitionPattern("pagination-class", ComponentType.PAGINATION, 90, 99, tags=BLOCK_TAGS, class_keywords=("pagination", "pager", "page-numbers"), children=has_children),
    RecognitionPattern("menu-nav", ComponentType.MENU, 90, 97, tags=tags("nav")),
    RecognitionPattern("menu-role", ComponentType.MENU, 88, 96, roles=roles("navigation", "menubar", "menu")),
    RecognitionPattern(
        "menu-class", ComponentType.MENU, 80, 90,
        tags=tags("ul", "div"),
        class_keywords=("menu", "navbar", "nav", "navigation"),
    ),
    RecognitionPattern(
        "menu-list-in-nav", ComponentType.MENU, 85, 75,
        tags=tags("ul", "ol"),
        context=lambda c: c.insideNav,
    ),
    RecognitionPattern("sidebar-tag", ComponentType.SIDEBAR, 90, 96, tags=tags("aside")),
    RecognitionPattern("sidebar-class", ComponentType.SIDEBAR, 85, 94, tags=BLOCK_TAGS, class_keywords=("sidebar", "side-bar"), children=has_children),
    RecognitionPattern("sidebar-role", ComponentType.SIDEBAR, 85, 94, roles=roles("complementary")),

    # Interactive
    RecognitionPattern("modal-tag", ComponentType.MODAL, 95, 97, tags=tags("dialog")),
    RecognitionPattern("modal-role", ComponentType.MODAL, 92, 97, roles=roles("dialog", "alertdialog")),
    RecognitionPattern("modal-class", ComponentType.MODAL, 90, 96, tags=BLOCK_TAGS, class_keywords=("modal", "popup", "lightbox"), children=has_children),
    RecognitionPattern("tabs-role", ComponentType.TABS, 92, 96, roles=roles("tablist")),
    RecognitionPattern("tabs-class", ComponentType.TABS, 90, 95, tags=BLOCK_TAGS, class_keywords=("tabs", "tab-content", "nav-tabs"), children=has_children),
    RecognitionPattern("accordion-class", ComponentType.ACCORDION, 90, 95, tags=BLOCK_TAGS, class_keywords=("accordion", "faq", "collapsible"), children=has_children),
    RecognitionPattern("accordion-details", ComponentType.ACCORDION, 85, 94, tags=tags("details")),
    RecognitionPattern("carousel-class", ComponentType.CAROUSEL, 90, 95, tags=BLOCK_TAGS, class_keywords=("carousel", "swiper", "slick", "owl-carousel", "splide"), children=has_children),
    RecognitionPattern("slider-class", ComponentType.SLIDER, 85, 94, tags=BLOCK_TAGS, class_keywords=("slider", "slideshow"), children=has_children),
    RecognitionPattern("gallery-class", ComponentType.GALLERY, 90, 95, tags=BLOCK_TAGS, class_keywords=("gallery", "masonry", "lightgallery"), children=has_children),
    RecognitionPattern(
        "gallery-images", ComponentType.GALLERY, 80, 89,
        tags=tags("div", "section", "ul"),
        children=has_many_images,
    ),

    # Content blocks
    RecognitionPattern(
        "product-card-price", ComponentType.PRODUCT_CARD, 88, 94,
        tags=BLOCK_TAGS,
        class_keywords=("card", "product", "item"),
        content=re.compile(r"[$€£¥]\s?\d|\d+[.,]\d{2}\s?(?:USD|EUR|GBP)"),
        children=lambda e: has_descendant(e, {"img", "picture"}),
    ),
    RecognitionPattern("pricing-class", ComponentType.PRICING_TABLE, 90, 93, tags=BLOCK_TAGS, class_keywords=("pricing", "price-table", "pricing-table", "plan"), children=has_children),
    RecognitionPattern("testimonial-class", ComponentType.TESTIMONIAL, 90, 93, tags=BLOCK_TAGS, class_keywords=("testimonial", "testimonials", "review"), children=has_children),
    RecognitionPattern("team-class", ComponentType.TEAM_MEMBER, 85, 93, tags=BLOCK_TAGS, class_keywords=("team-member", "member", "profile-card"), children=has_children),
    RecognitionPattern("product-class", ComponentType.PRODUCT_CARD, 85, 93, tags=BLOCK_TAGS, class_keywords=("product", "product-card"), children=has_children),
    RecognitionPattern(
        "blog-card-article", ComponentType.BLOG_CARD, 85, 93,
        tags=tags("article", "div", "li"),
        class_keywords=("post", "blog", "article", "entry"),
    ),
    RecognitionPattern("cta-class", ComponentType.CTA, 85, 93, tags=BLOCK_TAGS, class_keywords=("cta", "call-to-action"), children=has_children),
    RecognitionPattern(
        "icon-box-class", ComponentType.ICON_BOX, 85, 92,
        tags=BLOCK_TAGS, class_keywords=("icon-box", "iconbox", "icon-card"),
        children=has_children,
    ),
    RecognitionPattern(
        "feature-class", ComponentType.FEATURE_BOX, 80, 91,
        tags=BLOCK_TAGS,
        class_keywords=("feature", "feature-box", "service", "benefit"),
        children=is_feature_structure,
    ),
    RecognitionPattern(
        "card-class", ComponentType.CARD, 85, 92,
        tags=tags("div", "article", "li", "section", "a"),
        class_keywords=("card", "tile", "box"),
        children=has_children,
    ),
    RecognitionPattern(
        "card-structure", ComponentType.CARD, 80, 88,
        tags=tags("div", "article", "li"),
        children=is_card_structure,
    ),
    RecognitionPattern(
        "skill-progress", ComponentType.PROGRESS_BAR, 80, 91,
        tags=BLOCK_TAGS,
        class_keywords=("skill", "skills"),
        content=re.compile(r"\d{1,3}\s?%"),
    ),
    RecognitionPattern("progress-tag", ComponentType.PROGRESS_BAR, 95, 95, tags=tags("progress", "meter")),
    RecognitionPattern("progress-role", ComponentType.PROGRESS_BAR, 92, 95, roles=roles("progressbar")),
    RecognitionPattern("progress-class", ComponentType.PROGRESS_BAR, 90, 94, tags=BLOCK_TAGS, class_keywords=("progress", "progress-bar")),
    RecognitionPattern("countdown-class", ComponentType.COUNTDOWN, 90, 95, tags=BLOCK_TAGS, class_keywords=("countdown", "timer")),
    RecognitionPattern("social-share-class", ComponentType.SOCIAL_SHARE, 88, 94, tags=BLOCK_TAGS, class_keywords=("share", "sharing", "social-share", "social-links", "social-icons"), children=has_children),
    RecognitionPattern("social-feed-class", ComponentType.SOCIAL_FEED, 85, 93, tags=BLOCK_TAGS, class_keywords=("instagram-feed", "twitter-feed", "social-feed", "feed"), children=has_children),

    # Media and embeds
    RecognitionPattern("maps-iframe", ComponentType.GOOGLE_MAPS, 95, 98, tags=tags("iframe"), style=attribute_contains("src", "google.com/maps", "maps.google")),
    RecognitionPattern("video-iframe", ComponentType.VIDEO, 95, 97, tags=tags("iframe"), style=attribute_contains("src", "youtube.com", "youtu.be", "vimeo.com")),
    RecognitionPattern("video-tag", ComponentType.VIDEO, 95, 96, tags=tags("video")),
    RecognitionPattern("maps-class", ComponentType.GOOGLE_MAPS, 85, 92, tags=BLOCK_TAGS, class_keywords=("map", "google-map", "gmap")),

    # Grid and row layout
    RecognitionPattern("row-columns", ComponentType.ROW, 90, 87, tags=tags("div", "section", "main", "article"), children=all_children_columns),
    RecognitionPattern("row-class", ComponentType.ROW, 85, 86, tags=tags("div", "section"), class_keywords=("row", "columns", "wp-block-columns")),
    RecognitionPattern("column-class", ComponentType.COLUMN, 85, 85, tags=tags("div", "section", "article", "aside"), style=lambda s, e: is_column_like(e)),
    RecognitionPattern("grid-display", ComponentType.GRID, 85, 84, style=is_grid_display, children=lambda e: len(e.children) >= 2),
    RecognitionPattern("grid-class", ComponentType.GRID, 80, 83, tags=tags("div", "section", "ul"), class_keywords=("grid",), children=has_children),

    # Data display / text formatting
    RecognitionPattern("table-tag", ComponentType.TABLE, 95, 95, tags=tags("table")),
    RecognitionPattern("blockquote-tag", ComponentType.BLOCKQUOTE, 95, 90, tags=tags("blockquote")),
    RecognitionPattern("code-pre", ComponentType.CODE_BLOCK, 95, 90, tags=tags("pre")),
    RecognitionPattern("divider-tag", ComponentType.DIVIDER, 95, 90, tags=tags("hr")),
    RecognitionPattern("divider-class", ComponentType.DIVIDER, 85, 85, class_keywords=("divider", "separator"), children=is_empty),
    RecognitionPattern("spacer-class", ComponentType.SPACER, 90, 85, tags=tags("div", "span"), class_keywords=("spacer", "gap")),

    # Basic components
    RecognitionPattern("button-tag", ComponentType.BUTTON, 95, 90, tags=tags("button")),
    RecognitionPattern("button-role", ComponentType.BUTTON, 90, 89, roles=roles("button")),
    RecognitionPattern("button-class", ComponentType.BUTTON, 85, 89, tags=tags("a", "span", "div"), class_keywords=("btn", "button", "cta-button")),
    RecognitionPattern("button-styled-link", ComponentType.BUTTON, 80, 88, tags=tags("a"), style=looks_like_button),
    RecognitionPattern("heading-tag", ComponentType.HEADING, 95, 90, tags=HEADING_TAGS),
    RecognitionPattern("heading-role", ComponentType.HEADING, 85, 87, roles=roles("heading")),
    RecognitionPattern("image-tag", ComponentType.IMAGE, 95, 90, tags=tags("img", "picture")),
    RecognitionPattern("image-figure", ComponentType.IMAGE, 85, 88, tags=tags("figure"), children=lambda e: has_descendant(e, {"img", "picture"})),
    RecognitionPattern(
        "icon-font", ComponentType.ICON, 90, 85,
        tags=tags("i", "span"),
        class_keywords=("fa", "fas", "far", "fab", "icon", "bi", "material-icons", "dashicons", "glyphicon"),
        style=is_icon_font,
    ),
    RecognitionPattern("icon-svg", ComponentType.ICON, 80, 78, tags=tags("svg"), style=is_small_graphic),
    RecognitionPattern("image-svg", ComponentType.IMAGE, 75, 77, tags=tags("svg")),
    RecognitionPattern("list-tag", ComponentType.LIST, 90, 70, tags=tags("ul", "ol", "dl")),
    RecognitionPattern("link-tag", ComponentType.LINK, 85, 60, tags=tags("a"), style=lambda s, e: bool(e.attributes.get("href"))),
    RecognitionPattern("code-inline", ComponentType.CODE_BLOCK, 80, 55, tags=tags("code")),
    RecognitionPattern("paragraph-tag", ComponentType.PARAGRAPH, 90, 50, tags=tags("p")),
    RecognitionPattern(
        "heading-styled", ComponentType.HEADING, 75, 40,
        tags=tags("div", "span", "strong", "b"),
        style=looks_like_heading,
        children=lambda e: not e.children,
    ),
    RecognitionPattern("section-tag", ComponentType.SECTION, 90, 80, tags=tags("section")),
    RecognitionPattern(
        "container-class", ComponentType.CONTAINER, 80, 79,
        tags=CONTAINER_TAGS | {"header", "footer", "nav"},
        class_keywords=("container", "wrapper", "inner", "content", "wrap"),
        children=has_children,
    ),
    RecognitionPattern("spacer-empty", ComponentType.SPACER, 75, 30, tags=tags("div"), style=is_spacer_box, children=is_empty),
    RecognitionPattern("text-inline", ComponentType.TEXT, 70, 20, tags=INLINE_TEXT_TAGS),
    RecognitionPattern("anchor-text", ComponentType.TEXT, 65, 15, tags=tags("a")),
    RecognitionPattern("container-generic", ComponentType.CONTAINER, 75, 10, tags=CONTAINER_TAGS | {"header", "footer", "nav", "form"}, children=has_children),
    RecognitionPattern("text-block", ComponentType.TEXT, 65, 5, tags=tags("div", "li", "section", "article"), children=is_leaf_with_text),
    RecognitionPattern("line-break", ComponentType.SPACER, 60, 5, tags=tags("br")),
)


def sorted_patterns(patterns=PATTERNS) -> Tuple[RecognitionPattern, ...]:
    """Descending priority; Python's sort is stable so declaration order breaks ties."""
    return tuple(sorted(patterns, key=lambda pattern: -pattern.priority))
