"""Data models for analyzed elements, recognition and the builder-neutral hierarchy"""
from enum import Enum
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, ConfigDict


class ComponentType(str, Enum):
    """Semantic component kinds the recognizer can emit"""
    BUTTON = "button"
    HEADING = "heading"
    TEXT = "text"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    VIDEO = "video"
    ICON = "icon"
    SPACER = "spacer"
    DIVIDER = "divider"
    LINK = "link"
    # Layout
    CONTAINER = "container"
    SECTION = "section"
    COLUMN = "column"
    ROW = "row"
    GRID = "grid"
    CARD = "card"
    HERO = "hero"
    SIDEBAR = "sidebar"
    HEADER = "header"
    FOOTER = "footer"
    # Forms
    FORM = "form"
    INPUT = "input"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SUBMIT_BUTTON = "submit-button"
    FILE_UPLOAD = "file-upload"
    # Interactive
    ACCORDION = "accordion"
    TABS = "tabs"
    MODAL = "modal"
    CAROUSEL = "carousel"
    SLIDER = "slider"
    GALLERY = "gallery"
    # Content
    TESTIMONIAL = "testimonial"
    PRICING_TABLE = "pricing-table"
    PROGRESS_BAR = "progress-bar"
    COUNTDOWN = "countdown"
    SOCIAL_SHARE = "social-share"
    BREADCRUMBS = "breadcrumbs"
    PAGINATION = "pagination"
    TABLE = "table"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code-block"
    CTA = "cta"
    FEATURE_BOX = "feature-box"
    ICON_BOX = "icon-box"
    TEAM_MEMBER = "team-member"
    BLOG_CARD = "blog-card"
    PRODUCT_CARD = "product-card"
    SEARCH_BAR = "search-bar"
    MENU = "menu"
    GOOGLE_MAPS = "google-maps"
    SOCIAL_FEED = "social-feed"
    UNKNOWN = "unknown"


class LayoutType(str, Enum):
    """Node kinds of the builder-neutral hierarchy"""
    SECTION = "section"
    CONTAINER = "container"
    ROW = "row"
    COLUMN = "column"
    WIDGET = "widget"


# Component types that hold child components instead of absorbing them
STRUCTURAL_TYPES = frozenset({
    ComponentType.SECTION,
    ComponentType.CONTAINER,
    ComponentType.ROW,
    ComponentType.COLUMN,
    ComponentType.GRID,
    ComponentType.HERO,
    ComponentType.HEADER,
    ComponentType.FOOTER,
    ComponentType.SIDEBAR,
    ComponentType.CARD,
    ComponentType.BLOG_CARD,
    ComponentType.PRODUCT_CARD,
    ComponentType.FORM,
})


class ExtractedStyles(BaseModel):
    """Normalized computed style record for one element (camelCase CSS names)"""
    # Layout
    display: Optional[str] = None
    position: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    minWidth: Optional[str] = None
    maxWidth: Optional[str] = None
    minHeight: Optional[str] = None
    maxHeight: Optional[str] = None

    # Box model
    margin: Optional[str] = None
    marginTop: Optional[str] = None
    marginRight: Optional[str] = None
    marginBottom: Optional[str] = None
    marginLeft: Optional[str] = None
    padding: Optional[str] = None
    paddingTop: Optional[str] = None
    paddingRight: Optional[str] = None
    paddingBottom: Optional[str] = None
    paddingLeft: Optional[str] = None

    # Background
    backgroundColor: Optional[str] = None
    backgroundImage: Optional[str] = None
    backgroundSize: Optional[str] = None
    backgroundPosition: Optional[str] = None
    backgroundRepeat: Optional[str] = None

    # Border
    border: Optional[str] = None
    borderColor: Optional[str] = None
    borderWidth: Optional[str] = None
    borderStyle: Optional[str] = None
    borderRadius: Optional[str] = None

    # Typography
    color: Optional[str] = None
    fontFamily: Optional[str] = None
    fontSize: Optional[str] = None
    fontWeight: Optional[str] = None
    fontStyle: Optional[str] = None
    lineHeight: Optional[str] = None
    letterSpacing: Optional[str] = None
    textAlign: Optional[str] = None
    textTransform: Optional[str] = None
    textDecoration: Optional[str] = None

    # Flex / grid
    flexDirection: Optional[str] = None
    justifyContent: Optional[str] = None
    alignItems: Optional[str] = None
    gap: Optional[str] = None
    flexWrap: Optional[str] = None
    gridTemplateColumns: Optional[str] = None
    gridTemplateRows: Optional[str] = None

    # Effects
    opacity: Optional[str] = None
    boxShadow: Optional[str] = None
    transform: Optional[str] = None
    transition: Optional[str] = None
    animation: Optional[str] = None
    zIndex: Optional[str] = None
    overflow: Optional[str] = None
    cursor: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    def declared(self) -> Dict[str, str]:
        """Only the properties that carry a value."""
        return self.model_dump(exclude_none=True)


class ResponsiveStyles(BaseModel):
    """Per-breakpoint style variants"""
    desktop: Optional[ExtractedStyles] = None
    laptop: Optional[ExtractedStyles] = None
    tablet: Optional[ExtractedStyles] = None
    mobile: Optional[ExtractedStyles] = None
    custom: Dict[str, ExtractedStyles] = {}

    model_config = ConfigDict(frozen=True)


class StateStyles(BaseModel):
    """Interactive-state and pseudo-element style variants"""
    normal: Optional[ExtractedStyles] = None
    hover: Optional[ExtractedStyles] = None
    focus: Optional[ExtractedStyles] = None
    active: Optional[ExtractedStyles] = None
    before: Optional[ExtractedStyles] = None
    after: Optional[ExtractedStyles] = None

    model_config = ConfigDict(frozen=True)


class ElementContext(BaseModel):
    """Where an element sits in the page"""
    insideHero: bool = False
    insideForm: bool = False
    insideCard: bool = False
    insideNav: bool = False
    insideHeader: bool = False
    insideFooter: bool = False
    insideSection: bool = False
    depth: int = 0
    parentType: Optional[ComponentType] = None
    siblingTypes: List[ComponentType] = []

    model_config = ConfigDict(frozen=True)


class Geometry(BaseModel):
    """Bounding box at the desktop viewport"""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    model_config = ConfigDict(frozen=True)


class AnalyzedElement(BaseModel):
    """
    One DOM node with its normalized styles and context.

    `path` is the dotted child-index path from the analyzed root ("0" for the
    root, "0.2.1" for the second child of its third child) and is the
    element's identity for the rest of the pipeline.
    """
    path: str
    tagName: str
    id: Optional[str] = None
    classes: List[str] = []
    attributes: Dict[str, str] = {}
    textContent: str = ""
    html: str = ""
    styles: ExtractedStyles = ExtractedStyles()
    responsiveStyles: Optional[ResponsiveStyles] = None
    stateStyles: Optional[StateStyles] = None
    context: ElementContext = ElementContext()
    geometry: Geometry = Geometry()
    children: List["AnalyzedElement"] = []

    model_config = ConfigDict(frozen=True)

    def walk(self):
        """Yield this element and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def role(self) -> Optional[str]:
        return self.attributes.get("role")


class RecognitionResult(BaseModel):
    """Outcome of classifying a single element"""
    componentType: ComponentType
    confidence: float
    matchedPatterns: List[str] = []
    fallbackType: Optional[ComponentType] = None
    manualReviewNeeded: bool = False
    reason: str = ""


class ComponentProps(BaseModel):
    """Builder-neutral component properties extracted from markup"""
    # Content
    text: Optional[str] = None
    html: Optional[str] = None
    level: Optional[int] = None

    # Links
    href: Optional[str] = None
    target: Optional[str] = None

    # Media
    src: Optional[str] = None
    alt: Optional[str] = None
    poster: Optional[str] = None

    # Form
    inputType: Optional[str] = None
    name: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    required: Optional[bool] = None

    # Collections
    items: Optional[List[str]] = None
    ordered: Optional[bool] = None
    rows: Optional[List[List[str]]] = None

    # Quotes / code
    citation: Optional[str] = None
    language: Optional[str] = None

    # References
    className: Optional[str] = None
    elementId: Optional[str] = None
    dataAttributes: Dict[str, str] = {}
    ariaAttributes: Dict[str, str] = {}

    model_config = ConfigDict(extra="allow")


class RecognizedComponent(BaseModel):
    """Flat record of one recognized element, in document pre-order"""
    id: str
    elementPath: str
    parentId: Optional[str] = None
    tagName: str
    componentType: ComponentType
    recognition: RecognitionResult
    props: ComponentProps = ComponentProps()


class ComponentHierarchy(BaseModel):
    """
    Builder-neutral IR node consumed by every target converter.

    Synthesized nodes (page wrapper, implied rows and columns) have no
    elementPath.
    """
    id: str
    type: LayoutType
    componentType: ComponentType
    confidence: float = 100
    manualReviewNeeded: bool = False
    reason: str = ""
    elementPath: Optional[str] = None
    size: Optional[float] = None
    props: ComponentProps = ComponentProps()
    styles: ExtractedStyles = ExtractedStyles()
    responsiveStyles: Optional[ResponsiveStyles] = None
    children: List["ComponentHierarchy"] = []

    def walk(self):
        """Yield this node and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def is_layout(self) -> bool:
        return self.type != LayoutType.WIDGET


AnalyzedElement.model_rebuild()
ComponentHierarchy.model_rebuild()
