"""
Custom code detection - flags inline and linked JS/CSS that a page builder
cannot reproduce natively.
"""
import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from pagebuilder.models import CustomCodeDetection, CustomCodeWarning, Impact, Incompatibility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LibraryRule:
    name: str
    code_pattern: Optional[str]
    url_pattern: Optional[str]
    supported: bool


@dataclass(frozen=True)
class FeatureRule:
    """
    One detectable JS/CSS feature.

    Attributes:
        name: Feature name reported in jsFeatures / cssFeatures
        pattern: Regex searched in the code
        impact: Incompatibility impact, None when the feature is only reported
        unsupported: Also listed in unsupportedFeatures
        warning: Warning text emitted when the feature is found
        critical: The warning is critical
        suggestion: Suggestion attached to the incompatibility
    """
    name: str
    pattern: str
    impact: Optional[Impact] = None
    unsupported: bool = False
    warning: Optional[str] = None
    critical: bool = False
    suggestion: str = ""


LIBRARY_RULES = [
    LibraryRule("jQuery", r"\$\(|jQuery\(", r"jquery", True),
    LibraryRule("GSAP", r"gsap\.|TweenMax|TweenLite", r"gsap", True),
    LibraryRule("React", r"React\.|ReactDOM", r"react", False),
    LibraryRule("Vue", r"new Vue\(|Vue\.", r"vue(\.min)?\.js|/vue@", False),
    LibraryRule("Angular", r"angular\.", r"angular", False),
    LibraryRule("Three.js", r"THREE\.", r"three(\.min)?\.js", False),
    LibraryRule("D3", r"\bd3\.", r"/d3(\.v\d+)?(\.min)?\.js|/d3@", False),
    LibraryRule("Bootstrap", None, r"bootstrap.*\.js", True),
    LibraryRule("Swiper", None, r"swiper", True),
    LibraryRule("Slick", None, r"slick", True),
    LibraryRule("AOS", None, r"/aos(\.min)?\.js|/aos@", True),
]

JS_RULES = [
    FeatureRule(
        "DOM Manipulation",
        r"\.innerHTML|\.appendChild\(|createElement\(|\.classList\.|\.setAttribute\(",
        impact=Impact.DEGRADED,
        unsupported=True,
        warning="Script modifies the DOM at runtime; the converted page will show the initial markup only",
        suggestion="Rebuild the dynamic content with native builder widgets",
    ),
    FeatureRule(
        "Event Listeners",
        r"addEventListener|\.on[a-z]+\s*=|\.on\(",
        impact=Impact.DEGRADED,
        unsupported=True,
        suggestion="Use the builder's interaction or popup settings instead of custom handlers",
    ),
    FeatureRule(
        "JS Animations",
        r"\.animate\(|requestAnimationFrame|setInterval|setTimeout.*animate",
        impact=Impact.DEGRADED,
        suggestion="Replace scripted animation with the builder's entrance or motion effects",
    ),
    FeatureRule(
        "Form Handling",
        r"\.submit\(|\.preventDefault\(\)|FormData|\.serialize\(",
        impact=Impact.DEGRADED,
        unsupported=True,
        suggestion="Use a native form widget or a forms plugin",
    ),
    FeatureRule(
        "AJAX/Fetch",
        r"\$\.ajax|\$\.get|\$\.post|fetch\(|axios\.|async function|await ",
        unsupported=True,
        warning="Script loads data asynchronously; that content will be missing after conversion",
        critical=True,
    ),
    FeatureRule(
        "Canvas/WebGL",
        r"getContext\(['\"](webgl2?|2d)",
        impact=Impact.BLOCKING,
        unsupported=True,
        suggestion="Export the canvas output as an image or embed it in an HTML widget",
    ),
    FeatureRule(
        "Web Workers",
        r"new Worker\(",
        impact=Impact.BLOCKING,
        unsupported=True,
        suggestion="Move background processing to a plugin or external service",
    ),
    FeatureRule(
        "WebSocket",
        r"new WebSocket\(",
        impact=Impact.DEGRADED,
        unsupported=True,
        suggestion="Embed the live feature through a dedicated plugin",
    ),
    FeatureRule(
        "Local Storage",
        r"localStorage\.|sessionStorage\.",
        impact=Impact.MINIMAL,
        warning="Script uses browser storage; saved state will not carry over",
    ),
]

CSS_RULES = [
    FeatureRule("Media Queries", r"@media"),
    FeatureRule("Pseudo-elements", r"::before|::after|::first-line|::first-letter"),
    FeatureRule("Transforms & Transitions", r"transform\s*:|transition\s*:"),
    FeatureRule("CSS Filters", r"(?<![\w-])filter\s*:|backdrop-filter\s*:"),
    FeatureRule(
        "CSS Animations",
        r"@keyframes",
        warning="Keyframe animations must be kept as custom CSS",
    ),
    FeatureRule("CSS Custom Properties", r"--[\w-]+\s*:"),
    FeatureRule("CSS Grid", r"display\s*:\s*grid"),
    FeatureRule("Flexbox", r"display\s*:\s*flex"),
    FeatureRule(
        "Vendor Prefixes",
        r"(?<![\w-])-(webkit|moz|ms|o)-",
        warning="Vendor-prefixed properties may be dropped by the builder's style controls",
    ),
    FeatureRule("Advanced Selectors", r":has\(|:is\(|:where\(", unsupported=True),
]

JS_PRESENT_PENALTY = 10
CSS_PRESENT_PENALTY = 5
IMPACT_PENALTIES = {Impact.BLOCKING: 30, Impact.DEGRADED: 15, Impact.MINIMAL: 5}
UNSUPPORTED_PENALTY = 5
MIN_CONVERTIBLE_SCORE = 50


def extract_code(html: str) -> Tuple[str, str, List[str]]:
    """Inline script text, <style> text and external script URLs."""
    soup = BeautifulSoup(html, "lxml")

    scripts: List[str] = []
    script_urls: List[str] = []
    for script in soup.find_all("script"):
        script_type = (script.get("type") or "").lower()
        if script_type and "javascript" not in script_type and script_type != "module":
            continue
        if script.get("src"):
            script_urls.append(script["src"])
        text = script.get_text()
        if text.strip():
            scripts.append(text)

    # Inline style attributes carry computed styles, not authored CSS
    styles = [style.get_text() for style in soup.find_all("style") if style.get_text().strip()]
    return "\n".join(scripts), "\n".join(styles), script_urls


class CustomCodeDetector:
    """Scans page markup for custom JS/CSS and scores its convertibility"""

    def detect(self, html: str) -> CustomCodeDetection:
        js, css, script_urls = extract_code(html or "")
        result = CustomCodeDetection(
            hasCustomJS=bool(js.strip()) or bool(script_urls),
            hasCustomCSS=bool(css.strip()),
        )

        self._detect_libraries(js, script_urls, result)
        if js:
            self._apply_rules(JS_RULES, js, result.jsFeatures, result)
        if css:
            self._apply_rules(CSS_RULES, css, result.cssFeatures, result)

        result.compatibilityScore = self._score(result)
        result.canBeConverted = (
            result.compatibilityScore >= MIN_CONVERTIBLE_SCORE
            and not any(i.impact == Impact.BLOCKING for i in result.incompatibilities)
        )

        if result.hasCustomJS or result.hasCustomCSS:
            logger.info(
                f"Custom code: libraries={result.libraries}, {len(result.incompatibilities)} incompatibilities, "
                f"score={result.compatibilityScore}"
            )
        return result

    def _detect_libraries(self, js: str, script_urls: List[str], result: CustomCodeDetection):
        for rule in LIBRARY_RULES:
            found = bool(rule.code_pattern and re.search(rule.code_pattern, js))
            if not found and rule.url_pattern:
                found = any(re.search(rule.url_pattern, url, re.IGNORECASE) for url in script_urls)
            if not found:
                continue

            result.libraries.append(rule.name)
            if not rule.supported:
                result.incompatibilities.append(Incompatibility(
                    feature=rule.name,
                    description=f"{rule.name} application code cannot run inside page builder widgets",
                    impact=Impact.BLOCKING,
                    suggestion=f"Rebuild the {rule.name} components natively or embed them as a standalone app",
                ))

    def _apply_rules(
        self,
        rules: List[FeatureRule],
        code: str,
        features: List[str],
        result: CustomCodeDetection,
    ):
        for rule in rules:
            if not re.search(rule.pattern, code):
                continue
            features.append(rule.name)
            if rule.unsupported:
                result.unsupportedFeatures.append(rule.name)
            if rule.impact is not None:
                result.incompatibilities.append(Incompatibility(
                    feature=rule.name,
                    description=f"{rule.name} has no native builder equivalent",
                    impact=rule.impact,
                    suggestion=rule.suggestion,
                ))
            if rule.warning:
                result.warnings.append(CustomCodeWarning(message=rule.warning, critical=rule.critical))

    def _score(self, result: CustomCodeDetection) -> float:
        score = 100
        if result.hasCustomJS:
            score -= JS_PRESENT_PENALTY
        if result.hasCustomCSS:
            score -= CSS_PRESENT_PENALTY
        for incompatibility in result.incompatibilities:
            score -= IMPACT_PENALTIES[incompatibility.impact]
        score -= UNSUPPORTED_PENALTY * len(result.unsupportedFeatures)
        return max(0, min(100, score))


def detect_custom_code(html: str) -> CustomCodeDetection:
    return CustomCodeDetector().detect(html)
