"""
Component Recognizer - classifies analyzed elements against the pattern table.

Recognition is a pure function of the element, its resolved context and the
static patterns: no state is kept between calls.
"""
import logging
from typing import Dict, List, Optional

from pagebuilder.config import settings
from pagebuilder.models import (
    AnalyzedElement,
    ComponentType,
    ElementContext,
    RecognitionResult,
    RecognizedComponent,
)
from .patterns import PATTERNS, PATTERN_TABLE_VERSION, sorted_patterns
from .props import extract_props

logger = logging.getLogger(__name__)


def component_id(path: str) -> str:
    return f"component-{path}"


class ComponentRecognizer:
    """First-match classifier over a priority-ordered pattern table"""

    def __init__(self, patterns=PATTERNS):
        self.patterns = sorted_patterns(patterns)
        self.version = PATTERN_TABLE_VERSION

    def recognize(
        self,
        element: AnalyzedElement,
        context: Optional[ElementContext] = None,
        min_confidence: Optional[float] = None,
    ) -> RecognitionResult:
        """
        Classify one element.

        Returns the first matching pattern's type and confidence. Unmatched
        elements become `unknown` at confidence 0; matches below
        `min_confidence` keep their type but are marked for the safe path.
        """
        context = context or element.context
        threshold = settings.DEFAULT_MIN_CONFIDENCE if min_confidence is None else min_confidence

        for pattern in self.patterns:
            if not pattern.matches(element, context):
                continue

            if pattern.confidence < threshold:
                return RecognitionResult(
                    componentType=pattern.component_type,
                    confidence=pattern.confidence,
                    matchedPatterns=[pattern.id],
                    fallbackType=ComponentType.UNKNOWN,
                    manualReviewNeeded=True,
                    reason=f"Matched {pattern.id} below minimum confidence ({pattern.confidence:g}% < {threshold:g}%)",
                )
            return RecognitionResult(
                componentType=pattern.component_type,
                confidence=pattern.confidence,
                matchedPatterns=[pattern.id],
                reason=f"Matched {pattern.id}",
            )

        return RecognitionResult(
            componentType=ComponentType.UNKNOWN,
            confidence=0,
            manualReviewNeeded=True,
            reason="No matching pattern found",
        )

    def recognize_tree(
        self, root: AnalyzedElement, min_confidence: Optional[float] = None
    ) -> Dict[str, RecognitionResult]:
        """Recognize every element, keyed by path, filling parent/sibling context on the way down."""
        results: Dict[str, RecognitionResult] = {}
        self._recognize_node(root, root.context, results, min_confidence)

        unknown = sum(1 for r in results.values() if r.componentType == ComponentType.UNKNOWN)
        logger.info(f"Recognized {len(results)} elements ({unknown} unknown, table v{self.version})")
        return results

    def _recognize_node(
        self,
        element: AnalyzedElement,
        context: ElementContext,
        results: Dict[str, RecognitionResult],
        min_confidence: Optional[float],
    ):
        result = self.recognize(element, context, min_confidence)
        results[element.path] = result
        logger.debug(f"{element.path} <{element.tagName}> -> {result.componentType.value} ({result.confidence:g})")

        siblings: List[ComponentType] = []
        for child in element.children:
            child_context = child.context.model_copy(
                update={"parentType": result.componentType, "siblingTypes": list(siblings)}
            )
            self._recognize_node(child, child_context, results, min_confidence)
            siblings.append(results[child.path].componentType)

    def recognized_components(
        self, root: AnalyzedElement, results: Dict[str, RecognitionResult]
    ) -> List[RecognizedComponent]:
        """Flat pre-order list of recognized elements with their extracted props."""
        components = []
        parents: Dict[str, Optional[str]] = {root.path: None}
        for element in root.walk():
            for child in element.children:
                parents[child.path] = component_id(element.path)

            result = results[element.path]
            components.append(RecognizedComponent(
                id=component_id(element.path),
                elementPath=element.path,
                parentId=parents.get(element.path),
                tagName=element.tagName,
                componentType=result.componentType,
                recognition=result,
                props=extract_props(element, result.componentType),
            ))
        return components


_recognizer = None


def get_recognizer() -> ComponentRecognizer:
    global _recognizer
    if _recognizer is None:
        _recognizer = ComponentRecognizer()
    return _recognizer
