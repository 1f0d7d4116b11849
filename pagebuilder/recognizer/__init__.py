"""Component recognition - prioritized pattern table and first-match classifier"""

from .patterns import PATTERNS, PATTERN_TABLE_VERSION, PredicateKind, RecognitionPattern, class_matches
from .props import extract_props
from .recognizer import ComponentRecognizer, component_id, get_recognizer

__all__ = [
    # Patterns
    "PATTERNS",
    "PATTERN_TABLE_VERSION",
    "PredicateKind",
    "RecognitionPattern",
    "class_matches",
    # Recognition
    "ComponentRecognizer",
    "component_id",
    "extract_props",
    "get_recognizer",
]
