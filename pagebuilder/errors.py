"""
Exceptions raised by the conversion pipeline.

Only malformed input and programming errors are raised. Recoverable
conditions (low confidence, mapping gaps, layout ambiguity, validation
I/O failures) are recorded on the result instead.
"""


class PageBuilderError(Exception):
    """Base class for conversion pipeline errors."""


class MalformedInputError(PageBuilderError, ValueError):
    """The DOM input cannot be analyzed (empty document, null root, bad node shape)."""


class UnsupportedBuilderError(PageBuilderError, ValueError):
    """The requested target builder is not one of the modeled formats."""

    def __init__(self, builder: str):
        super().__init__(f"Unsupported target builder: {builder}")
        self.builder = builder


class InvalidStateTransition(PageBuilderError):
    """A conversion job was moved along an edge its state machine does not allow."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition conversion from '{current}' to '{target}'")
        self.current = current
        self.target = target
