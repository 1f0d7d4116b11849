"""Target converters - builder-neutral hierarchy to native page-builder exports"""
from typing import Dict, Type, Union

from pagebuilder.errors import UnsupportedBuilderError
from pagebuilder.models import BuilderType

from .base import (
    BaseConverter,
    ConversionContext,
    PropertyMapping,
    Transform,
    WIDGET_TYPES,
    WidgetPlan,
    unmapped_types,
)
from .beaver import BeaverBuilderConverter
from .bricks import BricksConverter
from .divi import DiviConverter, serialize_modules
from .elementor import ElementorConverter, optimize_elementor_export, validate_elementor_export
from .fallback import FALLBACK_SUGGESTIONS, FLATTENED_LAYOUT, UNRECOGNIZED
from .gutenberg import GutenbergConverter, parse_block_markers, serialize_blocks
from .oxygen import OxygenConverter, serialize_shortcodes

CONVERTERS: Dict[BuilderType, Type[BaseConverter]] = {
    BuilderType.ELEMENTOR: ElementorConverter,
    BuilderType.GUTENBERG: GutenbergConverter,
    BuilderType.BEAVER_BUILDER: BeaverBuilderConverter,
    BuilderType.DIVI: DiviConverter,
    BuilderType.BRICKS: BricksConverter,
    BuilderType.OXYGEN: OxygenConverter,
}

# Converters hold no per-run state, so one instance per target is shared
_instances: Dict[BuilderType, BaseConverter] = {}


def get_converter(builder: Union[BuilderType, str]) -> BaseConverter:
    """Get the converter for a target builder"""
    try:
        builder_type = BuilderType(builder)
    except ValueError:
        raise UnsupportedBuilderError(str(builder))
    if builder_type not in _instances:
        _instances[builder_type] = CONVERTERS[builder_type]()
    return _instances[builder_type]


__all__ = [
    # Base
    "BaseConverter",
    "ConversionContext",
    "PropertyMapping",
    "Transform",
    "WIDGET_TYPES",
    "WidgetPlan",
    "unmapped_types",
    "FALLBACK_SUGGESTIONS",
    "FLATTENED_LAYOUT",
    "UNRECOGNIZED",
    # Targets
    "BeaverBuilderConverter",
    "BricksConverter",
    "DiviConverter",
    "ElementorConverter",
    "GutenbergConverter",
    "OxygenConverter",
    # Registry
    "CONVERTERS",
    "get_converter",
    # Format helpers
    "optimize_elementor_export",
    "parse_block_markers",
    "serialize_blocks",
    "serialize_modules",
    "serialize_shortcodes",
    "validate_elementor_export",
]
