"""Services package"""
from pagebuilder.services.conversion_engine import (
    ConversionEngine,
    ConversionJob,
    PreparedPage,
    get_conversion_engine,
    set_conversion_engine,
)

__all__ = [
    "ConversionEngine",
    "ConversionJob",
    "PreparedPage",
    "get_conversion_engine",
    "set_conversion_engine",
]
