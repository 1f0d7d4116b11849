"""API models package"""
from pagebuilder.api.models.requests import (
    ConvertRequest,
    ConvertAllRequest,
    ConvertAllResponse,
    ConvertStreamRequest
)

__all__ = [
    "ConvertRequest",
    "ConvertAllRequest",
    "ConvertAllResponse",
    "ConvertStreamRequest"
]
