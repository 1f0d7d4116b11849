"""Request and response models for API endpoints"""
from pydantic import BaseModel, model_validator
from typing import Optional, Dict, Any, List

from pagebuilder.models import BuilderType, ConversionOptions, ConversionResult


class ConvertRequest(BaseModel):
    """Request to convert one page to one target builder"""
    html: Optional[str] = None
    dom: Optional[Dict[str, Any]] = None    # Serialized element tree
    options: ConversionOptions = ConversionOptions()

    @model_validator(mode="after")
    def require_input(self):
        if self.html is None and self.dom is None:
            raise ValueError("Either 'html' or 'dom' must be provided")
        return self


class ConvertAllRequest(ConvertRequest):
    """Request to convert one page to several targets (all of them by default)"""
    targets: List[BuilderType] = list(BuilderType)


class ConvertAllResponse(BaseModel):
    """Results keyed by target builder"""
    results: Dict[str, ConversionResult]


class ConvertStreamRequest(ConvertRequest):
    """Streamed conversion; several targets stream their phases interleaved"""
    targets: Optional[List[BuilderType]] = None    # None = options.targetBuilder only
