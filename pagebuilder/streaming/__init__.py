"""Streaming package for SSE progress updates"""
from pagebuilder.streaming.events import EventType, ProgressEvent, ProgressCallback

__all__ = [
    "EventType",
    "ProgressEvent",
    "ProgressCallback"
]
