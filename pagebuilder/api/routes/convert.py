"""Conversion API routes with SSE streaming"""
from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse, ServerSentEvent
import asyncio
import json
import logging
from typing import AsyncGenerator, Union

from pagebuilder.api.models.requests import (
    ConvertAllRequest,
    ConvertAllResponse,
    ConvertRequest,
    ConvertStreamRequest
)
from pagebuilder.models import ConversionResult
from pagebuilder.services.conversion_engine import ConversionEngine, get_conversion_engine
from pagebuilder.streaming.events import ProgressCallback

logger = logging.getLogger(__name__)

router = APIRouter()

# Seconds without an event before a keepalive comment is sent
KEEPALIVE_SECONDS = 15.0


@router.post("/convert", response_model=ConversionResult)
async def convert_page(request: ConvertRequest):
    """
    Convert one page to `options.targetBuilder`.

    Malformed input (empty document, missing root) returns 422.
    """
    engine = get_conversion_engine()
    return await engine.convert(html=request.html, dom=request.dom, options=request.options)


@router.post("/convert/all", response_model=ConvertAllResponse)
async def convert_page_all_targets(request: ConvertAllRequest):
    """Convert one page to every requested target builder concurrently."""
    engine = get_conversion_engine()
    results = await engine.convert_all_targets(
        html=request.html,
        dom=request.dom,
        targets=request.targets,
        options=request.options
    )
    return ConvertAllResponse(results=results)


async def stream_conversion(
    request: ConvertStreamRequest,
    engine: ConversionEngine
) -> AsyncGenerator[Union[ServerSentEvent, dict], None]:
    """Generate SSE events for conversion progress"""
    progress = ProgressCallback()

    async def run_conversion():
        """Run conversion in background"""
        try:
            if request.targets:
                results = await engine.convert_all_targets(
                    html=request.html,
                    dom=request.dom,
                    targets=request.targets,
                    options=request.options,
                    progress=progress
                )
                payload = {"results": {name: result.model_dump(mode="json") for name, result in results.items()}}
            else:
                result = await engine.convert(
                    html=request.html,
                    dom=request.dom,
                    options=request.options,
                    progress=progress
                )
                payload = result.model_dump(mode="json")
            await progress.complete(payload)
        except Exception as e:
            logger.error(f"Streamed conversion error: {e}", exc_info=True)
            await progress.error(str(e))

    task = asyncio.create_task(run_conversion())

    try:
        async for event in progress.events(idle_timeout=KEEPALIVE_SECONDS):
            if event is None:
                yield ServerSentEvent(comment="keepalive")
                continue
            logger.debug(f"Sending SSE event: {event.event.value} - {event.message[:50]}")
            yield ServerSentEvent(event=event.event.value, data=json.dumps(event.payload()))
    finally:
        progress.close()
        if not task.done():
            task.cancel()


@router.post("/convert/stream")
async def convert_page_streaming(request: ConvertStreamRequest):
    """
    Convert a page with SSE streaming progress.

    **Event Types:**
    - `status`: Overall status messages
    - `phase`: Conversion state transitions per target
      (converting, validating, done, failed)
    - `complete`: Final ConversionResult (or `{"results": {...}}` when
      several targets were requested)
    - `error`: Error occurred

    **SSE Response:**
    ```
    event: phase
    data: {"target": "gutenberg", "message": "gutenberg: converting", "data": {"state": "converting"}}

    event: complete
    data: {"target": null, "message": "Conversion complete", "data": {...}}
    ```
    """
    engine = get_conversion_engine()

    return EventSourceResponse(
        stream_conversion(request, engine),
        media_type="text/event-stream",
        headers={
            # Disable nginx buffering for real-time streaming
            "X-Accel-Buffering": "no",
            "Cache-Control": "no-cache, no-store",
        }
    )
