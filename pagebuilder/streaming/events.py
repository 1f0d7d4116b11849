"""Progress events emitted while a page is converted, consumed by the SSE route"""
from enum import Enum
from typing import AsyncIterator, Optional
from pydantic import BaseModel
import asyncio


class EventType(str, Enum):
    STATUS = "status"       # analysis started, targets resolved
    PHASE = "phase"         # ConversionJob state change for one target
    COMPLETE = "complete"   # final ConversionResult payload
    ERROR = "error"


TERMINAL_EVENTS = (EventType.COMPLETE, EventType.ERROR)


class ProgressEvent(BaseModel):
    event: EventType
    target: Optional[str] = None
    message: str
    data: Optional[dict] = None

    @property
    def terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS

    def payload(self) -> dict:
        """JSON body of the SSE `data:` line."""
        body = {"target": self.target, "message": self.message}
        if self.data:
            body["data"] = self.data
        return body


class ProgressCallback:
    """
    Queue of conversion progress events.

    The engine pushes `status` and per-target `phase` events while it works;
    the streaming route drains them with `events()`. Nothing is queued after
    `complete`, `error` or `close`.
    """

    def __init__(self):
        self.queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self._closed = False

    async def emit(
        self,
        event: EventType,
        message: str,
        target: Optional[str] = None,
        data: Optional[dict] = None
    ):
        if self._closed:
            return
        await self.queue.put(ProgressEvent(event=event, target=target, message=message, data=data))
        if event in TERMINAL_EVENTS:
            self._closed = True

    async def status(self, message: str, data: Optional[dict] = None):
        await self.emit(EventType.STATUS, message, data=data)

    async def phase(self, state: str, target: Optional[str] = None):
        message = f"{target}: {state}" if target else state
        await self.emit(EventType.PHASE, message, target, {"state": state})

    async def complete(self, result: dict):
        await self.emit(EventType.COMPLETE, "Conversion complete", data=result)

    async def error(self, message: str, target: Optional[str] = None):
        await self.emit(EventType.ERROR, message, target)

    def close(self):
        self._closed = True

    async def events(self, idle_timeout: float) -> AsyncIterator[Optional[ProgressEvent]]:
        """
        Yield queued events until a terminal one is seen.

        Yields None whenever `idle_timeout` seconds pass without an event so
        the caller can keep the connection alive.
        """
        while True:
            try:
                event = await asyncio.wait_for(self.queue.get(), timeout=idle_timeout)
            except asyncio.TimeoutError:
                yield None
                continue
            yield event
            if event.terminal:
                return
