import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    idle = "idle"
    ingesting = "ingesting"
    chunking = "chunking"
    retrieving = "retrieving"
    synthesizing = "synthesizing"
    complete = "complete"
    errored = "errored"


STATE_MESSAGES: Dict[PipelineState, str] = {
    PipelineState.ingesting: "Ingesting sources...",
    PipelineState.chunking: "Splitting documents...",
    PipelineState.retrieving: "Finding relevant info...",
    PipelineState.synthesizing: "Synthesizing research...",
    PipelineState.complete: "Research complete.",
}


class ProgressEvent(BaseModel):
    state: PipelineState
    message: str
    elapsed_ms: int
    metrics: Dict[str, int] = {}


ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]


class ProgressReporter:
    def __init__(self, callback: Optional[ProgressCallback] = None, t0: Optional[float] = None):
        self._callback = callback
        self._t0 = time.perf_counter() if t0 is None else t0
        self.events: List[ProgressEvent] = []

    async def update(self, state: PipelineState, message: Optional[str] = None,
                     metrics: Optional[Dict[str, int]] = None):
        elapsed_ms = int((time.perf_counter() - self._t0) * 1000)
        event = ProgressEvent(
            state=state,
            message=message or STATE_MESSAGES.get(state, ""),
            elapsed_ms=elapsed_ms,
            metrics=metrics or {},
        )
        logger.info("[%s] %s (%d ms)", state.value, event.message, elapsed_ms)
        self.events.append(event)
        if self._callback is not None:
            await self._callback(event)

    @property
    def states(self) -> List[PipelineState]:
        return [e.state for e in self.events]
