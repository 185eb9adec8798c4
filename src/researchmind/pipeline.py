"""Research pipeline: ingest, chunk, retrieve, synthesize.

``run_research_pipeline`` is a pure function of the session it is given
plus the external calls it makes: it returns a new ``PipelineContext``
and never mutates the session. ``ResearchRunner`` owns the session store
side of a run and refuses to start two runs for one session.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from .chunker import chunk_sources
from .config import Settings
from .errors import (
    InvalidRequestError,
    NoChunksError,
    NoUsableSourcesError,
    PipelineBusyError,
    describe_failure,
)
from .grounding import verify_citations
from .models import Chunk, ResearchOutput, ResearchSession, Source
from .parsers import parse_source
from .progress import PipelineState, ProgressReporter
from .retrieval import retrieve
from .services import GeminiGenerationService, GeminiRankingService, GenerationService, RankingService
from .session_store import SessionStore
from .synthesis import synthesize

logger = logging.getLogger(__name__)

SourceParser = Callable[[Source], Awaitable[Source]]


class PipelineContext(BaseModel):
    """Snapshot of one run; each stage returns an updated copy."""
    model_config = ConfigDict(frozen=True)

    state: PipelineState = PipelineState.idle
    topic: str
    sources: List[Source] = []
    chunks: List[Chunk] = []
    selected: List[Chunk] = []
    output: Optional[ResearchOutput] = None
    error: Optional[str] = None

    def advance(self, state: PipelineState, **fields) -> "PipelineContext":
        return self.model_copy(update={"state": state, **fields})


async def _parse_isolated(source: Source, parser: SourceParser) -> Source:
    if source.status == "complete":
        return source
    try:
        return await parser(source)
    except Exception as e:
        logger.warning("Source %r failed to parse: %s", source.title, e)
        return source.model_copy(update={"status": "error", "error": str(e)})


async def ingest_sources(sources: List[Source], parser: SourceParser = parse_source) -> List[Source]:
    """Parses all sources concurrently; one failure never affects the others."""
    return list(await asyncio.gather(*(_parse_isolated(s, parser) for s in sources)))


async def run_research_pipeline(
    session: ResearchSession,
    ranker: RankingService,
    generator: GenerationService,
    *,
    parser: SourceParser = parse_source,
    settings: Optional[Settings] = None,
    progress: Optional[ProgressReporter] = None,
) -> PipelineContext:
    """
    Runs the full pipeline for ``session`` and returns the final context.

    Fatal errors (no usable sources, no chunks, synthesis failure, or anything
    unexpected) are raised unchanged after the reporter has seen the ``errored``
    state; the context reached so far is attached to the exception as ``context``.
    """
    settings = settings or Settings()
    progress = progress or ProgressReporter()

    if not session.topic.strip():
        raise InvalidRequestError("Please enter a research topic.")
    if not session.sources:
        raise InvalidRequestError("Please add at least one source.")

    ctx = PipelineContext(topic=session.topic, sources=list(session.sources))
    try:
        ctx = ctx.advance(PipelineState.ingesting)
        await progress.update(ctx.state)
        ctx = ctx.advance(ctx.state, sources=await ingest_sources(ctx.sources, parser))
        usable = [s for s in ctx.sources if s.status == "complete"]
        if not usable:
            raise NoUsableSourcesError("No sources could be processed.")

        ctx = ctx.advance(PipelineState.chunking)
        await progress.update(ctx.state, metrics={"sources": len(usable)})
        chunks = chunk_sources(usable, settings.chunk_size, settings.chunk_overlap)
        ctx = ctx.advance(ctx.state, chunks=chunks)
        if not chunks:
            raise NoChunksError("Could not extract any text from the sources.")

        ctx = ctx.advance(PipelineState.retrieving)
        await progress.update(ctx.state, metrics={"chunks": len(chunks)})
        selected = await retrieve(ctx.topic, chunks, ranker, settings.fallback_chunks)
        ctx = ctx.advance(ctx.state, selected=selected)

        ctx = ctx.advance(PipelineState.synthesizing)
        await progress.update(ctx.state, metrics={"selected": len(selected)})
        output = await synthesize(ctx.topic, selected, generator)
        grounding = verify_citations(output, settings.drop_ungrounded_citations)
        ctx = ctx.advance(PipelineState.complete, output=grounding.output)
    except Exception as e:
        message = describe_failure(e)
        e.context = ctx.advance(PipelineState.errored, error=message)
        logger.error("Pipeline failed during %s: %s", ctx.state.value, e)
        await progress.update(PipelineState.errored, message=message)
        raise

    await progress.update(PipelineState.complete, metrics={"ungrounded": len(grounding.ungrounded)})
    return ctx


class ResearchRunner:
    """
    Runs the pipeline for stored sessions, one run per session at a time.

    Parsed sources are written back after every run that got past ingestion;
    ``results`` is only replaced by a successful run.
    """

    def __init__(self, store: SessionStore, ranker: RankingService, generator: GenerationService,
                 settings: Optional[Settings] = None, parser: SourceParser = parse_source):
        self.store = store
        self.ranker = ranker
        self.generator = generator
        self.settings = settings or Settings()
        self.parser = parser
        self._running: Set[str] = set()
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResearchRunner":
        return cls(
            SessionStore(settings.sessions_path),
            GeminiRankingService.from_settings(settings),
            GeminiGenerationService.from_settings(settings),
            settings=settings,
        )

    async def is_running(self, session_id: str) -> bool:
        async with self._lock:
            return session_id in self._running

    async def run(self, session_id: str, progress: Optional[ProgressReporter] = None) -> ResearchSession:
        async with self._lock:
            if session_id in self._running:
                raise PipelineBusyError(f"A research run is already in progress for session {session_id}")
            self._running.add(session_id)

        try:
            session = await self.store.get(session_id)
            if session is None:
                raise KeyError(session_id)
            try:
                ctx = await run_research_pipeline(
                    session, self.ranker, self.generator,
                    parser=self.parser, settings=self.settings, progress=progress,
                )
            except Exception as e:
                failed = getattr(e, "context", None)
                if failed is not None and failed.sources != session.sources:
                    await self._write_back(session, sources=failed.sources)
                raise

            updated = await self._write_back(session, sources=ctx.sources, results=ctx.output)
            return updated or session.model_copy(update={"sources": ctx.sources, "results": ctx.output})
        finally:
            async with self._lock:
                self._running.discard(session_id)

    async def _write_back(self, session: ResearchSession, **fields) -> Optional[ResearchSession]:
        # Other fields may have been edited while the run was in flight.
        try:
            return await self.store.patch(session.id, **fields)
        except KeyError:
            logger.warning("Session %s was deleted during the run; results not saved", session.id)
            return None
