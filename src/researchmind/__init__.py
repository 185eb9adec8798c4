"""ResearchMind: citation-grounded research reports from uploaded documents."""

from .chunker import chunk_sources
from .config import Settings, configure_logging
from .errors import (
    NoChunksError,
    NoUsableSourcesError,
    ParseError,
    PipelineBusyError,
    ResearchMindError,
    SynthesisError,
    SynthesisServiceError,
    describe_failure,
)
from .models import Chunk, Citation, ResearchOutput, ResearchSession, Source
from .pipeline import PipelineContext, ResearchRunner, run_research_pipeline
from .progress import PipelineState, ProgressReporter
from .retrieval import retrieve
from .synthesis import synthesize

__all__ = [
    "Chunk",
    "Citation",
    "NoChunksError",
    "NoUsableSourcesError",
    "ParseError",
    "PipelineBusyError",
    "PipelineContext",
    "PipelineState",
    "ProgressReporter",
    "ResearchMindError",
    "ResearchOutput",
    "ResearchRunner",
    "ResearchSession",
    "Settings",
    "Source",
    "SynthesisError",
    "SynthesisServiceError",
    "chunk_sources",
    "configure_logging",
    "describe_failure",
    "retrieve",
    "run_research_pipeline",
    "synthesize",
]
