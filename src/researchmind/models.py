from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Field names follow the JSON shape shared with the generation service and
# the session file, hence camelCase.

SourceType = Literal["pdf", "docx", "text", "pasted", "ppt"]
SourceStatus = Literal["pending", "ingesting", "complete", "error"]


class Source(BaseModel):
    """A document added to a research session."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: SourceType
    title: str
    content: str = ""
    status: SourceStatus = "pending"
    path: Optional[str] = None
    # Character offsets where each page starts; set by page-aware parsers.
    pageBreaks: Optional[List[int]] = None
    error: Optional[str] = None


class ChunkMetadata(BaseModel):
    sourceTitle: str
    page: Optional[int] = None


class Chunk(BaseModel):
    """A fixed-size window of a source's text."""
    id: str
    sourceId: str
    content: str
    metadata: ChunkMetadata


class Citation(BaseModel):
    sourceTitle: str
    text: str
    page: Optional[int] = None
    # Set by the grounding pass, None until verified.
    grounded: Optional[bool] = None


# --- Report shape returned by the generation service ---

class ShortSummary(BaseModel):
    content: str
    citations: List[Citation]


class CitedItem(BaseModel):
    content: str
    citation: Citation


class NextStep(BaseModel):
    content: str
    explanation: str


class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    correctAnswer: str
    explanation: str
    citation: Citation


class ResearchReport(BaseModel):
    """The structured report as produced by the generation service."""
    model_config = ConfigDict(extra="ignore")

    shortSummary: ShortSummary
    extendedSummary: str
    insights: List[CitedItem]
    quotes: List[CitedItem]
    nextSteps: List[NextStep]
    quiz: List[QuizQuestion]


class ResearchOutput(ResearchReport):
    """A report plus the evidence set it was generated from."""
    evidenceChunks: List[Chunk]


class ResearchSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    topic: str = ""
    sources: List[Source] = []
    results: Optional[ResearchOutput] = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
