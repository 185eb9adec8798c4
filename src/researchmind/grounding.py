"""Post-synthesis citation verification.

A citation is grounded when its quoted text occurs in an evidence chunk of
the source it names. Whitespace runs are collapsed on both sides before
matching because extracted PDF text rarely preserves spacing; the match is
otherwise literal and case-sensitive.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List

from pydantic import BaseModel

from .models import Chunk, CitedItem, Citation, ResearchOutput

logger = logging.getLogger(__name__)

_WS = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


class GroundingReport(BaseModel):
    output: ResearchOutput
    ungrounded: List[Citation] = []

    @property
    def all_grounded(self) -> bool:
        return not self.ungrounded


class _Verifier:
    def __init__(self, chunks: List[Chunk]):
        self._by_title: Dict[str, List[str]] = {}
        for c in chunks:
            self._by_title.setdefault(c.metadata.sourceTitle, []).append(_normalize(c.content))
        self.ungrounded: List[Citation] = []

    def check(self, citation: Citation) -> Citation:
        needle = _normalize(citation.text)
        grounded = bool(needle) and any(needle in hay for hay in self._by_title.get(citation.sourceTitle, []))
        checked = citation.model_copy(update={"grounded": grounded})
        if not grounded:
            self.ungrounded.append(checked)
        return checked


def verify_citations(output: ResearchOutput, drop_ungrounded: bool = False) -> GroundingReport:
    """
    Flags every citation in ``output`` as grounded or not.

    With ``drop_ungrounded`` the items whose citation is ungrounded are removed
    (and ungrounded short-summary citations with them). ``evidenceChunks`` is
    carried over unchanged.
    """
    v = _Verifier(output.evidenceChunks)

    summary_citations = [v.check(c) for c in output.shortSummary.citations]
    insights = [CitedItem(content=i.content, citation=v.check(i.citation)) for i in output.insights]
    quotes = [CitedItem(content=q.content, citation=v.check(q.citation)) for q in output.quotes]
    quiz = [q.model_copy(update={"citation": v.check(q.citation)}) for q in output.quiz]

    if drop_ungrounded:
        summary_citations = [c for c in summary_citations if c.grounded]
        insights = [i for i in insights if i.citation.grounded]
        quotes = [q for q in quotes if q.citation.grounded]
        quiz = [q for q in quiz if q.citation.grounded]

    checked = output.model_copy(update={
        "shortSummary": output.shortSummary.model_copy(update={"citations": summary_citations}),
        "insights": insights,
        "quotes": quotes,
        "quiz": quiz,
    })

    if v.ungrounded:
        logger.warning(
            "%d citation(s) not found in the evidence%s",
            len(v.ungrounded), " and were dropped" if drop_ungrounded else "",
        )
    return GroundingReport(output=checked, ungrounded=v.ungrounded)
