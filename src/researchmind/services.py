"""Capability interfaces for the two external calls and their Gemini backends.

The retriever and synthesizer only see ``RankingService`` and
``GenerationService``; any object with a matching coroutine can stand in
(a local ranker, another model provider, a test double).
"""
from __future__ import annotations

from typing import Optional, Protocol

from .config import Settings
from .errors import RetrievalServiceError, SynthesisServiceError
from .prompts import RANKING_PROMPT, SYNTHESIS_PROMPT
from .util.genai_compat import generate_json, generate_text


class RankingService(Protocol):
    async def select(self, topic: str, context: str) -> str:
        """Return free text expected to hold comma-separated chunk indices."""
        ...


class GenerationService(Protocol):
    async def synthesize(self, topic: str, context: str, schema: dict) -> str:
        """Return a JSON document shaped by ``schema``."""
        ...


class GeminiRankingService:
    def __init__(self, model: str = "gemini-2.5-flash", api_key: Optional[str] = None,
                 min_selected: int = 5, max_selected: int = 10):
        self.model = model
        self.api_key = api_key
        self.min_selected = min_selected
        self.max_selected = max_selected

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiRankingService":
        return cls(model=settings.ranking_model, api_key=settings.api_key)

    async def select(self, topic: str, context: str) -> str:
        prompt = RANKING_PROMPT.format(
            topic=topic,
            context=context,
            min_selected=min(self.min_selected, self.max_selected),
            max_selected=self.max_selected,
        )
        try:
            text = await generate_text(self.model, prompt, api_key=self.api_key)
        except Exception as e:
            raise RetrievalServiceError(f"Ranking call to {self.model} failed: {e}") from e
        return text.strip()


class GeminiGenerationService:
    def __init__(self, model: str = "gemini-2.5-pro", api_key: Optional[str] = None,
                 temperature: Optional[float] = None):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiGenerationService":
        return cls(model=settings.synthesis_model, api_key=settings.api_key,
                   temperature=settings.synthesis_temperature)

    async def synthesize(self, topic: str, context: str, schema: dict) -> str:
        prompt = SYNTHESIS_PROMPT.format(topic=topic, context=context)
        try:
            text = await generate_json(self.model, prompt, schema,
                                       temperature=self.temperature, api_key=self.api_key)
        except Exception as e:
            raise SynthesisServiceError(f"Generation call to {self.model} failed: {e}") from e
        return text.strip()
