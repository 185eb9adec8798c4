"""Runtime settings loaded from environment variables.

A ``.env`` file in the working directory is loaded first, then
``.env.local`` on top of it without overriding values already set.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _get_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y"}


class Settings(BaseModel):
    api_key: Optional[str] = None
    ranking_model: str = "gemini-2.5-flash"
    synthesis_model: str = "gemini-2.5-pro"
    synthesis_temperature: Optional[float] = None

    chunk_size: int = 1800
    chunk_overlap: int = 200
    fallback_chunks: int = 10
    drop_ungrounded_citations: bool = False

    sessions_path: str = "data/sessions.json"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_chunk_window(self) -> "Settings":
        if self.chunk_size <= 0 or not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size): size={self.chunk_size}, overlap={self.chunk_overlap}"
            )
        return self

    @classmethod
    def from_env(cls, load_dotenv_files: bool = True) -> "Settings":
        if load_dotenv_files:
            load_dotenv(dotenv_path=".env")
            load_dotenv(dotenv_path=".env.local", override=False)

        temperature = os.getenv("RESEARCHMIND_SYNTHESIS_TEMPERATURE")
        return cls(
            api_key=os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            ranking_model=os.getenv("RESEARCHMIND_RANKING_MODEL", "gemini-2.5-flash"),
            synthesis_model=os.getenv("RESEARCHMIND_SYNTHESIS_MODEL", "gemini-2.5-pro"),
            synthesis_temperature=float(temperature) if temperature else None,
            chunk_size=int(os.getenv("RESEARCHMIND_CHUNK_SIZE", "1800")),
            chunk_overlap=int(os.getenv("RESEARCHMIND_CHUNK_OVERLAP", "200")),
            fallback_chunks=int(os.getenv("RESEARCHMIND_FALLBACK_CHUNKS", "10")),
            drop_ungrounded_citations=_get_bool(os.getenv("RESEARCHMIND_DROP_UNGROUNDED"), False),
            sessions_path=os.getenv("RESEARCHMIND_SESSIONS_PATH", "data/sessions.json"),
            log_level=os.getenv("RESEARCHMIND_LOG_LEVEL", "INFO"),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # The SDK's transport layers are chatty at INFO.
    for name in ("google", "grpc", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)
