# Thin async layer over google-generativeai shared by the ranking and
# generation services.

import os
from typing import Any, Optional

import google.generativeai as genai

from ..errors import MissingCredentialsError


def resolve_api_key(api_key: Optional[str] = None) -> str:
    api_key = api_key or os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    if not api_key:
        raise MissingCredentialsError("Missing GOOGLE_API_KEY / GEMINI_API_KEY")
    return api_key


def get_model(model: str, api_key: Optional[str] = None) -> Any:
    genai.configure(api_key=resolve_api_key(api_key))
    return genai.GenerativeModel(model)


async def generate_text(
    model: str,
    prompt: str,
    *,
    generation_config: Optional[dict] = None,
    api_key: Optional[str] = None,
) -> str:
    m = get_model(model, api_key)
    if generation_config:
        resp = await m.generate_content_async(prompt, generation_config=generation_config)
    else:
        resp = await m.generate_content_async(prompt)
    return getattr(resp, "text", str(resp))


async def generate_json(
    model: str,
    prompt: str,
    schema: dict,
    *,
    temperature: Optional[float] = None,
    api_key: Optional[str] = None,
) -> str:
    """Ask for a JSON document constrained by ``schema``; returns the raw text."""
    config: dict = {"response_mime_type": "application/json", "response_schema": schema}
    if temperature is not None:
        config["temperature"] = temperature
    return await generate_text(model, prompt, generation_config=config, api_key=api_key)
