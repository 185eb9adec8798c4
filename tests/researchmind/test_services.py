import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from researchmind.config import Settings
from researchmind.errors import MissingCredentialsError, RetrievalServiceError, SynthesisServiceError
from researchmind.prompts import REPORT_SCHEMA
from researchmind.services import GeminiGenerationService, GeminiRankingService
from researchmind.util.genai_compat import generate_json, resolve_api_key


@pytest.mark.asyncio
@patch('researchmind.services.generate_text', new_callable=AsyncMock)
async def test_ranking_service_prompt_and_response(mock_generate_text):
    mock_generate_text.return_value = "  3, 1, 4 \n"
    ranker = GeminiRankingService(model="m", api_key="k", max_selected=7)

    result = await ranker.select("tidal energy", "[CHUNK 0] waves")

    assert result == "3, 1, 4"
    model, prompt = mock_generate_text.call_args[0]
    assert model == "m"
    assert "tidal energy" in prompt
    assert "[CHUNK 0] waves" in prompt
    assert "7" in prompt
    assert mock_generate_text.call_args.kwargs["api_key"] == "k"


@pytest.mark.asyncio
@patch('researchmind.services.generate_text', new_callable=AsyncMock)
async def test_ranking_service_wraps_errors(mock_generate_text):
    mock_generate_text.side_effect = Exception("API Failure")
    with pytest.raises(RetrievalServiceError, match="API Failure"):
        await GeminiRankingService(api_key="k").select("t", "c")


@pytest.mark.asyncio
@patch('researchmind.services.generate_json', new_callable=AsyncMock)
async def test_generation_service_passes_schema(mock_generate_json):
    mock_generate_json.return_value = '{"ok": true}'
    service = GeminiGenerationService(model="pro", api_key="k", temperature=0.1)

    result = await service.synthesize("topic", "[Source: A]\ntext", REPORT_SCHEMA)

    assert result == '{"ok": true}'
    model, prompt, schema = mock_generate_json.call_args[0]
    assert model == "pro"
    assert "[Source: A]\ntext" in prompt
    assert schema is REPORT_SCHEMA
    assert mock_generate_json.call_args.kwargs["temperature"] == 0.1


@pytest.mark.asyncio
@patch('researchmind.services.generate_json', new_callable=AsyncMock)
async def test_generation_service_wraps_errors(mock_generate_json):
    mock_generate_json.side_effect = MissingCredentialsError("Missing GOOGLE_API_KEY / GEMINI_API_KEY")
    with pytest.raises(SynthesisServiceError, match="Missing GOOGLE_API_KEY"):
        await GeminiGenerationService().synthesize("t", "c", REPORT_SCHEMA)


def test_services_from_settings():
    settings = Settings(api_key="k", ranking_model="flash", synthesis_model="pro",
                        synthesis_temperature=0.3, fallback_chunks=3)
    ranker = GeminiRankingService.from_settings(settings)
    generator = GeminiGenerationService.from_settings(settings)

    assert (ranker.model, ranker.api_key, ranker.max_selected) == ("flash", "k", 10)
    assert (generator.model, generator.temperature) == ("pro", 0.3)


@pytest.mark.asyncio
@patch('researchmind.util.genai_compat.genai.configure')
@patch('researchmind.util.genai_compat.genai.GenerativeModel.generate_content_async')
async def test_generate_json_requests_json_output(mock_generate_content, mock_configure):
    mock_response = MagicMock()
    mock_response.text = json.dumps({"answer": 42})
    mock_generate_content.return_value = mock_response

    text = await generate_json("gemini-2.5-pro", "prompt", {"type": "object"}, temperature=0.0, api_key="test-key")

    assert json.loads(text) == {"answer": 42}
    mock_configure.assert_called_once_with(api_key="test-key")
    config = mock_generate_content.call_args.kwargs["generation_config"]
    assert config == {
        "response_mime_type": "application/json",
        "response_schema": {"type": "object"},
        "temperature": 0.0,
    }


def test_resolve_api_key_missing(monkeypatch):
    for key in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(key, raising=False)
    with pytest.raises(MissingCredentialsError):
        resolve_api_key()
    monkeypatch.setenv("API_KEY", "fallback")
    assert resolve_api_key() == "fallback"


@pytest.mark.asyncio
@patch('researchmind.services.generate_text', new_callable=AsyncMock)
async def test_ranking_prompt_range_ignores_fallback_size(mock_generate_text):
    mock_generate_text.return_value = "1"
    ranker = GeminiRankingService.from_settings(Settings(api_key="k", fallback_chunks=3))

    await ranker.select("topic", "[CHUNK 0] text")

    prompt = mock_generate_text.call_args[0][1]
    assert "top 5-10 most relevant" in prompt
