import json
import logging
from typing import List

from pydantic import ValidationError

from researchmind.errors import SynthesisServiceError, SynthesisValidationError
from researchmind.models import Chunk, ResearchOutput, ResearchReport
from researchmind.prompts import REPORT_SCHEMA, SOURCE_BLOCK, SOURCE_DELIMITER
from researchmind.services import GenerationService

logger = logging.getLogger(__name__)


def build_synthesis_context(chunks: List[Chunk]) -> str:
    return SOURCE_DELIMITER.join(
        SOURCE_BLOCK.format(title=c.metadata.sourceTitle, content=c.content) for c in chunks
    )


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_report(raw: str) -> ResearchReport:
    """
    Validates a generation response against the report schema.

    The whole response must be one JSON object carrying every required field.
    Nothing is repaired beyond stripping a surrounding markdown code fence.
    """
    try:
        payload = json.loads(_strip_code_fence(raw or ""))
    except json.JSONDecodeError as e:
        raise SynthesisValidationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise SynthesisValidationError(f"Expected a JSON object, got {type(payload).__name__}")

    missing = [k for k in REPORT_SCHEMA["required"] if k not in payload]
    if missing:
        raise SynthesisValidationError(f"Response is missing required fields: {', '.join(missing)}")

    try:
        return ResearchReport.model_validate(payload)
    except ValidationError as e:
        raise SynthesisValidationError(f"Response does not match the report schema: {e}") from e


async def synthesize(topic: str, context_chunks: List[Chunk], generator: GenerationService) -> ResearchOutput:
    """
    Generates the structured research report from the selected chunks.

    Fails hard with ``SynthesisServiceError``. On success ``evidenceChunks`` is
    exactly ``context_chunks``, whatever the model echoed.
    """
    context = build_synthesis_context(context_chunks)
    try:
        raw = await generator.synthesize(topic, context, REPORT_SCHEMA)
    except SynthesisServiceError:
        raise
    except Exception as e:
        logger.error("Generation call failed: %s", e)
        raise SynthesisServiceError(f"Generation service call failed: {e}") from e

    report = parse_report(raw)
    output = ResearchOutput(**dict(report), evidenceChunks=list(context_chunks))
    logger.info(
        "Synthesized report: %d insights, %d quotes, %d quiz questions from %d chunks",
        len(output.insights), len(output.quotes), len(output.quiz), len(context_chunks),
    )
    return output
