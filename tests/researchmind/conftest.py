import json

import pytest

from researchmind.models import Chunk, ChunkMetadata


def make_chunk(i, content, title="Climate Report"):
    return Chunk(id=f"src-chunk-{i}", sourceId="src", content=content,
                 metadata=ChunkMetadata(sourceTitle=title))


def report_payload(quote_text="Sea levels rose 20 cm since 1900."):
    return {
        "shortSummary": {
            "content": "Oceans are warming and rising.",
            "citations": [{"sourceTitle": "Climate Report", "text": quote_text}],
        },
        "extendedSummary": "A longer look at ocean warming.",
        "insights": [
            {
                "content": "Warming is accelerating.",
                "citation": {"sourceTitle": "Climate Report", "text": "the rate has doubled"},
            },
        ],
        "quotes": [
            {
                "content": quote_text,
                "citation": {"sourceTitle": "Climate Report", "text": quote_text, "page": 3},
            },
        ],
        "nextSteps": [{"content": "Read the IPCC summary", "explanation": "Broader context"}],
        "quiz": [
            {
                "question": "How much have sea levels risen since 1900?",
                "options": ["5 cm", "20 cm", "1 m"],
                "correctAnswer": "20 cm",
                "explanation": "Stated in the report.",
                "citation": {"sourceTitle": "Climate Report", "text": quote_text},
            },
        ],
    }


@pytest.fixture
def evidence():
    return [
        make_chunk(0, "Measurements show that Sea levels rose 20 cm since 1900. Since 1993 the rate has doubled."),
        make_chunk(1, "Coral bleaching events are now more frequent."),
    ]


@pytest.fixture
def report_json():
    return json.dumps(report_payload())
