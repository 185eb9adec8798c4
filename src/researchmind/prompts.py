# -*- coding: utf-8 -*-
"""Prompt templates and the report schema sent to the generation service.

Templates use ``str.format`` placeholders: ``{topic}`` and ``{context}``.
"""

RANKING_PROMPT = (
    "You are a research assistant. Your task is to select the most relevant text chunks to answer a query.\n"
    'Topic: "{topic}"\n\n'
    "From the following text chunks, select the top {min_selected}-{max_selected} most relevant ones. "
    'Return ONLY the indices of the selected chunks, separated by commas (e.g., "1,5,12"). '
    "Do not add any other text or explanation.\n\n"
    "CONTEXT:\n{context}"
)

SYNTHESIS_PROMPT = (
    "You are an expert research assistant. Your task is to generate a comprehensive research report "
    "on a given topic using ONLY the provided context.\n"
    "You must adhere to the following rules:\n"
    "1.  **NEVER** use information outside of the provided context.\n"
    "2.  **ALWAYS** cite your claims. A citation must include the source title and the exact text "
    "snippet from the context that supports your claim.\n"
    "3.  Generate all outputs in the specified JSON format.\n\n"
    'TOPIC: "{topic}"\n\n'
    "CONTEXT:\n{context}\n"
)

CHUNK_TAG = "[CHUNK {index}] {content}"
SOURCE_BLOCK = "[Source: {title}]\n{content}"
SOURCE_DELIMITER = "\n\n---\n\n"

_CITATION = {
    "type": "object",
    "properties": {
        "sourceTitle": {"type": "string"},
        "text": {"type": "string", "description": "The exact quote from the context."},
    },
    "required": ["sourceTitle", "text"],
}

REPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "shortSummary": {
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "A 2-4 sentence summary of the main ideas."},
                "citations": {"type": "array", "items": _CITATION},
            },
            "required": ["content", "citations"],
        },
        "extendedSummary": {
            "type": "string",
            "description": "A 3-6 paragraph summary in Markdown format. Cite claims inline using '[Source: Title]'.",
        },
        "insights": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "A key insight or finding."},
                    "citation": _CITATION,
                },
                "required": ["content", "citation"],
            },
        },
        "quotes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "A direct, impactful quote from the context."},
                    "citation": _CITATION,
                },
                "required": ["content", "citation"],
            },
        },
        "nextSteps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "A suggested next experiment or research question."},
                    "explanation": {"type": "string", "description": "Why this step is important, based on gaps in the context."},
                },
                "required": ["content", "explanation"],
            },
        },
        "quiz": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                    "correctAnswer": {"type": "string"},
                    "explanation": {"type": "string", "description": "An explanation for the correct answer."},
                    "citation": _CITATION,
                },
                "required": ["question", "options", "correctAnswer", "explanation", "citation"],
            },
        },
    },
    "required": ["shortSummary", "extendedSummary", "insights", "quotes", "nextSteps", "quiz"],
}
