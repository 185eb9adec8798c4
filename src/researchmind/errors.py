"""Exception hierarchy for the research pipeline.

Recoverable conditions (``ParseError``, ``RetrievalServiceError``) are
absorbed at the stage that raises them. Everything else propagates to the
caller of the pipeline.
"""
from __future__ import annotations


class ResearchMindError(Exception):
    """Base class for all errors raised by this package."""

    # Pipeline snapshot at the time of failure, set by the pipeline.
    context = None


class InvalidRequestError(ResearchMindError):
    """The run was requested without a topic or without any sources."""


class UnsupportedSourceError(ResearchMindError):
    """A file type that no parser handles."""


class ParseError(ResearchMindError):
    def __init__(self, source_title: str, message: str):
        super().__init__(f"Failed to process {source_title}: {message}")
        self.source_title = source_title


class NoUsableSourcesError(ResearchMindError):
    """No source survived ingestion, so there is nothing to research."""


class NoChunksError(NoUsableSourcesError):
    """Sources were parsed but none of them contained any text."""


class RetrievalServiceError(ResearchMindError):
    """The ranking call failed. Never surfaced past the retriever."""


class SynthesisError(ResearchMindError):
    """The report could not be produced."""


class SynthesisServiceError(SynthesisError):
    """The generation call failed or returned an unusable response."""


class SynthesisValidationError(SynthesisServiceError):
    """The generation response is not valid JSON or misses required fields."""


class PipelineBusyError(ResearchMindError):
    """A run is already in progress for the session."""


class SessionStoreError(ResearchMindError):
    pass


class MissingCredentialsError(ResearchMindError, RuntimeError):
    pass


def describe_failure(exc: BaseException) -> str:
    """Single user-facing message for a failed run."""
    if isinstance(exc, NoChunksError):
        return "Research failed: Could not extract any text from the sources."
    if isinstance(exc, NoUsableSourcesError):
        return "Research failed: No sources could be processed. Please check the files and try again."
    if isinstance(exc, SynthesisError):
        return f"Research failed: Failed to synthesize the research report. {exc}".rstrip()
    message = str(exc) or "An unknown error occurred."
    return f"Research failed: {message}"
