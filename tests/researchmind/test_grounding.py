from researchmind.grounding import verify_citations
from researchmind.models import ResearchOutput

from conftest import make_chunk, report_payload


def _output(evidence, **overrides):
    payload = report_payload()
    payload.update(overrides)
    return ResearchOutput(**payload, evidenceChunks=evidence)


def test_all_citations_found_in_evidence(evidence):
    result = verify_citations(_output(evidence))

    assert result.all_grounded
    assert result.output.shortSummary.citations[0].grounded is True
    assert result.output.insights[0].citation.grounded is True
    assert result.output.quotes[0].citation.grounded is True
    assert result.output.quiz[0].citation.grounded is True


def test_whitespace_differences_still_match():
    evidence = [make_chunk(0, "Sea levels\nrose   20 cm\tsince 1900. the rate has doubled")]
    result = verify_citations(_output(evidence))
    assert result.all_grounded


def test_citation_must_come_from_named_source(evidence):
    output = _output(evidence, insights=[{
        "content": "Bleaching",
        "citation": {"sourceTitle": "Another Paper", "text": "Coral bleaching events"},
    }])
    result = verify_citations(output)

    assert result.output.insights[0].citation.grounded is False
    assert [c.sourceTitle for c in result.ungrounded] == ["Another Paper"]


def test_ungrounded_items_flagged_but_kept_by_default(evidence):
    output = _output(evidence, quotes=[{
        "content": "invented",
        "citation": {"sourceTitle": "Climate Report", "text": "Sea levels fell sharply."},
    }])
    result = verify_citations(output)

    assert not result.all_grounded
    assert len(result.output.quotes) == 1
    assert result.output.quotes[0].citation.grounded is False
    # Input is left untouched.
    assert output.quotes[0].citation.grounded is None


def test_drop_ungrounded_removes_items(evidence):
    output = _output(evidence, quotes=[
        {"content": "real", "citation": {"sourceTitle": "Climate Report", "text": "bleaching events"}},
        {"content": "invented", "citation": {"sourceTitle": "Climate Report", "text": "Sea levels fell."}},
    ])
    result = verify_citations(output, drop_ungrounded=True)

    assert [q.content for q in result.output.quotes] == ["real"]
    assert len(result.ungrounded) == 1
    assert result.output.evidenceChunks == evidence


def test_empty_citation_text_is_ungrounded(evidence):
    output = _output(evidence, insights=[{
        "content": "x", "citation": {"sourceTitle": "Climate Report", "text": "   "},
    }])
    assert verify_citations(output).output.insights[0].citation.grounded is False
