from rag_dispatch.rag.citations import build_context, rewrite_citations
from rag_dispatch.types import Citation, RetrievedPassage


def test_context_numbers_by_rank_and_skips_blank_passages() -> None:
    passages = [
        RetrievedPassage(text="  Leave is 10 days.  ", source="hr.pdf", page=2),
        RetrievedPassage(text="   ", source="blank.pdf", page=9),
        RetrievedPassage(text="Claims within 30 days.", source="finance.pdf", page=4),
    ]

    context, citations = build_context(passages)

    assert context == "[1] Leave is 10 days.\n[3] Claims within 30 days."
    assert citations == {
        1: Citation("hr.pdf", 2),
        3: Citation("finance.pdf", 4),
    }


def test_rewrite_replaces_known_marker_with_verified_citation() -> None:
    citations = {1: Citation("policy.pdf", 3)}

    text, used = rewrite_citations("Refunds take 5 days [1].", citations)

    assert text == "Refunds take 5 days [policy.pdf, p.3]."
    assert used == [Citation("policy.pdf", 3)]


def test_rewrite_leaves_out_of_range_marker_untouched() -> None:
    citations = {1: Citation("policy.pdf", 3)}

    text, used = rewrite_citations("Unknown claim [99].", citations)

    assert text == "Unknown claim [99]."
    assert used == []


def test_rewrite_dedupes_in_first_use_order() -> None:
    citations = {
        1: Citation("a.pdf", 1),
        2: Citation("b.pdf", 7),
        3: Citation("a.pdf", 1),
    }

    text, used = rewrite_citations("X [2]. Y [1]. Z [3]. W [2].", citations)

    assert text == "X [b.pdf, p.7]. Y [a.pdf, p.1]. Z [a.pdf, p.1]. W [b.pdf, p.7]."
    assert used == [Citation("b.pdf", 7), Citation("a.pdf", 1)]


def test_marker_for_blank_rank_is_not_cited() -> None:
    passages = [
        RetrievedPassage(text="", source="blank.pdf", page=1),
        RetrievedPassage(text="Real text", source="real.pdf", page=5),
    ]
    _, citations = build_context(passages)

    text, used = rewrite_citations("A [1] B [2]", citations)

    assert text == "A [1] B [real.pdf, p.5]"
    assert used == [Citation("real.pdf", 5)]
