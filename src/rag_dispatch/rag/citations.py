"""Numbered context assembly and citation-marker rewriting."""

from __future__ import annotations

import re
from collections.abc import Sequence

from rag_dispatch.types import Citation, RetrievedPassage

_MARKER = re.compile(r"\[(\d+)\]")


def build_context(
    passages: Sequence[RetrievedPassage],
) -> tuple[str, dict[int, Citation]]:
    """Number passages by retrieval rank (1-based) and index their citations.

    Blank passages are dropped but keep their rank, so ``[3]`` always
    refers to the third retrieved passage.
    """
    lines: list[str] = []
    citations: dict[int, Citation] = {}
    for rank, passage in enumerate(passages, start=1):
        text = (passage.text or "").strip()
        if not text:
            continue
        lines.append(f"[{rank}] {text}")
        citations[rank] = Citation(source=passage.source, page=passage.page)
    return "\n".join(lines), citations


def rewrite_citations(
    answer: str,
    citations: dict[int, Citation],
) -> tuple[str, list[Citation]]:
    """Replace ``[n]`` markers with ``[source, p.page]`` for known ranks.

    Returns the rewritten text and the citations actually used, unique and
    in first-use order. Markers with no matching rank are left untouched.
    """
    used: list[Citation] = []

    def _replace(match: re.Match[str]) -> str:
        citation = citations.get(int(match.group(1)))
        if citation is None:
            return match.group(0)
        if citation not in used:
            used.append(citation)
        return citation.label()

    return _MARKER.sub(_replace, answer), used
