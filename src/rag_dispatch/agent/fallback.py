"""Deterministic generators used when no external LLM is configured."""

from __future__ import annotations

import re

_CONTEXT_SECTION = re.compile(r"\[Context\]\n(?P<body>.*?)\n\n\[Question\]", flags=re.DOTALL)
_PASSAGE_LINE = re.compile(r"^\[(?P<rank>\d+)\]\s+(?P<text>.+)$")
_SENTENCE_END = re.compile(r"(?<=[.!?。！？])\s+")


class NoToolGenerator:
    """Router stand-in that always chooses the knowledge-base path."""

    def generate(self, prompt: str) -> str:
        del prompt
        return "{}"


class ExtractiveGenerator:
    """Answers with the first sentence of the best-ranked passage.

    Keeps the grounded-answer contract (rank markers, no-answer sentence)
    without any model, which is useful for local and offline runs.
    """

    def __init__(self, no_answer: str) -> None:
        self.no_answer = no_answer

    def generate(self, prompt: str) -> str:
        section = _CONTEXT_SECTION.search(prompt)
        if section is None:
            return self.no_answer
        for line in section.group("body").splitlines():
            match = _PASSAGE_LINE.match(line.strip())
            if not match:
                continue
            text = match.group("text").replace("%%", "%")
            sentence = _SENTENCE_END.split(text, maxsplit=1)[0].strip()
            return f"{sentence} [{match.group('rank')}]"
        return self.no_answer
