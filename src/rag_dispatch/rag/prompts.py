"""Prompt templates for grounded generation."""

from __future__ import annotations

NO_ANSWER = "Based on the available documents, I cannot answer this question."

# Lower-cased phrases that mark a hedged or ungrounded reply.
HEDGING_PHRASES = (
    NO_ANSWER.lower(),
    "cannot answer",
    "i don't know",
    "i do not know",
    "not mentioned",
)

GROUNDED_PROMPT_TEMPLATE = """
You are an enterprise knowledge assistant. Answer the question strictly from the [Context] below.

Rules:
1) If the context contains the answer, answer directly and mark each factual claim with the number of the supporting passage, such as [1] or [2].
2) If the context does not contain the answer, reply exactly: "%(no_answer)s"
3) Do not invent, speculate, or add anything that is not in the context.
4) Keep the answer concise and do not restate the context.

[Context]
%(context)s

[Question]
%(question)s
""".strip()


def escape_percent(text: str) -> str:
    return text.replace("%", "%%")


def build_grounded_prompt(context: str, question: str) -> str:
    return GROUNDED_PROMPT_TEMPLATE % {
        "no_answer": NO_ANSWER,
        "context": escape_percent(context.strip()),
        "question": escape_percent(question),
    }


def is_hedged(answer: str) -> bool:
    lowered = answer.lower()
    return not lowered.strip() or any(phrase in lowered for phrase in HEDGING_PHRASES)
