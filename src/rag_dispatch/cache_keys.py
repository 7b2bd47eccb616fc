"""Content-addressed cache keys for knowledge-base answers."""

from __future__ import annotations

import hashlib
import re

DEFAULT_NAMESPACE = "rag:answer"

_SEPARATORS = re.compile(r"[?？!！。，,.\s]+")


def normalize_question(question: str | None) -> str:
    """Lowercase, trim, and fold whitespace/punctuation runs into single spaces."""
    if question is None:
        return ""
    return _SEPARATORS.sub(" ", question.strip().lower()).strip()


def build_cache_key(
    session_id: str,
    question: str | None,
    namespace: str = DEFAULT_NAMESPACE,
) -> str:
    """Return ``<namespace>:<session>:<sha256(normalized question)>``.

    The session is part of the key, so two sessions asking the same
    question never share an entry.
    """
    digest = hashlib.sha256(normalize_question(question).encode("utf-8")).hexdigest()
    return f"{namespace}:{session_id}:{digest}"
