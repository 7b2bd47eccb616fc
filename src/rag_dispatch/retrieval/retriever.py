"""Retrieval collaborator and an adapter over LangChain vector stores."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from langchain_core.documents import Document

from rag_dispatch.types import RetrievedPassage

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "unknown.pdf"
DEFAULT_PAGE = 1


class PassageRetriever(Protocol):
    """Nearest-neighbour search returning passages in rank order."""

    def retrieve(self, query: str, top_k: int) -> list[RetrievedPassage]:
        """Return at most *top_k* passages, best first. May be empty."""


class SimilaritySearch(Protocol):
    def similarity_search(self, query: str, k: int = 4, **kwargs: Any) -> list[Document]:
        """Return the *k* documents closest to *query*."""


class VectorStoreRetriever:
    """Maps ``similarity_search`` documents onto ``RetrievedPassage`` values.

    Document metadata is expected to carry ``source`` and ``page``; missing
    or unparsable pages fall back to page 1.
    """

    def __init__(self, vector_store: SimilaritySearch) -> None:
        self.vector_store = vector_store

    def retrieve(self, query: str, top_k: int) -> list[RetrievedPassage]:
        documents = self.vector_store.similarity_search(query, k=top_k) or []
        passages = [to_passage(document) for document in documents[:top_k]]
        logger.debug("Retrieved %d passages for query %r", len(passages), query[:80])
        return passages


def to_passage(document: Document) -> RetrievedPassage:
    metadata = document.metadata or {}
    source = metadata.get("source") or DEFAULT_SOURCE
    return RetrievedPassage(
        text=document.page_content or "",
        source=str(source),
        page=parse_page(metadata.get("page")),
    )


def parse_page(value: Any) -> int:
    """Coerce an int, float, or numeric string page; anything else is page 1."""
    if isinstance(value, bool) or value is None:
        return DEFAULT_PAGE
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return DEFAULT_PAGE
    return DEFAULT_PAGE
