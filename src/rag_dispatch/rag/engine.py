"""Grounded answer engine: cache, retrieve, generate, cite."""

from __future__ import annotations

import logging
from typing import Any

from rag_dispatch.cache_keys import build_cache_key
from rag_dispatch.config import NEGATIVE_CACHE_TTL_SECONDS, RagConfig
from rag_dispatch.llm import Generator
from rag_dispatch.rag.citations import build_context, rewrite_citations
from rag_dispatch.rag.prompts import NO_ANSWER, build_grounded_prompt, is_hedged
from rag_dispatch.retrieval.retriever import PassageRetriever
from rag_dispatch.store import KeyValueStore
from rag_dispatch.types import RagResponse

logger = logging.getLogger(__name__)


class GroundedAnswerEngine:
    """Answers questions only from retrieved passages.

    Flow for a cache miss:
    - retrieve the top-k passages and number them by rank;
    - generate once from a prompt that forbids anything outside the context;
    - rewrite ``[n]`` markers into verified ``[source, p.page]`` citations;
    - reject empty or hedged output in favour of the fixed no-answer reply.

    Answers are cached per session under the positive TTL, no-answer replies
    under the short negative TTL. The cache is best-effort: store failures
    behave like misses.
    """

    def __init__(
        self,
        *,
        retriever: PassageRetriever,
        generator: Generator,
        store: KeyValueStore,
        config: RagConfig | None = None,
    ) -> None:
        self.retriever = retriever
        self.generator = generator
        self.store = store
        self.config = config or RagConfig()

    def answer(self, question: str, session_id: str) -> RagResponse:
        cache_key = build_cache_key(session_id, question, self.config.cache_namespace)
        cached = self._cache_get(cache_key)
        if cached is not None:
            logger.debug("Cache hit: %s", cache_key)
            return cached

        passages = self.retriever.retrieve(question, self.config.top_k)
        context, citations = build_context(passages)
        if not citations:
            logger.info("No usable passages for session %s", session_id)
            return self._no_answer(cache_key)

        prompt = build_grounded_prompt(context, question)
        raw_answer = self.generator.generate(prompt)
        answer, used = rewrite_citations(str(raw_answer or ""), citations)
        answer = answer.strip()

        if is_hedged(answer):
            logger.info("Discarding hedged or empty answer for session %s", session_id)
            return self._no_answer(cache_key)

        response = RagResponse(answer=answer, citations=used)
        self._cache_set(cache_key, response, self.config.answer_ttl_seconds)
        logger.debug("Cache write: %s (%d citations)", cache_key, len(used))
        return response

    def _no_answer(self, cache_key: str) -> RagResponse:
        response = no_answer_response()
        self._cache_set(cache_key, response, NEGATIVE_CACHE_TTL_SECONDS)
        return response

    def _cache_get(self, key: str) -> RagResponse | None:
        try:
            payload: Any = self.store.get(key)
        except Exception:
            logger.warning("Cache read failed for %s; treating as miss", key, exc_info=True)
            return None
        if payload is None:
            return None
        if isinstance(payload, RagResponse):
            return payload
        try:
            return RagResponse.from_dict(payload)
        except (TypeError, KeyError, ValueError, AttributeError):
            logger.warning("Ignoring malformed cache entry %s", key)
            return None

    def _cache_set(self, key: str, response: RagResponse, ttl_seconds: int) -> None:
        try:
            self.store.set(key, response.to_dict(), ttl_seconds)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)


def no_answer_response() -> RagResponse:
    return RagResponse(answer=NO_ANSWER, citations=[])
