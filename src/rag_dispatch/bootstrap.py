"""Startup wiring: every collaborator is built once and passed in explicitly."""

from __future__ import annotations

import logging
from typing import Any

from rag_dispatch.agent.fallback import ExtractiveGenerator, NoToolGenerator
from rag_dispatch.agent.orchestrator import Orchestrator
from rag_dispatch.agent.rate_limit import RateLimiter
from rag_dispatch.agent.registry import ToolRegistry
from rag_dispatch.agent.router import DecisionRouter
from rag_dispatch.agent.tools import InMemoryOrderStore, OrderStore, register_builtin_tools
from rag_dispatch.config import Settings
from rag_dispatch.llm import ChatModelGenerator, Generator, create_chat_model
from rag_dispatch.obs.tracing import TraceStore
from rag_dispatch.rag.engine import GroundedAnswerEngine
from rag_dispatch.rag.prompts import NO_ANSWER
from rag_dispatch.retrieval.retriever import PassageRetriever, SimilaritySearch, VectorStoreRetriever
from rag_dispatch.store import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Root logger at WARNING and `rag_dispatch` at INFO; DEBUG for both when *debug* is set."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING, format=LOG_FORMAT)
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("rag_dispatch").setLevel(logging.DEBUG if debug else logging.INFO)


def build_tool_registry(order_store: OrderStore | None = None) -> ToolRegistry:
    """The registration table of every tool the router may choose."""
    registry = ToolRegistry()
    register_builtin_tools(registry, order_store=order_store or InMemoryOrderStore())
    return registry


def create_orchestrator(
    settings: Settings | None = None,
    *,
    llm: Any | None = None,
    retriever: PassageRetriever | None = None,
    vector_store: SimilaritySearch | None = None,
    store: KeyValueStore | None = None,
    order_store: OrderStore | None = None,
    trace_store: TraceStore | None = None,
) -> Orchestrator:
    """Assemble the orchestrator.

    Either *retriever* or a LangChain-style *vector_store* must be given.
    When *llm* is omitted the chat model is built from ``settings.llm``
    (requires ``OPENAI_API_KEY``). Without any chat model the deterministic
    generators are used: the router always picks the knowledge base and
    answers are extractive.
    """
    settings = settings or Settings()
    if retriever is None:
        if vector_store is None:
            raise ValueError("create_orchestrator needs a retriever or a vector_store")
        retriever = VectorStoreRetriever(vector_store)

    if llm is None:
        llm = create_chat_model(settings.llm)

    router_generator: Generator
    answer_generator: Generator
    if llm is not None:
        router_generator = ChatModelGenerator(llm)
        answer_generator = ChatModelGenerator(llm)
        logger.info("Using chat model for routing and generation")
    else:
        router_generator = NoToolGenerator()
        answer_generator = ExtractiveGenerator(NO_ANSWER)
        logger.info("No chat model configured; using deterministic generators")

    store = store or InMemoryKeyValueStore()
    registry = build_tool_registry(order_store)
    return Orchestrator(
        router=DecisionRouter(generator=router_generator, tool_registry=registry),
        tool_registry=registry,
        rate_limiter=RateLimiter(store, settings.rate_limit),
        engine=GroundedAnswerEngine(
            retriever=retriever,
            generator=answer_generator,
            store=store,
            config=settings.rag,
        ),
        trace_store=trace_store,
    )
