"""Message orchestrator: route, then run a tool or answer from documents."""

from __future__ import annotations

import logging
from enum import Enum

from rag_dispatch.agent.identity import IdentityResolver, SessionIdentityResolver
from rag_dispatch.agent.rate_limit import RateLimiter
from rag_dispatch.agent.registry import ToolRegistry
from rag_dispatch.agent.router import DecisionRouter
from rag_dispatch.obs.tracing import Timer, TraceStore
from rag_dispatch.rag.engine import GroundedAnswerEngine
from rag_dispatch.types import RagResponse, ToolCallRequest, ToolTrace

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "Sorry, the service is temporarily unavailable. Please try again later."
KNOWLEDGE_BASE_MISS = (
    "Sorry, this question is not covered by the knowledge base yet. "
    "Please contact the responsible team."
)


class MessageState(str, Enum):
    START = "start"
    ROUTING = "routing"
    TOOL_VALIDATING = "tool_validating"
    TOOL_RATE_LIMITING = "tool_rate_limiting"
    TOOL_EXECUTING = "tool_executing"
    ANSWERING = "answering"
    DONE = "done"


class Orchestrator:
    """Handles one message end to end and always yields a single string.

    Routing selects exactly one branch. Anything that goes wrong inside the
    tool branch (unknown tool, schema failure, store error) moves the message
    to the knowledge-base path instead of failing. Only the rate-limit
    advisory is returned from the tool branch without running the tool.
    There is no retry: each call handles the message once.
    """

    def __init__(
        self,
        *,
        router: DecisionRouter,
        tool_registry: ToolRegistry,
        rate_limiter: RateLimiter,
        engine: GroundedAnswerEngine,
        identity: IdentityResolver | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.router = router
        self.tool_registry = tool_registry
        self.rate_limiter = rate_limiter
        self.engine = engine
        self.identity = identity or SessionIdentityResolver()
        self.trace_store = trace_store

    def handle_message(self, text: str, session_id: str) -> str:
        """Answer *text* for *session_id*. Never raises."""
        _enter(MessageState.START, session_id)
        tool_traces: list[ToolTrace] = []
        route = "error"
        tool_name: str | None = None
        reply = SERVICE_UNAVAILABLE
        with Timer() as timer:
            try:
                route, tool_name, reply = self._run(text, session_id, tool_traces)
            except Exception:
                logger.exception("Failed to handle message for session %s", session_id)

        if self.trace_store is not None:
            try:
                self.trace_store.create_record(
                    session_id=session_id,
                    message=text,
                    route=route,
                    answer=reply,
                    latency_ms=timer.elapsed_ms,
                    tool_name=tool_name,
                    tool_traces=tool_traces,
                )
            except Exception as exc:
                logger.warning("Failed to record trace for session %s: %s", session_id, exc)
        _enter(MessageState.DONE, session_id)
        return reply

    def answer(self, question: str, session_id: str) -> RagResponse:
        """Structured knowledge-base answer for callers that render citations."""
        return self.engine.answer(question, session_id)

    def _run(
        self,
        text: str,
        session_id: str,
        tool_traces: list[ToolTrace],
    ) -> tuple[str, str | None, str]:
        _enter(MessageState.ROUTING, session_id)
        request = self.router.route(text)

        if request is not None:
            try:
                return self._run_tool(request, session_id, tool_traces)
            except Exception as exc:
                logger.warning(
                    "Tool path for %r failed, falling back to knowledge base: %s",
                    request.tool, exc,
                )

        _enter(MessageState.ANSWERING, session_id)
        response = self.engine.answer(text, session_id)
        answer = (response.answer or "").strip()
        return "rag", None, answer or KNOWLEDGE_BASE_MISS

    def _run_tool(
        self,
        request: ToolCallRequest,
        session_id: str,
        tool_traces: list[ToolTrace],
    ) -> tuple[str, str | None, str]:
        _enter(MessageState.TOOL_VALIDATING, session_id)
        definition = self.tool_registry.require(request.tool)
        params = self.tool_registry.validate(request, definition)

        _enter(MessageState.TOOL_RATE_LIMITING, session_id)
        if not self.rate_limiter.allow(session_id, definition.name):
            return "rate_limited", definition.name, self.rate_limiter.cooldown_message

        _enter(MessageState.TOOL_EXECUTING, session_id)
        user_id = self.identity.resolve(session_id)
        output = self.tool_registry.execute(
            definition,
            params,
            user_id=user_id,
            session_id=session_id,
            observer=tool_traces.append,
        )
        return "tool", definition.name, output


def _enter(state: MessageState, session_id: str) -> None:
    logger.debug("Session %s -> %s", session_id, state.value)
