"""LLM-driven classifier choosing between a tool call and the knowledge base."""

from __future__ import annotations

import json
import logging
from typing import Any

from rag_dispatch.agent.registry import ToolRegistry
from rag_dispatch.errors import ToolParseError
from rag_dispatch.llm import Generator
from rag_dispatch.types import ToolCallRequest

logger = logging.getLogger(__name__)

_ROUTER_PROMPT = """
You are a routing assistant. Decide whether the user message needs one of the tools below.

Available tools:
{tools}

Rules:
1) If the message asks for something a tool provides (for example it mentions an order together with any number), output a tool call JSON. Copy parameter values exactly as the user wrote them; do not clean or shorten them.
2) In every other case output an empty JSON object: {{}}
3) Never answer the question yourself and never output prose.
4) Output valid JSON only, in exactly one of these forms:
   - {{"tool": "<tool name>", "params": {{...}}}}
   - {{}}

User message: {message}
""".strip()


class DecisionRouter:
    """Pure classifier: it never produces a user-facing answer."""

    def __init__(self, *, generator: Generator, tool_registry: ToolRegistry) -> None:
        self.generator = generator
        self.tool_registry = tool_registry

    def build_prompt(self, message: str) -> str:
        lines = []
        for definition in self.tool_registry.definitions():
            params = ", ".join(f'"{name}"' for name in definition.parameter_names())
            lines.append(f"- {definition.name}: {definition.description} (params: {{{params}}})")
        return _ROUTER_PROMPT.format(tools="\n".join(lines) or "- none", message=message)

    def route(self, message: str) -> ToolCallRequest | None:
        """Return a tool call, or ``None`` for the knowledge-base path."""
        try:
            raw = self.generator.generate(self.build_prompt(message))
        except Exception as exc:
            logger.warning("Router generation failed, using knowledge base: %s", exc)
            return None
        request = parse_tool_call(str(raw or ""))
        logger.debug("Router decision: %s", request.tool if request else "no tool")
        return request


def parse_tool_call(raw: str) -> ToolCallRequest | None:
    """Parse router output; anything malformed or empty means "no tool"."""
    try:
        return _decode(raw)
    except ToolParseError as exc:
        logger.warning("Ignoring router output: %s", exc.message)
        return None


def _decode(raw: str) -> ToolCallRequest | None:
    text = raw.strip()
    if not text.startswith(("{", "[")):
        return None
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ToolParseError(f"invalid JSON ({exc.msg})") from exc

    if isinstance(payload, list):
        if not payload:
            return None
        payload = payload[0]
    if not isinstance(payload, dict):
        raise ToolParseError(f"expected an object, got {type(payload).__name__}")
    if not payload:
        return None

    tool = payload.get("tool")
    if not isinstance(tool, str) or not tool.strip():
        raise ToolParseError("missing tool name")
    params = payload.get("params", {})
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ToolParseError("params must be an object")
    return ToolCallRequest(tool=tool.strip(), params=params)
