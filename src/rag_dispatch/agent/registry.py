"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import logging
from collections.abc import Callable
from time import perf_counter

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rag_dispatch.errors import ToolValidationError, UnknownToolError
from rag_dispatch.types import ToolCallRequest, ToolTrace

logger = logging.getLogger(__name__)

# Executors receive (validated params, user id, session id) and always return text.
ToolExecutor = Callable[[BaseModel, str, str], str]


class ToolDefinition(BaseModel):
    """Declarative tool definition for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(min_length=1)
    description: str
    args_schema: type[BaseModel]
    executor: ToolExecutor
    required_permissions: frozenset[str] = Field(default_factory=frozenset)

    def parameter_names(self) -> list[str]:
        """Parameter names as the model is expected to emit them (aliases first)."""
        return [
            field.alias or name for name, field in self.args_schema.model_fields.items()
        ]


class ToolRegistry:
    """Name-indexed tool definitions; read-only once startup wiring is done."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise ValueError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = definition
        logger.info("Registered tool: %s", definition.name)

    def lookup(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def require(self, name: str) -> ToolDefinition:
        definition = self._tools.get(name)
        if definition is None:
            raise UnknownToolError(f"Unknown tool: {name}")
        return definition

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def validate(
        self,
        request: ToolCallRequest,
        definition: ToolDefinition | None = None,
    ) -> BaseModel:
        """Check the ``{tool, params}`` envelope against the tool's schema.

        *definition* is looked up from ``request.tool`` when not given.
        """
        if definition is None:
            definition = self.require(request.tool)
        envelope = request.envelope()
        if envelope["tool"] != definition.name:
            raise ToolValidationError(f"Tool name mismatch: {envelope['tool']}")
        if not isinstance(envelope["params"], dict):
            raise ToolValidationError("params must be a JSON object")
        try:
            return definition.args_schema.model_validate(envelope["params"])
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ToolValidationError(
                f"Parameter validation failed: {location}: {first.get('msg')}"
            ) from exc

    def execute(
        self,
        definition: ToolDefinition,
        params: BaseModel,
        *,
        user_id: str,
        session_id: str,
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        """Run the executor; *observer* receives this call's trace only."""
        start = perf_counter()
        output = definition.executor(params, user_id, session_id)
        latency_ms = (perf_counter() - start) * 1000.0

        trace = ToolTrace(
            name=definition.name,
            input_payload=params.model_dump(by_alias=True),
            output_preview=output[:320],
            latency_ms=latency_ms,
        )
        for callback in (self._observer, observer):
            if callback is not None:
                callback(trace)
        return output
