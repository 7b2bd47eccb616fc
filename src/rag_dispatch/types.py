"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(slots=True, frozen=True)
class RetrievedPassage:
    """A passage returned by the retrieval collaborator."""

    text: str
    source: str
    page: int = 1


@dataclass(slots=True, frozen=True)
class Citation:
    """A verified (source, page) reference; equal pairs are the same citation."""

    source: str
    page: int

    def label(self) -> str:
        return f"[{self.source}, p.{self.page}]"


@dataclass(slots=True)
class RagResponse:
    """Answer text plus the ordered, de-duplicated citations it references."""

    answer: str
    citations: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "citations": [
                {"source": citation.source, "page": citation.page}
                for citation in self.citations
            ],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RagResponse":
        return cls(
            answer=str(payload.get("answer", "")),
            citations=[
                Citation(source=str(item["source"]), page=int(item["page"]))
                for item in payload.get("citations", [])
            ],
        )


@dataclass(slots=True)
class ToolCallRequest:
    """Tool invocation parsed from the decision router output."""

    tool: str
    params: dict[str, Any] = field(default_factory=dict)

    def envelope(self) -> dict[str, Any]:
        return {"tool": self.tool, "params": self.params}


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """A single role-tagged message exchanged with the chat model."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ChatMessage":
        raw_role = str(payload.get("role", ""))
        try:
            role = MessageRole(raw_role)
        except ValueError as exc:
            raise ValueError(f"Unsupported message role: {raw_role!r}") from exc
        return cls(role=role, content=str(payload.get("content", "")))
