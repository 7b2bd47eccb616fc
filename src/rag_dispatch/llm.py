"""Generation collaborator: a single-shot prompt-to-text contract."""

from __future__ import annotations

import os
from typing import Any, Protocol

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from rag_dispatch.config import LLMConfig
from rag_dispatch.types import ChatMessage, MessageRole


class Generator(Protocol):
    """Produce plain text for a prompt."""

    def generate(self, prompt: str) -> str:
        """Return the model completion for *prompt*."""


class ChatModelGenerator:
    """Adapts a LangChain chat model to the ``Generator`` contract."""

    def __init__(self, llm: Any, *, system_prompt: str | None = None) -> None:
        self.llm = llm
        self.system_prompt = system_prompt

    def generate(self, prompt: str) -> str:
        messages: list[ChatMessage] = []
        if self.system_prompt:
            messages.append(ChatMessage(role=MessageRole.SYSTEM, content=self.system_prompt))
        messages.append(ChatMessage(role=MessageRole.USER, content=prompt))
        response = self.llm.invoke([to_langchain_message(message) for message in messages])
        return _content_text(response)


def to_langchain_message(message: ChatMessage) -> BaseMessage:
    match message.role:
        case MessageRole.SYSTEM:
            return SystemMessage(content=message.content)
        case MessageRole.USER:
            return HumanMessage(content=message.content)
        case MessageRole.ASSISTANT:
            return AIMessage(content=message.content)
        case _:
            raise ValueError(f"Unsupported message role: {message.role!r}")


def from_langchain_message(message: BaseMessage) -> ChatMessage:
    if isinstance(message, SystemMessage):
        role = MessageRole.SYSTEM
    elif isinstance(message, HumanMessage):
        role = MessageRole.USER
    elif isinstance(message, AIMessage):
        role = MessageRole.ASSISTANT
    else:
        raise ValueError(f"Unsupported message type: {type(message).__name__}")
    return ChatMessage(role=role, content=_content_text(message))


def create_chat_model(config: LLMConfig | None = None) -> Any:
    """Build the OpenAI chat model, or ``None`` when no API key is configured."""
    if not os.getenv("OPENAI_API_KEY"):
        return None

    from langchain_openai import ChatOpenAI

    config = config or LLMConfig()
    return ChatOpenAI(model=config.model, temperature=config.temperature)


def _content_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return str(content)
