"""Configuration models for the dispatch core."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

# Unanswerable questions are cached briefly so repeated misses stay cheap.
NEGATIVE_CACHE_TTL_SECONDS = 10 * 60


class RagConfig(BaseModel):
    """Configures retrieval depth and answer caching."""

    top_k: int = Field(default=3, ge=1)
    cache_namespace: str = Field(default="rag:answer", min_length=1)
    answer_ttl_seconds: int = Field(default=3600, ge=1)


class RateLimitConfig(BaseModel):
    """Configures the per-(session, tool) sliding window."""

    window_seconds: int = Field(default=60, ge=1)
    max_calls: int = Field(default=5, ge=1)


class LLMConfig(BaseModel):
    """Configures the chat model used for routing and generation."""

    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)


class Settings(BaseModel):
    rag: RagConfig = Field(default_factory=RagConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        rag = RagConfig(
            top_k=int(os.getenv("RAG_TOP_K", "3")),
            answer_ttl_seconds=int(float(os.getenv("RAG_CACHE_EXPIRE_HOURS", "1")) * 3600),
        )
        rate_limit = RateLimitConfig(
            window_seconds=int(os.getenv("TOOL_RATE_LIMIT_WINDOW_SECONDS", "60")),
            max_calls=int(os.getenv("TOOL_RATE_LIMIT_MAX_CALLS", "5")),
        )
        llm = LLMConfig(model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
        return cls(rag=rag, rate_limit=rate_limit, llm=llm)
