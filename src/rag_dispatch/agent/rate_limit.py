"""Per-(session, tool) fixed-window call counter."""

from __future__ import annotations

import logging

from rag_dispatch.config import RateLimitConfig
from rag_dispatch.store import KeyValueStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """Advisory limiter backed by the shared key-value store.

    The increment and the expiry are two store calls, so concurrent first
    calls can push the window end slightly later. Counts never reset to
    zero mid-window.
    """

    def __init__(self, store: KeyValueStore, config: RateLimitConfig | None = None) -> None:
        self.store = store
        self.config = config or RateLimitConfig()

    @staticmethod
    def key(session_id: str, tool_name: str) -> str:
        return f"tool:rate:{session_id}:{tool_name}"

    def increment(self, session_id: str, tool_name: str) -> int:
        key = self.key(session_id, tool_name)
        count = self.store.increment(key)
        if count == 1:
            self.store.expire(key, self.config.window_seconds)
        return count

    def allow(self, session_id: str, tool_name: str) -> bool:
        count = self.increment(session_id, tool_name)
        if count > self.config.max_calls:
            logger.info(
                "Rate limit hit: session=%s tool=%s count=%d max=%d",
                session_id, tool_name, count, self.config.max_calls,
            )
            return False
        return True

    @property
    def cooldown_message(self) -> str:
        return f"Too many requests. Please try again in {_describe_window(self.config.window_seconds)}."


def _describe_window(seconds: int) -> str:
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"
