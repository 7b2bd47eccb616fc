"""Message dispatch core: tool routing plus grounded knowledge-base answers."""

from .config import RagConfig, RateLimitConfig, Settings

__all__ = ["RagConfig", "RateLimitConfig", "Settings"]
