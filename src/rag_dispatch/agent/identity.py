"""Resolve the acting user for a chat session."""

from __future__ import annotations

from typing import Protocol


class IdentityResolver(Protocol):
    def resolve(self, session_id: str) -> str:
        """Return the user id acting in *session_id*."""


class SessionIdentityResolver:
    """Sessions are not bound to accounts yet: the session id is the user id."""

    def resolve(self, session_id: str) -> str:
        return session_id
