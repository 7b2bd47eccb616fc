"""Errors raised inside the tool branch.

The orchestrator catches every ``ToolCallError`` and falls back to the
knowledge-base path, so none of these reach the end user.
"""

from __future__ import annotations


class ToolCallError(Exception):
    """Base class for failures that abort the tool path."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ToolParseError(ToolCallError):
    """The router output could not be turned into a tool call."""


class UnknownToolError(ToolCallError):
    """The requested tool name is not registered."""


class ToolValidationError(ToolCallError):
    """The tool call does not satisfy the tool's parameter schema."""
