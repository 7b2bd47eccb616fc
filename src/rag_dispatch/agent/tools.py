"""Built-in tool implementations."""

from __future__ import annotations

import logging
import re
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from rag_dispatch.agent.registry import ToolDefinition, ToolRegistry

logger = logging.getLogger(__name__)

ORDER_TOOL_NAME = "queryOrder"
ORDER_ID_PREFIX = "OP"
ORDER_ID_DIGITS = 5

_NON_DIGITS = re.compile(r"\D+")


class OrderLookupInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    order_id: str = Field(
        alias="orderId",
        min_length=1,
        description="Order number exactly as the user wrote it, e.g. OP12345 or 12345.",
    )


class OrderStore(Protocol):
    def get_status(self, order_id: str) -> str:
        """Return the status text for a canonical order id."""


class InMemoryOrderStore:
    """Order status lookup for local runs and tests."""

    NOT_FOUND = "not found"

    def __init__(self, orders: dict[str, str] | None = None) -> None:
        self._orders = dict(orders) if orders is not None else {
            "OP12345": "shipped",
            "OP67890": "awaiting payment",
            "OP11223": "cancelled",
        }

    def get_status(self, order_id: str) -> str:
        return self._orders.get(order_id, self.NOT_FOUND)


def canonical_order_id(raw: str) -> str | None:
    """Keep only digits; exactly five of them make ``OP<digits>``."""
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) != ORDER_ID_DIGITS:
        return None
    return f"{ORDER_ID_PREFIX}{digits}"


def make_order_lookup(order_store: OrderStore):
    """Create the ``queryOrder`` executor bound to *order_store*.

    The executor never raises: malformed ids get a guidance reply and store
    failures get an apology, so the conversation always continues.
    """

    def _query_order(params: BaseModel, user_id: str, session_id: str) -> str:
        raw = str(getattr(params, "order_id", "") or "").strip()
        if not raw:
            return "The order number is empty. Please provide a valid order number, e.g. OP12345."

        order_id = canonical_order_id(raw)
        if order_id is None:
            return (
                "That order number doesn't look right. Please provide OP followed by "
                "5 digits, e.g. OP12345."
            )

        try:
            status = order_store.get_status(order_id)
        except Exception:
            logger.exception("Order lookup failed for %s (user=%s)", order_id, user_id)
            return f"Sorry, I can't look up order {order_id} right now. Please try again later."

        logger.debug("Order %s looked up by user=%s session=%s", order_id, user_id, session_id)
        return f"Order {order_id} is currently: {status}."

    return _query_order


def register_builtin_tools(registry: ToolRegistry, *, order_store: OrderStore) -> None:
    """Register the default tool set offered to the decision router.

    Tools:
    - `queryOrder`: look up an order's status from a free-form order number.
    """

    registry.register(
        ToolDefinition(
            name=ORDER_TOOL_NAME,
            description="Look up the current status of an order by its order number.",
            args_schema=OrderLookupInput,
            executor=make_order_lookup(order_store),
            required_permissions=frozenset({"order:read"}),
        )
    )
