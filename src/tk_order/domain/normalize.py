"""Snapshot -> domain conversion for the orders collection.

The store hands over the whole collection; only records whose userId
matches the signed-in user survive. Malformed records are coerced to
safe defaults, and a record that is not an object at all is skipped,
so one bad entry never blanks the list.

Ordering: newest first by timestamp (epoch milliseconds or ISO-8601),
then date, then order id. An unreadable timestamp sorts as 0.
"""

import logging
import math
from datetime import UTC, datetime
from typing import Any

from src.tk_common.money import to_amount, to_quantity
from src.tk_order.domain.models import Order, Ticket

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _ticket_entries(raw: Any) -> list[tuple[str, Any]]:
    if isinstance(raw, dict):
        return [(str(k), v) for k, v in raw.items()]
    if isinstance(raw, list):
        return [(str(i), v) for i, v in enumerate(raw) if v is not None]
    return []


def normalize_tickets(raw: Any) -> tuple[Ticket, ...]:
    tickets = []
    for ticket_id, data in _ticket_entries(raw):
        if not isinstance(data, dict):
            logger.warning("skipping malformed ticket %s", ticket_id)
            continue
        tickets.append(
            Ticket(
                id=ticket_id,
                type=_text(data.get("type")),
                price=data.get("price", 0),
                quantity=to_quantity(data.get("quantity")),
            )
        )
    return tuple(tickets)


def normalize_order(order_id: str, record: dict[str, Any]) -> Order:
    payment = record.get("paymentInfo")
    method = payment.get("paymentMethod") if isinstance(payment, dict) else None
    return Order(
        id=order_id,
        user_id=_text(record.get("userId")),
        date=_text(record.get("date")),
        timestamp=_text(record.get("timestamp")),
        tickets=normalize_tickets(record.get("tickets")),
        stored_total=to_amount(record.get("total")),
        payment_method=method if isinstance(method, str) and method else None,
    )


def _instant(timestamp: str) -> float:
    """Epoch milliseconds from a numeric or ISO-8601 timestamp, else 0."""
    try:
        value = float(timestamp)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(timestamp)
        except ValueError:
            return 0.0
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.timestamp() * 1000
    return value if math.isfinite(value) else 0.0


def _sort_key(order: Order) -> tuple[float, str, str]:
    return (_instant(order.timestamp), order.date, order.id)


def normalize_orders(snapshot: Any, user_id: str) -> list[Order]:
    """Full collection snapshot -> the user's orders, newest first."""
    if not isinstance(snapshot, dict) or not user_id:
        return []
    orders = []
    for order_id, record in snapshot.items():
        if not isinstance(record, dict):
            logger.warning("skipping malformed order record %s", order_id)
            continue
        if record.get("userId") != user_id:
            continue
        orders.append(normalize_order(str(order_id), record))
    orders.sort(key=_sort_key, reverse=True)
    return orders
