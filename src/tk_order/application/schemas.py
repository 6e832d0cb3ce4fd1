"""Pydantic schemas for the order endpoints.

Every amount is exposed twice: as a float rounded to cents and as a
display string ("35.00"). Totals are recomputed from the ledger and the
edit overlay each time a response is built.
stored_total is the "total" written by the purchase flow, shown as recorded
and never recomputed.
"""

from pydantic import BaseModel

from src.tk_common.money import format_amount, round_amount
from src.tk_order.domain.models import Order
from src.tk_order.domain.totals import (
    PendingQuantities,
    effective_quantity,
    grand_total,
    order_total,
    ticket_total,
)


class SetQuantityRequest(BaseModel):
    # Negative values are accepted and clamped to 0.
    quantity: int


class TicketLine(BaseModel):
    id: str
    type: str
    unit_price: float
    stored_quantity: int
    quantity: int
    pending: bool
    line_total: float
    line_total_display: str


class OrderView(BaseModel):
    id: str
    date: str
    timestamp: str
    payment_method: str | None
    editing: bool
    tickets: list[TicketLine]
    total: float
    total_display: str
    stored_total: float
    stored_total_display: str

    @classmethod
    def from_domain(cls, order: Order, pending: PendingQuantities) -> "OrderView":
        lines = []
        for t in order.tickets:
            qty = effective_quantity(order, t, pending)
            line = ticket_total(t, qty)
            lines.append(
                TicketLine(
                    id=t.id,
                    type=t.type,
                    unit_price=t.unit_price,
                    stored_quantity=t.quantity,
                    quantity=qty,
                    pending=qty != t.quantity,
                    line_total=round_amount(line),
                    line_total_display=format_amount(line),
                )
            )
        total = order_total(order, pending)
        return cls(
            id=order.id,
            date=order.date,
            timestamp=order.timestamp,
            payment_method=order.payment_method,
            editing=order.id in pending,
            tickets=lines,
            total=total,
            total_display=format_amount(total),
            stored_total=round_amount(order.stored_total),
            stored_total_display=format_amount(order.stored_total),
        )


class LedgerSummaryResponse(BaseModel):
    orders: list[OrderView]
    grand_total: float
    grand_total_display: str
    notice: str | None = None

    @classmethod
    def build(
        cls,
        orders: list[Order],
        pending: PendingQuantities,
        notice: str | None = None,
    ) -> "LedgerSummaryResponse":
        total = grand_total(orders, pending)
        return cls(
            orders=[OrderView.from_domain(o, pending) for o in orders],
            grand_total=total,
            grand_total_display=format_amount(total),
            notice=notice,
        )
