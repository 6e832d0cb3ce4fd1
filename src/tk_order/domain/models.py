"""Order domain models — pure dataclasses, no store dependency."""

from dataclasses import dataclass

from src.tk_common.money import to_amount


@dataclass(frozen=True)
class Ticket:
    id: str            # key under orders/{orderId}/tickets
    type: str          # category label ("Adult", "Child", ...)
    price: object      # as stored; may be a numeric-looking string
    quantity: int      # stored quantity, never negative

    @property
    def unit_price(self) -> float:
        return to_amount(self.price)


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    date: str
    timestamp: str
    tickets: tuple[Ticket, ...] = ()
    stored_total: float = 0.0          # "total" as written by the purchase flow
    payment_method: str | None = None

    def ticket(self, ticket_id: str) -> Ticket | None:
        for t in self.tickets:
            if t.id == ticket_id:
                return t
        return None

    @property
    def stored_quantities(self) -> dict[str, int]:
        return {t.id: t.quantity for t in self.tickets}
