"""Tests for tk_order.domain.normalize — snapshot filtering and coercion."""

from src.tk_order.domain.normalize import normalize_order, normalize_orders, normalize_tickets


class TestNormalizeOrders:
    def test_filters_by_owner(self, orders_snapshot: dict) -> None:
        orders = normalize_orders(orders_snapshot, "u1")
        assert {o.id for o in orders} == {"o1", "o2"}
        assert all(o.user_id == "u1" for o in orders)

    def test_other_user_sees_only_own(self, orders_snapshot: dict) -> None:
        orders = normalize_orders(orders_snapshot, "u2")
        assert [o.id for o in orders] == ["o3"]

    def test_newest_first(self, orders_snapshot: dict) -> None:
        orders = normalize_orders(orders_snapshot, "u1")
        assert [o.id for o in orders] == ["o2", "o1"]

    def test_ties_fall_back_to_date_then_id(self) -> None:
        snapshot = {
            "b": {"userId": "u1", "date": "2024-01-01"},
            "a": {"userId": "u1", "date": "2024-01-01"},
            "c": {"userId": "u1", "date": "2024-02-01"},
        }
        assert [o.id for o in normalize_orders(snapshot, "u1")] == ["c", "b", "a"]

    def test_iso_timestamps_sort_chronologically(self) -> None:
        snapshot = {
            "a": {"userId": "u1", "date": "2024-06-01", "timestamp": "2024-05-01T09:00:00Z"},
            "b": {"userId": "u1", "date": "2024-01-01", "timestamp": "2024-05-03T09:00:00+00:00"},
            "c": {"userId": "u1", "date": "2024-01-01", "timestamp": "1714636800000"},
            "d": {"userId": "u1", "date": "2099-01-01", "timestamp": "yesterday"},
        }
        # c is 2024-05-02T08:00Z in epoch milliseconds
        assert [o.id for o in normalize_orders(snapshot, "u1")] == ["b", "c", "a", "d"]

    def test_empty_or_missing_snapshot(self) -> None:
        assert normalize_orders(None, "u1") == []
        assert normalize_orders({}, "u1") == []

    def test_no_user_sees_nothing(self, orders_snapshot: dict) -> None:
        assert normalize_orders(orders_snapshot, "") == []

    def test_malformed_record_skipped_not_fatal(self, orders_snapshot: dict) -> None:
        orders_snapshot["broken"] = "not-an-order"
        orders = normalize_orders(orders_snapshot, "u1")
        assert {o.id for o in orders} == {"o1", "o2"}


class TestNormalizeOrder:
    def test_defaults_for_missing_fields(self) -> None:
        order = normalize_order("o9", {"userId": "u1"})
        assert order.tickets == ()
        assert order.stored_total == 0.0
        assert order.timestamp == ""
        assert order.date == ""
        assert order.payment_method is None

    def test_payment_method_and_total(self, orders_snapshot: dict) -> None:
        order = normalize_order("o2", orders_snapshot["o2"])
        assert order.payment_method == "card"
        order = normalize_order("o1", orders_snapshot["o1"])
        assert order.stored_total == 35.0

    def test_ticket_map_becomes_ordered_list(self, orders_snapshot: dict) -> None:
        order = normalize_order("o1", orders_snapshot["o1"])
        assert [t.id for t in order.tickets] == ["t1", "t2"]
        assert order.ticket("t2").type == "Child"
        assert order.ticket("missing") is None


class TestNormalizeTickets:
    def test_price_kept_raw_and_coerced_on_demand(self) -> None:
        (ticket,) = normalize_tickets({"t1": {"type": "Adult", "price": "12.50", "quantity": 1}})
        assert ticket.price == "12.50"
        assert ticket.unit_price == 12.5

    def test_quantity_coerced(self) -> None:
        tickets = normalize_tickets(
            {
                "t1": {"type": "Adult", "price": 1, "quantity": "3"},
                "t2": {"type": "Adult", "price": 1, "quantity": -2},
                "t3": {"type": "Adult", "price": 1},
            }
        )
        assert [t.quantity for t in tickets] == [3, 0, 0]

    def test_list_form_uses_index_ids(self) -> None:
        tickets = normalize_tickets([{"type": "Adult", "price": 1, "quantity": 1}, None, {"type": "Child"}])
        assert [t.id for t in tickets] == ["0", "2"]

    def test_malformed_ticket_skipped(self) -> None:
        tickets = normalize_tickets({"t1": 7, "t2": {"type": "Adult", "price": 2, "quantity": 1}})
        assert [t.id for t in tickets] == ["t2"]

    def test_missing_tickets(self) -> None:
        assert normalize_tickets(None) == ()
