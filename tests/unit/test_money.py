"""Tests for tk_common.money — coercion and rounding helpers."""

from src.tk_common.money import exact_sum, format_amount, round_amount, to_amount, to_quantity


class TestToAmount:
    def test_numbers_pass_through(self) -> None:
        assert to_amount(10) == 10.0
        assert to_amount(12.5) == 12.5

    def test_numeric_string(self) -> None:
        assert to_amount("12.50") == 12.5
        assert to_amount(" 7 ") == 7.0

    def test_leading_number_with_trailing_text(self) -> None:
        assert to_amount("10€") == 10.0
        assert to_amount("12.50 EUR") == 12.5
        assert to_amount(" .5x") == 0.5
        assert to_amount("-3 off") == -3.0

    def test_no_leading_number(self) -> None:
        assert to_amount("€10") == 0.0
        assert to_amount("1e400") == 0.0

    def test_garbage_is_zero(self) -> None:
        assert to_amount("abc") == 0.0
        assert to_amount("") == 0.0
        assert to_amount(None) == 0.0
        assert to_amount({"amount": 3}) == 0.0

    def test_non_finite_is_zero(self) -> None:
        assert to_amount("nan") == 0.0
        assert to_amount(float("inf")) == 0.0

    def test_bool_is_not_a_price(self) -> None:
        assert to_amount(True) == 0.0


class TestToQuantity:
    def test_int(self) -> None:
        assert to_quantity(3) == 3

    def test_string(self) -> None:
        assert to_quantity("4") == 4
        assert to_quantity("2.0") == 2

    def test_negative_clamped(self) -> None:
        assert to_quantity(-3) == 0
        assert to_quantity("-1") == 0

    def test_garbage_is_zero(self) -> None:
        assert to_quantity(None) == 0
        assert to_quantity("many") == 0
        assert to_quantity("1e400") == 0


class TestRounding:
    def test_exact_sum_is_order_independent(self) -> None:
        values = [0.1] * 10
        assert exact_sum(values) == 1.0
        assert exact_sum(reversed(values)) == 1.0

    def test_round_amount(self) -> None:
        assert round_amount(0.999) == 1.0
        assert round_amount(47.5) == 47.5

    def test_format_amount(self) -> None:
        assert format_amount(35) == "35.00"
        assert format_amount(12.5) == "12.50"
        assert format_amount(0) == "0.00"
